# jetty_server_manager/core/lifecycle.py
"""Orchestrates launcher resolution and environment building for one server.

:class:`ServerLifecycleController` is the entry point used by the CLI. It
produces a :class:`~jetty_server_manager.core.models.LaunchSpec` for starting
or stopping a server, and can also run those specs (launching the server
detached and recording its PID, or issuing the stop command and falling back
to terminating the recorded process).

The controller owns its :class:`ServerModel`. The only state it changes is
the stop port: building a stop command consumes the armed port, and it must be
re-armed with :meth:`ServerLifecycleController.arm_stop_port` before another
stop command can be built. The controller is not thread-safe.
"""

import logging
from typing import Callable, Mapping, Optional

from jetty_server_manager.config.const import (
    DEFAULT_PLUGIN_NAME,
    JETTY_HOME_ENV_VAR,
    JETTY_OPTS_ENV_VAR,
)
from jetty_server_manager.core.environment import (
    apply_environment,
    resolve_environment,
)
from jetty_server_manager.core.models import (
    EnvironmentResolution,
    LaunchSpec,
    ServerModel,
    collect_warnings,
)
from jetty_server_manager.core.system import executable as core_executable
from jetty_server_manager.core.system import process as core_process
from jetty_server_manager.error import (
    ServerNotRunningError,
    ServerStartError,
    ServerStopError,
)

StartBuilder = Callable[[str, str], str]
EnvironmentBuilder = Callable[
    [ServerModel, Optional[str], Optional[Mapping[str, str]]], EnvironmentResolution
]


class ServerLifecycleController:
    """Builds and runs the start and stop commands for a single server."""

    def __init__(
        self,
        model: ServerModel,
        install_root: str,
        plugin_name: str = DEFAULT_PLUGIN_NAME,
        jdk_home: Optional[str] = None,
        os_env: Optional[Mapping[str, str]] = None,
        logger: Optional[logging.Logger] = None,
        start_builder: Optional[StartBuilder] = None,
        environment_builder: Optional[EnvironmentBuilder] = None,
        chmod_timeout: Optional[float] = core_executable.DEFAULT_CHMOD_TIMEOUT,
    ):
        """Initializes the controller.

        Args:
            model: The server model to build commands for.
            install_root: The directory the launcher plugin is installed under.
            plugin_name: The plugin directory name below `install_root`.
            jdk_home: An explicit JDK home; overrides the ambient `JAVA_HOME`.
            os_env: The ambient environment. Defaults to `os.environ`.
            logger: Receives warnings and progress messages.
            start_builder: Resolves the launcher path from
                `(install_root, plugin_name)`.
            environment_builder: Resolves the environment from
                `(model, jdk_home, os_env)`.
            chmod_timeout: Seconds to wait for `chmod` on POSIX.
        """
        self._model = model
        self.install_root = install_root
        self.plugin_name = plugin_name
        self.jdk_home = jdk_home
        self.os_env = os_env
        self.logger = logger or logging.getLogger(__name__)
        self._start_builder = start_builder or core_executable.resolve_launcher_path
        self._environment_builder = environment_builder or resolve_environment
        self.chmod_timeout = chmod_timeout

    @property
    def model(self) -> ServerModel:
        return self._model

    def arm_stop_port(self, port: int, key: Optional[str] = None) -> ServerModel:
        """Installs a model with `port` (and optionally `key`) as the stop port."""
        self._model = self._model.with_stop_port(port, key)
        self.logger.debug(f"Stop port for server '{self._model.name}' armed: {port}")
        return self._model

    def _log_warnings(self, warnings):
        for warning in warnings:
            self.logger.warning(warning)

    def build_start_command(self) -> LaunchSpec:
        """Builds the command and environment that start the server.

        The launcher is made executable first (POSIX only). The environment is
        always built in start mode; an armed stop port is left in place for a
        later stop.
        """
        launcher_path = self._start_builder(self.install_root, self.plugin_name)
        executable_result = core_executable.ensure_executable(
            launcher_path, timeout=self.chmod_timeout, log=self.logger
        )
        resolution = self._environment_builder(
            self._model.with_stop_port_cleared(), self.jdk_home, self.os_env
        )
        warnings = collect_warnings(executable_result.warnings, resolution.warnings)
        self._log_warnings(resolution.warnings)
        self.logger.info(f"Built start command for server '{self._model.name}'.")
        return LaunchSpec(
            command=(launcher_path,),
            environment=resolution.variables,
            model=self._model,
            warnings=warnings,
        )

    def build_stop_command(self) -> LaunchSpec:
        """Builds the command and environment that stop the server.

        With an armed stop port this is the one-shot stop request, and the
        controller's model has its stop port cleared afterwards. With no
        stop port armed the start-mode environment is produced.
        """
        launcher_path = self._start_builder(self.install_root, self.plugin_name)
        resolution = self._environment_builder(
            self._model, self.jdk_home, self.os_env
        )
        self._model = resolution.model
        self._log_warnings(resolution.warnings)
        self.logger.info(f"Built stop command for server '{self._model.name}'.")
        return LaunchSpec(
            command=(launcher_path,),
            environment=resolution.variables,
            model=self._model,
            warnings=resolution.warnings,
        )

    def start(self, pid_file_path: str, cwd: Optional[str] = None) -> int:
        """Launches the server detached and records its PID.

        Args:
            pid_file_path: Where to record the server's PID.
            cwd: The working directory. Defaults to the server's home directory.

        Returns:
            The PID of the launched process.

        Raises:
            ServerStartError: If the server is already running, the
                environment is incomplete, or the launcher fails to start.
        """
        existing_pid = core_process.read_pid_from_file(pid_file_path)
        if existing_pid is not None and core_process.is_process_running(existing_pid):
            raise ServerStartError(
                f"Server '{self._model.name}' is already running (PID {existing_pid})."
            )

        spec = self.build_start_command()
        missing = _missing_launcher_variables(spec)
        if missing:
            raise ServerStartError(
                f"Cannot start server '{self._model.name}': {', '.join(missing)} "
                f"could not be resolved. {' '.join(spec.warnings)}".strip()
            )

        env = apply_environment(spec.environment, self.os_env)
        return core_process.launch_detached_process(
            spec.command, env, cwd or self._model.home_directory, pid_file_path
        )

    def stop(self, pid_file_path: str, timeout: float = 30):
        """Stops the server.

        If a stop port is armed, the stop command is sent first. It is skipped
        when the launcher environment cannot be resolved. The recorded process
        is terminated if it is still alive afterwards, or if no stop port is
        armed. The PID file is removed once the server is down.

        Raises:
            ServerNotRunningError: If there is neither an armed stop port nor
                a running recorded process.
            ServerStopError: If the process could not be terminated, or the
                stop command cannot be built and there is no recorded process
                to fall back on.
        """
        pid = core_process.read_pid_from_file(pid_file_path)
        running = pid is not None and core_process.is_process_running(pid)

        if self._model.stop_port == 0 and not running:
            core_process.remove_pid_file_if_exists(pid_file_path)
            raise ServerNotRunningError(f"Server '{self._model.name}' is not running.")

        if self._model.stop_port != 0:
            spec = self.build_stop_command()
            missing = _missing_launcher_variables(spec)
            if missing:
                message = (
                    f"Cannot send stop command for server '{self._model.name}': "
                    f"{', '.join(missing)} could not be resolved."
                )
                if not running:
                    raise ServerStopError(message)
                self.logger.warning(message)
            elif self._send_stop_command(spec, pid if running else None, timeout):
                running = False

        if running:
            self.logger.info(
                f"Terminating server '{self._model.name}' (PID {pid}) directly."
            )
            core_process.terminate_process_by_pid(pid)

        core_process.remove_pid_file_if_exists(pid_file_path)
        self.logger.info(f"Server '{self._model.name}' stopped.")

    def _send_stop_command(
        self, spec: LaunchSpec, pid: Optional[int], timeout: float
    ) -> bool:
        """Runs the stop command. Returns True once process `pid` has exited."""
        env = apply_environment(spec.environment, self.os_env)
        try:
            exit_code = core_process.run_command(
                spec.command, env, self._model.home_directory, timeout
            )
        except ServerStopError as e:
            self.logger.warning(f"Stop command failed: {e}")
            return False

        if exit_code != 0:
            self.logger.warning(f"Stop command exited with code {exit_code}.")
            return False
        if pid is None:
            self.logger.info(
                f"Stop request sent to server '{self._model.name}' (no recorded PID)."
            )
            return False
        return core_process.wait_for_exit(pid, timeout)

    def is_running(self, pid_file_path: str) -> bool:
        pid = core_process.read_pid_from_file(pid_file_path)
        return pid is not None and core_process.is_process_running(pid)


def _missing_launcher_variables(spec: LaunchSpec):
    names = {variable.name for variable in spec.environment}
    return [n for n in (JETTY_HOME_ENV_VAR, JETTY_OPTS_ENV_VAR) if n not in names]
