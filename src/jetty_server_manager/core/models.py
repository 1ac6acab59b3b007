# jetty_server_manager/core/models.py
"""Value types shared by the launcher, environment and lifecycle modules.

All types here are immutable. Operations that would have changed a model in
place (clearing the stop port after a stop command) return a new instance
instead, and recoverable failures travel back to the caller as a list of
warning strings on the result objects.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

from jetty_server_manager.config.const import MAX_STOP_PORT
from jetty_server_manager.error import ConfigurationError, StopPortError

CommandLine = Tuple[str, ...]


def validate_stop_port(port: Any) -> int:
    """Returns `port` if it can be rendered into a stop command.

    Raises:
        StopPortError: If `port` is not an integer in the range 0-99999.
    """
    if isinstance(port, bool) or not isinstance(port, int):
        raise StopPortError(port)
    if port < 0 or port > MAX_STOP_PORT:
        raise StopPortError(port)
    return port


@dataclass(frozen=True)
class ServerModel:
    """The configuration of a single Jetty server instance.

    A `stop_port` of 0 means the stop-port protocol is not in use, which is
    also the state a model returns to after a stop command has been built.
    """

    name: str = "default"
    home_directory: Optional[str] = None
    scratch_directory: Optional[str] = None
    active_config_file_paths: Tuple[str, ...] = ()
    stop_port: int = 0
    stop_key: str = ""

    def __post_init__(self):
        object.__setattr__(
            self, "active_config_file_paths", tuple(self.active_config_file_paths)
        )
        validate_stop_port(self.stop_port)

    def validated_home_directory(self) -> str:
        """Returns the Jetty home directory.

        Raises:
            ConfigurationError: If no home directory is configured.
        """
        if not self.home_directory:
            raise ConfigurationError(
                f"Jetty home directory is not configured for server '{self.name}'."
            )
        return self.home_directory

    def validated_scratch_directory(self) -> str:
        """Returns the scratch directory holding generated deployer config.

        Raises:
            ConfigurationError: If no scratch directory is configured.
        """
        if not self.scratch_directory:
            raise ConfigurationError(
                f"Scratch directory is not configured for server '{self.name}'."
            )
        return self.scratch_directory

    def with_stop_port_cleared(self) -> "ServerModel":
        return replace(self, stop_port=0)

    def with_stop_port(self, port: int, key: Optional[str] = None) -> "ServerModel":
        if key is None:
            return replace(self, stop_port=port)
        return replace(self, stop_port=port, stop_key=key)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServerModel":
        """Builds a model from the dictionary stored in a server config file.

        Raises:
            ConfigurationError: If a field has the wrong type.
            StopPortError: If the stop port is out of range.
        """
        config_files = data.get("active_config_file_paths") or []
        if isinstance(config_files, str) or not isinstance(config_files, Iterable):
            raise ConfigurationError(
                "'active_config_file_paths' must be a list of file paths."
            )
        stop_port = data.get("stop_port") or 0
        if isinstance(stop_port, str):
            try:
                stop_port = int(stop_port)
            except ValueError:
                raise StopPortError(stop_port) from None
        return cls(
            name=data.get("name") or "default",
            home_directory=data.get("home_directory"),
            scratch_directory=data.get("scratch_directory"),
            active_config_file_paths=tuple(str(p) for p in config_files),
            stop_port=stop_port,
            stop_key=data.get("stop_key") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "home_directory": self.home_directory,
            "scratch_directory": self.scratch_directory,
            "active_config_file_paths": list(self.active_config_file_paths),
            "stop_port": self.stop_port,
            "stop_key": self.stop_key,
        }


@dataclass(frozen=True)
class EnvironmentVariable:
    """A single variable to inject into the launcher's environment."""

    name: str
    value: str
    overwrite_existing: bool = True


@dataclass(frozen=True)
class ExecutableResult:
    """Outcome of making the launcher script executable."""

    path: str
    changed: bool = False
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class EnvironmentResolution:
    """The resolved environment plus the model to carry forward.

    `model` differs from the input model only when a stop command was built,
    in which case its stop port has been cleared.
    """

    variables: Tuple[EnvironmentVariable, ...]
    model: ServerModel
    warnings: Tuple[str, ...] = ()

    def get(self, name: str) -> Optional[str]:
        """Returns the value the variable `name` ends up with, if present."""
        value = None
        for variable in self.variables:
            if variable.name == name:
                value = variable.value
        return value


@dataclass(frozen=True)
class LaunchSpec:
    """Everything needed to run the launcher for one lifecycle step."""

    command: CommandLine
    environment: Tuple[EnvironmentVariable, ...]
    model: ServerModel
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    def environment_dict(self) -> Dict[str, str]:
        """The environment as a plain mapping, later entries winning."""
        result: Dict[str, str] = {}
        for variable in self.environment:
            result[variable.name] = variable.value
        return result


def collect_warnings(*groups: Iterable[str]) -> Tuple[str, ...]:
    warnings: List[str] = []
    for group in groups:
        warnings.extend(group)
    return tuple(warnings)
