# jetty_server_manager/core/environment.py
"""Resolves the environment variables the Jetty launcher script reads.

Three variables are produced, in this order:

- ``JAVA_HOME``: an explicitly configured JDK home, else the value from the
  ambient environment, else nothing at all.
- ``JETTY_HOME``: the server model's home directory.
- ``JETTY_OPTS``: the start or stop options from
  :func:`~jetty_server_manager.core.jetty_command.build_launch_options`.

Resolution never raises. A configuration error part way through ends the
resolution, and the variables gathered so far are returned along with a
warning describing what went wrong.
"""

import os
import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from jetty_server_manager.config.const import (
    JAVA_HOME_ENV_VAR,
    JAVA_VM_ENV_VAR,
    JETTY_HOME_ENV_VAR,
    JETTY_OPTS_ENV_VAR,
)
from jetty_server_manager.core.jetty_command import build_launch_options
from jetty_server_manager.core.models import (
    EnvironmentResolution,
    EnvironmentVariable,
    ServerModel,
)
from jetty_server_manager.error import ConfigurationError

logger = logging.getLogger(__name__)

OptionsBuilder = Callable[[ServerModel], Tuple[str, ServerModel]]


def get_default_java_vm_variable_name() -> str:
    """The variable a launcher reads additional JVM options from."""
    return JAVA_VM_ENV_VAR


def to_host_path(path: str) -> str:
    return path.replace("/", os.sep)


def resolve_java_home(
    jdk_home: Optional[str], os_env: Mapping[str, str]
) -> Optional[str]:
    if jdk_home:
        return to_host_path(jdk_home)
    return os_env.get(JAVA_HOME_ENV_VAR)


def resolve_environment(
    model: ServerModel,
    jdk_home: Optional[str] = None,
    os_env: Optional[Mapping[str, str]] = None,
    options_builder: OptionsBuilder = build_launch_options,
) -> EnvironmentResolution:
    """Resolves the launcher environment for `model`.

    Args:
        model: The server model.
        jdk_home: An explicitly configured JDK home directory, if any.
        os_env: The ambient environment to fall back on. Defaults to
            `os.environ`.
        options_builder: Builds the `JETTY_OPTS` value and the model to carry
            forward.

    Returns:
        An `EnvironmentResolution`. If the options builder ran, its `model`
        is the one the builder returned (stop port cleared after a stop).
    """
    if os_env is None:
        os_env = os.environ

    variables: List[EnvironmentVariable] = []
    next_model = model

    try:
        java_home = resolve_java_home(jdk_home, os_env)
        if java_home is not None:
            variables.append(EnvironmentVariable(JAVA_HOME_ENV_VAR, java_home, True))
        else:
            logger.debug(
                f"No JDK home configured and {JAVA_HOME_ENV_VAR} is not set; omitting it."
            )

        variables.append(
            EnvironmentVariable(
                JETTY_HOME_ENV_VAR, model.validated_home_directory(), True
            )
        )

        options, next_model = options_builder(model)
        variables.append(EnvironmentVariable(JETTY_OPTS_ENV_VAR, options, True))
    except ConfigurationError as e:
        message = f"Environment for server '{model.name}' is incomplete: {e}"
        logger.debug(message)
        return EnvironmentResolution(tuple(variables), next_model, (message,))

    logger.debug(
        f"Resolved environment for server '{model.name}': "
        f"{', '.join(v.name for v in variables)}"
    )
    return EnvironmentResolution(tuple(variables), next_model)


def apply_environment(
    variables: Iterable[EnvironmentVariable],
    base_env: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Applies `variables` in order to a copy of `base_env`.

    A variable flagged `overwrite_existing=False` is only set when the name
    is not yet defined, either by the base environment or by an earlier
    variable.

    Args:
        variables: The ordered variables to apply.
        base_env: The environment to start from. Defaults to `os.environ`.

    Returns:
        A new dictionary suitable for `subprocess`'s `env` argument.
    """
    env = dict(os.environ if base_env is None else base_env)
    for variable in variables:
        if not variable.overwrite_existing and variable.name in env:
            continue
        env[variable.name] = variable.value
    return env
