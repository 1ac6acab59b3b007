# jetty_server_manager/core/jetty_command.py
"""Builds the `JETTY_OPTS` value handed to the launcher script.

Jetty's `start.jar` doubles as the shutdown client: run with `STOP.PORT`,
`STOP.KEY` and `--stop` it connects to a running server's stop listener and
asks it to shut down. Run with `STOP.PORT=0` it starts a server with no stop
listener at all. Which of the two is produced depends solely on the model's
stop port.
"""

import os
import logging
from typing import Tuple

from jetty_server_manager.config.const import (
    JETTY_CONTEXT_DEPLOYER_CONFIG_FILE_NAME,
    JETTY_START_JAR,
)
from jetty_server_manager.core.models import ServerModel, validate_stop_port

logger = logging.getLogger(__name__)

JETTY_START_COMMAND = f"-DSTOP.PORT=0 -jar {JETTY_START_JAR}"
JETTY_STOP_COMMAND_TEMPLATE = (
    "-DSTOP.PORT={port:d} -DSTOP.KEY={key} -jar " + JETTY_START_JAR + " --stop"
)


def build_start_options(model: ServerModel) -> str:
    """Start mode: the configured config files, then the deployer config.

    Raises:
        ConfigurationError: If the model has no scratch directory.
    """
    parts = [JETTY_START_COMMAND]
    parts.extend(model.active_config_file_paths)
    parts.append(
        os.path.join(
            model.validated_scratch_directory(), JETTY_CONTEXT_DEPLOYER_CONFIG_FILE_NAME
        )
    )
    return " ".join(parts)


def build_stop_options(model: ServerModel) -> str:
    """Stop mode: the one-shot shutdown request for the armed stop port."""
    port = validate_stop_port(model.stop_port)
    return JETTY_STOP_COMMAND_TEMPLATE.format(port=port, key=model.stop_key)


def build_launch_options(model: ServerModel) -> Tuple[str, ServerModel]:
    """Builds the launch options and the model to use afterwards.

    With a stop port of 0 the start options are returned together with the
    unchanged model. Otherwise the stop options are returned together with a
    copy of the model whose stop port is cleared, so a stop command is only
    ever issued once for each armed port.

    Args:
        model: The server model.

    Returns:
        A `(options, model)` tuple.

    Raises:
        ConfigurationError: If start mode is selected and the model has no
            scratch directory.
    """
    if model.stop_port == 0:
        return build_start_options(model), model

    options = build_stop_options(model)
    logger.debug(
        f"Built stop command for server '{model.name}' on port {model.stop_port}; "
        "clearing stop port."
    )
    return options, model.with_stop_port_cleared()
