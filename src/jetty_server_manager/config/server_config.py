# jetty_server_manager/config/server_config.py
"""
Reads and writes per-server configuration files.

Each server is described by a JSON file named `<server_name>.json` inside the
`paths.servers` directory. The file holds exactly the fields of
:class:`~jetty_server_manager.core.models.ServerModel`.
"""

import json
import os
import logging

from jetty_server_manager.core.models import ServerModel
from jetty_server_manager.error import (
    AppFileNotFoundError,
    ConfigurationError,
    FileOperationError,
    MissingArgumentError,
)

logger = logging.getLogger(__name__)


def get_server_config_path(servers_dir: str, server_name: str) -> str:
    """Returns the path of the config file for `server_name`."""
    if not server_name:
        raise MissingArgumentError("Server name cannot be empty.")
    return os.path.join(servers_dir, f"{server_name}.json")


def load_server_model(servers_dir: str, server_name: str) -> ServerModel:
    """
    Loads the server model stored for `server_name`.

    Raises:
        AppFileNotFoundError: If the server has no configuration file.
        ConfigurationError: If the file is not valid JSON or has bad fields.
    """
    config_path = get_server_config_path(servers_dir, server_name)
    if not os.path.isfile(config_path):
        raise AppFileNotFoundError(config_path, "Server configuration")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Server configuration '{config_path}' is not valid JSON: {e}"
        ) from e
    except OSError as e:
        raise FileOperationError(
            f"Failed to read server configuration '{config_path}': {e}"
        ) from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Server configuration '{config_path}' must contain a JSON object."
        )
    data.setdefault("name", server_name)
    logger.debug(f"Loaded server configuration from '{config_path}'.")
    return ServerModel.from_dict(data)


def save_server_model(servers_dir: str, model: ServerModel) -> str:
    """
    Writes `model` to its configuration file, replacing any previous content.

    Returns:
        The path written to.

    Raises:
        FileOperationError: If the file cannot be written.
    """
    config_path = get_server_config_path(servers_dir, model.name)
    try:
        os.makedirs(servers_dir, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(model.to_dict(), f, indent=4)
    except OSError as e:
        raise FileOperationError(
            f"Failed to write server configuration '{config_path}': {e}"
        ) from e
    logger.info(f"Saved configuration for server '{model.name}' to '{config_path}'.")
    return config_path
