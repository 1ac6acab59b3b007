# jetty_server_manager/config/settings.py
"""Manages application-wide configuration settings.

This module provides the `Settings` class, which is responsible for loading
settings from a JSON file, providing default values for missing keys, saving
changes back to the file, and determining the appropriate application data and
configuration directories based on the environment.

The configuration is stored in a nested JSON format. Settings are accessed
programmatically using dot-notation (e.g., `settings.get('paths.plugins')`).
"""

import os
import json
import logging
import collections.abc
from typing import Any, Dict

import appdirs

from jetty_server_manager.error import ConfigurationError
from jetty_server_manager.config.const import (
    package_name,
    app_author,
    env_name,
    DEFAULT_PLUGIN_NAME,
)

logger = logging.getLogger(__name__)

# The schema version for the configuration file.
CONFIG_SCHEMA_VERSION = 1
CONFIG_FILE_NAME = "jetty_server_manager.json"


def deep_merge(source: Dict, destination: Dict) -> Dict:
    """Merges user values from `source` over the defaults in `destination`.

    Nested sections are merged key by key, so a config file that only sets
    `launcher.chmod_timeout` keeps every other `launcher` default. Returns
    `destination`.
    """
    for key, value in source.items():
        if isinstance(value, collections.abc.Mapping):
            node = destination.setdefault(key, {})
            deep_merge(value, node)
        else:
            destination[key] = value
    return destination


class Settings:
    """Manages loading, accessing, and saving application settings.

    The data directory holds the launcher installation root, the per-server
    configuration files and the logs. The configuration file itself lives in
    the platform's user configuration directory as reported by `appdirs`.
    """

    def __init__(self):
        logger.debug("Initializing Settings")
        self._app_data_dir_path = self._determine_app_data_dir()
        self._config_dir_path = self._determine_app_config_dir()
        self.config_path = os.path.join(self._config_dir_path, CONFIG_FILE_NAME)

        self._settings: Dict[str, Any] = {}
        self.load()

    def _determine_app_data_dir(self) -> str:
        """Determines the main application data directory.

        It prioritizes the `JETTY_SERVER_MANAGER_DATA_DIR` environment variable
        if set. Otherwise, it defaults to a 'jetty-server-manager' directory in
        the user's home folder. The directory is created if it doesn't exist.

        Returns:
            The absolute path to the application data directory.
        """
        env_var_name = f"{env_name}_DATA_DIR"
        data_dir = os.environ.get(env_var_name)
        if not data_dir:
            data_dir = os.path.join(os.path.expanduser("~"), f"{package_name}")
        os.makedirs(data_dir, exist_ok=True)
        return data_dir

    def _determine_app_config_dir(self) -> str:
        """Determines the directory holding the JSON configuration file."""
        config_dir = appdirs.user_config_dir(package_name, app_author)
        os.makedirs(config_dir, exist_ok=True)
        return config_dir

    @property
    def default_config(self) -> dict:
        """Provides the default configuration values for the application.

        Paths are constructed dynamically based on the determined application
        data directory.

        Returns:
            A dictionary of default settings with a nested structure.
        """
        app_data_dir_val = self._app_data_dir_path
        return {
            "config_version": CONFIG_SCHEMA_VERSION,
            "paths": {
                "plugins": os.path.join(app_data_dir_val, "plugins"),
                "servers": os.path.join(app_data_dir_val, "servers"),
                "logs": os.path.join(app_data_dir_val, ".logs"),
            },
            "retention": {
                "logs": 3,
            },
            "logging": {
                "file_level": logging.INFO,
                "cli_level": logging.WARN,
            },
            "launcher": {
                "plugin_name": DEFAULT_PLUGIN_NAME,
                "chmod_timeout": 10,
            },
            "server": {
                "stop_timeout": 30,
            },
            "jdk": {
                "home": None,
            },
        }

    def load(self):
        """Loads the config file, writing one with the defaults if it is missing.

        An unreadable or malformed file is logged and the defaults are used.
        """
        self._settings = self.default_config

        if not os.path.exists(self.config_path):
            logger.info(
                f"Configuration file not found at {self.config_path}. "
                "Creating with default settings."
            )
            self._write_config()
        else:
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    user_config = json.load(f)
                deep_merge(user_config, self._settings)
            except (ValueError, OSError) as e:
                logger.warning(
                    f"Could not load config file at {self.config_path}: {e}. "
                    "Using default settings."
                )

        self._ensure_dirs_exist()

    def _ensure_dirs_exist(self):
        """Creates the plugin, server and log directories.

        Raises:
            ConfigurationError: If a directory cannot be created.
        """
        dirs_to_check = [
            self.get("paths.plugins"),
            self.get("paths.servers"),
            self.get("paths.logs"),
        ]
        for dir_path in dirs_to_check:
            if dir_path and isinstance(dir_path, str):
                try:
                    os.makedirs(dir_path, exist_ok=True)
                except OSError as e:
                    raise ConfigurationError(
                        f"Could not create directory: {dir_path}"
                    ) from e

    def _write_config(self):
        try:
            os.makedirs(self._config_dir_path, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, indent=4, sort_keys=True)
        except (OSError, TypeError) as e:
            raise ConfigurationError(f"Failed to write configuration: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        """Returns the value at a dotted key such as `"launcher.plugin_name"`."""
        d = self._settings
        try:
            for k in key.split("."):
                d = d[k]
            return d
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any):
        """Sets the value at a dotted key and writes the config file.

        Missing sections are created. Nothing is written when the value is
        unchanged.

        Raises:
            ConfigurationError: If the config file cannot be written.
        """
        if self.get(key) == value:
            return

        keys = key.split(".")
        d = self._settings
        for k in keys[:-1]:
            d = d.setdefault(k, {})

        d[keys[-1]] = value
        logger.info(f"Setting '{key}' updated to '{value}'. Saving configuration.")
        self._write_config()

    @property
    def app_data_dir(self) -> str:
        """The absolute path to the application's main data directory."""
        return self._app_data_dir_path
