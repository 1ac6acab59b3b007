# jetty_server_manager/error.py
"""Defines the custom exception hierarchy for Jetty Server Manager.

Every exception raised deliberately by the application derives from
:class:`JSMError`, so callers (the CLI in particular) can catch a single base
class and report the message to the user.
"""

from typing import Optional


class JSMError(Exception):
    """Base class for all application-specific errors."""


# --- Configuration and input ---


class ConfigurationError(JSMError):
    """Raised when a configuration value is missing, malformed or unusable."""


class UserInputError(JSMError):
    """Raised when a caller supplies an invalid value."""


class MissingArgumentError(UserInputError):
    """Raised when a required argument is empty or missing."""


class StopPortError(UserInputError):
    """Raised when a stop port cannot be rendered into a stop command."""

    def __init__(self, port, message: Optional[str] = None):
        self.port = port
        self.message = message or "Stop port must be an integer between 0 and 99999"
        super().__init__(f"{self.message}: {port!r}")


# --- Filesystem and permissions ---


class FileOperationError(JSMError):
    """Raised when reading or writing a file fails."""


class AppFileNotFoundError(FileOperationError):
    """Raised when an expected file or directory does not exist."""

    def __init__(self, path, description: str = "File"):
        self.path = path
        self.description = description
        super().__init__(f"{description} not found at: {path}")


class PermissionsError(JSMError):
    """Raised when file permissions or process access cannot be obtained."""


# --- Server process ---


class ServerProcessError(JSMError):
    """Base class for errors concerning the server process."""


class ServerStartError(ServerProcessError):
    """Raised when the server process could not be launched."""


class ServerStopError(ServerProcessError):
    """Raised when the server process could not be stopped."""


class ServerNotRunningError(ServerProcessError):
    """Raised when an operation requires a running server and none is found."""
