# jetty_server_manager/core/system/executable.py
"""Locates the platform launcher script and keeps it executable.

The launcher lives at a fixed location below an installation root:
``<install_root>/<plugin_name>/bin/jetty.sh`` (``jetty.bat`` on Windows).
Archives and copies frequently lose the POSIX execute bit, so before every
launch the script is passed through ``/bin/chmod +x``. That step is best
effort: a failure is logged and reported back as a warning, never raised.
"""

import os
import platform
import logging
import subprocess
from typing import Optional

from jetty_server_manager.config.const import (
    BIN_DIR,
    CHMOD_EXECUTABLE,
    POSIX_LAUNCHER_FILE_NAME,
    WINDOWS_LAUNCHER_FILE_NAME,
)
from jetty_server_manager.core.models import ExecutableResult

logger = logging.getLogger(__name__)

DEFAULT_CHMOD_TIMEOUT = 10


def is_windows(os_name: Optional[str] = None) -> bool:
    return (os_name or platform.system()) == "Windows"


def get_launcher_file_name(os_name: Optional[str] = None) -> str:
    """Returns the launcher script name for the given (or current) OS."""
    if is_windows(os_name):
        return WINDOWS_LAUNCHER_FILE_NAME
    return POSIX_LAUNCHER_FILE_NAME


def resolve_launcher_path(
    install_root: str, plugin_name: str, os_name: Optional[str] = None
) -> str:
    """Computes the absolute path of the launcher script.

    This is a pure path computation; whether the file exists is not checked.

    Args:
        install_root: The directory plugins are installed under.
        plugin_name: The name of the plugin directory holding `bin/`.
        os_name: Overrides the detected OS (as returned by `platform.system()`).

    Returns:
        The absolute path to the launcher script.
    """
    bin_dir = os.path.join(install_root, plugin_name, BIN_DIR)
    return os.path.abspath(os.path.join(bin_dir, get_launcher_file_name(os_name)))


def ensure_executable(
    path: str,
    timeout: Optional[float] = DEFAULT_CHMOD_TIMEOUT,
    os_name: Optional[str] = None,
    log: Optional[logging.Logger] = None,
) -> ExecutableResult:
    """Sets the executable bit on `path` using `/bin/chmod +x`.

    On Windows this is a no-op. On other platforms the permission-setting
    process is run once and waited on for at most `timeout` seconds. A
    non-zero exit code, a failure to spawn the process or a timeout are
    logged and returned as warnings; this function never raises.

    Args:
        path: The launcher script to make executable.
        timeout: Seconds to wait for `chmod`. `None` waits indefinitely.
        os_name: Overrides the detected OS (as returned by `platform.system()`).
        log: The logger to report failures to. Defaults to this module's.

    Returns:
        An `ExecutableResult`; `changed` is True when `chmod` exited cleanly.
    """
    log = log or logger
    if is_windows(os_name):
        log.debug(f"Skipping executable bit for '{path}' on Windows.")
        return ExecutableResult(path=path)

    abs_path = os.path.abspath(path)
    error_message = f"Couldn't set executable bit on {abs_path}"
    command = [CHMOD_EXECUTABLE, "+x", abs_path]
    log.debug(f"Running: {' '.join(command)}")

    try:
        completed = subprocess.run(
            command,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        message = f"{error_message}: chmod did not finish within {timeout}s"
        log.error(message)
        return ExecutableResult(path=abs_path, warnings=(message,))
    except (OSError, ValueError) as e:
        message = f"{error_message}: {e}"
        log.error(message, exc_info=True)
        return ExecutableResult(path=abs_path, warnings=(message,))

    if completed.returncode != 0:
        stderr = (completed.stderr or b"").decode(errors="replace").strip()
        message = f"{error_message} (exit code {completed.returncode})"
        if stderr:
            message = f"{message}: {stderr}"
        log.warning(message)
        return ExecutableResult(path=abs_path, warnings=(message,))

    log.debug(f"Executable bit set on '{abs_path}'.")
    return ExecutableResult(path=abs_path, changed=True)
