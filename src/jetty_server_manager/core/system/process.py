# jetty_server_manager/core/system/process.py
"""Provides generic, cross-platform process management utilities.

This module runs the commands built by the lifecycle controller. It includes
functions for:
- Handling PID files (reading, writing, removing).
- Checking if a process is running by its PID.
- Launching the server as a detached background process.
- Running the stop command and waiting for it with a bounded timeout.
- Terminating processes gracefully and, if necessary, forcefully.

It relies on the `psutil` library for inspecting and terminating processes.
"""
import os
import logging
import subprocess
import platform
from typing import Dict, Optional, Sequence

import psutil

from jetty_server_manager.error import (
    AppFileNotFoundError,
    FileOperationError,
    MissingArgumentError,
    PermissionsError,
    ServerStartError,
    ServerStopError,
    UserInputError,
)

logger = logging.getLogger(__name__)


def get_pid_file_path(servers_dir: str, server_name: str) -> str:
    """Constructs the full path of a server's PID file.

    Args:
        servers_dir: The directory server configuration files are kept in.
        server_name: The name of the server.

    Raises:
        AppFileNotFoundError: If `servers_dir` is not a valid directory.
        MissingArgumentError: If `server_name` is empty.
    """
    if not servers_dir or not os.path.isdir(servers_dir):
        raise AppFileNotFoundError(servers_dir, "Servers directory")
    if not server_name:
        raise MissingArgumentError("Server name cannot be empty.")
    return os.path.join(servers_dir, f"{server_name}.pid")


def read_pid_from_file(pid_file_path: str) -> Optional[int]:
    """Reads and validates a PID from a specified file.

    Args:
        pid_file_path: The path to the PID file.

    Returns:
        The PID as an integer, or `None` if the PID file does not exist.

    Raises:
        FileOperationError: If the file exists but is empty, unreadable, or
            contains non-integer content.
    """
    if not os.path.isfile(pid_file_path):
        logger.debug(f"PID file '{pid_file_path}' not found.")
        return None

    try:
        with open(pid_file_path, "r") as f:
            pid_str = f.read().strip()
    except OSError as e:
        raise FileOperationError(
            f"Error reading PID file '{pid_file_path}': {e}"
        ) from e

    if not pid_str:
        raise FileOperationError(f"PID file '{pid_file_path}' is empty.")
    try:
        pid = int(pid_str)
    except ValueError:
        raise FileOperationError(
            f"Invalid content in PID file '{pid_file_path}'. Expected an integer, got '{pid_str}'."
        ) from None
    logger.debug(f"Found PID {pid} in file '{pid_file_path}'.")
    return pid


def write_pid_to_file(pid_file_path: str, pid: int):
    """Writes a process ID to the specified file, overwriting existing content.

    Raises:
        FileOperationError: If an `OSError` occurs during file writing.
    """
    try:
        with open(pid_file_path, "w") as f:
            f.write(str(pid))
        logger.info(f"Saved PID {pid} to '{pid_file_path}'.")
    except OSError as e:
        raise FileOperationError(
            f"Failed to write PID {pid} to file '{pid_file_path}': {e}"
        ) from e


def remove_pid_file_if_exists(pid_file_path: str) -> bool:
    """Removes the specified PID file if it exists.

    Returns:
        True if the file was removed or did not exist. False if removal failed
        due to an `OSError`.
    """
    if os.path.exists(pid_file_path):
        try:
            os.remove(pid_file_path)
            logger.info(f"Removed PID file '{pid_file_path}'.")
            return True
        except OSError as e:
            logger.warning(f"Could not remove PID file '{pid_file_path}': {e}")
            return False
    return True


def is_process_running(pid: int) -> bool:
    """Checks if a process with the given PID is currently running."""
    if not psutil.pid_exists(pid):
        return False
    try:
        return psutil.Process(pid).status() != psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return False
    except psutil.AccessDenied:
        # The process exists; we just can't inspect it.
        return True


def _detach_kwargs() -> Dict[str, object]:
    if platform.system() == "Windows":
        # Prevents the new process from opening a console window.
        return {"creationflags": subprocess.CREATE_NO_WINDOW}
    # Ensures the child process does not terminate when the parent does.
    return {"start_new_session": True, "close_fds": True}


def launch_detached_process(
    command: Sequence[str],
    env: Dict[str, str],
    cwd: Optional[str],
    pid_file_path: str,
) -> int:
    """Launches a command as a detached background process and records its PID.

    Args:
        command: The command and its arguments.
        env: The complete environment for the child process.
        cwd: The working directory, or `None` for the current one.
        pid_file_path: The path to write the new process's PID to.

    Returns:
        The PID of the newly launched process.

    Raises:
        UserInputError: If the command is empty.
        ServerStartError: If the executable is missing or cannot be started.
    """
    if not command or not command[0]:
        raise UserInputError("Command list and executable cannot be empty.")

    logger.info(f"Executing detached command: {' '.join(command)}")
    try:
        process = subprocess.Popen(
            list(command),
            env=env,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            **_detach_kwargs(),
        )
    except FileNotFoundError:
        raise ServerStartError(f"Launcher not found: {command[0]}") from None
    except OSError as e:
        raise ServerStartError(f"OS error starting detached process: {e}") from e

    pid = process.pid
    logger.info(f"Successfully started process with PID: {pid}")
    write_pid_to_file(pid_file_path, pid)
    return pid


def run_command(
    command: Sequence[str],
    env: Dict[str, str],
    cwd: Optional[str],
    timeout: Optional[float],
) -> int:
    """Runs a command to completion and returns its exit code.

    Raises:
        UserInputError: If the command is empty.
        ServerStopError: If the command cannot be started or times out.
    """
    if not command or not command[0]:
        raise UserInputError("Command list and executable cannot be empty.")

    logger.info(f"Executing command: {' '.join(command)}")
    try:
        completed = subprocess.run(
            list(command),
            env=env,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        raise ServerStopError(
            f"Command '{command[0]}' did not finish within {timeout}s."
        ) from None
    except OSError as e:
        raise ServerStopError(f"Failed to run '{command[0]}': {e}") from e

    if completed.returncode != 0:
        logger.warning(
            f"Command '{command[0]}' exited with code {completed.returncode}: "
            f"{(completed.stderr or '').strip()}"
        )
    return completed.returncode


def wait_for_exit(pid: int, timeout: float) -> bool:
    """Waits up to `timeout` seconds for `pid` to exit. Returns True if it did."""
    try:
        psutil.Process(pid).wait(timeout=timeout)
    except psutil.NoSuchProcess:
        return True
    except psutil.TimeoutExpired:
        return False
    return True


def terminate_process_by_pid(
    pid: int, terminate_timeout: int = 5, kill_timeout: int = 2
):
    """Gracefully terminates, then forcefully kills, a process by its PID.

    This function first sends a SIGTERM signal and waits for the process to
    exit. If it doesn't exit within the timeout, it sends a SIGKILL signal.

    Args:
        pid: The PID of the process to terminate.
        terminate_timeout: Seconds to wait for graceful termination (SIGTERM).
        kill_timeout: Seconds to wait after sending the forceful kill (SIGKILL).

    Raises:
        PermissionsError: If access is denied to terminate the process.
        ServerStopError: For other `psutil` or unexpected errors during termination.
    """
    try:
        process = psutil.Process(pid)
        logger.info(f"Attempting graceful termination (SIGTERM) for PID {pid}...")
        process.terminate()
        try:
            process.wait(timeout=terminate_timeout)
            logger.info(f"Process {pid} terminated gracefully.")
            return
        except psutil.TimeoutExpired:
            logger.warning(
                f"Process {pid} did not terminate gracefully within {terminate_timeout}s. Attempting kill (SIGKILL)..."
            )
            process.kill()
            process.wait(timeout=kill_timeout)
            logger.info(f"Process {pid} forcefully killed.")
            return
    except psutil.NoSuchProcess:
        # This is not an error; the process is already gone.
        logger.warning(
            f"Process with PID {pid} was already stopped during termination attempt."
        )
    except psutil.AccessDenied:
        raise PermissionsError(
            f"Permission denied trying to terminate process with PID {pid}."
        )
    except psutil.Error as e:
        raise ServerStopError(
            f"Unexpected error terminating process PID {pid}: {e}"
        ) from e
