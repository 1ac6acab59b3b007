# jetty_server_manager/cli/server.py
"""
Click command group for server lifecycle actions.

Provides commands for configuring a server, previewing the launcher command
and environment, starting, stopping and checking the status of a server.
"""

import logging
from typing import Optional, Tuple

import click
import questionary

from jetty_server_manager.config.server_config import (
    load_server_model,
    save_server_model,
)
from jetty_server_manager.core.lifecycle import ServerLifecycleController
from jetty_server_manager.core.models import LaunchSpec, ServerModel
from jetty_server_manager.core.system import process as core_process
from jetty_server_manager.error import JSMError, StopPortError
from jetty_server_manager.instances import get_settings_instance

logger = logging.getLogger(__name__)


def _get_controller(server_name: str) -> ServerLifecycleController:
    settings = get_settings_instance()
    model = load_server_model(settings.get("paths.servers"), server_name)
    return ServerLifecycleController(
        model,
        install_root=settings.get("paths.plugins"),
        plugin_name=settings.get("launcher.plugin_name"),
        jdk_home=settings.get("jdk.home"),
        chmod_timeout=settings.get("launcher.chmod_timeout"),
    )


def _get_pid_file_path(server_name: str) -> str:
    return core_process.get_pid_file_path(
        get_settings_instance().get("paths.servers"), server_name
    )


def _print_launch_spec(spec: LaunchSpec):
    click.secho("Command:", bold=True)
    click.echo(f"  {' '.join(spec.command)}")
    click.secho("Environment:", bold=True)
    for variable in spec.environment:
        click.echo(f"  {variable.name}={variable.value}")
    for warning in spec.warnings:
        click.secho(f"Warning: {warning}", fg="yellow")


@click.group()
def server():
    """Commands to manage the lifecycle of individual servers."""
    pass


@server.command("configure")
@click.option(
    "-s", "--server", "server_name", required=True, help="Name of the server."
)
@click.option("--home", "home_directory", help="Jetty home directory.")
@click.option("--scratch", "scratch_directory", help="Scratch directory.")
@click.option(
    "-c",
    "--config-file",
    "config_files",
    multiple=True,
    help="Jetty XML config file. Use multiple times; order is preserved.",
)
@click.option("--stop-port", type=int, default=0, show_default=True)
@click.option("--stop-key", default="", help="Shared secret for the stop port.")
def configure_server(
    server_name: str,
    home_directory: Optional[str],
    scratch_directory: Optional[str],
    config_files: Tuple[str, ...],
    stop_port: int,
    stop_key: str,
):
    """Writes the configuration of a server.

    If --home is not given, prompts for every value interactively.
    """
    try:
        if not home_directory:
            home_directory, scratch_directory, config_files, stop_port, stop_key = (
                _interactive_configure()
            )
        model = ServerModel(
            name=server_name,
            home_directory=home_directory,
            scratch_directory=scratch_directory,
            active_config_file_paths=tuple(config_files),
            stop_port=stop_port,
            stop_key=stop_key,
        )
        path = save_server_model(get_settings_instance().get("paths.servers"), model)
        click.secho(f"Configuration for '{server_name}' saved to {path}.", fg="green")
    except JSMError as e:
        click.secho(f"Failed to configure server: {e}", fg="red")
        raise click.Abort()


def _interactive_configure():
    click.secho("--- Jetty Server Configuration ---", bold=True)
    home_directory = questionary.path("Jetty home directory:", only_directories=True).ask()
    if not home_directory:
        raise click.Abort()
    scratch_directory = questionary.path(
        "Scratch directory for generated files:", only_directories=True
    ).ask()
    if not scratch_directory:
        raise click.Abort()

    config_files = []
    while True:
        config_file = questionary.path(
            "Jetty config file (leave empty to finish):"
        ).ask()
        if not config_file:
            break
        config_files.append(config_file)

    stop_port_text = questionary.text(
        "Stop port (0 disables the stop-port protocol):", default="0"
    ).ask()
    try:
        stop_port = int(stop_port_text or 0)
    except ValueError:
        raise StopPortError(stop_port_text) from None
    stop_key = ""
    if stop_port:
        stop_key = questionary.password("Stop key:").ask() or ""
    return home_directory, scratch_directory, tuple(config_files), stop_port, stop_key


@server.command("command")
@click.argument("action", type=click.Choice(["start", "stop"], case_sensitive=False))
@click.option(
    "-s", "--server", "server_name", required=True, help="Name of the server."
)
def show_command(action: str, server_name: str):
    """Prints the launcher command and environment without running it.

    This is a dry run. Previewing the stop command does not consume the
    stored stop port.
    """
    try:
        controller = _get_controller(server_name)
        if action.lower() == "start":
            spec = controller.build_start_command()
        else:
            spec = controller.build_stop_command()
        _print_launch_spec(spec)
    except JSMError as e:
        click.secho(f"Failed to build {action} command: {e}", fg="red")
        raise click.Abort()


@server.command("start")
@click.option(
    "-s", "--server", "server_name", required=True, help="Name of the server to start."
)
def start_server(server_name: str):
    """Starts a server in the background."""
    click.echo(f"Attempting to start server '{server_name}'...")
    try:
        controller = _get_controller(server_name)
        pid = controller.start(_get_pid_file_path(server_name))
        click.secho(f"Server '{server_name}' started (PID: {pid}).", fg="green")
    except JSMError as e:
        click.secho(f"Failed to start server: {e}", fg="red")
        raise click.Abort()


@server.command("stop")
@click.option(
    "-s", "--server", "server_name", required=True, help="Name of the server to stop."
)
@click.option("--port", "stop_port", type=int, help="Override the stop port.")
@click.option("--key", "stop_key", help="Override the stop key.")
def stop_server(server_name: str, stop_port: Optional[int], stop_key: Optional[str]):
    """Stops a server, using the stop port when one is configured.

    A stored stop port is used once. After its stop command has been sent the
    server's configuration is saved with the port cleared, and it must be
    configured again before the next stop request. A --port override is
    never saved.
    """
    click.echo(f"Attempting to stop server '{server_name}'...")
    try:
        controller = _get_controller(server_name)
        if stop_port is not None:
            controller.arm_stop_port(stop_port, stop_key)
        stored_port = controller.model.stop_port if stop_port is None else 0
        try:
            controller.stop(
                _get_pid_file_path(server_name),
                timeout=get_settings_instance().get("server.stop_timeout"),
            )
        finally:
            if stored_port and controller.model.stop_port == 0:
                save_server_model(
                    get_settings_instance().get("paths.servers"), controller.model
                )
                logger.info(f"Cleared stored stop port of server '{server_name}'.")
        click.secho(f"Server '{server_name}' stopped.", fg="green")
    except JSMError as e:
        click.secho(f"Failed to stop server: {e}", fg="red")
        raise click.Abort()


@server.command("status")
@click.option(
    "-s", "--server", "server_name", required=True, help="Name of the server."
)
def server_status(server_name: str):
    """Reports whether a server's recorded process is running."""
    try:
        controller = _get_controller(server_name)
        if controller.is_running(_get_pid_file_path(server_name)):
            click.secho(f"Server '{server_name}' is RUNNING.", fg="green")
        else:
            click.secho(f"Server '{server_name}' is STOPPED.", fg="yellow")
    except JSMError as e:
        click.secho(f"Failed to get server status: {e}", fg="red")
        raise click.Abort()
