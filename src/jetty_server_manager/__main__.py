# jetty_server_manager/__main__.py
"""
Main entry point for the Jetty Server Manager command-line interface.

This module is responsible for setting up the application environment (logging,
settings), assembling all `click` commands and groups, and launching the
requested command.
"""

import logging
import sys

import click

from . import __version__
from .cli import server
from .config import app_name_title
from .instances import get_settings_instance
from .logging import log_separator, setup_logging


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.version_option(
    __version__, "-v", "--version", message=f"{app_name_title} %(version)s"
)
@click.pass_context
def cli(ctx: click.Context):
    """A CLI for launching and stopping Jetty application servers.

    Servers are described by small JSON files (see `jsm server configure`).
    The tool resolves the platform launcher script, the environment it needs
    (JAVA_HOME, JETTY_HOME, JETTY_OPTS) and runs it to start or stop a server.
    """
    try:
        settings = get_settings_instance()
        logger = setup_logging(
            log_dir=settings.get("paths.logs"),
            log_keep=settings.get("retention.logs"),
            file_log_level=settings.get("logging.file_level"),
            cli_log_level=settings.get("logging.cli_level"),
            force_reconfigure=True,
        )
        log_separator(logger, app_name=app_name_title, app_version=__version__)
        logger.info(f"Starting {app_name_title} v{__version__} (CLI context)...")
    except Exception as setup_e:
        logging.getLogger("jsm_critical_setup").critical(
            f"An unrecoverable error occurred during CLI application startup: {setup_e}",
            exc_info=True,
        )
        click.secho(f"CRITICAL STARTUP ERROR: {setup_e}", fg="red", bold=True)
        sys.exit(1)

    ctx.obj = {"cli": cli}


cli.add_command(server.server)


def main():
    """Main execution function wrapped for final, fatal exception handling."""
    try:
        cli()
    except Exception as e:
        logging.getLogger("jsm_fatal").critical(
            f"A fatal, unhandled error occurred: {e}", exc_info=True
        )
        click.secho(
            f"\nFATAL UNHANDLED ERROR: {type(e).__name__}: {e}", fg="red", bold=True
        )
        click.secho("Please check the logs for more details.", fg="yellow")
        sys.exit(1)


if __name__ == "__main__":
    main()
