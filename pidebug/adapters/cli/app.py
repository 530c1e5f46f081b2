"""
Main CLI application
"""
import typer
from pathlib import Path
from typing import Optional

from rich.markup import escape

from ...core.exceptions import ConfigError
from ...core.logging import setup_logging, get_logger, get_stderr_console
from ..config.loader import ConfigLoader
from .catalog import register_catalog_app
from .connections import register_connections_app
from .device import register_device_commands
from .projects import register_project_app

logger = get_logger(__name__)
stderr_console = get_stderr_console()

# Create main app
app = typer.Typer(
    name="pidebug",
    add_completion=False,
    help="Raspberry Pi .NET provisioning and deployment tool",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

register_connections_app(app)
register_catalog_app(app)
register_device_commands(app)
register_project_app(app)


@app.callback()
def main(
    ctx: typer.Context,
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Log file path",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file path (TOML)",
    ),
    settings_dir: Optional[Path] = typer.Option(
        None,
        "--settings-dir",
        help="Directory holding connections, keys and the user SDK catalog",
    ),
):
    """
    pidebug - prepare Raspberry Pis for remote .NET debugging

    Use subcommands to perform different operations:
    - connections: Manage saved devices
    - status: Probe a device
    - install-sdk / install-debugger: Install the toolchain
    - upload: Deploy a published program
    - wait-ready: Wait for a web app port
    - project: Per-project upload and readiness defaults
    - catalog: Inspect the SDK catalog
    """
    try:
        settings = ConfigLoader().load_settings(
            toml_path=config_file,
            cli_overrides={"log_level": log_level, "settings_dir": settings_dir},
        )
    except (ConfigError, FileNotFoundError) as e:
        stderr_console.print(f"[red]Config Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    setup_logging(level=settings.log_level, log_file=log_file)
    ctx.obj = settings


def run():
    """CLI entry point"""
    app()


if __name__ == "__main__":
    run()
