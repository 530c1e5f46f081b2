"""
Device CLI commands: status, toolchain installs, uploads, readiness
"""
import typer
from pathlib import Path
from typing import Optional

from rich.markup import escape
from rich.table import Table

from ...core.constants import VERIFY_CATALOG_COMMAND
from ...core.logging import get_logger, get_stdout_console
from ...domain.readiness import WebServer
from ...domain.session import Session
from ...infrastructure.state.project_store import ProjectSettings
from .common import fail, get_settings, load_project, run_with_session
from .prompts import RichPromptProvider

logger = get_logger(__name__)
stdout_console = get_stdout_console()
prompt_provider = RichPromptProvider()

CONNECTION_HELP = "Connection name (default: the default connection)"
PROJECT_HELP = "Project id whose saved settings supply the connection and defaults"


def register_device_commands(app: typer.Typer) -> None:
    """Register device commands directly on the main app"""
    app.command(name="status")(device_status)
    app.command(name="install-sdk")(install_sdk)
    app.command(name="install-debugger")(install_debugger)
    app.command(name="upload")(upload)
    app.command(name="wait-ready")(wait_ready)


def _project_connection(project: ProjectSettings) -> Optional[str]:
    return None if project.uses_default_connection else project.remote_debug_target


def _print_status(session: Session) -> None:
    status = session.status
    table = Table(title=f"Device: {escape(session.descriptor.name)}", show_header=True, header_style="bold cyan")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Model", escape(status.model or "unknown"))
    table.add_row("Revision", escape(status.revision or "unknown"))
    table.add_row("Processor", f"{escape(status.processor)} ({status.architecture.value})")
    table.add_row("unzip", "yes" if status.has_unzip else "no")
    table.add_row("Debugger", "yes" if status.has_debugger else "no")
    table.add_row(".NET SDKs", ", ".join(sdk.name for sdk in status.installed_sdks) or "none")
    table.add_row("PATH", escape(status.path))

    stdout_console.print(table)
    if status.model and not status.is_supported_model:
        prompt_provider.warning(f"{status.model} is not a supported Raspberry Pi model")


def device_status(
    ctx: typer.Context,
    connection: Optional[str] = typer.Argument(None, help=CONNECTION_HELP),
):
    """Connect to a device and show what it has installed"""

    async def action(session: Session) -> None:
        _print_status(session)
        if session.keys_changed:
            prompt_provider.success(f"SSH keys provisioned: {session.descriptor.private_key_path}")

    run_with_session(ctx, connection, action)


def install_sdk(
    ctx: typer.Context,
    version: str = typer.Argument(..., help="SDK name (6.0.100) or major.minor (6.0)"),
    connection: Optional[str] = typer.Argument(None, help=CONNECTION_HELP),
):
    """
    Install a .NET SDK on the device

    Examples:
        pidebug install-sdk 6.0
        pidebug install-sdk 8.0.404 lab-pi
    """

    async def action(session: Session) -> bool:
        return await session.install_sdk(version)

    if not run_with_session(ctx, connection, action):
        fail(
            f"Cannot install .NET SDK [{version}]; if the catalog lacks its checksum, run: {VERIFY_CATALOG_COMMAND}"
        )
    prompt_provider.success(f".NET SDK [{version}] is installed")


def install_debugger(
    ctx: typer.Context,
    connection: Optional[str] = typer.Argument(None, help=CONNECTION_HELP),
):
    """Install the remote debugger on the device"""

    async def action(session: Session) -> bool:
        return await session.install_debugger()

    if not run_with_session(ctx, connection, action):
        fail("Cannot install the debugger")
    prompt_provider.success("Debugger is installed")


def upload(
    ctx: typer.Context,
    program: str = typer.Argument(..., help="Program name; becomes ~/vsdbg/<program>"),
    assembly: str = typer.Argument(..., help="Executable file inside the publish folder"),
    folder: Path = typer.Argument(..., help="Local publish folder"),
    connection: Optional[str] = typer.Argument(None, help=CONNECTION_HELP),
    group: Optional[str] = typer.Option(None, "--group", "-g", help="Group given ownership, e.g. gpio"),
    project_id: Optional[str] = typer.Option(None, "--project", help=PROJECT_HELP),
):
    """
    Upload a published program to the device

    Examples:
        pidebug upload blinky blinky ./bin/Release/net8.0/linux-arm64/publish --group gpio
        pidebug upload blinky blinky ./publish --project blinky
    """
    if project_id:
        project = load_project(get_settings(ctx), project_id)
        connection = connection or _project_connection(project)
        group = group or project.target_group

    async def action(session: Session) -> bool:
        return await session.upload_program(program, assembly, folder, target_group=group)

    try:
        uploaded = run_with_session(ctx, connection, action)
    except (ValueError, FileNotFoundError) as e:
        fail(str(e))

    if not uploaded:
        fail(f"Cannot upload [{program}]")
    prompt_provider.success(f"Uploaded [{program}]")


def wait_ready(
    ctx: typer.Context,
    port: int = typer.Argument(..., help="TCP port the web app listens on"),
    connection: Optional[str] = typer.Argument(None, help=CONNECTION_HELP),
    reverse_proxy: bool = typer.Option(
        False, "--reverse-proxy",
        help="App listens on loopback behind a reverse proxy",
    ),
    timeout: float = typer.Option(30.0, "--timeout", "-t", help="Seconds to wait"),
    project_id: Optional[str] = typer.Option(None, "--project", help=PROJECT_HELP),
):
    """Wait until a web app on the device listens on a port"""
    if project_id:
        project = load_project(get_settings(ctx), project_id)
        connection = connection or _project_connection(project)
        reverse_proxy = reverse_proxy or project.use_reverse_proxy
    server = WebServer.REVERSE_PROXY if reverse_proxy else WebServer.KESTREL

    async def action(session: Session):
        return await session.wait_for_listening(port, server=server, timeout=timeout)

    try:
        result = run_with_session(ctx, connection, action)
    except ValueError as e:
        fail(str(e))

    if not result.ready:
        prompt_provider.warning(f"Port {port} is not listening")
        raise typer.Exit(2)
    prompt_provider.success(f"Port {port} is listening")
