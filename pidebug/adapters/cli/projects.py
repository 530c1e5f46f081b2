"""
Per-project debugging settings CLI commands
"""
import typer
from typing import Optional

from rich.markup import escape
from rich.table import Table

from ...core.exceptions import PiDebugError
from ...core.logging import get_stdout_console
from ...domain.shell.script import validate_identifier
from .common import fail, get_settings, project_store
from .prompts import RichPromptProvider

stdout_console = get_stdout_console()
prompt_provider = RichPromptProvider()


def register_project_app(app: typer.Typer) -> None:
    """Register project subcommand app"""
    project_app = typer.Typer(
        name="project",
        help="Per-project remote debugging settings",
        add_completion=False,
        no_args_is_help=True,
    )

    project_app.command(name="show")(project_show)
    project_app.command(name="set")(project_set)
    project_app.command(name="remove")(project_remove)

    app.add_typer(project_app, name="project")


def project_show(
    ctx: typer.Context,
    project_id: str = typer.Argument(..., help="Project id"),
):
    """Show a project's settings"""
    try:
        project = project_store(get_settings(ctx)).get(project_id)
    except PiDebugError as e:
        fail(str(e))

    table = Table(title=f"Project: {escape(project_id)}", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Remote debugging", "enabled" if project.enable_remote_debugging else "disabled")
    table.add_row("Connection", escape(project.remote_debug_target or "default"))
    table.add_row("Group", escape(project.target_group))
    table.add_row("Web server", project.web_server.value)
    stdout_console.print(table)


def project_set(
    ctx: typer.Context,
    project_id: str = typer.Argument(..., help="Project id"),
    enable: Optional[bool] = typer.Option(None, "--enable/--disable", help="Deploy this project to a device"),
    target: Optional[str] = typer.Option(None, "--target", help="Connection name, or 'default'"),
    group: Optional[str] = typer.Option(None, "--group", "-g", help="Group given ownership of uploads"),
    reverse_proxy: Optional[bool] = typer.Option(
        None, "--reverse-proxy/--kestrel",
        help="Web app listens behind a reverse proxy",
    ),
):
    """
    Change a project's settings; options not given keep their value

    Examples:
        pidebug project set blinky --enable --target lab-pi --group gpio
        pidebug project set webapp --reverse-proxy
    """
    store = project_store(get_settings(ctx))
    try:
        project = store.get(project_id)
        if group is not None:
            validate_identifier("group", group)
            project.target_group = group
        if enable is not None:
            project.enable_remote_debugging = enable
        if target is not None:
            project.remote_debug_target = target
        if reverse_proxy is not None:
            project.use_reverse_proxy = reverse_proxy
        store.set(project_id, project)
    except PiDebugError as e:
        fail(str(e))

    prompt_provider.success(f"Saved settings for project [{project_id}]")


def project_remove(
    ctx: typer.Context,
    project_id: str = typer.Argument(..., help="Project id"),
):
    """Forget a project's settings"""
    try:
        removed = project_store(get_settings(ctx)).remove(project_id)
    except PiDebugError as e:
        fail(str(e))

    if not removed:
        fail(f"Project [{project_id}] has no saved settings")
    prompt_provider.success(f"Removed settings for project [{project_id}]")
