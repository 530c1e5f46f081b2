"""
Connection management CLI commands
"""
import typer
from typing import Optional

from rich.table import Table
from rich.markup import escape

from ...core.constants import DEFAULT_SSH_PORT, DEFAULT_USER
from ...core.exceptions import PiDebugError
from ...core.logging import get_logger, get_stdout_console
from ...domain.connection.models import ConnectionDescriptor
from ...infrastructure.state.keystore import KeyStore
from .common import connection_store, fail, get_settings
from .prompts import RichPromptProvider

logger = get_logger(__name__)
stdout_console = get_stdout_console()
prompt_provider = RichPromptProvider()


def register_connections_app(app: typer.Typer) -> None:
    """Register connections subcommand app"""
    connections_app = typer.Typer(
        name="connections",
        help="Manage Raspberry Pi connections",
        add_completion=False,
        no_args_is_help=True,
    )

    connections_app.command(name="list")(connections_list)
    connections_app.command(name="add")(connections_add)
    connections_app.command(name="remove")(connections_remove)
    connections_app.command(name="set-default")(connections_set_default)

    app.add_typer(connections_app, name="connections")


def connections_list(ctx: typer.Context):
    """List saved connections"""
    try:
        connections = connection_store(get_settings(ctx)).list()
    except PiDebugError as e:
        fail(str(e))

    if not connections:
        stdout_console.print("[yellow]No connections configured[/yellow]")
        return

    table = Table(title="Connections", show_header=True, header_style="bold cyan")
    table.add_column("Default", style="green")
    table.add_column("Name", style="cyan")
    table.add_column("Host")
    table.add_column("Port", style="yellow")
    table.add_column("User")
    table.add_column("Authentication", style="magenta")

    for item in connections:
        table.add_row(
            "*" if item.is_default else "",
            escape(item.name),
            escape(item.host),
            str(item.port),
            escape(item.user),
            item.authentication,
        )

    stdout_console.print(table)


def connections_add(
    ctx: typer.Context,
    host: str = typer.Argument(..., help="Host name or IPv4 address"),
    user: str = typer.Option(DEFAULT_USER, "--user", "-u", help="SSH user"),
    port: int = typer.Option(DEFAULT_SSH_PORT, "--port", "-p", help="SSH port"),
    password: Optional[str] = typer.Option(
        None, "--password",
        help="SSH password (prompted when neither --password nor --key is given)",
    ),
    key: Optional[str] = typer.Option(None, "--key", "-k", help="Private key file"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Display name (default: user@host)"),
    default: bool = typer.Option(False, "--default", help="Make this the default connection"),
):
    """
    Add a connection

    Examples:
        pidebug connections add raspberrypi.local
        pidebug connections add 10.0.0.7 --user pi --name lab-pi --default
    """
    if password is None and key is None:
        password = prompt_provider.ask_password("Enter SSH password")

    descriptor = ConnectionDescriptor(
        host=host,
        user=user,
        port=port,
        password=password,
        private_key_path=key,
        public_key_path=f"{key}.pub" if key else None,
        display_name=name,
        is_default=default,
    )

    try:
        connection_store(get_settings(ctx)).add(descriptor)
    except PiDebugError as e:
        fail(str(e))

    prompt_provider.success(f"Added connection [{descriptor.name}]")


def connections_remove(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Connection name"),
    keep_keys: bool = typer.Option(False, "--keep-keys", help="Keep the connection's SSH key files"),
):
    """Remove a connection and its provisioned keys"""
    settings = get_settings(ctx)
    try:
        removed = connection_store(settings).remove(name)
    except PiDebugError as e:
        fail(str(e))

    if not removed:
        fail(f"Connection [{name}] not found")

    if not keep_keys:
        KeyStore(settings.keys_dir).delete(name)
    prompt_provider.success(f"Removed connection [{name}]")


def connections_set_default(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Connection name"),
):
    """Make a connection the default"""
    try:
        connection_store(get_settings(ctx)).set_default(name)
    except PiDebugError as e:
        fail(str(e))

    prompt_provider.success(f"[{name}] is now the default connection")
