"""
SDK catalog CLI commands
"""
import asyncio
import typer

from rich.markup import escape
from rich.table import Table

from ...core.exceptions import PiDebugError
from ...core.logging import get_logger, get_stdout_console
from ...domain.sdk.checker import check_catalog, verify_checksums
from ...domain.sdk.models import SdkDescriptor
from .common import catalog_registry, fail, get_settings
from .prompts import RichPromptProvider

logger = get_logger(__name__)
stdout_console = get_stdout_console()
prompt_provider = RichPromptProvider()


def register_catalog_app(app: typer.Typer) -> None:
    """Register catalog subcommand app"""
    catalog_app = typer.Typer(
        name="catalog",
        help="Inspect and verify the .NET SDK catalog",
        add_completion=False,
        no_args_is_help=True,
    )

    catalog_app.command(name="list")(catalog_list)
    catalog_app.command(name="check")(catalog_check)

    app.add_typer(catalog_app, name="catalog")


def catalog_list(
    ctx: typer.Context,
    installable: bool = typer.Option(False, "--installable", "-i", help="Only entries that can be installed"),
    refresh: bool = typer.Option(False, "--refresh", "-r", help="Fetch the configured catalog feed first"),
):
    """List catalog SDKs"""
    registry = catalog_registry(get_settings(ctx))
    try:
        catalog = asyncio.run(registry.refresh()) if refresh else registry.catalog()
    except PiDebugError as e:
        fail(str(e))

    if installable:
        catalog = catalog.good()

    table = Table(title=f"SDK catalog ({escape(registry.source or 'unknown')})", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="cyan")
    table.add_column("Architecture", style="green")
    table.add_column("Standalone")
    table.add_column("SHA-512", style="dim")
    table.add_column("Installable", style="magenta")

    for item in sorted(catalog, key=lambda sdk: (sdk.sort_key, sdk.architecture.value)):
        table.add_row(
            item.name,
            item.architecture.value,
            "yes" if item.standalone else "no",
            item.sha512[:16] + "…" if item.sha512 else "-",
            "yes" if item.installable else "no",
        )

    stdout_console.print(table)


def catalog_check(
    ctx: typer.Context,
    verify: bool = typer.Option(
        False, "--verify",
        help="Download every usable SDK and compute its SHA-512",
    ),
    save: bool = typer.Option(
        False, "--save",
        help="With --verify, write the computed checksums to the user catalog",
    ),
):
    """
    Check catalog consistency

    Examples:
        pidebug catalog check
        pidebug catalog check --verify --save
    """
    registry = catalog_registry(get_settings(ctx))
    try:
        catalog = registry.catalog()
    except PiDebugError as e:
        fail(str(e))

    report = check_catalog(catalog)
    for problem in report.problems:
        prompt_provider.warning(problem)

    if verify:
        def on_item(item: SdkDescriptor, actual: str) -> None:
            stdout_console.print(f"  {item.name}/{item.architecture.value}: [dim]{actual[:16]}…[/dim]")

        stdout_console.print("Downloading SDK archives...")
        updated, verify_report = asyncio.run(verify_checksums(catalog, on_item=on_item))
        for problem in verify_report.problems:
            prompt_provider.warning(problem)

        if save:
            path = registry.save_override(updated)
            prompt_provider.success(f"Saved verified catalog to {path}")

        if not verify_report.ok:
            raise typer.Exit(1)

    if report.ok:
        prompt_provider.success(f"{len(catalog)} catalog entries are consistent")
    elif not (verify and save):
        raise typer.Exit(1)
