"""
Shared CLI plumbing: settings, registries and session opening
"""
import asyncio
from typing import Awaitable, Callable, NoReturn, Optional, TypeVar

import typer
from rich.markup import escape

from ...core.exceptions import PiDebugError
from ...core.logging import get_logger, get_stderr_console
from ...domain.connection.models import ConnectionDescriptor
from ...domain.sdk.catalog import SdkCatalogRegistry
from ...domain.session import Session, connect
from ...infrastructure.state.connection_store import ConnectionStore
from ...infrastructure.state.keystore import KeyStore
from ...infrastructure.state.project_store import ProjectSettings, ProjectSettingsStore
from ..config.loader import Settings

logger = get_logger(__name__)
stderr_console = get_stderr_console()

T = TypeVar("T")


def get_settings(ctx: typer.Context) -> Settings:
    """Settings loaded by the app callback, defaults when run standalone"""
    settings = ctx.find_object(Settings)
    return settings if settings is not None else Settings()


def connection_store(settings: Settings) -> ConnectionStore:
    return ConnectionStore(settings.connections_path)


def project_store(settings: Settings) -> ProjectSettingsStore:
    return ProjectSettingsStore(settings.projects_path)


def load_project(settings: Settings, project_id: str) -> ProjectSettings:
    """Settings of a project that has remote debugging enabled"""
    try:
        project = project_store(settings).get(project_id)
    except PiDebugError as e:
        fail(str(e))
    if not project.enable_remote_debugging:
        fail(f"Remote debugging is not enabled for project [{project_id}]; run: pidebug project set {project_id} --enable")
    return project


def catalog_registry(settings: Settings) -> SdkCatalogRegistry:
    return SdkCatalogRegistry(
        override_path=settings.catalog_override_path,
        feed_uri=settings.catalog_feed,
        timeout=settings.catalog_timeout,
    )


def fail(message: str) -> NoReturn:
    """Print an error and exit 1"""
    stderr_console.print(f"[red]Error:[/red] {escape(message)}")
    raise typer.Exit(1)


def find_connection(settings: Settings, name: Optional[str]) -> ConnectionDescriptor:
    """Named connection, or the default one when no name is given"""
    descriptor = connection_store(settings).resolve(name)
    if descriptor is None:
        fail(f"Connection [{name or 'default'}] not found")
    return descriptor


async def open_session(settings: Settings, descriptor: ConnectionDescriptor) -> Session:
    """Connect using the configured catalog, keystore and connection store"""
    registry = catalog_registry(settings)
    catalog = await registry.refresh() if settings.catalog_feed else registry.catalog()
    return await connect(
        descriptor,
        catalog=catalog,
        keystore=KeyStore(settings.keys_dir),
        connection_store=connection_store(settings),
        timeout=settings.connect_timeout,
    )


def run_with_session(
    ctx: typer.Context,
    name: Optional[str],
    action: Callable[[Session], Awaitable[T]],
) -> T:
    """
    Open a session, run an action against it and close it.

    PiDebugError subclasses end the command with exit code 1.
    """
    settings = get_settings(ctx)

    async def runner(descriptor: ConnectionDescriptor) -> T:
        async with await open_session(settings, descriptor) as session:
            return await action(session)

    try:
        return asyncio.run(runner(find_connection(settings, name)))
    except PiDebugError as e:
        logger.debug("Command failed", exc_info=True)
        fail(str(e))
