"""
Connection session

``connect()`` is the single entry point: it resolves the host, picks
credentials, opens the transport, probes the device once and provisions
SSH keys when the connection has none. The returned Session exposes the
toolchain, upload and readiness operations, each safe to call again.
"""
import asyncio
import socket
from pathlib import Path
from typing import Any, Callable, Optional

from ..core.client import RemoteClient
from ..core.constants import DEFAULT_SSH_TIMEOUT
from ..core.exceptions import (
    AuthenticationError,
    ConfigError,
    ConnectionError,
    DnsResolutionError,
    PiDebugError,
    RemoteCommandError,
)
from ..core.interfaces import Transport
from ..core.logging import get_host_logger
from ..core.utils import is_ipv4_address
from ..infrastructure.state.connection_store import ConnectionStore
from ..infrastructure.state.keystore import KeyStore
from .connection.credentials import has_usable_key, resolve_credentials
from .connection.models import ConnectionDescriptor
from .device.models import DeviceStatus
from .device.prober import probe_device
from .keys.provisioner import ensure_keys, reauthorize_existing_key
from .readiness import ReadinessResult, WebServer, wait_for_listening
from .sdk.catalog import SdkCatalog
from .shell.executor import RemoteShell
from .toolchain.installer import ToolchainInstaller
from .toolchain.models import InstallResult
from .upload.uploader import upload_program

TransportFactory = Callable[..., Transport]


class Session:
    """
    A live connection to one device plus its cached status.

    Not meant for concurrent use; the shell lock keeps commands from
    overlapping if it happens anyway.
    """

    def __init__(
        self,
        descriptor: ConnectionDescriptor,
        transport: Transport,
        shell: RemoteShell,
        status: DeviceStatus,
        catalog: SdkCatalog,
    ):
        self.descriptor = descriptor
        self.transport = transport
        self.shell = shell
        self.status = status
        self.catalog = catalog
        self.logger = shell.logger
        self.keys_changed = False
        self.last_error: Optional[PiDebugError] = None
        self.last_output = ""
        self._installer = ToolchainInstaller(shell, status, catalog, self.logger)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    # ============================================================
    # Toolchain
    # ============================================================

    async def install_sdk(self, requested: str) -> bool:
        """
        Install a .NET SDK (``6.0.100`` or ``6.0``) unless already present.

        Returns:
            True when the SDK is installed; otherwise ``last_error`` tells why
        """
        try:
            result = await self._installer.install_sdk(requested)
        except PiDebugError as e:
            return self._failed(e)
        return self._finished(result)

    async def install_debugger(self) -> bool:
        """Install the remote debugger unless already present"""
        try:
            result = await self._installer.install_debugger()
        except PiDebugError as e:
            return self._failed(e)
        return self._finished(result)

    # ============================================================
    # Programs
    # ============================================================

    async def upload_program(
        self,
        program: str,
        assembly: str,
        folder: Path,
        target_group: Optional[str] = None,
    ) -> bool:
        """
        Replace ``~/vsdbg/<program>`` with the content of a local folder.

        Raises:
            InvalidNameError: Program, assembly or group name is unsafe
            FileNotFoundError: Local folder doesn't exist
        """
        self.last_error = None
        try:
            response = await upload_program(
                self.shell,
                self.descriptor.user,
                program,
                assembly,
                Path(folder),
                self.logger,
                target_group=target_group,
            )
        except ConnectionError as e:
            return self._failed(e)

        self.last_output = response.all_text
        if not response.success:
            self.last_error = RemoteCommandError(self.shell.hostname, response.all_text, response.exit_code)
        return response.success

    async def wait_for_listening(
        self,
        port: int,
        server: WebServer = WebServer.KESTREL,
        **kwargs: Any,
    ) -> ReadinessResult:
        """Poll until a web app listens on a port; see ``readiness.wait_for_listening``"""
        return await wait_for_listening(self.shell, port, server=server, **kwargs)

    # ============================================================
    # Lifecycle
    # ============================================================

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.transport.close()
        self.logger.debug("Connection closed")

    async def __aenter__(self) -> "Session":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def _finished(self, result: InstallResult) -> bool:
        self.last_output = result.output
        self.last_error = result.error
        return result.success

    def _failed(self, error: PiDebugError) -> bool:
        self.logger.error("%s", error)
        self.last_error = error
        return False


# ============================================================
# Connect
# ============================================================

async def resolve_address(host: str, port: int) -> str:
    """
    Resolve a host name to an address; literal IPv4 addresses pass through.

    Raises:
        DnsResolutionError: Lookup failed or returned nothing
    """
    if is_ipv4_address(host):
        return host

    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError) as e:
        raise DnsResolutionError(host) from e
    if not infos:
        raise DnsResolutionError(host)
    return infos[0][4][0]


async def _establish(
    descriptor: ConnectionDescriptor,
    address: str,
    catalog: SdkCatalog,
    keystore: KeyStore,
    transport_factory: TransportFactory,
    timeout: float,
    force_password: bool,
) -> Session:
    logger = get_host_logger(__name__, descriptor.name)

    use_password = force_password or (bool(descriptor.password) and not has_usable_key(descriptor))
    credentials = resolve_credentials(descriptor, force_password=use_password)
    logger.info("Connecting with %s authentication", credentials.method)

    transport = await asyncio.to_thread(
        transport_factory, descriptor.host, address, descriptor.port, credentials, timeout
    )
    try:
        shell = RemoteShell(transport, name=descriptor.name)
        status = await probe_device(shell, catalog, shell.logger)
        session = Session(descriptor, transport, shell, status, catalog)

        if not has_usable_key(descriptor):
            session.keys_changed = await ensure_keys(shell, descriptor, keystore, shell.logger)
    except BaseException:
        transport.close()
        raise

    return session


async def connect(
    descriptor: ConnectionDescriptor,
    catalog: SdkCatalog,
    keystore: Optional[KeyStore] = None,
    connection_store: Optional[ConnectionStore] = None,
    transport_factory: TransportFactory = RemoteClient.open,
    timeout: float = DEFAULT_SSH_TIMEOUT,
    resolver: Callable[[str, int], Any] = resolve_address,
) -> Session:
    """
    Open a session to a device.

    When the device rejects the private key and the connection has a
    password, the connect is retried once with the password and the
    existing local public key is authorized again (no new key pair).

    Args:
        descriptor: Connection to open; copied, the session holds the copy
        catalog: Full SDK catalog used for probing and installs
        keystore: Where provisioned keys are written
        connection_store: When given, provisioned key paths are saved to it
        transport_factory: ``(host, address, port, credentials, timeout) -> Transport``
        timeout: SSH connect timeout in seconds
        resolver: Async host name resolver

    Returns:
        Session

    Raises:
        ConfigError: No usable credential or unreadable key
        DnsResolutionError: Host cannot be resolved
        AuthenticationError: Credentials rejected
        ConnectionError: Any other connect, probe or provisioning failure
    """
    descriptor = descriptor.copy()
    original_name = descriptor.name
    keystore = keystore or KeyStore()
    logger = get_host_logger(__name__, descriptor.name)

    address = await resolver(descriptor.host, descriptor.port)

    try:
        try:
            session = await _establish(
                descriptor, address, catalog, keystore, transport_factory, timeout, force_password=False
            )
        except AuthenticationError:
            if not (descriptor.private_key_path and descriptor.password and has_usable_key(descriptor)):
                raise
            logger.warning("SSH key rejected, retrying with password")
            session = await _establish(
                descriptor, address, catalog, keystore, transport_factory, timeout, force_password=True
            )
            try:
                await reauthorize_existing_key(session.shell, descriptor, session.logger)
            except BaseException:
                session.close()
                raise
    except (ConnectionError, ConfigError):
        raise
    except PiDebugError as e:
        raise ConnectionError(descriptor.host, e) from e

    if session.keys_changed and connection_store is not None:
        try:
            connection_store.update(original_name, descriptor)
        except PiDebugError as e:
            logger.warning("Cannot save SSH key paths: %s", e)

    logger.info("Connected")
    return session
