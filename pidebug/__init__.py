"""
pidebug - Raspberry Pi remote provisioning for .NET debugging

Opens SSH sessions to Raspberry Pis and keeps them ready for remote
debugging:
- Credential selection with password to SSH key provisioning
- One-shot device status probe (architecture, SDKs, debugger, board)
- Idempotent .NET SDK and debugger installation
- Program upload into a clean remote folder
- Web app readiness polling
"""

__version__ = "0.1.0"

# Export core components
from .core import (
    RemoteClient,
    CommandResult,
    Transport,
)

# Export domain models
from .domain.connection import (
    ConnectionDescriptor,
    Credentials,
    resolve_credentials,
)

from .domain.device import DeviceStatus

from .domain.sdk import (
    Architecture,
    SdkDescriptor,
    SdkCatalog,
    SdkCatalogRegistry,
)

from .domain.session import Session, connect

from .infrastructure.state import (
    ConnectionStore,
    KeyStore,
    ProjectSettings,
    ProjectSettingsStore,
)

__all__ = [
    # Version
    "__version__",
    # Transport
    "RemoteClient",
    "CommandResult",
    "Transport",
    # Connections
    "ConnectionDescriptor",
    "Credentials",
    "resolve_credentials",
    # Device
    "DeviceStatus",
    # SDK catalog
    "Architecture",
    "SdkDescriptor",
    "SdkCatalog",
    "SdkCatalogRegistry",
    # Session
    "Session",
    "connect",
    # Local state
    "ConnectionStore",
    "KeyStore",
    "ProjectSettings",
    "ProjectSettingsStore",
]
