"""
Device domain models
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List

from ...core.constants import SUPPORTED_MODEL_PREFIXES
from ..sdk.models import Architecture, SdkDescriptor


@dataclass
class DeviceStatus:
    """
    Snapshot of a device taken once per session by the status probe.

    Only ``add_sdk`` and ``mark_debugger_installed`` change it afterwards,
    after the corresponding install succeeded.
    """
    processor: str
    architecture: Architecture
    path: str
    has_unzip: bool
    has_debugger: bool
    installed_sdks: List[SdkDescriptor] = field(default_factory=list)
    model: str = ""
    revision: str = ""

    def has_sdk(self, requested: str) -> bool:
        return any(sdk.matches(requested) for sdk in self.installed_sdks)

    def add_sdk(self, sdk: SdkDescriptor) -> None:
        if not any(item.name == sdk.name and item.architecture == sdk.architecture for item in self.installed_sdks):
            self.installed_sdks.append(sdk)

    def mark_debugger_installed(self) -> None:
        self.has_debugger = True

    @property
    def is_supported_model(self) -> bool:
        return any(self.model.startswith(prefix) for prefix in SUPPORTED_MODEL_PREFIXES)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "processor": self.processor,
            "architecture": self.architecture.value,
            "path": self.path,
            "has_unzip": self.has_unzip,
            "has_debugger": self.has_debugger,
            "installed_sdks": [sdk.name for sdk in self.installed_sdks],
            "model": self.model,
            "revision": self.revision,
        }
