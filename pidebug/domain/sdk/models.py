"""
SDK domain models
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from ...core.constants import BITNESS_32_MARKERS, BITNESS_64_MARKERS
from ...core.utils import version_key


class Architecture(str, Enum):
    """Device / SDK processor architecture"""
    ARM32 = "arm32"
    ARM64 = "arm64"
    UNKNOWN = "unknown"

    @classmethod
    def from_uname(cls, machine: str) -> "Architecture":
        """
        Map ``uname -m`` output (e.g. ``armv7l``, ``aarch64``) to a bitness.
        """
        token = (machine or "").strip().lower()
        if any(token.startswith(marker) for marker in BITNESS_64_MARKERS):
            return cls.ARM64
        if any(token.startswith(marker) for marker in BITNESS_32_MARKERS):
            return cls.ARM32
        return cls.UNKNOWN

    @classmethod
    def parse(cls, value: str) -> "Architecture":
        normalized = (value or "").strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        return cls.UNKNOWN


@dataclass(frozen=True)
class SdkDescriptor:
    """
    One installable .NET SDK artifact.

    Attributes:
        name: SDK name as it appears under ``$DOTNET_ROOT/sdk`` (e.g. ``6.0.103``)
        version: Semantic version string used for ordering
        architecture: Target architecture
        link: Download URI of the ``.tar.gz`` archive
        sha512: Expected SHA-512 of the archive (hex)
        standalone: Standalone SDK rather than one bundled with an IDE
        unusable: Known-bad entry, never offered for installation
    """
    name: str
    version: str
    architecture: Architecture
    link: str = ""
    sha512: str = ""
    standalone: bool = True
    unusable: bool = False

    @property
    def sort_key(self):
        return version_key(self.version)

    @property
    def installable(self) -> bool:
        return not self.unusable and bool(self.link) and bool(self.sha512)

    def matches(self, requested: str) -> bool:
        """
        True when the request names this SDK exactly (``6.0.100``), by
        version, or by major.minor family (``6.0``).
        """
        requested = requested.strip()
        if not requested:
            return False
        if requested in (self.name, self.version):
            return True
        return self.name.startswith(requested + ".")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "name": self.name,
            "version": self.version,
            "architecture": self.architecture.value,
            "link": self.link,
            "sha512": self.sha512,
            "standalone": self.standalone,
            "unusable": self.unusable,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SdkDescriptor":
        """Create from dictionary"""
        name = data["name"]
        return cls(
            name=name,
            version=data.get("version") or name,
            architecture=Architecture.parse(data.get("architecture", "")),
            link=data.get("link", ""),
            sha512=(data.get("sha512") or "").lower(),
            standalone=bool(data.get("standalone", True)),
            unusable=bool(data.get("unusable", False)),
        )
