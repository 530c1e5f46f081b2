"""
Toolchain domain models
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ...core.constants import STAGE_MARKER
from ...core.exceptions import PiDebugError


class InstallState(str, Enum):
    """Per-artifact install progress, reported by the install scripts"""
    MISSING = "missing"
    DOWNLOADING = "downloading"
    VERIFYING = "verifying"
    UNPACKING = "unpacking"
    INSTALLED = "installed"

    @classmethod
    def from_output(cls, output: str) -> "InstallState":
        """Last stage marker printed by a script, MISSING if none"""
        state = cls.MISSING
        for line in output.splitlines():
            line = line.strip()
            if not line.startswith(STAGE_MARKER):
                continue
            value = line[len(STAGE_MARKER):].strip()
            for member in cls:
                if member.value == value:
                    state = member
        return state


@dataclass
class InstallResult:
    """
    Outcome of one install attempt.

    Attributes:
        artifact: What was installed (SDK name or ``debugger``)
        state: Last state reached
        skipped: Already installed, no remote command was issued
        output: Combined stdout/stderr of the install script
        error: Typed failure (checksum mismatch, remote error) when the install failed
    """
    artifact: str
    state: InstallState
    skipped: bool = False
    output: str = ""
    error: Optional[PiDebugError] = None

    @property
    def success(self) -> bool:
        return self.state == InstallState.INSTALLED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "artifact": self.artifact,
            "state": self.state.value,
            "skipped": self.skipped,
            "error": str(self.error) if self.error else None,
        }
