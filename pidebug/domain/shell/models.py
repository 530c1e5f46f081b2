"""
Shell domain models
"""
from dataclasses import dataclass, field
from typing import Dict

from ...core.constants import RETRY_ATTEMPTS, RETRY_BACKOFF
from ...core.interfaces import CommandResult


@dataclass
class ScriptBundle:
    """
    A multi-line script plus attached files.

    The script runs from a fresh remote temp directory holding the
    attachments, so it refers to them by bare file name.
    """
    script: str
    files: Dict[str, bytes] = field(default_factory=dict)

    def add_file(self, name: str, data: bytes) -> None:
        self.files[name] = data


@dataclass
class RetryPolicy:
    """Fixed-backoff retry, repeated only while the exit code is nonzero"""
    attempts: int = RETRY_ATTEMPTS
    backoff: float = RETRY_BACKOFF


__all__ = ["CommandResult", "ScriptBundle", "RetryPolicy"]
