"""
Core interfaces for dependency injection
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class CommandResult:
    """Result of a remote command"""
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def all_text(self) -> str:
        """stdout followed by stderr, for diagnostics"""
        parts = [text.strip() for text in (self.stdout, self.stderr) if text and text.strip()]
        return "\n".join(parts)


class Transport(ABC):
    """
    Capability interface over one live SSH connection.

    Sessions hold a transport rather than inheriting from a concrete
    SSH client, so tests can substitute an in-memory implementation.
    """

    host: str
    username: str

    @abstractmethod
    def run(self, command: str) -> CommandResult:
        """Run a command as the connected user"""
        pass

    @abstractmethod
    def run_elevated(self, command: str) -> CommandResult:
        """Run a command through sudo"""
        pass

    @abstractmethod
    def upload(self, remote_path: str, data: bytes, mode: int = 0o644) -> None:
        """Write bytes to a remote file"""
        pass

    @abstractmethod
    def download(self, remote_path: str) -> bytes:
        """Read a remote file"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the connection"""
        pass
