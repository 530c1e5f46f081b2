"""
Connection domain models
"""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

from ...core.constants import DEFAULT_PASSWORD, DEFAULT_SSH_PORT, DEFAULT_USER


@dataclass
class ConnectionDescriptor:
    """
    Network details and credentials for one Raspberry Pi.

    Created and persisted by the caller; passed into ``connect()`` by
    value. Key provisioning may fill in ``private_key_path`` and
    ``public_key_path``, which the session reports back for persistence.
    """
    host: str
    user: str = DEFAULT_USER
    port: int = DEFAULT_SSH_PORT
    password: Optional[str] = DEFAULT_PASSWORD
    private_key_path: Optional[str] = None
    public_key_path: Optional[str] = None
    display_name: Optional[str] = None
    is_default: bool = False

    @property
    def name(self) -> str:
        """Connection identity, ``user@host`` unless a display name was given"""
        return self.display_name or f"{self.user}@{self.host}"

    @property
    def sort_key(self) -> str:
        return self.name.lower()

    @property
    def authentication(self) -> str:
        return "SSH KEY" if self.private_key_path else "PASSWORD"

    def copy(self) -> "ConnectionDescriptor":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "private_key_path": self.private_key_path,
            "public_key_path": self.public_key_path,
            "display_name": self.display_name,
            "is_default": self.is_default,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConnectionDescriptor":
        """Create from dictionary"""
        return cls(
            host=data["host"],
            user=data.get("user", DEFAULT_USER),
            port=int(data.get("port", DEFAULT_SSH_PORT)),
            password=data.get("password"),
            private_key_path=data.get("private_key_path"),
            public_key_path=data.get("public_key_path"),
            display_name=data.get("display_name"),
            is_default=bool(data.get("is_default", False)),
        )


@dataclass
class Credentials:
    """Resolved SSH credentials; exactly one of password / private_key is used"""
    username: str
    password: Optional[str] = field(default=None, repr=False)
    private_key: Optional[str] = field(default=None, repr=False)

    @property
    def method(self) -> str:
        return "key" if self.private_key else "password"
