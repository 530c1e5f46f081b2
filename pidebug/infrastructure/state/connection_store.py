"""
Connection list storage
"""
import json
from pathlib import Path
from typing import List, Optional

from ...core.constants import CONNECTIONS_FILE_NAME, DEFAULT_CONNECTION_TARGET, DEFAULT_SETTINGS_DIR
from ...core.exceptions import StoreError
from ...core.logging import get_logger
from ...domain.connection.models import ConnectionDescriptor

logger = get_logger(__name__)


def enforce_default(connections: List[ConnectionDescriptor]) -> List[ConnectionDescriptor]:
    """
    Make exactly one entry of a non-empty list the default.

    When no entry is flagged the alphabetically first one (by name,
    case-insensitive) is chosen; when several are flagged the first
    flagged one wins.
    """
    if not connections:
        return connections

    flagged = [item for item in connections if item.is_default]
    if flagged:
        chosen = flagged[0]
    else:
        chosen = min(connections, key=lambda item: item.sort_key)

    for item in connections:
        item.is_default = item is chosen
    return connections


class ConnectionStore:
    """
    JSON array of connection records.

    Every mutation reads, changes and rewrites the whole file; concurrent
    writers are last-writer-wins.
    """

    def __init__(self, path: Optional[Path] = None):
        if path is None:
            path = Path(DEFAULT_SETTINGS_DIR).expanduser() / CONNECTIONS_FILE_NAME

        self.path = Path(path).expanduser()

    # ============================================================
    # Whole-file access
    # ============================================================

    def load(self) -> List[ConnectionDescriptor]:
        """
        Read all connections.

        Raises:
            StoreError: File is not a JSON array of connection records
        """
        if not self.path.exists():
            return []

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StoreError(f"Cannot read connections from {self.path}: {e}") from e
        if not isinstance(data, list):
            raise StoreError(f"Connections file {self.path} must contain a JSON array")

        try:
            connections = [ConnectionDescriptor.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Invalid connection record in {self.path}: {e}") from e

        return enforce_default(connections)

    def save(self, connections: List[ConnectionDescriptor]) -> None:
        """Rewrite the file with the given connections"""
        enforce_default(connections)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps([item.to_dict() for item in connections], indent=2),
            encoding="utf-8",
        )
        logger.debug("Saved %d connections to %s", len(connections), self.path)

    # ============================================================
    # Operations
    # ============================================================

    def list(self) -> List[ConnectionDescriptor]:
        """All connections sorted by name"""
        return sorted(self.load(), key=lambda item: item.sort_key)

    def get(self, name: str) -> Optional[ConnectionDescriptor]:
        for item in self.load():
            if item.name == name:
                return item
        return None

    def get_default(self) -> Optional[ConnectionDescriptor]:
        for item in self.load():
            if item.is_default:
                return item
        return None

    def resolve(self, target: Optional[str]) -> Optional[ConnectionDescriptor]:
        """Look up a connection by name; ``None`` or ``"default"`` means the default one"""
        if not target or target == DEFAULT_CONNECTION_TARGET:
            return self.get_default()
        return self.get(target)

    def add(self, descriptor: ConnectionDescriptor) -> None:
        """
        Raises:
            StoreError: A connection with the same name exists
        """
        connections = self.load()
        if any(item.name == descriptor.name for item in connections):
            raise StoreError(f"Connection [{descriptor.name}] already exists")
        if descriptor.is_default:
            for item in connections:
                item.is_default = False
        connections.append(descriptor)
        self.save(connections)

    def update(self, name: str, descriptor: ConnectionDescriptor) -> None:
        """
        Replace a connection, keeping its default flag.

        Raises:
            StoreError: No connection with that name
        """
        connections = self.load()
        for index, item in enumerate(connections):
            if item.name == name:
                descriptor.is_default = item.is_default
                connections[index] = descriptor
                self.save(connections)
                return
        raise StoreError(f"Connection [{name}] not found")

    def remove(self, name: str) -> bool:
        connections = self.load()
        remaining = [item for item in connections if item.name != name]
        if len(remaining) == len(connections):
            return False
        self.save(remaining)
        return True

    def set_default(self, name: str) -> None:
        """
        Raises:
            StoreError: No connection with that name
        """
        connections = self.load()
        if not any(item.name == name for item in connections):
            raise StoreError(f"Connection [{name}] not found")
        for item in connections:
            item.is_default = item.name == name
        self.save(connections)
