"""
Local SSH key storage
"""
import os
import re
from pathlib import Path
from typing import Optional, Tuple

from ...core.constants import DEFAULT_SETTINGS_DIR, KEYS_DIR_NAME

_UNSAFE_FILE_CHARS = re.compile(r"[^A-Za-z0-9._@-]")


class KeyStore:
    """
    Per-connection key files.

    Layout:
    - {keys_dir}/{name}     - private key (0600)
    - {keys_dir}/{name}.pub - public key
    """

    def __init__(self, keys_dir: Optional[Path] = None):
        if keys_dir is None:
            keys_dir = Path(DEFAULT_SETTINGS_DIR).expanduser() / KEYS_DIR_NAME

        self.keys_dir = Path(keys_dir).expanduser()

    @staticmethod
    def file_name(connection_name: str) -> str:
        """Connection name made safe for use as a file name"""
        return _UNSAFE_FILE_CHARS.sub("_", connection_name)

    def paths(self, connection_name: str) -> Tuple[Path, Path]:
        """(private key path, public key path)"""
        private = self.keys_dir / self.file_name(connection_name)
        return private, private.with_name(private.name + ".pub")

    def save(self, connection_name: str, private_key: bytes, public_key: bytes) -> Tuple[Path, Path]:
        """Write a key pair, replacing any previous one for the connection"""
        self.keys_dir.mkdir(parents=True, exist_ok=True)
        private_path, public_path = self.paths(connection_name)

        fd = os.open(private_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "wb") as f:
            f.write(private_key)
        private_path.chmod(0o600)

        public_path.write_bytes(public_key)
        public_path.chmod(0o644)

        return private_path, public_path

    def delete(self, connection_name: str) -> None:
        for path in self.paths(connection_name):
            if path.exists():
                path.unlink()
