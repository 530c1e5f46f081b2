"""
Credential resolution
"""
from pathlib import Path

from ...core.exceptions import AuthConfigError, KeyReadError
from .models import ConnectionDescriptor, Credentials


def resolve_credentials(descriptor: ConnectionDescriptor, force_password: bool = False) -> Credentials:
    """
    Decide how to authenticate against the device.

    Password credentials are used when ``force_password`` is set or no
    private key path is configured; otherwise the private key file is
    read. No side effects.

    Args:
        descriptor: Connection descriptor
        force_password: Ignore the private key and use the password

    Returns:
        Credentials

    Raises:
        AuthConfigError: Password authentication required but no password set
        KeyReadError: Private key file missing or unreadable
    """
    if force_password or not descriptor.private_key_path:
        if not descriptor.password:
            raise AuthConfigError(
                f"[{descriptor.name}]: no password or private key configured"
            )
        return Credentials(username=descriptor.user, password=descriptor.password)

    key_path = Path(descriptor.private_key_path).expanduser()
    if not key_path.is_file():
        raise KeyReadError(str(key_path), "private key not found")
    try:
        key_text = key_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise KeyReadError(str(key_path)) from e
    if not key_text.strip():
        raise KeyReadError(str(key_path), "private key is empty")

    return Credentials(username=descriptor.user, private_key=key_text)


def has_usable_key(descriptor: ConnectionDescriptor) -> bool:
    """True when the descriptor points at an existing private key file"""
    if not descriptor.private_key_path:
        return False
    return Path(descriptor.private_key_path).expanduser().is_file()
