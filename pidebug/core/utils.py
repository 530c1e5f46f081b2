"""
Core utility functions
"""
import getpass
import ipaddress
import platform
import re
from typing import Tuple

_VERSION_PATTERN = re.compile(r"^(\d+(?:\.\d+)*)(?:-(.+))?$")


# ============================================================
# Network
# ============================================================

def is_ipv4_address(host: str) -> bool:
    """Check if host is a literal IPv4 address (no DNS lookup required)"""
    try:
        return isinstance(ipaddress.ip_address(host), ipaddress.IPv4Address)
    except ValueError:
        return False


# ============================================================
# Workstation Identity
# ============================================================

def local_key_comment() -> str:
    """
    Comment embedded in generated SSH keys.

    Returns:
        ``{localUser}@{localMachine}``
    """
    try:
        user = getpass.getuser()
    except (KeyError, OSError):
        user = "user"
    machine = platform.node() or "workstation"
    return f"{user}@{machine}"


# ============================================================
# Versions
# ============================================================

def version_key(version: str) -> Tuple:
    """
    Sort key for SDK versions like ``6.0.100`` or ``7.0.100-rc.1``.

    Release versions sort above their prereleases; unparseable
    versions sort below everything.
    """
    match = _VERSION_PATTERN.match(version.strip()) if version else None
    if not match:
        return ((), 0, version or "")
    numbers = tuple(int(part) for part in match.group(1).split("."))
    prerelease = match.group(2)
    return (numbers, 0 if prerelease else 1, prerelease or "")
