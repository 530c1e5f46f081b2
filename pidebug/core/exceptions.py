"""
Unified exception definitions
"""
from typing import Optional


def _host_message(host: Optional[str], message: Optional[str]) -> str:
    return f"[{host or '????'}]: {message or 'unspecified error'}"


class PiDebugError(Exception):
    """Base exception class"""
    pass


# ============================================================
# Configuration
# ============================================================

class ConfigError(PiDebugError):
    """Configuration error"""
    pass


class AuthConfigError(ConfigError):
    """Neither a password nor a private key is available to authenticate"""
    pass


class KeyReadError(ConfigError):
    """Private key file is missing or unreadable"""

    def __init__(self, path: str, reason: str = "cannot read private key"):
        self.path = path
        super().__init__(f"{reason}: {path}")


class StoreError(ConfigError):
    """A settings file on disk cannot be parsed"""
    pass


# ============================================================
# Connection
# ============================================================

class ConnectionError(PiDebugError):
    """Connection error carrying the offending host"""

    def __init__(self, host: Optional[str], cause: object = None):
        self.host = host
        self.cause = cause
        super().__init__(_host_message(host, str(cause) if cause is not None else None))


class DnsResolutionError(ConnectionError):
    """Host name cannot be resolved"""

    def __init__(self, host: str):
        super().__init__(host, "DNS lookup failed.")


class AuthenticationError(ConnectionError):
    """Credentials rejected by the remote SSH server"""
    pass


class RemoteCommandError(PiDebugError):
    """A required remote step exited with a nonzero code"""

    def __init__(self, hostname: Optional[str], stderr: str, exit_code: int = 1):
        self.hostname = hostname
        self.stderr = stderr
        self.exit_code = exit_code
        super().__init__(_host_message(hostname, stderr.strip() or f"exit code {exit_code}"))


# ============================================================
# Toolchain
# ============================================================

class ToolchainError(PiDebugError):
    """SDK or debugger installation error"""
    pass


class ChecksumMismatchError(ToolchainError):
    """Downloaded SDK archive failed SHA-512 verification"""
    pass


class SdkNotFoundError(ToolchainError):
    """No catalog entry matches the requested SDK"""
    pass


class CatalogUnavailableError(ToolchainError):
    """No SDK catalog could be loaded"""
    pass


# ============================================================
# Scripts and uploads
# ============================================================

class InvalidNameError(PiDebugError, ValueError):
    """Name is unsafe for unquoted shell interpolation"""

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"{field} contains characters unsafe for shell scripts: {value!r}")


class ScriptTemplateError(PiDebugError, ValueError):
    """Script template placeholder error"""
    pass
