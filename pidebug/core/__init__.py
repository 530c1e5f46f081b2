"""
Core infrastructure layer
"""
from .client import RemoteClient
from .constants import *
from .exceptions import *
from .logging import setup_logging, get_logger, get_host_logger, get_stdout_console, get_stderr_console
from .interfaces import CommandResult, Transport
from .utils import is_ipv4_address, local_key_comment, version_key

__all__ = [
    "RemoteClient",
    "CommandResult",
    "Transport",
    "setup_logging",
    "get_logger",
    "get_host_logger",
    "get_stdout_console",
    "get_stderr_console",
    "is_ipv4_address",
    "local_key_comment",
    "version_key",
]
