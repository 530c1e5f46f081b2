"""
Connection domain module
"""
from .models import ConnectionDescriptor, Credentials
from .credentials import resolve_credentials, has_usable_key

__all__ = [
    "ConnectionDescriptor",
    "Credentials",
    "resolve_credentials",
    "has_usable_key",
]
