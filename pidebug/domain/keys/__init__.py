"""
Key provisioning domain module
"""
from .provisioner import (
    ensure_keys,
    authorize_public_key,
    reauthorize_existing_key,
    read_public_key,
)

__all__ = [
    "ensure_keys",
    "authorize_public_key",
    "reauthorize_existing_key",
    "read_public_key",
]
