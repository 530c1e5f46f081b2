"""
Local state storage
"""
from .keystore import KeyStore
from .connection_store import ConnectionStore, enforce_default
from .project_store import ProjectSettings, ProjectSettingsStore

__all__ = [
    "KeyStore",
    "ConnectionStore",
    "enforce_default",
    "ProjectSettings",
    "ProjectSettingsStore",
]
