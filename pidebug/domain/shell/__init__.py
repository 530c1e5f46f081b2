"""
Remote shell domain module
"""
from .models import CommandResult, ScriptBundle, RetryPolicy
from .script import ScriptTemplate, Quoted, quoted, validate_identifier, is_safe_identifier
from .executor import RemoteShell

__all__ = [
    "CommandResult",
    "ScriptBundle",
    "RetryPolicy",
    "ScriptTemplate",
    "Quoted",
    "quoted",
    "validate_identifier",
    "is_safe_identifier",
    "RemoteShell",
]
