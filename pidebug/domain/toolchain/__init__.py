"""
Toolchain domain module
"""
from .models import InstallState, InstallResult
from .installer import ToolchainInstaller, render_sdk_script, render_debugger_script

__all__ = [
    "InstallState",
    "InstallResult",
    "ToolchainInstaller",
    "render_sdk_script",
    "render_debugger_script",
]
