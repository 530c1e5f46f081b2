"""
Device domain module
"""
from .models import DeviceStatus
from .prober import probe_device, parse_status, ensure_unzip, render_status_script

__all__ = [
    "DeviceStatus",
    "probe_device",
    "parse_status",
    "ensure_unzip",
    "render_status_script",
]
