"""
Program upload domain module
"""
from .uploader import upload_program, build_archive, render_upload_script

__all__ = [
    "upload_program",
    "build_archive",
    "render_upload_script",
]
