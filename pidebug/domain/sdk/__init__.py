"""
SDK catalog domain module
"""
from .models import Architecture, SdkDescriptor
from .catalog import SdkCatalog, SdkCatalogRegistry, read_bundled_catalog
from .checker import CheckReport, check_catalog, verify_checksums

__all__ = [
    "Architecture",
    "SdkDescriptor",
    "SdkCatalog",
    "SdkCatalogRegistry",
    "read_bundled_catalog",
    "CheckReport",
    "check_catalog",
    "verify_checksums",
]
