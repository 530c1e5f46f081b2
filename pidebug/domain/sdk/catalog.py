"""
SDK catalog and registry
"""
import json
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

import httpx

from ...core.constants import BUNDLED_CATALOG_RESOURCE, DEFAULT_CATALOG_TIMEOUT, VERIFY_CATALOG_COMMAND
from ...core.exceptions import CatalogUnavailableError, SdkNotFoundError
from ...core.logging import get_logger
from .models import Architecture, SdkDescriptor

logger = get_logger(__name__)


class SdkCatalog:
    """Ordered collection of SDK descriptors"""

    def __init__(self, items: Iterable[SdkDescriptor] = ()):
        self.items: List[SdkDescriptor] = list(items)

    def __iter__(self) -> Iterator[SdkDescriptor]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def good(self) -> "SdkCatalog":
        """View without known-bad or incomplete entries"""
        return SdkCatalog(item for item in self.items if item.installable)

    def find(self, name: str, architecture: Architecture) -> Optional[SdkDescriptor]:
        """Exact lookup by SDK directory name and architecture"""
        for item in self.items:
            if item.name == name and item.architecture == architecture:
                return item
        return None

    def select(self, requested: str, architecture: Architecture) -> SdkDescriptor:
        """
        Pick the best installable SDK for a requested version.

        Standalone entries win over bundled ones, then the highest
        version.

        Args:
            requested: Full SDK name (``6.0.100``) or family (``6.0``)
            architecture: Device architecture

        Returns:
            SdkDescriptor

        Raises:
            SdkNotFoundError: No usable entry matches
        """
        candidates = [
            item for item in self.items
            if item.installable and item.architecture == architecture and item.matches(requested)
        ]
        if not candidates:
            unverified = [
                item for item in self.items
                if not item.unusable and not item.sha512
                and item.architecture == architecture and item.matches(requested)
            ]
            if unverified:
                raise SdkNotFoundError(
                    f".NET SDK [{requested}] for [{architecture.value}] has no SHA-512 checksum yet; "
                    f"run: {VERIFY_CATALOG_COMMAND}"
                )
            raise SdkNotFoundError(
                f"no installable .NET SDK [{requested}] for [{architecture.value}] in the catalog"
            )
        return max(candidates, key=lambda item: (item.standalone, item.sort_key))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {"items": [item.to_dict() for item in self.items]}

    @classmethod
    def from_dict(cls, data: Any) -> "SdkCatalog":
        """Create from a ``{"items": [...]}`` document or a bare list"""
        items = data.get("items", []) if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise ValueError("catalog items must be a list")
        return cls(SdkDescriptor.from_dict(item) for item in items)

    @classmethod
    def from_json(cls, text: str) -> "SdkCatalog":
        return cls.from_dict(json.loads(text))


def read_bundled_catalog() -> SdkCatalog:
    """Catalog shipped inside the package"""
    text = resources.files("pidebug.data").joinpath(BUNDLED_CATALOG_RESOURCE).read_text(encoding="utf-8")
    return SdkCatalog.from_json(text)


class SdkCatalogRegistry:
    """
    Caller-owned SDK catalog cache.

    Sources, in order of preference: the remote feed (only after an
    explicit ``refresh()``), the user override file, the bundled copy.
    """

    def __init__(
        self,
        override_path: Optional[Path] = None,
        feed_uri: Optional[str] = None,
        timeout: float = DEFAULT_CATALOG_TIMEOUT,
        bundled_loader=read_bundled_catalog,
    ):
        self.override_path = Path(override_path).expanduser() if override_path else None
        self.feed_uri = feed_uri
        self.timeout = timeout
        self._bundled_loader = bundled_loader
        self._catalog: Optional[SdkCatalog] = None
        self.source: Optional[str] = None

    def catalog(self) -> SdkCatalog:
        """Full catalog, loading it on first use"""
        if self._catalog is None:
            self._catalog = self._load_local()
        return self._catalog

    def good_catalog(self) -> SdkCatalog:
        """Catalog without unusable entries"""
        return self.catalog().good()

    def invalidate(self) -> None:
        """Drop the cached catalog; the next access reloads it"""
        self._catalog = None
        self.source = None

    async def refresh(self) -> SdkCatalog:
        """
        Reload the catalog from the remote feed.

        Any failure (network error, timeout, bad document, empty list)
        falls back to the local sources.
        """
        self.invalidate()
        if self.feed_uri:
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(self.feed_uri)
                    response.raise_for_status()
                    catalog = SdkCatalog.from_dict(response.json())
            except (httpx.HTTPError, ValueError, KeyError) as e:
                logger.warning("SDK catalog feed unavailable (%s), using local catalog", e)
            else:
                if len(catalog):
                    logger.info("Loaded %d SDKs from %s", len(catalog), self.feed_uri)
                    self._catalog = catalog
                    self.source = self.feed_uri
                    return catalog
                logger.warning("SDK catalog feed returned no entries, using local catalog")
        return self.catalog()

    def _load_local(self) -> SdkCatalog:
        if self.override_path and self.override_path.exists():
            try:
                catalog = SdkCatalog.from_json(self.override_path.read_text(encoding="utf-8"))
            except (OSError, ValueError, KeyError) as e:
                logger.warning("Ignoring unreadable SDK catalog %s: %s", self.override_path, e)
            else:
                if len(catalog):
                    self.source = str(self.override_path)
                    return catalog

        try:
            catalog = self._bundled_loader()
        except (OSError, ValueError, KeyError) as e:
            raise CatalogUnavailableError(f"bundled SDK catalog cannot be read: {e}") from e
        self.source = "bundled"
        return catalog

    def save_override(self, catalog: SdkCatalog) -> Path:
        """Write a catalog to the override path and make it current"""
        if self.override_path is None:
            raise CatalogUnavailableError("no catalog override path configured")
        self.override_path.parent.mkdir(parents=True, exist_ok=True)
        self.override_path.write_text(json.dumps(catalog.to_dict(), indent=2), encoding="utf-8")
        self._catalog = catalog
        self.source = str(self.override_path)
        return self.override_path
