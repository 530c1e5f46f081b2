"""
SDK catalog consistency checks and checksum verification
"""
import hashlib
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Tuple

import httpx

from ...core.logging import get_logger
from .catalog import SdkCatalog
from .models import Architecture, SdkDescriptor

logger = get_logger(__name__)


@dataclass
class CheckReport:
    """Problems found in a catalog"""
    problems: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems

    def add(self, message: str) -> None:
        self.problems.append(message)


def check_catalog(catalog: SdkCatalog) -> CheckReport:
    """
    Static checks over catalog entries.

    - no two entries share a download link
    - no name/architecture pair appears twice
    - every link contains the SDK name
    - 32-bit entries don't point at arm64 archives and vice versa
    - usable entries carry a SHA-512
    """
    report = CheckReport()
    links: Dict[str, SdkDescriptor] = {}
    keys: Dict[Tuple[str, Architecture], SdkDescriptor] = {}

    for item in catalog:
        label = f"{item.name}/{item.architecture.value}"

        if item.link in links:
            existing = links[item.link]
            report.add(f"SDK [{existing.name}/{existing.architecture.value}] and [{label}] have the same link: [{item.link}]")
        else:
            links[item.link] = item

        key = (item.name, item.architecture)
        if key in keys:
            report.add(f"SDK [{label}] is listed multiple times")
            continue
        keys[key] = item

        if item.name not in item.link:
            report.add(f"SDK [{label}] link does not include the SDK name")
        if item.architecture == Architecture.ARM32 and "arm64" in item.link:
            report.add(f"SDK [{label}] is 32-bit but links a 64-bit archive")
        if item.architecture == Architecture.ARM64 and "arm32" in item.link:
            report.add(f"SDK [{label}] is 64-bit but links a 32-bit archive")
        if item.architecture == Architecture.UNKNOWN:
            report.add(f"SDK [{label}] has an unknown architecture")
        if not item.unusable and not item.sha512:
            report.add(f"SDK [{label}] has no SHA-512")

    return report


async def compute_sha512(client: httpx.AsyncClient, url: str) -> str:
    """Stream a download and hash it"""
    digest = hashlib.sha512()
    async with client.stream("GET", url, follow_redirects=True) as response:
        response.raise_for_status()
        async for chunk in response.aiter_bytes():
            digest.update(chunk)
    return digest.hexdigest()


async def verify_checksums(
    catalog: SdkCatalog,
    client: Optional[httpx.AsyncClient] = None,
    on_item: Optional[Callable[[SdkDescriptor, str], None]] = None,
) -> Tuple[SdkCatalog, CheckReport]:
    """
    Download every non-unusable entry and compare its SHA-512.

    Returns:
        (catalog with recomputed checksums, report of mismatches and download errors)
    """
    report = CheckReport()
    updated: List[SdkDescriptor] = []
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=httpx.Timeout(30.0, read=300.0))

    try:
        for item in catalog:
            if item.unusable or not item.link:
                updated.append(item)
                continue
            try:
                actual = await compute_sha512(client, item.link)
            except httpx.HTTPError as e:
                report.add(f"SDK [{item.name}/{item.architecture.value}] download failed: {e}")
                updated.append(item)
                continue

            if on_item:
                on_item(item, actual)
            if item.sha512 and item.sha512 != actual:
                report.add(f"SDK [{item.name}/{item.architecture.value}] SHA-512 mismatch")
            updated.append(replace(item, sha512=actual))
    finally:
        if owns_client:
            await client.aclose()

    return SdkCatalog(updated), report
