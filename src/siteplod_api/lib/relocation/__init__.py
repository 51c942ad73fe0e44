"""Relocation library: store package entries at external hosts.

Public API:
    - AssetRelocator: Binary entries to the image host, text entries to the text host
    - build_relocator: Construct a relocator from settings and a shared HTTP client
    - BaseAssetHost / ImgBBHost / PastebinHost: Host implementations
    - CredentialPool / rotate_keys: Key rotation
    - to_raw_url: Paste view URL -> raw URL
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from siteplod_api.lib.errors import RelocationError, RelocationErrorKind
from siteplod_api.lib.relocation.base import BaseAssetHost, classify_response, classify_transport_error
from siteplod_api.lib.relocation.credentials import CredentialPool, exhausted_error, rotate_keys
from siteplod_api.lib.relocation.image_host import ImgBBHost
from siteplod_api.lib.relocation.text_host import PastebinHost, to_raw_url

if TYPE_CHECKING:
    import httpx

    from siteplod_api.core.config import Settings
    from siteplod_api.lib.packaging.types import PackageEntry


class AssetRelocator:
    """Routes package entries to the host that stores their kind of content."""

    def __init__(self, image_host: BaseAssetHost, text_host: BaseAssetHost) -> None:
        self.image_host = image_host
        self.text_host = text_host

    async def relocate_binary(self, entry: PackageEntry) -> str:
        """Upload an image or font and return its direct URL."""
        return await self.image_host.upload(entry.path, entry.content)

    async def relocate_text(self, entry: PackageEntry, content: str | None = None) -> str:
        """Upload a text entry and return its raw-content URL.

        Args:
            entry: The entry being stored.
            content: Rewritten text to store instead of the entry's own bytes.
        """
        data = entry.content if content is None else content.encode("utf-8")
        return await self.text_host.upload(entry.path, data)


def build_relocator(settings: Settings, client: httpx.AsyncClient) -> AssetRelocator:
    """Build both hosts from settings around one shared HTTP client.

    Args:
        settings: Application settings with credential pools and endpoints.
        client: HTTP client owned by the caller (app lifespan or CLI command).

    Returns:
        A ready AssetRelocator. Hosts with an empty pool fail on first use.
    """
    image_host = ImgBBHost(
        client,
        CredentialPool.from_keys("imgbb", settings.imgbb_api_key_list),
        endpoint=settings.imgbb_api_url,
        timeout=settings.imgbb_timeout,
    )
    text_host = PastebinHost(
        client,
        CredentialPool.from_keys("pastebin", settings.pastebin_api_key_list),
        endpoint=settings.pastebin_api_url,
        host=settings.pastebin_host,
        timeout=settings.pastebin_timeout,
    )
    return AssetRelocator(image_host, text_host)


__all__ = [
    "AssetRelocator",
    "BaseAssetHost",
    "CredentialPool",
    "ImgBBHost",
    "PastebinHost",
    "RelocationError",
    "RelocationErrorKind",
    "build_relocator",
    "classify_response",
    "classify_transport_error",
    "exhausted_error",
    "rotate_keys",
    "to_raw_url",
]
