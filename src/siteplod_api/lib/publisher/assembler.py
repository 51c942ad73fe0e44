"""Publication assembly: validate, relocate, rewrite and build the manifest.

A publish run is all-or-nothing. Any rejection or relocation failure
aborts the run before a manifest exists; assets already stored at a
provider during the aborted run are left there.
"""

import asyncio
import time
from collections.abc import Sequence

from loguru import logger

from siteplod_api.lib.errors import RelocationError, RelocationErrorKind
from siteplod_api.lib.packaging.types import AssetCategory, PackageEntry, UploadKind
from siteplod_api.lib.packaging.validators import image_reference_aliases, validate
from siteplod_api.lib.publisher.rewriter import rewrite_references
from siteplod_api.lib.publisher.types import (
    ManifestEntry,
    PublishedManifest,
    SupplementaryImageResult,
    SupplementaryUploadResult,
)
from siteplod_api.lib.relocation import AssetRelocator

DEFAULT_CONCURRENCY = 4


def _rewrite(text: str, asset_map: dict[str, str]) -> str:
    # References such as "my photo.png" point at entries stored as "my_photo.png"
    return rewrite_references(text, {**asset_map, **image_reference_aliases(text, asset_map)})


async def _relocate_binaries(
    binaries: Sequence[PackageEntry],
    relocator: AssetRelocator,
    concurrency: int,
) -> dict[str, str]:
    """Relocate binaries concurrently; return the asset map in entry order."""
    semaphore = asyncio.Semaphore(concurrency)

    async def _one(entry: PackageEntry) -> str:
        async with semaphore:
            return await relocator.relocate_binary(entry)

    tasks = [asyncio.create_task(_one(entry)) for entry in binaries]
    try:
        urls = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    asset_map: dict[str, str] = {}
    for entry, url in zip(binaries, urls, strict=True):
        if entry.path in asset_map:
            logger.warning("Ignoring second relocation of {}", entry.path)
            continue
        asset_map[entry.path] = url
    return asset_map


async def assemble(
    entries: Sequence[PackageEntry],
    relocator: AssetRelocator,
    *,
    kind: UploadKind,
    max_total_bytes: int | None = None,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> PublishedManifest:
    """Publish a package and return its manifest.

    Order of work:
        1. validate the package;
        2. relocate every image/font, building the asset map;
        3. rewrite stylesheets against the map, then relocate stylesheets
           and scripts;
        4. rewrite documents against the map, then relocate them.

    References from documents to sibling stylesheets and scripts are left
    relative; they resolve against the site's base path when served.

    Args:
        entries: Extracted package entries.
        relocator: Relocation engine.
        kind: Declared upload kind.
        max_total_bytes: Aggregate size ceiling re-checked after extraction.
        concurrency: Maximum binary relocations in flight.

    Returns:
        Manifest with binaries first, then stylesheets/scripts, then documents,
        each group in package order.

    Raises:
        Rejection: If validation fails.
        RelocationError: If any entry cannot be relocated.
    """
    start = time.monotonic()
    validate(entries, kind=kind, max_total_bytes=max_total_bytes)

    binaries = [e for e in entries if not e.is_text]
    assets = [e for e in entries if e.category in (AssetCategory.STYLESHEET, AssetCategory.SCRIPT)]
    documents = [e for e in entries if e.category == AssetCategory.DOCUMENT]

    asset_map = await _relocate_binaries(binaries, relocator, concurrency)
    manifest: list[ManifestEntry] = [
        ManifestEntry(path=e.path, hosted_url=asset_map[e.path], media_type=e.media_type, size=e.size)
        for e in binaries
    ]

    for entry in assets:
        if entry.category == AssetCategory.STYLESHEET:
            content = _rewrite(entry.text(), asset_map)
            url = await relocator.relocate_text(entry, content)
            size = len(content.encode("utf-8"))
        else:
            url = await relocator.relocate_text(entry)
            size = entry.size
        manifest.append(ManifestEntry(path=entry.path, hosted_url=url, media_type=entry.media_type, size=size))

    for entry in documents:
        content = _rewrite(entry.text(), asset_map)
        url = await relocator.relocate_text(entry, content)
        manifest.append(
            ManifestEntry(
                path=entry.path,
                hosted_url=url,
                media_type=entry.media_type,
                size=len(content.encode("utf-8")),
            )
        )

    result = PublishedManifest(entries=tuple(manifest))
    if result.index_entry() is None:
        logger.warning("Published package has no index.html; the site root will 404")
    logger.info(
        "Assembled manifest: {} binaries, {} stylesheets/scripts, {} documents in {:.2f}s",
        len(binaries),
        len(assets),
        len(documents),
        time.monotonic() - start,
    )
    return result


async def relocate_supplementary_images(
    images: Sequence[PackageEntry],
    relocator: AssetRelocator,
) -> SupplementaryUploadResult:
    """Relocate a batch of images independently of any publish run.

    Each image succeeds or fails on its own.

    Raises:
        RelocationError: Only when every image failed.
    """
    result = SupplementaryUploadResult()
    for image in images:
        try:
            url = await relocator.relocate_binary(image)
        except RelocationError as e:
            logger.warning("Supplementary image {} failed: {}", image.path, e.message)
            result.errors.append(f"{image.path}: {e.message}")
            continue
        result.uploaded.append(SupplementaryImageResult(original_name=image.path, uploaded_url=url, size=image.size))

    if images and not result.uploaded:
        raise RelocationError(
            RelocationErrorKind.PROVIDER_ERROR,
            "Failed to upload any images: " + "; ".join(result.errors),
            status_code=500,
        )
    return result
