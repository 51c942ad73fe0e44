"""Publish service: run an upload through the ingestion pipeline.

Combines the upload-level checks (declared kind, raw size), extraction,
optional supplementary images for single documents, and assembly.
"""

import time
from collections.abc import Sequence

from loguru import logger

from siteplod_api.lib.packaging import (
    PackageEntry,
    UploadKind,
    check_size,
    detect_local_images,
    extract,
    guess_media_type,
    is_placeholder,
    sanitize_path,
    validate_supplementary_images,
)
from siteplod_api.lib.publisher import (
    PublishedManifest,
    SupplementaryUploadResult,
    assemble,
    relocate_supplementary_images,
)
from siteplod_api.lib.relocation import AssetRelocator


def attach_images(document: PackageEntry, images: Sequence[tuple[str, bytes]]) -> list[PackageEntry]:
    """Turn images uploaded alongside a document into package entries.

    Browsers only send a bare filename, so an image whose name matches the
    last segment of a path the document references is stored under that
    referenced path (``logo.png`` -> ``img/logo.png``). Both sides are
    compared in sanitized form, so ``my photo.png`` attaches to a reference
    written ``my photo.png`` or ``my%20photo.png`` and is stored as
    ``my_photo.png``.
    """
    references = {sanitize_path(ref) for ref in detect_local_images(document.text())}
    by_name = {ref.rsplit("/", 1)[-1]: ref for ref in references}

    entries: list[PackageEntry] = []
    used = {document.path}
    for filename, content in images:
        clean = sanitize_path(filename)
        if is_placeholder(clean):
            logger.warning("Ignoring attached image with unusable name {!r}", filename)
            continue
        path = clean if clean in references else by_name.get(clean.rsplit("/", 1)[-1], clean)
        if path in used:
            logger.warning("Ignoring duplicate attached image {!r}", filename)
            continue
        used.add(path)
        entries.append(PackageEntry(path=path, content=content, media_type=guess_media_type(path)))
    return entries


async def publish_upload(
    data: bytes,
    filename: str,
    relocator: AssetRelocator,
    *,
    images: Sequence[tuple[str, bytes]] = (),
    max_upload_bytes: int | None = None,
    concurrency: int = 4,
) -> PublishedManifest:
    """Publish an uploaded HTML document or ZIP archive.

    Args:
        data: Uploaded file bytes.
        filename: Client filename, used to determine the upload kind.
        relocator: Relocation engine.
        images: ``(filename, bytes)`` pairs resubmitted for a document's
            missing images.
        max_upload_bytes: Total size ceiling.
        concurrency: Maximum binary relocations in flight.

    Returns:
        The published manifest.

    Raises:
        Rejection: If the upload is not acceptable.
        ExtractionError: If the archive is unreadable or empty.
        RelocationError: If any file cannot be stored.
    """
    start = time.monotonic()
    check_size(len(data) + sum(len(content) for _, content in images), max_upload_bytes)
    kind = UploadKind.from_filename(filename)

    entries = extract(data, kind, max_total_bytes=max_upload_bytes)
    if images:
        if kind == UploadKind.DOCUMENT:
            entries.extend(attach_images(entries[0], images))
        else:
            logger.warning("Ignoring {} attached images for archive upload {}", len(images), filename)

    manifest = await assemble(
        entries,
        relocator,
        kind=kind,
        max_total_bytes=max_upload_bytes,
        concurrency=concurrency,
    )
    logger.info(
        "Published {} ({}): {} files, {} bytes in {:.2f}s",
        filename,
        kind,
        len(manifest),
        manifest.total_size,
        time.monotonic() - start,
    )
    return manifest


async def upload_supplementary_images(
    images: Sequence[tuple[str, str, bytes]],
    relocator: AssetRelocator,
    *,
    max_count: int = 20,
    max_image_bytes: int = 10 * 1024 * 1024,
) -> SupplementaryUploadResult:
    """Validate and relocate ``(filename, content_type, bytes)`` images one by one.

    Raises:
        Rejection: If the batch fails validation.
        RelocationError: If no image could be stored.
    """
    validate_supplementary_images(
        [(name, content_type, len(content)) for name, content_type, content in images],
        max_count=max_count,
        max_image_bytes=max_image_bytes,
    )
    entries = [
        PackageEntry(path=name, content=content, media_type=content_type) for name, content_type, content in images
    ]
    result = await relocate_supplementary_images(entries, relocator)
    logger.info("Supplementary upload: {}/{} images stored", len(result.uploaded), result.total_count)
    return result
