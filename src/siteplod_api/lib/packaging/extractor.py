"""Turn raw upload bytes into an ordered list of package entries.

Single documents become one ``index.html`` entry. ZIP archives are read
in memory with :mod:`zipfile`; directory members and platform junk are
discarded, the folder shared by every member is stripped (so a zipped
``site/`` directory publishes as if its contents were at the root), and
every remaining path is sanitized.
"""

import io
import zipfile
import zlib

from loguru import logger

from siteplod_api.lib.errors import ExtractionError, Rejection, RejectionKind
from siteplod_api.lib.packaging.paths import is_placeholder, sanitize_path
from siteplod_api.lib.packaging.types import PackageEntry, UploadKind, guess_media_type

_JUNK_DIRS = frozenset({"__MACOSX"})
_JUNK_FILES = frozenset({".DS_Store", "Thumbs.db", "desktop.ini"})

CORRUPT_ARCHIVE_MESSAGE = "Failed to extract ZIP file. File may be corrupted."


def is_junk(name: str) -> bool:
    """Whether an archive member is platform metadata rather than site content."""
    parts = name.split("/")
    if any(part in _JUNK_DIRS for part in parts[:-1]):
        return True
    filename = parts[-1]
    return filename in _JUNK_FILES or filename.startswith("._")


def common_prefix(paths: list[str]) -> str:
    """Return the directory prefix (with trailing ``/``) shared by all paths.

    Only directory components are considered; the final component of each
    path is a filename and never part of the prefix.
    """
    if not paths:
        return ""
    split_paths = [p.split("/") for p in paths]
    shortest = min(len(parts) for parts in split_paths)

    prefix_parts: list[str] = []
    for i in range(shortest - 1):
        part = split_paths[0][i]
        if all(parts[i] == part for parts in split_paths):
            prefix_parts.append(part)
        else:
            break
    return "/".join(prefix_parts) + "/" if prefix_parts else ""


def extract(
    data: bytes,
    kind: UploadKind,
    *,
    media_type: str = "text/html",
    max_total_bytes: int | None = None,
) -> list[PackageEntry]:
    """Extract package entries from an upload.

    Args:
        data: Raw uploaded bytes.
        kind: Declared upload kind.
        media_type: Media type for single-document uploads.
        max_total_bytes: Ceiling on the archive's declared uncompressed size.

    Returns:
        Entries in archive order.

    Raises:
        ExtractionError: If the archive is unreadable or holds no valid files.
        Rejection: If the archive would inflate past ``max_total_bytes``.
    """
    match kind:
        case UploadKind.DOCUMENT:
            return [PackageEntry(path="index.html", content=data, media_type=media_type)]
        case UploadKind.ARCHIVE:
            return _extract_archive(data, max_total_bytes)


def _extract_archive(data: bytes, max_total_bytes: int | None) -> list[PackageEntry]:
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as e:
        logger.warning("Rejected unreadable archive ({} bytes): {}", len(data), e)
        raise ExtractionError(CORRUPT_ARCHIVE_MESSAGE) from e

    with archive:
        infos = archive.infolist()
        if not infos:
            raise ExtractionError("ZIP file contains no files")

        members = [
            info for info in infos if not info.is_dir() and not is_junk(info.filename.replace("\\", "/"))
        ]

        declared = sum(info.file_size for info in members)
        if max_total_bytes is not None and declared > max_total_bytes:
            limit_mb = max_total_bytes // (1024 * 1024)
            raise Rejection(
                RejectionKind.TOO_LARGE,
                f"Extracted content exceeds {limit_mb}MB limit",
            )

        names = [info.filename.replace("\\", "/") for info in members]
        prefix = common_prefix(names)

        entries: list[PackageEntry] = []
        seen: set[str] = set()
        for info, name in zip(members, names, strict=True):
            relative = name[len(prefix) :] if prefix and name.startswith(prefix) else name
            path = sanitize_path(relative)
            if is_placeholder(path):
                logger.debug("Skipping archive member with unusable name {!r}", name)
                continue
            if path in seen:
                logger.warning("Skipping archive member {!r}: {!r} already extracted", name, path)
                continue
            seen.add(path)
            try:
                content = archive.read(info)
            except (zipfile.BadZipFile, zlib.error, OSError, RuntimeError, NotImplementedError) as e:
                raise ExtractionError(CORRUPT_ARCHIVE_MESSAGE) from e
            entries.append(PackageEntry(path=path, content=content, media_type=guess_media_type(path)))

    if not entries:
        raise ExtractionError("ZIP file contains no valid files")

    logger.info("Extracted {} entries from archive (prefix {!r})", len(entries), prefix)
    return entries
