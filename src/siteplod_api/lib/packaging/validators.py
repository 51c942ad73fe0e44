"""Content validation for extracted packages.

Pure functions that raise :class:`Rejection` with a user-facing message.
Checks run in a fixed order: aggregate size, per-entry extension,
forbidden media references, then (single documents only) missing local
images.
"""

import re
from collections.abc import Iterable, Iterator, Mapping, Sequence
from urllib.parse import unquote

from siteplod_api.lib.errors import Rejection, RejectionKind
from siteplod_api.lib.packaging.paths import sanitize_path
from siteplod_api.lib.packaging.types import MEDIA_TYPES, PackageEntry, UploadKind

ALLOWED_EXTENSIONS: tuple[str, ...] = tuple(MEDIA_TYPES)

VIDEO_EXTENSIONS: tuple[str, ...] = (".mp4", ".webm", ".ogg", ".avi", ".mov", ".wmv", ".flv", ".mkv")

IMAGE_REFERENCE_EXTENSIONS: tuple[str, ...] = (".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".ico", ".bmp")

# Supplementary image uploads are checked by declared MIME type
ALLOWED_IMAGE_MIME_TYPES = frozenset(
    {"image/png", "image/jpeg", "image/jpg", "image/gif", "image/svg+xml", "image/webp", "image/x-icon"}
)

# Any video extension right after a filename-like character. There is no
# trailing boundary, so bare mentions in prose or code also match.
_VIDEO_REFERENCE = re.compile(
    r"(?<=[A-Za-z0-9_\-~%])(" + "|".join(re.escape(ext) for ext in VIDEO_EXTENSIONS) + ")",
    re.IGNORECASE,
)

_IMAGE_REFERENCE_PATTERNS = (
    re.compile(r"""<img[^>]+src=["']([^"']+)["']""", re.IGNORECASE),
    re.compile(r"""<link[^>]+href=["']([^"']+)["'][^>]*>""", re.IGNORECASE),
    re.compile(r"""<source[^>]+srcset=["']([^"']+)["']""", re.IGNORECASE),
    re.compile(r"""background(?:-image)?:\s*url\(["']?([^"')]+)["']?\)""", re.IGNORECASE),
    re.compile(r"""content:\s*url\(["']?([^"')]+)["']?\)""", re.IGNORECASE),
)


def get_allowed_extensions_display() -> str:
    """Return a human-readable list of allowed file extensions."""
    return ", ".join(ALLOWED_EXTENSIONS)


def validate_extension(path: str) -> None:
    """Check a single entry path against the extension allowlist.

    Raises:
        Rejection: ``REQUIRED_EXTENSION_MISSING`` for an empty name or one
            without a usable extension, ``DISALLOWED_TYPE`` for video files
            and anything else outside the allowlist.
    """
    if not path:
        raise Rejection(RejectionKind.REQUIRED_EXTENSION_MISSING, "Filename is required")

    name = path.rsplit("/", 1)[-1]
    dot_idx = name.rfind(".")
    if dot_idx <= 0 or not name[dot_idx + 1 :].strip():
        raise Rejection(RejectionKind.REQUIRED_EXTENSION_MISSING, "File must have a valid extension")

    extension = name[dot_idx:].lower()
    if extension in VIDEO_EXTENSIONS:
        raise Rejection(
            RejectionKind.DISALLOWED_TYPE,
            f"Video files ({extension}) are not supported",
            extensions=[extension],
        )
    if extension not in ALLOWED_EXTENSIONS:
        raise Rejection(
            RejectionKind.DISALLOWED_TYPE,
            f"File type {extension} is not allowed. Allowed types: {get_allowed_extensions_display()}",
            extensions=[extension],
        )


def detect_video_references(text: str) -> list[str]:
    """Return the distinct video extensions mentioned in ``text``, in order of first appearance."""
    found: list[str] = []
    for match in _VIDEO_REFERENCE.finditer(text):
        extension = match.group(1).lower()
        if extension not in found:
            found.append(extension)
    return found


def check_size(size: int, max_bytes: int | None, *, what: str = "File size") -> None:
    """Raise a ``TOO_LARGE`` rejection when ``size`` exceeds ``max_bytes``."""
    if max_bytes is not None and size > max_bytes:
        raise Rejection(
            RejectionKind.TOO_LARGE,
            f"{what} exceeds {max_bytes // (1024 * 1024)}MB limit",
        )


def normalize_reference(url: str) -> str:
    """Reduce a reference to a package-relative path.

    Percent-escapes are decoded; query, fragment, leading ``/`` and ``./``
    and every ``../`` are removed.
    """
    path = unquote(url.split("?", 1)[0].split("#", 1)[0])
    path = path.replace("../", "").lstrip("/")
    while path.startswith("./"):
        path = path[2:].lstrip("/")
    return path


def _is_local(url: str) -> bool:
    return not url.startswith(("http://", "https://", "data:", "//"))


def _local_image_urls(html: str) -> Iterator[str]:
    for pattern in _IMAGE_REFERENCE_PATTERNS:
        for match in pattern.finditer(html):
            url = match.group(1).strip()
            if not _is_local(url):
                continue
            if normalize_reference(url).lower().endswith(IMAGE_REFERENCE_EXTENSIONS):
                yield url


def detect_local_images(html: str) -> list[str]:
    """Find local image files referenced by an HTML document.

    Looks at ``<img src>``, ``<link href>``, ``<source srcset>`` and CSS
    ``background``/``content`` ``url(...)`` values. Absolute, protocol-relative
    and ``data:`` URLs are ignored.

    Returns:
        Unique normalized paths, in order of discovery.
    """
    paths: list[str] = []
    for url in _local_image_urls(html):
        normalized = normalize_reference(url)
        if normalized not in paths:
            paths.append(normalized)
    return paths


def image_reference_aliases(html: str, asset_map: Mapping[str, str]) -> dict[str, str]:
    """Map image references spelled differently from their package path to hosted URLs.

    A document may write ``my photo.png``, ``my%20photo.png`` or
    ``/logo.png`` for entries stored as ``my_photo.png`` and ``logo.png``.
    The result holds each such literal spelling (query and fragment removed)
    so it can be rewritten alongside ``asset_map``.
    """
    aliases: dict[str, str] = {}
    for url in _local_image_urls(html):
        literal = url.split("?", 1)[0].split("#", 1)[0]
        hosted_url = asset_map.get(sanitize_path(normalize_reference(url)))
        if hosted_url and literal not in asset_map:
            aliases.setdefault(literal, hosted_url)
    return aliases


def find_missing_images(document: PackageEntry, available: Iterable[str]) -> list[str]:
    """Local images referenced by ``document`` with no entry among ``available`` paths.

    References are compared after sanitizing, the same way package paths are
    stored; the returned paths keep the document's spelling.
    """
    present = set(available)
    return [path for path in detect_local_images(document.text()) if sanitize_path(path) not in present]


def validate(
    entries: Sequence[PackageEntry],
    *,
    kind: UploadKind,
    max_total_bytes: int | None = None,
) -> None:
    """Validate a whole package.

    Args:
        entries: Extracted entries (plus any attached supplementary images).
        kind: Declared upload kind; missing-image detection only applies to
            single documents.
        max_total_bytes: Aggregate size ceiling.

    Raises:
        Rejection: On the first failing check.
    """
    check_size(sum(entry.size for entry in entries), max_total_bytes)

    for entry in entries:
        validate_extension(entry.path)

    video_extensions: list[str] = []
    for entry in entries:
        if not entry.is_text:
            continue
        for extension in detect_video_references(entry.text()):
            if extension not in video_extensions:
                video_extensions.append(extension)
    if video_extensions:
        raise Rejection(
            RejectionKind.FORBIDDEN_MEDIA,
            f"References to video files ({', '.join(video_extensions)}) are not supported",
            extensions=video_extensions,
        )

    if kind == UploadKind.DOCUMENT:
        documents = [entry for entry in entries if entry.path == "index.html"]
        paths = [entry.path for entry in entries]
        missing = [path for document in documents for path in find_missing_images(document, paths)]
        if missing:
            raise Rejection(
                RejectionKind.MISSING_ASSETS,
                "Your HTML file references local images that need to be uploaded",
                paths=missing,
            )


def validate_supplementary_images(
    images: Sequence[tuple[str, str, int]],
    *,
    max_count: int,
    max_image_bytes: int,
) -> None:
    """Validate a supplementary image batch given ``(filename, content_type, size)`` triples.

    Raises:
        Rejection: For an empty or oversized batch, an oversized image, or a
            disallowed MIME type.
    """
    if not images:
        raise Rejection(RejectionKind.MISSING_ASSETS, "No images provided")
    if len(images) > max_count:
        raise Rejection(RejectionKind.TOO_LARGE, f"Maximum {max_count} images can be uploaded at once")
    for filename, content_type, size in images:
        check_size(size, max_image_bytes, what=f'Image "{filename}"')
        if content_type.split(";")[0].strip().lower() not in ALLOWED_IMAGE_MIME_TYPES:
            raise Rejection(
                RejectionKind.DISALLOWED_TYPE,
                f'Image "{filename}" has invalid type. Only PNG, JPG, GIF, SVG, WebP, and ICO are allowed',
            )
