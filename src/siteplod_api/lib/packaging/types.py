"""Package entry types shared by extraction, validation and assembly."""

from dataclasses import dataclass
from enum import StrEnum

from siteplod_api.lib.errors import Rejection, RejectionKind


class UploadKind(StrEnum):
    """Declared shape of an upload, dispatched once at extraction."""

    DOCUMENT = "document"
    ARCHIVE = "archive"

    @classmethod
    def from_filename(cls, filename: str) -> "UploadKind":
        """Infer the upload kind from the client-supplied filename.

        Raises:
            Rejection: If the file is neither an HTML document nor a ZIP archive.
        """
        lowered = filename.lower()
        if lowered.endswith((".html", ".htm")):
            return cls.DOCUMENT
        if lowered.endswith(".zip"):
            return cls.ARCHIVE
        raise Rejection(RejectionKind.DISALLOWED_TYPE, "Only HTML and ZIP files are allowed")


class AssetCategory(StrEnum):
    """How an entry is relocated and whether it is rewritten."""

    DOCUMENT = "document"
    STYLESHEET = "stylesheet"
    SCRIPT = "script"
    IMAGE = "image"
    FONT = "font"
    OTHER = "other"


# Extension -> (media type, category)
MEDIA_TYPES: dict[str, tuple[str, AssetCategory]] = {
    ".html": ("text/html", AssetCategory.DOCUMENT),
    ".htm": ("text/html", AssetCategory.DOCUMENT),
    ".css": ("text/css", AssetCategory.STYLESHEET),
    ".js": ("application/javascript", AssetCategory.SCRIPT),
    ".png": ("image/png", AssetCategory.IMAGE),
    ".jpg": ("image/jpeg", AssetCategory.IMAGE),
    ".jpeg": ("image/jpeg", AssetCategory.IMAGE),
    ".gif": ("image/gif", AssetCategory.IMAGE),
    ".svg": ("image/svg+xml", AssetCategory.IMAGE),
    ".webp": ("image/webp", AssetCategory.IMAGE),
    ".ico": ("image/x-icon", AssetCategory.IMAGE),
    ".woff": ("font/woff", AssetCategory.FONT),
    ".woff2": ("font/woff2", AssetCategory.FONT),
    ".ttf": ("font/ttf", AssetCategory.FONT),
    ".otf": ("font/otf", AssetCategory.FONT),
}

DEFAULT_MEDIA_TYPE = "application/octet-stream"

TEXT_CATEGORIES = frozenset({AssetCategory.DOCUMENT, AssetCategory.STYLESHEET, AssetCategory.SCRIPT})


def extension_of(path: str) -> str:
    """Return the lowercase extension of the final path component, with dot.

    Returns an empty string when there is none or the name is dot-only.
    """
    name = path.rsplit("/", 1)[-1]
    dot_idx = name.rfind(".")
    if dot_idx <= 0 or dot_idx == len(name) - 1:
        return ""
    return name[dot_idx:].lower()


def guess_media_type(path: str) -> str:
    known = MEDIA_TYPES.get(extension_of(path))
    return known[0] if known else DEFAULT_MEDIA_TYPE


def category_for(path: str) -> AssetCategory:
    known = MEDIA_TYPES.get(extension_of(path))
    return known[1] if known else AssetCategory.OTHER


@dataclass(frozen=True)
class PackageEntry:
    """One file flowing through a publish run.

    Attributes:
        path: Sanitized, relative, ``/``-separated path.
        content: Raw file bytes.
        media_type: MIME type used when the entry is served back.
    """

    path: str
    content: bytes
    media_type: str

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def category(self) -> AssetCategory:
        # Single-document uploads are always stored as index.html
        if self.path == "index.html":
            return AssetCategory.DOCUMENT
        return category_for(self.path)

    @property
    def is_text(self) -> bool:
        return self.category in TEXT_CATEGORIES

    def text(self) -> str:
        """Decode the content as UTF-8, replacing undecodable bytes."""
        return self.content.decode("utf-8", errors="replace")
