"""Publisher data types.

Dataclasses representing manifest entries, the published manifest and
supplementary image results.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ManifestEntry:
    """One relocated file of a published site."""

    path: str
    hosted_url: str
    media_type: str
    size: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "storageUrl": self.hosted_url,
            "mimeType": self.media_type,
            "size": self.size,
        }


@dataclass(frozen=True)
class PublishedManifest:
    """Ordered, immutable result of a successful publish run."""

    entries: tuple[ManifestEntry, ...]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):  # type: ignore[no-untyped-def]
        return iter(self.entries)

    def get(self, path: str) -> ManifestEntry | None:
        for entry in self.entries:
            if entry.path == path:
                return entry
        return None

    def index_entry(self) -> ManifestEntry | None:
        return self.get("index.html")

    @property
    def total_size(self) -> int:
        return sum(entry.size for entry in self.entries)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "fileCount": len(self.entries),
            "files": [entry.to_dict() for entry in self.entries],
        }


@dataclass
class SupplementaryImageResult:
    """One image stored through the supplementary upload affordance."""

    original_name: str
    uploaded_url: str
    size: int


@dataclass
class SupplementaryUploadResult:
    """Outcome of a supplementary image batch; partial success is allowed."""

    uploaded: list[SupplementaryImageResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return len(self.uploaded) + len(self.errors)
