"""Packaging library: turn uploads into validated package entries.

Public API:
    - sanitize_path: Normalize an untrusted archive path
    - extract: Raw bytes + UploadKind -> list of PackageEntry
    - validate: Allowlist, forbidden media, size and missing-image checks
    - detect_local_images / detect_video_references: Content scanners
    - PackageEntry, UploadKind, AssetCategory: Entry types
"""

from siteplod_api.lib.packaging.extractor import common_prefix, extract, is_junk
from siteplod_api.lib.packaging.paths import PLACEHOLDER_PATH, is_placeholder, sanitize_path
from siteplod_api.lib.packaging.types import (
    AssetCategory,
    PackageEntry,
    UploadKind,
    category_for,
    extension_of,
    guess_media_type,
)
from siteplod_api.lib.packaging.validators import (
    ALLOWED_EXTENSIONS,
    VIDEO_EXTENSIONS,
    check_size,
    detect_local_images,
    detect_video_references,
    find_missing_images,
    image_reference_aliases,
    normalize_reference,
    validate,
    validate_extension,
    validate_supplementary_images,
)

__all__ = [
    "ALLOWED_EXTENSIONS",
    "PLACEHOLDER_PATH",
    "VIDEO_EXTENSIONS",
    "AssetCategory",
    "PackageEntry",
    "UploadKind",
    "category_for",
    "check_size",
    "common_prefix",
    "detect_local_images",
    "detect_video_references",
    "extension_of",
    "extract",
    "find_missing_images",
    "guess_media_type",
    "image_reference_aliases",
    "is_junk",
    "is_placeholder",
    "normalize_reference",
    "sanitize_path",
    "validate",
    "validate_extension",
    "validate_supplementary_images",
]
