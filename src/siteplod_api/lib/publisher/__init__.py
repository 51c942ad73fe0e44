"""Publisher library: turn validated entries into a published manifest.

Provides reference rewriting, all-or-nothing publication assembly and the
supplementary image affordance.
"""

from siteplod_api.lib.publisher.assembler import assemble, relocate_supplementary_images
from siteplod_api.lib.publisher.rewriter import path_variants, rewrite_references
from siteplod_api.lib.publisher.types import (
    ManifestEntry,
    PublishedManifest,
    SupplementaryImageResult,
    SupplementaryUploadResult,
)

__all__ = [
    "ManifestEntry",
    "PublishedManifest",
    "SupplementaryImageResult",
    "SupplementaryUploadResult",
    "assemble",
    "path_variants",
    "relocate_supplementary_images",
    "rewrite_references",
]
