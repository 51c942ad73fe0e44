"""Pydantic v2 schemas for uploads and their manifests."""

from pydantic import Field

from siteplod_api.schemas.common import CamelModel


class ManifestFile(CamelModel):
    """One relocated file as returned by the upload endpoint."""

    path: str = Field(min_length=1, max_length=1000, description="Sanitized package path")
    storage_url: str = Field(min_length=1, description="Hosted URL of the file")
    mime_type: str = Field(min_length=1, max_length=100, description="Media type used when serving")
    size: int = Field(ge=0, description="Stored size in bytes")


class PublishResponse(CamelModel):
    """Response for a successful upload."""

    success: bool = True
    file_count: int = Field(description="Number of files in the manifest")
    files: list[ManifestFile] = Field(description="Manifest, binaries first")


class UploadedImage(CamelModel):
    original_name: str
    uploaded_url: str
    size: int


class ImageUploadResponse(CamelModel):
    """Response for the supplementary image upload; partial success is allowed."""

    success: bool = True
    uploaded_count: int
    total_count: int
    images: list[UploadedImage]
    errors: list[str] | None = None
