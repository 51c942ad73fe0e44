"""Upload API endpoints: publish an HTML file or ZIP archive, add missing images."""

from fastapi import APIRouter, Depends, File, UploadFile
from loguru import logger

from siteplod_api.core.config import Settings, get_settings
from siteplod_api.core.dependencies import get_relocator
from siteplod_api.lib.publisher import PublishedManifest
from siteplod_api.lib.relocation import AssetRelocator
from siteplod_api.schemas.common import ErrorResponse
from siteplod_api.schemas.publish import ImageUploadResponse, ManifestFile, PublishResponse, UploadedImage
from siteplod_api.services.publish_service import publish_upload, upload_supplementary_images

uploads_router = APIRouter(tags=["uploads"])

_ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


def manifest_response(manifest: PublishedManifest) -> PublishResponse:
    return PublishResponse(
        file_count=len(manifest),
        files=[
            ManifestFile(path=e.path, storage_url=e.hosted_url, mime_type=e.media_type, size=e.size) for e in manifest
        ],
    )


@uploads_router.post("/upload", response_model=PublishResponse, responses=_ERROR_RESPONSES)
async def upload_site(
    file: UploadFile,
    images: list[UploadFile] | None = File(default=None),
    relocator: AssetRelocator = Depends(get_relocator),
    settings: Settings = Depends(get_settings),
) -> PublishResponse:
    """Publish an HTML document or a ZIP archive.

    For a single document, images it references locally can be attached in
    the same request under ``images``. The returned manifest is passed to
    ``POST /sites`` to create the site.
    """
    data = await file.read()
    attached = [(image.filename or "", await image.read()) for image in images or []]
    logger.info("Upload received: {} ({} bytes, {} images)", file.filename, len(data), len(attached))
    manifest = await publish_upload(
        data,
        file.filename or "",
        relocator,
        images=attached,
        max_upload_bytes=settings.max_upload_bytes,
        concurrency=settings.relocation_concurrency,
    )
    return manifest_response(manifest)


@uploads_router.post("/upload-images", response_model=ImageUploadResponse, responses=_ERROR_RESPONSES)
async def upload_images(
    images: list[UploadFile] = File(...),
    relocator: AssetRelocator = Depends(get_relocator),
    settings: Settings = Depends(get_settings),
) -> ImageUploadResponse:
    """Store images independently of any site; some may fail while others succeed."""
    batch = [
        (image.filename or "", image.content_type or "application/octet-stream", await image.read())
        for image in images
    ]
    result = await upload_supplementary_images(
        batch,
        relocator,
        max_count=settings.max_supplementary_images,
        max_image_bytes=settings.max_supplementary_image_bytes,
    )
    return ImageUploadResponse(
        uploaded_count=len(result.uploaded),
        total_count=result.total_count,
        images=[
            UploadedImage(original_name=r.original_name, uploaded_url=r.uploaded_url, size=r.size)
            for r in result.uploaded
        ],
        errors=result.errors or None,
    )
