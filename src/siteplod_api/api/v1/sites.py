"""Site API endpoints: create, inspect and delete published sites."""

import uuid

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from siteplod_api.core.config import Settings, get_settings
from siteplod_api.core.dependencies import get_async_session, get_current_caller, get_http_client, get_optional_caller
from siteplod_api.lib.publisher import ManifestEntry
from siteplod_api.models.site import Site
from siteplod_api.schemas.publish import ManifestFile
from siteplod_api.schemas.site import (
    SiteAnalyticsResponse,
    SiteCreateRequest,
    SiteDetailResponse,
    SiteFileContentResponse,
    SiteResponse,
    SlugCheckResponse,
    ViewBucketsResponse,
    ViewCountResponse,
)
from siteplod_api.services.serve_service import read_site_file
from siteplod_api.services.site_service import (
    SLUG_TAKEN_MESSAGE,
    ViewCount,
    create_site,
    delete_site,
    get_site,
    get_site_analytics,
    slug_is_available,
    validate_slug,
)

sites_router = APIRouter(prefix="/sites", tags=["sites"])


def _site_response(site: Site, settings: Settings) -> SiteResponse:
    resp = SiteResponse.model_validate(site)
    resp.live_url = settings.live_url(site.slug)
    return resp


async def _owned_site(session: AsyncSession, site_id: uuid.UUID, caller: str) -> Site:
    site = await get_site(session, site_id)
    if site is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Site not found")
    if not site.managed or site.owner_id != caller:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not the owner of this site")
    return site


@sites_router.post("", response_model=SiteResponse, status_code=status.HTTP_201_CREATED)
async def create_site_endpoint(
    body: SiteCreateRequest,
    session: AsyncSession = Depends(get_async_session),
    caller: str | None = Depends(get_optional_caller),
    settings: Settings = Depends(get_settings),
) -> SiteResponse:
    """Create a site from a manifest returned by ``POST /upload``.

    Managed sites are attached to the caller and require a bearer token.
    """
    if body.managed and caller is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sign in to create a managed site",
            headers={"WWW-Authenticate": "Bearer"},
        )
    files = [ManifestEntry(path=f.path, hosted_url=f.storage_url, media_type=f.mime_type, size=f.size) for f in body.files]
    try:
        site = await create_site(
            session,
            name=body.name,
            slug=body.slug,
            files=files,
            managed=body.managed,
            owner_id=caller,
        )
    except ValueError as e:
        code = status.HTTP_409_CONFLICT if str(e) == SLUG_TAKEN_MESSAGE else status.HTTP_400_BAD_REQUEST
        raise HTTPException(status_code=code, detail=str(e)) from e
    return _site_response(site, settings)


@sites_router.get("/check-slug", response_model=SlugCheckResponse)
async def check_slug(
    slug: str = Query(..., description="Candidate slug"),
    session: AsyncSession = Depends(get_async_session),
) -> SlugCheckResponse:
    """Report whether a slug is well formed and unused."""
    error = validate_slug(slug)
    if error:
        return SlugCheckResponse(slug=slug, available=False, error=error)
    available = await slug_is_available(session, slug)
    return SlugCheckResponse(slug=slug, available=available, error=None if available else SLUG_TAKEN_MESSAGE)


@sites_router.get("/{site_id}", response_model=SiteDetailResponse)
async def get_site_endpoint(
    site_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
    caller: str = Depends(get_current_caller),
    settings: Settings = Depends(get_settings),
) -> SiteDetailResponse:
    """Return a managed site with its manifest. Owner only."""
    site = await _owned_site(session, site_id, caller)
    resp = SiteDetailResponse.model_validate(site)
    resp.live_url = settings.live_url(site.slug)
    resp.files = [
        ManifestFile(path=f.path, storage_url=f.storage_url, mime_type=f.mime_type, size=f.size) for f in site.files
    ]
    return resp


@sites_router.delete("/{site_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_site_endpoint(
    site_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
    caller: str = Depends(get_current_caller),
) -> None:
    """Delete a managed site. Hosted files are left at their providers."""
    site = await _owned_site(session, site_id, caller)
    await delete_site(session, site)
    logger.info("Caller {} deleted site {}", caller, site_id)


def _view_counts(counts: list[ViewCount]) -> list[ViewCountResponse]:
    return [ViewCountResponse(date=c.period, views=c.views) for c in counts]


@sites_router.get("/{site_id}/analytics", response_model=SiteAnalyticsResponse)
async def get_site_analytics_endpoint(
    site_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
    caller: str = Depends(get_current_caller),
) -> SiteAnalyticsResponse:
    """View totals and daily, weekly and monthly buckets. Owner only."""
    site = await _owned_site(session, site_id, caller)
    stats = await get_site_analytics(session, site)
    return SiteAnalyticsResponse(
        site_id=site.id,
        site_name=site.name,
        slug=site.slug,
        total_views=stats.total_views,
        recent_views=stats.recent_views,
        analytics=ViewBucketsResponse(
            daily=_view_counts(stats.daily),
            weekly=_view_counts(stats.weekly),
            monthly=_view_counts(stats.monthly),
        ),
        last_viewed=stats.last_viewed,
    )


@sites_router.get("/{site_id}/files/{path:path}", response_model=SiteFileContentResponse)
async def get_site_file_endpoint(
    site_id: uuid.UUID,
    path: str,
    session: AsyncSession = Depends(get_async_session),
    client: httpx.AsyncClient = Depends(get_http_client),
    caller: str = Depends(get_current_caller),
    settings: Settings = Depends(get_settings),
) -> SiteFileContentResponse:
    """Read one file of a managed site. Owner only; manifests are never edited."""
    await _owned_site(session, site_id, caller)
    entry, content = await read_site_file(session, client, site_id, path, settings=settings)
    return SiteFileContentResponse(
        path=entry.path,
        content=content,
        mime_type=entry.mime_type,
        size=entry.size,
        storage_url=entry.storage_url,
        created_at=entry.created_at,
    )
