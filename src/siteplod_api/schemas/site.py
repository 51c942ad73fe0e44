"""Pydantic v2 schemas for published sites."""

import uuid
from datetime import datetime

from pydantic import Field

from siteplod_api.schemas.common import CamelModel
from siteplod_api.schemas.publish import ManifestFile


class SiteCreateRequest(CamelModel):
    """Persist a manifest returned by the upload endpoint as a site."""

    name: str = Field(min_length=1, max_length=100, description="Display name")
    slug: str = Field(description="Public path segment (3-50 chars, a-z, 0-9, hyphens)")
    managed: bool = Field(default=False, description="Attach the site to the calling identity")
    files: list[ManifestFile] = Field(min_length=1, description="Manifest from POST /upload")


class SiteResponse(CamelModel):
    id: uuid.UUID
    name: str
    slug: str
    managed: bool
    views: int
    status: str
    created_at: datetime
    live_url: str | None = None


class SiteDetailResponse(SiteResponse):
    files: list[ManifestFile] = Field(default_factory=list)


class SlugCheckResponse(CamelModel):
    slug: str
    available: bool
    error: str | None = Field(default=None, description="Why the slug cannot be used")


class ViewCountResponse(CamelModel):
    date: str = Field(description="Day or week start (YYYY-MM-DD), or month (YYYY-MM)")
    views: int


class ViewBucketsResponse(CamelModel):
    daily: list[ViewCountResponse]
    weekly: list[ViewCountResponse] = Field(description="Weeks start on Sunday")
    monthly: list[ViewCountResponse]


class SiteAnalyticsResponse(CamelModel):
    """View statistics for a managed site's owner."""

    site_id: uuid.UUID
    site_name: str
    slug: str
    total_views: int
    recent_views: int = Field(description="Recorded views in the last 30 days")
    analytics: ViewBucketsResponse
    last_viewed: datetime | None = None


class SiteFileContentResponse(CamelModel):
    path: str
    content: str | None = Field(default=None, description="Stored text; null for images and fonts")
    mime_type: str
    size: int
    storage_url: str
    created_at: datetime
