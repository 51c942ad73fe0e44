"""Serve service: rebuild a published site from its manifest on demand."""

import uuid
from dataclasses import dataclass

import httpx
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from siteplod_api.core.background import BackgroundTaskRunner
from siteplod_api.core.config import Settings
from siteplod_api.lib.errors import SiteNotFound, UpstreamFailure
from siteplod_api.lib.packaging.types import TEXT_CATEGORIES, category_for
from siteplod_api.lib.relocation import to_raw_url
from siteplod_api.lib.serving import ServeState, fetch_once, fetch_with_retry, inject_base_directive
from siteplod_api.models.site_file import SiteFile
from siteplod_api.services.site_service import get_site_by_slug, get_site_file, record_view

_MAX_REFERRER_LENGTH = 2048


@dataclass(frozen=True)
class ServedContent:
    """Body and headers for a served document or asset."""

    body: bytes
    media_type: str
    cache_control: str


def fetch_url_for(storage_url: str, text_host: str) -> str:
    """URL to fetch a stored file from; paste view URLs become raw URLs."""
    if f"{text_host}/" in storage_url:
        return to_raw_url(storage_url, text_host)
    return storage_url


def _log_state(slug: str, state: ServeState, detail: str = "") -> None:
    logger.debug("serve {} -> {}{}", slug, state, f" ({detail})" if detail else "")


async def serve_document(
    session: AsyncSession,
    client: httpx.AsyncClient,
    slug: str,
    *,
    settings: Settings,
    runner: BackgroundTaskRunner | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    referrer: str | None = None,
) -> ServedContent:
    """Serve a site's ``index.html`` with a base directive injected.

    The document is fetched with bounded retries. When a runner and session
    factory are given, a view increment is scheduled without waiting for it.

    Raises:
        SiteNotFound: Unknown slug or no ``index.html`` in the manifest.
        UpstreamFailure: The document could not be fetched.
    """
    _log_state(slug, ServeState.RESOLVING)
    site = await get_site_by_slug(session, slug, live_only=True)
    if site is None:
        _log_state(slug, ServeState.NOT_FOUND, "site")
        raise SiteNotFound("Site not found")
    index = await get_site_file(session, site.id, "index.html")
    if index is None:
        _log_state(slug, ServeState.NOT_FOUND, "index.html")
        raise SiteNotFound("Site content not found")

    _log_state(slug, ServeState.FETCHING)
    try:
        raw = await fetch_with_retry(
            client,
            fetch_url_for(index.storage_url, settings.pastebin_host),
            attempts=settings.serve_fetch_attempts,
            backoff=settings.serve_backoff_seconds,
            timeout=settings.serve_fetch_timeout,
        )
    except UpstreamFailure:
        _log_state(slug, ServeState.UPSTREAM_FAILURE)
        raise

    _log_state(slug, ServeState.INJECTING)
    base_href = f"{settings.public_site_prefix}/{slug}/"
    html = inject_base_directive(raw.decode("utf-8", errors="replace"), base_href)

    if runner is not None and session_factory is not None:
        runner.submit_task(
            record_view(
                session_factory,
                site.id,
                referrer=referrer[:_MAX_REFERRER_LENGTH] if referrer else None,
            ),
            name=f"increment_views:{slug}",
        )

    _log_state(slug, ServeState.SERVED)
    return ServedContent(
        body=html.encode("utf-8"),
        media_type="text/html; charset=utf-8",
        cache_control=f"public, max-age={settings.serve_document_max_age}",
    )


async def serve_asset(
    session: AsyncSession,
    client: httpx.AsyncClient,
    slug: str,
    path: str,
    *,
    settings: Settings,
) -> ServedContent:
    """Proxy one manifest entry by exact path, fetched once.

    Raises:
        SiteNotFound: Unknown slug or path.
        UpstreamFailure: The fetch failed.
    """
    _log_state(slug, ServeState.RESOLVING, path)
    site = await get_site_by_slug(session, slug, live_only=True)
    if site is None:
        raise SiteNotFound("Not found")
    entry = await get_site_file(session, site.id, path)
    if entry is None:
        _log_state(slug, ServeState.NOT_FOUND, path)
        raise SiteNotFound("Asset not found")

    _log_state(slug, ServeState.PROXYING, path)
    try:
        body = await fetch_once(
            client,
            fetch_url_for(entry.storage_url, settings.pastebin_host),
            timeout=settings.serve_fetch_timeout,
        )
    except UpstreamFailure:
        _log_state(slug, ServeState.UPSTREAM_FAILURE, path)
        raise

    _log_state(slug, ServeState.SERVED, path)
    return ServedContent(
        body=body,
        media_type=entry.mime_type,
        cache_control=f"public, max-age={settings.serve_asset_max_age}",
    )


async def read_site_file(
    session: AsyncSession,
    client: httpx.AsyncClient,
    site_id: uuid.UUID,
    path: str,
    *,
    settings: Settings,
) -> tuple[SiteFile, str | None]:
    """Load one manifest entry and, for text files, its stored content.

    Images and fonts come back without content; their storage URL is
    already directly usable.

    Raises:
        SiteNotFound: No entry with this exact path.
        UpstreamFailure: The text content could not be fetched.
    """
    entry = await get_site_file(session, site_id, path)
    if entry is None:
        raise SiteNotFound("File not found")
    if category_for(entry.path) not in TEXT_CATEGORIES:
        return entry, None
    body = await fetch_once(
        client,
        fetch_url_for(entry.storage_url, settings.pastebin_host),
        timeout=settings.serve_fetch_timeout,
    )
    return entry, body.decode("utf-8", errors="replace")
