"""Site service: persist manifests as sites, look them up, count views."""

import re
import uuid
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from loguru import logger
from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from siteplod_api.lib.publisher.types import ManifestEntry
from siteplod_api.models.site import Site, SiteStatus
from siteplod_api.models.site_file import SiteFile
from siteplod_api.models.site_view import SiteView

SLUG_MIN_LENGTH = 3
SLUG_MAX_LENGTH = 50
_SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")

SLUG_TAKEN_MESSAGE = "Slug is already taken"

RECENT_VIEWS_DAYS = 30


def validate_slug(slug: str) -> str | None:
    """Check slug format.

    Returns:
        None when valid, otherwise a user-facing reason.
    """
    if not slug:
        return "Slug is required"
    if len(slug) < SLUG_MIN_LENGTH:
        return f"Slug must be at least {SLUG_MIN_LENGTH} characters"
    if len(slug) > SLUG_MAX_LENGTH:
        return f"Slug must be at most {SLUG_MAX_LENGTH} characters"
    if not _SLUG_PATTERN.match(slug):
        return "Slug can only contain lowercase letters, numbers, and hyphens"
    if slug.startswith("-") or slug.endswith("-"):
        return "Slug cannot start or end with a hyphen"
    if "--" in slug:
        return "Slug cannot contain consecutive hyphens"
    return None


# ---------------------------------------------------------------------------
# Read operations
# ---------------------------------------------------------------------------


async def get_site_by_slug(session: AsyncSession, slug: str, *, live_only: bool = False) -> Site | None:
    query = select(Site).where(Site.slug == slug)
    if live_only:
        query = query.where(Site.status == SiteStatus.LIVE)
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def get_site(session: AsyncSession, site_id: uuid.UUID) -> Site | None:
    result = await session.execute(select(Site).where(Site.id == site_id))
    return result.scalar_one_or_none()


async def get_site_file(session: AsyncSession, site_id: uuid.UUID, path: str) -> SiteFile | None:
    """Look up a manifest entry by exact path."""
    result = await session.execute(select(SiteFile).where(SiteFile.site_id == site_id, SiteFile.path == path))
    return result.scalar_one_or_none()


async def list_site_files(session: AsyncSession, site_id: uuid.UUID) -> list[SiteFile]:
    """Return a site's manifest in publish order."""
    result = await session.execute(
        select(SiteFile).where(SiteFile.site_id == site_id).order_by(SiteFile.position, SiteFile.path)
    )
    return list(result.scalars().all())


async def slug_is_available(session: AsyncSession, slug: str) -> bool:
    result = await session.execute(select(func.count()).select_from(Site).where(Site.slug == slug))
    return result.scalar_one() == 0


# ---------------------------------------------------------------------------
# Write operations
# ---------------------------------------------------------------------------


async def create_site(
    session: AsyncSession,
    *,
    name: str,
    slug: str,
    files: Sequence[ManifestEntry],
    managed: bool = False,
    owner_id: str | None = None,
) -> Site:
    """Persist a site and its whole manifest in one transaction.

    Args:
        session: Database session.
        name: Display name.
        slug: Public path segment.
        files: Manifest entries in publish order.
        managed: Whether the site belongs to ``owner_id``.
        owner_id: Identity of the caller for managed sites.

    Returns:
        The created Site with its files loaded.

    Raises:
        ValueError: On an invalid or taken slug, a managed site without an
            owner, an empty manifest, or duplicate manifest paths.
    """
    slug_error = validate_slug(slug)
    if slug_error:
        raise ValueError(slug_error)
    if managed and not owner_id:
        raise ValueError("Managed sites require an identified owner")
    if not files:
        raise ValueError("A site needs at least one file")
    paths = [f.path for f in files]
    if len(set(paths)) != len(paths):
        raise ValueError("Manifest contains duplicate paths")
    if not await slug_is_available(session, slug):
        raise ValueError(SLUG_TAKEN_MESSAGE)

    site = Site(name=name, slug=slug, managed=managed, owner_id=owner_id if managed else None)
    site.files = [
        SiteFile(
            path=entry.path,
            storage_url=entry.hosted_url,
            mime_type=entry.media_type,
            size=entry.size,
            position=position,
        )
        for position, entry in enumerate(files)
    ]
    session.add(site)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ValueError(SLUG_TAKEN_MESSAGE) from e
    await session.refresh(site)
    logger.info("Created site {} ({}) with {} files", site.slug, site.id, len(files))
    return site


async def delete_site(session: AsyncSession, site: Site) -> None:
    """Delete a site together with its manifest and view history."""
    site_id, slug = site.id, site.slug
    await session.delete(site)
    await session.commit()
    logger.info("Deleted site {} ({})", slug, site_id)


async def increment_views(session: AsyncSession, site_id: uuid.UUID, *, referrer: str | None = None) -> None:
    """Atomically add one view to a site and record it.

    The counter is only ever changed by ``UPDATE ... SET views = views + 1``
    so concurrent requests never lose updates.
    """
    await session.execute(update(Site).where(Site.id == site_id).values(views=Site.views + 1))
    await session.execute(insert(SiteView).values(id=uuid.uuid4(), site_id=site_id, referrer=referrer))
    await session.commit()


async def record_view(
    session_factory: async_sessionmaker[AsyncSession],
    site_id: uuid.UUID,
    *,
    referrer: str | None = None,
) -> None:
    """Background entry point: increment views in a dedicated session."""
    async with session_factory() as session:
        await increment_views(session, site_id, referrer=referrer)


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ViewCount:
    """Views within one period, keyed by the period's ISO start date or ``YYYY-MM`` month."""

    period: str
    views: int


@dataclass(frozen=True)
class SiteAnalytics:
    total_views: int
    recent_views: int
    daily: list[ViewCount]
    weekly: list[ViewCount]
    monthly: list[ViewCount]
    last_viewed: datetime | None


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without an offset; they are stored in UTC
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


def _sorted_counts(counter: Counter[str]) -> list[ViewCount]:
    return [ViewCount(period=period, views=views) for period, views in sorted(counter.items())]


async def get_site_analytics(session: AsyncSession, site: Site, *, now: datetime | None = None) -> SiteAnalytics:
    """Aggregate a site's recorded views.

    Views are bucketed by UTC day, by week starting on Sunday, and by month.
    ``total_views`` is the site's counter; ``recent_views`` counts recorded
    views in the last 30 days.
    """
    result = await session.execute(
        select(SiteView.viewed_at).where(SiteView.site_id == site.id).order_by(SiteView.viewed_at.desc())
    )
    viewed = [_as_utc(ts) for ts in result.scalars().all()]
    cutoff = (_as_utc(now) if now else datetime.now(UTC)) - timedelta(days=RECENT_VIEWS_DAYS)

    daily: Counter[str] = Counter()
    weekly: Counter[str] = Counter()
    monthly: Counter[str] = Counter()
    for ts in viewed:
        day = ts.date()
        daily[day.isoformat()] += 1
        weekly[(day - timedelta(days=(day.weekday() + 1) % 7)).isoformat()] += 1
        monthly[day.strftime("%Y-%m")] += 1

    return SiteAnalytics(
        total_views=site.views,
        recent_views=sum(1 for ts in viewed if ts >= cutoff),
        daily=_sorted_counts(daily),
        weekly=_sorted_counts(weekly),
        monthly=_sorted_counts(monthly),
        last_viewed=viewed[0] if viewed else None,
    )
