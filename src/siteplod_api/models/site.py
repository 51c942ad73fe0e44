"""Site model: a published static site reachable at ``/s/{slug}``."""

import enum

from sqlalchemy import Boolean, CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from siteplod_api.models.base import Base, TimestampMixin, UUIDMixin
from siteplod_api.models.site_file import SiteFile


class SiteStatus(enum.StrEnum):
    """Lifecycle state of a site."""

    LIVE = "live"
    DRAFT = "draft"
    ARCHIVED = "archived"


class Site(Base, UUIDMixin, TimestampMixin):
    """A published site and its view counter.

    Attributes:
        owner_id: Identity-provider subject of a managed site's owner.
        name: Display name.
        slug: Unique public path segment.
        managed: Whether the site belongs to an identified caller.
        views: Monotonic counter, only ever changed by an atomic UPDATE.
        status: live, draft or archived.
    """

    __tablename__ = "sites"

    owner_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    managed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=SiteStatus.LIVE, server_default="live")

    files: Mapped[list[SiteFile]] = relationship(
        SiteFile,
        back_populates="site",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=SiteFile.position,
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("status IN ('live', 'draft', 'archived')", name="ck_sites_status"),
        CheckConstraint("views >= 0", name="ck_sites_views_nonnegative"),
    )
