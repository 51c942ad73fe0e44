"""SiteView model: one recorded page view."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from siteplod_api.models.base import Base, UUIDMixin


class SiteView(Base, UUIDMixin):
    __tablename__ = "site_views"

    site_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("sites.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    viewed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )
    referrer: Mapped[str | None] = mapped_column(String(2048), nullable=True)
