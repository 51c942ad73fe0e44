"""SiteFile model: one manifest entry of a published site."""

import uuid
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from siteplod_api.models.base import Base, UUIDMixin


class SiteFile(Base, UUIDMixin):
    """A relocated file: where it lives and how to serve it.

    Rows are written once with their site and never updated.
    """

    __tablename__ = "site_files"

    site_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("sites.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    path: Mapped[str] = mapped_column(String(1000), nullable=False)
    storage_url: Mapped[str] = mapped_column(Text, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    site = relationship("Site", back_populates="files")

    __table_args__ = (UniqueConstraint("site_id", "path", name="uq_site_files_site_path"),)
