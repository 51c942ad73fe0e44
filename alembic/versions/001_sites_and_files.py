"""Initial migration: sites, site_files and site_views tables.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "sites",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("owner_id", sa.String(255), nullable=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(50), nullable=False),
        sa.Column("managed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("views", sa.Integer, nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="live"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("status IN ('live', 'draft', 'archived')", name="ck_sites_status"),
        sa.CheckConstraint("views >= 0", name="ck_sites_views_nonnegative"),
    )
    op.create_index("ix_sites_slug", "sites", ["slug"], unique=True)
    op.create_index("ix_sites_owner_id", "sites", ["owner_id"])

    op.create_table(
        "site_files",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("site_id", sa.Uuid(), sa.ForeignKey("sites.id", ondelete="CASCADE"), nullable=False),
        sa.Column("path", sa.String(1000), nullable=False),
        sa.Column("storage_url", sa.Text, nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=False),
        sa.Column("size", sa.BigInteger, nullable=False),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("site_id", "path", name="uq_site_files_site_path"),
    )
    op.create_index("ix_site_files_site_id", "site_files", ["site_id"])

    op.create_table(
        "site_views",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("site_id", sa.Uuid(), sa.ForeignKey("sites.id", ondelete="CASCADE"), nullable=False),
        sa.Column("viewed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("referrer", sa.String(2048), nullable=True),
    )
    op.create_index("ix_site_views_site_id", "site_views", ["site_id"])
    op.create_index("ix_site_views_viewed_at", "site_views", ["viewed_at"])


def downgrade() -> None:
    op.drop_index("ix_site_views_viewed_at", table_name="site_views")
    op.drop_index("ix_site_views_site_id", table_name="site_views")
    op.drop_table("site_views")
    op.drop_index("ix_site_files_site_id", table_name="site_files")
    op.drop_table("site_files")
    op.drop_index("ix_sites_owner_id", table_name="sites")
    op.drop_index("ix_sites_slug", table_name="sites")
    op.drop_table("sites")
