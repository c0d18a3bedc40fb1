"""Create item cache tables.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from modproxy.adapters.sqlalchemy.mappings import UTCDateTime

revision: str = "0001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "mod",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("author_username", sa.String(), nullable=True),
        sa.Column("current_version_number", sa.String(length=64), nullable=True),
        sa.Column("current_version_size", sa.BigInteger(), nullable=True),
        sa.Column("created_at", UTCDateTime(), nullable=True),
        sa.Column("updated_at", UTCDateTime(), nullable=True),
        sa.Column("cached_at", UTCDateTime(), nullable=False),
        sa.Column("versions_updated_at", UTCDateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_mod"),
    )
    op.create_index("ix_mod_author_username", "mod", ["author_username"])
    op.create_index("ix_mod_cached_at", "mod", ["cached_at"])

    op.create_table(
        "mod_preview",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("mod_id", sa.String(length=64), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("preview_order", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["mod_id"], ["mod.id"], name="fk_mod_preview_mod_id_mod"),
        sa.PrimaryKeyConstraint("id", name="pk_mod_preview"),
    )
    op.create_index("ix_mod_preview_mod_id", "mod_preview", ["mod_id"])

    op.create_table(
        "mod_dependency",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("mod_id", sa.String(length=64), nullable=False),
        sa.Column("dependency_mod_id", sa.String(length=64), nullable=False),
        sa.Column("dependency_name", sa.String(), nullable=True),
        sa.Column("file_size", sa.BigInteger(), nullable=True),
        sa.Column("dependency_order", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["mod_id"], ["mod.id"], name="fk_mod_dependency_mod_id_mod"),
        sa.PrimaryKeyConstraint("id", name="pk_mod_dependency"),
        sa.UniqueConstraint("mod_id", "dependency_mod_id", name="uq_mod_dependency_pair"),
    )
    op.create_index("ix_mod_dependency_mod_id", "mod_dependency", ["mod_id"])

    op.create_table(
        "mod_version",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("mod_id", sa.String(length=64), nullable=False),
        sa.Column("version_number", sa.String(length=64), nullable=False),
        sa.Column("version_size", sa.BigInteger(), nullable=True),
        sa.Column("release_date", UTCDateTime(), nullable=True),
        sa.Column("is_current", sa.Boolean(), nullable=False),
        sa.Column("version_order", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["mod_id"], ["mod.id"], name="fk_mod_version_mod_id_mod"),
        sa.PrimaryKeyConstraint("id", name="pk_mod_version"),
        sa.UniqueConstraint("mod_id", "version_number", name="uq_mod_version_number"),
    )
    op.create_index("ix_mod_version_mod_id", "mod_version", ["mod_id"])


def downgrade() -> None:
    op.drop_index("ix_mod_version_mod_id", table_name="mod_version")
    op.drop_table("mod_version")
    op.drop_index("ix_mod_dependency_mod_id", table_name="mod_dependency")
    op.drop_table("mod_dependency")
    op.drop_index("ix_mod_preview_mod_id", table_name="mod_preview")
    op.drop_table("mod_preview")
    op.drop_index("ix_mod_cached_at", table_name="mod")
    op.drop_index("ix_mod_author_username", table_name="mod")
    op.drop_table("mod")
