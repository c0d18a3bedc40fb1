"""SQLAlchemy table metadata for cached workshop items."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Dialect,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

mod_table = Table(
    "mod",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("name", String, nullable=False),
    Column("summary", Text, nullable=True),
    Column("author_username", String, nullable=True, index=True),
    Column("current_version_number", String(64), nullable=True),
    Column("current_version_size", BigInteger, nullable=True),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=True),
    Column("cached_at", UTCDateTime(), nullable=False, index=True),
    Column("versions_updated_at", UTCDateTime(), nullable=True),
)

mod_preview_table = Table(
    "mod_preview",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("mod_id", String(64), ForeignKey("mod.id"), nullable=False, index=True),
    Column("url", Text, nullable=False),
    Column("preview_order", Integer, nullable=False, default=0),
)

mod_dependency_table = Table(
    "mod_dependency",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("mod_id", String(64), ForeignKey("mod.id"), nullable=False, index=True),
    Column("dependency_mod_id", String(64), nullable=False),
    Column("dependency_name", String, nullable=True),
    Column("file_size", BigInteger, nullable=True),
    Column("dependency_order", Integer, nullable=False, default=0),
    UniqueConstraint("mod_id", "dependency_mod_id", name="uq_mod_dependency_pair"),
)

mod_version_table = Table(
    "mod_version",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("mod_id", String(64), ForeignKey("mod.id"), nullable=False, index=True),
    Column("version_number", String(64), nullable=False),
    Column("version_size", BigInteger, nullable=True),
    Column("release_date", UTCDateTime(), nullable=True),
    Column("is_current", Boolean, nullable=False, default=False),
    Column("version_order", Integer, nullable=False, default=0),
    UniqueConstraint("mod_id", "version_number", name="uq_mod_version_number"),
)

CHILD_TABLES = (mod_preview_table, mod_dependency_table, mod_version_table)


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the metadata, bypassing migrations."""

    log.info("Creating all tables")
    metadata.create_all(engine)


__all__ = [
    "CHILD_TABLES",
    "UTCDateTime",
    "create_all_tables",
    "metadata",
    "mod_dependency_table",
    "mod_preview_table",
    "mod_table",
    "mod_version_table",
]
