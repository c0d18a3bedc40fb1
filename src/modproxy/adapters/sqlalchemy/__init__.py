"""SQLAlchemy adapter package for the item store."""

from __future__ import annotations

from .engine import (
    StartupError,
    configured_engine,
    create_store_engine,
    is_started,
    open_store,
    shutdown,
    startup,
)
from .mappings import create_all_tables, metadata
from .store import SqlAlchemyItemStore

__all__ = [
    "SqlAlchemyItemStore",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "create_store_engine",
    "is_started",
    "metadata",
    "open_store",
    "shutdown",
    "startup",
]
