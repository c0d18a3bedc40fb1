"""Engine lifecycle for the SQLAlchemy item store."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, event, make_url
from sqlalchemy.pool import StaticPool

from modproxy.config.storage import get_database_config

from .migrations import upgrade_head
from .store import SqlAlchemyItemStore

if TYPE_CHECKING:
    from sqlite3 import Connection as SQLiteConnection

    from sqlalchemy.engine import Engine
    from sqlalchemy.pool import ConnectionPoolEntry

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the item store is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    engine: Engine | None = None


_STATE = _AdapterState()


def create_store_engine(database_uri: str) -> Engine:
    """Create an engine, tuned for SQLite when the URI points at it."""

    url = make_url(database_uri)
    if url.get_backend_name() != "sqlite":
        return create_engine(url, future=True, pool_pre_ping=True)

    if url.database in {None, "", ":memory:"}:
        engine = create_engine(
            url,
            future=True,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_engine(
            url,
            future=True,
            connect_args={"check_same_thread": False, "timeout": 30},
        )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(  # pyright: ignore[reportUnusedFunction]
        dbapi_connection: SQLiteConnection,
        connection_record: ConnectionPoolEntry,
    ) -> None:
        _ = connection_record
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Initialise the engine and bring the schema up to date."""

    if _STATE.engine is not None and not force:
        raise StartupError("Item store already initialised. Pass force=True to reconfigure.")

    resolved_engine = engine or create_store_engine(database_uri or get_database_config().uri)
    upgrade_head(engine=resolved_engine)
    log.info("Item store ready on %s", resolved_engine.url.render_as_string(hide_password=True))

    _STATE.engine = resolved_engine
    return resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


def open_store() -> SqlAlchemyItemStore:
    if _STATE.engine is None:
        raise StartupError(
            "Item store not initialised. Call modproxy.adapters.sqlalchemy.startup() first."
        )
    return SqlAlchemyItemStore(_STATE.engine)


__all__ = [
    "StartupError",
    "configured_engine",
    "create_store_engine",
    "is_started",
    "open_store",
    "shutdown",
    "startup",
]
