"""Item store backed by SQLAlchemy Core."""

from __future__ import annotations

from collections import defaultdict
from contextlib import contextmanager
from itertools import batched
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from modproxy.domain.errors import StoreError
from modproxy.domain.model import (
    CacheStats,
    Dependency,
    Item,
    ItemVersion,
    unique_dependencies,
)

from .mappings import (
    CHILD_TABLES,
    mod_dependency_table,
    mod_preview_table,
    mod_table,
    mod_version_table,
)

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from datetime import datetime

    from sqlalchemy import ColumnElement, Connection, Row, Table
    from sqlalchemy.engine import Engine

log = getLogger(__name__)

ID_BATCH_SIZE = 500


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        raise StoreError(f"Failed to {action}: {exc}") from exc


class SqlAlchemyItemStore:
    """Synchronous store; every write runs in a single transaction."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def get_item(self, item_id: str) -> Item | None:
        return self.get_items([item_id]).get(item_id)

    def get_items(self, item_ids: Sequence[str]) -> dict[str, Item]:
        items: dict[str, Item] = {}
        with _store_errors("read items"), self.engine.connect() as connection:
            for chunk in batched(dict.fromkeys(item_ids), ID_BATCH_SIZE):
                items.update(_load_items(connection, list(chunk)))
        return items

    def upsert_item(
        self,
        item: Item,
        *,
        cached_at: datetime,
        versions: Sequence[ItemVersion] | None = None,
        seed_versions: Sequence[ItemVersion] | None = None,
    ) -> None:
        with _store_errors(f"write item {item.id}"), self.engine.begin() as connection:
            core = _core_values(item, cached_at)
            exists = connection.execute(
                select(mod_table.c.id).where(mod_table.c.id == item.id)
            ).first()
            if exists:
                connection.execute(update(mod_table).where(mod_table.c.id == item.id).values(core))
            else:
                connection.execute(insert(mod_table).values(id=item.id, **core))

            connection.execute(
                delete(mod_preview_table).where(mod_preview_table.c.mod_id == item.id)
            )
            connection.execute(
                delete(mod_dependency_table).where(mod_dependency_table.c.mod_id == item.id)
            )
            if item.previews:
                connection.execute(
                    insert(mod_preview_table),
                    [
                        {"mod_id": item.id, "url": url, "preview_order": order}
                        for order, url in enumerate(item.previews)
                    ],
                )
            dependencies = unique_dependencies(item.dependencies)
            if dependencies:
                connection.execute(
                    insert(mod_dependency_table),
                    [
                        {
                            "mod_id": item.id,
                            "dependency_mod_id": dependency.dependency_id,
                            "dependency_name": dependency.name,
                            "file_size": dependency.file_size,
                            "dependency_order": order,
                        }
                        for order, dependency in enumerate(dependencies)
                    ],
                )

            if versions is not None:
                _write_versions(connection, item.id, versions, cached_at)
            elif seed_versions and not _has_versions(connection, item.id):
                _write_versions(connection, item.id, seed_versions, cached_at)

    def replace_versions(
        self,
        item_id: str,
        versions: Sequence[ItemVersion],
        *,
        written_at: datetime,
    ) -> bool:
        with _store_errors(f"write versions of {item_id}"), self.engine.begin() as connection:
            exists = connection.execute(
                select(mod_table.c.id).where(mod_table.c.id == item_id)
            ).first()
            if not exists:
                return False
            _write_versions(connection, item_id, versions, written_at)
        return True

    def last_versions_write_time(self, item_id: str) -> datetime | None:
        with _store_errors(f"read version timestamp of {item_id}"), self.engine.connect() as conn:
            return conn.execute(
                select(mod_table.c.versions_updated_at).where(mod_table.c.id == item_id)
            ).scalar_one_or_none()

    def purge_older_than(self, cutoff: datetime) -> int:
        with _store_errors("purge items"), self.engine.begin() as connection:
            expired = list(
                connection.execute(
                    select(mod_table.c.id).where(mod_table.c.cached_at < cutoff)
                ).scalars()
            )
            for chunk in batched(expired, ID_BATCH_SIZE):
                ids = list(chunk)
                for table in CHILD_TABLES:
                    connection.execute(delete(table).where(table.c.mod_id.in_(ids)))
                connection.execute(delete(mod_table).where(mod_table.c.id.in_(ids)))
        if expired:
            log.info("Removed %d items cached before %s", len(expired), cutoff.isoformat())
        return len(expired)

    def stats(self, *, since: datetime) -> CacheStats:
        with _store_errors("collect stats"), self.engine.connect() as connection:
            return CacheStats(
                items=_count(connection, mod_table),
                previews=_count(connection, mod_preview_table),
                dependencies=_count(connection, mod_dependency_table),
                versions=_count(connection, mod_version_table),
                recently_cached=_count(connection, mod_table, mod_table.c.cached_at >= since),
            )


def _core_values(item: Item, cached_at: datetime) -> dict[str, object]:
    return {
        "name": item.name,
        "summary": item.summary or None,
        "author_username": item.author,
        "current_version_number": item.current_version_number,
        "current_version_size": item.current_version_size,
        "created_at": item.created_at,
        "updated_at": item.updated_at,
        "cached_at": cached_at,
    }


def _count(connection: Connection, table: Table, *criteria: ColumnElement[bool]) -> int:
    stmt = select(func.count()).select_from(table)
    if criteria:
        stmt = stmt.where(*criteria)
    return int(connection.execute(stmt).scalar_one())


def _has_versions(connection: Connection, item_id: str) -> bool:
    return (
        connection.execute(
            select(mod_version_table.c.id).where(mod_version_table.c.mod_id == item_id).limit(1)
        ).first()
        is not None
    )


def _write_versions(
    connection: Connection,
    item_id: str,
    versions: Sequence[ItemVersion],
    written_at: datetime,
) -> None:
    connection.execute(delete(mod_version_table).where(mod_version_table.c.mod_id == item_id))
    if versions:
        connection.execute(
            insert(mod_version_table),
            [
                {
                    "mod_id": item_id,
                    "version_number": version.version_number,
                    "version_size": version.version_size,
                    "release_date": version.release_date,
                    "is_current": version.is_current,
                    "version_order": order,
                }
                for order, version in enumerate(versions)
            ],
        )
    connection.execute(
        update(mod_table).where(mod_table.c.id == item_id).values(versions_updated_at=written_at)
    )


def _load_items(connection: Connection, item_ids: list[str]) -> dict[str, Item]:
    rows = connection.execute(select(mod_table).where(mod_table.c.id.in_(item_ids))).all()
    if not rows:
        return {}
    found = [row.id for row in rows]

    previews: defaultdict[str, list[str]] = defaultdict(list)
    for row in connection.execute(
        select(mod_preview_table.c.mod_id, mod_preview_table.c.url)
        .where(mod_preview_table.c.mod_id.in_(found))
        .order_by(mod_preview_table.c.mod_id, mod_preview_table.c.preview_order)
    ):
        previews[row.mod_id].append(row.url)

    dependencies: defaultdict[str, list[Dependency]] = defaultdict(list)
    for row in connection.execute(
        select(mod_dependency_table)
        .where(mod_dependency_table.c.mod_id.in_(found))
        .order_by(mod_dependency_table.c.mod_id, mod_dependency_table.c.dependency_order)
    ):
        dependencies[row.mod_id].append(
            Dependency(
                dependency_id=row.dependency_mod_id,
                name=row.dependency_name,
                file_size=row.file_size,
            )
        )

    versions: defaultdict[str, list[ItemVersion]] = defaultdict(list)
    for row in connection.execute(
        select(mod_version_table)
        .where(mod_version_table.c.mod_id.in_(found))
        .order_by(mod_version_table.c.mod_id, mod_version_table.c.version_order)
    ):
        versions[row.mod_id].append(
            ItemVersion(
                version_number=row.version_number,
                version_size=row.version_size,
                release_date=row.release_date,
                is_current=row.is_current,
            )
        )

    return {
        row.id: _row_to_item(row, previews[row.id], dependencies[row.id], versions[row.id])
        for row in rows
    }


def _row_to_item(
    row: Row[tuple[object, ...]],
    previews: list[str],
    dependencies: list[Dependency],
    versions: list[ItemVersion],
) -> Item:
    mapping = row._mapping  # noqa: SLF001
    return Item(
        id=mapping["id"],
        name=mapping["name"],
        summary=mapping["summary"] or "",
        current_version_number=mapping["current_version_number"],
        current_version_size=mapping["current_version_size"],
        author=mapping["author_username"],
        previews=tuple(previews),
        dependencies=tuple(dependencies),
        versions=tuple(versions),
        created_at=mapping["created_at"],
        updated_at=mapping["updated_at"],
        cached_at=mapping["cached_at"],
        versions_updated_at=mapping["versions_updated_at"],
    )


__all__ = ["SqlAlchemyItemStore"]
