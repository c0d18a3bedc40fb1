"""Item cache with field-level staleness.

Core fields, previews and dependencies are permanent once written. Only the version
field-group carries its own write timestamp and expires after ``versions_ttl``.
Persistence failures never reach callers: reads degrade to "absent", writes report
``False``.
"""

from __future__ import annotations

import asyncio
import weakref
from datetime import timedelta
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from modproxy.domain.clock import utcnow
from modproxy.domain.errors import StoreError
from modproxy.domain.model import normalize_versions

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence
    from concurrent.futures import Executor
    from datetime import datetime

    from modproxy.domain.clock import Clock
    from modproxy.domain.model import CacheStats, Item, ItemVersion
    from modproxy.domain.ports.persistence import ItemStore

log = getLogger(__name__)

DEFAULT_VERSIONS_TTL = timedelta(hours=1)
MIN_PURGE_HORIZON = timedelta(days=365)
RECENT_WINDOW = timedelta(hours=24)


class ItemCache:
    def __init__(
        self,
        store: ItemStore,
        *,
        versions_ttl: timedelta = DEFAULT_VERSIONS_TTL,
        purge_horizon: timedelta = MIN_PURGE_HORIZON,
        clock: Clock = utcnow,
        executor: Executor | None = None,
    ) -> None:
        self._store = store
        if purge_horizon < MIN_PURGE_HORIZON:
            raise ValueError(f"Purge horizon must be at least {MIN_PURGE_HORIZON.days} days")
        self._versions_ttl = versions_ttl
        self._purge_horizon = purge_horizon
        self._clock = clock
        self._executor = executor
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    @property
    def versions_ttl(self) -> timedelta:
        return self._versions_ttl

    def now(self) -> datetime:
        return self._clock()

    async def get(self, item_id: str) -> Item | None:
        try:
            return await self._run(self._store.get_item, item_id)
        except StoreError as exc:
            log.warning("Cache read failed for %s, treating as miss: %s", item_id, exc)
            return None

    async def get_many(self, item_ids: Iterable[str]) -> dict[str, Item]:
        ids = list(dict.fromkeys(item_ids))
        if not ids:
            return {}
        try:
            return await self._run(self._store.get_items, ids)
        except StoreError as exc:
            log.warning("Batch cache read failed for %d ids, treating as misses: %s", len(ids), exc)
            return {}

    async def put(self, item: Item, *, at: datetime | None = None) -> bool:
        """Write the whole item atomically.

        Versions carried by ``item`` replace the stored group. Without any, a single
        synthetic entry is seeded from the current version fields unless version rows
        already exist.
        """

        written_at = at or self._clock()
        versions = normalize_versions(item.versions) or None
        async with self._lock_for(item.id):
            try:
                await self._run(
                    self._store.upsert_item,
                    item,
                    cached_at=written_at,
                    versions=versions,
                    seed_versions=None if versions else item.seed_versions(),
                )
            except StoreError as exc:
                log.warning("Cache write failed for %s: %s", item.id, exc)
                return False
        log.debug("Cached %s (%s versions)", item.id, len(versions) if versions else "seed")
        return True

    async def put_versions(
        self,
        item_id: str,
        versions: Sequence[ItemVersion],
        *,
        at: datetime | None = None,
    ) -> bool:
        normalized = normalize_versions(versions)
        if not normalized:
            return False
        written_at = at or self._clock()
        async with self._lock_for(item_id):
            try:
                stored = await self._run(
                    self._store.replace_versions,
                    item_id,
                    normalized,
                    written_at=written_at,
                )
            except StoreError as exc:
                log.warning("Version write failed for %s: %s", item_id, exc)
                return False
        if not stored:
            log.info("Skipped version write for unknown item %s", item_id)
        return stored

    async def is_versions_stale(self, item_id: str) -> bool:
        try:
            written_at = await self._run(self._store.last_versions_write_time, item_id)
        except StoreError as exc:
            # a broken store must not turn every hit into an upstream refresh
            log.warning("Could not read version timestamp for %s: %s", item_id, exc)
            return False
        if written_at is None:
            return True
        return self._clock() - written_at >= self._versions_ttl

    async def purge_expired(self, horizon: timedelta | None = None) -> int:
        horizon = horizon if horizon is not None else self._purge_horizon
        if horizon < MIN_PURGE_HORIZON:
            raise ValueError(f"Purge horizon must be at least {MIN_PURGE_HORIZON.days} days")
        cutoff = self._clock() - horizon
        removed = await self._run(self._store.purge_older_than, cutoff)
        log.info("Purged %d items cached before %s", removed, cutoff.isoformat())
        return removed

    async def stats(self) -> CacheStats | None:
        try:
            return await self._run(self._store.stats, since=self._clock() - RECENT_WINDOW)
        except StoreError as exc:
            log.warning("Could not collect cache stats: %s", exc)
            return None

    def _lock_for(self, item_id: str) -> asyncio.Lock:
        lock = self._locks.get(item_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[item_id] = lock
        return lock

    async def _run[T](self, func: Callable[..., T], *args: object, **kwargs: object) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, partial(func, *args, **kwargs))


__all__ = ["DEFAULT_VERSIONS_TTL", "MIN_PURGE_HORIZON", "RECENT_WINDOW", "ItemCache"]
