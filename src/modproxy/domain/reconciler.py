"""Batch reconciliation of requested ids against the cache and the upstream catalog."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, replace
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from modproxy.domain.errors import InvalidRequestError, UpstreamError
from modproxy.domain.model import normalize_versions
from modproxy.domain.tokens import call_with_token

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from modproxy.domain.item_cache import ItemCache
    from modproxy.domain.model import Item, ItemVersion
    from modproxy.domain.ports.fetching import CatalogClient
    from modproxy.domain.tokens import TokenResolver

log = getLogger(__name__)

DEFAULT_CONCURRENCY = 15


class ItemSource(StrEnum):
    CACHE = "cache"
    REFRESHED = "refreshed"
    UPSTREAM = "upstream"


@dataclass(frozen=True, slots=True)
class ResolveStats:
    hit_count: int
    fetched_count: int
    refreshed_version_count: int
    failed_ids: tuple[str, ...]
    duration_seconds: float


@dataclass(frozen=True, slots=True)
class ResolveResult:
    items: Mapping[str, Item]
    stats: ResolveStats


@dataclass(frozen=True, slots=True)
class ItemLookup:
    item: Item
    source: ItemSource
    versions_refreshed: bool = False


@dataclass(slots=True)
class _Outcome:
    item: Item | None
    source: ItemSource | None = None
    versions_refreshed: bool = False
    error: UpstreamError | None = None


class Reconciler:
    """Turns a set of requested ids into a best-effort complete set of items.

    Hits are served from the cache, stale version groups are refreshed in place and
    misses are fetched, written through and included. Each id runs as its own task
    under a shared concurrency bound; a failing id ends up in ``failed_ids`` without
    touching its siblings.
    """

    def __init__(
        self,
        *,
        cache: ItemCache,
        client: CatalogClient,
        resolver: TokenResolver,
        max_concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._cache = cache
        self._client = client
        self._resolver = resolver
        self._max_concurrency = max_concurrency

    async def resolve(self, item_ids: Iterable[str]) -> ResolveResult:
        started = time.perf_counter()
        ids = _clean_ids(item_ids)

        cached = await self._cache.get_many(ids)
        semaphore = asyncio.Semaphore(self._max_concurrency)
        async with asyncio.TaskGroup() as group:
            tasks = {
                item_id: group.create_task(self._bounded(semaphore, item_id, cached.get(item_id)))
                for item_id in ids
            }

        items: dict[str, Item] = {}
        failed: list[str] = []
        fetched = refreshed = 0
        for item_id, task in tasks.items():
            outcome = task.result()
            if outcome.item is None:
                failed.append(item_id)
                continue
            items[item_id] = outcome.item
            if outcome.source is ItemSource.UPSTREAM:
                fetched += 1
            elif outcome.source is ItemSource.REFRESHED:
                refreshed += 1

        stats = ResolveStats(
            hit_count=sum(1 for item_id in ids if item_id in cached),
            fetched_count=fetched,
            refreshed_version_count=refreshed,
            failed_ids=tuple(failed),
            duration_seconds=time.perf_counter() - started,
        )
        log.info(
            "Resolved %d ids: %d hits, %d fetched, %d refreshed, %d failed in %.2fs",
            len(ids),
            stats.hit_count,
            stats.fetched_count,
            stats.refreshed_version_count,
            len(stats.failed_ids),
            stats.duration_seconds,
        )
        return ResolveResult(items=items, stats=stats)

    async def resolve_one(self, item_id: str, *, force_refresh: bool = False) -> ItemLookup:
        """Resolve a single id, raising the upstream error when it cannot be served."""

        (item_id,) = _clean_ids([item_id])
        if force_refresh:
            previous = await self._cache.get(item_id)
            outcome = await self._fetch(item_id, previous=previous)
        else:
            outcome = await self._reconcile(item_id, await self._cache.get(item_id))

        if outcome.item is None or outcome.source is None:
            raise outcome.error or UpstreamError(f"Item {item_id} could not be resolved")
        return ItemLookup(outcome.item, outcome.source, outcome.versions_refreshed)

    async def _bounded(
        self,
        semaphore: asyncio.Semaphore,
        item_id: str,
        cached: Item | None,
    ) -> _Outcome:
        async with semaphore:
            try:
                return await self._reconcile(item_id, cached)
            except Exception:  # noqa: BLE001
                log.exception("Unexpected failure while resolving %s", item_id)
                return _Outcome(item=None)

    async def _reconcile(self, item_id: str, cached: Item | None) -> _Outcome:
        if cached is None:
            return await self._fetch(item_id)
        if not await self._cache.is_versions_stale(item_id):
            return _Outcome(cached, ItemSource.CACHE)
        return await self._refresh_versions(cached)

    async def _refresh_versions(self, cached: Item) -> _Outcome:
        history = await self._history(cached.id)
        if not history:
            log.debug("No fresh history for %s, serving cached versions", cached.id)
            return _Outcome(cached, ItemSource.CACHE)

        now = self._cache.now()
        if await self._cache.put_versions(cached.id, history, at=now):
            patched = replace(cached, versions=history, versions_updated_at=now)
        else:
            patched = replace(cached, versions=history)
        return _Outcome(patched, ItemSource.REFRESHED, versions_refreshed=True)

    async def _fetch(self, item_id: str, *, previous: Item | None = None) -> _Outcome:
        try:
            item = await call_with_token(
                self._resolver,
                lambda token: self._client.fetch_item(item_id, token),
            )
        except UpstreamError as exc:
            log.info("Upstream fetch failed for %s: %s", item_id, exc)
            return _Outcome(item=None, error=exc)

        history = await self._history(item_id)
        now = self._cache.now()
        stored = await self._cache.put(replace(item, versions=history), at=now)

        if history:
            versions, versions_at = history, now if stored else None
        elif previous is not None and previous.versions:
            # the store kept these rows untouched
            versions, versions_at = previous.versions, previous.versions_updated_at
        else:
            versions = item.seed_versions()
            versions_at = now if stored and versions else None
        item = replace(
            item,
            versions=versions,
            cached_at=now if stored else None,
            versions_updated_at=versions_at,
        )
        return _Outcome(item, ItemSource.UPSTREAM, versions_refreshed=bool(history))

    async def _history(self, item_id: str) -> tuple[ItemVersion, ...]:
        token = self._resolver.current_token()
        history = await self._client.fetch_version_history(item_id, token)
        return normalize_versions(history)


def _clean_ids(item_ids: Iterable[str]) -> list[str]:
    ids = [item_id.strip() for item_id in item_ids if item_id and item_id.strip()]
    if not ids:
        raise InvalidRequestError("At least one item id is required")
    return list(dict.fromkeys(ids))


__all__ = [
    "DEFAULT_CONCURRENCY",
    "ItemLookup",
    "ItemSource",
    "Reconciler",
    "ResolveResult",
    "ResolveStats",
]
