"""Reusable fakes for cache, token and reconciliation tests."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from modproxy.domain.errors import (
    StoreError,
    TokenPersistenceError,
    UpstreamError,
    UpstreamNotFoundError,
)
from modproxy.domain.model import (
    CacheStats,
    Dependency,
    Item,
    ItemStatus,
    ItemVersion,
    SearchPage,
    SearchQuery,
    normalize_versions,
)
from modproxy.domain.ports.tokens import Discovery

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

START = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


@dataclass(slots=True)
class MutableClock:
    now: datetime = START

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


def make_versions(*numbers: str) -> tuple[ItemVersion, ...]:
    """Versions most recent first; the head is current."""

    return normalize_versions(ItemVersion(version_number=number) for number in numbers)


def make_item(
    item_id: str = "A1",
    *,
    name: str | None = None,
    current: str | None = "1.0.0",
    versions: Iterable[ItemVersion] = (),
    dependencies: Iterable[Dependency] = (),
    previews: Iterable[str] = (),
) -> Item:
    return Item(
        id=item_id,
        name=name or f"Mod {item_id}",
        summary=f"Summary of {item_id}",
        current_version_number=current,
        current_version_size=1024,
        author="builder",
        previews=tuple(previews),
        dependencies=tuple(dependencies),
        versions=tuple(versions),
        updated_at=START - timedelta(days=3),
    )


@dataclass(slots=True)
class InMemoryItemStore:
    """Dictionary-backed ``ItemStore`` with switchable failures."""

    items: dict[str, Item] = field(default_factory=dict)
    fail_reads: bool = False
    fail_writes: bool = False
    writes: list[str] = field(default_factory=list)
    version_writes: list[str] = field(default_factory=list)

    def seed(
        self,
        item: Item,
        *,
        cached_at: datetime,
        versions_updated_at: datetime | None,
    ) -> None:
        self.items[item.id] = replace(
            item,
            versions=normalize_versions(item.versions),
            cached_at=cached_at,
            versions_updated_at=versions_updated_at,
        )

    def get_item(self, item_id: str) -> Item | None:
        self._check_read()
        return self.items.get(item_id)

    def get_items(self, item_ids: Sequence[str]) -> dict[str, Item]:
        self._check_read()
        return {item_id: self.items[item_id] for item_id in item_ids if item_id in self.items}

    def upsert_item(
        self,
        item: Item,
        *,
        cached_at: datetime,
        versions: Sequence[ItemVersion] | None = None,
        seed_versions: Sequence[ItemVersion] | None = None,
    ) -> None:
        self._check_write()
        existing = self.items.get(item.id)
        stored_versions = existing.versions if existing else ()
        versions_at = existing.versions_updated_at if existing else None
        if versions is not None:
            stored_versions, versions_at = tuple(versions), cached_at
        elif seed_versions and not stored_versions:
            stored_versions, versions_at = tuple(seed_versions), cached_at
        self.items[item.id] = replace(
            item,
            versions=stored_versions,
            cached_at=cached_at,
            versions_updated_at=versions_at,
        )
        self.writes.append(item.id)

    def replace_versions(
        self,
        item_id: str,
        versions: Sequence[ItemVersion],
        *,
        written_at: datetime,
    ) -> bool:
        self._check_write()
        existing = self.items.get(item_id)
        if existing is None:
            return False
        self.items[item_id] = replace(
            existing, versions=tuple(versions), versions_updated_at=written_at
        )
        self.version_writes.append(item_id)
        return True

    def last_versions_write_time(self, item_id: str) -> datetime | None:
        self._check_read()
        item = self.items.get(item_id)
        return item.versions_updated_at if item else None

    def purge_older_than(self, cutoff: datetime) -> int:
        self._check_write()
        expired = [
            item_id
            for item_id, item in self.items.items()
            if item.cached_at is not None and item.cached_at < cutoff
        ]
        for item_id in expired:
            del self.items[item_id]
        return len(expired)

    def stats(self, *, since: datetime) -> CacheStats:
        self._check_read()
        items = list(self.items.values())
        return CacheStats(
            items=len(items),
            previews=sum(len(item.previews) for item in items),
            dependencies=sum(len(item.dependencies) for item in items),
            versions=sum(len(item.versions) for item in items),
            recently_cached=sum(
                1 for item in items if item.cached_at is not None and item.cached_at >= since
            ),
        )

    def _check_read(self) -> None:
        if self.fail_reads:
            raise StoreError("database unavailable")

    def _check_write(self) -> None:
        if self.fail_writes:
            raise StoreError("database is read-only")


@dataclass(slots=True)
class FakeCatalogClient:
    """Upstream stand-in that only answers for tokens in ``valid_tokens``.

    Token-addressed calls with any other token fail the way a rotated build id does.
    """

    items: dict[str, Item] = field(default_factory=dict)
    histories: dict[str, list[ItemVersion]] = field(default_factory=dict)
    failures: dict[str, UpstreamError] = field(default_factory=dict)
    valid_tokens: set[str] = field(default_factory=lambda: {"token-current-0001"})
    unlisted: set[str] = field(default_factory=set)
    search_rows: tuple[dict[str, object], ...] = ()
    delay: float = 0.0
    fetch_calls: list[tuple[str, str]] = field(default_factory=list)
    history_calls: list[tuple[str, str]] = field(default_factory=list)
    search_calls: list[tuple[SearchQuery, str]] = field(default_factory=list)
    probe_calls: list[str] = field(default_factory=list)
    in_flight: int = 0
    peak_in_flight: int = 0

    async def fetch_item(self, item_id: str, token: str) -> Item:
        self.fetch_calls.append((item_id, token))
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
        self._check_token(token)
        if item_id in self.failures:
            raise self.failures[item_id]
        item = self.items.get(item_id)
        if item is None:
            raise UpstreamNotFoundError(
                f"Workshop returned 404 for {item_id}", status=404, token_addressed=True
            )
        return item

    async def search(self, query: SearchQuery, token: str) -> SearchPage:
        self.search_calls.append((query, token))
        self._check_token(token)
        return SearchPage(page=query.page, rows=self.search_rows, total=len(self.search_rows))

    async def fetch_version_history(self, item_id: str, token: str) -> list[ItemVersion]:
        self.history_calls.append((item_id, token))
        if token not in self.valid_tokens:
            return []
        return list(self.histories.get(item_id, []))

    async def probe_listing(self, token: str) -> None:
        self.probe_calls.append(token)
        self._check_token(token)

    async def check_item(self, item_id: str, token: str) -> ItemStatus:
        self._check_token(token)
        if item_id in self.items:
            return ItemStatus(item_id, exists=True, is_listed=True)
        return ItemStatus(item_id, exists=item_id in self.unlisted, is_listed=False)

    def _check_token(self, token: str) -> None:
        if token not in self.valid_tokens:
            raise UpstreamNotFoundError(
                f"Workshop returned 404 for build id {token}", status=404, token_addressed=True
            )


@dataclass(slots=True)
class ScriptedStrategy:
    """Token strategy returning queued outcomes; an exception instance is raised."""

    name: str
    outcomes: list[Discovery | None | Exception] = field(default_factory=list)
    delay: float = 0.0
    calls: int = 0

    async def __call__(self, current: str) -> Discovery | None:  # noqa: ARG002
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def found(token: str) -> Discovery:
    return Discovery(token)


@dataclass(slots=True)
class MemoryTokenRepository:
    token: str | None = None
    fail: bool = False
    saved: list[str] = field(default_factory=list)

    def load(self) -> str | None:
        if self.fail:
            raise TokenPersistenceError("cannot read")
        return self.token

    def save(self, token: str) -> None:
        if self.fail:
            raise TokenPersistenceError("cannot write")
        self.token = token
        self.saved.append(token)
