"""Ports for persisting cached items."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from modproxy.domain.model import CacheStats, Item, ItemVersion


@runtime_checkable
class ItemStore(Protocol):
    """Durable keyed storage for items. Implementations raise ``StoreError`` on failure.

    Every write is atomic: either the whole call lands or the previous record stays
    intact.
    """

    def get_item(self, item_id: str) -> Item | None: ...

    def get_items(self, item_ids: Sequence[str]) -> dict[str, Item]: ...

    def upsert_item(
        self,
        item: Item,
        *,
        cached_at: datetime,
        versions: Sequence[ItemVersion] | None = None,
        seed_versions: Sequence[ItemVersion] | None = None,
    ) -> None:
        """Replace core fields, previews and dependencies.

        ``versions`` replaces the version group when given. Otherwise ``seed_versions``
        is stored only if the item has no version rows yet.
        """
        ...

    def replace_versions(
        self,
        item_id: str,
        versions: Sequence[ItemVersion],
        *,
        written_at: datetime,
    ) -> bool:
        """Replace the version group; returns ``False`` if the item is unknown."""
        ...

    def last_versions_write_time(self, item_id: str) -> datetime | None: ...

    def purge_older_than(self, cutoff: datetime) -> int: ...

    def stats(self, *, since: datetime) -> CacheStats: ...


__all__ = ["ItemStore"]
