"""Ports for fetching catalog data from the upstream workshop."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from modproxy.domain.model import Item, ItemStatus, ItemVersion, SearchPage, SearchQuery


@runtime_checkable
class CatalogClient(Protocol):
    """Token-addressed access to the upstream catalog.

    ``fetch_item``, ``search`` and ``probe_listing`` raise ``UpstreamError`` subclasses.
    ``fetch_version_history`` never raises: any failure yields an empty list.
    """

    async def fetch_item(self, item_id: str, token: str) -> Item: ...

    async def search(self, query: SearchQuery, token: str) -> SearchPage: ...

    async def fetch_version_history(self, item_id: str, token: str) -> list[ItemVersion]: ...

    async def probe_listing(self, token: str) -> None: ...

    async def check_item(self, item_id: str, token: str) -> ItemStatus: ...


__all__ = ["CatalogClient"]
