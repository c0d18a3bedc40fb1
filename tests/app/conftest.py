"""Service fixtures wired with in-memory fakes."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from modproxy.app import build_service
from modproxy.config import ItemCacheConfig
from tests.support.catalog import (
    FakeCatalogClient,
    InMemoryItemStore,
    ScriptedStrategy,
    found,
    make_item,
    make_versions,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from modproxy.app import CatalogService
    from modproxy.config import WorkshopConfig
    from tests.support.catalog import MutableClock



@pytest.fixture
def fake_client() -> FakeCatalogClient:
    return FakeCatalogClient(
        items={"A1": make_item("A1", current="4"), "B2": make_item("B2")},
        histories={"A1": list(make_versions("4", "3"))},
        unlisted={"U5"},
        search_rows=({"id": "A1", "name": "Mod A1"},),
    )


@pytest.fixture
def service_factory(
    workshop_config: WorkshopConfig,
    clock: MutableClock,
) -> Callable[..., tuple[CatalogService, FakeCatalogClient, InMemoryItemStore]]:
    def factory(
        client: FakeCatalogClient,
        *,
        discovered: str | None = None,
    ) -> tuple[CatalogService, FakeCatalogClient, InMemoryItemStore]:
        store = InMemoryItemStore()
        strategy = ScriptedStrategy(
            "item-page",
            [found(discovered or workshop_config.default_build_id)],
        )
        service = build_service(
            client=client,
            store=store,
            workshop=workshop_config,
            cache_config=ItemCacheConfig(),
            strategies=[strategy],
            clock=clock,
        )
        return service, client, store

    return factory
