"""Application wiring and lifecycle for the catalog service."""

from __future__ import annotations

import asyncio
import contextlib
from concurrent.futures import ThreadPoolExecutor
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from modproxy.adapters.sqlalchemy import (
    SqlAlchemyItemStore,
    configured_engine,
    shutdown,
    startup,
)
from modproxy.adapters.token_file import FileTokenRepository
from modproxy.adapters.workshop import WorkshopClient, default_strategies
from modproxy.config import (
    get_database_config,
    get_item_cache_config,
    get_storage_config,
    get_workshop_config,
)
from modproxy.domain.clock import utcnow
from modproxy.domain.item_cache import ItemCache
from modproxy.domain.model import normalize_versions
from modproxy.domain.reconciler import Reconciler
from modproxy.domain.tokens import TokenResolver, call_with_token

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable, Sequence
    from concurrent.futures import Executor
    from datetime import timedelta

    from modproxy.config import ItemCacheConfig, StorageConfig, WorkshopConfig
    from modproxy.domain.clock import Clock
    from modproxy.domain.model import (
        CacheStats,
        ItemStatus,
        ItemVersion,
        SearchPage,
        SearchQuery,
    )
    from modproxy.domain.ports import (
        CatalogClient,
        ItemStore,
        TokenRepository,
        TokenStrategy,
    )
    from modproxy.domain.reconciler import ItemLookup, ResolveResult
    from modproxy.domain.tokens import TokenRefresh, TokenStatus

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TokenDiagnostics:
    """Validity of the token before and after a detection run."""

    token: str
    valid: bool
    detection: TokenRefresh
    current_token: str
    current_valid: bool
    status: TokenStatus
    check_interval_seconds: float | None


@dataclass(slots=True)
class CatalogService:
    """Operations exposed to the outer surface."""

    resolver: TokenResolver
    reconciler: Reconciler
    cache: ItemCache
    client: CatalogClient
    token_check_seconds: float | None = None

    async def get_item(self, item_id: str, *, force_refresh: bool = False) -> ItemLookup:
        return await self.reconciler.resolve_one(item_id, force_refresh=force_refresh)

    async def get_items(self, item_ids: Iterable[str]) -> ResolveResult:
        return await self.reconciler.resolve(item_ids)

    async def search(self, query: SearchQuery) -> SearchPage:
        return await call_with_token(self.resolver, lambda token: self.client.search(query, token))

    async def check_item(self, item_id: str) -> ItemStatus:
        return await self.client.check_item(item_id, self.resolver.current_token())

    async def refresh_token(self) -> TokenRefresh:
        return await self.resolver.refresh()

    def token_status(self) -> TokenStatus:
        return self.resolver.status

    async def version_history(self, item_id: str) -> tuple[ItemVersion, ...]:
        history = await self.client.fetch_version_history(
            item_id, self.resolver.current_token()
        )
        return normalize_versions(history)

    async def diagnose_token(self) -> TokenDiagnostics:
        token = self.resolver.current_token()
        valid = await self.resolver.validate()
        detection = await self.resolver.refresh()
        current_valid = await self.resolver.validate() if detection.changed else valid
        return TokenDiagnostics(
            token=token,
            valid=valid,
            detection=detection,
            current_token=self.resolver.current_token(),
            current_valid=current_valid,
            status=self.resolver.status,
            check_interval_seconds=self.token_check_seconds,
        )

    async def cache_stats(self) -> CacheStats | None:
        return await self.cache.stats()

    async def purge(self, horizon: timedelta | None = None) -> int:
        return await self.cache.purge_expired(horizon)


def build_service(
    *,
    client: CatalogClient,
    store: ItemStore,
    workshop: WorkshopConfig,
    cache_config: ItemCacheConfig,
    strategies: Sequence[TokenStrategy] = (),
    token_repository: TokenRepository | None = None,
    executor: Executor | None = None,
    clock: Clock = utcnow,
) -> CatalogService:
    resolver = TokenResolver(
        initial_token=workshop.default_build_id,
        strategies=strategies,
        repository=token_repository,
        validator=client.probe_listing,
        clock=clock,
    )
    cache = ItemCache(
        store,
        versions_ttl=cache_config.versions_ttl,
        purge_horizon=cache_config.purge_horizon,
        executor=executor,
        clock=clock,
    )
    reconciler = Reconciler(
        cache=cache,
        client=client,
        resolver=resolver,
        max_concurrency=cache_config.max_concurrency,
    )
    return CatalogService(
        resolver=resolver,
        reconciler=reconciler,
        cache=cache,
        client=client,
        token_check_seconds=workshop.token_check_seconds,
    )


@asynccontextmanager
async def open_service(
    *,
    workshop: WorkshopConfig | None = None,
    storage: StorageConfig | None = None,
    cache_config: ItemCacheConfig | None = None,
    store: ItemStore | None = None,
    client: WorkshopClient | None = None,
    refresh_on_start: bool = True,
    run_background: bool = True,
) -> AsyncIterator[CatalogService]:
    """Start the store, the HTTP clients and the token lifecycle; tear all down on exit."""

    workshop = workshop or get_workshop_config()
    storage = storage or get_storage_config()
    cache_config = cache_config or get_item_cache_config()

    async with AsyncExitStack() as stack:
        if store is None:
            database = get_database_config(storage=storage)
            engine = configured_engine()
            if engine is None:
                engine = startup(database_uri=database.uri)
                stack.callback(shutdown)
            store = SqlAlchemyItemStore(engine)
            # SQLite allows a single writer at a time
            workers = 1 if database.is_sqlite else cache_config.max_concurrency
        else:
            workers = 1
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="modproxy-store")
        stack.callback(executor.shutdown, wait=True)

        # a client passed in stays open; its owner closes it
        workshop_client = client or await stack.enter_async_context(WorkshopClient(workshop))
        service = build_service(
            client=workshop_client,
            store=store,
            workshop=workshop,
            cache_config=cache_config,
            strategies=default_strategies(
                fetch_page=workshop_client.fetch_page,
                probe_listing=workshop_client.probe_listing,
                probe_item_id=workshop.probe_item_id,
            ),
            token_repository=FileTokenRepository(storage.token_path()),
            executor=executor,
        )

        if refresh_on_start:
            outcome = await service.resolver.start()
            log.info("Startup build id check: %s (%s)", outcome.status, outcome.token)
        else:
            await service.resolver.load()

        background: asyncio.Task[None] | None = None
        if run_background and workshop.token_check_seconds:
            background = asyncio.create_task(
                service.resolver.run_periodic(workshop.token_check_seconds),
                name="modproxy-token-refresh",
            )
        try:
            yield service
        finally:
            if background is not None:
                background.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await background


__all__ = [
    "CatalogService",
    "TokenDiagnostics",
    "build_service",
    "open_service",
]
