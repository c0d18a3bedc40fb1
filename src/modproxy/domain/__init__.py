"""Domain layer: model, ports and the cache/token/reconciliation services."""

from __future__ import annotations

from .errors import (
    FailureKind,
    InvalidRequestError,
    StoreError,
    TokenPersistenceError,
    UpstreamError,
    UpstreamNotFoundError,
    UpstreamServerError,
    UpstreamTimeoutError,
)
from .item_cache import ItemCache
from .model import (
    CacheStats,
    Dependency,
    Item,
    ItemStatus,
    ItemVersion,
    SearchPage,
    SearchQuery,
)
from .reconciler import ItemLookup, ItemSource, Reconciler, ResolveResult, ResolveStats
from .tokens import RefreshStatus, TokenRefresh, TokenResolver, TokenStatus, call_with_token

__all__ = [
    "CacheStats",
    "Dependency",
    "FailureKind",
    "InvalidRequestError",
    "Item",
    "ItemCache",
    "ItemLookup",
    "ItemSource",
    "ItemStatus",
    "ItemVersion",
    "Reconciler",
    "RefreshStatus",
    "ResolveResult",
    "ResolveStats",
    "SearchPage",
    "SearchQuery",
    "StoreError",
    "TokenPersistenceError",
    "TokenRefresh",
    "TokenResolver",
    "TokenStatus",
    "UpstreamError",
    "UpstreamNotFoundError",
    "UpstreamServerError",
    "UpstreamTimeoutError",
    "call_with_token",
]
