"""Item cache and reconciliation defaults."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Final

from modproxy.domain.item_cache import DEFAULT_VERSIONS_TTL, MIN_PURGE_HORIZON

from .env import env_float, env_int

DEFAULT_MAX_CONCURRENCY: Final[int] = 15


@dataclass(frozen=True, slots=True)
class ItemCacheConfig:
    versions_ttl: timedelta = DEFAULT_VERSIONS_TTL
    purge_horizon: timedelta = MIN_PURGE_HORIZON
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY


def get_item_cache_config() -> ItemCacheConfig:
    ttl_seconds = env_float(
        "MODPROXY_VERSIONS_TTL_SECONDS",
        DEFAULT_VERSIONS_TTL.total_seconds(),
        minimum=0.0,
    )
    horizon_days = env_int(
        "MODPROXY_PURGE_HORIZON_DAYS",
        MIN_PURGE_HORIZON.days,
        minimum=MIN_PURGE_HORIZON.days,
    )
    return ItemCacheConfig(
        versions_ttl=timedelta(seconds=ttl_seconds),
        purge_horizon=timedelta(days=horizon_days),
        max_concurrency=env_int("MODPROXY_MAX_CONCURRENCY", DEFAULT_MAX_CONCURRENCY, minimum=1),
    )
