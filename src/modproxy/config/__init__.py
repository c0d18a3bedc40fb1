"""Application configuration helpers."""

from __future__ import annotations

from .cache import ItemCacheConfig, get_item_cache_config
from .env import env_float, env_int, env_str
from .errors import ConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .workshop import WorkshopConfig, get_workshop_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "ItemCacheConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "WorkshopConfig",
    "configure_logging",
    "env_float",
    "env_int",
    "env_str",
    "get_database_config",
    "get_item_cache_config",
    "get_storage_config",
    "get_workshop_config",
]
