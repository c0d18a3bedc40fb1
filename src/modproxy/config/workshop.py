"""Workshop upstream configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

from .env import env_float, env_str
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_WORKSHOP_BASE_URL: Final[str] = "https://reforger.armaplatform.com"
# Last build id known to work; only used until the first successful discovery.
DEFAULT_BUILD_ID: Final[str] = "vmu4Pw_jmzBqmxpgPhPRV"
# A long-lived public mod whose page reliably embeds the build id.
DEFAULT_PROBE_ITEM_ID: Final[str] = "659527E5E537EAA4"
DEFAULT_REQUEST_TIMEOUT_SECONDS: Final[float] = 15.0
DEFAULT_PROBE_TIMEOUT_SECONDS: Final[float] = 10.0
DEFAULT_TOKEN_CHECK_SECONDS: Final[float] = 6 * 60 * 60
DEFAULT_SEARCH_CACHE_SECONDS: Final[float] = 300.0

BROWSER_USER_AGENT: Final[str] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def _search_page_has_rows(payload: object) -> bool:
    if not isinstance(payload, dict):
        return False
    page_props = payload.get("pageProps")
    if not isinstance(page_props, dict):
        return False
    assets = page_props.get("assets")
    return isinstance(assets, dict) and bool(assets.get("rows"))


@dataclass(frozen=True, slots=True)
class WorkshopConfig:
    base_url: str = DEFAULT_WORKSHOP_BASE_URL
    default_build_id: str = DEFAULT_BUILD_ID
    probe_item_id: str = DEFAULT_PROBE_ITEM_ID
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    probe_timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS
    token_check_seconds: float | None = DEFAULT_TOKEN_CHECK_SECONDS
    api: ResilienceConfig = field(
        default_factory=lambda: _api_resilience(DEFAULT_WORKSHOP_BASE_URL)
    )
    search: ResilienceConfig = field(
        default_factory=lambda: _search_resilience(
            DEFAULT_WORKSHOP_BASE_URL, DEFAULT_SEARCH_CACHE_SECONDS
        )
    )


def _default_headers(base_url: str) -> dict[str, str]:
    return {
        "User-Agent": BROWSER_USER_AGENT,
        "Accept-Language": "en-US,en;q=0.9",
        "Referer": f"{base_url}/",
    }


def _api_resilience(
    base_url: str,
    timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
) -> ResilienceConfig:
    return ResilienceConfig(
        name="workshop",
        base_url=base_url,
        timeout_seconds=timeout,
        retry=RetryPolicy(total=2),
        ratelimit=RateLimit(max_calls=20, per_seconds=1.0),
        cache=None,
        default_headers=_default_headers(base_url),
    )


def _search_resilience(
    base_url: str,
    ttl_seconds: float,
    timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
) -> ResilienceConfig:
    return ResilienceConfig(
        name="workshop-search",
        base_url=base_url,
        timeout_seconds=timeout,
        retry=RetryPolicy(total=2),
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        cache=CacheConfig(
            enabled=ttl_seconds > 0,
            backend="memory",
            default_ttl_seconds=ttl_seconds,
            should_cache=_search_page_has_rows,
        ),
        default_headers=_default_headers(base_url),
    )


def get_workshop_config() -> WorkshopConfig:
    base_url = env_str("MODPROXY_WORKSHOP_URL", DEFAULT_WORKSHOP_BASE_URL).rstrip("/")
    timeout = env_float(
        "MODPROXY_REQUEST_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT_SECONDS, minimum=1.0
    )
    check_seconds = env_float(
        "MODPROXY_TOKEN_CHECK_SECONDS", DEFAULT_TOKEN_CHECK_SECONDS, minimum=0.0
    )
    search_ttl = env_float(
        "MODPROXY_SEARCH_CACHE_SECONDS", DEFAULT_SEARCH_CACHE_SECONDS, minimum=0.0
    )
    return WorkshopConfig(
        base_url=base_url,
        default_build_id=env_str("MODPROXY_BUILD_ID", DEFAULT_BUILD_ID),
        probe_item_id=env_str("MODPROXY_PROBE_ITEM_ID", DEFAULT_PROBE_ITEM_ID),
        request_timeout_seconds=timeout,
        probe_timeout_seconds=env_float(
            "MODPROXY_PROBE_TIMEOUT_SECONDS", DEFAULT_PROBE_TIMEOUT_SECONDS, minimum=1.0
        ),
        token_check_seconds=check_seconds or None,
        api=_api_resilience(base_url, timeout),
        search=_search_resilience(base_url, search_ttl, timeout),
    )
