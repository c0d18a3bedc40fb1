"""Build id discovery.

The workshop embeds its Next.js build id in every rendered page. Scanning is a pure
function over the page body; the strategies wrap it with the page fetches and the
listing probe used to keep the id current.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final

from modproxy.domain.ports.tokens import Discovery

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from modproxy.domain.ports.tokens import TokenStrategy

log = getLogger(__name__)

TOKEN_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r'"buildId":"([a-zA-Z0-9_\-]+)"'),
    re.compile(r"'buildId':'([a-zA-Z0-9_\-]+)'"),
    re.compile(r'buildId["\s:]+([a-zA-Z0-9_\-]+)', re.IGNORECASE),
    re.compile(r'__NEXT_DATA__[^{]*\{[^}]*"buildId":"([^"]+)"'),
    re.compile(r"_next/data/([a-zA-Z0-9_\-]+)/"),
)
TOKEN_SHAPE: Final[re.Pattern[str]] = re.compile(r"^[a-zA-Z0-9_\-]{10,}$")


def is_valid_build_id(candidate: str) -> bool:
    return TOKEN_SHAPE.fullmatch(candidate) is not None


def scan_build_id(body: bytes | str) -> str | None:
    """Return the first pattern match that also has the shape of a build id."""

    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    for pattern in TOKEN_PATTERNS:
        match = pattern.search(text)
        if match is None:
            continue
        candidate = match.group(1)
        if is_valid_build_id(candidate):
            return candidate
        log.debug("Rejected build id candidate %r from %s", candidate, pattern.pattern)
    return None


@dataclass(frozen=True, slots=True)
class PageScanStrategy:
    name: str
    path: str
    fetch_page: Callable[[str], Awaitable[str]]

    async def __call__(self, current: str) -> Discovery | None:  # noqa: ARG002
        body = await self.fetch_page(self.path)
        token = scan_build_id(body)
        if token is None:
            log.info("No build id found on %s", self.path)
            return None
        return Discovery(token)


@dataclass(frozen=True, slots=True)
class ListingProbeStrategy:
    probe_listing: Callable[[str], Awaitable[None]]
    name: str = "listing-probe"

    async def __call__(self, current: str) -> Discovery | None:
        await self.probe_listing(current)
        return Discovery(current, confirmed_only=True)


def default_strategies(
    *,
    fetch_page: Callable[[str], Awaitable[str]],
    probe_listing: Callable[[str], Awaitable[None]],
    probe_item_id: str,
) -> tuple[TokenStrategy, ...]:
    return (
        PageScanStrategy("item-page", f"/workshop/{probe_item_id}", fetch_page),
        PageScanStrategy("landing-page", "/workshop", fetch_page),
        ListingProbeStrategy(probe_listing),
    )


__all__ = [
    "TOKEN_PATTERNS",
    "TOKEN_SHAPE",
    "ListingProbeStrategy",
    "PageScanStrategy",
    "default_strategies",
    "is_valid_build_id",
    "scan_build_id",
]
