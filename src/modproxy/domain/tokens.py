"""Ownership and re-derivation of the upstream build id."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from modproxy.domain.clock import utcnow
from modproxy.domain.errors import TokenPersistenceError, UpstreamError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence
    from datetime import datetime

    from modproxy.domain.clock import Clock
    from modproxy.domain.ports.tokens import TokenRepository, TokenStrategy

log = getLogger(__name__)


class RefreshStatus(StrEnum):
    ROTATED = "rotated"
    UNCHANGED = "unchanged"
    VALIDATED = "validated"
    ALREADY_ROTATED = "already_rotated"
    UNRESOLVABLE = "unresolvable"


@dataclass(frozen=True, slots=True)
class TokenRefresh:
    changed: bool
    token: str
    status: RefreshStatus
    strategy: str | None = None

    @property
    def unresolvable(self) -> bool:
        return self.status is RefreshStatus.UNRESOLVABLE


@dataclass(frozen=True, slots=True)
class TokenStatus:
    """Operator-facing view of the resolver."""

    token: str
    last_refresh: TokenRefresh | None
    last_refreshed_at: datetime | None
    unresolvable: bool


class TokenResolver:
    """Single writer of the current build id.

    Reads are plain attribute snapshots. Re-derivation is serialized: callers that queue
    up behind an in-flight re-derivation reuse its outcome instead of starting their own.
    """

    def __init__(
        self,
        *,
        initial_token: str,
        strategies: Sequence[TokenStrategy],
        repository: TokenRepository | None = None,
        validator: Callable[[str], Awaitable[None]] | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._token = initial_token
        self._strategies = tuple(strategies)
        self._repository = repository
        self._validator = validator
        self._clock = clock
        self._lock = asyncio.Lock()
        self._generation = 0
        self._last: TokenRefresh | None = None
        self._last_at: datetime | None = None

    def current_token(self) -> str:
        return self._token

    @property
    def status(self) -> TokenStatus:
        return TokenStatus(
            token=self._token,
            last_refresh=self._last,
            last_refreshed_at=self._last_at,
            unresolvable=self._last is not None and self._last.unresolvable,
        )

    async def load(self) -> None:
        """Replace the initial token with the persisted copy, if there is one."""

        if self._repository is None:
            return
        try:
            saved = await asyncio.to_thread(self._repository.load)
        except TokenPersistenceError as exc:
            log.warning("Could not read persisted build id, keeping %s: %s", self._token, exc)
            return
        if saved:
            log.info("Loaded persisted build id %s", saved)
            self._token = saved
        else:
            log.info("No persisted build id, using %s", self._token)

    async def start(self) -> TokenRefresh:
        await self.load()
        return await self.refresh()

    async def validate(self) -> bool:
        """Return whether the current token is accepted by the listing endpoint."""

        if self._validator is None:
            return True
        try:
            await self._validator(self._token)
        except UpstreamError as exc:
            log.info("Build id %s failed validation: %s", self._token, exc)
            return False
        return True

    async def refresh(self) -> TokenRefresh:
        generation = self._generation
        async with self._lock:
            if self._generation != generation and self._last is not None:
                return self._last
            result = await self._rederive()
            self._generation += 1
            self._last = result
            self._last_at = self._clock()
            return result

    async def invalidate(self, failed_token: str) -> TokenRefresh:
        """Reactive refresh after ``failed_token`` was rejected upstream."""

        if failed_token != self._token:
            return TokenRefresh(
                changed=True,
                token=self._token,
                status=RefreshStatus.ALREADY_ROTATED,
            )
        return await self.refresh()

    async def run_periodic(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            log.info("Periodic build id check")
            try:
                result = await self.refresh()
            except Exception:  # noqa: BLE001
                log.exception("Periodic build id check failed")
                continue
            log.info("Periodic build id check: %s (%s)", result.status, result.token)

    async def _rederive(self) -> TokenRefresh:
        current = self._token
        for strategy in self._strategies:
            try:
                discovery = await strategy(current)
            except UpstreamError as exc:
                log.warning("Build id strategy %s failed: %s", strategy.name, exc)
                continue
            if discovery is None:
                log.info("Build id strategy %s found nothing", strategy.name)
                continue

            if discovery.confirmed_only:
                log.info("Build id %s still valid (%s)", current, strategy.name)
                return TokenRefresh(False, current, RefreshStatus.VALIDATED, strategy.name)
            if discovery.token == current:
                log.info("Build id unchanged: %s (%s)", current, strategy.name)
                return TokenRefresh(False, current, RefreshStatus.UNCHANGED, strategy.name)

            log.info("Build id changed from %s to %s (%s)", current, discovery.token, strategy.name)
            self._token = discovery.token
            await self._persist(discovery.token)
            return TokenRefresh(True, discovery.token, RefreshStatus.ROTATED, strategy.name)

        log.error("All build id strategies failed, keeping last known build id %s", current)
        return TokenRefresh(False, current, RefreshStatus.UNRESOLVABLE)

    async def _persist(self, token: str) -> None:
        if self._repository is None:
            return
        try:
            await asyncio.to_thread(self._repository.save, token)
        except TokenPersistenceError as exc:
            log.warning("Failed to persist build id %s: %s", token, exc)


async def call_with_token[T](
    resolver: TokenResolver,
    call: Callable[[str], Awaitable[T]],
) -> T:
    """Run a token-addressed call, re-deriving the token and retrying at most once."""

    token = resolver.current_token()
    try:
        return await call(token)
    except UpstreamError as exc:
        if not exc.token_invalid:
            raise
        log.info("Upstream rejected build id %s (%s), re-deriving", token, exc.status)
        outcome = await resolver.invalidate(token)
        if not outcome.changed:
            raise
    return await call(outcome.token)


__all__ = [
    "RefreshStatus",
    "TokenRefresh",
    "TokenResolver",
    "TokenStatus",
    "call_with_token",
]
