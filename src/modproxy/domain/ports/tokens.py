"""Ports for discovering and persisting the upstream build id."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class Discovery:
    """What a strategy learned about the build id.

    ``confirmed_only`` means the strategy merely proved the current token still works
    without observing a token of its own.
    """

    token: str
    confirmed_only: bool = False


@runtime_checkable
class TokenStrategy(Protocol):
    name: str

    async def __call__(self, current: str) -> Discovery | None: ...


@runtime_checkable
class TokenRepository(Protocol):
    """Persisted copy of the build id. Raises ``TokenPersistenceError`` on I/O failure."""

    def load(self) -> str | None: ...

    def save(self, token: str) -> None: ...


__all__ = ["Discovery", "TokenRepository", "TokenStrategy"]
