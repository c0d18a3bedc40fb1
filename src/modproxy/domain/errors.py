"""Failure taxonomy shared by the cache, token and reconciliation layers."""

from __future__ import annotations

from enum import StrEnum


class FailureKind(StrEnum):
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"
    TIMEOUT = "timeout"
    OTHER = "other"


class UpstreamError(RuntimeError):
    """Raised when a catalog request does not produce a usable payload.

    ``token_addressed`` marks requests whose path embeds the build id; a 404 or 5xx on
    those is the only observable sign that the build id rotated.
    """

    kind: FailureKind = FailureKind.OTHER

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        token_addressed: bool = False,
        kind: FailureKind | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.token_addressed = token_addressed
        if kind is not None:
            self.kind = kind

    @property
    def token_invalid(self) -> bool:
        return self.token_addressed and self.kind in {
            FailureKind.NOT_FOUND,
            FailureKind.SERVER_ERROR,
        }


class UpstreamNotFoundError(UpstreamError):
    kind = FailureKind.NOT_FOUND


class UpstreamServerError(UpstreamError):
    kind = FailureKind.SERVER_ERROR


class UpstreamTimeoutError(UpstreamError):
    kind = FailureKind.TIMEOUT


class StoreError(RuntimeError):
    """Raised by store adapters when the backing database fails."""


class TokenPersistenceError(RuntimeError):
    """Raised when the persisted build id cannot be read or written."""


class InvalidRequestError(ValueError):
    """Raised for malformed batch requests."""


__all__ = [
    "FailureKind",
    "InvalidRequestError",
    "StoreError",
    "TokenPersistenceError",
    "UpstreamError",
    "UpstreamNotFoundError",
    "UpstreamServerError",
    "UpstreamTimeoutError",
]
