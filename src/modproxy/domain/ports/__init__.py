"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import CatalogClient
from .persistence import ItemStore
from .tokens import Discovery, TokenRepository, TokenStrategy

__all__ = [
    "CatalogClient",
    "Discovery",
    "ItemStore",
    "TokenRepository",
    "TokenStrategy",
]
