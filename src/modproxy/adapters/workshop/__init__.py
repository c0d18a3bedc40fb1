"""Public interface for the workshop adapter."""

from __future__ import annotations

from .build_id import (
    ListingProbeStrategy,
    PageScanStrategy,
    default_strategies,
    scan_build_id,
)
from .client import WorkshopClient
from .translator import DEPENDENCY_EXTRACTORS, parse_item, parse_versions

__all__ = [
    "DEPENDENCY_EXTRACTORS",
    "ListingProbeStrategy",
    "PageScanStrategy",
    "WorkshopClient",
    "default_strategies",
    "parse_item",
    "parse_versions",
    "scan_build_id",
]
