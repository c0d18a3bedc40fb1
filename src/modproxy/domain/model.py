"""Domain model for cached workshop items."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

MAX_VERSIONS: Final[int] = 5


@dataclass(frozen=True, slots=True)
class Dependency:
    dependency_id: str
    name: str | None = None
    file_size: int | None = None


@dataclass(frozen=True, slots=True)
class ItemVersion:
    version_number: str
    version_size: int | None = None
    release_date: datetime | None = None
    is_current: bool = False


@dataclass(frozen=True, slots=True)
class Item:
    """One workshop catalog entry.

    ``versions`` is ordered most recent first. An empty tuple means "no version data
    supplied" rather than "no versions exist"; the cache never erases stored history
    because of it.
    """

    id: str
    name: str
    summary: str = ""
    current_version_number: str | None = None
    current_version_size: int | None = None
    author: str | None = None
    previews: tuple[str, ...] = ()
    dependencies: tuple[Dependency, ...] = ()
    versions: tuple[ItemVersion, ...] = ()
    created_at: datetime | None = None
    updated_at: datetime | None = None
    cached_at: datetime | None = field(default=None, compare=False)
    versions_updated_at: datetime | None = field(default=None, compare=False)

    @property
    def current_version(self) -> ItemVersion | None:
        for version in self.versions:
            if version.is_current:
                return version
        return None

    def with_versions(self, versions: Iterable[ItemVersion]) -> Item:
        return replace(self, versions=normalize_versions(versions))

    def seed_versions(self) -> tuple[ItemVersion, ...]:
        """Return the single-entry history derived from the current version fields."""

        if not self.current_version_number:
            return ()
        return (
            ItemVersion(
                version_number=self.current_version_number,
                version_size=self.current_version_size,
                release_date=self.updated_at,
                is_current=True,
            ),
        )


def normalize_versions(versions: Iterable[ItemVersion]) -> tuple[ItemVersion, ...]:
    """Bound, deduplicate and mark exactly one current version.

    Entries without a version number are dropped and duplicates keep their first
    (most recent) position. The first entry flagged as current wins; without any flag
    the head of the list is current.
    """

    kept: list[ItemVersion] = []
    seen: set[str] = set()
    for version in versions:
        if not version.version_number or version.version_number in seen:
            continue
        seen.add(version.version_number)
        kept.append(version)
        if len(kept) == MAX_VERSIONS:
            break

    if not kept:
        return ()

    current_index = next((index for index, v in enumerate(kept) if v.is_current), 0)
    return tuple(
        replace(version, is_current=index == current_index) for index, version in enumerate(kept)
    )


def unique_dependencies(dependencies: Iterable[Dependency]) -> tuple[Dependency, ...]:
    seen: set[str] = set()
    unique: list[Dependency] = []
    for dependency in dependencies:
        if not dependency.dependency_id or dependency.dependency_id in seen:
            continue
        seen.add(dependency.dependency_id)
        unique.append(dependency)
    return tuple(unique)


@dataclass(frozen=True, slots=True)
class SearchQuery:
    page: int = 1
    text: str = ""
    sort: str = "popularity"

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("Search page must be >= 1")


@dataclass(frozen=True, slots=True)
class SearchPage:
    """One page of the upstream listing, rows kept in upstream shape."""

    page: int
    rows: tuple[dict[str, object], ...]
    total: int | None = None


@dataclass(frozen=True, slots=True)
class ItemStatus:
    """Listing state of an id: public in the API, unlisted (page only), or missing."""

    item_id: str
    exists: bool
    is_listed: bool

    @property
    def is_unlisted(self) -> bool:
        return self.exists and not self.is_listed


@dataclass(frozen=True, slots=True)
class CacheStats:
    items: int
    previews: int
    dependencies: int
    versions: int
    recently_cached: int


__all__ = [
    "MAX_VERSIONS",
    "CacheStats",
    "Dependency",
    "Item",
    "ItemStatus",
    "ItemVersion",
    "SearchPage",
    "SearchQuery",
    "normalize_versions",
    "unique_dependencies",
]
