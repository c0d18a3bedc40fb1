"""Translate workshop payloads into domain items and versions.

Dependency lists show up under different keys depending on the asset. Each key has a
named extractor; they are tried in order and the first one that yields dependencies
wins. The key list is a best-effort mapping of observed payloads.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, cast

from pydantic import ValidationError

from modproxy.domain.model import (
    MAX_VERSIONS,
    Dependency,
    Item,
    ItemVersion,
    normalize_versions,
    unique_dependencies,
)

from .schema import AssetPayload, DependencyPayload, VersionPayload

if TYPE_CHECKING:
    from collections.abc import Callable

log = getLogger(__name__)

RawPayload = Mapping[str, object]


@dataclass(frozen=True, slots=True)
class DependencyExtractor:
    name: str
    extract: Callable[[RawPayload], tuple[Dependency, ...]]


def _list_field(field_name: str) -> Callable[[RawPayload], tuple[Dependency, ...]]:
    def extract(payload: RawPayload) -> tuple[Dependency, ...]:
        entries = payload.get(field_name)
        if not isinstance(entries, list):
            return ()
        return unique_dependencies(
            dependency
            for dependency in map(_parse_dependency, cast(list[object], entries))
            if dependency is not None
        )

    return extract


DEPENDENCY_EXTRACTORS: tuple[DependencyExtractor, ...] = tuple(
    DependencyExtractor(name, _list_field(name))
    for name in (
        "contentPacks",
        "dependencies",
        "requiredAssets",
        "requiredDependencies",
        "dependencyAssets",
    )
)


def _parse_dependency(entry: object) -> Dependency | None:
    if not isinstance(entry, Mapping):
        return None
    try:
        payload = DependencyPayload.model_validate(entry)
    except ValidationError:
        return None
    dependency_id = payload.dependency_id
    if not dependency_id:
        return None
    return Dependency(
        dependency_id=dependency_id,
        name=payload.dependency_name,
        file_size=payload.size,
    )


def extract_dependencies(
    payload: RawPayload,
    extractors: Sequence[DependencyExtractor] = DEPENDENCY_EXTRACTORS,
) -> tuple[Dependency, ...]:
    for extractor in extractors:
        dependencies = extractor.extract(payload)
        if dependencies:
            log.debug("Using %s for %d dependencies", extractor.name, len(dependencies))
            return dependencies
    return ()


def parse_item(payload: RawPayload) -> Item:
    """Build an ``Item`` from a raw ``pageProps.asset`` mapping.

    Raises ``pydantic.ValidationError`` when the core fields do not validate.
    """

    asset = AssetPayload.model_validate(payload)
    return Item(
        id=asset.id,
        name=asset.name,
        summary=asset.summary or "",
        current_version_number=asset.current_version_number,
        current_version_size=asset.current_version_size,
        author=asset.author.username if asset.author else None,
        previews=tuple(preview.url for preview in asset.previews if preview.url),
        dependencies=extract_dependencies(payload),
        created_at=asset.created_at,
        updated_at=asset.updated_at,
    )


def parse_versions(entries: Sequence[object]) -> list[ItemVersion]:
    """Map the newest changelog entries, most recent first, head marked current."""

    versions: list[ItemVersion] = []
    for entry in entries[:MAX_VERSIONS]:
        if not isinstance(entry, Mapping):
            continue
        try:
            payload = VersionPayload.model_validate(entry)
        except ValidationError as exc:
            log.debug("Skipping malformed changelog entry: %s", exc)
            continue
        if not payload.version_number:
            continue
        versions.append(
            ItemVersion(
                version_number=payload.version_number,
                version_size=payload.version_size,
                release_date=payload.release_date,
            )
        )
    return list(normalize_versions(versions))


__all__ = [
    "DEPENDENCY_EXTRACTORS",
    "DependencyExtractor",
    "extract_dependencies",
    "parse_item",
    "parse_versions",
]
