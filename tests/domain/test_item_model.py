from __future__ import annotations

import pytest

from modproxy.domain.model import (
    MAX_VERSIONS,
    Dependency,
    ItemStatus,
    ItemVersion,
    SearchQuery,
    normalize_versions,
    unique_dependencies,
)
from tests.support.catalog import make_item


def test_normalize_versions_marks_head_current() -> None:
    versions = normalize_versions(
        [ItemVersion("1.2.0"), ItemVersion("1.1.0"), ItemVersion("1.0.0")]
    )

    assert [v.version_number for v in versions] == ["1.2.0", "1.1.0", "1.0.0"]
    assert [v.is_current for v in versions] == [True, False, False]


def test_normalize_versions_keeps_first_flagged_current() -> None:
    versions = normalize_versions(
        [
            ItemVersion("2.0.0-beta"),
            ItemVersion("1.9.0", is_current=True),
            ItemVersion("1.8.0", is_current=True),
        ]
    )

    assert [v.is_current for v in versions] == [False, True, False]


def test_normalize_versions_bounds_and_deduplicates() -> None:
    raw = [ItemVersion("1.0.0"), ItemVersion("1.0.0"), ItemVersion("")]
    raw += [ItemVersion(f"0.{minor}") for minor in range(10)]

    versions = normalize_versions(raw)

    assert len(versions) == MAX_VERSIONS
    assert versions[0].version_number == "1.0.0"
    assert len({v.version_number for v in versions}) == MAX_VERSIONS
    assert sum(v.is_current for v in versions) == 1


def test_normalize_versions_empty() -> None:
    assert normalize_versions([]) == ()
    assert normalize_versions([ItemVersion("")]) == ()


def test_seed_versions_from_current_fields() -> None:
    item = make_item("A1", current="3.0.1")

    (seed,) = item.seed_versions()

    assert seed.version_number == "3.0.1"
    assert seed.version_size == item.current_version_size
    assert seed.release_date == item.updated_at
    assert seed.is_current


def test_seed_versions_without_current_version() -> None:
    assert make_item("A1", current=None).seed_versions() == ()


def test_current_version_property() -> None:
    item = make_item("A1").with_versions([ItemVersion("2.0"), ItemVersion("1.0")])

    assert item.current_version == ItemVersion("2.0", is_current=True)


def test_unique_dependencies_drops_duplicates_and_blanks() -> None:
    deps = unique_dependencies(
        [Dependency("B2", "Base"), Dependency(""), Dependency("B2", "Other"), Dependency("C3")]
    )

    assert deps == (Dependency("B2", "Base"), Dependency("C3"))


def test_search_query_rejects_page_zero() -> None:
    with pytest.raises(ValueError, match="page"):
        SearchQuery(page=0)


def test_item_status_unlisted() -> None:
    assert ItemStatus("A1", exists=True, is_listed=False).is_unlisted
    assert not ItemStatus("A1", exists=True, is_listed=True).is_unlisted
    assert not ItemStatus("A1", exists=False, is_listed=False).is_unlisted
