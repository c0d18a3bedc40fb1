from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from modproxy.adapters.workshop.schema import ChangelogResponse
from modproxy.adapters.workshop.translator import (
    DEPENDENCY_EXTRACTORS,
    DependencyExtractor,
    extract_dependencies,
    parse_item,
    parse_versions,
)
from modproxy.domain.model import Dependency

WorkshopPayload = dict[str, object]


def test_parse_item_maps_core_fields(asset_payload: WorkshopPayload) -> None:
    item = parse_item(asset_payload)

    assert item.id == "5965550F24A0C152"
    assert item.name == "Where Am I"
    assert item.author == "bacon"
    assert item.current_version_number == "1.2.0"
    assert item.current_version_size == 2048
    assert item.previews == ("https://cdn.test/preview-1.png",)
    assert item.updated_at == datetime(2025, 5, 1, 10, tzinfo=UTC)
    assert item.versions == ()


def test_parse_item_reads_nested_and_flat_dependencies(asset_payload: WorkshopPayload) -> None:
    item = parse_item(asset_payload)

    assert item.dependencies == (
        Dependency("DEP0000000000001", "Core Library", 100),
        Dependency("DEP0000000000002", "Flat Dependency", 50),
    )


def test_parse_item_coerces_numeric_version(asset_payload: WorkshopPayload) -> None:
    asset_payload["currentVersionNumber"] = 3

    assert parse_item(asset_payload).current_version_number == "3"


def test_parse_item_without_id_fails() -> None:
    with pytest.raises(ValidationError):
        parse_item({"name": "No id"})


def test_first_non_empty_extractor_wins() -> None:
    payload = {
        "contentPacks": [],
        "dependencies": [{"id": "FROM_DEPENDENCIES"}],
        "requiredAssets": [{"id": "FROM_REQUIRED"}],
    }

    assert extract_dependencies(payload) == (Dependency("FROM_DEPENDENCIES"),)


def test_extractor_order_is_configurable() -> None:
    payload = {
        "dependencies": [{"id": "FROM_DEPENDENCIES"}],
        "requiredAssets": [{"id": "FROM_REQUIRED"}],
    }
    by_name = {extractor.name: extractor for extractor in DEPENDENCY_EXTRACTORS}
    extractors: list[DependencyExtractor] = [by_name["requiredAssets"], by_name["dependencies"]]

    assert extract_dependencies(payload, extractors) == (Dependency("FROM_REQUIRED"),)


def test_dependency_entries_without_id_are_skipped() -> None:
    payload = {
        "contentPacks": [
            {"name": "anonymous"},
            "not-a-mapping",
            {"asset": {"id": "PACK1"}},
            {"asset": {"id": "PACK1"}},
        ]
    }

    assert extract_dependencies(payload) == (Dependency("PACK1"),)


def test_no_dependency_keys_yields_empty() -> None:
    assert extract_dependencies({"id": "X"}) == ()


def test_parse_versions_maps_newest_entries(changelog_payload: WorkshopPayload) -> None:
    response = ChangelogResponse.model_validate(changelog_payload)

    versions = parse_versions(response.page_props.versions)

    assert [v.version_number for v in versions] == ["1.2.0", "1.1.0", "110", "1.0.0"]
    assert [v.is_current for v in versions] == [True, False, False, False]
    assert versions[0].version_size == 2048
    assert versions[1].version_size == 1900
    assert versions[1].release_date == datetime(2025, 3, 1, tzinfo=UTC)


def test_parse_versions_empty() -> None:
    assert parse_versions([]) == []
