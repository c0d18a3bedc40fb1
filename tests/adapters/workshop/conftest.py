"""Shared payloads for workshop adapter tests."""

from __future__ import annotations

import pytest

WorkshopPayload = dict[str, object]


@pytest.fixture
def asset_payload() -> WorkshopPayload:
    return {
        "id": "5965550F24A0C152",
        "name": "Where Am I",
        "summary": "Shows your position on the map",
        "currentVersionNumber": "1.2.0",
        "currentVersionSize": 2048,
        "author": {"username": "bacon"},
        "previews": [{"url": "https://cdn.test/preview-1.png"}, {"url": None}],
        "createdAt": "2024-01-01T00:00:00Z",
        "updatedAt": "2025-05-01T10:00:00Z",
        "dependencies": [
            {"asset": {"id": "DEP0000000000001", "name": "Core Library"}, "totalFileSize": 100},
            {"id": "DEP0000000000002", "name": "Flat Dependency", "fileSize": 50},
        ],
    }


@pytest.fixture
def item_payload(asset_payload: WorkshopPayload) -> WorkshopPayload:
    return {"pageProps": {"asset": asset_payload}}


@pytest.fixture
def changelog_payload() -> WorkshopPayload:
    return {
        "pageProps": {
            "versions": [
                {"version": "1.2.0", "totalFileSize": 2048, "createdAt": "2025-05-01T10:00:00Z"},
                {
                    "versionNumber": "1.1.0",
                    "versionSize": 1900,
                    "releaseDate": "2025-03-01T00:00:00Z",
                },
                {"version": 110, "totalFileSize": 1800},
                {"totalFileSize": 1},
                {"version": "1.0.0"},
                {"version": "0.9.0"},
                {"version": "0.8.0"},
            ]
        }
    }


@pytest.fixture
def search_payload() -> WorkshopPayload:
    return {
        "pageProps": {
            "assets": {
                "count": 2,
                "rows": [
                    {"id": "5965550F24A0C152", "name": "Where Am I"},
                    {"id": "59727DAE364DEADB", "name": "RHS Status Quo"},
                ],
            }
        }
    }
