from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.engine import Engine  # noqa: TC002

from modproxy.adapters.sqlalchemy import SqlAlchemyItemStore, shutdown, startup
from modproxy.adapters.sqlalchemy.engine import create_store_engine
from modproxy.adapters.sqlalchemy.migrations import upgrade_head
from modproxy.config import WorkshopConfig
from tests.support.catalog import MutableClock

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

TEST_BASE_URL = "https://workshop.test"


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data_dir = tmp_path / "data"
    monkeypatch.setenv("MODPROXY_DATA_DIR", str(data_dir))
    return data_dir


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_store_engine("sqlite+pysqlite:///:memory:")
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_store(sqlite_engine: Engine) -> SqlAlchemyItemStore:
    return SqlAlchemyItemStore(sqlite_engine)


@pytest.fixture
def started_engine(sqlite_engine: Engine) -> Iterator[Engine]:
    startup(engine=sqlite_engine, force=True)
    try:
        yield sqlite_engine
    finally:
        shutdown()


@pytest.fixture
def workshop_config() -> WorkshopConfig:
    from modproxy.config.workshop import _api_resilience, _search_resilience  # noqa: PLC0415

    return WorkshopConfig(
        base_url=TEST_BASE_URL,
        default_build_id="token-current-0001",
        probe_item_id="PROBE00000000001",
        token_check_seconds=None,
        api=_api_resilience(TEST_BASE_URL),
        search=_search_resilience(TEST_BASE_URL, 0.0),
    )
