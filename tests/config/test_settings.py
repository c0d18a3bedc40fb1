from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path  # noqa: TC003

import pytest  # noqa: TC002

from modproxy.config import (
    ConfigurationError,
    configure_logging,
    env_float,
    env_int,
    env_str,
    get_database_config,
    get_item_cache_config,
    get_storage_config,
    get_workshop_config,
)
from modproxy.config import storage
from modproxy.config.workshop import DEFAULT_BUILD_ID, DEFAULT_TOKEN_CHECK_SECONDS


def test_storage_prefers_explicit_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    custom = tmp_path / "custom-data"
    monkeypatch.setenv("MODPROXY_DATA_DIR", str(custom))

    config = get_storage_config()

    assert config.resolve_data_dir() == custom.resolve()
    assert config.token_path() == custom.resolve() / storage.TOKEN_FILENAME
    assert custom.exists()


def test_database_uri_uses_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "postgresql+psycopg://cache@db/modproxy")

    config = get_database_config()

    assert config.uri == "postgresql+psycopg://cache@db/modproxy"
    assert not config.is_sqlite


def test_database_uri_creates_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("MODPROXY_DATA_DIR", str(tmp_path / "data-dir"))

    config = get_database_config()

    expected_path = (tmp_path / "data-dir" / storage.DEFAULT_DB_FILENAME).resolve()
    assert config.uri == f"sqlite+pysqlite:///{expected_path}"
    assert config.is_sqlite
    assert expected_path.parent.exists()


def test_env_loaders_fall_back_on_blank(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MODPROXY_EXAMPLE", "   ")

    assert env_str("MODPROXY_EXAMPLE", "fallback") == "fallback"
    assert env_int("MODPROXY_EXAMPLE", 3) == 3
    assert env_float("MODPROXY_EXAMPLE", 1.5) == 1.5


def test_env_loaders_reject_invalid_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MODPROXY_EXAMPLE", "many")
    with pytest.raises(ConfigurationError, match="MODPROXY_EXAMPLE"):
        env_int("MODPROXY_EXAMPLE", 1)
    with pytest.raises(ConfigurationError, match="number"):
        env_float("MODPROXY_EXAMPLE", 1.0)

    monkeypatch.setenv("MODPROXY_EXAMPLE", "0")
    with pytest.raises(ConfigurationError, match=">= 1"):
        env_int("MODPROXY_EXAMPLE", 5, minimum=1)


def test_workshop_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("MODPROXY_WORKSHOP_URL", "MODPROXY_BUILD_ID", "MODPROXY_TOKEN_CHECK_SECONDS"):
        monkeypatch.delenv(name, raising=False)

    config = get_workshop_config()

    assert config.default_build_id == DEFAULT_BUILD_ID
    assert config.token_check_seconds == DEFAULT_TOKEN_CHECK_SECONDS
    assert config.api.cache is None
    assert config.search.cache is not None
    assert config.search.cache.enabled
    assert 500 not in config.api.retry.status_forcelist


def test_workshop_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MODPROXY_WORKSHOP_URL", "https://mirror.test/")
    monkeypatch.setenv("MODPROXY_BUILD_ID", "custom_build_id_01")
    monkeypatch.setenv("MODPROXY_TOKEN_CHECK_SECONDS", "0")
    monkeypatch.setenv("MODPROXY_SEARCH_CACHE_SECONDS", "0")

    config = get_workshop_config()

    assert config.base_url == "https://mirror.test"
    assert config.api.base_url == "https://mirror.test"
    assert config.default_build_id == "custom_build_id_01"
    assert config.token_check_seconds is None
    assert config.search.cache is not None
    assert not config.search.cache.enabled


def test_item_cache_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MODPROXY_VERSIONS_TTL_SECONDS", "120")
    monkeypatch.setenv("MODPROXY_MAX_CONCURRENCY", "4")

    config = get_item_cache_config()

    assert config.versions_ttl == timedelta(minutes=2)
    assert config.max_concurrency == 4
    assert config.purge_horizon == timedelta(days=365)


def test_item_cache_config_rejects_short_horizon(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MODPROXY_PURGE_HORIZON_DAYS", "30")

    with pytest.raises(ConfigurationError):
        get_item_cache_config()


def test_configure_logging_quiets_http_loggers() -> None:
    configure_logging(level=logging.DEBUG, force=True)

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING
