from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from modproxy.adapters.token_file import FileTokenRepository
from modproxy.domain.errors import TokenPersistenceError

if TYPE_CHECKING:
    from pathlib import Path


def test_missing_file_loads_nothing(tmp_path: Path) -> None:
    assert FileTokenRepository(tmp_path / "build_id.txt").load() is None


def test_save_then_load(tmp_path: Path) -> None:
    repository = FileTokenRepository(tmp_path / "nested" / "build_id.txt")

    repository.save("vmu4Pw_jmzBqmxpgPhPRV")

    assert repository.load() == "vmu4Pw_jmzBqmxpgPhPRV"
    assert not (tmp_path / "nested" / "build_id.txt.tmp").exists()


def test_blank_file_loads_nothing(tmp_path: Path) -> None:
    path = tmp_path / "build_id.txt"
    path.write_text("  \n", encoding="utf-8")

    assert FileTokenRepository(path).load() is None


def test_unreadable_path_raises(tmp_path: Path) -> None:
    with pytest.raises(TokenPersistenceError):
        FileTokenRepository(tmp_path).load()


def test_unwritable_path_raises(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(TokenPersistenceError):
        FileTokenRepository(blocker / "build_id.txt").save("vmu4Pw_jmzBqmxpgPhPRV")
