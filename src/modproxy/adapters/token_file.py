"""Plain-text persistence for the current build id."""

from __future__ import annotations

import os
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from modproxy.domain.errors import TokenPersistenceError

if TYPE_CHECKING:
    from pathlib import Path

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FileTokenRepository:
    path: Path

    def load(self) -> str | None:
        try:
            value = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise TokenPersistenceError(f"Cannot read {self.path}: {exc}") from exc
        return value or None

    def save(self, token: str) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(token, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise TokenPersistenceError(f"Cannot write {self.path}: {exc}") from exc
        log.info("Saved build id to %s", self.path)


__all__ = ["FileTokenRepository"]
