"""Общие фикстуры: настройки выгрузки и поддельный DB-API драйвер."""

from __future__ import annotations

import os
import sqlite3
import sys
import types
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

import pytest

from config.settings import ENV_PREFIX, Settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Переменные SQL_EXPORT_* хоста не должны влиять на тесты."""
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_settings(tmp_path):
    """Settings без чтения окружения; output по умолчанию — tmp_path/out.csv."""

    def _make(**overrides: Any) -> Settings:
        overrides.setdefault("output", str(tmp_path / "out.csv"))
        return Settings(**overrides)

    return _make


@pytest.fixture
def sqlite_db(tmp_path):
    """Файл SQLite с таблицей people (5 строк, есть NULL и спецсимволы)."""
    path = tmp_path / "people.sqlite3"
    conn = sqlite3.connect(path)
    conn.executescript(
        """
        CREATE TABLE people (id INTEGER, name TEXT, score REAL);
        INSERT INTO people VALUES (1, 'Alice', 1.5);
        INSERT INTO people VALUES (2, NULL, 2.0);
        INSERT INTO people VALUES (3, 'Smith, John', NULL);
        INSERT INTO people VALUES (4, 'say "hi"', 4.25);
        INSERT INTO people VALUES (5, '[x]', 5.0);
        """
    )
    conn.commit()
    conn.close()
    return str(path)


# ---------------------------------------------------------------------------
# Поддельный драйвер
# ---------------------------------------------------------------------------

class FakeDriverError(Exception):
    pass


@dataclass
class FakeCursor:
    description: Sequence[Sequence[Any]]
    rows: List[Sequence[Any]]
    fail_at: Optional[int] = None
    closed: bool = False
    executed: List[str] = field(default_factory=list)
    _position: int = 0

    def execute(self, sql: str) -> None:
        self.executed.append(sql)

    def fetchmany(self, size: int) -> List[Sequence[Any]]:
        batch = []
        for _ in range(size):
            if self.fail_at is not None and self._position == self.fail_at:
                raise FakeDriverError("connection reset while fetching")
            if self._position >= len(self.rows):
                break
            batch.append(self.rows[self._position])
            self._position += 1
        return batch

    def close(self) -> None:
        self.closed = True


@dataclass
class FakeConnection:
    cursor_obj: FakeCursor
    closed: bool = False

    def cursor(self) -> FakeCursor:
        return self.cursor_obj

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_driver(monkeypatch):
    """
    Регистрирует модуль `fake_dbapi` в sys.modules.

        driver = fake_driver(description=[("A", 1007)], rows=[([1, 2],)])
        Settings(driver="fake_dbapi", ...)
        driver.connection.closed
    """

    def _install(description, rows, fail_at=None):
        module = types.ModuleType("fake_dbapi")
        cursor = FakeCursor(description=[tuple(d) + (None,) * 5 for d in description], rows=list(rows), fail_at=fail_at)
        connection = FakeConnection(cursor_obj=cursor)

        def connect(url, **kwargs):
            module.connect_args = (url, kwargs)
            return connection

        module.connect = connect
        module.Error = FakeDriverError
        module.connection = connection
        module.cursor = cursor
        monkeypatch.setitem(sys.modules, "fake_dbapi", module)
        return module

    return _install
