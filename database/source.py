"""Источник данных: один коннект, один курсор, один запрос.

Драйвер — любой модуль DB-API 2.0 (sqlite3, psycopg2, pymysql, oracledb ...),
задаётся именем модуля и импортируется при подключении.

Ресурсы (соединение, курсор) регистрируются в ExitStack и закрываются
в обратном порядке: сначала курсор, затем соединение.
"""

from __future__ import annotations

import importlib
from contextlib import ExitStack, closing
from types import ModuleType
from typing import Any, Iterator, List, Optional, Sequence

from export.exceptions import ConfigurationError, DataSourceConnectionError, QueryError
from export.models import Column
from utils.logger import logger

from .types import describe_columns


class DataSource:
    """
    Использование:
        with DataSource("sqlite3", ":memory:") as source:
            source.connect()
            columns = source.execute("select 1 as x")
            for row in source.rows():
                ...
    """

    def __init__(
        self,
        driver: str,
        url: str,
        *,
        user: Optional[str] = None,
        password: Optional[str] = None,
        fetch_size: int = 1000,
    ) -> None:
        self._driver_name = driver
        self._url = url
        self._user = user
        self._password = password
        self._fetch_size = max(1, fetch_size)

        self._driver: Optional[ModuleType] = None
        self._exit = ExitStack()
        self._conn: Any = None
        self._cursor: Any = None
        self.columns: List[Column] = []

    # ------------------------------------------------------------------
    @property
    def driver(self) -> ModuleType:
        if self._driver is None:
            self._driver = load_driver(self._driver_name)
        return self._driver

    # ------------------------------------------------------------------
    def connect(self) -> None:
        driver = self.driver
        kwargs = {}
        if self._user is not None:
            kwargs["user"] = self._user
            kwargs["password"] = self._password or ""

        logger.info(f"Connecting : {self._url} (user={self._user})")
        try:
            conn = driver.connect(self._url, **kwargs)
        except Exception as exc:
            raise DataSourceConnectionError(f"Cannot connect to {self._url}", phase="connect") from exc

        self._conn = self._exit.enter_context(closing(conn))

    def execute(self, sql: str) -> List[Column]:
        """Выполнение запроса и чтение метаданных колонок."""
        if self._conn is None:
            raise RuntimeError("DataSource is not connected")

        try:
            cursor = self._conn.cursor()
        except Exception as exc:
            raise QueryError("Cannot create cursor", phase="execute") from exc
        self._cursor = self._exit.enter_context(closing(cursor))

        try:
            self._cursor.execute(sql)
        except Exception as exc:
            raise QueryError("Statement failed", phase="execute") from exc

        if self._cursor.description is None:
            raise QueryError("Statement returned no result set", phase="execute")

        self.columns = describe_columns(self._cursor.description, self.driver)
        logger.info(f"Columns : {', '.join(c.label for c in self.columns)}")
        return self.columns

    def rows(self) -> Iterator[Sequence[Any]]:
        """Строки курсора пачками по fetch_size, без материализации всего набора."""
        if self._cursor is None:
            raise RuntimeError("Statement is not executed")

        while True:
            try:
                batch = self._cursor.fetchmany(self._fetch_size)
            except Exception as exc:
                raise QueryError("Cannot fetch rows", phase="stream") from exc
            if not batch:
                return
            yield from batch

    # ------------------------------------------------------------------
    def close(self) -> None:
        exit_stack, self._exit = self._exit, ExitStack()
        self._cursor = None
        self._conn = None
        exit_stack.close()

    def __enter__(self) -> "DataSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
            return
        try:
            self.close()
        except Exception as close_exc:
            logger.error(f"Data source cleanup after failure also failed: {close_exc!r}")


def load_driver(name: str) -> ModuleType:
    """Импорт модуля DB-API по имени. Неизвестный драйвер — ConfigurationError."""
    try:
        module = importlib.import_module(name)
    except ImportError as exc:
        raise ConfigurationError(f"Unknown driver: {name}", phase="connect") from exc

    if not callable(getattr(module, "connect", None)):
        raise ConfigurationError(f"Module {name} is not a DB-API driver (no connect())", phase="connect")
    return module
