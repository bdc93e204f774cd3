"""
Модели данных выгрузки: колонки, значения и неизменяемые конфигурации.
"""

from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


# ---------------------------------------------------------------------------
# Колонки результата
# ---------------------------------------------------------------------------

class SqlType(str, Enum):
    """Тип колонки так, как его сообщает драйвер (упрощённо)."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    BINARY = "binary"
    ARRAY = "array"
    OTHER = "other"


@dataclass(frozen=True)
class Column:
    """Одна колонка результата. Порядок колонок = порядок в cursor.description."""

    label: str
    sql_type: SqlType = SqlType.OTHER


# ---------------------------------------------------------------------------
# Значение ячейки
# ---------------------------------------------------------------------------

class ValueKind(str, Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    ARRAY = "array"
    SCALAR = "scalar"


@dataclass(frozen=True)
class Value:
    """
    Значение одной ячейки в виде tagged variant.

    Форматтер диспетчеризует по `kind`, а не по isinstance() сырого объекта
    драйвера. Для ARRAY payload — кортеж вложенных Value.
    """

    kind: ValueKind
    payload: Any = None

    @classmethod
    def of(cls, obj: Any) -> "Value":
        """Построение Value из объекта, который вернул драйвер."""
        if obj is None:
            return NULL
        # bool является подклассом int, поэтому проверяется раньше скаляров
        if isinstance(obj, bool):
            return cls(ValueKind.BOOLEAN, obj)
        if isinstance(obj, _dt.datetime):
            return cls(ValueKind.TIMESTAMP, obj)
        if isinstance(obj, (list, tuple)):
            return cls(ValueKind.ARRAY, tuple(cls.of(item) for item in obj))
        return cls(ValueKind.SCALAR, obj)

    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL


NULL = Value(ValueKind.NULL)


# ---------------------------------------------------------------------------
# Конфигурации компонентов (строятся один раз до старта пайплайна)
# ---------------------------------------------------------------------------

class NullReplacement(str):
    """
    Строка-замена для NULL.

    Отдельный тип нужен энкодеру: поле, пришедшее из замены NULL, не
    квотируется по спецсимволам, даже если его содержимое совпадает с обычным
    значением. Сравнение идёт по происхождению, а не по содержимому.
    """

    __slots__ = ()


@dataclass(frozen=True)
class FormatterConfig:
    null_replacement: Optional[str] = None
    boolean_as_int: bool = False
    array_in_square_brackets: bool = False
    # strftime-шаблон и IANA-зона (None = системная зона)
    timestamp_pattern: Optional[str] = None
    timezone: Optional[str] = None

    def __post_init__(self) -> None:
        if self.null_replacement is not None and not isinstance(self.null_replacement, NullReplacement):
            object.__setattr__(self, "null_replacement", NullReplacement(self.null_replacement))


@dataclass(frozen=True)
class EncoderConfig:
    delimiter: str = ","
    quote_char: str = '"'
    escape_char: str = '"'
    line_terminator: str = "\n"
    quote_all_columns: bool = True
    include_header: bool = True


class WriteMode(str, Enum):
    """Режим открытия файла результата (имена как у опций CLI)."""

    CREATE = "CREATE"
    TRUNCATE_EXISTING = "TRUNCATE_EXISTING"
    CREATE_NEW = "CREATE_NEW"

    @classmethod
    def parse(cls, raw: str) -> "WriteMode":
        key = raw.strip().upper().replace("-", "_")
        if key == "TRUNCATE":
            key = "TRUNCATE_EXISTING"
        return cls(key)


STDOUT_MARKER = "-"


@dataclass(frozen=True)
class SinkConfig:
    destination: str
    write_mode: WriteMode = WriteMode.TRUNCATE_EXISTING
    encoding: str = "utf-8"
    # None = контрольная сумма не нужна
    digest_algorithm: Optional[str] = None

    @property
    def is_stdout(self) -> bool:
        return self.destination == STDOUT_MARKER

    @property
    def checksum_path(self) -> Optional[str]:
        """`<destination>.<алгоритм без дефисов в нижнем регистре>`; для stdout — None."""
        if self.digest_algorithm is None or self.is_stdout:
            return None
        return f"{self.destination}.{checksum_suffix(self.digest_algorithm)}"


def checksum_suffix(algorithm: str) -> str:
    """'SHA-256' -> 'sha256'."""
    return algorithm.replace("-", "").lower()


# ---------------------------------------------------------------------------
# Результат выгрузки
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FlushCheckpoint:
    rows: int
    bytes_written: int


@dataclass
class ExportResult:
    rows_written: int = 0
    bytes_written: int = 0
    checksum_hex: Optional[str] = None
    checksum_path: Optional[str] = None
    checkpoints: List[FlushCheckpoint] = field(default_factory=list)
