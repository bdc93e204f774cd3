"""Чтение результата запроса из источника данных (DB-API 2.0)."""

from .source import DataSource, load_driver
from .types import describe_columns, sql_type_of

__all__ = [
    "DataSource",
    "load_driver",
    "describe_columns",
    "sql_type_of",
]
