"""Определение SqlType колонки по cursor.description (DB-API 2.0)."""

from __future__ import annotations

from types import ModuleType
from typing import Any, List, Sequence

from export.models import Column, SqlType

# OID массивов PostgreSQL (pg_type.typarray) для распространённых типов.
# psycopg/psycopg2 отдают в type_code именно OID.
POSTGRES_ARRAY_OIDS = frozenset({
    199,   # json[]
    1000,  # bool[]
    1001,  # bytea[]
    1005,  # int2[]
    1007,  # int4[]
    1009,  # text[]
    1014,  # bpchar[]
    1015,  # varchar[]
    1016,  # int8[]
    1021,  # float4[]
    1022,  # float8[]
    1115,  # timestamp[]
    1182,  # date[]
    1183,  # time[]
    1185,  # timestamptz[]
    1231,  # numeric[]
    2951,  # uuid[]
    3807,  # jsonb[]
})

# Порядок важен: ROWID у части драйверов совпадает с NUMBER
_DBAPI_TYPE_OBJECTS = (
    ("DATETIME", SqlType.TIMESTAMP),
    ("NUMBER", SqlType.NUMBER),
    ("ROWID", SqlType.NUMBER),
    ("BINARY", SqlType.BINARY),
    ("STRING", SqlType.STRING),
)


def sql_type_of(type_code: Any, driver: ModuleType) -> SqlType:
    """
    type_code -> SqlType.

    Массивы распознаются по OID PostgreSQL или по имени типа вида 'int[]'.
    Остальное — сравнением с type objects модуля драйвера (STRING, NUMBER...).
    sqlite3 type objects не объявляет и type_code всегда None -> OTHER.
    """
    if type_code is None:
        return SqlType.OTHER

    if isinstance(type_code, int) and not isinstance(type_code, bool) and type_code in POSTGRES_ARRAY_OIDS:
        return SqlType.ARRAY
    if isinstance(type_code, str) and type_code.rstrip().endswith("[]"):
        return SqlType.ARRAY

    for attr, sql_type in _DBAPI_TYPE_OBJECTS:
        type_object = getattr(driver, attr, None)
        if type_object is None:
            continue
        try:
            if type_code == type_object:
                return sql_type
        except TypeError:
            continue

    return SqlType.OTHER


def describe_columns(description: Sequence[Sequence[Any]], driver: ModuleType) -> List[Column]:
    """cursor.description -> список Column в порядке колонок."""
    return [Column(label=str(item[0]), sql_type=sql_type_of(item[1], driver)) for item in description]
