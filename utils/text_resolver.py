"""
Разрешение текстовых ссылок для запроса и пароля.

    "cp:queries/daily.sql" / "classpath:..."  -> ресурс относительно sys.path
    "file:/tmp/q.sql" / "filepath:..."        -> содержимое файла
    всё остальное                             -> строка как есть

Файлы читаются в UTF-8.
"""

from __future__ import annotations

import re
import sys
from pathlib import Path

from utils.logger import logger

_CLASSPATH = re.compile(r"^(classpath|cp):(.+)", re.DOTALL)
_FILEPATH = re.compile(r"^file(path)?:(.+)", re.DOTALL)


def resolve_text(ref: str) -> str:
    cp = _CLASSPATH.match(ref)
    if cp:
        path = cp.group(2)
        logger.info(f"Loading text from import path : {path}")
        return _read_from_import_path(path)

    fp = _FILEPATH.match(ref)
    if fp:
        path = fp.group(2)
        logger.info(f"Loading text from filepath : {path}")
        return Path(path).read_bytes().decode("utf-8")

    return ref


def _read_from_import_path(relative: str) -> str:
    # sys.path играет роль classpath: берём первое совпадение
    for entry in sys.path:
        candidate = Path(entry or ".") / relative
        if candidate.is_file():
            return candidate.read_bytes().decode("utf-8")
    raise FileNotFoundError(f"Resource not found on import path: {relative}")
