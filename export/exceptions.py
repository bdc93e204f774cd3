"""
Исключения выгрузки.

Каждая ошибка знает фазу пайплайна, в которой возникла (connect, query,
stream, ...). Исходная причина доступна через __cause__ (raise ... from exc).
Ретраев нет: любая ошибка прерывает выгрузку.
"""

from __future__ import annotations

from typing import Optional


class ExportError(Exception):
    """Базовая ошибка выгрузки."""

    def __init__(self, message: str, *, phase: Optional[str] = None) -> None:
        super().__init__(message)
        self.phase = phase

    def __str__(self) -> str:
        message = super().__str__()
        cause = self.__cause__
        if cause is not None and str(cause) not in message:
            message = f"{message}: {cause}"
        return f"[{self.phase}] {message}" if self.phase else message


class ConfigurationError(ExportError):
    """Неизвестный драйвер/алгоритм, некорректный шаблон или опция."""


class DataSourceConnectionError(ExportError):
    """Источник данных недоступен или отклонил учётные данные."""


class QueryError(ExportError):
    """Запрос не выполнился или не вернул набор строк."""


class SinkIOError(ExportError):
    """Файл результата нельзя открыть/записать, ошибка компрессора."""


class FormatError(ExportError):
    """Значение невозможно представить текстом."""
