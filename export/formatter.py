"""Преобразование значения ячейки в текст."""

from __future__ import annotations

import datetime as _dt
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .exceptions import ConfigurationError, FormatError
from .models import Column, FormatterConfig, SqlType, Value, ValueKind


class ValueFormatter:
    """
    Форматирует одно значение по правилам FormatterConfig.

    Правила (в порядке приоритета):
      1. NULL -> "[]" для ARRAY-колонки в режиме скобок, иначе null_replacement
         (который сам может быть None — поле "отсутствует", это не "").
      2. timestamp + шаблон -> strftime в заданной (или системной) зоне.
      3. массив в режиме скобок -> рекурсивно, через запятую, в [...].
      4. boolean_as_int -> "1"/"0".
      5. всё остальное -> каноническое текстовое представление.

    Чистая функция от (value, column, config).
    """

    def __init__(self, config: FormatterConfig) -> None:
        self._config = config
        self._zone = self._load_zone(config.timezone)
        if config.timestamp_pattern is not None:
            self._check_pattern(config.timestamp_pattern)

    # ------------------------------------------------------------------
    @property
    def config(self) -> FormatterConfig:
        return self._config

    # ------------------------------------------------------------------
    def format(self, value: Value, column: Column) -> Optional[str]:
        cfg = self._config

        if value.kind is ValueKind.NULL:
            if column.sql_type is SqlType.ARRAY and cfg.array_in_square_brackets:
                return "[]"
            return cfg.null_replacement

        if value.kind is ValueKind.TIMESTAMP and cfg.timestamp_pattern is not None:
            return self._format_timestamp(value.payload)

        if value.kind is ValueKind.ARRAY and cfg.array_in_square_brackets:
            return self._format_array(value, column)

        if value.kind is ValueKind.BOOLEAN and cfg.boolean_as_int:
            return "1" if value.payload else "0"

        return self._canonical(value, column)

    # ------------------------------------------------------------------
    def _format_array(self, value: Value, column: Column) -> str:
        parts = []
        for element in value.payload:
            element_type = SqlType.ARRAY if element.kind is ValueKind.ARRAY else SqlType.OTHER
            text = self.format(element, Column(column.label, element_type))
            parts.append("" if text is None else text)
        return "[" + ",".join(parts) + "]"

    def _format_timestamp(self, ts: _dt.datetime) -> str:
        # naive datetime считаем системным локальным временем (astimezone так и делает)
        localized = ts.astimezone(self._zone) if self._zone is not None else ts.astimezone()
        return localized.strftime(self._config.timestamp_pattern)

    def _canonical(self, value: Value, column: Column) -> str:
        payload = value.payload
        if value.kind is ValueKind.BOOLEAN:
            return "true" if payload else "false"
        if value.kind is ValueKind.ARRAY:
            return str([self._plain(item) for item in payload])
        if isinstance(payload, (bytes, bytearray, memoryview)):
            return bytes(payload).hex()
        try:
            return str(payload)
        except Exception as exc:
            raise FormatError(
                f"Cannot render value of type {type(payload).__name__} in column '{column.label}'",
                phase="format",
            ) from exc

    def _plain(self, value: Value):
        if value.kind is ValueKind.ARRAY:
            return [self._plain(item) for item in value.payload]
        return value.payload

    # ------------------------------------------------------------------
    @staticmethod
    def _load_zone(name: Optional[str]) -> Optional[ZoneInfo]:
        if not name:
            return None
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigurationError(f"Unknown timezone: {name!r}", phase="configure") from exc

    @staticmethod
    def _check_pattern(pattern: str) -> None:
        try:
            _dt.datetime(2000, 1, 2, 3, 4, 5).strftime(pattern)
        except ValueError as exc:
            raise ConfigurationError(f"Malformed timestamp pattern: {pattern!r}", phase="configure") from exc
