"""Сериализация строки результата в delimited-текст."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from .exceptions import ConfigurationError
from .models import Column, EncoderConfig, NullReplacement


class DelimitedEncoder:
    """
    Кодирует одну строку (последовательность str | None) в строку файла.

    Поле квотируется, если включён quote_all_columns, ИЛИ поле не является
    заменой NULL и содержит разделитель, кавычку, escape-символ, перевод строки,
    обратный слеш, '"' либо начинается с '[' (чтобы массивы в скобках
    не путались с кавычками).

    Внутри квотированного поля кавычка и escape-символ экранируются
    escape-символом. Без кавычки (quote_char="") экранируются ещё разделитель
    и переводы строки. None пишется как пустое поле без кавычек.
    """

    def __init__(self, config: EncoderConfig) -> None:
        if len(config.delimiter) != 1:
            raise ConfigurationError(f"Delimiter must be a single character: {config.delimiter!r}", phase="configure")
        for name in ("quote_char", "escape_char"):
            if len(getattr(config, name)) > 1:
                raise ConfigurationError(f"{name} must be a single character or empty", phase="configure")

        self._config = config
        self._special = {config.delimiter, "\r", "\n", "\\", '"'}
        if config.quote_char:
            self._special.add(config.quote_char)
        if config.escape_char:
            self._special.add(config.escape_char)

    # ------------------------------------------------------------------
    @property
    def config(self) -> EncoderConfig:
        return self._config

    # ------------------------------------------------------------------
    def encode_header(self, columns: Sequence[Column]) -> str:
        return self.encode_row([c.label for c in columns])

    def encode_row(self, values: Iterable[Optional[str]]) -> str:
        cfg = self._config
        return cfg.delimiter.join(self._encode_field(v) for v in values) + cfg.line_terminator

    # ------------------------------------------------------------------
    def _encode_field(self, value: Optional[str]) -> str:
        if value is None:
            return ""

        cfg = self._config
        special = not isinstance(value, NullReplacement) and self.has_special_characters(value)
        text = self._escape(value) if special else value

        if cfg.quote_char and (cfg.quote_all_columns or special):
            return f"{cfg.quote_char}{text}{cfg.quote_char}"
        return text

    def has_special_characters(self, value: str) -> bool:
        return value.startswith("[") or any(ch in self._special for ch in value)

    def _escape(self, value: str) -> str:
        cfg = self._config
        if not cfg.escape_char:
            return value
        targets = {c for c in (cfg.quote_char, cfg.escape_char) if c}
        if not cfg.quote_char:
            # без кавычек поле держится только на экранировании
            targets.update((cfg.delimiter, "\r", "\n"))
        return "".join(cfg.escape_char + ch if ch in targets else ch for ch in value)
