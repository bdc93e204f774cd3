"""
Модуль настроек выгрузки.

Значения по умолчанию читаются из переменных окружения SQL_EXPORT_*
(и из .env файла через python-dotenv), опции командной строки их
перекрывают. Итоговый Settings неизменяем: пайплайн получает его один раз
и больше конфигурацию не перечитывает.
"""

from __future__ import annotations

import codecs
import os
import tempfile
import time
from dataclasses import dataclass, fields, replace
from typing import Any, List, Mapping, Optional

from export.exceptions import ConfigurationError
from export.models import EncoderConfig, FormatterConfig, SinkConfig, WriteMode
from utils.logger import logger

ENV_PREFIX = "SQL_EXPORT_"
DEFAULT_STATEMENT = "select datetime('now') as \"time\""


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    """Значение переменной SQL_EXPORT_<name>; пустая строка = не задано."""
    v = os.getenv(ENV_PREFIX + name)
    if v is None or v == "":
        return default
    return v


def _env_bool(name: str, default: bool) -> bool:
    v = _env(name)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    """Безопасное чтение целого; мусор в переменной -> значение по умолчанию."""
    v = _env(name)
    if v is None:
        return default
    try:
        return int(v.strip())
    except ValueError:
        return default


def _env_write_mode(name: str, default: WriteMode) -> WriteMode:
    v = _env(name)
    if v is None:
        return default
    try:
        return WriteMode.parse(v)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown write mode in {ENV_PREFIX}{name}: {v}", phase="configure") from exc


def default_output_path() -> str:
    return os.path.join(tempfile.gettempdir(), f"sql_export_{int(time.time() * 1000)}.csv")


@dataclass(frozen=True, slots=True)
class Settings:
    """Полная конфигурация одного запуска выгрузки."""

    # --- Источник данных ---
    driver: str = "sqlite3"
    url: str = ":memory:"
    user: Optional[str] = None
    # может быть ссылкой cp:/file:, разрешается пайплайном
    password: Optional[str] = None
    statement: str = DEFAULT_STATEMENT
    fetch_size: int = 1000

    # --- Файл результата ---
    output: str = ""
    write_mode: WriteMode = WriteMode.TRUNCATE_EXISTING
    encoding: str = "utf-8"

    # --- Delimited-формат ---
    delimiter: str = ","
    quote_char: str = '"'
    escape_char: str = '"'
    line_terminator: str = "\n"
    include_header: bool = True
    quote_all_columns: bool = True

    # --- Форматирование значений ---
    null_replacement: Optional[str] = None
    timestamp_pattern: Optional[str] = None
    timezone: Optional[str] = None
    boolean_as_int: bool = False
    array_in_square_brackets: bool = False

    # --- Flush и контрольная сумма ---
    flush_interval: int = 0
    checksum: bool = True
    algorithm: str = "SHA-256"

    # --- Логи и прогресс ---
    show_progress_bar: bool = False
    show_performance_metrics: bool = False
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    @staticmethod
    def from_env(overrides: Optional[Mapping[str, Any]] = None) -> "Settings":
        """
        Settings из окружения + перекрытия (обычно из CLI).

        None в overrides означает "опция не задана" и значение не перекрывает.
        """
        from dotenv import load_dotenv

        # Идемпотентно: повторный вызов ничего не ломает
        load_dotenv()

        base = Settings(
            driver=_env("DRIVER", "sqlite3"),
            url=_env("URL", ":memory:"),
            user=_env("USER"),
            password=_env("PASSWORD"),
            statement=_env("STATEMENT", DEFAULT_STATEMENT),
            fetch_size=_env_int("FETCH_SIZE", 1000),
            output=_env("OUTPUT") or default_output_path(),
            write_mode=_env_write_mode("WRITE_MODE", WriteMode.TRUNCATE_EXISTING),
            encoding=_env("ENCODING", "utf-8"),
            delimiter=_env("DELIMITER", ","),
            quote_char=_env("QUOTE_CHAR", '"'),
            escape_char=_env("ESCAPE_CHAR", '"'),
            line_terminator=_env("LINE_TERMINATOR", "\n"),
            include_header=_env_bool("HEADER", True),
            quote_all_columns=_env_bool("QUOTE_ALL", True),
            null_replacement=_env("NULL_REPLACEMENT"),
            timestamp_pattern=_env("TIMESTAMP_FORMAT"),
            timezone=_env("TIMEZONE"),
            boolean_as_int=_env_bool("BOOLEAN_AS_INT", False),
            array_in_square_brackets=_env_bool("ARRAY_BRACKETS", False),
            flush_interval=_env_int("FLUSH", 0),
            checksum=_env_bool("CHECKSUM", True),
            algorithm=_env("ALGORITHM", "SHA-256"),
            show_progress_bar=_env_bool("SHOW_PROGRESS_BAR", False),
            show_performance_metrics=_env_bool("SHOW_PERFORMANCE_METRICS", False),
            log_level=_env("LOG_LEVEL", "INFO"),
        )

        if not overrides:
            return base

        known = {f.name for f in fields(Settings)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigurationError(f"Unknown settings: {', '.join(unknown)}", phase="configure")

        return replace(base, **{k: v for k, v in overrides.items() if v is not None})

    # ------------------------------------------------------------------
    def validate(self) -> None:
        """Валидация настроек. Бросает ConfigurationError со списком всех ошибок."""
        errors: List[str] = []

        if not self.driver:
            errors.append("driver must be set")

        if not self.statement or not self.statement.strip():
            errors.append("statement must not be empty")

        if not self.output:
            errors.append("output must be set")

        if self.fetch_size <= 0:
            errors.append("fetch_size must be positive")

        if self.flush_interval < 0:
            errors.append("flush interval must be non-negative")

        if len(self.delimiter) != 1:
            errors.append("delimiter must be a single character")

        if len(self.quote_char) > 1:
            errors.append("quote character must be a single character (or empty for none)")

        if len(self.escape_char) > 1:
            errors.append("escape character must be a single character (or empty for none)")

        if not self.line_terminator:
            errors.append("line terminator must not be empty")

        try:
            codecs.lookup(self.encoding)
        except LookupError:
            errors.append(f"unknown encoding: {self.encoding}")

        if self.checksum:
            from storage.streams import new_digest

            try:
                new_digest(self.algorithm)
            except ConfigurationError:
                errors.append(f"unknown digest algorithm: {self.algorithm}")

        if self.timezone or self.timestamp_pattern:
            from export.formatter import ValueFormatter

            try:
                ValueFormatter(self.formatter_config())
            except ConfigurationError as exc:
                errors.append(str(exc.args[0]))

        if errors:
            raise ConfigurationError(
                "Configuration errors:\n" + "\n".join(f"  - {e}" for e in errors),
                phase="configure",
            )

    # ------------------------------------------------------------------
    def display(self) -> None:
        """Текущие настройки в лог (stdout может быть занят данными)."""
        logger.info("=" * 60)
        logger.info("CONFIGURATION SETTINGS")
        logger.info("=" * 60)
        logger.info(f"  Driver               : {self.driver}")
        logger.info(f"  URL                  : {self.url}")
        logger.info(f"  User                 : {self.user or '-'}")
        logger.info(f"  Password             : {'Set' if self.password else 'Not set'}")
        logger.info(f"  Output               : {self.output}")
        logger.info(f"  Write mode           : {self.write_mode.value}")
        logger.info(f"  Encoding             : {self.encoding}")
        logger.info(f"  Delimiter/quote/esc  : {self.delimiter!r} {self.quote_char!r} {self.escape_char!r}")
        logger.info(f"  Line terminator      : {self.line_terminator!r}")
        logger.info(f"  Header / quote all   : {self.include_header} / {self.quote_all_columns}")
        logger.info(f"  Null replacement     : {self.null_replacement!r}")
        logger.info(f"  Timestamp format     : {self.timestamp_pattern or '-'} ({self.timezone or 'system zone'})")
        logger.info(f"  Boolean as int       : {self.boolean_as_int}")
        logger.info(f"  Array brackets       : {self.array_in_square_brackets}")
        logger.info(f"  Flush interval       : {self.flush_interval}")
        logger.info(f"  Checksum             : {self.algorithm if self.checksum else 'off'}")
        logger.info("=" * 60)

    # ------------------------------------------------------------------
    def formatter_config(self) -> FormatterConfig:
        return FormatterConfig(
            null_replacement=self.null_replacement,
            boolean_as_int=self.boolean_as_int,
            array_in_square_brackets=self.array_in_square_brackets,
            timestamp_pattern=self.timestamp_pattern,
            timezone=self.timezone,
        )

    def encoder_config(self) -> EncoderConfig:
        return EncoderConfig(
            delimiter=self.delimiter,
            quote_char=self.quote_char,
            escape_char=self.escape_char,
            line_terminator=self.line_terminator,
            quote_all_columns=self.quote_all_columns,
            include_header=self.include_header,
        )

    def sink_config(self) -> SinkConfig:
        return SinkConfig(
            destination=self.output,
            write_mode=self.write_mode,
            encoding=self.encoding,
            digest_algorithm=self.algorithm if self.checksum else None,
        )
