"""Выгрузка результата SQL-запроса в delimited-файл.

Этапы:
  1) Подключаемся к источнику (любой DB-API 2.0 драйвер, по умолчанию sqlite3)
  2) Выполняем один запрос (текст может лежать в файле: file:/cp:)
  3) Потоково пишем строки: форматирование -> кодирование -> сжатие -> файл
  4) Каждые N строк делаем flush и пишем прогресс в лог
  5) По окончании пишем контрольную сумму рядом с файлом

Настройки по умолчанию берутся из SQL_EXPORT_* (.env), опции CLI их перекрывают.
Лог идёт в stderr: при `--out -` данные уходят в stdout.

Коды выхода: 0 — успех, 1 — ошибка выгрузки, 2 — ошибка конфигурации.
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from config.settings import Settings
from export.exceptions import ConfigurationError, ExportError
from export.models import WriteMode
from export.pipeline import ExportPipeline
from utils.logger import logger, set_level

_ESCAPES = {"\\t": "\t", "\\n": "\n", "\\r": "\r", "\\\\": "\\"}


# ---------------------------------------------------------------------------
# Типы аргументов
# ---------------------------------------------------------------------------

def _unescape(value: str) -> str:
    """'\\t' -> TAB и т.п.: в shell так проще передать управляющие символы."""
    out = value
    for raw, char in _ESCAPES.items():
        out = out.replace(raw, char)
    return out


def _char(value: str) -> str:
    """Один символ; пустая строка = символ не используется (для кавычки/escape)."""
    text = _unescape(value)
    if len(text) > 1:
        raise argparse.ArgumentTypeError(f"expected a single char, got {value!r}")
    return text


def _delimiter(value: str) -> str:
    text = _char(value)
    if not text:
        raise argparse.ArgumentTypeError("delimiter must not be empty")
    return text


def _bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "y", "on"}:
        return True
    if lowered in {"0", "false", "no", "n", "off"}:
        return False
    raise argparse.ArgumentTypeError(f"expected true/false, got {value!r}")


def _write_mode(value: str) -> WriteMode:
    try:
        return WriteMode.parse(value)
    except ValueError:
        choices = ", ".join(m.value for m in WriteMode)
        raise argparse.ArgumentTypeError(f"expected one of {choices}, got {value!r}") from None


def _non_negative(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError("must be >= 0")
    return number


# ---------------------------------------------------------------------------
# Парсер
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    # -h занят под --header, поэтому справка только через --help
    parser = argparse.ArgumentParser(
        prog="sql-export",
        description="Execute a SQL statement and export the result set to a delimited file.",
        add_help=False,
        argument_default=None,
    )
    parser.add_argument("--help", action="help", help="Show this message and exit.")

    src = parser.add_argument_group("data source")
    src.add_argument("-j", "--driver", help="DB-API driver module (default: sqlite3).")
    src.add_argument("-u", "--url", help="Connection URL / DSN passed to connect().")
    src.add_argument("-l", "--user", help="Login user.")
    src.add_argument("-p", "--pass", dest="password", help="Login password (literal, file: or cp: reference).")
    src.add_argument("-s", "--statement", help="SQL statement (literal, file: or cp: reference).")
    src.add_argument("--fetch-size", dest="fetch_size", type=int, help="Rows fetched per round trip.")

    out = parser.add_argument_group("output")
    out.add_argument("-o", "--out", dest="output", help="Output path, '-' for stdout.")
    out.add_argument("-w", "--write", dest="write_mode", type=_write_mode,
                     help="File write mode: CREATE, TRUNCATE_EXISTING, CREATE_NEW.")
    out.add_argument("-e", "--encoding", help="File encoding.")
    out.add_argument("-f", "--flush", dest="flush_interval", type=_non_negative, help="Flush per lines.")
    out.add_argument("-c", "--checksum", type=_bool, help="Generate checksum file (true/false).")
    out.add_argument("-a", "--algorithm", help="Algorithm of the checksum (e.g. SHA-256).")

    fmt = parser.add_argument_group("format")
    fmt.add_argument("-d", "--delimiter", type=_delimiter, help="Column delimiter character.")
    fmt.add_argument("-q", "--quote", dest="quote_char", type=_char, help="Quote character.")
    fmt.add_argument("-x", "--escape", dest="escape_char", type=_char, help="Escape character.")
    fmt.add_argument("-t", "--terminator", dest="line_terminator", type=_unescape, help="Line terminator.")
    fmt.add_argument("-h", "--header", dest="include_header", type=_bool, help="Include header row (true/false).")
    fmt.add_argument("-Q", "--quote-all", dest="quote_all_columns", type=_bool, nargs="?", const=True,
                     help="Quote every column (true/false).")
    fmt.add_argument("-n", "--null", dest="null_replacement", help="Replacement text for NULL values.")
    fmt.add_argument("-T", "--timestamp-format", dest="timestamp_pattern", help="strftime pattern for timestamps.")
    fmt.add_argument("-z", "--timezone", help="IANA timezone for timestamps (default: system zone).")
    fmt.add_argument("-b", "--boolean-as-int", dest="boolean_as_int", type=_bool, nargs="?", const=True,
                     help="Write booleans as 1/0.")
    fmt.add_argument("-r", "--array-brackets", dest="array_in_square_brackets", type=_bool, nargs="?", const=True,
                     help="Write arrays as [a,b,...].")

    misc = parser.add_argument_group("logging")
    misc.add_argument("--progress", dest="show_progress_bar", type=_bool, nargs="?", const=True,
                      help="Show a progress bar on stderr.")
    misc.add_argument("--metrics", dest="show_performance_metrics", type=_bool, nargs="?", const=True,
                      help="Log phase timings.")
    misc.add_argument("--log-level", dest="log_level", help="DEBUG, INFO, WARNING, ERROR.")

    return parser


# ---------------------------------------------------------------------------
# Точка входа
# ---------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else list(argv)
    parser = build_parser()

    if not argv:
        parser.print_help()
        return 0

    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env(vars(args))
        set_level(settings.log_level)
        settings.validate()
        settings.display()
        pipeline = ExportPipeline(settings)
    except ConfigurationError as exc:
        logger.error(f"Configuration error: {exc}")
        return 2

    try:
        result = pipeline.run()
    except ConfigurationError as exc:
        logger.error(f"Configuration error: {exc}")
        return 2
    except ExportError as exc:
        logger.error(f"Export failed: {exc}")
        return 1

    logger.info(
        f"Done : {result.rows_written:,} rows, {result.bytes_written:,} bytes"
        + (f", checksum {result.checksum_hex}" if result.checksum_hex else "")
    )
    return 0


def cli() -> None:
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    cli()
