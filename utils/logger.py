"""
Модуль для логирования событий приложения.

Все сообщения идут в stderr: stdout может быть занят самой выгрузкой
(`--out -`), а лог не должен попадать в данные.
"""

import logging
import os
import sys

LOGGER_NAME = "sql_export"


def _setup_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """
    Настройка и возврат логгера.

    Уровень берётся из SQL_EXPORT_LOG_LEVEL (по умолчанию INFO).
    """
    log = logging.getLogger(name)

    if log.handlers:
        # Логгер уже настроен (защита от повторного вызова при переимпорте)
        return log

    level = os.getenv("SQL_EXPORT_LOG_LEVEL", "INFO").strip().upper() or "INFO"
    log.setLevel(getattr(logging, level, logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.DEBUG)

    formatter = logging.Formatter(
        fmt="[%(asctime)s] [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    log.addHandler(handler)

    return log


def set_level(level: str) -> None:
    """Смена уровня логирования после старта (например, из --verbose)."""
    logger.setLevel(getattr(logging, level.strip().upper(), logging.INFO))


# Глобальный экземпляр логгера
logger = _setup_logger()
