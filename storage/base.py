"""Базовый интерфейс приёмника строк выгрузки.

Пайплайн ничего не знает про формат файла, сжатие и контрольную сумму.
Он передаёт в sink готовые (отформатированные) строки и в нужные моменты
просит flush. Всё остальное — забота реализации.

Как использовать:
    sink: RowSink = DelimitedFileSink(sink_config, encoder_config)
    sink.open()
    sink.write_header(columns)
    sink.write_row(values)
    ...
    sink.close()
    sink.bytes_written, sink.hex_digest()
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from export.models import Column


class RowSink(ABC):
    """Абстракция для записи строк результата."""

    @abstractmethod
    def open(self) -> None:
        """Открытие ресурсов (файл, компрессор, дайджест)."""

    @abstractmethod
    def write_header(self, columns: Sequence[Column]) -> None:
        """Строка заголовка (если она включена в настройках)."""

    @abstractmethod
    def write_row(self, values: Sequence[Optional[str]]) -> None:
        """Запись одной полностью отформатированной строки."""

    @abstractmethod
    def flush(self) -> None:
        """Принудительный сброс всех буферов."""

    @abstractmethod
    def close(self) -> None:
        """Финализация (хвосты компрессоров) и закрытие."""

    @property
    @abstractmethod
    def bytes_written(self) -> int:
        """Сколько байт дошло до файла/stdout."""

    @abstractmethod
    def hex_digest(self) -> Optional[str]:
        """Дайджест записанных байт в hex или None, если он выключен."""

    @property
    @abstractmethod
    def output_path(self) -> str:
        """Путь к результирующему файлу (для логов)."""

    def __enter__(self) -> "RowSink":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
