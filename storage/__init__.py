"""Модуль записи результата выгрузки.

Основная идея: пайплайн ничего не знает про формат хранения.
Он передаёт в sink отформатированные строки, а sink решает, как их
закодировать, сжать и посчитать контрольную сумму.

- RowSink — интерфейс приёмника строк
- DelimitedFileSink — delimited-текст в файл или stdout
- SinkStack — слои вывода: текст -> компрессор -> счётчик -> дайджест -> файл
- CompressionSelector — выбор компрессора по суффиксу файла
"""

from .base import RowSink
from .compression import CompressionRule, CompressionSelector
from .delimited import DelimitedFileSink
from .sink_stack import SinkStack

__all__ = [
    "RowSink",
    "DelimitedFileSink",
    "SinkStack",
    "CompressionRule",
    "CompressionSelector",
]
