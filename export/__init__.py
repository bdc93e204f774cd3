"""Модели, форматирование и кодирование строк выгрузки.

Пайплайн (export.pipeline) импортируется явно: он тянет за собой storage
и database, а те сами зависят от export.models.
"""
from .encoder import DelimitedEncoder
from .exceptions import (
    ConfigurationError,
    DataSourceConnectionError,
    ExportError,
    FormatError,
    QueryError,
    SinkIOError,
)
from .formatter import ValueFormatter
from .models import (
    Column,
    EncoderConfig,
    ExportResult,
    FlushCheckpoint,
    FormatterConfig,
    NullReplacement,
    SinkConfig,
    SqlType,
    Value,
    ValueKind,
    WriteMode,
)

__all__ = [
    'DelimitedEncoder', 'ValueFormatter',
    'ExportError', 'ConfigurationError', 'DataSourceConnectionError',
    'QueryError', 'SinkIOError', 'FormatError',
    'Column', 'SqlType', 'Value', 'ValueKind', 'NullReplacement',
    'FormatterConfig', 'EncoderConfig', 'SinkConfig', 'WriteMode',
    'ExportResult', 'FlushCheckpoint',
]
