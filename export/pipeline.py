"""Пайплайн выгрузки: запрос -> форматирование -> кодирование -> sink.

Состояния:
    IDLE -> CONNECTED -> EXECUTING -> STREAMING -> FINALIZING -> DONE
    FAILED достижимо из любого незавершённого состояния.

Ресурсы захватываются в порядке соединение -> курсор -> слои вывода и
освобождаются строго в обратном порядке на любом пути выхода (with).
Файл контрольной суммы пишется только после успешного FINALIZING, так что
его отсутствие само по себе сигнализирует о сбое.
"""

from __future__ import annotations

import sys
from enum import Enum
from typing import Callable, List, Optional, Sequence

from config.settings import Settings
from database import DataSource
from storage import CompressionSelector, DelimitedFileSink, RowSink
from storage.sink_stack import write_artifact
from utils.logger import logger
from utils.text_resolver import resolve_text
from utils.timer import PerformanceTimer

from .exceptions import DataSourceConnectionError, ExportError, QueryError, SinkIOError
from .formatter import ValueFormatter
from .models import Column, ExportResult, FlushCheckpoint, Value


class PipelineState(str, Enum):
    IDLE = "idle"
    CONNECTED = "connected"
    EXECUTING = "executing"
    STREAMING = "streaming"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


def should_flush(count: int, interval: int) -> bool:
    """Flush каждые `interval` строк; 0 — никогда."""
    return interval > 0 and count % interval == 0


class ExportPipeline:
    """
    Одна выгрузка = один экземпляр.

        pipeline = ExportPipeline(settings)
        result = pipeline.run()
    """

    def __init__(
        self,
        settings: Settings,
        *,
        resolver: Callable[[str], str] = resolve_text,
        selector: Optional[CompressionSelector] = None,
    ) -> None:
        self._settings = settings
        self._resolver = resolver
        self._selector = selector

        self._formatter = ValueFormatter(settings.formatter_config())
        self._encoder_config = settings.encoder_config()
        self._sink_config = settings.sink_config()
        self._timer = PerformanceTimer(show_metrics=settings.show_performance_metrics)

        self.state = PipelineState.IDLE
        self.result = ExportResult()

    # ------------------------------------------------------------------
    @property
    def checkpoints(self) -> List[FlushCheckpoint]:
        return self.result.checkpoints

    # ------------------------------------------------------------------
    def run(self) -> ExportResult:
        if self.state is not PipelineState.IDLE:
            raise RuntimeError(f"Pipeline already ran (state={self.state.value})")

        logger.info("Executing...")
        try:
            self._run()
        except ExportError:
            self._transition(PipelineState.FAILED)
            raise
        except Exception as exc:
            failed_in = self.state.value
            self._transition(PipelineState.FAILED)
            raise ExportError("Unexpected failure", phase=failed_in) from exc

        return self.result

    # ------------------------------------------------------------------
    def _run(self) -> None:
        s = self._settings

        with DataSource(
            s.driver,
            s.url,
            user=s.user,
            password=self._resolve_credential(),
            fetch_size=s.fetch_size,
        ) as source:
            source.connect()
            self._transition(PipelineState.CONNECTED)

            sql = self._resolve_query()
            with self._timer.measure("execute"):
                columns = source.execute(sql)
            self._transition(PipelineState.EXECUTING)

            sink = DelimitedFileSink(self._sink_config, self._encoder_config, selector=self._selector)
            with sink:
                self._transition(PipelineState.STREAMING)

                if self._encoder_config.include_header:
                    sink.write_header(columns)

                with self._timer.measure("stream"):
                    self._stream(source, columns, sink)

                self._transition(PipelineState.FINALIZING)
                sink.flush()

            # sink закрыт: хвосты компрессора записаны, счётчики окончательные
            self.result.bytes_written = sink.bytes_written
            logger.info(
                f"Finished output : {self.result.rows_written:,} lines "
                f"({self.result.bytes_written:,} bytes)"
            )

            digest = sink.hex_digest()

        if digest is not None:
            self._emit_checksum(digest)

        self._transition(PipelineState.DONE)

    # ------------------------------------------------------------------
    def _stream(self, source: DataSource, columns: Sequence[Column], sink: RowSink) -> None:
        interval = self._settings.flush_interval
        count = 0
        pbar = self._progress_bar()

        try:
            for row in source.rows():
                if len(row) != len(columns):
                    raise QueryError(
                        f"Row has {len(row)} values, expected {len(columns)}", phase="stream"
                    )

                # строка форматируется целиком до записи: частичных строк не бывает
                values = [self._formatter.format(Value.of(raw), col) for raw, col in zip(row, columns)]
                sink.write_row(values)

                count += 1
                self.result.rows_written = count

                if pbar is not None:
                    pbar.update(1)

                if should_flush(count, interval):
                    sink.flush()
                    checkpoint = FlushCheckpoint(rows=count, bytes_written=sink.bytes_written)
                    self.result.checkpoints.append(checkpoint)
                    logger.info(f"Flushed {count:,} lines... ({checkpoint.bytes_written:,} bytes)")
        finally:
            if pbar is not None:
                pbar.close()

    def _progress_bar(self):
        if not self._settings.show_progress_bar:
            return None
        from tqdm import tqdm

        return tqdm(desc="Exporting rows", unit="row", file=sys.stderr)

    # ------------------------------------------------------------------
    def _resolve_credential(self) -> Optional[str]:
        password = self._settings.password
        if password is None:
            return None
        try:
            return self._resolver(password)
        except (OSError, UnicodeDecodeError) as exc:
            raise DataSourceConnectionError("Cannot resolve credential", phase="connect") from exc

    def _resolve_query(self) -> str:
        try:
            return self._resolver(self._settings.statement)
        except (OSError, UnicodeDecodeError) as exc:
            raise QueryError("Cannot resolve statement", phase="execute") from exc

    def _emit_checksum(self, digest: str) -> None:
        cfg = self._sink_config
        self.result.checksum_hex = digest

        if cfg.is_stdout:
            sys.stdout.write(digest + "\n")
            sys.stdout.flush()
            logger.info(f"Generated checksum : <stdout> - {digest}")
            return

        path = cfg.checksum_path
        try:
            write_artifact(path, digest, cfg.write_mode, cfg.encoding)
        except OSError as exc:
            raise SinkIOError(f"Cannot write checksum file {path}", phase="checksum") from exc

        self.result.checksum_path = path
        logger.info(f"Generated checksum : {path} - {digest}")

    # ------------------------------------------------------------------
    def _transition(self, new_state: PipelineState) -> None:
        logger.debug(f"State: {self.state.value} -> {new_state.value}")
        self.state = new_state
