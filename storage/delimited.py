"""Запись строк в delimited-текст (CSV/TSV/...) через SinkStack."""

from __future__ import annotations

from typing import Optional, Sequence

from export.encoder import DelimitedEncoder
from export.exceptions import SinkIOError
from export.models import Column, EncoderConfig, SinkConfig
from utils.logger import logger

from .base import RowSink
from .compression import CompressionSelector
from .sink_stack import SinkStack


class DelimitedFileSink(RowSink):
    """Кодирует строки DelimitedEncoder'ом и пишет их в SinkStack."""

    def __init__(
        self,
        sink_config: SinkConfig,
        encoder_config: EncoderConfig,
        *,
        selector: Optional[CompressionSelector] = None,
    ) -> None:
        self._sink_config = sink_config
        self._encoder = DelimitedEncoder(encoder_config)
        self._stack = SinkStack(sink_config, selector)
        self._opened = False

    # ------------------------------------------------------------------
    @property
    def output_path(self) -> str:
        return "<stdout>" if self._sink_config.is_stdout else self._sink_config.destination

    @property
    def bytes_written(self) -> int:
        return self._stack.bytes_written

    def hex_digest(self) -> Optional[str]:
        return self._stack.hex_digest()

    @property
    def compression(self) -> str:
        return self._stack.compression

    # ------------------------------------------------------------------
    def open(self) -> None:
        self._stack.open()
        self._opened = True
        logger.info(
            f"Writing to : {self.output_path} (mode={self._sink_config.write_mode.value} / "
            f"encoding={self._sink_config.encoding} / compression={self.compression})"
        )

    def write_header(self, columns: Sequence[Column]) -> None:
        self._write(self._encoder.encode_header(columns))

    def write_row(self, values: Sequence[Optional[str]]) -> None:
        self._write(self._encoder.encode_row(values))

    def flush(self) -> None:
        self._stack.flush()

    def close(self) -> None:
        if not self._opened:
            return
        self._opened = False
        self._stack.close()

    def __exit__(self, exc_type, exc, tb) -> None:
        self._opened = False
        self._stack.__exit__(exc_type, exc, tb)

    # ------------------------------------------------------------------
    def _write(self, line: str) -> None:
        try:
            self._stack.text.write(line)
        except UnicodeEncodeError as exc:
            raise SinkIOError(
                f"Value cannot be encoded as {self._sink_config.encoding}", phase="stream"
            ) from exc
        except OSError as exc:
            raise SinkIOError(f"Cannot write to {self.output_path}", phase="stream") from exc
