"""Композиция слоёв вывода вокруг одного файла (или stdout).

Порядок, в котором байты идут к ОС (снаружи внутрь):

    text (TextIOWrapper, кодировка)
      -> компрессор (по суффиксу, см. compression.py)
        -> CountingWriter
          -> DigestingWriter
            -> файл / stdout

Счётчик и дайджест стоят ПОСЛЕ компрессора: они видят ровно те байты,
которые оказываются в файле. Поэтому контрольную сумму можно проверить,
просто захешировав готовый файл.

Каждый слой регистрируется в ExitStack, закрытие идёт строго в обратном
порядке на любом пути выхода. Компрессор успевает дописать хвост (трейлер gzip)
до того, как читаются итоговые счётчик и дайджест.
"""

from __future__ import annotations

import codecs
import io
import os
import sys
from contextlib import ExitStack, closing
from typing import BinaryIO, List, Optional, TextIO

from export.exceptions import ConfigurationError, SinkIOError
from export.models import SinkConfig, WriteMode
from utils.logger import logger

from .compression import CompressionSelector
from .streams import CountingWriter, DigestingWriter, NonClosingWriter, new_digest

_OPEN_FLAGS = {
    WriteMode.CREATE: os.O_WRONLY | os.O_CREAT,
    WriteMode.TRUNCATE_EXISTING: os.O_WRONLY | os.O_CREAT | os.O_TRUNC,
    WriteMode.CREATE_NEW: os.O_WRONLY | os.O_CREAT | os.O_EXCL,
}


class SinkStack:
    """
    Использование:
        with SinkStack(config) as stack:
            stack.text.write("...")
            stack.flush()
        stack.bytes_written, stack.hex_digest()
    """

    def __init__(self, config: SinkConfig, selector: Optional[CompressionSelector] = None) -> None:
        self._config = config
        self._selector = selector or CompressionSelector()

        self._exit: Optional[ExitStack] = None
        self._layers: List[io.IOBase] = []
        self._digester: Optional[DigestingWriter] = None
        self._counter: Optional[CountingWriter] = None
        self._text: Optional[TextIO] = None

        self.compression = self._selector.rule_for(config.destination).name

    # ------------------------------------------------------------------
    @property
    def config(self) -> SinkConfig:
        return self._config

    @property
    def text(self) -> TextIO:
        if self._text is None:
            raise RuntimeError("SinkStack is not opened")
        return self._text

    @property
    def bytes_written(self) -> int:
        return self._counter.bytes_written if self._counter is not None else 0

    def digest_so_far(self) -> bytes:
        return self._digester.digest_so_far() if self._digester is not None else b""

    def hex_digest(self) -> Optional[str]:
        if self._digester is None or not self._digester.enabled:
            return None
        return self.digest_so_far().hex()

    # ------------------------------------------------------------------
    def open(self) -> "SinkStack":
        cfg = self._config

        try:
            codecs.lookup(cfg.encoding)
        except LookupError as exc:
            raise ConfigurationError(f"Unknown encoding: {cfg.encoding!r}", phase="open") from exc

        digest = new_digest(cfg.digest_algorithm) if cfg.digest_algorithm else None

        stack = ExitStack()
        try:
            raw = stack.enter_context(closing(self._open_raw()))
            self._digester = stack.enter_context(closing(DigestingWriter(raw, digest)))
            self._counter = stack.enter_context(closing(CountingWriter(self._digester)))

            compressed = self._selector.select(cfg.destination)(self._counter)
            if compressed is not self._counter:
                stack.enter_context(closing(compressed))

            self._text = stack.enter_context(
                io.TextIOWrapper(compressed, encoding=cfg.encoding, newline="", write_through=False)
            )
            # text.flush() проходит вниз по цепочке, кроме bz2 (BZ2File.flush не
            # трогает fileobj), поэтому отдельно сбрасываем и счётчик
            self._layers = [self._text, self._counter]
        except OSError as exc:
            stack.close()
            raise SinkIOError(f"Cannot open output {cfg.destination}", phase="open") from exc
        except BaseException:
            stack.close()
            raise

        self._exit = stack
        logger.debug(
            f"Sink opened: {cfg.destination} (mode={cfg.write_mode.value}, "
            f"compression={self.compression}, digest={cfg.digest_algorithm or 'off'})"
        )
        return self

    def flush(self) -> None:
        """Сброс всех буферизующих слоёв."""
        try:
            for layer in self._layers:
                layer.flush()
        except OSError as exc:
            raise SinkIOError(f"Cannot flush output {self._config.destination}", phase="flush") from exc

    def close(self) -> None:
        if self._exit is None:
            return
        exit_stack, self._exit = self._exit, None
        self._layers = []
        try:
            exit_stack.close()
        except OSError as exc:
            raise SinkIOError(f"Cannot finalize output {self._config.destination}", phase="close") from exc

    # ------------------------------------------------------------------
    def __enter__(self) -> "SinkStack":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
            return
        # Уже падаем: ошибку закрытия только логируем, наверх уходит исходная.
        try:
            self.close()
        except SinkIOError as close_exc:
            logger.error(f"Sink cleanup after failure also failed: {close_exc}")

    # ------------------------------------------------------------------
    def _open_raw(self) -> BinaryIO:
        cfg = self._config
        if cfg.is_stdout:
            sys.stdout.flush()
            return NonClosingWriter(sys.stdout.buffer)

        flags = _OPEN_FLAGS[cfg.write_mode] | getattr(os, "O_BINARY", 0)
        fd = os.open(cfg.destination, flags, 0o666)
        return os.fdopen(fd, "wb")


def write_artifact(path: str, content: str, write_mode: WriteMode, encoding: str) -> None:
    """Маленький текстовый файл рядом с выгрузкой (контрольная сумма), тем же режимом записи."""
    flags = _OPEN_FLAGS[write_mode] | getattr(os, "O_BINARY", 0)
    fd = os.open(path, flags, 0o666)
    with os.fdopen(fd, "wb") as fh:
        fh.write(content.encode(encoding))
