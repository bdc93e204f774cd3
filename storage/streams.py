"""Байтовые обёртки, из которых собирается SinkStack.

Все обёртки — pass-through: пишут в target и ничего не закрывают ниже себя.
Закрытием каждого слоя управляет SinkStack (ExitStack, обратный порядок).
"""

from __future__ import annotations

import hashlib
import io
import zlib
from typing import BinaryIO

from export.exceptions import ConfigurationError


class _ForwardingWriter(io.RawIOBase):
    """Общая часть: writable, flush вниз по цепочке, close без закрытия target."""

    def __init__(self, target: BinaryIO) -> None:
        super().__init__()
        self._target = target

    def writable(self) -> bool:
        return True

    def write(self, b) -> int:
        data = bytes(b)
        self._target.write(data)
        return len(data)

    def flush(self) -> None:
        if not self.closed:
            self._target.flush()

    def close(self) -> None:
        if not self.closed:
            try:
                self.flush()
            finally:
                super().close()


class DigestingWriter(_ForwardingWriter):
    """Обновляет дайджест каждым прошедшим байтом. Без дайджеста — просто проброс."""

    def __init__(self, target: BinaryIO, digest=None) -> None:
        super().__init__(target)
        self._digest = digest

    @property
    def enabled(self) -> bool:
        return self._digest is not None

    def write(self, b) -> int:
        data = bytes(b)
        if self._digest is not None:
            self._digest.update(data)
        self._target.write(data)
        return len(data)

    def digest_so_far(self) -> bytes:
        """Дайджест по уже записанным байтам (копия, текущее состояние не трогаем)."""
        if self._digest is None:
            return b""
        return self._digest.copy().digest()


class CountingWriter(_ForwardingWriter):
    """Считает байты, ушедшие в target."""

    def __init__(self, target: BinaryIO) -> None:
        super().__init__(target)
        self.bytes_written = 0

    def write(self, b) -> int:
        data = bytes(b)
        self._target.write(data)
        self.bytes_written += len(data)
        return len(data)


class DeflateWriter(_ForwardingWriter):
    """Потоковый deflate в zlib-контейнере (заголовок и adler32, как у zlib.compress)."""

    def __init__(self, target: BinaryIO, level: int = zlib.Z_DEFAULT_COMPRESSION) -> None:
        super().__init__(target)
        self._compressor = zlib.compressobj(level)
        self._finished = False

    def write(self, b) -> int:
        data = bytes(b)
        chunk = self._compressor.compress(data)
        if chunk:
            self._target.write(chunk)
        return len(data)

    def flush(self) -> None:
        if self.closed or self._finished:
            return
        self._target.write(self._compressor.flush(zlib.Z_SYNC_FLUSH))
        self._target.flush()

    def close(self) -> None:
        if self.closed:
            return
        try:
            if not self._finished:
                self._finished = True
                self._target.write(self._compressor.flush(zlib.Z_FINISH))
                self._target.flush()
        finally:
            io.RawIOBase.close(self)


class NonClosingWriter(_ForwardingWriter):
    """Для stdout: close() только сбрасывает буфер, сам поток остаётся открытым."""


def new_digest(algorithm: str):
    """
    hashlib-объект по имени алгоритма в любом привычном написании:
    'SHA-256', 'sha256', 'SHA3-256', 'md5'.

    Алгоритмы с переменной длиной (SHAKE) не подходят: digest() без длины.
    """
    lowered = algorithm.strip().lower()
    candidates = [algorithm, lowered, lowered.replace("-", ""), lowered.replace("-", "_")]
    for name in candidates:
        try:
            digest = hashlib.new(name)
        except (ValueError, TypeError):
            continue
        if digest.digest_size == 0:
            raise ConfigurationError(
                f"Variable-length digest algorithm is not supported: {algorithm!r}", phase="configure"
            )
        return digest
    raise ConfigurationError(f"Unknown digest algorithm: {algorithm!r}", phase="configure")
