"""Выбор потокового компрессора по суффиксу имени файла.

Правила проверяются по порядку, первое совпадение выигрывает:
    .deflate -> zlib/deflate
    .gz      -> gzip
    .bz2     -> bzip2
    иначе    -> без сжатия

Неизвестный суффикс — не ошибка. stdout никогда не сжимается.
Таблицу можно расширить через CompressionSelector.register().
"""

from __future__ import annotations

import bz2
import gzip
import os
from typing import BinaryIO, Callable, Iterable, List, NamedTuple, Optional

from export.models import STDOUT_MARKER

from .streams import DeflateWriter

StreamFactory = Callable[[BinaryIO], BinaryIO]
Predicate = Callable[[str], bool]


class CompressionRule(NamedTuple):
    name: str
    predicate: Predicate
    factory: StreamFactory


def identity(stream: BinaryIO) -> BinaryIO:
    return stream


def _gzip(stream: BinaryIO) -> BinaryIO:
    # mtime=0 и пустое имя: одинаковый вход -> одинаковые байты на выходе
    return gzip.GzipFile(filename="", fileobj=stream, mode="wb", mtime=0)


def _bzip2(stream: BinaryIO) -> BinaryIO:
    return bz2.BZ2File(stream, mode="wb")


def _deflate(stream: BinaryIO) -> BinaryIO:
    return DeflateWriter(stream)


def has_suffix(suffix: str) -> Predicate:
    return lambda name: name.endswith(suffix)


IDENTITY_RULE = CompressionRule("none", lambda name: True, identity)

DEFAULT_RULES = (
    CompressionRule("deflate", has_suffix(".deflate"), _deflate),
    CompressionRule("gzip", has_suffix(".gz"), _gzip),
    CompressionRule("bzip2", has_suffix(".bz2"), _bzip2),
)


class CompressionSelector:
    """Упорядоченная таблица (predicate, factory)."""

    def __init__(self, rules: Optional[Iterable[CompressionRule]] = None) -> None:
        self._rules: List[CompressionRule] = list(DEFAULT_RULES if rules is None else rules)

    # ------------------------------------------------------------------
    def register(self, rule: CompressionRule, *, first: bool = False) -> None:
        if first:
            self._rules.insert(0, rule)
        else:
            self._rules.append(rule)

    @property
    def rules(self) -> List[CompressionRule]:
        return list(self._rules)

    # ------------------------------------------------------------------
    def rule_for(self, filename: Optional[str]) -> CompressionRule:
        if filename is None or filename == STDOUT_MARKER:
            return IDENTITY_RULE

        name = os.path.basename(filename)
        for rule in self._rules:
            if rule.predicate(name):
                return rule
        return IDENTITY_RULE

    def select(self, filename: Optional[str]) -> StreamFactory:
        return self.rule_for(filename).factory
