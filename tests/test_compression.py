"""Tests for suffix-based compressor selection."""

import bz2
import gzip
import io

import pytest

from storage.compression import CompressionRule, CompressionSelector, has_suffix, identity
from storage.streams import DeflateWriter


class TestRuleFor:
    def setup_method(self):
        self.selector = CompressionSelector()

    @pytest.mark.parametrize(
        "filename, expected",
        [
            ("out.csv", "none"),
            ("out.csv.gz", "gzip"),
            ("out.csv.bz2", "bzip2"),
            ("out.deflate", "deflate"),
            ("out.gz.bz2", "bzip2"),
            ("out.csv.zip", "none"),
            ("/tmp/dir.gz/out.csv", "none"),
            ("-", "none"),
            (None, "none"),
        ],
    )
    def test_rule_by_suffix(self, filename, expected):
        assert self.selector.rule_for(filename).name == expected

    def test_first_match_wins(self):
        selector = CompressionSelector()
        selector.register(CompressionRule("plain-gz", has_suffix(".gz"), identity), first=True)
        assert selector.rule_for("out.gz").name == "plain-gz"

    def test_appended_rule_extends_table(self):
        selector = CompressionSelector()
        selector.register(CompressionRule("plain-xz", has_suffix(".xz"), identity))
        assert selector.rule_for("out.xz").name == "plain-xz"
        assert [r.name for r in selector.rules][-1] == "plain-xz"

    def test_empty_table(self):
        assert CompressionSelector(rules=[]).rule_for("out.gz").name == "none"


class TestSelect:
    def setup_method(self):
        self.selector = CompressionSelector()
        self.buffer = io.BytesIO()

    def test_identity_returns_same_stream(self):
        assert self.selector.select("out.csv")(self.buffer) is self.buffer

    def test_stdout_is_never_compressed(self):
        assert self.selector.select("-")(self.buffer) is self.buffer

    def test_gzip(self):
        stream = self.selector.select("out.gz")(self.buffer)
        assert isinstance(stream, gzip.GzipFile)
        stream.close()

    def test_bzip2(self):
        stream = self.selector.select("out.bz2")(self.buffer)
        assert isinstance(stream, bz2.BZ2File)
        stream.close()

    def test_deflate(self):
        stream = self.selector.select("out.deflate")(self.buffer)
        assert isinstance(stream, DeflateWriter)
        stream.close()

    def test_gzip_output_is_reproducible(self):
        outputs = []
        for _ in range(2):
            buffer = io.BytesIO()
            with self.selector.select("out.gz")(buffer) as stream:
                stream.write(b"same input\n")
            outputs.append(buffer.getvalue())
        assert outputs[0] == outputs[1]
