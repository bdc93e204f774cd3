"""Tests for the command line entry point."""

import hashlib

import pytest

from main import build_parser, main
from export.models import WriteMode

FOO_BAR = "select 'foo bar' as TEST;"


class TestParser:
    def test_short_options(self):
        args = build_parser().parse_args(
            ["-o", "out.csv", "-d", "\\t", "-h", "false", "-f", "100", "-w", "create-new", "-Q", "-n", ""]
        )
        assert args.output == "out.csv"
        assert args.delimiter == "\t"
        assert args.include_header is False
        assert args.flush_interval == 100
        assert args.write_mode is WriteMode.CREATE_NEW
        assert args.quote_all_columns is True
        assert args.null_replacement == ""

    def test_unset_options_are_none(self):
        args = vars(build_parser().parse_args(["-o", "out.csv"]))
        assert args["delimiter"] is None
        assert args["include_header"] is None
        assert args["checksum"] is None

    def test_empty_quote_char_allowed(self):
        assert build_parser().parse_args(["-q", ""]).quote_char == ""

    @pytest.mark.parametrize(
        "argv",
        [["-d", "ab"], ["-d", ""], ["-f", "-1"], ["-h", "maybe"], ["-w", "append"]],
    )
    def test_invalid_values(self, argv):
        with pytest.raises(SystemExit) as excinfo:
            build_parser().parse_args(argv)
        assert excinfo.value.code == 2


class TestMain:
    def test_no_arguments_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out

    def test_help(self):
        with pytest.raises(SystemExit) as excinfo:
            main(["--help"])
        assert excinfo.value.code == 0

    def test_export(self, tmp_path):
        out = tmp_path / "out.csv"
        assert main(["-o", str(out), "-s", FOO_BAR]) == 0

        assert out.read_bytes() == b'"TEST"\n"foo bar"\n'
        digest = hashlib.sha256(out.read_bytes()).hexdigest()
        assert (tmp_path / "out.csv.sha256").read_text() == digest

    def test_header_off(self, tmp_path):
        out = tmp_path / "out.csv"
        assert main(["-o", str(out), "-s", FOO_BAR, "-h", "false", "-f", "1"]) == 0
        assert out.read_bytes() == b'"foo bar"\n'

    def test_tab_separated_without_quotes(self, tmp_path):
        out = tmp_path / "out.tsv"
        argv = ["--out", str(out), "--statement", "select 1 as a, 'x y' as b", "-d", "\\t", "-Q", "false"]
        assert main(argv) == 0
        assert out.read_text() == "a\tb\n1\tx y\n"

    def test_statement_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SQL_EXPORT_STATEMENT", "select 'env' as E")
        out = tmp_path / "out.csv"
        assert main(["-o", str(out), "-c", "false"]) == 0
        assert out.read_text() == '"E"\n"env"\n'
        assert not (tmp_path / "out.csv.sha256").exists()

    def test_configuration_error(self, tmp_path):
        out = tmp_path / "out.csv"
        assert main(["-o", str(out), "-a", "NOPE-1"]) == 2
        assert not out.exists()

    def test_unknown_driver(self, tmp_path):
        assert main(["-o", str(tmp_path / "out.csv"), "-j", "no_such_dbapi_driver"]) == 2

    def test_query_error(self, tmp_path):
        assert main(["-o", str(tmp_path / "out.csv"), "-s", "select * from nowhere"]) == 1

    def test_create_new_existing(self, tmp_path):
        out = tmp_path / "out.csv"
        out.write_text("keep")
        assert main(["-o", str(out), "-s", FOO_BAR, "-w", "CREATE_NEW"]) == 1
        assert out.read_text() == "keep"
