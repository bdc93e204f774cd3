"""Tests for Settings: environment, overrides and validation."""

import dataclasses
import os
import tempfile

import pytest

from config.settings import DEFAULT_STATEMENT, Settings
from export.exceptions import ConfigurationError
from export.models import NullReplacement, WriteMode


class TestFromEnv:
    def test_defaults(self):
        settings = Settings.from_env()

        assert settings.driver == "sqlite3"
        assert settings.url == ":memory:"
        assert settings.statement == DEFAULT_STATEMENT
        assert settings.delimiter == ","
        assert settings.quote_char == '"'
        assert settings.escape_char == '"'
        assert settings.line_terminator == "\n"
        assert settings.include_header is True
        assert settings.checksum is True
        assert settings.algorithm == "SHA-256"
        assert settings.flush_interval == 0
        assert settings.write_mode is WriteMode.TRUNCATE_EXISTING
        assert settings.output.startswith(tempfile.gettempdir())
        assert os.path.basename(settings.output).startswith("sql_export_")
        assert settings.output.endswith(".csv")

    def test_environment_values(self, monkeypatch):
        monkeypatch.setenv("SQL_EXPORT_DELIMITER", ";")
        monkeypatch.setenv("SQL_EXPORT_HEADER", "false")
        monkeypatch.setenv("SQL_EXPORT_FLUSH", "10")
        monkeypatch.setenv("SQL_EXPORT_WRITE_MODE", "create-new")
        monkeypatch.setenv("SQL_EXPORT_OUTPUT", "/data/out.csv.gz")
        monkeypatch.setenv("SQL_EXPORT_NULL_REPLACEMENT", "NULL")

        settings = Settings.from_env()

        assert settings.delimiter == ";"
        assert settings.include_header is False
        assert settings.flush_interval == 10
        assert settings.write_mode is WriteMode.CREATE_NEW
        assert settings.output == "/data/out.csv.gz"
        assert settings.null_replacement == "NULL"

    def test_garbage_integer_falls_back_to_default(self, monkeypatch):
        monkeypatch.setenv("SQL_EXPORT_FLUSH", "often")
        assert Settings.from_env().flush_interval == 0

    def test_empty_variable_means_unset(self, monkeypatch):
        monkeypatch.setenv("SQL_EXPORT_DRIVER", "")
        assert Settings.from_env().driver == "sqlite3"

    def test_unknown_write_mode(self, monkeypatch):
        monkeypatch.setenv("SQL_EXPORT_WRITE_MODE", "append")
        with pytest.raises(ConfigurationError):
            Settings.from_env()

    def test_overrides_win_and_none_is_ignored(self, monkeypatch):
        monkeypatch.setenv("SQL_EXPORT_DELIMITER", ";")
        settings = Settings.from_env({"delimiter": None, "flush_interval": 5, "output": "x.csv"})

        assert settings.delimiter == ";"
        assert settings.flush_interval == 5
        assert settings.output == "x.csv"

    def test_unknown_override(self):
        with pytest.raises(ConfigurationError) as excinfo:
            Settings.from_env({"colour": "blue"})
        assert "colour" in str(excinfo.value)

    def test_settings_are_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            Settings().delimiter = ";"


class TestValidate:
    def test_valid_defaults(self):
        Settings(output="out.csv").validate()

    def test_errors_are_aggregated(self):
        settings = Settings(output="out.csv", delimiter=";;", fetch_size=0, algorithm="NOPE-1")
        with pytest.raises(ConfigurationError) as excinfo:
            settings.validate()

        message = str(excinfo.value)
        assert "Configuration errors:" in message
        assert "delimiter" in message
        assert "fetch_size" in message
        assert "NOPE-1" in message

    def test_variable_length_algorithm(self):
        with pytest.raises(ConfigurationError) as excinfo:
            Settings(output="out.csv", algorithm="SHAKE128").validate()
        assert "SHAKE128" in str(excinfo.value)

    def test_unknown_algorithm_ignored_without_checksum(self):
        Settings(output="out.csv", checksum=False, algorithm="NOPE-1").validate()

    def test_bad_timezone(self):
        with pytest.raises(ConfigurationError) as excinfo:
            Settings(output="out.csv", timezone="Mars/Olympus").validate()
        assert "Mars/Olympus" in str(excinfo.value)

    def test_bad_encoding(self):
        with pytest.raises(ConfigurationError):
            Settings(output="out.csv", encoding="no-such-encoding").validate()

    def test_empty_statement(self):
        with pytest.raises(ConfigurationError):
            Settings(output="out.csv", statement="   ").validate()

    def test_negative_flush(self):
        with pytest.raises(ConfigurationError):
            Settings(output="out.csv", flush_interval=-1).validate()


class TestDerivedConfigs:
    def test_sink_config_with_checksum(self):
        sink = Settings(output="out.csv").sink_config()
        assert sink.digest_algorithm == "SHA-256"
        assert sink.checksum_path == "out.csv.sha256"

    def test_sink_config_without_checksum(self):
        sink = Settings(output="out.csv", checksum=False).sink_config()
        assert sink.digest_algorithm is None
        assert sink.checksum_path is None

    def test_stdout_has_no_checksum_path(self):
        assert Settings(output="-").sink_config().checksum_path is None

    def test_formatter_config_marks_replacement(self):
        config = Settings(null_replacement="NULL").formatter_config()
        assert isinstance(config.null_replacement, NullReplacement)

    def test_encoder_config(self):
        config = Settings(delimiter="|", include_header=False).encoder_config()
        assert config.delimiter == "|"
        assert config.include_header is False


class TestWriteModeParse:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("CREATE", WriteMode.CREATE),
            ("create_new", WriteMode.CREATE_NEW),
            ("create-new", WriteMode.CREATE_NEW),
            ("truncate", WriteMode.TRUNCATE_EXISTING),
            (" TRUNCATE_EXISTING ", WriteMode.TRUNCATE_EXISTING),
        ],
    )
    def test_spellings(self, raw, expected):
        assert WriteMode.parse(raw) is expected

    def test_unknown(self):
        with pytest.raises(ValueError):
            WriteMode.parse("append")
