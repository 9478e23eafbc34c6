"""
Unit tests for configuration and logging setup.

Tests cover:
- Defaults
- Environment variable overrides
- Explicit config files
- Log handler selection
"""

import logging

import json_log_formatter
import pydantic
import pytest

from cmdb.alexandria.config import Settings, get_settings, load_settings
from cmdb.alexandria.log import setup_logging


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    """Run without stray config files, env vars or cached settings."""
    monkeypatch.chdir(tmp_path)
    for var in ("LOG_LEVEL", "LOG_FORMAT", "CMDB_NAME", "STRICT_RECORDS"):
        monkeypatch.delenv(f"ALEXANDRIA_{var}", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def root_logger():
    """Root logger, restored after the test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        """Settings have local defaults."""
        settings = Settings()

        assert settings.log_level == "INFO"
        assert settings.log_format == "text"
        assert settings.cmdb_name == "default"
        assert settings.strict_records is True

    def test_env_override(self, monkeypatch):
        """ALEXANDRIA_* variables override defaults."""
        monkeypatch.setenv("ALEXANDRIA_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("ALEXANDRIA_STRICT_RECORDS", "false")

        settings = Settings()

        assert settings.log_level == "DEBUG"
        assert settings.strict_records is False

    def test_json_file_in_working_directory(self, tmp_path):
        """config.json in the working directory is read."""
        (tmp_path / "config.json").write_text('{"cmdb_name": "lab"}')
        assert Settings().cmdb_name == "lab"

    def test_env_beats_json_file(self, tmp_path, monkeypatch):
        """Environment variables take priority over config.json."""
        (tmp_path / "config.json").write_text('{"cmdb_name": "lab"}')
        monkeypatch.setenv("ALEXANDRIA_CMDB_NAME", "prod")
        assert Settings().cmdb_name == "prod"

    def test_invalid_log_format(self):
        """Unknown log formats are rejected."""
        with pytest.raises(pydantic.ValidationError):
            Settings(log_format="xml")

    def test_get_settings_cached(self):
        """get_settings() returns the same instance."""
        assert get_settings() is get_settings()


class TestLoadSettings:
    """Tests for load_settings."""

    def test_yaml_file(self, tmp_path):
        """Settings load from YAML."""
        path = tmp_path / "alexandria.yaml"
        path.write_text("log_level: WARNING\nlog_format: json\n")

        settings = load_settings(path)

        assert settings.log_level == "WARNING"
        assert settings.log_format == "json"

    def test_empty_file(self, tmp_path):
        """An empty file gives defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_settings(path).log_level == "INFO"

    def test_not_a_mapping(self, tmp_path):
        """Files must contain a mapping."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="must contain a mapping"):
            load_settings(path)

    def test_missing_file(self, tmp_path):
        """Missing explicit files raise."""
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.yaml")


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_text_format(self, root_logger):
        """Text logging uses a plain formatter."""
        setup_logging(Settings(log_level="debug"))

        assert root_logger.level == logging.DEBUG
        assert len(root_logger.handlers) == 1
        assert not isinstance(root_logger.handlers[0].formatter, json_log_formatter.JSONFormatter)

    def test_json_format(self, root_logger):
        """JSON logging uses JSONFormatter."""
        setup_logging(Settings(log_format="json"))
        assert isinstance(root_logger.handlers[0].formatter, json_log_formatter.JSONFormatter)

    def test_unknown_level_falls_back_to_info(self, root_logger):
        """Unknown level names give INFO."""
        setup_logging(Settings(log_level="chatty"))
        assert root_logger.level == logging.INFO
