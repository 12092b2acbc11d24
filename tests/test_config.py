"""Tests for configuration management."""

import logging
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from shelf_life.config import ConfigManager
from shelf_life.logging_config import LOG_FORMAT, configure_logging


@pytest.fixture
def config_file(tmp_path):
    """Create a temporary config file."""
    config_path = tmp_path / "config.toml"
    config_path.write_text("""
[data]
storage_dir = "/custom/data"
backend = "sqlite"
backup_dir = "/custom/backups"

[time]
timezone = "Europe/Rome"

[logging]
level = "debug"
""")
    return config_path


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_load_config_file(self, config_file):
        """Load data configuration from file."""
        manager = ConfigManager(config_path=config_file)

        assert manager.data.storage_dir == Path("/custom/data")
        assert manager.data.backend == "sqlite"
        assert manager.data.backup_dir == Path("/custom/backups")

    def test_time_config(self, config_file):
        """Configured zone is resolved to a ZoneInfo."""
        manager = ConfigManager(config_path=config_file)
        assert manager.time.tzinfo == ZoneInfo("Europe/Rome")

    def test_logging_config(self, config_file):
        """Level names are case-insensitive."""
        manager = ConfigManager(config_path=config_file)
        assert manager.logging.level_number == logging.DEBUG

    def test_missing_config_uses_defaults(self, tmp_path):
        """Missing config file uses default values."""
        manager = ConfigManager(config_path=tmp_path / "nonexistent.toml")

        assert manager.data.storage_dir == Path.home() / "shelf-life" / "data"
        assert manager.data.backend == "json"
        assert manager.data.backup_dir is None
        assert manager.time.tzinfo is None
        assert manager.logging.level_number == logging.WARNING

    def test_partial_config(self, tmp_path):
        """Sections left out fall back to defaults."""
        config_path = tmp_path / "config.toml"
        config_path.write_text('[data]\nstorage_dir = "~/pantry"\n')
        manager = ConfigManager(config_path=config_path)

        assert manager.data.storage_dir == Path.home() / "pantry"
        assert manager.data.backend == "json"
        assert manager.time.timezone is None

    def test_unknown_level_falls_back(self, tmp_path):
        config_path = tmp_path / "config.toml"
        config_path.write_text('[logging]\nlevel = "chatty"\n')
        assert ConfigManager(config_path=config_path).logging.level_number == logging.WARNING

    def test_get_dot_path(self, config_file):
        """Get values by dot-notation path."""
        manager = ConfigManager(config_path=config_file)

        assert manager.get("data.backend") == "sqlite"
        assert manager.get("time.timezone") == "Europe/Rome"
        assert manager.get("data.missing", "fallback") == "fallback"
        assert manager.get("nothing.here") is None

    def test_finds_config_in_cwd(self, config_file, monkeypatch):
        """A config.toml in the working directory wins."""
        monkeypatch.chdir(config_file.parent)
        manager = ConfigManager()
        assert manager.config_path.resolve() == config_file.resolve()


class TestConfigureLogging:
    """Tests for the logging helper."""

    def test_sets_root_level(self):
        root = logging.getLogger()
        previous = root.level
        try:
            configure_logging(level=logging.DEBUG, force=True)
            assert root.level == logging.DEBUG
            assert root.handlers[0].formatter._fmt == LOG_FORMAT
        finally:
            configure_logging(level=previous, force=True)
