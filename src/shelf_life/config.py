"""Configuration management for Shelf Life.

Settings come from a TOML file with three optional sections::

    [data]
    storage_dir = "~/shelf-life/data"
    backend = "json"          # or "sqlite"
    backup_dir = "~/backups"

    [time]
    timezone = "Europe/Rome"  # default: system local zone

    [logging]
    level = "INFO"
"""

import logging
import tomllib
from dataclasses import dataclass, field
from datetime import tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

DEFAULT_STORAGE_DIR = "~/shelf-life/data"


@dataclass
class DataConfig:
    """Where and how the dataset is stored."""

    storage_dir: Path = field(default_factory=lambda: Path(DEFAULT_STORAGE_DIR).expanduser())
    backend: str = "json"
    backup_dir: Path | None = None


@dataclass
class TimeConfig:
    """Calendar configuration."""

    timezone: str | None = None

    @property
    def tzinfo(self) -> tzinfo | None:
        """Configured zone, or None for the system local zone."""
        return ZoneInfo(self.timezone) if self.timezone else None


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"

    @property
    def level_number(self) -> int:
        return logging.getLevelNamesMapping().get(self.level.upper(), logging.WARNING)


@dataclass
class Config:
    """All configuration sections."""

    data: DataConfig = field(default_factory=DataConfig)
    time: TimeConfig = field(default_factory=TimeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _optional_path(value: str | None) -> Path | None:
    return Path(value).expanduser() if value else None


class ConfigManager:
    """Loads Shelf Life settings from the first config file found."""

    SEARCH_PATHS = (
        Path("config.toml"),
        Path("~/.config/shelf-life/config.toml"),
        Path("~/.shelf-life/config.toml"),
    )

    def __init__(self, config_path: Path | None = None):
        """Load settings.

        Args:
            config_path: Explicit config file. When omitted the search paths
                are tried in order; a missing file means all defaults.
        """
        self.config_path = config_path or self._find_config()
        self._config = self._load_config()

    @property
    def data(self) -> DataConfig:
        return self._config.data

    @property
    def time(self) -> TimeConfig:
        return self._config.time

    @property
    def logging(self) -> LoggingConfig:
        return self._config.logging

    def _find_config(self) -> Path:
        candidates = [
            Path.cwd() / p if not str(p).startswith("~") else p.expanduser()
            for p in self.SEARCH_PATHS
        ]
        for candidate in candidates:
            if candidate.exists():
                return candidate
        return candidates[1]

    def _load_config(self) -> Config:
        if not self.config_path.exists():
            return Config()

        with open(self.config_path, "rb") as f:
            raw = tomllib.load(f)

        data = raw.get("data", {})
        return Config(
            data=DataConfig(
                storage_dir=Path(data.get("storage_dir", DEFAULT_STORAGE_DIR)).expanduser(),
                backend=data.get("backend", "json"),
                backup_dir=_optional_path(data.get("backup_dir")),
            ),
            time=TimeConfig(timezone=raw.get("time", {}).get("timezone")),
            logging=LoggingConfig(level=raw.get("logging", {}).get("level", "WARNING")),
        )

    def get(self, key_path: str, default: Any = None) -> Any:
        """Look up a value by dotted path, e.g. ``"data.backend"``.

        Returns ``default`` when any part of the path is missing or unset.
        """
        value: Any = self._config
        for key in key_path.split("."):
            value = getattr(value, key, None)
            if value is None:
                return default
        return value
