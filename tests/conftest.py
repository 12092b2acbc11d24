"""Shared test fixtures for Shelf Life."""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from shelf_life.data_store import DataStore
from shelf_life.inventory_manager import InventoryManager
from shelf_life.logging_config import configure_logging
from shelf_life.models import PerishableItem, StorageCategory
from shelf_life.reconciliation import BackupService
from shelf_life.sqlite_store import SQLiteStore

ROME = ZoneInfo("Europe/Rome")


@pytest.fixture
def rome():
    """A zone with DST, so calendar-day math is exercised."""
    return ROME


@pytest.fixture
def temp_data_dir(tmp_path):
    """Create a temporary data directory."""
    data_dir = tmp_path / "test_data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def data_store(temp_data_dir):
    """Create a DataStore with temporary directory."""
    return DataStore(data_dir=temp_data_dir)


@pytest.fixture
def sqlite_store(tmp_path):
    """Create a SQLiteStore with a temporary database."""
    return SQLiteStore(db_path=tmp_path / "pantry.db")


@pytest.fixture
def backup_service(data_store):
    """Create a BackupService over the JSON store."""
    return BackupService(data_store=data_store, tz=ROME)


@pytest.fixture
def inventory_manager(data_store):
    """Create an InventoryManager with temporary storage."""
    return InventoryManager(data_store=data_store, tz=ROME)


@pytest.fixture
def make_item():
    """Factory for items with fixed, zone-aware timestamps."""

    def _make(
        name: str = "Milk",
        category: StorageCategory = StorageCategory.FRIDGE,
        expires: datetime = datetime(2024, 6, 10, 12, 0, tzinfo=ROME),
        updated: datetime = datetime(2024, 6, 1, 9, 0, tzinfo=ROME),
        **fields,
    ) -> PerishableItem:
        fields.setdefault("created_at", datetime(2024, 6, 1, 9, 0, tzinfo=ROME))
        return PerishableItem(
            name=name,
            category=category,
            expiration_date=expires,
            last_updated=updated,
            **fields,
        )

    return _make


@pytest.fixture
def isolated_home(tmp_path, monkeypatch):
    """Keep real config files out of CLI runs."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    yield home
    # The CLI bound the root handler to the runner's stderr.
    configure_logging(force=True)
