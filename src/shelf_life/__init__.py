"""Shelf Life - Perishable food tracking with safe backup and restore."""

from .config import ConfigManager
from .data_store import BackendType, create_data_store, DataStore
from .errors import (
    ItemNotFoundError,
    MalformedSnapshot,
    PersistenceFailure,
    ShelfLifeError,
    ValidationFailure,
)
from .expiration import add_calendar_days, effective_expiration
from .identity import identity_key, item_identity_key, normalize_item_name
from .inventory_manager import InventoryManager
from .models import (
    AppSettings,
    CustomFoodType,
    Dataset,
    ExpirationStatus,
    FoodType,
    ImportMode,
    PerishableItem,
    ReconciliationResult,
    StorageCategory,
    UserProfile,
    validate_item,
)
from .output_formatter import OutputFormatter
from .reconciliation import BackupService
from .snapshot import FORMAT_VERSION, Snapshot
from .sqlite_store import SQLiteStore

__version__ = "0.1.0"

__all__ = [
    "add_calendar_days",
    "AppSettings",
    "BackendType",
    "BackupService",
    "ConfigManager",
    "create_data_store",
    "CustomFoodType",
    "DataStore",
    "Dataset",
    "effective_expiration",
    "ExpirationStatus",
    "FoodType",
    "FORMAT_VERSION",
    "identity_key",
    "ImportMode",
    "InventoryManager",
    "item_identity_key",
    "ItemNotFoundError",
    "MalformedSnapshot",
    "normalize_item_name",
    "OutputFormatter",
    "PerishableItem",
    "PersistenceFailure",
    "ReconciliationResult",
    "ShelfLifeError",
    "Snapshot",
    "SQLiteStore",
    "StorageCategory",
    "UserProfile",
    "validate_item",
    "ValidationFailure",
]
