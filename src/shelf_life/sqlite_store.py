"""SQLite backend for the dataset.

One table per entity kind. A save rewrites every table inside a single
transaction, so readers see either the old dataset or the new one.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ValidationError

from .data_store import DatasetAccessMixin
from .errors import PersistenceFailure
from .models import AppSettings, CustomFoodType, Dataset, PerishableItem, UserProfile

logger = logging.getLogger(__name__)


def to_sql_value(value: Any) -> Any:
    """Convert a model value into something SQLite stores natively."""
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return int(value)
    return value


def to_row(model: BaseModel) -> dict[str, Any]:
    """Flatten a model into named SQL parameters."""
    return {name: to_sql_value(value) for name, value in model.model_dump().items()}


class SQLiteStore(DatasetAccessMixin):
    """Keeps the dataset in a SQLite database."""

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Path | None = None):
        """Args:
            db_path: Database file. Defaults to ./data/pantry.db
        """
        if db_path is None:
            db_path = Path.cwd() / "data" / "pantry.db"
        self.db_path = db_path
        self._ensure_directories()
        self._init_database()

    def _ensure_directories(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _get_connection(self):
        """Get a database connection; commits on success, rolls back on error."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Could not open {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceFailure(f"SQLite operation failed: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_database(self) -> None:
        with self._get_connection() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                );

                CREATE TABLE IF NOT EXISTS items (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    category TEXT NOT NULL,
                    expiration_date TEXT NOT NULL,
                    quantity INTEGER NOT NULL DEFAULT 1,
                    notes TEXT,
                    barcode TEXT,
                    created_at TEXT NOT NULL,
                    last_updated TEXT NOT NULL,
                    notify INTEGER NOT NULL DEFAULT 1,
                    is_consumed INTEGER NOT NULL DEFAULT 0,
                    consumed_date TEXT,
                    photo_data BLOB,
                    food_type TEXT,
                    price REAL,
                    is_gluten_free INTEGER NOT NULL DEFAULT 0,
                    is_bio INTEGER NOT NULL DEFAULT 0,
                    is_vegan INTEGER NOT NULL DEFAULT 0,
                    is_lactose_free INTEGER NOT NULL DEFAULT 0,
                    is_vegetarian INTEGER NOT NULL DEFAULT 0,
                    is_ready INTEGER NOT NULL DEFAULT 0,
                    needs_cooking INTEGER NOT NULL DEFAULT 0,
                    is_artisan INTEGER NOT NULL DEFAULT 0,
                    is_single_portion INTEGER NOT NULL DEFAULT 0,
                    is_multi_portion INTEGER NOT NULL DEFAULT 0,
                    is_fresh INTEGER NOT NULL DEFAULT 0,
                    is_opened INTEGER NOT NULL DEFAULT 0,
                    opened_date TEXT,
                    use_advanced_expiry INTEGER NOT NULL DEFAULT 0,
                    position INTEGER NOT NULL DEFAULT 0
                );

                -- Singleton settings record
                CREATE TABLE IF NOT EXISTS settings (
                    slot INTEGER PRIMARY KEY CHECK (slot = 1),
                    id TEXT NOT NULL,
                    notifications_enabled INTEGER NOT NULL,
                    notification_days_before INTEGER NOT NULL,
                    custom_notification_days INTEGER NOT NULL,
                    icloud_sync_enabled INTEGER NOT NULL,
                    smart_suggestions_enabled INTEGER NOT NULL,
                    appearance_mode TEXT NOT NULL,
                    animations_enabled INTEGER NOT NULL,
                    accent_color TEXT NOT NULL,
                    progress_ring_mode TEXT NOT NULL,
                    home_summary_style TEXT NOT NULL,
                    expiration_input_method TEXT NOT NULL,
                    has_chosen_cloud_usage INTEGER NOT NULL,
                    shopping_list_tab_enabled INTEGER NOT NULL
                );

                CREATE TABLE IF NOT EXISTS profiles (
                    id TEXT PRIMARY KEY,
                    first_name TEXT,
                    last_name TEXT,
                    has_completed_onboarding INTEGER NOT NULL DEFAULT 0,
                    position INTEGER NOT NULL DEFAULT 0
                );

                CREATE TABLE IF NOT EXISTS custom_food_types (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    icon TEXT NOT NULL DEFAULT 'tag.fill',
                    created_at TEXT NOT NULL,
                    position INTEGER NOT NULL DEFAULT 0
                );
            """)
            conn.execute(
                "INSERT OR IGNORE INTO schema_version (version) VALUES (?)",
                (self.SCHEMA_VERSION,),
            )

    # --- Loading ---

    def load_dataset(self) -> Dataset:
        """Load every entity.

        Raises:
            PersistenceFailure: If the database can't be read
        """
        with self._get_connection() as conn:
            try:
                items = [
                    PerishableItem.model_validate(dict(row))
                    for row in conn.execute("SELECT * FROM items ORDER BY position")
                ]
                settings_row = conn.execute("SELECT * FROM settings WHERE slot = 1").fetchone()
                settings = AppSettings.model_validate(dict(settings_row)) if settings_row else None
                profiles = [
                    UserProfile.model_validate(dict(row))
                    for row in conn.execute("SELECT * FROM profiles ORDER BY position")
                ]
                food_types = [
                    CustomFoodType.model_validate(dict(row))
                    for row in conn.execute("SELECT * FROM custom_food_types ORDER BY position")
                ]
            except ValidationError as e:
                raise PersistenceFailure(f"Corrupt row in {self.db_path}: {e}") from e

        return Dataset(
            items=items,
            settings=settings,
            profiles=profiles,
            custom_food_types=food_types,
        )

    def load_items(self) -> list[PerishableItem]:
        """Load items only.

        Returns:
            List of PerishableItem in insertion order
        """
        with self._get_connection() as conn:
            rows = conn.execute("SELECT * FROM items ORDER BY position").fetchall()
        try:
            return [PerishableItem.model_validate(dict(row)) for row in rows]
        except ValidationError as e:
            raise PersistenceFailure(f"Corrupt row in {self.db_path}: {e}") from e

    # --- Saving ---

    def _insert_rows(
        self, conn: sqlite3.Connection, table: str, models: list[BaseModel], **extra: Any
    ) -> None:
        for position, model in enumerate(models):
            row = to_row(model)
            row.update(extra)
            if table != "settings":
                row["position"] = position
            columns = ", ".join(row)
            placeholders = ", ".join(f":{name}" for name in row)
            conn.execute(f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", row)

    def save_dataset(self, dataset: Dataset) -> None:
        """Replace every table's content in a single transaction.

        Raises:
            PersistenceFailure: If any statement fails; nothing is written then
        """
        with self._get_connection() as conn:
            for table in ("items", "settings", "profiles", "custom_food_types"):
                conn.execute(f"DELETE FROM {table}")

            self._insert_rows(conn, "items", dataset.items)
            if dataset.settings is not None:
                self._insert_rows(conn, "settings", [dataset.settings], slot=1)
            self._insert_rows(conn, "profiles", dataset.profiles)
            self._insert_rows(conn, "custom_food_types", dataset.custom_food_types)

        logger.debug("Saved %d items to %s", len(dataset.items), self.db_path)

    def save_items(self, items: list[PerishableItem]) -> None:
        """Replace all items.

        Args:
            items: List of PerishableItem to save
        """
        with self._get_connection() as conn:
            conn.execute("DELETE FROM items")
            self._insert_rows(conn, "items", items)
