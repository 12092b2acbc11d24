"""Migration from JSON to SQLite data storage.

The JSON dataset is exported to a snapshot and restored into the SQLite
database with a Replace import, so the copy goes through the same validation
as any backup restore. It refuses to overwrite a database that already holds
items unless forced.
"""

import logging
from pathlib import Path

from .data_store import DataStore
from .errors import ShelfLifeError
from .models import ImportMode
from .reconciliation import BackupService
from .sqlite_store import SQLiteStore

logger = logging.getLogger(__name__)


class MigrationError(ShelfLifeError):
    """Raised when the SQLite copy is refused or does not match the source."""


class JSONToSQLiteMigrator:
    """Migrates data from the JSON store to a SQLite database."""

    def __init__(
        self,
        json_data_dir: Path | None = None,
        sqlite_db_path: Path | None = None,
    ):
        """Args:
            json_data_dir: Directory holding pantry.json. Defaults to ./data
            sqlite_db_path: Target database. Defaults to <json_data_dir>/pantry.db
        """
        self.json_data_dir = json_data_dir or Path.cwd() / "data"
        self.sqlite_db_path = sqlite_db_path or (self.json_data_dir / "pantry.db")

        self.json_store = DataStore(data_dir=self.json_data_dir)
        self.sqlite_store = SQLiteStore(db_path=self.sqlite_db_path)

    def check_sqlite_has_data(self) -> bool:
        """Check if the SQLite database already has items."""
        return len(self.sqlite_store.load_items()) > 0

    def verify_migration(self) -> dict[str, bool]:
        """Compare both stores kind by kind.

        Returns:
            Mapping of entity kind to whether both stores agree
        """
        source = self.json_store.load_dataset()
        target = self.sqlite_store.load_dataset()
        return {
            "items": source.items == target.items,
            "settings": source.settings is None or source.settings == target.settings,
            "profiles": source.profiles == target.profiles,
            "custom_food_types": source.custom_food_types == target.custom_food_types,
        }

    def run_migration(self, force: bool = False) -> dict[str, int]:
        """Run the migration.

        Args:
            force: Overwrite an existing SQLite dataset

        Returns:
            Counts per entity kind

        Raises:
            MigrationError: If the target has data and force is False, or
                verification fails
        """
        if self.check_sqlite_has_data() and not force:
            raise MigrationError(
                f"{self.sqlite_db_path} already has data; use force to overwrite"
            )

        logger.info("Migrating %s to %s", self.json_data_dir, self.sqlite_db_path)
        snapshot = BackupService(self.json_store).export_snapshot()
        BackupService(self.sqlite_store).import_snapshot(snapshot, ImportMode.REPLACE)

        verification = self.verify_migration()
        failed = [kind for kind, ok in verification.items() if not ok]
        if failed:
            raise MigrationError(f"Migration verification failed for: {failed}")

        return {
            "items": len(snapshot.items),
            "settings": 1 if snapshot.settings else 0,
            "profiles": len(snapshot.profiles),
            "custom_food_types": len(snapshot.custom_food_types),
        }


def migrate(
    data_dir: Path | None = None,
    db_path: Path | None = None,
    force: bool = False,
) -> dict[str, int]:
    """Copy the JSON dataset in ``data_dir`` into SQLite; see JSONToSQLiteMigrator."""
    migrator = JSONToSQLiteMigrator(
        json_data_dir=data_dir,
        sqlite_db_path=db_path,
    )
    return migrator.run_migration(force=force)
