"""Dataset persistence.

Every store loads and saves the whole dataset (items, settings, profiles and
custom food types) at once. The JSON backend keeps it in one `pantry.json`
file; see `sqlite_store` for the database backend.
"""

import json
import logging
import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from .errors import PersistenceFailure
from .models import AppSettings, CustomFoodType, Dataset, PerishableItem, UserProfile
from .unit_of_work import StoreTransaction

logger = logging.getLogger(__name__)

DATASET_VERSION = "1"


class BackendType(str, Enum):
    """Available storage backends."""

    JSON = "json"
    SQLITE = "sqlite"


class DataStoreProtocol(Protocol):
    """What the inventory and backup services need from a store."""

    def load_dataset(self) -> Dataset: ...
    def save_dataset(self, dataset: Dataset) -> None: ...
    def load_items(self) -> list[PerishableItem]: ...
    def save_items(self, items: list[PerishableItem]) -> None: ...
    def load_settings(self) -> AppSettings | None: ...
    def save_settings(self, settings: AppSettings | None) -> None: ...
    def load_profiles(self) -> list[UserProfile]: ...
    def save_profiles(self, profiles: list[UserProfile]) -> None: ...
    def load_custom_food_types(self) -> list[CustomFoodType]: ...
    def save_custom_food_types(self, food_types: list[CustomFoodType]) -> None: ...
    def transaction(self) -> StoreTransaction: ...


class DatasetAccessMixin:
    """Per-kind load/save helpers built on load_dataset/save_dataset."""

    def load_dataset(self) -> Dataset:
        raise NotImplementedError

    def save_dataset(self, dataset: Dataset) -> None:
        raise NotImplementedError

    def transaction(self) -> StoreTransaction:
        """Start a buffered unit of work against this store."""
        return StoreTransaction(self)

    def load_items(self) -> list[PerishableItem]:
        return self.load_dataset().items

    def save_items(self, items: list[PerishableItem]) -> None:
        dataset = self.load_dataset()
        dataset.items = list(items)
        self.save_dataset(dataset)

    def load_settings(self) -> AppSettings | None:
        return self.load_dataset().settings

    def save_settings(self, settings: AppSettings | None) -> None:
        dataset = self.load_dataset()
        dataset.settings = settings
        self.save_dataset(dataset)

    def load_profiles(self) -> list[UserProfile]:
        return self.load_dataset().profiles

    def save_profiles(self, profiles: list[UserProfile]) -> None:
        dataset = self.load_dataset()
        dataset.profiles = list(profiles)
        self.save_dataset(dataset)

    def load_custom_food_types(self) -> list[CustomFoodType]:
        return self.load_dataset().custom_food_types

    def save_custom_food_types(self, food_types: list[CustomFoodType]) -> None:
        dataset = self.load_dataset()
        dataset.custom_food_types = list(food_types)
        self.save_dataset(dataset)


class DataStore(DatasetAccessMixin):
    """Keeps the dataset in a single JSON document."""

    def __init__(self, data_dir: Path | None = None):
        """Args:
            data_dir: Directory holding pantry.json. Defaults to ./data
        """
        self.data_dir = data_dir or Path.cwd() / "data"
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _dataset_path(self) -> Path:
        """Path to the dataset file."""
        return self.data_dir / "pantry.json"

    def load_dataset(self) -> Dataset:
        """Load every entity.

        Returns:
            Dataset, empty if the file doesn't exist

        Raises:
            PersistenceFailure: If the file can't be read or parsed
        """
        path = self._dataset_path()
        if not path.exists():
            return Dataset()

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise PersistenceFailure(f"Could not read {path}: expected a JSON object")
            data.pop("version", None)
            return Dataset.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise PersistenceFailure(f"Could not read {path}: {e}") from e

    def save_dataset(self, dataset: Dataset) -> None:
        """Atomically replace the dataset file.

        The new content goes to a temporary file in the same directory which
        is then moved over the old one, so readers never see a partial write.

        Raises:
            PersistenceFailure: If the file can't be written
        """
        path = self._dataset_path()
        payload = {"version": DATASET_VERSION, **dataset.model_dump(mode="json")}

        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self.data_dir, suffix=".tmp", delete=False
            ) as f:
                tmp_name = f.name
                json.dump(payload, f, indent=2)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceFailure(f"Could not write {path}: {e}") from e

        logger.debug("Saved %d items to %s", len(dataset.items), path)


def create_data_store(
    backend: BackendType = BackendType.JSON,
    data_dir: Path | None = None,
    db_path: Path | None = None,
) -> DataStoreProtocol:
    """Build the store for a configured backend.

    The SQLite database defaults to `pantry.db` inside ``data_dir`` when no
    explicit ``db_path`` is given.
    """
    if backend == BackendType.SQLITE:
        from .sqlite_store import SQLiteStore

        if db_path is None and data_dir is not None:
            db_path = data_dir / "pantry.db"

        return SQLiteStore(db_path=db_path)
    else:
        return DataStore(data_dir=data_dir)
