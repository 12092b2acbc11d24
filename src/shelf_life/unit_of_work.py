"""Buffered transactions over a data store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal, Protocol
from uuid import UUID

from .errors import ItemNotFoundError
from .models import AppSettings, CustomFoodType, Dataset, PerishableItem, UserProfile

if TYPE_CHECKING:
    from types import TracebackType


class DatasetStore(Protocol):
    """Anything that can load and atomically save a whole dataset."""

    def load_dataset(self) -> Dataset: ...
    def save_dataset(self, dataset: Dataset) -> None: ...


class StoreTransaction:
    """One unit of work: read everything, buffer changes, commit once.

    Changes only reach the store on ``commit()``. Leaving the ``with`` block
    without committing, or because of an exception, discards them.
    """

    def __init__(self, store: DatasetStore) -> None:
        self._store = store
        self._dataset: Dataset | None = None
        self.committed = False

    def __enter__(self) -> StoreTransaction:
        self._dataset = self._store.load_dataset()
        self.committed = False
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        self._dataset = None
        return False  # don't swallow exceptions

    @property
    def dataset(self) -> Dataset:
        if self._dataset is None:
            raise RuntimeError("Transaction is not active")
        return self._dataset

    # --- Reads ---

    def fetch_items(self) -> list[PerishableItem]:
        return list(self.dataset.items)

    def fetch_settings(self) -> AppSettings | None:
        return self.dataset.settings

    def fetch_profiles(self) -> list[UserProfile]:
        return list(self.dataset.profiles)

    def fetch_custom_food_types(self) -> list[CustomFoodType]:
        return list(self.dataset.custom_food_types)

    # --- Writes ---

    def insert_item(self, item: PerishableItem) -> None:
        self.dataset.items.append(item)

    def update_item(self, item: PerishableItem) -> None:
        """Replace the stored item that has the same id."""
        for i, existing in enumerate(self.dataset.items):
            if existing.id == item.id:
                self.dataset.items[i] = item
                return
        raise ItemNotFoundError(item.id)

    def delete_item(self, item_id: UUID) -> PerishableItem:
        for i, existing in enumerate(self.dataset.items):
            if existing.id == item_id:
                return self.dataset.items.pop(i)
        raise ItemNotFoundError(item_id)

    def put_settings(self, settings: AppSettings) -> None:
        self.dataset.settings = settings

    def insert_profile(self, profile: UserProfile) -> None:
        self.dataset.profiles.append(profile)

    def insert_custom_food_type(self, food_type: CustomFoodType) -> None:
        self.dataset.custom_food_types.append(food_type)

    def delete_all(self) -> None:
        """Delete every item, the settings record, profiles and custom types.

        None of these kinds owns children, so clearing each collection is the
        whole cascade.
        """
        self.dataset.items.clear()
        self.dataset.settings = None
        self.dataset.profiles.clear()
        self.dataset.custom_food_types.clear()

    def commit(self) -> None:
        """Write the buffered dataset to the store in one atomic save."""
        self._store.save_dataset(self.dataset)
        self.committed = True
