"""Inventory management for Shelf Life."""

import logging
from datetime import date, datetime, tzinfo
from uuid import UUID

from .data_store import DataStore, DataStoreProtocol
from .errors import ItemNotFoundError
from .expiration import effective_expiration, now
from .models import ExpirationStatus, PerishableItem, StorageCategory, validate_item

logger = logging.getLogger(__name__)


class InventoryManager:
    """Manages perishable item tracking."""

    def __init__(self, data_store: DataStoreProtocol | None = None, tz: tzinfo | None = None):
        self.data_store = data_store or DataStore()
        self.tz = tz

    def _today(self) -> date:
        return now(self.tz).date()

    def _sorted(self, items: list[PerishableItem]) -> list[PerishableItem]:
        return sorted(items, key=lambda i: effective_expiration(i, self.tz))

    def _parse_id(self, item_id: str | UUID) -> UUID:
        if isinstance(item_id, UUID):
            return item_id
        try:
            return UUID(item_id)
        except ValueError:
            raise ItemNotFoundError(item_id) from None

    def _find(self, items: list[PerishableItem], item_id: str | UUID) -> PerishableItem:
        item_id = self._parse_id(item_id)
        for item in items:
            if item.id == item_id:
                return item
        raise ItemNotFoundError(item_id)

    def add_item(
        self,
        name: str,
        category: StorageCategory,
        expiration_date: datetime,
        quantity: int = 1,
        notes: str | None = None,
        barcode: str | None = None,
        food_type: str | None = None,
        price: float | None = None,
        is_fresh: bool = False,
        use_advanced_expiry: bool = False,
        notify: bool = True,
    ) -> PerishableItem:
        """Add an item to the inventory.

        Args:
            name: Display name
            category: Storage category
            expiration_date: Printed expiration date
            quantity: Number of units (at least 1)
            notes: Free-text note
            barcode: External product code
            food_type: Food type tag
            price: Purchase price
            is_fresh: Fresh product (expires 3 days after adding)
            use_advanced_expiry: Closed product expires 120 days after adding
            notify: Whether expiry reminders apply

        Returns:
            The created PerishableItem

        Raises:
            ValidationFailure: If the name is blank or quantity below 1
        """
        item = PerishableItem(
            name=name.strip(),
            category=category,
            expiration_date=expiration_date,
            quantity=quantity,
            notes=notes,
            barcode=barcode,
            food_type=food_type,
            price=price,
            is_fresh=is_fresh,
            use_advanced_expiry=use_advanced_expiry,
            notify=notify,
            created_at=now(self.tz),
            last_updated=now(self.tz),
        )
        validate_item(item)

        items = self.data_store.load_items()
        items.append(item)
        self.data_store.save_items(items)
        logger.debug("Added %s (%s)", item.name, item.id)
        return item

    def remove_item(self, item_id: str | UUID) -> PerishableItem:
        """Remove an item.

        Raises:
            ItemNotFoundError: If item not found
        """
        with self.data_store.transaction() as tx:
            item = tx.delete_item(self._parse_id(item_id))
            tx.commit()
        logger.debug("Removed %s (%s)", item.name, item.id)
        return item

    def update_item(
        self,
        item_id: str | UUID,
        name: str | None = None,
        category: StorageCategory | None = None,
        expiration_date: datetime | None = None,
        quantity: int | None = None,
        notes: str | None = None,
        notify: bool | None = None,
    ) -> PerishableItem:
        """Update editable fields and stamp the modification time.

        None means "leave unchanged".

        Raises:
            ItemNotFoundError: If item not found
            ValidationFailure: If the result breaks item invariants
        """
        items = self.data_store.load_items()
        item = self._find(items, item_id)

        updated = item.model_copy()
        if name is not None:
            updated.name = name.strip()
        if category is not None:
            updated.category = category
        if expiration_date is not None:
            updated.expiration_date = expiration_date
        if quantity is not None:
            updated.quantity = quantity
        if notes is not None:
            updated.notes = notes
        if notify is not None:
            updated.notify = notify
        validate_item(updated)

        updated.last_updated = now(self.tz)
        items = [updated if i.id == updated.id else i for i in items]
        self.data_store.save_items(items)
        return updated

    def mark_consumed(self, item_id: str | UUID) -> PerishableItem:
        """Mark an item as consumed."""
        items = self.data_store.load_items()
        item = self._find(items, item_id)
        item.is_consumed = True
        item.consumed_date = now(self.tz)
        item.last_updated = item.consumed_date
        self.data_store.save_items(items)
        return item

    def mark_opened(self, item_id: str | UUID, opened_at: datetime | None = None) -> PerishableItem:
        """Mark an item as opened; it then expires 3 days after opening."""
        items = self.data_store.load_items()
        item = self._find(items, item_id)
        item.is_opened = True
        item.opened_date = opened_at or now(self.tz)
        item.last_updated = now(self.tz)
        self.data_store.save_items(items)
        return item

    def get_inventory(
        self,
        category: StorageCategory | None = None,
        include_consumed: bool = False,
    ) -> list[PerishableItem]:
        """Get items sorted by effective expiration.

        Args:
            category: Filter by storage category
            include_consumed: Also list consumed items
        """
        items = self.data_store.load_items()
        if not include_consumed:
            items = [i for i in items if not i.is_consumed]
        if category:
            items = [i for i in items if i.category == category]
        return self._sorted(items)

    def get_by_status(self, status: ExpirationStatus) -> list[PerishableItem]:
        """Get unconsumed items in a given expiration status."""
        today = self._today()
        return [
            i for i in self.get_inventory() if i.expiration_status(today, self.tz) == status
        ]

    def get_expiring(self, days: int = 3) -> list[PerishableItem]:
        """Get unconsumed items expiring within a number of days, expired ones included."""
        today = self._today()
        return [i for i in self.get_inventory() if i.days_remaining(today, self.tz) <= days]

    def get_consumed_history(self) -> list[PerishableItem]:
        """Consumed items, most recent first."""
        consumed = [i for i in self.data_store.load_items() if i.is_consumed]
        return sorted(
            consumed, key=lambda i: i.consumed_date or i.last_updated, reverse=True
        )

    def get_items_to_notify(self) -> list[PerishableItem]:
        """Items inside the reminder window."""
        today = self._today()
        return [i for i in self.get_inventory() if i.should_notify(today, self.tz)]
