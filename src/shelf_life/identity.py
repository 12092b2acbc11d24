"""Content-derived identity keys used to spot the same purchase twice."""

from datetime import datetime, tzinfo

from .expiration import effective_expiration, local_day
from .models import PerishableItem, StorageCategory

KEY_SEPARATOR = "|"


def normalize_item_name(name: str) -> str:
    """Normalize an item name for identity comparison."""
    return name.strip().lower()


def identity_key(
    name: str,
    category: StorageCategory,
    expires_at: datetime,
    tz: tzinfo | None = None,
) -> str:
    """Build the dedup key for (name, category, expiration day).

    Only the calendar day of ``expires_at`` in ``tz`` counts. The category
    and date parts never contain the separator, so the key splits back
    unambiguously with ``rsplit(KEY_SEPARATOR, 2)``.
    """
    day = local_day(expires_at, tz)
    return KEY_SEPARATOR.join(
        (
            normalize_item_name(name),
            StorageCategory(category).value,
            f"{day.year:04d}-{day.month:02d}-{day.day:02d}",
        )
    )


def item_identity_key(item: PerishableItem, tz: tzinfo | None = None) -> str:
    """Identity key of an item, using its own effective expiration."""
    return identity_key(item.name, item.category, effective_expiration(item, tz), tz)
