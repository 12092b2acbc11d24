"""Tests for item identity keys."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from shelf_life.identity import (
    KEY_SEPARATOR,
    identity_key,
    item_identity_key,
    normalize_item_name,
)
from shelf_life.models import StorageCategory

ROME = ZoneInfo("Europe/Rome")


class TestIdentityKey:
    """Tests for identity key construction."""

    def test_key_format(self):
        expires = datetime(2024, 6, 10, 12, tzinfo=ROME)
        key = identity_key("Milk", StorageCategory.FRIDGE, expires, ROME)
        assert key == "milk|fridge|2024-06-10"

    def test_name_is_trimmed_and_lowercased(self):
        expires = datetime(2024, 6, 10, tzinfo=ROME)
        assert identity_key("  MILK ", StorageCategory.FRIDGE, expires, ROME) == identity_key(
            "milk", StorageCategory.FRIDGE, expires, ROME
        )

    def test_time_of_day_is_ignored(self):
        morning = datetime(2024, 6, 10, 0, 5, tzinfo=ROME)
        night = datetime(2024, 6, 10, 23, 55, tzinfo=ROME)
        assert identity_key("Milk", StorageCategory.FRIDGE, morning, ROME) == identity_key(
            "Milk", StorageCategory.FRIDGE, night, ROME
        )

    def test_day_is_taken_in_the_given_zone(self):
        instant = datetime(2024, 6, 9, 22, 30, tzinfo=timezone.utc)
        assert identity_key("Milk", "fridge", instant, ROME).endswith("2024-06-10")
        assert identity_key("Milk", "fridge", instant, timezone.utc).endswith("2024-06-09")

    def test_category_distinguishes(self):
        expires = datetime(2024, 6, 10, tzinfo=ROME)
        assert identity_key("Milk", StorageCategory.FRIDGE, expires, ROME) != identity_key(
            "Milk", StorageCategory.PANTRY, expires, ROME
        )

    def test_name_with_separator_splits_from_the_right(self):
        key = identity_key("A|B", StorageCategory.FREEZER, datetime(2024, 1, 2, tzinfo=ROME), ROME)
        assert key.rsplit(KEY_SEPARATOR, 2) == ["a|b", "freezer", "2024-01-02"]

    def test_normalize_keeps_inner_spaces(self):
        assert normalize_item_name("  Greek  Yogurt ") == "greek  yogurt"


class TestItemIdentityKey:
    """Tests for keys derived from items."""

    def test_uses_printed_date(self, make_item):
        assert item_identity_key(make_item(), ROME) == "milk|fridge|2024-06-10"

    def test_uses_effective_expiration(self, make_item):
        """A fresh item is keyed by the day it actually expires."""
        item = make_item(is_fresh=True)
        assert item_identity_key(item, ROME) == "milk|fridge|2024-06-04"
