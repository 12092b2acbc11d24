"""Core data models for Shelf Life."""

import base64
from datetime import date, datetime, tzinfo
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from .errors import ValidationFailure
from . import expiration
from .expiration import NOTIFY_WINDOW_DAYS, classify_days, ensure_aware, now


class StorageCategory(str, Enum):
    """Where an item is kept."""

    FRIDGE = "fridge"
    FREEZER = "freezer"
    PANTRY = "pantry"


class ExpirationStatus(str, Enum):
    """Expiration state derived from days remaining."""

    EXPIRED = "expired"
    TODAY = "today"
    SOON = "soon"
    SAFE = "safe"

    @property
    def priority(self) -> int:
        """Sort order, most urgent first."""
        return list(ExpirationStatus).index(self)


class FoodType(str, Enum):
    """Built-in culinary food types."""

    FRUITS = "Fruits"
    VEGETABLES = "Vegetables"
    POTATOES = "Potatoes"
    LEGUMES = "Legumes"
    CEREALS = "Cereals"
    PASTA = "Pasta"
    RICE = "Rice"
    BREAD = "Bread"
    BAKED_GOODS = "Baked goods"
    MEAT = "Meat"
    POULTRY = "Poultry"
    FISH = "Fish"
    SEAFOOD = "Seafood"
    COLD_CUTS = "Cold cuts"
    EGGS = "Eggs"
    MILK = "Milk"
    YOGURT = "Yogurt"
    CHEESE = "Cheese"
    OILS = "Oils"
    BUTTER = "Butter and margarine"
    SAUCES = "Sauces and condiments"
    SUGAR = "Sugar"
    SWEETENERS = "Sweeteners"
    SWEETS = "Sweets"
    BISCUITS = "Biscuits"
    CHOCOLATE = "Chocolate"
    SWEET_SNACKS = "Sweet snacks"
    SALTY_SNACKS = "Salty snacks"
    ICE_CREAM = "Ice cream"
    READY_MEALS = "Ready meals"
    FAST_FOOD = "Fast food"
    CANNED = "Canned goods"
    FROZEN = "Frozen foods"
    NUTS_SEEDS = "Nuts and seeds"
    SPICES_HERBS = "Spices and herbs"
    BEVERAGES = "Beverages"
    ALCOHOLIC_BEVERAGES = "Alcoholic beverages"
    SUPPLEMENTS = "Supplements"
    SPORTS_NUTRITION = "Sports nutrition"
    OTHER = "Other"


class ImportMode(str, Enum):
    """How a snapshot is reconciled against the live store."""

    REPLACE = "replace"
    MERGE = "merge"


class SnapshotModel(BaseModel):
    """Base for records that travel in a snapshot (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("*", mode="after")
    @classmethod
    def _localize_datetimes(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return ensure_aware(value)
        return value


class PerishableItem(SnapshotModel):
    """A tracked food item with a rule-based expiration."""

    id: UUID = Field(default_factory=uuid4)
    name: str
    category: StorageCategory
    expiration_date: datetime
    quantity: int = 1
    notes: str | None = None
    barcode: str | None = None
    created_at: datetime = Field(default_factory=now)
    last_updated: datetime = Field(default_factory=now)
    notify: bool = True
    is_consumed: bool = False
    consumed_date: datetime | None = None
    photo_data: bytes | None = None
    food_type: str | None = None
    price: float | None = None

    # Dietary and preparation tags
    is_gluten_free: bool = False
    is_bio: bool = False
    is_vegan: bool = False
    is_lactose_free: bool = False
    is_vegetarian: bool = False
    is_ready: bool = False
    needs_cooking: bool = False
    is_artisan: bool = False
    is_single_portion: bool = False
    is_multi_portion: bool = False

    # Freshness modifiers
    is_fresh: bool = False
    is_opened: bool = False
    opened_date: datetime | None = None
    use_advanced_expiry: bool = False

    @field_validator("photo_data", mode="before")
    @classmethod
    def _decode_photo(cls, value: Any) -> Any:
        if isinstance(value, str):
            return base64.b64decode(value, validate=True)
        return value

    @field_serializer("photo_data", when_used="json")
    def _encode_photo(self, value: bytes | None) -> str | None:
        if value is None:
            return None
        return base64.b64encode(value).decode("ascii")

    @classmethod
    def mutable_fields(cls) -> list[str]:
        """Fields a newer copy of the item may overwrite."""
        return [name for name in cls.model_fields if name not in ("id", "created_at")]

    @property
    def effective_expiration(self) -> datetime:
        """Expiration instant after freshness overrides."""
        return expiration.effective_expiration(self)

    def days_remaining(self, today: date | None = None, tz: tzinfo | None = None) -> int:
        """Days until the effective expiration day."""
        return expiration.days_remaining(self, today=today, tz=tz)

    def expiration_status(
        self, today: date | None = None, tz: tzinfo | None = None
    ) -> ExpirationStatus:
        """Expiration status as of ``today``."""
        return ExpirationStatus(classify_days(self.days_remaining(today, tz)))

    def should_notify(self, today: date | None = None, tz: tzinfo | None = None) -> bool:
        """Whether the item falls inside the notification window."""
        if not self.notify or self.is_consumed:
            return False
        return 0 <= self.days_remaining(today, tz) <= NOTIFY_WINDOW_DAYS


def validate_item(item: PerishableItem) -> None:
    """Check basic field invariants.

    Raises:
        ValidationFailure: If the name is blank or the quantity is below 1
    """
    if not item.name.strip():
        raise ValidationFailure(item.name, "name must not be empty")
    if item.quantity < 1:
        raise ValidationFailure(item.name, f"quantity must be at least 1, got {item.quantity}")


class AppSettings(SnapshotModel):
    """Application settings. At most one record exists."""

    id: UUID = Field(default_factory=uuid4)
    notifications_enabled: bool = True
    notification_days_before: int = 1  # -1 means custom
    custom_notification_days: int = 3
    icloud_sync_enabled: bool = False
    smart_suggestions_enabled: bool = True
    appearance_mode: str = "system"
    animations_enabled: bool = True
    accent_color: str = "default"
    progress_ring_mode: str = "safeItems"
    home_summary_style: str = "ring"
    expiration_input_method: str = "calendar"
    has_chosen_cloud_usage: bool = False
    shopping_list_tab_enabled: bool = False

    @property
    def effective_notification_days(self) -> int:
        if self.notification_days_before == -1:
            return self.custom_notification_days
        return self.notification_days_before


class UserProfile(SnapshotModel):
    """The device owner's profile."""

    id: UUID = Field(default_factory=uuid4)
    first_name: str | None = None
    last_name: str | None = None
    has_completed_onboarding: bool = False

    @property
    def display_name(self) -> str:
        return self.first_name or "User"

    @property
    def full_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) if parts else "User"


class CustomFoodType(SnapshotModel):
    """A user-defined food type tag."""

    id: UUID = Field(default_factory=uuid4)
    name: str
    icon: str = "tag.fill"
    created_at: datetime = Field(default_factory=now)


class Dataset(BaseModel):
    """Every entity held by a data store."""

    items: list[PerishableItem] = Field(default_factory=list)
    settings: AppSettings | None = None
    profiles: list[UserProfile] = Field(default_factory=list)
    custom_food_types: list[CustomFoodType] = Field(default_factory=list)


class ReconciliationResult(BaseModel):
    """Result of reconciling a snapshot with the live store."""

    mode: ImportMode
    imported: int = 0
    updated: int = 0
    skipped: int = 0
    total_in_snapshot: int = 0
    invalid: list[str] = Field(default_factory=list)
