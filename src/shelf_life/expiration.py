"""Effective expiration rules for perishable items.

An item's printed expiration date can be overridden by how it is kept:

1. Fresh products perish 3 days after they were added.
2. Opened products perish 3 days after they were opened.
3. Products tracked with advanced expiry perish 120 days after they were
   added, as long as they stay closed.
4. Otherwise the printed date applies.

The first matching rule wins. Day offsets are calendar days in the local
time zone, so "3 days later" keeps the wall-clock time across DST changes.
"""

import os
from datetime import date, datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from pathlib import Path
from typing import Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

FRESH_SHELF_DAYS = 3
OPENED_SHELF_DAYS = 3
ADVANCED_SHELF_DAYS = 120

SOON_THRESHOLD_DAYS = 3
NOTIFY_WINDOW_DAYS = 2


class ExpiringItem(Protocol):
    """Attributes the expiration rules read from an item."""

    expiration_date: datetime
    created_at: datetime
    is_fresh: bool
    is_opened: bool
    opened_date: datetime | None
    use_advanced_expiry: bool


@lru_cache(maxsize=1)
def local_timezone() -> tzinfo:
    """Return the system's local time zone, with DST rules where available."""
    tz_name = os.environ.get("TZ", "").lstrip(":")
    if tz_name:
        try:
            return ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            pass

    key = _localtime_key(Path("/etc/localtime"))
    if key:
        try:
            return ZoneInfo(key)
        except (ZoneInfoNotFoundError, ValueError):
            pass

    # Fixed offset; no DST information available on this platform.
    return datetime.now().astimezone().tzinfo or timezone.utc


def _localtime_key(localtime: Path) -> str | None:
    """IANA key of a ``/etc/localtime`` symlink, e.g. ``Europe/Rome``.

    Zones loaded by key can be copied and pickled, unlike ones read from a file.
    """
    try:
        target = localtime.resolve(strict=True)
    except OSError:
        return None
    parts = target.parts
    if "zoneinfo" not in parts:
        return None
    index = len(parts) - 1 - parts[::-1].index("zoneinfo")
    key = "/".join(parts[index + 1 :])
    return key or None


def ensure_aware(value: datetime, tz: tzinfo | None = None) -> datetime:
    """Interpret a naive datetime as local time; aware ones pass through."""
    if value.tzinfo is not None and value.utcoffset() is not None:
        return value
    return value.replace(tzinfo=tz or local_timezone())


def now(tz: tzinfo | None = None) -> datetime:
    """Current instant in the given (or local) time zone."""
    return datetime.now(tz or local_timezone())


def add_calendar_days(instant: datetime, days: int, tz: tzinfo | None = None) -> datetime:
    """Move an instant by whole calendar days in ``tz``.

    The local wall-clock time is kept, so across a DST change the result is
    23 or 25 hours away rather than exactly ``days * 86400`` seconds.
    """
    tz = tz or local_timezone()
    local = ensure_aware(instant, tz).astimezone(tz)
    wall = local.replace(tzinfo=None) + timedelta(days=days)
    # Round-trip through UTC to normalize wall times that fall in a DST gap.
    return wall.replace(tzinfo=tz).astimezone(timezone.utc).astimezone(tz)


def local_day(instant: datetime, tz: tzinfo | None = None) -> date:
    """Calendar day of an instant in ``tz``."""
    tz = tz or local_timezone()
    return ensure_aware(instant, tz).astimezone(tz).date()


def effective_expiration(item: ExpiringItem, tz: tzinfo | None = None) -> datetime:
    """Resolve the instant an item actually expires."""
    if item.is_fresh:
        return add_calendar_days(item.created_at, FRESH_SHELF_DAYS, tz)
    if item.is_opened and item.opened_date is not None:
        return add_calendar_days(item.opened_date, OPENED_SHELF_DAYS, tz)
    if item.use_advanced_expiry and not item.is_opened:
        return add_calendar_days(item.created_at, ADVANCED_SHELF_DAYS, tz)
    return item.expiration_date


def days_remaining(
    item: ExpiringItem, today: date | None = None, tz: tzinfo | None = None
) -> int:
    """Whole days from today until the effective expiration day.

    Negative once the item has expired.
    """
    tz = tz or local_timezone()
    today = today or now(tz).date()
    return (local_day(effective_expiration(item, tz), tz) - today).days


def classify_days(days: int) -> str:
    """Map days remaining onto an expiration status value."""
    if days < 0:
        return "expired"
    if days == 0:
        return "today"
    if days <= SOON_THRESHOLD_DAYS:
        return "soon"
    return "safe"
