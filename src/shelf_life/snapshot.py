"""Snapshot document encoding and decoding.

A snapshot is a versioned JSON document holding the whole local dataset::

    {
      "formatVersion": "1.0",
      "exportedAt": "2024-05-01T09:30:00+02:00",
      "items": [...],
      "settings": {...} | null,
      "profiles": [...],
      "customFoodTypes": [...]
    }

Unknown fields are ignored. A document whose major format version is not
supported, or whose items lack required fields, is rejected whole.
"""

import json
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import Field, ValidationError
from pydantic.alias_generators import to_camel

from .errors import MalformedSnapshot
from .expiration import now
from .models import AppSettings, CustomFoodType, PerishableItem, SnapshotModel, UserProfile

FORMAT_VERSION = "1.0"
SUPPORTED_MAJOR_VERSION = 1

# Item fields a snapshot must carry even where the model has a default.
REQUIRED_ITEM_FIELDS = (
    "id",
    "name",
    "category",
    "expiration_date",
    "quantity",
    "created_at",
    "last_updated",
)


class Snapshot(SnapshotModel):
    """A portable copy of every entity in the store."""

    format_version: str = FORMAT_VERSION
    exported_at: datetime = Field(default_factory=now)
    items: list[PerishableItem]
    settings: AppSettings | None = None
    profiles: list[UserProfile] = Field(default_factory=list)
    custom_food_types: list[CustomFoodType] = Field(default_factory=list)


def check_format_version(version: Any) -> None:
    """Reject versions whose major component is not supported."""
    if not isinstance(version, str) or not version.strip():
        raise MalformedSnapshot("Snapshot is missing a formatVersion string")

    major = version.strip().split(".")[0]
    if not (major.isascii() and major.isdigit()):
        raise MalformedSnapshot(f"Unreadable snapshot formatVersion '{version}'")
    if int(major) != SUPPORTED_MAJOR_VERSION:
        raise MalformedSnapshot(
            f"Unsupported snapshot formatVersion '{version}' "
            f"(supported: {SUPPORTED_MAJOR_VERSION}.x)"
        )


def _missing_item_fields(items: Any) -> list[str]:
    if not isinstance(items, list):
        return []
    problems = []
    for index, raw in enumerate(items):
        if not isinstance(raw, Mapping):
            continue
        for field in REQUIRED_ITEM_FIELDS:
            alias = to_camel(field)
            if alias not in raw and field not in raw:
                problems.append(f"items.{index}.{alias}: Field required")
    return problems


def _describe_errors(error: ValidationError) -> list[str]:
    problems = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"]) or "document"
        problems.append(f"{location}: {detail['msg']}")
    return problems


def encode(snapshot: Snapshot) -> dict[str, Any]:
    """Encode a snapshot as a JSON-ready document."""
    return snapshot.model_dump(mode="json", by_alias=True)


def decode(document: Mapping[str, Any] | str | bytes) -> Snapshot:
    """Decode a snapshot document.

    Args:
        document: Parsed document, or its JSON text

    Returns:
        The decoded Snapshot

    Raises:
        MalformedSnapshot: If the document fails version or schema checks
    """
    if isinstance(document, (str, bytes, bytearray)):
        return loads(document)
    if not isinstance(document, Mapping):
        raise MalformedSnapshot("Snapshot document must be a JSON object")

    check_format_version(document.get("formatVersion"))

    missing = _missing_item_fields(document.get("items"))
    if missing:
        raise MalformedSnapshot("Snapshot failed validation", missing)

    try:
        return Snapshot.model_validate(dict(document))
    except ValidationError as e:
        raise MalformedSnapshot("Snapshot failed validation", _describe_errors(e)) from e


def dumps(snapshot: Snapshot) -> str:
    """Serialize a snapshot to pretty-printed JSON text."""
    return json.dumps(encode(snapshot), indent=2, sort_keys=True, ensure_ascii=False)


def loads(text: str | bytes | bytearray) -> Snapshot:
    """Parse JSON text and decode it as a snapshot."""
    try:
        document = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedSnapshot(f"Snapshot is not valid JSON: {e}") from e
    return decode(document)
