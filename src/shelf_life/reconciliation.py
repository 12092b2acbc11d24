"""Backup export and snapshot reconciliation.

Importing a snapshot runs one of two strategies:

* **Replace** wipes items, settings, profiles and custom food types, then
  re-creates them verbatim from the snapshot (ids and timestamps kept).
* **Merge** never deletes. Snapshot items are matched to live items by
  identity key (normalized name, category, effective expiration day). New
  keys are inserted. A matching live item is overwritten only when the
  snapshot copy was modified strictly later; ties keep the local copy.

Either way every change is buffered in one store transaction and committed
once, so a failure leaves the store as it was before the run.
"""

import logging
import threading
from copy import deepcopy
from datetime import date, tzinfo
from pathlib import Path
from typing import Any
from uuid import uuid4

from .data_store import DataStore, DataStoreProtocol
from .errors import MalformedSnapshot, ValidationFailure
from .expiration import now
from .identity import item_identity_key
from .models import AppSettings, ImportMode, PerishableItem, ReconciliationResult, validate_item
from .snapshot import Snapshot, decode, dumps, encode
from .unit_of_work import StoreTransaction

logger = logging.getLogger(__name__)


def default_backup_filename(day: date) -> str:
    """File name used when exporting into a directory."""
    return f"shelf-life-backup-{day.isoformat()}.json"


def apply_newer_fields(live: PerishableItem, incoming: PerishableItem) -> None:
    """Overwrite a live item's mutable fields, keeping its id and creation time."""
    for field in PerishableItem.mutable_fields():
        setattr(live, field, deepcopy(getattr(incoming, field)))


class BackupService:
    """Exports the local dataset and reconciles snapshots back into it.

    Reconciliations on one service are serialized; callers sharing a store
    across services must serialize them themselves.
    """

    def __init__(self, data_store: DataStoreProtocol | None = None, tz: tzinfo | None = None):
        """Initialize backup service.

        Args:
            data_store: Store to export from and import into
            tz: Time zone for calendar-day rules. Defaults to the local zone.
        """
        self.data_store = data_store or DataStore()
        self.tz = tz
        self._lock = threading.Lock()

    # --- Export ---

    def export_snapshot(self) -> Snapshot:
        """Read every entity into a snapshot. Never mutates the store."""
        with self._lock:
            dataset = self.data_store.load_dataset()

        snapshot = Snapshot(
            exported_at=now(self.tz),
            items=dataset.items,
            settings=dataset.settings,
            profiles=dataset.profiles,
            custom_food_types=dataset.custom_food_types,
        )
        logger.info(
            "Exported %d items, %d profiles, %d custom food types",
            len(snapshot.items),
            len(snapshot.profiles),
            len(snapshot.custom_food_types),
        )
        return snapshot

    def export_document(self) -> dict[str, Any]:
        """Export as a JSON-ready snapshot document."""
        return encode(self.export_snapshot())

    def export_to_file(self, path: Path) -> tuple[Path, Snapshot]:
        """Write a snapshot file.

        Args:
            path: Target file, or a directory to place a dated backup file in

        Returns:
            Path of the written file and the snapshot written to it
        """
        snapshot = self.export_snapshot()
        if path.is_dir():
            path = path / default_backup_filename(snapshot.exported_at.date())
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dumps(snapshot), encoding="utf-8")
        logger.info("Wrote backup to %s", path)
        return path, snapshot

    # --- Import ---

    def import_snapshot(
        self,
        document: Snapshot | dict[str, Any] | str | bytes,
        mode: ImportMode = ImportMode.MERGE,
    ) -> ReconciliationResult:
        """Reconcile a snapshot against the live store.

        Args:
            document: Snapshot, parsed document, or JSON text
            mode: Replace or Merge

        Returns:
            Counts of imported, updated and skipped items

        Raises:
            MalformedSnapshot: Document is invalid; the store is untouched
            PersistenceFailure: The store rejected the commit; treat the
                batch as indeterminate
        """
        snapshot = document if isinstance(document, Snapshot) else decode(document)

        with self._lock:
            if mode == ImportMode.REPLACE:
                result = self._replace(snapshot)
            else:
                result = self._merge(snapshot)

        logger.info(
            "%s import: %d imported, %d updated, %d skipped of %d",
            mode.value.capitalize(),
            result.imported,
            result.updated,
            result.skipped,
            result.total_in_snapshot,
        )
        return result

    def import_from_file(
        self, path: Path, mode: ImportMode = ImportMode.MERGE
    ) -> ReconciliationResult:
        """Read a snapshot file and import it."""
        return self.import_snapshot(path.read_bytes(), mode)

    # --- Strategies ---

    def _check_replaceable(self, snapshot: Snapshot) -> None:
        """Replace trusts nothing it would wipe the store for."""
        problems = []
        seen_ids = set()
        for index, item in enumerate(snapshot.items):
            try:
                validate_item(item)
            except ValidationFailure as e:
                problems.append(f"items.{index}: {e.reason}")
            if item.id in seen_ids:
                problems.append(f"items.{index}: duplicate id {item.id}")
            seen_ids.add(item.id)
        if problems:
            raise MalformedSnapshot("Snapshot cannot replace the store", problems)

    def _replace(self, snapshot: Snapshot) -> ReconciliationResult:
        self._check_replaceable(snapshot)

        with self.data_store.transaction() as tx:
            tx.delete_all()
            for item in snapshot.items:
                tx.insert_item(item.model_copy(deep=True))
            tx.put_settings(
                snapshot.settings.model_copy(deep=True) if snapshot.settings else AppSettings()
            )
            for profile in snapshot.profiles:
                tx.insert_profile(profile.model_copy(deep=True))
            for food_type in snapshot.custom_food_types:
                tx.insert_custom_food_type(food_type.model_copy(deep=True))
            tx.commit()

        return ReconciliationResult(
            mode=ImportMode.REPLACE,
            imported=len(snapshot.items),
            total_in_snapshot=len(snapshot.items),
        )

    def _merge(self, snapshot: Snapshot) -> ReconciliationResult:
        result = ReconciliationResult(
            mode=ImportMode.MERGE, total_in_snapshot=len(snapshot.items)
        )

        with self.data_store.transaction() as tx:
            live_items = tx.fetch_items()
            known_ids = {item.id for item in live_items}
            index: dict[str, PerishableItem] = {}
            for live in live_items:
                index.setdefault(item_identity_key(live, self.tz), live)

            for position, incoming in enumerate(snapshot.items):
                try:
                    validate_item(incoming)
                except ValidationFailure as e:
                    logger.warning("Skipping snapshot item %d: %s", position, e)
                    result.invalid.append(f"items.{position}: {e.reason}")
                    result.skipped += 1
                    continue

                key = item_identity_key(incoming, self.tz)
                live = index.get(key)

                if live is None:
                    item = incoming.model_copy(deep=True)
                    if item.id in known_ids:
                        # Same id, different identity key: keep both items.
                        item.id = uuid4()
                    tx.insert_item(item)
                    index[key] = item
                    known_ids.add(item.id)
                    result.imported += 1
                    logger.debug("Imported %r as new item %s", key, item.id)
                elif incoming.last_updated > live.last_updated:
                    apply_newer_fields(live, incoming)
                    tx.update_item(live)
                    result.updated += 1
                    logger.debug("Updated %s from snapshot (%r)", live.id, key)
                else:
                    result.skipped += 1
                    logger.debug("Kept local %s (%r), snapshot not newer", live.id, key)

            self._merge_singletons(tx, snapshot)
            tx.commit()

        return result

    def _merge_singletons(self, tx: StoreTransaction, snapshot: Snapshot) -> None:
        """Insert settings, profiles and custom types only where none exist."""
        if tx.fetch_settings() is None and snapshot.settings is not None:
            tx.put_settings(snapshot.settings.model_copy(deep=True))
        if not tx.fetch_profiles():
            for profile in snapshot.profiles:
                tx.insert_profile(profile.model_copy(deep=True))
        if not tx.fetch_custom_food_types():
            for food_type in snapshot.custom_food_types:
                tx.insert_custom_food_type(food_type.model_copy(deep=True))
