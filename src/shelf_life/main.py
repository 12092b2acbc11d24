"""CLI entry point for Shelf Life."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any

import typer

from .config import ConfigManager
from .data_store import BackendType, DataStoreProtocol, create_data_store
from .errors import ItemNotFoundError, MalformedSnapshot, PersistenceFailure, ValidationFailure
from .expiration import effective_expiration, ensure_aware, now
from .inventory_manager import InventoryManager
from .logging_config import configure_logging
from .models import ExpirationStatus, ImportMode, PerishableItem, StorageCategory
from .output_formatter import OutputFormatter
from .reconciliation import BackupService

app = typer.Typer(
    name="shelf",
    help="Track perishable food and back it up safely",
    no_args_is_help=True,
)

# Global state for formatter and config (set by callback)
formatter: OutputFormatter = OutputFormatter()
config: ConfigManager | None = None
data_store: DataStoreProtocol | None = None
inventory_manager: InventoryManager | None = None
backup_service: BackupService | None = None

ERROR_CODES: dict[type[Exception], str] = {
    MalformedSnapshot: "MALFORMED_SNAPSHOT",
    PersistenceFailure: "PERSISTENCE_FAILURE",
    ValidationFailure: "VALIDATION_FAILED",
    ItemNotFoundError: "ITEM_NOT_FOUND",
}


def get_config() -> ConfigManager:
    """Get or create ConfigManager instance."""
    global config
    if config is None:
        config = ConfigManager()
    return config


def get_data_store() -> DataStoreProtocol:
    """Get or create data store instance using config values."""
    global data_store
    if data_store is None:
        cfg = get_config()
        backend = BackendType(cfg.data.backend)
        data_store = create_data_store(backend=backend, data_dir=cfg.data.storage_dir)
    return data_store


def get_inventory_manager() -> InventoryManager:
    """Get or create InventoryManager instance."""
    global inventory_manager
    if inventory_manager is None:
        inventory_manager = InventoryManager(get_data_store(), tz=get_config().time.tzinfo)
    return inventory_manager


def get_backup_service() -> BackupService:
    """Get or create BackupService instance."""
    global backup_service
    if backup_service is None:
        backup_service = BackupService(get_data_store(), tz=get_config().time.tzinfo)
    return backup_service


def fail(error: Exception) -> None:
    """Report an error and exit with status 1."""
    formatter.error(str(error), error_code=ERROR_CODES.get(type(error)))
    raise typer.Exit(code=1)


def item_payload(item: PerishableItem) -> dict[str, Any]:
    """Item fields plus derived expiration info, without the photo blob."""
    tz = get_config().time.tzinfo
    today = now(tz).date()
    payload = item.model_dump(mode="json", exclude={"photo_data"})
    payload["has_photo"] = item.photo_data is not None
    payload["effective_expiration"] = effective_expiration(item, tz).isoformat()
    payload["days_remaining"] = item.days_remaining(today, tz)
    payload["status"] = item.expiration_status(today, tz).value
    return payload


def parse_expiration(value: str) -> datetime:
    """Parse YYYY-MM-DD (local midnight) or a full ISO timestamp."""
    parsed = datetime.fromisoformat(value)
    return ensure_aware(parsed, get_config().time.tzinfo)


@app.callback()
def main(
    json_output: Annotated[
        bool, typer.Option("--json", help="Output as JSON for programmatic use")
    ] = False,
    data_dir: Annotated[Path | None, typer.Option("--data-dir", help="Data directory path")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log progress")] = False,
) -> None:
    """Shelf Life CLI - Know what's about to expire."""
    global formatter, config, data_store, inventory_manager, backup_service

    formatter = OutputFormatter(json_mode=json_output)

    # Load config early
    config = ConfigManager()
    configure_logging(
        level=logging.INFO if verbose else config.logging.level_number, force=True
    )

    # CLI --data-dir overrides config, which overrides default
    effective_data_dir = data_dir if data_dir else config.data.storage_dir
    backend = BackendType(config.data.backend)
    tz = config.time.tzinfo

    data_store = create_data_store(backend=backend, data_dir=effective_data_dir)
    inventory_manager = InventoryManager(data_store, tz=tz)
    backup_service = BackupService(data_store, tz=tz)


@app.command()
def add(
    name: Annotated[str, typer.Argument(help="Item name")],
    expires: Annotated[
        str, typer.Option("--expires", "-e", help="Printed expiration date (YYYY-MM-DD)")
    ],
    category: Annotated[
        StorageCategory, typer.Option("--category", "-c", help="Storage category")
    ] = StorageCategory.FRIDGE,
    quantity: Annotated[int, typer.Option("--quantity", "-q", help="Number of units")] = 1,
    notes: Annotated[str | None, typer.Option("--notes", "-n", help="Free-text note")] = None,
    barcode: Annotated[str | None, typer.Option("--barcode", help="Product barcode")] = None,
    food_type: Annotated[str | None, typer.Option("--food-type", help="Food type tag")] = None,
    price: Annotated[float | None, typer.Option("--price", "-p", help="Price paid")] = None,
    fresh: Annotated[
        bool, typer.Option("--fresh", help="Fresh product, expires 3 days after adding")
    ] = False,
    advanced: Annotated[
        bool, typer.Option("--advanced", help="Closed product expires 120 days after adding")
    ] = False,
    no_notify: Annotated[bool, typer.Option("--no-notify", help="Disable reminders")] = False,
) -> None:
    """Add an item to the inventory."""
    try:
        item = get_inventory_manager().add_item(
            name=name,
            category=category,
            expiration_date=parse_expiration(expires),
            quantity=quantity,
            notes=notes,
            barcode=barcode,
            food_type=food_type,
            price=price,
            is_fresh=fresh,
            use_advanced_expiry=advanced,
            notify=not no_notify,
        )
        output_data = {
            "success": True,
            "message": f"Added {item.name} ({item.category.value})",
            "data": {"item": item_payload(item)},
        }
        formatter.output(output_data, output_data["message"])
    except Exception as e:
        fail(e)


@app.command()
def remove(
    item_id: Annotated[str, typer.Argument(help="Item ID to remove")],
) -> None:
    """Remove an item from the inventory."""
    try:
        item = get_inventory_manager().remove_item(item_id)
        output_data = {
            "success": True,
            "message": f"Removed {item.name}",
            "data": {"item": item_payload(item)},
        }
        formatter.output(output_data, output_data["message"])
    except Exception as e:
        fail(e)


@app.command(name="list")
def list_items(
    category: Annotated[
        StorageCategory | None, typer.Option("--category", "-c", help="Filter by category")
    ] = None,
    status: Annotated[
        ExpirationStatus | None, typer.Option("--status", help="Filter by expiration status")
    ] = None,
    show_all: Annotated[bool, typer.Option("--all", help="Include consumed items")] = False,
) -> None:
    """View the inventory, soonest expiration first."""
    try:
        mgr = get_inventory_manager()
        if status is not None:
            items = mgr.get_by_status(status)
            if category is not None:
                items = [i for i in items if i.category == category]
        else:
            items = mgr.get_inventory(category=category, include_consumed=show_all)

        output_data = {
            "success": True,
            "data": {"items": [item_payload(i) for i in items], "count": len(items)},
        }
        formatter.output(output_data)
    except Exception as e:
        fail(e)


@app.command()
def consume(
    item_id: Annotated[str, typer.Argument(help="Item ID")],
) -> None:
    """Mark an item as consumed."""
    try:
        item = get_inventory_manager().mark_consumed(item_id)
        output_data = {
            "success": True,
            "message": f"Consumed {item.name}",
            "data": {"item": item_payload(item)},
        }
        formatter.output(output_data, output_data["message"])
    except Exception as e:
        fail(e)


@app.command(name="open")
def open_item(
    item_id: Annotated[str, typer.Argument(help="Item ID")],
) -> None:
    """Mark an item as opened (expires 3 days later)."""
    try:
        item = get_inventory_manager().mark_opened(item_id)
        output_data = {
            "success": True,
            "message": f"Opened {item.name}",
            "data": {"item": item_payload(item)},
        }
        formatter.output(output_data, output_data["message"])
    except Exception as e:
        fail(e)


@app.command()
def expiring(
    days: Annotated[int, typer.Option("--days", "-d", help="Days to look ahead")] = 3,
) -> None:
    """View items expiring soon, expired ones included."""
    try:
        items = get_inventory_manager().get_expiring(days=days)
        output_data = {
            "success": True,
            "data": {
                "items": [item_payload(i) for i in items],
                "count": len(items),
                "days": days,
                "title": f"Expiring Within {days} Days",
            },
        }
        formatter.output(output_data, f"{len(items)} items expiring within {days} days")
    except Exception as e:
        fail(e)


# --- Backup subcommand group ---
backup_app = typer.Typer(help="Backup export and restore")
app.add_typer(backup_app, name="backup")


@backup_app.command("export")
def backup_export(
    path: Annotated[
        Path | None, typer.Argument(help="Target file or directory (default: backup dir)")
    ] = None,
) -> None:
    """Export every item and setting to a snapshot file."""
    try:
        cfg = get_config()
        target = path or cfg.data.backup_dir or Path.cwd()
        written, snapshot = get_backup_service().export_to_file(target)
        item_count = len(snapshot.items)
        output_data = {
            "success": True,
            "message": f"Exported {item_count} items",
            "data": {"export": {"path": str(written), "items": item_count}},
        }
        formatter.output(output_data, output_data["message"])
    except Exception as e:
        fail(e)


@backup_app.command("import")
def backup_import(
    path: Annotated[Path, typer.Argument(help="Snapshot file to import")],
    mode: Annotated[
        ImportMode, typer.Option("--mode", "-m", help="merge keeps local data, replace wipes it")
    ] = ImportMode.MERGE,
) -> None:
    """Import a snapshot file."""
    try:
        result = get_backup_service().import_from_file(path, mode)
        output_data = {
            "success": True,
            "message": (
                f"{result.imported} imported, {result.updated} updated, "
                f"{result.skipped} skipped"
            ),
            "data": {"reconciliation": result.model_dump(mode="json")},
        }
        formatter.output(output_data, output_data["message"])
    except Exception as e:
        fail(e)


@app.command()
def migrate(
    force: Annotated[
        bool, typer.Option("--force", help="Overwrite an existing SQLite database")
    ] = False,
) -> None:
    """Copy JSON data into a SQLite database."""
    from .migrate_to_sqlite import migrate as run_migration

    try:
        cfg = get_config()
        data_dir = getattr(get_data_store(), "data_dir", cfg.data.storage_dir)
        stats = run_migration(data_dir=data_dir, force=force)
        output_data = {
            "success": True,
            "message": f"Migrated {stats['items']} items to SQLite",
            "data": {"migration": stats},
        }
        formatter.output(output_data, output_data["message"])
    except Exception as e:
        fail(e)


if __name__ == "__main__":
    app()
