"""Rendering of command results as rich tables or JSON."""

import json
from datetime import date, datetime
from typing import Any
from uuid import UUID

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

STATUS_STYLES = {
    "expired": "[red]expired[/red]",
    "today": "[orange1]today[/orange1]",
    "soon": "[yellow]soon[/yellow]",
    "safe": "[green]safe[/green]",
}


class JSONEncoder(json.JSONEncoder):
    """Encodes ids and timestamps left in command payloads."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, date):
            return obj.isoformat()
        return super().default(obj)


class OutputFormatter:
    """Prints command results for people (rich) or programs (JSON)."""

    def __init__(self, json_mode: bool = False):
        self.json_mode = json_mode
        self.console = Console()

    def output(self, data: dict[str, Any], message: str = "") -> None:
        """Print a command result.

        Args:
            data: Result envelope with ``success`` and ``data`` keys
            message: Headline shown above rich output
        """
        if self.json_mode:
            self._output_json(data)
        else:
            self._output_rich(data, message)

    def _output_json(self, data: dict[str, Any]) -> None:
        print(json.dumps(data, cls=JSONEncoder, indent=2))

    def _output_rich(self, data: dict[str, Any], message: str) -> None:
        if message:
            self.console.print(f"[green]✓[/green] {message}")

        payload = data.get("data", {})
        if "items" in payload:
            self._render_items(payload["items"], payload.get("title", "Inventory"))
        elif "item" in payload:
            self._render_item(payload["item"])
        elif "reconciliation" in payload:
            self._render_reconciliation(payload["reconciliation"])
        elif "export" in payload:
            self._render_export(payload["export"])

    def _render_items(self, items: list[dict], title: str) -> None:
        """Render a table of items."""
        if not items:
            self.console.print("[dim]No items[/dim]")
            return

        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("Item", style="cyan", no_wrap=False)
        table.add_column("Qty", style="magenta", justify="right")
        table.add_column("Category", style="yellow")
        table.add_column("Expires")
        table.add_column("Days", justify="right")
        table.add_column("Status")
        table.add_column("ID", style="dim")

        for item in items:
            expires = str(item.get("effective_expiration", ""))[:10]
            table.add_row(
                item["name"],
                str(item.get("quantity", 1)),
                item.get("category", ""),
                expires,
                str(item.get("days_remaining", "")),
                STATUS_STYLES.get(item.get("status", ""), item.get("status", "")),
                str(item.get("id", ""))[:8],
            )

        self.console.print(table)
        self.console.print(f"\nTotal items: {len(items)}")

    def _render_item(self, item: dict) -> None:
        """Render a single item."""
        expires = str(item.get("effective_expiration", ""))[:10]
        status = STATUS_STYLES.get(item.get("status", ""), item.get("status", ""))
        self.console.print(
            f"  {item['name']}: qty: {item.get('quantity', 1)}, "
            f"{item.get('category', '')}, expires {expires} ({status})"
        )

    def _render_reconciliation(self, recon: dict) -> None:
        """Render reconciliation results."""
        lines = [
            f"Mode: [bold]{recon['mode']}[/bold]",
            f"Imported: [green]{recon['imported']}[/green]",
            f"Updated: [cyan]{recon['updated']}[/cyan]",
            f"Skipped: [yellow]{recon['skipped']}[/yellow]",
            f"Items in snapshot: {recon['total_in_snapshot']}",
        ]
        for problem in recon.get("invalid", []):
            lines.append(f"[red]Invalid[/red] {problem}")
        self.console.print(Panel("\n".join(lines), title="Import Summary", expand=False))

    def _render_export(self, export: dict) -> None:
        """Render export results."""
        self.console.print(
            Panel(
                f"File: {export['path']}\nItems: {export['items']}",
                title="Backup",
                expand=False,
            )
        )

    def error(self, message: str, error_code: str | None = None) -> None:
        """Print a failure, tagged with a machine-readable code in JSON mode."""
        if self.json_mode:
            output = {"success": False, "error": message}
            if error_code:
                output["error_code"] = error_code
            print(json.dumps(output))
        else:
            self.console.print(f"[red]✗ Error:[/red] {message}")

