"""Tests for CLI commands."""

import json
from datetime import date, timedelta

import pytest
from typer.testing import CliRunner

from shelf_life.main import app

runner = CliRunner()


def in_days(days: int) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


@pytest.fixture
def shelf(temp_data_dir, isolated_home):
    """Run a shelf command in JSON mode against the temp data dir."""

    def _run(*args):
        return runner.invoke(app, ["--json", "--data-dir", str(temp_data_dir), *args])

    return _run


def payload(result):
    return json.loads(result.stdout)


def add(shelf, name, days, *options):
    result = shelf("add", name, "--expires", in_days(days), *options)
    assert result.exit_code == 0, result.stdout
    return payload(result)["data"]["item"]


class TestAddCommand:
    """Tests for add command."""

    def test_add_item_basic(self, shelf):
        """Add item with basic options."""
        result = shelf("add", "Milk", "--expires", in_days(5))
        assert result.exit_code == 0

        data = payload(result)
        assert data["success"] is True
        item = data["data"]["item"]
        assert item["name"] == "Milk"
        assert item["category"] == "fridge"
        assert item["days_remaining"] == 5
        assert item["status"] == "safe"
        assert item["has_photo"] is False
        assert "photo_data" not in item

    def test_add_item_with_options(self, shelf):
        """Add item with all options."""
        item = add(
            shelf,
            "Frozen peas",
            90,
            "--category",
            "freezer",
            "--quantity",
            "2",
            "--notes",
            "bottom drawer",
            "--barcode",
            "8001",
            "--food-type",
            "Frozen foods",
            "--price",
            "1.99",
            "--no-notify",
        )
        assert item["category"] == "freezer"
        assert item["quantity"] == 2
        assert item["food_type"] == "Frozen foods"
        assert item["price"] == 1.99
        assert item["notify"] is False

    def test_add_fresh_item(self, shelf):
        item = add(shelf, "Basil", 30, "--fresh")
        assert item["days_remaining"] == 3
        assert item["status"] == "soon"

    def test_add_blank_name_fails(self, shelf):
        result = shelf("add", "  ", "--expires", in_days(5))
        assert result.exit_code == 1
        data = payload(result)
        assert data["success"] is False
        assert data["error_code"] == "VALIDATION_FAILED"

    def test_add_requires_expiration(self, shelf):
        result = shelf("add", "Milk")
        assert result.exit_code != 0


class TestListCommand:
    """Tests for list command."""

    def test_list_sorted_by_expiration(self, shelf):
        add(shelf, "Peas", 60, "--category", "freezer")
        add(shelf, "Milk", 2)
        add(shelf, "Ham", -1)

        data = payload(shelf("list"))
        assert [i["name"] for i in data["data"]["items"]] == ["Ham", "Milk", "Peas"]
        assert data["data"]["count"] == 3

    def test_list_by_category_and_status(self, shelf):
        add(shelf, "Peas", 60, "--category", "freezer")
        add(shelf, "Milk", 2)
        add(shelf, "Ham", -1)

        by_category = payload(shelf("list", "--category", "freezer"))["data"]["items"]
        assert [i["name"] for i in by_category] == ["Peas"]
        expired = payload(shelf("list", "--status", "expired"))["data"]["items"]
        assert [i["name"] for i in expired] == ["Ham"]

    def test_list_rich_output(self, temp_data_dir, isolated_home, shelf):
        add(shelf, "Milk", 2)
        result = runner.invoke(app, ["--data-dir", str(temp_data_dir), "list"])
        assert result.exit_code == 0
        assert "Milk" in result.stdout
        assert "Total items: 1" in result.stdout


class TestItemCommands:
    """Tests for remove, consume and open."""

    def test_remove(self, shelf):
        item = add(shelf, "Milk", 5)
        result = shelf("remove", item["id"])
        assert result.exit_code == 0
        assert payload(shelf("list"))["data"]["count"] == 0

    def test_remove_unknown(self, shelf):
        result = shelf("remove", "00000000-0000-0000-0000-000000000000")
        assert result.exit_code == 1
        assert payload(result)["error_code"] == "ITEM_NOT_FOUND"

    def test_consume_hides_item(self, shelf):
        item = add(shelf, "Milk", 5)
        consumed = payload(shelf("consume", item["id"]))["data"]["item"]
        assert consumed["is_consumed"] is True
        assert payload(shelf("list"))["data"]["count"] == 0
        assert payload(shelf("list", "--all"))["data"]["count"] == 1

    def test_open_moves_expiration(self, shelf):
        item = add(shelf, "Passata", 300, "--category", "pantry")
        opened = payload(shelf("open", item["id"]))["data"]["item"]
        assert opened["is_opened"] is True
        assert opened["days_remaining"] == 3

    def test_expiring(self, shelf):
        add(shelf, "Milk", 2)
        add(shelf, "Peas", 60)
        data = payload(shelf("expiring", "--days", "3"))["data"]
        assert [i["name"] for i in data["items"]] == ["Milk"]
        assert data["days"] == 3


class TestBackupCommands:
    """Tests for backup export and import."""

    def test_export_to_directory(self, shelf, tmp_path):
        add(shelf, "Milk", 5)
        target = tmp_path / "backups"
        target.mkdir()

        result = shelf("backup", "export", str(target))

        assert result.exit_code == 0
        export = payload(result)["data"]["export"]
        assert export["items"] == 1
        written = json.loads(open(export["path"]).read())
        assert written["formatVersion"] == "1.0"
        assert len(written["items"]) == export["items"]

    def test_merge_import(self, shelf, tmp_path):
        add(shelf, "Milk", 5)
        backup = tmp_path / "backup.json"
        shelf("backup", "export", str(backup))
        add(shelf, "Eggs", 7)

        result = shelf("backup", "import", str(backup))

        assert result.exit_code == 0
        recon = payload(result)["data"]["reconciliation"]
        assert recon["mode"] == "merge"
        assert (recon["imported"], recon["updated"], recon["skipped"]) == (0, 0, 1)
        assert payload(shelf("list"))["data"]["count"] == 2

    def test_replace_import(self, shelf, tmp_path):
        add(shelf, "Milk", 5)
        backup = tmp_path / "backup.json"
        shelf("backup", "export", str(backup))
        add(shelf, "Eggs", 7)

        result = shelf("backup", "import", str(backup), "--mode", "replace")

        assert result.exit_code == 0
        assert payload(result)["data"]["reconciliation"]["imported"] == 1
        names = [i["name"] for i in payload(shelf("list"))["data"]["items"]]
        assert names == ["Milk"]

    def test_malformed_import(self, shelf, tmp_path):
        add(shelf, "Milk", 5)
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"formatVersion": "2.0", "items": []}))

        result = shelf("backup", "import", str(bad), "--mode", "replace")

        assert result.exit_code == 1
        assert payload(result)["error_code"] == "MALFORMED_SNAPSHOT"
        assert payload(shelf("list"))["data"]["count"] == 1


class TestMigrateCommand:
    """Tests for migrate command."""

    def test_migrate(self, shelf, temp_data_dir):
        add(shelf, "Milk", 5)
        result = shelf("migrate")
        assert result.exit_code == 0
        assert payload(result)["data"]["migration"]["items"] == 1
        assert (temp_data_dir / "pantry.db").exists()


class TestGlobalOptions:
    """Tests for options shared by every command."""

    def test_verbose_logs_progress(self, temp_data_dir, isolated_home, tmp_path):
        target = tmp_path / "backup.json"
        result = runner.invoke(
            app, ["--verbose", "--data-dir", str(temp_data_dir), "backup", "export", str(target)]
        )
        assert result.exit_code == 0
        assert "Wrote backup" in result.output

    def test_config_file_selects_sqlite(self, temp_data_dir, isolated_home):
        (isolated_home.parent / "config.toml").write_text('[data]\nbackend = "sqlite"\n')
        result = runner.invoke(app, ["--json", "--data-dir", str(temp_data_dir), "list"])
        assert result.exit_code == 0
        assert (temp_data_dir / "pantry.db").exists()
