"""End-to-end tests for the command line interface."""

import pytest
from typer.testing import CliRunner

from expensiver.cli import app
from expensiver.db import Database

runner = CliRunner()


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    """Point the CLI at a temporary database."""
    path = tmp_path / "cli.db"
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("EXPENSIVER_DATABASE_PATH", str(path))
    monkeypatch.setenv("EXPENSIVER_USER_NAME", "Alice")
    monkeypatch.setenv("EXPENSIVER_DEFAULT_CURRENCY", "$")
    return path


def stored_groups(path):
    db = Database(path)
    try:
        return db.list_groups()
    finally:
        db.close()


@pytest.fixture
def group_id(db_path):
    result = runner.invoke(app, ["group", "create", "Goa Trip", "--members", "Bob,Carol"])
    assert result.exit_code == 0, result.output
    return stored_groups(db_path)[0].id


class TestGroupCommands:
    def test_create(self, db_path, group_id):
        (group,) = stored_groups(db_path)

        assert [m.name for m in group.members] == ["Alice", "Bob", "Carol"]
        assert group.currency == "$"

    def test_delete_with_yes(self, db_path, group_id):
        result = runner.invoke(app, ["group", "delete", group_id, "--yes"])

        assert result.exit_code == 0, result.output
        assert stored_groups(db_path) == []

    def test_unknown_group_exits_with_error(self, db_path):
        result = runner.invoke(app, ["group", "show", "id_missing"])

        assert result.exit_code == 1
        assert "not found" in result.output.lower()

    def test_export_writes_json(self, db_path, group_id, tmp_path):
        output = tmp_path / "out.json"

        result = runner.invoke(app, ["group", "export", group_id, "--output", str(output)])

        assert result.exit_code == 0, result.output
        assert '"Goa Trip"' in output.read_text(encoding="utf-8")


class TestExpenseCommands:
    def test_add_percentage_split(self, db_path, group_id):
        result = runner.invoke(
            app,
            [
                "expense", "add", group_id, "Dinner", "100",
                "--paid-by", "Alice",
                "--split", "percentage",
                "--with", "Alice", "--with", "Bob",
                "--value", "Alice=60", "--value", "Bob=40",
            ],
        )

        assert result.exit_code == 0, result.output
        (expense,) = stored_groups(db_path)[0].expenses
        assert [str(s.amount) for s in expense.splits] == ["60.00", "40.00"]

    def test_rejected_split_saves_nothing(self, db_path, group_id):
        result = runner.invoke(
            app,
            [
                "expense", "add", group_id, "Dinner", "100",
                "--paid-by", "Alice",
                "--split", "unequal",
                "--with", "Alice", "--with", "Bob",
                "--value", "Alice=60", "--value", "Bob=30",
            ],
        )

        assert result.exit_code == 1
        assert stored_groups(db_path)[0].expenses == []

    def test_huge_amount_reports_error(self, db_path, group_id):
        result = runner.invoke(
            app, ["expense", "add", group_id, "Yacht", "1e28", "--paid-by", "Alice"]
        )

        assert result.exit_code == 1
        assert "too large" in result.output
        assert stored_groups(db_path)[0].expenses == []

    def test_unknown_split_type(self, db_path, group_id):
        result = runner.invoke(
            app, ["expense", "add", group_id, "Dinner", "100", "--split", "thirds"]
        )

        assert result.exit_code != 0


class TestSettlementCommands:
    def test_settle_full_debt(self, db_path, group_id):
        runner.invoke(
            app, ["expense", "add", group_id, "Villa", "300", "--paid-by", "Alice"]
        )

        result = runner.invoke(app, ["settlement", "add", group_id, "--from", "Bob"])

        assert result.exit_code == 0, result.output
        (settlement,) = stored_groups(db_path)[0].settlements
        assert settlement.amount == 100
        assert settlement.notes == "Settlement from Bob to Alice"

    def test_plan_when_settled(self, db_path, group_id):
        result = runner.invoke(app, ["settlement", "plan", group_id])

        assert result.exit_code == 0
        assert "All settled up" in result.output
