"""Tests for exports, statistics, timelines and budgets."""

from datetime import date
from decimal import Decimal

import pytest

from expensiver.exceptions import InvalidAmountError, InvalidBudgetError, NotFoundError
from expensiver.ledger.budgets import add_budget, budget_status, budget_statuses, delete_budget
from expensiver.ledger.ledger import (
    create_expense,
    create_settlement,
    record_expense,
    record_settlement,
)
from expensiver.ledger.reports import (
    activity_history,
    export_group,
    group_summary,
    search_expenses,
    sort_expenses,
)
from expensiver.models import PayerContribution


@pytest.fixture
def taxi(group, ids):
    """A $40 taxi paid by Bob on the 5th, shared by Bob and Carol."""
    expense = create_expense(
        group,
        description="Airport taxi",
        amount="40",
        participant_ids=[ids["Bob"], ids["Carol"]],
        payer_id=ids["Bob"],
        category="transport",
        expense_date=date(2024, 3, 5),
        notes="late flight",
    )
    return record_expense(group, expense)


class TestExportGroup:
    def test_resolves_names_and_strips_ids(self, group, dinner):
        exported = export_group(group)

        assert exported.name == "Goa Trip"
        assert [m.name for m in exported.members] == ["Alice", "Bob", "Carol"]
        expense = exported.expenses[0]
        assert [(p.name, p.amount) for p in expense.paid_by] == [("Alice", Decimal("90"))]
        assert [s.name for s in expense.split_between] == ["Alice", "Bob", "Carol"]
        dumped = exported.model_dump_json()
        assert all(member.id not in dumped for member in group.members)

    def test_unknown_ids_export_as_unknown(self, group, dinner):
        dinner.payers = [PayerContribution(member_id="id_gone", amount=Decimal("90"))]

        exported = export_group(group)

        assert exported.expenses[0].paid_by[0].name == "Unknown"

    def test_export_does_not_change_group(self, group, dinner):
        before = group.model_dump()
        export_group(group)

        assert group.model_dump() == before


class TestGroupSummary:
    def test_empty_group(self, group):
        summary = group_summary(group)

        assert summary.total_expenses == Decimal("0")
        assert summary.average_expense == Decimal("0")
        assert summary.most_recent_expense_date is None
        assert summary.top_payer_id is None
        assert summary.member_count == 3

    def test_totals(self, group, ids, dinner, taxi):
        summary = group_summary(group)

        assert summary.total_expenses == Decimal("130")
        assert summary.expense_count == 2
        assert summary.average_expense == Decimal("65")
        assert summary.most_recent_expense_date == date(2024, 3, 5)
        assert summary.category_totals == {"food": Decimal("90"), "transport": Decimal("40")}
        assert summary.top_payer_id == ids["Alice"]
        assert summary.top_payer_amount == Decimal("90")


class TestActivityHistory:
    def test_newest_first(self, group, ids, dinner, taxi):
        record_settlement(
            group,
            create_settlement(group, ids["Carol"], ids["Alice"], "30", date(2024, 3, 3)),
        )

        history = activity_history(group)

        assert [(item.kind, item.date) for item in history] == [
            ("expense", date(2024, 3, 5)),
            ("settlement", date(2024, 3, 3)),
            ("expense", date(2024, 3, 1)),
        ]
        assert history[1].description == "Settlement from Carol to Alice"

    def test_empty(self, group):
        assert activity_history(group) == []


class TestSearchAndSort:
    def test_search_matches_description_notes_and_category(self, group, dinner, taxi):
        assert [e.id for e in search_expenses(group, "DINNER")] == [dinner.id]
        assert [e.id for e in search_expenses(group, "flight")] == [taxi.id]
        assert [e.id for e in search_expenses(group, "transport")] == [taxi.id]
        assert len(search_expenses(group, "  ")) == 2

    def test_sort(self, group, dinner, taxi):
        assert [e.id for e in sort_expenses(group, "date-desc")] == [taxi.id, dinner.id]
        assert [e.id for e in sort_expenses(group, "date-asc")] == [dinner.id, taxi.id]
        assert [e.id for e in sort_expenses(group, "amount-desc")] == [dinner.id, taxi.id]
        assert [e.id for e in sort_expenses(group, "amount-asc")] == [taxi.id, dinner.id]

    def test_unknown_sort(self, group):
        with pytest.raises(ValueError):
            sort_expenses(group, "random")  # type: ignore[arg-type]


class TestBudgets:
    def test_spent_across_all_categories(self, group, dinner, taxi):
        budget = add_budget(group, "Trip", "100")

        status = budget_status(group, budget)

        assert status.spent == Decimal("130")
        assert status.remaining == Decimal("-30")
        assert status.percent_used == Decimal("130")
        assert status.over_budget is True

    def test_spent_in_one_category(self, group, dinner, taxi):
        budget = add_budget(group, "Food", "200", category="food")

        status = budget_status(group, budget)

        assert status.spent == Decimal("90")
        assert status.percent_used == Decimal("45")
        assert status.over_budget is False

    def test_custom_period_needs_dates(self, group):
        with pytest.raises(InvalidBudgetError):
            add_budget(group, "Week", "50", period="custom", start_date=date(2024, 3, 1))

    def test_custom_period_start_before_end(self, group):
        with pytest.raises(InvalidBudgetError):
            add_budget(
                group,
                "Week",
                "50",
                period="custom",
                start_date=date(2024, 3, 8),
                end_date=date(2024, 3, 1),
            )

    def test_dates_ignored_for_fixed_periods(self, group):
        budget = add_budget(group, "Month", "50", start_date=date(2024, 3, 1))

        assert budget.start_date is None

    def test_invalid_amount(self, group):
        with pytest.raises(InvalidAmountError):
            add_budget(group, "Broke", "0")
        assert group.budgets == []

    def test_delete(self, group):
        budget = add_budget(group, "Trip", "100")

        delete_budget(group, budget.id)

        assert budget_statuses(group) == []
        with pytest.raises(NotFoundError):
            delete_budget(group, budget.id)
