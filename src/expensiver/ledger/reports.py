"""Read-only projections of a group: exports, statistics and timelines."""

from collections import defaultdict
from decimal import Decimal
from typing import Literal

from ..models import (
    ActivityItem,
    Expense,
    ExportedExpense,
    ExportedMember,
    ExportedShare,
    Group,
    GroupExport,
    GroupSummary,
)
from .money import ZERO

SortMethod = Literal["date-desc", "date-asc", "amount-desc", "amount-asc"]


def export_group(group: Group) -> GroupExport:
    """
    Flatten a group for download: member ids are resolved to names and
    stripped. Ids that no longer resolve are exported as "Unknown".
    """
    return GroupExport(
        name=group.name,
        description=group.description,
        currency=group.currency,
        category=group.category,
        members=[ExportedMember(name=member.name) for member in group.members],
        expenses=[
            ExportedExpense(
                description=expense.description,
                amount=expense.amount,
                category=expense.category,
                date=expense.date,
                notes=expense.notes,
                paid_by=[
                    ExportedShare(name=group.member_name(p.member_id), amount=p.amount)
                    for p in expense.payers
                ],
                split_between=[
                    ExportedShare(name=group.member_name(s.member_id), amount=s.amount)
                    for s in expense.splits
                ],
                split_type=expense.split_type,
            )
            for expense in group.expenses
        ],
    )


def group_summary(group: Group) -> GroupSummary:
    """Totals, average, category breakdown and top payer for a group."""
    total = sum((expense.amount for expense in group.expenses), ZERO)
    count = len(group.expenses)

    category_totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    paid_by_member: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for expense in group.expenses:
        category_totals[expense.category] += expense.amount
        for payer in expense.payers:
            paid_by_member[payer.member_id] += payer.amount

    top_payer_id = None
    top_payer_amount = ZERO
    for member_id, amount in paid_by_member.items():
        if amount > top_payer_amount:
            top_payer_id, top_payer_amount = member_id, amount

    return GroupSummary(
        total_expenses=total,
        expense_count=count,
        average_expense=total / count if count else ZERO,
        member_count=len(group.members),
        most_recent_expense_date=max((e.date for e in group.expenses), default=None),
        category_totals=dict(category_totals),
        top_payer_id=top_payer_id,
        top_payer_amount=top_payer_amount,
    )


def activity_history(group: Group) -> list[ActivityItem]:
    """Expenses and settlements in one timeline, newest first."""
    items = [
        ActivityItem(
            kind="expense",
            id=expense.id,
            date=expense.date,
            description=expense.description,
            amount=expense.amount,
        )
        for expense in group.expenses
    ]
    items.extend(
        ActivityItem(
            kind="settlement",
            id=settlement.id,
            date=settlement.date,
            description=settlement.notes
            or (
                f"{group.member_name(settlement.from_id)} paid "
                f"{group.member_name(settlement.to_id)}"
            ),
            amount=settlement.amount,
        )
        for settlement in group.settlements
    )
    # stable sort keeps recording order within a day
    return sorted(items, key=lambda item: item.date, reverse=True)


def search_expenses(group: Group, query: str) -> list[Expense]:
    """Case-insensitive match on description, notes and category."""
    needle = query.strip().lower()
    if not needle:
        return list(group.expenses)
    return [
        expense
        for expense in group.expenses
        if needle in expense.description.lower()
        or needle in expense.notes.lower()
        or needle in expense.category.lower()
    ]


def sort_expenses(group: Group, method: SortMethod = "date-desc") -> list[Expense]:
    """Return the group's expenses in the requested order."""
    if method == "date-desc":
        return sorted(group.expenses, key=lambda e: e.date, reverse=True)
    if method == "date-asc":
        return sorted(group.expenses, key=lambda e: e.date)
    if method == "amount-desc":
        return sorted(group.expenses, key=lambda e: e.amount, reverse=True)
    if method == "amount-asc":
        return sorted(group.expenses, key=lambda e: e.amount)
    raise ValueError(f"Unknown sort method: {method}")
