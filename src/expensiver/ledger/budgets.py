"""Group budgets and spending against them."""

import logging
from datetime import date
from decimal import Decimal
from typing import Any

from ..exceptions import InvalidBudgetError, NotFoundError
from ..models import Budget, BudgetPeriod, BudgetStatus, Group
from .ledger import generate_id, touch
from .money import ZERO, parse_amount

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"


def add_budget(
    group: Group,
    name: str,
    amount: Any,
    category: str = ALL_CATEGORIES,
    period: BudgetPeriod = "monthly",
    start_date: date | None = None,
    end_date: date | None = None,
    notes: str = "",
    created_by: str | None = None,
) -> Budget:
    """
    Add a budget to a group.

    Raises:
        InvalidBudgetError: If the name is empty, or a custom period is
            missing dates or ends before it starts
        InvalidAmountError: If the amount isn't positive
    """
    if not name or not name.strip():
        raise InvalidBudgetError("Please enter a name for the budget")
    limit = parse_amount(amount)

    if period == "custom":
        if start_date is None or end_date is None:
            raise InvalidBudgetError(
                "Please select start and end dates for the custom period"
            )
        if start_date > end_date:
            raise InvalidBudgetError("Start date must be before end date")
    else:
        start_date = end_date = None

    budget = Budget(
        id=generate_id(),
        name=name.strip(),
        amount=limit,
        category=category,
        period=period,
        start_date=start_date,
        end_date=end_date,
        notes=notes,
        created_by=created_by,
    )
    group.budgets.append(budget)
    touch(group)

    logger.info(f"Added budget '{budget.name}' ({limit}) to group '{group.name}'")
    return budget


def delete_budget(group: Group, budget_id: str) -> Budget:
    """Remove a budget by id and return it."""
    for budget in group.budgets:
        if budget.id == budget_id:
            group.budgets.remove(budget)
            touch(group)
            logger.info(f"Deleted budget '{budget.name}' from group '{group.name}'")
            return budget
    raise NotFoundError("budget", budget_id)


def budget_spent(group: Group, budget: Budget) -> Decimal:
    """Total of the expenses a budget covers (all, or one category)."""
    return sum(
        (
            expense.amount
            for expense in group.expenses
            if budget.category == ALL_CATEGORIES or expense.category == budget.category
        ),
        ZERO,
    )


def budget_status(group: Group, budget: Budget) -> BudgetStatus:
    """Spent, remaining and percent used for one budget."""
    spent = budget_spent(group, budget)
    percent = (spent / budget.amount * 100).quantize(Decimal("1"))
    return BudgetStatus(
        budget=budget,
        spent=spent,
        remaining=budget.amount - spent,
        percent_used=percent,
        over_budget=spent > budget.amount,
    )


def budget_statuses(group: Group) -> list[BudgetStatus]:
    return [budget_status(group, budget) for budget in group.budgets]
