"""Shared fixtures for Expensiver tests."""

from datetime import date

import pytest

from expensiver.ledger import ledger
from expensiver.models import Group


@pytest.fixture
def group() -> Group:
    """A three-member group with no history."""
    return ledger.create_group(
        name="Goa Trip",
        currency="$",
        category="travel",
        member_names=["Alice", "Bob", "Carol"],
    )


@pytest.fixture
def ids(group):
    """Member ids by name."""
    return {member.name: member.id for member in group.members}


@pytest.fixture
def dinner(group, ids):
    """A recorded $90 dinner paid by Alice, split equally."""
    expense = ledger.create_expense(
        group,
        description="Dinner",
        amount="90",
        participant_ids=list(ids.values()),
        payer_id=ids["Alice"],
        category="food",
        expense_date=date(2024, 3, 1),
    )
    return ledger.record_expense(group, expense)
