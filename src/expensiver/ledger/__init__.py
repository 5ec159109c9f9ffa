"""Ledger engine: split calculation, balances and settlement planning."""

from .ledger import (
    balance_of,
    balances_of,
    create_expense,
    delete_expense,
    delete_settlement,
    record_expense,
    record_settlement,
    total_owed_by,
    total_paid_by,
)
from .optimizer import settlement_plan
from .payers import allocate_payers
from .splits import compute_splits

__all__ = [
    "allocate_payers",
    "balance_of",
    "balances_of",
    "compute_splits",
    "create_expense",
    "delete_expense",
    "delete_settlement",
    "record_expense",
    "record_settlement",
    "settlement_plan",
    "total_owed_by",
    "total_paid_by",
]
