"""Expensiver - Track shared group expenses and settle up."""

__version__ = "0.1.0"

from .config import Settings, load_settings
from .db import Database
from .ledger import (
    balances_of,
    compute_splits,
    settlement_plan,
)
from .ledger.service import LedgerService
from .models import (
    Expense,
    Group,
    Member,
    MemberBalance,
    Settlement,
    Transfer,
)

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "Expense",
    "Group",
    "Member",
    "MemberBalance",
    "Settlement",
    "Transfer",
    "balances_of",
    "compute_splits",
    "settlement_plan",
    "LedgerService",
]
