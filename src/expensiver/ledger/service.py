"""Service layer that composes the ledger engine with storage.

Every mutating method loads the group, applies a fully validated change and
saves the group before returning, so a later read always sees the change.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

from ..config import Settings
from ..db import Database
from ..exceptions import DuplicateMemberError, NotFoundError
from ..models import (
    ActivityItem,
    Budget,
    BudgetPeriod,
    BudgetStatus,
    Expense,
    Group,
    GroupExport,
    GroupSummary,
    Member,
    MemberBalance,
    Settlement,
    SplitType,
    Transfer,
    User,
)
from . import budgets, ledger, reports
from .optimizer import settlement_plan

logger = logging.getLogger(__name__)


class LedgerService:
    """Service for recording group expenses and settling up."""

    def __init__(self, settings: Settings, database: Database):
        """Initialize the ledger service."""
        self.settings = settings
        self.db = database

    # ========================================================================
    # Users
    # ========================================================================

    def current_user(self) -> User:
        """Get the local user, creating one from settings on first use."""
        user_id = self.db.get_current_user_id()
        user = self.db.load_user(user_id) if user_id else None
        if user is None:
            user = User(
                id=ledger.generate_id(),
                name=self.settings.user_name,
                currency=self.settings.default_currency,
            )
            self.db.save_user(user)
            self.db.set_current_user_id(user.id)
            logger.info(f"Created local user '{user.name}'")
        return user

    # ========================================================================
    # Groups
    # ========================================================================

    def get_group(self, group_id: str) -> Group:
        """Get a group by id or invite code, or raise NotFoundError."""
        group = self.db.find_group(group_id)
        if group is None:
            raise NotFoundError("group", group_id)
        return group

    def list_groups(self) -> list[Group]:
        return self.db.list_groups()

    def create_group(
        self,
        name: str,
        currency: str | None = None,
        category: str = "other",
        member_names: Iterable[str] = (),
        description: str = "",
    ) -> Group:
        """Create a group owned by the local user and save it."""
        user = self.current_user()
        group = ledger.create_group(
            name=name,
            currency=currency or user.currency,
            category=category,
            member_names=member_names,
            owner=user,
            description=description,
        )
        self.db.save_group(group)
        return group

    def join_group(self, id_or_invite_code: str, display_name: str | None = None) -> Group:
        """
        Join an existing group as the local user.

        Raises:
            NotFoundError: If no group has this id or invite code
            DuplicateMemberError: If the user (or their name) is already a member
        """
        group = self.get_group(id_or_invite_code)
        user = self.current_user()
        name = (display_name or user.name).strip()

        if group.find_member(user.id) is not None:
            raise DuplicateMemberError(name, "You are already a member of this group")
        ledger.add_member(group, name, email=user.email or None, member_id=user.id)
        self.db.save_group(group)

        if user.name != name:
            user.name = name
            self.db.save_user(user)

        return group

    def delete_group(self, group_id: str) -> None:
        group = self.get_group(group_id)
        self.db.delete_group(group.id)
        logger.info(f"Deleted group '{group.name}'")

    def add_member(self, group_id: str, name: str, email: str | None = None) -> Member:
        group = self.get_group(group_id)
        member = ledger.add_member(group, name, email=email)
        self.db.save_group(group)
        return member

    # ========================================================================
    # Expenses & settlements
    # ========================================================================

    def add_expense(
        self,
        group_id: str,
        *,
        description: str,
        amount: Any,
        participant_ids: Iterable[str],
        split_type: SplitType = "equal",
        split_values: Mapping[str, Any] | None = None,
        payer_id: str | None = None,
        payer_contributions: Iterable[tuple[str, Any]] | None = None,
        category: str = "other",
        expense_date: date | None = None,
        notes: str = "",
    ) -> Expense:
        """Validate, record and save a new expense."""
        group = self.get_group(group_id)
        expense = ledger.create_expense(
            group,
            description=description,
            amount=amount,
            participant_ids=participant_ids,
            split_type=split_type,
            split_values=split_values,
            payer_id=payer_id,
            payer_contributions=payer_contributions,
            category=category,
            expense_date=expense_date,
            notes=notes,
            created_by=self.current_user().id,
        )
        ledger.record_expense(group, expense)
        self.db.save_group(group)
        return expense

    def delete_expense(self, group_id: str, expense_id: str) -> Expense:
        group = self.get_group(group_id)
        expense = ledger.delete_expense(group, expense_id)
        self.db.save_group(group)
        return expense

    def settle_up(
        self,
        group_id: str,
        from_id: str,
        to_id: str,
        amount: Any,
        settlement_date: date | None = None,
        notes: str = "",
    ) -> Settlement:
        """Record and save a payment between two members."""
        group = self.get_group(group_id)
        settlement = ledger.create_settlement(
            group,
            from_id=from_id,
            to_id=to_id,
            amount=amount,
            settlement_date=settlement_date,
            notes=notes,
            created_by=self.current_user().id,
        )
        ledger.record_settlement(group, settlement)
        self.db.save_group(group)
        return settlement

    def delete_settlement(self, group_id: str, settlement_id: str) -> Settlement:
        group = self.get_group(group_id)
        settlement = ledger.delete_settlement(group, settlement_id)
        self.db.save_group(group)
        return settlement

    # ========================================================================
    # Derived views
    # ========================================================================

    def balances(self, group_id: str) -> list[MemberBalance]:
        return ledger.balances_of(self.get_group(group_id))

    def settlement_plan(self, group_id: str) -> list[Transfer]:
        """Suggested transfers that would settle every balance in the group."""
        return settlement_plan(self.balances(group_id))

    def suggest_settlement(self, group_id: str, member_id: str) -> Transfer | None:
        return ledger.suggest_settlement(self.get_group(group_id), member_id)

    def summary(self, group_id: str) -> GroupSummary:
        return reports.group_summary(self.get_group(group_id))

    def history(self, group_id: str) -> list[ActivityItem]:
        return reports.activity_history(self.get_group(group_id))

    def export(self, group_id: str) -> GroupExport:
        return reports.export_group(self.get_group(group_id))

    # ========================================================================
    # Budgets
    # ========================================================================

    def add_budget(
        self,
        group_id: str,
        name: str,
        amount: Any,
        category: str = budgets.ALL_CATEGORIES,
        period: BudgetPeriod = "monthly",
        start_date: date | None = None,
        end_date: date | None = None,
        notes: str = "",
    ) -> Budget:
        group = self.get_group(group_id)
        budget = budgets.add_budget(
            group,
            name=name,
            amount=amount,
            category=category,
            period=period,
            start_date=start_date,
            end_date=end_date,
            notes=notes,
            created_by=self.current_user().id,
        )
        self.db.save_group(group)
        return budget

    def delete_budget(self, group_id: str, budget_id: str) -> Budget:
        group = self.get_group(group_id)
        budget = budgets.delete_budget(group, budget_id)
        self.db.save_group(group)
        return budget

    def budget_statuses(self, group_id: str) -> list[BudgetStatus]:
        return budgets.budget_statuses(self.get_group(group_id))
