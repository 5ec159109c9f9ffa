"""Group ledger: membership, expense/settlement history and derived balances.

Balances are never stored. Every query folds over the full expense and
settlement history, so a group's balances are a pure function of its records.
Mutating functions validate everything first and only then touch the group.
"""

import logging
import secrets
import string
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from ..exceptions import (
    DuplicateMemberError,
    InvalidAmountError,
    InvalidMemberError,
    LedgerValidationError,
    NotFoundError,
    SelfSettlementError,
)
from ..models import (
    Expense,
    Group,
    Member,
    MemberBalance,
    SplitType,
    Settlement,
    Transfer,
    User,
)
from .money import ZERO, is_settled, parse_amount, to_decimal
from .payers import allocate_payers, single_payer
from .splits import compute_splits

logger = logging.getLogger(__name__)

INVITE_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
INVITE_CODE_LENGTH = 8
_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_id() -> str:
    """Generate an opaque record id like ``id_k3j9x0a2m``."""
    return "id_" + "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))


def generate_invite_code() -> str:
    """Generate an 8-character invite code without ambiguous characters."""
    return "".join(
        secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH)
    )


def touch(group: Group) -> Group:
    """Mark the group as changed just now."""
    group.last_activity = datetime.now()
    return group


# ============================================================================
# Groups & members
# ============================================================================


def _has_named(members: Iterable[Member], name: str) -> bool:
    wanted = name.strip().lower()
    return any(member.name.strip().lower() == wanted for member in members)


def create_group(
    name: str,
    currency: str,
    category: str = "other",
    member_names: Iterable[str] = (),
    owner: User | None = None,
    description: str = "",
) -> Group:
    """
    Create a new group.

    The owner is added as the first member unless one of the given member
    names already matches theirs. Names are compared ignoring case.

    Raises:
        LedgerValidationError: If the group name is empty
        DuplicateMemberError: If two member names match
    """
    if not name.strip():
        raise LedgerValidationError("Group name must not be empty")

    members: list[Member] = []
    for member_name in member_names:
        cleaned = member_name.strip()
        if not cleaned:
            continue
        if _has_named(members, cleaned):
            raise DuplicateMemberError(cleaned)
        members.append(Member(id=generate_id(), name=cleaned))
    if owner is not None and not _has_named(members, owner.name):
        members.insert(0, Member(id=owner.id, name=owner.name, email=owner.email or None))

    group = Group(
        id=generate_id(),
        invite_code=generate_invite_code(),
        name=name.strip(),
        description=description,
        currency=currency,
        category=category,
        members=members,
    )
    logger.info(f"Created group '{group.name}' with {len(members)} members")
    return group


def add_member(
    group: Group,
    name: str,
    email: str | None = None,
    member_id: str | None = None,
) -> Member:
    """
    Add a member to a group.

    Raises:
        InvalidMemberError: If the name is empty
        DuplicateMemberError: If a member with this name (case-insensitive) exists
    """
    if not name or not name.strip():
        raise InvalidMemberError("Please enter a name for the member")
    if _has_named(group.members, name):
        raise DuplicateMemberError(name.strip())

    member = Member(id=member_id or generate_id(), name=name.strip(), email=email or None)
    group.members.append(member)
    touch(group)

    logger.info(f"Added member '{member.name}' to group '{group.name}'")
    return member


def require_member(group: Group, member_id: str) -> Member:
    """Get a member or raise NotFoundError."""
    member = group.find_member(member_id)
    if member is None:
        raise NotFoundError("member", member_id)
    return member


# ============================================================================
# Expenses
# ============================================================================


def create_expense(
    group: Group,
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
    created_by: str | None = None,
) -> Expense:
    """
    Build a validated expense record without recording it.

    Exactly one of ``payer_id`` (single payer) or ``payer_contributions``
    (multiple payers) must be given.

    Raises:
        InvalidAmountError: If the amount isn't a positive number
        NotFoundError: If a payer or participant isn't a group member
        PayerMismatchError: If multi-payer amounts don't sum to the amount
        NoParticipantsError, SplitMismatchError, PercentageMismatchError,
        AdjustmentMismatchError: From the split calculator
    """
    total = parse_amount(amount)
    participants = list(participant_ids)

    if payer_contributions is not None:
        payers = allocate_payers(total, payer_contributions)
    elif payer_id:
        payers = single_payer(total, payer_id)
    else:
        raise ValueError("Either payer_id or payer_contributions is required")

    splits = compute_splits(total, participants, split_type, split_values)

    for member_id in {p.member_id for p in payers} | {s.member_id for s in splits}:
        require_member(group, member_id)

    return Expense(
        id=generate_id(),
        description=description,
        amount=total,
        category=category,
        date=expense_date or date.today(),
        notes=notes,
        payers=payers,
        splits=splits,
        split_type=split_type,
        created_by=created_by,
    )


def record_expense(group: Group, expense: Expense) -> Expense:
    """Append a pre-validated expense to the group."""
    group.expenses.append(expense)
    touch(group)
    logger.info(
        f"Recorded expense '{expense.description}' ({expense.amount}) "
        f"in group '{group.name}'"
    )
    return expense


def find_expense(group: Group, expense_id: str) -> Expense:
    """Get an expense by id or raise NotFoundError."""
    for expense in group.expenses:
        if expense.id == expense_id:
            return expense
    raise NotFoundError("expense", expense_id)


def delete_expense(group: Group, expense_id: str) -> Expense:
    """Remove an expense by id and return it."""
    expense = find_expense(group, expense_id)
    group.expenses.remove(expense)
    touch(group)
    logger.info(f"Deleted expense '{expense.description}' from group '{group.name}'")
    return expense


# ============================================================================
# Settlements
# ============================================================================


def create_settlement(
    group: Group,
    from_id: str,
    to_id: str,
    amount: Any,
    settlement_date: date | None = None,
    notes: str = "",
    created_by: str | None = None,
) -> Settlement:
    """Build a settlement record, defaulting the date to today and the notes
    to "Settlement from X to Y"."""
    settlement = Settlement(
        id=generate_id(),
        from_id=from_id,
        to_id=to_id,
        amount=to_decimal(amount),
        date=settlement_date or date.today(),
        notes=notes,
        created_by=created_by,
    )
    validate_settlement(group, settlement)
    if not settlement.notes:
        settlement.notes = (
            f"Settlement from {group.member_name(from_id)} to {group.member_name(to_id)}"
        )
    return settlement


def validate_settlement(group: Group, settlement: Settlement) -> None:
    """
    Raises:
        SelfSettlementError: If from and to are the same member
        InvalidAmountError: If the amount isn't positive
        NotFoundError: If either side isn't a group member
    """
    if settlement.from_id == settlement.to_id:
        raise SelfSettlementError(settlement.from_id)
    if settlement.amount <= ZERO:
        raise InvalidAmountError(
            settlement.amount, "Please enter a valid settlement amount"
        )
    require_member(group, settlement.from_id)
    require_member(group, settlement.to_id)


def record_settlement(group: Group, settlement: Settlement) -> Settlement:
    """Validate and append a settlement to the group."""
    validate_settlement(group, settlement)
    group.settlements.append(settlement)
    touch(group)
    logger.info(
        f"Recorded settlement of {settlement.amount} from "
        f"{group.member_name(settlement.from_id)} to "
        f"{group.member_name(settlement.to_id)} in group '{group.name}'"
    )
    return settlement


def delete_settlement(group: Group, settlement_id: str) -> Settlement:
    """Remove a settlement by id and return it."""
    for settlement in group.settlements:
        if settlement.id == settlement_id:
            group.settlements.remove(settlement)
            touch(group)
            logger.info(f"Deleted settlement {settlement_id} from group '{group.name}'")
            return settlement
    raise NotFoundError("settlement", settlement_id)


# ============================================================================
# Balances
# ============================================================================


def total_paid_by(group: Group, member_id: str) -> Decimal:
    """Everything a member has put in: expense contributions plus settlements paid."""
    paid = ZERO
    for expense in group.expenses:
        for payer in expense.payers:
            if payer.member_id == member_id:
                paid += payer.amount
    for settlement in group.settlements:
        if settlement.from_id == member_id:
            paid += settlement.amount
    return paid


def total_owed_by(group: Group, member_id: str) -> Decimal:
    """Everything a member has taken out: split shares plus settlements received."""
    owed = ZERO
    for expense in group.expenses:
        for split in expense.splits:
            if split.member_id == member_id:
                owed += split.amount
    for settlement in group.settlements:
        if settlement.to_id == member_id:
            owed += settlement.amount
    return owed


def balance_of(group: Group, member_id: str) -> Decimal:
    """
    Net balance for a member.

    Positive means the member is owed money, negative means they owe money.
    Summed over all members this is always zero.
    """
    return total_paid_by(group, member_id) - total_owed_by(group, member_id)


def balances_of(group: Group) -> list[MemberBalance]:
    """Balances for every member, in member order."""
    balances = [
        MemberBalance(
            member_id=member.id,
            member_name=member.name,
            balance=balance_of(group, member.id),
        )
        for member in group.members
    ]
    logger.debug(f"Derived {len(balances)} balances for group '{group.name}'")
    return balances


def suggest_settlement(group: Group, member_id: str) -> Transfer | None:
    """
    Suggest a single payment that clears one member's balance.

    A debtor pays their full debt to the first creditor; a creditor receives
    their full credit from the first debtor. Returns None when the member is
    settled or there is no counterparty.
    """
    require_member(group, member_id)
    balances = balances_of(group)
    balance = next(b.balance for b in balances if b.member_id == member_id)

    if is_settled(balance):
        return None

    if balance < ZERO:
        creditor = next((b for b in balances if b.balance > ZERO), None)
        if creditor is None:
            return None
        return Transfer(from_id=member_id, to_id=creditor.member_id, amount=-balance)

    debtor = next((b for b in balances if b.balance < ZERO), None)
    if debtor is None:
        return None
    return Transfer(from_id=debtor.member_id, to_id=member_id, amount=balance)
