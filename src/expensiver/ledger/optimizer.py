"""Settlement optimizer: turns member balances into a settle-up plan.

The plan is greedy: the biggest debtor pays the biggest creditors first. It
always zeroes every balance, but it is not guaranteed to use the fewest
possible transfers.
"""

import logging
from collections.abc import Iterable

from ..models import MemberBalance, Transfer
from .money import EPSILON, ZERO, is_settled

logger = logging.getLogger(__name__)


def settlement_plan(balances: Iterable[MemberBalance]) -> list[Transfer]:
    """
    Compute a list of transfers that brings every balance to zero.

    Steps:
    1. Drop settled members (|balance| <= 0.01)
    2. Sort debtors most negative first, creditors most positive first
    3. Each debtor pays creditors in order, ``min(debt, credit)`` at a time,
       skipping amounts of a cent or less

    Args:
        balances: Current member balances (these are not modified)

    Returns:
        Ordered transfers, each for more than one cent
    """
    open_balances = [b for b in balances if not is_settled(b.balance)]

    debtors = sorted(
        (b for b in open_balances if b.balance < ZERO), key=lambda b: b.balance
    )
    creditors = sorted(
        (b for b in open_balances if b.balance > ZERO),
        key=lambda b: b.balance,
        reverse=True,
    )
    remaining_credit = [creditor.balance for creditor in creditors]

    transfers: list[Transfer] = []
    for debtor in debtors:
        remaining_debt = -debtor.balance

        for index, creditor in enumerate(creditors):
            if remaining_credit[index] <= ZERO:
                continue

            amount = min(remaining_debt, remaining_credit[index])
            if amount > EPSILON:
                transfers.append(
                    Transfer(
                        from_id=debtor.member_id,
                        to_id=creditor.member_id,
                        amount=amount,
                    )
                )
                remaining_debt -= amount
                remaining_credit[index] -= amount

            if remaining_debt < EPSILON:
                break

    logger.debug(
        f"Planned {len(transfers)} transfers for "
        f"{len(debtors)} debtors and {len(creditors)} creditors"
    )
    return transfers
