"""Payment allocator: validates who paid for an expense and how much."""

import logging
from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from ..exceptions import InvalidAmountError, PayerMismatchError
from ..models import PayerContribution
from .money import ZERO, approx_equal, parse_amount

logger = logging.getLogger(__name__)


def single_payer(amount: Any, payer_id: str) -> list[PayerContribution]:
    """One member paid the whole amount."""
    total = parse_amount(amount)
    return [PayerContribution(member_id=payer_id, amount=total)]


def allocate_payers(
    amount: Any, contributions: Iterable[tuple[str, Any]]
) -> list[PayerContribution]:
    """
    Validate a multi-payer breakdown.

    Entries without a member id, or with a non-positive or unparsable amount,
    are discarded (an empty payer row in a form). The rest must add up to the
    expense amount within one cent.

    Args:
        amount: The expense total
        contributions: (member_id, raw amount) pairs

    Returns:
        The retained contributions

    Raises:
        PayerMismatchError: If the retained contributions don't sum to the amount
    """
    total = parse_amount(amount)

    payers: list[PayerContribution] = []
    for member_id, raw in contributions:
        if not member_id:
            continue
        try:
            paid = parse_amount(raw)
        except InvalidAmountError:
            logger.debug(f"Discarding payer entry {member_id}={raw!r}")
            continue
        payers.append(PayerContribution(member_id=member_id, amount=paid))

    paid_total = payer_total(payers)
    if not approx_equal(paid_total, total):
        raise PayerMismatchError(expected=total, actual=paid_total)

    return payers


def payer_total(payers: Iterable[PayerContribution]) -> Decimal:
    """Sum of all contributions."""
    return sum((payer.amount for payer in payers), ZERO)
