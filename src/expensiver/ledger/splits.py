"""Split calculator: turns an expense amount into per-member owed shares."""

import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from ..exceptions import (
    AdjustmentMismatchError,
    InvalidAmountError,
    NoParticipantsError,
    PercentageMismatchError,
    SplitMismatchError,
)
from ..models import (
    AdjustedShare,
    EqualShare,
    ExactShare,
    PercentageShare,
    SplitShare,
    SplitType,
    WeightedShare,
)
from .money import EPSILON, ZERO, approx_equal, parse_amount, to_cents, to_decimal

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def _unique(participant_ids: Iterable[str]) -> list[str]:
    """De-duplicate ids, keeping the order they were given in."""
    return list(dict.fromkeys(participant_ids))


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _non_negative(value: Any) -> Decimal:
    number = to_decimal(value)
    if number < ZERO:
        raise InvalidAmountError(value, f"Value must not be negative: {value!r}")
    return number


def _parse_weight(value: Any) -> int:
    """
    Parse a share weight. Anything that isn't a positive whole number
    counts as a single share.
    """
    if _is_blank(value) or isinstance(value, bool):
        return 1
    try:
        weight = int(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError, OverflowError):
        return 1
    return weight if weight > 0 else 1


def absorb_residual(amounts: list[Decimal], total: Decimal) -> list[Decimal]:
    """
    Fold the rounding residual into the largest share so the shares sum to
    ``total`` exactly.

    Args:
        amounts: Cent-rounded shares
        total: The amount the shares must add up to

    Returns:
        The adjusted shares (a new list)
    """
    adjusted = list(amounts)
    residual = total - sum(adjusted, ZERO)
    if residual != ZERO and adjusted:
        index = max(range(len(adjusted)), key=lambda i: abs(adjusted[i]))
        adjusted[index] += residual
        logger.debug(f"Applied rounding residual {residual} to share #{index}")
    return adjusted


def split_equal(amount: Decimal, participant_ids: list[str]) -> list[SplitShare]:
    """Everyone owes ``amount / n``."""
    base = to_cents(amount / len(participant_ids))
    amounts = absorb_residual([base] * len(participant_ids), amount)
    return [
        EqualShare(member_id=member_id, amount=share)
        for member_id, share in zip(participant_ids, amounts, strict=True)
    ]


def split_unequal(
    amount: Decimal, participant_ids: list[str], values: Mapping[str, Any]
) -> list[SplitShare]:
    """Exact amounts per member. Members without a value owe nothing."""
    splits: list[SplitShare] = []
    for member_id in participant_ids:
        raw = values.get(member_id)
        if _is_blank(raw):
            continue
        splits.append(ExactShare(member_id=member_id, amount=_non_negative(raw)))

    total = sum((split.amount for split in splits), ZERO)
    if not approx_equal(total, amount):
        raise SplitMismatchError(expected=amount, actual=total)
    return splits


def split_percentage(
    amount: Decimal, participant_ids: list[str], values: Mapping[str, Any]
) -> list[SplitShare]:
    """Each member owes ``percentage / 100 * amount``; percentages sum to 100."""
    percentages: dict[str, Decimal] = {}
    for member_id in participant_ids:
        raw = values.get(member_id)
        if _is_blank(raw):
            continue
        percentages[member_id] = _non_negative(raw)

    total = sum(percentages.values(), ZERO)
    if not approx_equal(total, HUNDRED):
        raise PercentageMismatchError(total=total)

    member_ids = list(percentages)
    amounts = absorb_residual(
        [to_cents(percentages[m] / HUNDRED * amount) for m in member_ids], amount
    )
    return [
        PercentageShare(member_id=m, amount=share, percentage=percentages[m])
        for m, share in zip(member_ids, amounts, strict=True)
    ]


def split_shares(
    amount: Decimal, participant_ids: list[str], values: Mapping[str, Any]
) -> list[SplitShare]:
    """Each member owes ``amount / total_weight * weight``."""
    weights = {m: _parse_weight(values.get(m)) for m in participant_ids}
    amount_per_share = amount / sum(weights.values())
    amounts = absorb_residual(
        [to_cents(amount_per_share * weights[m]) for m in participant_ids], amount
    )
    return [
        WeightedShare(member_id=m, amount=share, shares=weights[m])
        for m, share in zip(participant_ids, amounts, strict=True)
    ]


def split_adjustment(
    amount: Decimal, participant_ids: list[str], values: Mapping[str, Any]
) -> list[SplitShare]:
    """Equal base share plus a signed adjustment; adjustments net to zero."""
    adjustments = {
        m: ZERO if _is_blank(values.get(m)) else to_decimal(values.get(m))
        for m in participant_ids
    }

    total = sum(adjustments.values(), ZERO)
    if abs(total) > EPSILON:
        raise AdjustmentMismatchError(total=total)

    base = amount / len(participant_ids)
    amounts = absorb_residual(
        [to_cents(base + adjustments[m]) for m in participant_ids], amount
    )
    return [
        AdjustedShare(member_id=m, amount=share, adjustment=adjustments[m])
        for m, share in zip(participant_ids, amounts, strict=True)
    ]


def compute_splits(
    amount: Any,
    participant_ids: Iterable[str],
    split_type: SplitType = "equal",
    values: Mapping[str, Any] | None = None,
) -> list[SplitShare]:
    """
    Compute the per-member shares for one expense.

    This is a pure function: it validates the raw split values and returns
    one share per participant, or raises without side effects.

    Args:
        amount: The expense total (must be positive)
        participant_ids: Members splitting the expense
        split_type: One of equal, unequal, percentage, shares, adjustment, exclude
        values: Per-member raw values for the custom strategies (exact amount,
            percentage, share weight or signed adjustment), keyed by member id

    Returns:
        Ordered list of split shares

    Raises:
        NoParticipantsError: If no participants were given
        SplitMismatchError: If exact amounts don't sum to the total
        PercentageMismatchError: If percentages don't sum to 100
        AdjustmentMismatchError: If adjustments don't sum to zero
        InvalidAmountError: If the amount or a raw value can't be parsed
    """
    total = parse_amount(amount)
    members = _unique(participant_ids)
    if not members:
        raise NoParticipantsError()

    raw_values: Mapping[str, Any] = values or {}

    if split_type in ("equal", "exclude"):
        splits = split_equal(total, members)
    elif split_type == "unequal":
        splits = split_unequal(total, members, raw_values)
    elif split_type == "percentage":
        splits = split_percentage(total, members, raw_values)
    elif split_type == "shares":
        splits = split_shares(total, members, raw_values)
    elif split_type == "adjustment":
        splits = split_adjustment(total, members, raw_values)
    else:
        raise ValueError(f"Unknown split type: {split_type}")

    logger.debug(f"Computed {len(splits)} {split_type} splits for {total}")
    return splits
