"""Decimal helpers for currency amounts.

Amounts are kept as ``Decimal`` throughout the ledger. Equality checks use a
fixed one-cent tolerance, which is the precision users enter amounts with.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from ..exceptions import InvalidAmountError

EPSILON = Decimal("0.01")
CENT = Decimal("0.01")
ZERO = Decimal("0")
# Cent rounding stays exact in the default 28-digit context below this
MAX_AMOUNT = Decimal("1e15")


def to_decimal(value) -> Decimal:
    """
    Convert a raw value (str, int, float or Decimal) to a finite Decimal.

    Floats go through ``str`` so 0.1 becomes Decimal("0.1") rather than its
    binary expansion.

    Raises:
        InvalidAmountError: If the value can't be parsed or isn't finite, or is
            out of range
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise InvalidAmountError(value)
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as e:
            raise InvalidAmountError(value) from e

    if not result.is_finite():
        raise InvalidAmountError(value)
    if abs(result) >= MAX_AMOUNT:
        raise InvalidAmountError(value, f"Amount is too large: {value!r}")
    return result


def parse_amount(value) -> Decimal:
    """
    Parse a monetary amount that must be strictly positive.

    Raises:
        InvalidAmountError: If the value is unparsable, zero or negative
    """
    amount = to_decimal(value)
    if amount <= ZERO:
        raise InvalidAmountError(value, f"Amount must be greater than zero: {value!r}")
    return amount


def approx_equal(a: Decimal, b: Decimal) -> bool:
    """Whether two amounts are equal within one cent."""
    return abs(a - b) <= EPSILON


def is_settled(balance: Decimal) -> bool:
    """Whether a balance is close enough to zero to count as settled."""
    return abs(balance) <= EPSILON


def to_cents(amount: Decimal) -> Decimal:
    """Round an amount to whole cents using ROUND_HALF_UP."""
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise InvalidAmountError(amount, f"Amount is too large: {amount}") from e


def format_money(amount: Decimal, currency: str = "") -> str:
    """Format an amount with its currency symbol, e.g. ``₹30.00``."""
    sign = "-" if amount < 0 else ""
    return f"{sign}{currency}{abs(to_cents(amount)):,.2f}"
