"""Tests for the split calculator."""

from decimal import Decimal

import pytest

from expensiver.exceptions import (
    AdjustmentMismatchError,
    InvalidAmountError,
    NoParticipantsError,
    PercentageMismatchError,
    SplitMismatchError,
)
from expensiver.ledger.money import to_cents
from expensiver.ledger.splits import absorb_residual, compute_splits
from expensiver.models import (
    AdjustedShare,
    EqualShare,
    ExactShare,
    PercentageShare,
    WeightedShare,
)


def amounts(splits) -> dict[str, Decimal]:
    return {split.member_id: split.amount for split in splits}


class TestEqualSplit:
    """Tests for equal and exclude splits."""

    def test_three_way_split(self):
        """$90 over three people is $30 each."""
        splits = compute_splits(Decimal("90"), ["A", "B", "C"], "equal")

        assert amounts(splits) == {"A": Decimal("30"), "B": Decimal("30"), "C": Decimal("30")}
        assert all(isinstance(split, EqualShare) for split in splits)

    def test_rounding_residual_lands_on_one_share(self):
        """$100 over three people still sums to exactly $100."""
        splits = compute_splits("100", ["A", "B", "C"], "equal")

        assert sum(s.amount for s in splits) == Decimal("100")
        assert sorted(s.amount for s in splits) == [
            Decimal("33.33"),
            Decimal("33.33"),
            Decimal("33.34"),
        ]

    def test_exclude_is_equal_over_included_members(self):
        """Exclude behaves like equal over whoever is passed in."""
        equal = compute_splits("60", ["A", "B"], "equal")
        exclude = compute_splits("60", ["A", "B"], "exclude")

        assert amounts(equal) == amounts(exclude) == {"A": Decimal("30"), "B": Decimal("30")}

    def test_huge_amount_rejected(self):
        with pytest.raises(InvalidAmountError):
            compute_splits("1e28", ["A", "B", "C"], "equal")

    def test_duplicate_participants_are_collapsed(self):
        """A member listed twice only gets one share."""
        splits = compute_splits("40", ["A", "B", "A"], "equal")

        assert [s.member_id for s in splits] == ["A", "B"]
        assert amounts(splits) == {"A": Decimal("20"), "B": Decimal("20")}

    def test_no_participants(self):
        with pytest.raises(NoParticipantsError):
            compute_splits("10", [], "equal")

    @pytest.mark.parametrize("amount", ["0", "-5", "abc", "", None, "NaN"])
    def test_invalid_amount(self, amount):
        with pytest.raises(InvalidAmountError):
            compute_splits(amount, ["A"], "equal")

    def test_unknown_split_type(self):
        with pytest.raises(ValueError):
            compute_splits("10", ["A"], "bogus")  # type: ignore[arg-type]


class TestUnequalSplit:
    """Tests for exact-amount splits."""

    def test_exact_amounts_are_kept(self):
        splits = compute_splits("90", ["A", "B"], "unequal", {"A": "30", "B": "60"})

        assert amounts(splits) == {"A": Decimal("30"), "B": Decimal("60")}
        assert all(isinstance(split, ExactShare) for split in splits)

    def test_within_one_cent_is_accepted(self):
        splits = compute_splits("10", ["A", "B"], "unequal", {"A": "3.33", "B": "6.66"})

        assert amounts(splits) == {"A": Decimal("3.33"), "B": Decimal("6.66")}

    def test_mismatch(self):
        with pytest.raises(SplitMismatchError) as exc_info:
            compute_splits("90", ["A", "B"], "unequal", {"A": "30", "B": "50"})

        assert exc_info.value.actual == Decimal("80")

    def test_member_without_value_owes_nothing(self):
        splits = compute_splits("50", ["A", "B"], "unequal", {"A": "50"})

        assert amounts(splits) == {"A": Decimal("50")}

    def test_missing_values_fail_the_sum_check(self):
        with pytest.raises(SplitMismatchError):
            compute_splits("50", ["A", "B"], "unequal", {})

    def test_negative_amount_rejected(self):
        with pytest.raises(InvalidAmountError):
            compute_splits("50", ["A", "B"], "unequal", {"A": "60", "B": "-10"})


class TestPercentageSplit:
    """Tests for percentage splits."""

    def test_percentages_applied(self):
        splits = compute_splits("200", ["A", "B"], "percentage", {"A": "60", "B": "40"})

        assert amounts(splits) == {"A": Decimal("120"), "B": Decimal("80")}
        assert [s.percentage for s in splits] == [Decimal("60"), Decimal("40")]
        assert all(isinstance(split, PercentageShare) for split in splits)

    def test_percentages_must_sum_to_100(self):
        with pytest.raises(PercentageMismatchError) as exc_info:
            compute_splits("100", ["A", "B"], "percentage", {"A": "60", "B": "30"})

        assert exc_info.value.total == Decimal("90")

    def test_thirds_sum_to_amount(self):
        splits = compute_splits(
            "10", ["A", "B", "C"], "percentage", {"A": "33.33", "B": "33.33", "C": "33.34"}
        )

        assert sum(s.amount for s in splits) == Decimal("10")


class TestSharesSplit:
    """Tests for weighted share splits."""

    def test_one_to_three(self):
        """$100 with weights 1:3 is $25 and $75."""
        splits = compute_splits("100", ["A", "B"], "shares", {"A": 1, "B": 3})

        assert amounts(splits) == {"A": Decimal("25"), "B": Decimal("75")}
        assert [s.shares for s in splits] == [1, 3]
        assert all(isinstance(split, WeightedShare) for split in splits)

    def test_invalid_weights_default_to_one(self):
        splits = compute_splits(
            "100", ["A", "B", "C", "D"], "shares", {"A": "abc", "B": "0", "C": "-2"}
        )

        assert [s.shares for s in splits] == [1, 1, 1, 1]
        assert amounts(splits) == {m: Decimal("25") for m in "ABCD"}

    def test_fractional_weight_is_truncated(self):
        splits = compute_splits("90", ["A", "B"], "shares", {"A": "2.7", "B": "1"})

        assert [s.shares for s in splits] == [2, 1]
        assert amounts(splits) == {"A": Decimal("60"), "B": Decimal("30")}


class TestAdjustmentSplit:
    """Tests for equal-plus-adjustment splits."""

    def test_adjustments_applied_to_base(self):
        """$90 over three with +10/-10/0 is 40/20/30."""
        splits = compute_splits(
            "90", ["A", "B", "C"], "adjustment", {"A": "10", "B": "-10", "C": "0"}
        )

        assert amounts(splits) == {"A": Decimal("40"), "B": Decimal("20"), "C": Decimal("30")}
        assert [s.adjustment for s in splits] == [Decimal("10"), Decimal("-10"), Decimal("0")]
        assert all(isinstance(split, AdjustedShare) for split in splits)

    def test_adjustments_must_net_to_zero(self):
        with pytest.raises(AdjustmentMismatchError):
            compute_splits("90", ["A", "B", "C"], "adjustment", {"A": "5"})

    def test_missing_adjustments_are_zero(self):
        splits = compute_splits("90", ["A", "B", "C"], "adjustment", {})

        assert amounts(splits) == {m: Decimal("30") for m in "ABC"}

    def test_unparsable_adjustment_rejected(self):
        with pytest.raises(InvalidAmountError):
            compute_splits("90", ["A", "B"], "adjustment", {"A": "lots"})

    def test_huge_balanced_adjustments_rejected(self):
        """Adjustments that net to zero still have to be sane amounts."""
        with pytest.raises(InvalidAmountError):
            compute_splits("90", ["A", "B"], "adjustment", {"A": "1e30", "B": "-1e30"})


class TestAbsorbResidual:
    """Tests for the rounding residual helper."""

    def test_no_residual_leaves_shares_alone(self):
        shares = [Decimal("10"), Decimal("20")]

        assert absorb_residual(shares, Decimal("30")) == shares

    def test_residual_goes_to_largest_share(self):
        adjusted = absorb_residual([Decimal("10.00"), Decimal("20.00")], Decimal("30.01"))

        assert adjusted == [Decimal("10.00"), Decimal("20.01")]

    def test_input_is_not_mutated(self):
        shares = [Decimal("1.00")]
        absorb_residual(shares, Decimal("1.01"))

        assert shares == [Decimal("1.00")]


class TestCentRounding:
    def test_rounds_half_up(self):
        assert to_cents(Decimal("0.125")) == Decimal("0.13")

    def test_out_of_range_is_a_typed_error(self):
        with pytest.raises(InvalidAmountError):
            to_cents(Decimal("1e40"))
