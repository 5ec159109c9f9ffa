"""Pydantic domain models for Expensiver."""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, Field

SplitType = Literal["equal", "unequal", "percentage", "shares", "adjustment", "exclude"]
BudgetPeriod = Literal["weekly", "monthly", "quarterly", "yearly", "custom"]

# ============================================================================
# Members & Users
# ============================================================================


class Member(BaseModel):
    """A member of a group. Members are only ever added, never removed."""

    id: str
    name: str
    email: str | None = None


class User(BaseModel):
    """The local user operating the ledger."""

    id: str
    name: str
    email: str = ""
    currency: str = "₹"


# ============================================================================
# Expense Models
# ============================================================================


class PayerContribution(BaseModel):
    """How much one member paid towards an expense."""

    member_id: str
    amount: Decimal


class EqualShare(BaseModel):
    """Share from an equal (or exclude) split."""

    kind: Literal["equal"] = "equal"
    member_id: str
    amount: Decimal


class ExactShare(BaseModel):
    """Share entered as an exact amount."""

    kind: Literal["exact"] = "exact"
    member_id: str
    amount: Decimal


class PercentageShare(BaseModel):
    """Share derived from a percentage of the expense."""

    kind: Literal["percentage"] = "percentage"
    member_id: str
    amount: Decimal
    percentage: Decimal


class WeightedShare(BaseModel):
    """Share derived from an integer weight."""

    kind: Literal["shares"] = "shares"
    member_id: str
    amount: Decimal
    shares: int


class AdjustedShare(BaseModel):
    """Equal share plus a signed per-member adjustment."""

    kind: Literal["adjustment"] = "adjustment"
    member_id: str
    amount: Decimal
    adjustment: Decimal


SplitShare = Annotated[
    EqualShare | ExactShare | PercentageShare | WeightedShare | AdjustedShare,
    Field(discriminator="kind"),
]


class Expense(BaseModel):
    """A recorded group expense.

    ``payers`` say who actually paid and ``splits`` say who owes what. Both
    sum to ``amount`` (within a cent) once the split calculator and payment
    allocator have validated them.
    """

    id: str
    description: str
    amount: Decimal
    category: str = "other"
    date: date
    notes: str = ""
    payers: list[PayerContribution]
    splits: list[SplitShare]
    split_type: SplitType = "equal"
    created_at: datetime = Field(default_factory=datetime.now)
    created_by: str | None = None


class Settlement(BaseModel):
    """A payment from one member to another that reduces outstanding debt."""

    id: str
    from_id: str
    to_id: str
    amount: Decimal
    date: date
    notes: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    created_by: str | None = None


class Budget(BaseModel):
    """A spending goal for a group, over all expenses or a single category."""

    id: str
    name: str
    amount: Decimal
    category: str = "all"
    period: BudgetPeriod = "monthly"
    start_date: date | None = None
    end_date: date | None = None
    notes: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    created_by: str | None = None


class Group(BaseModel):
    """A set of members sharing expenses under one currency."""

    id: str
    invite_code: str
    name: str
    description: str = ""
    currency: str = "₹"
    category: str = "other"
    members: list[Member] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    settlements: list[Settlement] = Field(default_factory=list)
    budgets: list[Budget] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)
    last_activity: datetime = Field(default_factory=datetime.now)

    def find_member(self, member_id: str) -> Member | None:
        """Get a member by id, or None if the id isn't part of this group."""
        for member in self.members:
            if member.id == member_id:
                return member
        return None

    def member_name(self, member_id: str) -> str:
        """Resolve a member id to a display name."""
        member = self.find_member(member_id)
        return member.name if member else "Unknown"


# ============================================================================
# Derived Models
# ============================================================================


class MemberBalance(BaseModel):
    """A member's net position: positive is owed money, negative owes money."""

    member_id: str
    member_name: str
    balance: Decimal


class Transfer(BaseModel):
    """A suggested payment in a settlement plan."""

    from_id: str
    to_id: str
    amount: Decimal


class BudgetStatus(BaseModel):
    """Spending against a budget."""

    budget: Budget
    spent: Decimal
    remaining: Decimal
    percent_used: Decimal
    over_budget: bool


class GroupSummary(BaseModel):
    """Headline statistics for a group."""

    total_expenses: Decimal
    expense_count: int
    average_expense: Decimal
    member_count: int
    most_recent_expense_date: date | None = None
    category_totals: dict[str, Decimal] = Field(default_factory=dict)
    top_payer_id: str | None = None
    top_payer_amount: Decimal = Decimal("0")


class ActivityItem(BaseModel):
    """One entry of a group's combined expense/settlement timeline."""

    kind: Literal["expense", "settlement"]
    id: str
    date: date
    description: str
    amount: Decimal


# ============================================================================
# Export Models
# ============================================================================


class ExportedMember(BaseModel):
    """A member as it appears in an export."""

    name: str


class ExportedShare(BaseModel):
    """A name-resolved payer or split entry."""

    name: str
    amount: Decimal


class ExportedExpense(BaseModel):
    """A name-resolved expense without internal ids."""

    description: str
    amount: Decimal
    category: str
    date: date
    notes: str
    paid_by: list[ExportedShare]
    split_between: list[ExportedShare]
    split_type: SplitType


class GroupExport(BaseModel):
    """Read-only projection of a group for external consumption."""

    name: str
    description: str
    currency: str
    category: str
    members: list[ExportedMember]
    expenses: list[ExportedExpense]
