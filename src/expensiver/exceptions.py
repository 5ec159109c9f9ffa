"""Custom exceptions for Expensiver."""


class ExpensiverError(Exception):
    """Base exception for all Expensiver errors."""

    pass


class ConfigurationError(ExpensiverError):
    """Raised when configuration is invalid or missing."""

    pass


class StorageError(ExpensiverError):
    """Raised when a group or user record cannot be read from or written to the store."""

    pass


class LedgerValidationError(ExpensiverError):
    """Base class for recoverable validation failures raised by the ledger engine."""

    pass


class NoParticipantsError(LedgerValidationError):
    """Raised when a split is requested over an empty participant set."""

    def __init__(self, message: str | None = None):
        super().__init__(
            message or "Select at least one member to split the expense with"
        )


class SplitMismatchError(LedgerValidationError):
    """Raised when exact split amounts don't add up to the expense amount."""

    def __init__(self, expected, actual, message: str | None = None):
        self.expected = expected
        self.actual = actual
        super().__init__(
            message
            or f"Split amounts sum to {actual} but the expense amount is {expected}"
        )


class PercentageMismatchError(LedgerValidationError):
    """Raised when split percentages don't add up to 100."""

    def __init__(self, total, message: str | None = None):
        self.total = total
        super().__init__(
            message or f"Percentages must add up to 100% (got {total}%)"
        )


class AdjustmentMismatchError(LedgerValidationError):
    """Raised when split adjustments don't net out to zero."""

    def __init__(self, total, message: str | None = None):
        self.total = total
        super().__init__(
            message or f"The sum of all adjustments must equal zero (got {total})"
        )


class PayerMismatchError(LedgerValidationError):
    """Raised when payer contributions don't add up to the expense amount."""

    def __init__(self, expected, actual, message: str | None = None):
        self.expected = expected
        self.actual = actual
        super().__init__(
            message
            or f"Payer amounts sum to {actual} but the expense amount is {expected}"
        )


class SelfSettlementError(LedgerValidationError):
    """Raised when a settlement names the same member on both sides."""

    def __init__(self, member_id: str, message: str | None = None):
        self.member_id = member_id
        super().__init__(message or "Cannot settle up with yourself")


class InvalidAmountError(LedgerValidationError):
    """Raised when a monetary value is missing, unparsable or not positive."""

    def __init__(self, value, message: str | None = None):
        self.value = value
        super().__init__(message or f"Invalid amount: {value!r}")


class NotFoundError(LedgerValidationError):
    """Raised when a referenced group, expense, settlement or member doesn't exist."""

    def __init__(self, kind: str, identifier: str, message: str | None = None):
        self.kind = kind
        self.identifier = identifier
        super().__init__(message or f"{kind.capitalize()} not found: {identifier}")


class InvalidMemberError(LedgerValidationError):
    """Raised when a member record is missing required fields."""

    pass


class DuplicateMemberError(LedgerValidationError):
    """Raised when a member name is already taken within a group."""

    def __init__(self, name: str, message: str | None = None):
        self.name = name
        super().__init__(message or f"A member named '{name}' already exists")


class InvalidBudgetError(LedgerValidationError):
    """Raised when a budget's period or dates are inconsistent."""

    pass
