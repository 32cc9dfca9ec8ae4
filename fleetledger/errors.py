"""Errors raised by the loan and projection engine.

All subclass ValueError so callers that already treat bad input as a
ValueError keep working; routes map them to HTTP status codes.
"""


class LoanEngineError(ValueError):
    pass


class InvalidLoanInputError(LoanEngineError):
    """Non-positive principal/EMI/tenure, negative rate, bad prepayment amount."""


class PrepaymentExceedsOutstandingError(InvalidLoanInputError):
    def __init__(self, amount, outstanding):
        self.amount = amount
        self.outstanding = outstanding
        super().__init__(
            f"Prepayment {amount} exceeds outstanding loan {outstanding}; "
            "a full payoff must be recorded explicitly"
        )


class NonConvergentLoanError(LoanEngineError):
    """EMI never brings the balance to zero within the allowed number of months."""

    def __init__(self, message: str, months: int = 0, remaining_balance=None):
        self.months = months
        self.remaining_balance = remaining_balance
        super().__init__(message)


class InstallmentNotFoundError(LoanEngineError):
    pass


class InstallmentAlreadyPaidError(LoanEngineError):
    pass


class PaymentTooEarlyError(LoanEngineError):
    def __init__(self, month: int, earliest):
        self.month = month
        self.earliest = earliest
        super().__init__(
            f"EMI for month {month} can only be marked paid from {earliest.isoformat()}"
        )


class ScheduleConflictError(LoanEngineError):
    """The stored schedule changed between load and commit."""
