from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum


class InstallmentStatus(Enum):
    PAID = "paid"
    OVERDUE = "overdue"
    DUE_SOON = "due_soon"
    UPCOMING = "upcoming"


@dataclass(frozen=True)
class LoanTerms:
    principal: Decimal
    annual_interest_rate: Decimal  # Percent, e.g. 8.5
    emi_per_month: Decimal
    tenure_months: int
    first_installment_date: date
    emi_due_day: int | None = None  # Day of month EMIs fall due, if fixed by the lender

    @property
    def monthly_rate(self) -> Decimal:
        return self.annual_interest_rate / 12 / 100


@dataclass(frozen=True)
class AmortizationEntry:
    month: int
    interest: Decimal
    principal: Decimal
    outstanding: Decimal  # Balance after this installment
    due_date: date
    is_paid: bool = False
    paid_at: date | None = None
    penalty: Decimal = Decimal("0")  # Late fee charged when marked paid after due date

    @property
    def payment(self) -> Decimal:
        return self.interest + self.principal

    @property
    def opening_balance(self) -> Decimal:
        return self.outstanding + self.principal


@dataclass(frozen=True)
class AmortizationSchedule:
    """Ordered, immutable installment list. Updates return a new schedule."""

    entries: tuple[AmortizationEntry, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def __getitem__(self, index):
        return self.entries[index]

    @property
    def total_interest(self) -> Decimal:
        return sum((e.interest for e in self.entries), Decimal("0"))

    @property
    def total_principal(self) -> Decimal:
        return sum((e.principal for e in self.entries), Decimal("0"))

    @property
    def total_payments(self) -> Decimal:
        return self.total_interest + self.total_principal

    @property
    def paid_count(self) -> int:
        return sum(1 for e in self.entries if e.is_paid)

    @property
    def final_balance(self) -> Decimal:
        if not self.entries:
            return Decimal("0")
        return self.entries[-1].outstanding

    def entry(self, month: int) -> AmortizationEntry | None:
        for e in self.entries:
            if e.month == month:
                return e
        return None

    def with_entry(self, updated: AmortizationEntry) -> "AmortizationSchedule":
        return replace(
            self,
            entries=tuple(updated if e.month == updated.month else e for e in self.entries),
        )


@dataclass(frozen=True)
class PrepaymentResult:
    amount: Decimal
    current_outstanding: Decimal
    new_outstanding: Decimal
    current_tenure_months: int
    new_tenure_months: int
    tenure_reduction_months: int
    interest_savings: Decimal
