"""EMI amortization schedule computation and installment bookkeeping.

Pure functions: Decimal in, dataclass out. No I/O. Callers pass the current
date explicitly.
"""

from dataclasses import dataclass, replace
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP

from fleetledger.config import settings
from fleetledger.engine.dates import add_months, months_between
from fleetledger.errors import (
    InstallmentAlreadyPaidError,
    InstallmentNotFoundError,
    InvalidLoanInputError,
    NonConvergentLoanError,
    PaymentTooEarlyError,
)
from fleetledger.models.loan import (
    AmortizationEntry,
    AmortizationSchedule,
    InstallmentStatus,
    LoanTerms,
)

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")


@dataclass(frozen=True)
class LoanMonth:
    """One month of loan servicing."""
    interest: Decimal
    principal: Decimal
    payment: Decimal
    balance: Decimal  # After the payment


def monthly_rate(annual_rate_percent: Decimal) -> Decimal:
    return Decimal(annual_rate_percent) / 12 / 100


def amortize_month(balance: Decimal, payment: Decimal, rate: Decimal) -> LoanMonth:
    """Apply one installment to an outstanding balance.

    Interest accrues on the opening balance and is rounded to cents. The
    principal part is capped at the balance, so the last installment may be
    smaller than the regular EMI and the balance never goes negative.

    Raises NonConvergentLoanError when the payment does not exceed the interest.
    """
    if balance <= 0:
        return LoanMonth(interest=ZERO, principal=ZERO, payment=ZERO, balance=ZERO)

    interest = (balance * rate).quantize(TWO_PLACES, ROUND_HALF_UP)
    principal = payment - interest
    if principal <= 0:
        raise NonConvergentLoanError(
            f"Payment {payment} does not cover interest {interest} on balance {balance}",
            remaining_balance=balance,
        )
    if principal > balance:
        principal = balance

    return LoanMonth(
        interest=interest,
        principal=principal,
        payment=interest + principal,
        balance=balance - principal,
    )


def validate_loan(
    principal: Decimal,
    emi_per_month: Decimal,
    tenure_months: int,
    annual_rate_percent: Decimal,
    emi_due_day: int | None = None,
) -> None:
    if principal <= 0:
        raise InvalidLoanInputError(f"Loan principal must be positive, got {principal}")
    if emi_per_month <= 0:
        raise InvalidLoanInputError(f"EMI must be positive, got {emi_per_month}")
    if annual_rate_percent < 0:
        raise InvalidLoanInputError(f"Interest rate cannot be negative, got {annual_rate_percent}")
    if tenure_months <= 0 or tenure_months > settings.max_tenure_months:
        raise InvalidLoanInputError(
            f"Tenure must be between 1 and {settings.max_tenure_months} months, got {tenure_months}"
        )
    if emi_due_day is not None and not 1 <= emi_due_day <= 31:
        raise InvalidLoanInputError(f"EMI due day must be between 1 and 31, got {emi_due_day}")


def generate_schedule(
    principal: Decimal,
    emi_per_month: Decimal,
    tenure_months: int,
    annual_rate_percent: Decimal,
    first_installment_date: date,
    already_paid_count: int = 0,
    emi_due_day: int | None = None,
) -> AmortizationSchedule:
    """Generate the month-by-month EMI schedule for a loan.

    Args:
        principal: Loan amount
        emi_per_month: Fixed installment
        tenure_months: Maximum number of installments
        annual_rate_percent: Annual interest rate in percent (8.5 for 8.5%)
        first_installment_date: Due date of installment 1
        already_paid_count: Installments to seed as paid, for vehicles that
            were already in operation when onboarded
        emi_due_day: Day of month the lender fixes for EMIs (1-31), if any

    The schedule stops as soon as the balance reaches zero. A loan that
    would still carry a balance after tenure_months raises
    NonConvergentLoanError instead of returning a truncated schedule.
    """
    validate_loan(principal, emi_per_month, tenure_months, annual_rate_percent, emi_due_day)
    if already_paid_count < 0:
        raise InvalidLoanInputError(
            f"Already paid installments cannot be negative, got {already_paid_count}"
        )

    rate = monthly_rate(annual_rate_percent)
    paid_offset = timedelta(days=settings.seeded_paid_offset_days)

    entries: list[AmortizationEntry] = []
    balance = principal

    for month in range(1, tenure_months + 1):
        step = amortize_month(balance, emi_per_month, rate)
        balance = step.balance

        due_date = add_months(first_installment_date, month - 1)
        is_paid = month <= already_paid_count

        entries.append(AmortizationEntry(
            month=month,
            interest=step.interest,
            principal=step.principal,
            outstanding=balance,
            due_date=due_date,
            is_paid=is_paid,
            paid_at=due_date - paid_offset if is_paid else None,
        ))

        if balance <= 0:
            break

    if balance > 0:
        raise NonConvergentLoanError(
            f"EMI {emi_per_month} leaves {balance} outstanding after {tenure_months} months",
            months=tenure_months,
            remaining_balance=balance,
        )

    return AmortizationSchedule(entries=tuple(entries))


def schedule_for_terms(terms: LoanTerms, already_paid_count: int = 0) -> AmortizationSchedule:
    return generate_schedule(
        principal=terms.principal,
        emi_per_month=terms.emi_per_month,
        tenure_months=terms.tenure_months,
        annual_rate_percent=terms.annual_interest_rate,
        first_installment_date=terms.first_installment_date,
        already_paid_count=already_paid_count,
        emi_due_day=terms.emi_due_day,
    )


def paid_installments_between(first_installment_date: date, last_paid_date: date) -> int:
    """Installments already paid, inclusive of both months."""
    if last_paid_date < first_installment_date:
        return 0
    return months_between(first_installment_date, last_paid_date) + 1


# ---- Installment bookkeeping ----

def days_past_due(entry: AmortizationEntry, today: date) -> int:
    """Positive when overdue, negative when the due date is still ahead."""
    return (today - entry.due_date).days


def installment_status(entry: AmortizationEntry, today: date) -> InstallmentStatus:
    if entry.is_paid:
        return InstallmentStatus.PAID
    overdue_by = days_past_due(entry, today)
    if overdue_by > 0:
        return InstallmentStatus.OVERDUE
    if -overdue_by <= settings.early_payment_window_days:
        return InstallmentStatus.DUE_SOON
    return InstallmentStatus.UPCOMING


def mark_installment_paid(
    schedule: AmortizationSchedule,
    month: int,
    today: date,
    penalty: Decimal = ZERO,
) -> AmortizationSchedule:
    """Return a new schedule with one installment marked paid on `today`.

    Payment opens a few days before the due date. A late penalty is only
    accepted for overdue installments.
    """
    entry = schedule.entry(month)
    if entry is None:
        raise InstallmentNotFoundError(f"Schedule has no installment for month {month}")
    if entry.is_paid:
        raise InstallmentAlreadyPaidError(f"EMI for month {month} has already been marked as paid")

    earliest = entry.due_date - timedelta(days=settings.early_payment_window_days)
    if today < earliest:
        raise PaymentTooEarlyError(month, earliest)

    if penalty < 0:
        raise InvalidLoanInputError(f"Penalty cannot be negative, got {penalty}")
    if penalty > 0 and days_past_due(entry, today) <= 0:
        raise InvalidLoanInputError(f"EMI for month {month} is not overdue; no penalty applies")

    return schedule.with_entry(replace(
        entry,
        is_paid=True,
        paid_at=today,
        penalty=penalty.quantize(TWO_PLACES, ROUND_HALF_UP),
    ))


def next_unpaid_installment(schedule: AmortizationSchedule) -> AmortizationEntry | None:
    for entry in schedule:
        if not entry.is_paid:
            return entry
    return None


def outstanding_balance(schedule: AmortizationSchedule) -> Decimal:
    """Balance still owed: the opening balance of the first unpaid installment."""
    entry = next_unpaid_installment(schedule)
    if entry is None:
        return ZERO
    return entry.opening_balance


def days_until_next_emi(schedule: AmortizationSchedule, today: date) -> int | None:
    entry = next_unpaid_installment(schedule)
    if entry is None:
        return None
    return (entry.due_date - today).days


def yearly_loan_summary(schedule: AmortizationSchedule) -> list[dict]:
    """Aggregate the schedule by loan year (installments 1-12, 13-24, ...).

    Returns list of dicts with keys: year, principal, interest, payments, ending_balance
    """
    yearly: list[dict] = []
    year_principal = ZERO
    year_interest = ZERO

    for e in schedule:
        year_principal += e.principal
        year_interest += e.interest

        if e.month % 12 == 0 or e.month == len(schedule):
            yearly.append({
                "year": (e.month - 1) // 12 + 1,
                "principal": year_principal,
                "interest": year_interest,
                "payments": year_principal + year_interest,
                "ending_balance": e.outstanding,
            })
            year_principal = ZERO
            year_interest = ZERO

    return yearly
