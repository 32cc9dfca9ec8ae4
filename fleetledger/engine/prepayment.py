"""Lump-sum prepayment: preview the effect, then rebuild the schedule.

Pure functions. No I/O.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from fleetledger.config import settings
from fleetledger.engine.amortization import (
    amortize_month,
    generate_schedule,
    monthly_rate,
    outstanding_balance,
)
from fleetledger.engine.dates import next_anchor_date
from fleetledger.errors import (
    InvalidLoanInputError,
    NonConvergentLoanError,
    PrepaymentExceedsOutstandingError,
)
from fleetledger.models.loan import AmortizationSchedule, LoanTerms, PrepaymentResult

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")


@dataclass(frozen=True)
class RemainingTerm:
    months: int
    total_interest: Decimal


@dataclass(frozen=True)
class ConfirmedPrepayment:
    result: PrepaymentResult
    terms: LoanTerms  # Terms of the rebuilt loan: new balance, same EMI and rate
    schedule: AmortizationSchedule


def remaining_term(balance: Decimal, emi_per_month: Decimal, annual_rate_percent: Decimal) -> RemainingTerm:
    """Installments needed to clear `balance` at a fixed EMI.

    Bounded by the maximum tenure; running into the bound is an error.
    """
    rate = monthly_rate(annual_rate_percent)
    months = 0
    total_interest = ZERO

    while balance > 0:
        if months >= settings.max_tenure_months:
            raise NonConvergentLoanError(
                f"EMI {emi_per_month} does not clear the loan within "
                f"{settings.max_tenure_months} installments",
                months=months,
                remaining_balance=balance,
            )
        step = amortize_month(balance, emi_per_month, rate)
        balance = step.balance
        total_interest += step.interest
        months += 1

    return RemainingTerm(months=months, total_interest=total_interest)


def _validate_prepayment(
    current_outstanding: Decimal,
    prepayment_amount: Decimal,
    emi_per_month: Decimal,
    annual_rate_percent: Decimal,
) -> None:
    if prepayment_amount <= 0:
        raise InvalidLoanInputError(
            f"Prepayment amount must be greater than 0, got {prepayment_amount}"
        )
    if prepayment_amount > current_outstanding:
        raise PrepaymentExceedsOutstandingError(prepayment_amount, current_outstanding)
    if emi_per_month <= 0:
        raise InvalidLoanInputError(f"EMI must be positive, got {emi_per_month}")
    if annual_rate_percent < 0:
        raise InvalidLoanInputError(f"Interest rate cannot be negative, got {annual_rate_percent}")


def apply_prepayment(
    current_outstanding: Decimal,
    prepayment_amount: Decimal,
    emi_per_month: Decimal,
    annual_rate_percent: Decimal,
) -> PrepaymentResult:
    """Preview a prepayment at an unchanged EMI.

    Interest savings use the payments-minus-principal identity:
    (tenure x EMI - balance) before, minus the same after. It counts every
    installment as a full EMI, including a partial final one.
    """
    _validate_prepayment(current_outstanding, prepayment_amount, emi_per_month, annual_rate_percent)

    new_outstanding = current_outstanding - prepayment_amount
    current_tenure = remaining_term(current_outstanding, emi_per_month, annual_rate_percent).months
    new_tenure = remaining_term(new_outstanding, emi_per_month, annual_rate_percent).months

    interest_before = current_tenure * emi_per_month - current_outstanding
    interest_after = new_tenure * emi_per_month - new_outstanding
    savings = max(ZERO, interest_before - interest_after)

    return PrepaymentResult(
        amount=prepayment_amount,
        current_outstanding=current_outstanding,
        new_outstanding=new_outstanding,
        current_tenure_months=current_tenure,
        new_tenure_months=new_tenure,
        tenure_reduction_months=max(0, current_tenure - new_tenure),
        interest_savings=savings.quantize(TWO_PLACES, ROUND_HALF_UP),
    )


def exact_interest_savings(
    current_outstanding: Decimal,
    prepayment_amount: Decimal,
    emi_per_month: Decimal,
    annual_rate_percent: Decimal,
) -> Decimal:
    """Interest saved, summed from the two simulated repayment streams.

    Differs from PrepaymentResult.interest_savings by the shortfall of each
    stream's final partial installment.
    """
    _validate_prepayment(current_outstanding, prepayment_amount, emi_per_month, annual_rate_percent)

    before = remaining_term(current_outstanding, emi_per_month, annual_rate_percent)
    after = remaining_term(current_outstanding - prepayment_amount, emi_per_month, annual_rate_percent)
    return max(ZERO, before.total_interest - after.total_interest)


def rebuild_schedule(
    new_outstanding: Decimal,
    emi_per_month: Decimal,
    annual_rate_percent: Decimal,
    anchor_date: date,
) -> AmortizationSchedule:
    """Fresh schedule for the reduced balance, numbered from month 1 at anchor_date."""
    if new_outstanding < 0:
        raise InvalidLoanInputError(f"Outstanding balance cannot be negative, got {new_outstanding}")
    if new_outstanding == 0:
        return AmortizationSchedule()

    return generate_schedule(
        principal=new_outstanding,
        emi_per_month=emi_per_month,
        tenure_months=settings.max_tenure_months,
        annual_rate_percent=annual_rate_percent,
        first_installment_date=anchor_date,
    )


def confirm_prepayment(
    schedule: AmortizationSchedule,
    terms: LoanTerms,
    prepayment_amount: Decimal,
    today: date,
) -> ConfirmedPrepayment:
    """Commit a prepayment against a stored schedule.

    The balance comes from the schedule itself so preview and commit agree.
    The caller must swap the returned schedule in atomically.
    """
    current = outstanding_balance(schedule)
    result = apply_prepayment(
        current, prepayment_amount, terms.emi_per_month, terms.annual_interest_rate
    )

    anchor = next_anchor_date(today, terms.emi_due_day)
    new_schedule = rebuild_schedule(
        result.new_outstanding, terms.emi_per_month, terms.annual_interest_rate, anchor
    )
    new_terms = LoanTerms(
        principal=result.new_outstanding,
        annual_interest_rate=terms.annual_interest_rate,
        emi_per_month=terms.emi_per_month,
        tenure_months=len(new_schedule),
        first_installment_date=anchor,
        emi_due_day=terms.emi_due_day,
    )
    return ConfirmedPrepayment(result=result, terms=new_terms, schedule=new_schedule)
