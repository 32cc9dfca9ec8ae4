"""Stateless loan calculations: schedules and prepayment previews."""

from datetime import date

from fastapi import APIRouter, Depends

from fleetledger.api.deps import get_today
from fleetledger.api.errors import to_http_error
from fleetledger.api.schemas import (
    AmortizationEntryResponse,
    PrepaymentPreviewRequest,
    PrepaymentResponse,
    ScheduleRequest,
    ScheduleResponse,
    YearlyLoanSummaryResponse,
)
from fleetledger.engine.amortization import (
    generate_schedule,
    installment_status,
    outstanding_balance,
    paid_installments_between,
    yearly_loan_summary,
)
from fleetledger.engine.prepayment import apply_prepayment
from fleetledger.errors import LoanEngineError
from fleetledger.models.loan import AmortizationSchedule, PrepaymentResult

router = APIRouter(prefix="/api/v1/loans", tags=["loans"])


def paid_count(req: ScheduleRequest) -> int:
    """Installments to seed as paid, from an explicit count or the last paid date."""
    if req.last_paid_installment_date is not None:
        return paid_installments_between(req.first_installment_date, req.last_paid_installment_date)
    return req.already_paid_count


def schedule_response(schedule: AmortizationSchedule, today: date) -> ScheduleResponse:
    return ScheduleResponse(
        installments=len(schedule),
        paid_count=schedule.paid_count,
        total_interest=schedule.total_interest,
        total_principal=schedule.total_principal,
        total_payments=schedule.total_payments,
        outstanding=outstanding_balance(schedule),
        entries=[
            AmortizationEntryResponse(
                month=e.month,
                interest=e.interest,
                principal=e.principal,
                payment=e.payment,
                outstanding=e.outstanding,
                due_date=e.due_date,
                is_paid=e.is_paid,
                paid_at=e.paid_at,
                penalty=e.penalty,
                status=installment_status(e, today).value,
            )
            for e in schedule
        ],
        yearly=[YearlyLoanSummaryResponse(**y) for y in yearly_loan_summary(schedule)],
    )


def prepayment_response(result: PrepaymentResult) -> PrepaymentResponse:
    return PrepaymentResponse(
        amount=result.amount,
        current_outstanding=result.current_outstanding,
        new_outstanding=result.new_outstanding,
        current_tenure_months=result.current_tenure_months,
        new_tenure_months=result.new_tenure_months,
        tenure_reduction_months=result.tenure_reduction_months,
        interest_savings=result.interest_savings,
    )


@router.post("/schedule", response_model=ScheduleResponse)
async def create_schedule(req: ScheduleRequest, today: date = Depends(get_today)):
    """Generate an EMI schedule from loan terms without storing it."""
    try:
        schedule = generate_schedule(
            principal=req.principal,
            emi_per_month=req.emi_per_month,
            tenure_months=req.tenure_months,
            annual_rate_percent=req.annual_interest_rate,
            first_installment_date=req.first_installment_date,
            already_paid_count=paid_count(req),
            emi_due_day=req.emi_due_day,
        )
    except LoanEngineError as e:
        raise to_http_error(e) from e
    return schedule_response(schedule, today)


@router.post("/prepayment/preview", response_model=PrepaymentResponse)
async def preview_prepayment(req: PrepaymentPreviewRequest):
    try:
        result = apply_prepayment(
            current_outstanding=req.current_outstanding,
            prepayment_amount=req.prepayment_amount,
            emi_per_month=req.emi_per_month,
            annual_rate_percent=req.annual_interest_rate,
        )
    except LoanEngineError as e:
        raise to_http_error(e) from e
    return prepayment_response(result)
