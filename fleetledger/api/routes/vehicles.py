"""Stored vehicle loans: onboarding, EMI payments and prepayments."""

import logging
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from fleetledger.api.deps import get_loan_store, get_today
from fleetledger.api.errors import to_http_error
from fleetledger.api.routes.loans import paid_count, prepayment_response, schedule_response
from fleetledger.api.schemas import (
    MarkPaidRequest,
    PrepaymentAmountRequest,
    PrepaymentConfirmResponse,
    PrepaymentResponse,
    VehicleLoanRequest,
    VehicleLoanResponse,
)
from fleetledger.data.loan_store import LoanStore, schedule_from_json, terms_from_record
from fleetledger.engine.amortization import (
    days_until_next_emi,
    mark_installment_paid,
    next_unpaid_installment,
    outstanding_balance,
    schedule_for_terms,
)
from fleetledger.engine.prepayment import apply_prepayment, confirm_prepayment
from fleetledger.errors import LoanEngineError
from fleetledger.models.db import LoanRecord
from fleetledger.models.loan import AmortizationSchedule, LoanTerms

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/vehicles", tags=["vehicles"])


def _loan_response(
    vehicle_id: UUID, loan: LoanRecord, schedule: AmortizationSchedule, today: date
) -> VehicleLoanResponse:
    terms = terms_from_record(loan)
    upcoming = next_unpaid_installment(schedule)
    return VehicleLoanResponse(
        vehicle_id=vehicle_id,
        principal=terms.principal,
        annual_interest_rate=terms.annual_interest_rate,
        emi_per_month=terms.emi_per_month,
        tenure_months=terms.tenure_months,
        first_installment_date=terms.first_installment_date,
        emi_due_day=terms.emi_due_day,
        prepayments_total=loan.prepayments_total,
        schedule_version=loan.schedule_version,
        next_due_date=upcoming.due_date if upcoming else None,
        days_until_next_emi=days_until_next_emi(schedule, today),
        schedule=schedule_response(schedule, today),
    )


async def _require_loan(store: LoanStore, vehicle_id: UUID) -> LoanRecord:
    loan = await store.get_loan(vehicle_id)
    if loan is None:
        raise HTTPException(status_code=404, detail=f"No loan recorded for vehicle {vehicle_id}")
    return loan


@router.post("/{vehicle_id}/loan", response_model=VehicleLoanResponse)
async def save_vehicle_loan(
    vehicle_id: UUID,
    req: VehicleLoanRequest,
    store: LoanStore = Depends(get_loan_store),
    today: date = Depends(get_today),
):
    """Create or edit a vehicle's loan. The schedule is regenerated in full."""
    terms = LoanTerms(
        principal=req.principal,
        annual_interest_rate=req.annual_interest_rate,
        emi_per_month=req.emi_per_month,
        tenure_months=req.tenure_months,
        first_installment_date=req.first_installment_date,
        emi_due_day=req.emi_due_day,
    )
    try:
        schedule = schedule_for_terms(terms, already_paid_count=paid_count(req))
        loan = await store.save_loan(vehicle_id, terms, schedule, req.registration_number)
    except LoanEngineError as e:
        raise to_http_error(e) from e
    return _loan_response(vehicle_id, loan, schedule, today)


@router.get("/{vehicle_id}/loan", response_model=VehicleLoanResponse)
async def get_vehicle_loan(
    vehicle_id: UUID,
    store: LoanStore = Depends(get_loan_store),
    today: date = Depends(get_today),
):
    loan = await _require_loan(store, vehicle_id)
    return _loan_response(vehicle_id, loan, schedule_from_json(loan.schedule), today)


@router.post("/{vehicle_id}/loan/installments/{month}/pay", response_model=VehicleLoanResponse)
async def pay_installment(
    vehicle_id: UUID,
    month: int,
    req: MarkPaidRequest | None = None,
    store: LoanStore = Depends(get_loan_store),
    today: date = Depends(get_today),
):
    loan = await _require_loan(store, vehicle_id)
    penalty = req.penalty if req is not None else MarkPaidRequest().penalty
    try:
        schedule = mark_installment_paid(
            schedule_from_json(loan.schedule), month, today, penalty=penalty
        )
        loan = await store.replace_schedule(loan, schedule)
    except LoanEngineError as e:
        raise to_http_error(e) from e

    logger.info("EMI %d paid for vehicle %s (penalty %s)", month, vehicle_id, penalty)
    return _loan_response(vehicle_id, loan, schedule, today)


@router.post("/{vehicle_id}/loan/prepayment/preview", response_model=PrepaymentResponse)
async def preview_vehicle_prepayment(
    vehicle_id: UUID,
    req: PrepaymentAmountRequest,
    store: LoanStore = Depends(get_loan_store),
):
    """First phase: show the effect of a prepayment without committing it."""
    loan = await _require_loan(store, vehicle_id)
    terms = terms_from_record(loan)
    try:
        result = apply_prepayment(
            current_outstanding=outstanding_balance(schedule_from_json(loan.schedule)),
            prepayment_amount=req.amount,
            emi_per_month=terms.emi_per_month,
            annual_rate_percent=terms.annual_interest_rate,
        )
    except LoanEngineError as e:
        raise to_http_error(e) from e
    return prepayment_response(result)


@router.post("/{vehicle_id}/loan/prepayment/confirm", response_model=PrepaymentConfirmResponse)
async def confirm_vehicle_prepayment(
    vehicle_id: UUID,
    req: PrepaymentAmountRequest,
    store: LoanStore = Depends(get_loan_store),
    today: date = Depends(get_today),
):
    """Second phase: commit the prepayment and replace the schedule from month 1."""
    loan = await _require_loan(store, vehicle_id)
    try:
        confirmed = confirm_prepayment(
            schedule_from_json(loan.schedule), terms_from_record(loan), req.amount, today
        )
        loan = await store.commit_prepayment(loan, confirmed, paid_on=today)
    except LoanEngineError as e:
        raise to_http_error(e) from e

    return PrepaymentConfirmResponse(
        prepayment=prepayment_response(confirmed.result),
        loan=_loan_response(vehicle_id, loan, confirmed.schedule, today),
    )
