"""Projection routes: multi-year outlook and current investment summary."""

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends

from fleetledger.api.deps import get_today
from fleetledger.api.errors import to_http_error
from fleetledger.api.schemas import (
    InvestmentSummaryResponse,
    ProjectionRequest,
    ProjectionResponse,
    VehicleFinancialsRequest,
)
from fleetledger.engine.depreciation import current_vehicle_value
from fleetledger.engine.projection import project
from fleetledger.engine.returns import investment_summary
from fleetledger.errors import LoanEngineError
from fleetledger.models.financials import VehicleFinancials

router = APIRouter(prefix="/api/v1/projections", tags=["projections"])


def _build_financials(req: VehicleFinancialsRequest, today: date) -> VehicleFinancials:
    value = req.current_vehicle_value
    if value is None:
        if req.purchase_price is not None and req.purchase_year is not None:
            value = current_vehicle_value(
                req.purchase_price, req.depreciation_rate, req.purchase_year, today
            )
        else:
            value = Decimal("0")

    return VehicleFinancials(
        initial_investment=req.initial_investment,
        prepayments=req.prepayments,
        total_earnings=req.total_earnings,
        total_operating_expenses=req.total_operating_expenses,
        total_expenses=req.total_expenses,
        current_vehicle_value=value,
        depreciation_rate=req.depreciation_rate,
        outstanding_loan=req.outstanding_loan,
        emi_per_month=req.emi_per_month,
        annual_interest_rate=req.annual_interest_rate,
        monthly_earnings=req.monthly_earnings,
        monthly_expenses=req.monthly_expenses,
        months_in_operation=req.months_in_operation,
    )


@router.post("", response_model=ProjectionResponse)
async def run_projection(req: ProjectionRequest, today: date = Depends(get_today)):
    """Recomputed on every call; projections are never stored."""
    try:
        snapshot = project(
            _build_financials(req, today),
            years=req.years,
            assumed_monthly_earnings=req.assumed_monthly_earnings,
            increased_emi=req.increased_emi,
            use_net_cash_flow_for_emi=req.use_net_cash_flow_for_emi,
            today=today,
        )
    except LoanEngineError as e:
        raise to_http_error(e) from e
    return ProjectionResponse(**vars(snapshot))


@router.post("/summary", response_model=InvestmentSummaryResponse)
async def current_summary(req: VehicleFinancialsRequest, today: date = Depends(get_today)):
    try:
        summary = investment_summary(_build_financials(req, today))
    except LoanEngineError as e:
        raise to_http_error(e) from e
    return InvestmentSummaryResponse(**vars(summary))
