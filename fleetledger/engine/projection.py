"""Multi-year projection of a vehicle's earnings, costs, loan and value.

Pure computation. No I/O. The projection, the break-even search and the
loan-clearance search all advance the same state with advance_one_month,
so their figures cannot drift apart.
"""

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal

from fleetledger.config import settings
from fleetledger.engine.amortization import amortize_month, monthly_rate
from fleetledger.engine.dates import add_months
from fleetledger.engine.depreciation import apply_year_of_depreciation, validate_rate
from fleetledger.engine.returns import (
    profit_loss,
    roi_percentage,
    total_return,
    trailing_monthly_average,
)
from fleetledger.errors import InvalidLoanInputError
from fleetledger.models.financials import ProjectionSnapshot, VehicleFinancials

ZERO = Decimal("0")


@dataclass(frozen=True)
class ProjectionState:
    month: int
    earnings: Decimal
    operating_expenses: Decimal
    total_expenses: Decimal  # Operating + EMI payments while the loan is outstanding
    vehicle_value: Decimal
    outstanding: Decimal

    @property
    def total_return(self) -> Decimal:
        return total_return(self.earnings, self.vehicle_value, self.outstanding)


@dataclass(frozen=True)
class ProjectionParams:
    monthly_earnings: Decimal
    monthly_expenses: Decimal
    emi_payment: Decimal
    monthly_rate: Decimal
    depreciation_rate: Decimal  # Annual fraction


def initial_state(financials: VehicleFinancials) -> ProjectionState:
    return ProjectionState(
        month=0,
        earnings=financials.total_earnings,
        operating_expenses=financials.total_operating_expenses,
        total_expenses=financials.total_expenses,
        vehicle_value=financials.current_vehicle_value,
        outstanding=financials.outstanding_loan,
    )


def build_params(
    financials: VehicleFinancials,
    assumed_monthly_earnings: Decimal | None = None,
    increased_emi: Decimal | None = None,
    use_net_cash_flow_for_emi: bool = False,
) -> ProjectionParams:
    """Resolve assumptions against the vehicle's trailing averages.

    Monthly earnings and expenses not given on the snapshot are averaged from
    its totals over the months in operation.

    With use_net_cash_flow_for_emi, any monthly surplus (earnings over
    operating expenses) is paid towards the loan on top of the EMI, which
    is itself the increased EMI when one is given.
    """
    if financials.months_in_operation < 0:
        raise InvalidLoanInputError(
            f"Months in operation cannot be negative, got {financials.months_in_operation}"
        )

    earnings = assumed_monthly_earnings
    if earnings is None:
        earnings = financials.monthly_earnings
    if earnings is None:
        earnings = trailing_monthly_average(
            financials.total_earnings, financials.months_in_operation
        )

    expenses = financials.monthly_expenses
    if expenses is None:
        expenses = trailing_monthly_average(
            financials.total_operating_expenses, financials.months_in_operation
        )

    if earnings < 0:
        raise InvalidLoanInputError(f"Monthly earnings cannot be negative, got {earnings}")
    if expenses < 0:
        raise InvalidLoanInputError(f"Monthly expenses cannot be negative, got {expenses}")
    if increased_emi is not None and increased_emi <= 0:
        raise InvalidLoanInputError(f"Increased EMI must be positive, got {increased_emi}")
    validate_rate(financials.depreciation_rate)

    emi_payment = increased_emi if increased_emi is not None else financials.emi_per_month
    if use_net_cash_flow_for_emi and earnings > expenses:
        emi_payment += earnings - expenses

    return ProjectionParams(
        monthly_earnings=earnings,
        monthly_expenses=expenses,
        emi_payment=emi_payment,
        monthly_rate=monthly_rate(financials.annual_interest_rate),
        depreciation_rate=financials.depreciation_rate,
    )


def advance_one_month(state: ProjectionState, params: ProjectionParams) -> ProjectionState:
    """Move the projection forward by one month.

    Earnings and operating expenses accrue every month. The EMI counts as an
    expense only while the loan is outstanding. The vehicle loses one year of
    value every 12th month.
    """
    month = state.month + 1
    total_expenses = state.total_expenses + params.monthly_expenses
    outstanding = state.outstanding

    if outstanding > 0:
        step = amortize_month(outstanding, params.emi_payment, params.monthly_rate)
        total_expenses += step.payment
        outstanding = step.balance

    vehicle_value = state.vehicle_value
    if month % 12 == 0:
        vehicle_value = apply_year_of_depreciation(vehicle_value, params.depreciation_rate)

    return replace(
        state,
        month=month,
        earnings=state.earnings + params.monthly_earnings,
        operating_expenses=state.operating_expenses + params.monthly_expenses,
        total_expenses=total_expenses,
        vehicle_value=vehicle_value,
        outstanding=outstanding,
    )


def simulate(state: ProjectionState, params: ProjectionParams, months: int) -> ProjectionState:
    for _ in range(months):
        state = advance_one_month(state, params)
    return state


def break_even_month(
    state: ProjectionState,
    params: ProjectionParams,
    fixed_investment: Decimal,
    limit: int | None = None,
) -> int | None:
    """First month in which total return covers the fixed investment.

    0 when it is already covered; None when not reached within the limit.
    """
    limit = settings.projection_search_months if limit is None else limit
    if state.total_return >= fixed_investment:
        return 0
    for month in range(1, limit + 1):
        state = advance_one_month(state, params)
        if state.total_return >= fixed_investment:
            return month
    return None


def loan_clearance_month(
    state: ProjectionState,
    params: ProjectionParams,
    limit: int | None = None,
) -> int | None:
    """First month the loan balance reaches zero. None without a loan or past the limit."""
    limit = settings.projection_search_months if limit is None else limit
    if state.outstanding <= 0:
        return None
    for month in range(1, limit + 1):
        state = advance_one_month(state, params)
        if state.outstanding <= 0:
            return month
    return None


def project(
    financials: VehicleFinancials,
    years: int,
    assumed_monthly_earnings: Decimal | None = None,
    increased_emi: Decimal | None = None,
    use_net_cash_flow_for_emi: bool = False,
    today: date | None = None,
) -> ProjectionSnapshot:
    """Project a vehicle's position `years` ahead.

    Args:
        financials: Current totals and trailing monthly averages
        years: Projection horizon; 0 returns the current position
        assumed_monthly_earnings: Replaces the trailing monthly earnings
        increased_emi: Replaces the loan EMI for the simulation
        use_net_cash_flow_for_emi: Put the monthly surplus towards the loan
        today: When given, break-even and clearance dates are filled in
    """
    if years < 0:
        raise InvalidLoanInputError(f"Projection years cannot be negative, got {years}")

    params = build_params(
        financials, assumed_monthly_earnings, increased_emi, use_net_cash_flow_for_emi
    )
    start = initial_state(financials)
    end = simulate(start, params, years * 12)

    fixed = financials.fixed_investment
    ret = end.total_return

    break_even = break_even_month(start, params, fixed)
    clearance = loan_clearance_month(start, params)

    return ProjectionSnapshot(
        years=years,
        projected_earnings=end.earnings,
        projected_operating_expenses=end.operating_expenses,
        projected_total_expenses=end.total_expenses,
        projected_depreciated_value=end.vehicle_value,
        projected_outstanding_loan=end.outstanding,
        fixed_investment=fixed,
        projected_total_return=ret,
        projected_roi=roi_percentage(ret, fixed),
        projected_profit_loss=profit_loss(ret, fixed),
        projected_net_cash_flow=end.earnings - end.total_expenses,
        monthly_earnings=params.monthly_earnings,
        monthly_expenses=params.monthly_expenses,
        emi_payment=params.emi_payment,
        break_even_months=break_even,
        break_even_date=add_months(today, break_even) if today and break_even is not None else None,
        loan_clearance_months=clearance,
        loan_clearance_date=add_months(today, clearance) if today and clearance is not None else None,
    )
