"""Return on investment for a vehicle.

Pure functions. No I/O.
"""

from decimal import Decimal, ROUND_HALF_UP

from fleetledger.models.financials import InvestmentSummary, VehicleFinancials

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")


def total_return(earnings: Decimal, vehicle_value: Decimal, outstanding_loan: Decimal) -> Decimal:
    """What the owner holds: earnings so far plus the vehicle, net of the loan still owed."""
    return earnings + vehicle_value - outstanding_loan


def profit_loss(total_return_amount: Decimal, fixed_investment: Decimal) -> Decimal:
    return total_return_amount - fixed_investment


def roi_percentage(total_return_amount: Decimal, fixed_investment: Decimal) -> Decimal:
    """ROI % = (total return - investment) / investment * 100. Zero investment gives 0."""
    if fixed_investment == 0:
        return Decimal("0")
    roi = (total_return_amount - fixed_investment) / fixed_investment * 100
    return roi.quantize(FOUR_PLACES, ROUND_HALF_UP)


def trailing_monthly_average(total: Decimal, months: int) -> Decimal:
    """Average per month over the months in operation (at least one)."""
    return (total / max(1, months)).quantize(TWO_PLACES, ROUND_HALF_UP)


def investment_summary(financials: VehicleFinancials) -> InvestmentSummary:
    """Current, non-projected returns for a vehicle."""
    fixed = financials.fixed_investment
    ret = total_return(
        financials.total_earnings,
        financials.current_vehicle_value,
        financials.outstanding_loan,
    )
    return InvestmentSummary(
        total_investment=fixed,
        total_return=ret,
        profit_loss=profit_loss(ret, fixed),
        roi=roi_percentage(ret, fixed),
        net_cash_flow=financials.total_earnings - financials.total_expenses,
        is_investment_covered=ret >= fixed,
    )
