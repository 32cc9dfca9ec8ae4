from dataclasses import dataclass
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class VehicleFinancials:
    """Current financial state of one vehicle, as supplied by the data layer."""

    # Invested capital
    initial_investment: Decimal  # Down payment + pre-operation costs, or full price for cash purchases
    prepayments: Decimal = Decimal("0")  # Lump sums paid towards the loan so far

    # Cumulative to date
    total_earnings: Decimal = Decimal("0")
    total_operating_expenses: Decimal = Decimal("0")  # Fuel, maintenance, insurance, etc.
    total_expenses: Decimal = Decimal("0")  # Operating + EMIs paid so far

    # Vehicle & loan
    current_vehicle_value: Decimal = Decimal("0")  # Already depreciated
    depreciation_rate: Decimal = Decimal("0.10")  # Fraction per year
    outstanding_loan: Decimal = Decimal("0")
    emi_per_month: Decimal = Decimal("0")
    annual_interest_rate: Decimal = Decimal("0")  # Percent

    # Monthly rates for the projection. Left as None, they are the trailing
    # averages of the totals over months_in_operation.
    monthly_earnings: Decimal | None = None
    monthly_expenses: Decimal | None = None  # Operating only
    months_in_operation: int = 0

    @property
    def fixed_investment(self) -> Decimal:
        """Capital put in: initial investment plus prepayments. Operating costs excluded."""
        return self.initial_investment + self.prepayments

    @property
    def has_loan(self) -> bool:
        return self.outstanding_loan > 0


@dataclass
class InvestmentSummary:
    total_investment: Decimal = Decimal("0")
    total_return: Decimal = Decimal("0")  # Earnings + vehicle value - outstanding loan
    profit_loss: Decimal = Decimal("0")
    roi: Decimal = Decimal("0")  # Percent
    net_cash_flow: Decimal = Decimal("0")  # Earnings - total expenses
    is_investment_covered: bool = False


@dataclass
class ProjectionSnapshot:
    years: int = 0

    projected_earnings: Decimal = Decimal("0")
    projected_operating_expenses: Decimal = Decimal("0")
    projected_total_expenses: Decimal = Decimal("0")  # Operating + EMI while loan outstanding
    projected_depreciated_value: Decimal = Decimal("0")
    projected_outstanding_loan: Decimal = Decimal("0")

    fixed_investment: Decimal = Decimal("0")
    projected_total_return: Decimal = Decimal("0")
    projected_roi: Decimal = Decimal("0")  # Percent
    projected_profit_loss: Decimal = Decimal("0")
    projected_net_cash_flow: Decimal = Decimal("0")

    # Assumptions actually used
    monthly_earnings: Decimal = Decimal("0")
    monthly_expenses: Decimal = Decimal("0")
    emi_payment: Decimal = Decimal("0")

    break_even_months: int | None = None
    break_even_date: date | None = None
    loan_clearance_months: int | None = None
    loan_clearance_date: date | None = None
