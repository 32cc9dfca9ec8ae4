"""Pydantic schemas for API request/response models."""

from datetime import date
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from fleetledger.config import settings

DEFAULT_RATE = Decimal(str(settings.default_interest_rate))
DEFAULT_DEPRECIATION = Decimal(str(settings.default_depreciation_rate))


# ---- Request schemas ----

class LoanTermsRequest(BaseModel):
    principal: Decimal = Field(..., description="Loan amount")
    emi_per_month: Decimal = Field(..., description="Fixed monthly installment")
    tenure_months: int = Field(..., description="Number of installments agreed with the lender")
    annual_interest_rate: Decimal = Field(DEFAULT_RATE, description="Percent per annum, e.g. 8.5")
    first_installment_date: date
    emi_due_day: int | None = Field(None, description="Day of month EMIs fall due")


class ScheduleRequest(LoanTermsRequest):
    already_paid_count: int = Field(0, description="Installments already paid before onboarding")
    last_paid_installment_date: date | None = Field(
        None, description="Alternative to already_paid_count for vehicles already in operation"
    )


class VehicleLoanRequest(ScheduleRequest):
    registration_number: str = ""


class PrepaymentPreviewRequest(BaseModel):
    current_outstanding: Decimal
    prepayment_amount: Decimal
    emi_per_month: Decimal
    annual_interest_rate: Decimal = DEFAULT_RATE


class PrepaymentAmountRequest(BaseModel):
    amount: Decimal


class MarkPaidRequest(BaseModel):
    penalty: Decimal = Field(Decimal("0"), description="Late fee, only for overdue installments")


class VehicleFinancialsRequest(BaseModel):
    initial_investment: Decimal
    prepayments: Decimal = Decimal("0")
    total_earnings: Decimal = Decimal("0")
    total_operating_expenses: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    current_vehicle_value: Decimal | None = Field(
        None, description="Defaults to purchase_price depreciated since purchase_year"
    )
    purchase_price: Decimal | None = None
    purchase_year: int | None = None
    depreciation_rate: Decimal = DEFAULT_DEPRECIATION
    outstanding_loan: Decimal = Decimal("0")
    emi_per_month: Decimal = Decimal("0")
    annual_interest_rate: Decimal = DEFAULT_RATE
    monthly_earnings: Decimal | None = Field(None, description="Defaults to the trailing average")
    monthly_expenses: Decimal | None = Field(None, description="Defaults to the trailing average")
    months_in_operation: int = 0


class ProjectionRequest(VehicleFinancialsRequest):
    years: int = 1
    assumed_monthly_earnings: Decimal | None = None
    increased_emi: Decimal | None = None
    use_net_cash_flow_for_emi: bool = False


# ---- Response schemas ----

class AmortizationEntryResponse(BaseModel):
    month: int
    interest: Decimal
    principal: Decimal
    payment: Decimal
    outstanding: Decimal
    due_date: date
    is_paid: bool
    paid_at: date | None = None
    penalty: Decimal = Decimal("0")
    status: str


class YearlyLoanSummaryResponse(BaseModel):
    year: int
    principal: Decimal
    interest: Decimal
    payments: Decimal
    ending_balance: Decimal


class ScheduleResponse(BaseModel):
    installments: int
    paid_count: int
    total_interest: Decimal
    total_principal: Decimal
    total_payments: Decimal
    outstanding: Decimal
    entries: list[AmortizationEntryResponse]
    yearly: list[YearlyLoanSummaryResponse] = []


class PrepaymentResponse(BaseModel):
    amount: Decimal
    current_outstanding: Decimal
    new_outstanding: Decimal
    current_tenure_months: int
    new_tenure_months: int
    tenure_reduction_months: int
    interest_savings: Decimal


class VehicleLoanResponse(BaseModel):
    vehicle_id: UUID
    principal: Decimal
    annual_interest_rate: Decimal
    emi_per_month: Decimal
    tenure_months: int
    first_installment_date: date
    emi_due_day: int | None = None
    prepayments_total: Decimal
    schedule_version: int
    next_due_date: date | None = None
    days_until_next_emi: int | None = None
    schedule: ScheduleResponse


class PrepaymentConfirmResponse(BaseModel):
    prepayment: PrepaymentResponse
    loan: VehicleLoanResponse


class InvestmentSummaryResponse(BaseModel):
    total_investment: Decimal
    total_return: Decimal
    profit_loss: Decimal
    roi: Decimal
    net_cash_flow: Decimal
    is_investment_covered: bool


class ProjectionResponse(BaseModel):
    years: int
    projected_earnings: Decimal
    projected_operating_expenses: Decimal
    projected_total_expenses: Decimal
    projected_depreciated_value: Decimal
    projected_outstanding_loan: Decimal
    fixed_investment: Decimal
    projected_total_return: Decimal
    projected_roi: Decimal
    projected_profit_loss: Decimal
    projected_net_cash_flow: Decimal
    monthly_earnings: Decimal
    monthly_expenses: Decimal
    emi_payment: Decimal
    break_even_months: int | None = None
    break_even_date: date | None = None
    loan_clearance_months: int | None = None
    loan_clearance_date: date | None = None
