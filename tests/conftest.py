"""Canonical test fixtures used across engine, data and API tests.

Loan: 500,000 at 8.5% with an 11,000 EMI over 60 months, first EMI 2024-01-01.
Vehicle: 200,000 invested, 450,000 still owed, earning 25,000 a month.
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from fleetledger.engine.amortization import generate_schedule
from fleetledger.models.db import Base
from fleetledger.models.financials import VehicleFinancials
from fleetledger.models.loan import LoanTerms


@pytest.fixture
def canonical_terms() -> LoanTerms:
    return LoanTerms(
        principal=Decimal("500000"),
        annual_interest_rate=Decimal("8.5"),
        emi_per_month=Decimal("11000"),
        tenure_months=60,
        first_installment_date=date(2024, 1, 1),
    )


@pytest.fixture
def canonical_schedule(canonical_terms):
    return generate_schedule(
        principal=canonical_terms.principal,
        emi_per_month=canonical_terms.emi_per_month,
        tenure_months=canonical_terms.tenure_months,
        annual_rate_percent=canonical_terms.annual_interest_rate,
        first_installment_date=canonical_terms.first_installment_date,
    )


@pytest.fixture
def canonical_financials() -> VehicleFinancials:
    """Six months into operation, loan still running."""
    return VehicleFinancials(
        initial_investment=Decimal("200000"),
        prepayments=Decimal("0"),
        total_earnings=Decimal("150000"),
        total_operating_expenses=Decimal("40000"),
        total_expenses=Decimal("106000"),  # 40,000 operating + 6 EMIs
        current_vehicle_value=Decimal("700000"),
        depreciation_rate=Decimal("0.10"),
        outstanding_loan=Decimal("450000"),
        emi_per_month=Decimal("11000"),
        annual_interest_rate=Decimal("8.5"),
        monthly_earnings=Decimal("25000"),
        monthly_expenses=Decimal("6000"),
    )


@pytest.fixture
def cash_financials() -> VehicleFinancials:
    """Vehicle bought outright, no loan."""
    return VehicleFinancials(
        initial_investment=Decimal("600000"),
        total_earnings=Decimal("90000"),
        total_operating_expenses=Decimal("30000"),
        total_expenses=Decimal("30000"),
        current_vehicle_value=Decimal("540000"),
        depreciation_rate=Decimal("0.10"),
        monthly_earnings=Decimal("22000"),
        monthly_expenses=Decimal("5000"),
    )


@pytest.fixture
async def db_sessionmaker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'fleetledger_test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def db_session(db_sessionmaker):
    async with db_sessionmaker() as session:
        yield session
