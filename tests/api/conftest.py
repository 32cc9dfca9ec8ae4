from datetime import date

import httpx
import pytest

from fleetledger.api.app import app
from fleetledger.api.deps import get_db, get_today

TODAY = date(2024, 1, 15)


@pytest.fixture
async def client(db_sessionmaker):
    async def override_db():
        async with db_sessionmaker() as session:
            yield session

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_today] = lambda: TODAY
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    ) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def loan_payload():
    return {
        "principal": "500000",
        "emi_per_month": "11000",
        "tenure_months": 60,
        "annual_interest_rate": "8.5",
        "first_installment_date": "2024-01-01",
    }


@pytest.fixture
def financials_payload():
    return {
        "initial_investment": "200000",
        "total_earnings": "150000",
        "total_operating_expenses": "40000",
        "total_expenses": "106000",
        "current_vehicle_value": "700000",
        "depreciation_rate": "0.10",
        "outstanding_loan": "450000",
        "emi_per_month": "11000",
        "annual_interest_rate": "8.5",
        "monthly_earnings": "25000",
        "monthly_expenses": "6000",
    }
