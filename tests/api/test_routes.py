import uuid
from decimal import Decimal

import pytest

from fleetledger.api.errors import to_http_error
from fleetledger.errors import (
    InstallmentNotFoundError,
    InvalidLoanInputError,
    NonConvergentLoanError,
    ScheduleConflictError,
)


class TestHealth:
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


class TestErrorMapping:
    @pytest.mark.parametrize("error, status", [
        (InstallmentNotFoundError("no month 99"), 404),
        (ScheduleConflictError("changed underneath"), 409),
        (NonConvergentLoanError("EMI too low"), 422),
        (InvalidLoanInputError("bad due day"), 400),
    ])
    def test_status(self, error, status):
        http_error = to_http_error(error)
        assert http_error.status_code == status
        assert http_error.detail == str(error)


class TestScheduleRoute:
    async def test_generates_schedule(self, client, loan_payload):
        resp = await client.post("/api/v1/loans/schedule", json=loan_payload)
        assert resp.status_code == 200
        body = resp.json()
        assert 0 < body["installments"] < 60
        assert Decimal(body["total_principal"]) == Decimal("500000")
        first = body["entries"][0]
        assert Decimal(first["interest"]) == Decimal("3541.67")
        assert Decimal(first["outstanding"]) == Decimal("492541.67")
        # Today is 2024-01-15, so the first EMI is already late
        assert first["status"] == "overdue"
        assert body["yearly"][0]["year"] == 1

    async def test_seeds_paid_from_last_paid_date(self, client, loan_payload):
        loan_payload["last_paid_installment_date"] = "2024-06-15"
        resp = await client.post("/api/v1/loans/schedule", json=loan_payload)
        assert resp.status_code == 200
        body = resp.json()
        assert body["paid_count"] == 6
        assert body["entries"][5]["status"] == "paid"
        assert body["entries"][5]["paid_at"] == "2024-05-29"

    async def test_invalid_principal(self, client, loan_payload):
        loan_payload["principal"] = "0"
        resp = await client.post("/api/v1/loans/schedule", json=loan_payload)
        assert resp.status_code == 400

    async def test_invalid_due_day(self, client, loan_payload):
        loan_payload["emi_due_day"] = 40
        resp = await client.post("/api/v1/loans/schedule", json=loan_payload)
        assert resp.status_code == 400

    async def test_emi_below_interest(self, client, loan_payload):
        loan_payload["emi_per_month"] = "3000"
        resp = await client.post("/api/v1/loans/schedule", json=loan_payload)
        assert resp.status_code == 422
        assert "does not cover interest" in resp.json()["detail"]


class TestPrepaymentPreviewRoute:
    async def test_preview(self, client):
        resp = await client.post("/api/v1/loans/prepayment/preview", json={
            "current_outstanding": "300000",
            "prepayment_amount": "100000",
            "emi_per_month": "11000",
            "annual_interest_rate": "8.5",
        })
        assert resp.status_code == 200
        body = resp.json()
        assert Decimal(body["new_outstanding"]) == Decimal("200000")
        assert body["tenure_reduction_months"] > 0
        assert Decimal(body["interest_savings"]) > 0

    async def test_exceeds_outstanding(self, client):
        resp = await client.post("/api/v1/loans/prepayment/preview", json={
            "current_outstanding": "300000",
            "prepayment_amount": "400000",
            "emi_per_month": "11000",
        })
        assert resp.status_code == 400


class TestProjectionRoutes:
    async def test_one_year(self, client, financials_payload):
        resp = await client.post("/api/v1/projections", json={**financials_payload, "years": 1})
        assert resp.status_code == 200
        body = resp.json()
        assert Decimal(body["projected_earnings"]) == Decimal("450000")
        assert Decimal(body["projected_total_expenses"]) == Decimal("310000")
        assert Decimal(body["projected_depreciated_value"]) == Decimal("630000")
        assert body["break_even_months"] == 0
        assert body["break_even_date"] == "2024-01-15"

    async def test_net_cash_flow_strategy(self, client, financials_payload):
        resp = await client.post("/api/v1/projections", json={
            **financials_payload, "years": 1, "use_net_cash_flow_for_emi": True,
        })
        assert resp.status_code == 200
        assert Decimal(resp.json()["emi_payment"]) == Decimal("30000")

    async def test_negative_years(self, client, financials_payload):
        resp = await client.post("/api/v1/projections", json={**financials_payload, "years": -1})
        assert resp.status_code == 400

    async def test_summary(self, client, financials_payload):
        resp = await client.post("/api/v1/projections/summary", json=financials_payload)
        assert resp.status_code == 200
        body = resp.json()
        assert Decimal(body["total_return"]) == Decimal("400000")
        assert Decimal(body["roi"]) == Decimal("100")
        assert body["is_investment_covered"] is True


class TestVehicleLoanRoutes:
    async def _create(self, client, loan_payload):
        vehicle_id = uuid.uuid4()
        resp = await client.post(
            f"/api/v1/vehicles/{vehicle_id}/loan",
            json={**loan_payload, "registration_number": "KA01AB1234"},
        )
        assert resp.status_code == 200
        return vehicle_id, resp.json()

    async def test_create_and_fetch(self, client, loan_payload):
        vehicle_id, created = await self._create(client, loan_payload)
        assert created["schedule_version"] == 1
        assert created["next_due_date"] == "2024-01-01"
        assert created["days_until_next_emi"] == -14

        resp = await client.get(f"/api/v1/vehicles/{vehicle_id}/loan")
        assert resp.status_code == 200
        fetched = resp.json()
        assert fetched["vehicle_id"] == str(vehicle_id)
        assert Decimal(fetched["schedule"]["outstanding"]) == Decimal("500000")
        assert fetched["schedule"]["installments"] == created["schedule"]["installments"]

    async def test_unknown_vehicle(self, client):
        resp = await client.get(f"/api/v1/vehicles/{uuid.uuid4()}/loan")
        assert resp.status_code == 404

    async def test_invalid_terms(self, client, loan_payload):
        loan_payload["tenure_months"] = 0
        resp = await client.post(f"/api/v1/vehicles/{uuid.uuid4()}/loan", json=loan_payload)
        assert resp.status_code == 400

    async def test_invalid_due_day_rejected_on_save(self, client, loan_payload):
        vehicle_id = uuid.uuid4()
        resp = await client.post(
            f"/api/v1/vehicles/{vehicle_id}/loan", json={**loan_payload, "emi_due_day": 40}
        )
        assert resp.status_code == 400
        assert "due day" in resp.json()["detail"]
        assert (await client.get(f"/api/v1/vehicles/{vehicle_id}/loan")).status_code == 404

    async def test_confirm_with_due_day(self, client, loan_payload):
        vehicle_id = uuid.uuid4()
        resp = await client.post(
            f"/api/v1/vehicles/{vehicle_id}/loan", json={**loan_payload, "emi_due_day": 5}
        )
        assert resp.status_code == 200
        resp = await client.post(
            f"/api/v1/vehicles/{vehicle_id}/loan/prepayment/confirm", json={"amount": "1000"}
        )
        assert resp.status_code == 200
        # Today is 2024-01-15, so the next 5th is in February
        assert resp.json()["loan"]["first_installment_date"] == "2024-02-05"

    async def test_pay_installment(self, client, loan_payload):
        vehicle_id, _ = await self._create(client, loan_payload)
        resp = await client.post(
            f"/api/v1/vehicles/{vehicle_id}/loan/installments/1/pay", json={"penalty": "200"}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["schedule_version"] == 2
        assert body["next_due_date"] == "2024-02-01"
        assert body["days_until_next_emi"] == 17
        first = body["schedule"]["entries"][0]
        assert first["is_paid"] is True
        assert first["paid_at"] == "2024-01-15"
        assert Decimal(first["penalty"]) == Decimal("200")
        assert Decimal(body["schedule"]["outstanding"]) == Decimal("492541.67")

    async def test_pay_without_body(self, client, loan_payload):
        vehicle_id, _ = await self._create(client, loan_payload)
        resp = await client.post(f"/api/v1/vehicles/{vehicle_id}/loan/installments/1/pay")
        assert resp.status_code == 200
        assert resp.json()["schedule"]["paid_count"] == 1

    async def test_pay_twice(self, client, loan_payload):
        vehicle_id, _ = await self._create(client, loan_payload)
        url = f"/api/v1/vehicles/{vehicle_id}/loan/installments/1/pay"
        assert (await client.post(url)).status_code == 200
        assert (await client.post(url)).status_code == 409

    async def test_pay_too_early(self, client, loan_payload):
        vehicle_id, _ = await self._create(client, loan_payload)
        resp = await client.post(f"/api/v1/vehicles/{vehicle_id}/loan/installments/3/pay")
        assert resp.status_code == 409

    async def test_pay_unknown_month(self, client, loan_payload):
        vehicle_id, _ = await self._create(client, loan_payload)
        resp = await client.post(f"/api/v1/vehicles/{vehicle_id}/loan/installments/999/pay")
        assert resp.status_code == 404

    async def test_prepayment_preview_then_confirm(self, client, loan_payload):
        vehicle_id, _ = await self._create(client, loan_payload)
        await client.post(f"/api/v1/vehicles/{vehicle_id}/loan/installments/1/pay")

        preview = await client.post(
            f"/api/v1/vehicles/{vehicle_id}/loan/prepayment/preview", json={"amount": "100000"}
        )
        assert preview.status_code == 200
        assert Decimal(preview.json()["new_outstanding"]) == Decimal("392541.67")

        # Preview leaves the stored loan untouched
        unchanged = (await client.get(f"/api/v1/vehicles/{vehicle_id}/loan")).json()
        assert unchanged["schedule_version"] == 2

        resp = await client.post(
            f"/api/v1/vehicles/{vehicle_id}/loan/prepayment/confirm", json={"amount": "100000"}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["prepayment"] == preview.json()
        loan = body["loan"]
        assert Decimal(loan["principal"]) == Decimal("392541.67")
        assert Decimal(loan["prepayments_total"]) == Decimal("100000")
        assert loan["schedule_version"] == 3
        assert loan["first_installment_date"] == "2024-02-15"
        assert loan["schedule"]["entries"][0]["month"] == 1
        assert loan["schedule"]["paid_count"] == 0
        assert loan["tenure_months"] == loan["schedule"]["installments"]

    async def test_prepayment_exceeds_outstanding(self, client, loan_payload):
        vehicle_id, _ = await self._create(client, loan_payload)
        resp = await client.post(
            f"/api/v1/vehicles/{vehicle_id}/loan/prepayment/confirm", json={"amount": "600000"}
        )
        assert resp.status_code == 400

    async def test_prepayment_unknown_vehicle(self, client):
        resp = await client.post(
            f"/api/v1/vehicles/{uuid.uuid4()}/loan/prepayment/preview", json={"amount": "1000"}
        )
        assert resp.status_code == 404


class TestDerivedFinancials:
    async def test_monthly_figures_default_to_trailing_averages(self, client, financials_payload):
        payload = {**financials_payload, "months_in_operation": 6, "years": 1}
        del payload["monthly_earnings"]
        del payload["monthly_expenses"]
        resp = await client.post("/api/v1/projections", json=payload)
        assert resp.status_code == 200
        body = resp.json()
        assert Decimal(body["monthly_earnings"]) == Decimal("25000")
        assert Decimal(body["monthly_expenses"]) == Decimal("6666.67")
        assert Decimal(body["projected_earnings"]) == Decimal("450000")

    async def test_vehicle_value_from_purchase(self, client, financials_payload):
        payload = {**financials_payload, "purchase_price": "1000000", "purchase_year": 2023}
        del payload["current_vehicle_value"]
        resp = await client.post("/api/v1/projections/summary", json=payload)
        assert resp.status_code == 200
        # Two years in service by 2024: 1,000,000 x 0.9 x 0.9 = 810,000
        assert Decimal(resp.json()["total_return"]) == Decimal("510000")

    async def test_explicit_vehicle_value_wins(self, client, financials_payload):
        payload = {**financials_payload, "purchase_price": "1000000", "purchase_year": 2023}
        resp = await client.post("/api/v1/projections/summary", json=payload)
        assert Decimal(resp.json()["total_return"]) == Decimal("400000")

    async def test_bad_depreciation_rate_on_purchase(self, client, financials_payload):
        payload = {
            **financials_payload,
            "purchase_price": "1000000",
            "purchase_year": 2023,
            "depreciation_rate": "1.5",
        }
        del payload["current_vehicle_value"]
        resp = await client.post("/api/v1/projections/summary", json=payload)
        assert resp.status_code == 400
