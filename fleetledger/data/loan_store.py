"""Vehicle loan persistence over an async SQLAlchemy session.

Schedules are stored whole in a JSON column and only ever swapped for a new
value inside a single commit, never patched entry by entry.
"""

import logging
import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from fleetledger.engine.prepayment import ConfirmedPrepayment
from fleetledger.errors import ScheduleConflictError
from fleetledger.models.db import LoanRecord, PrepaymentRecord, VehicleRecord
from fleetledger.models.loan import AmortizationEntry, AmortizationSchedule, LoanTerms

logger = logging.getLogger(__name__)


def schedule_to_json(schedule: AmortizationSchedule) -> list[dict]:
    return [
        {
            "month": e.month,
            "interest": str(e.interest),
            "principal": str(e.principal),
            "outstanding": str(e.outstanding),
            "due_date": e.due_date.isoformat(),
            "is_paid": e.is_paid,
            "paid_at": e.paid_at.isoformat() if e.paid_at else None,
            "penalty": str(e.penalty),
        }
        for e in schedule
    ]


def schedule_from_json(raw: list[dict] | None) -> AmortizationSchedule:
    entries = tuple(
        AmortizationEntry(
            month=int(item["month"]),
            interest=Decimal(item["interest"]),
            principal=Decimal(item["principal"]),
            outstanding=Decimal(item["outstanding"]),
            due_date=date.fromisoformat(item["due_date"]),
            is_paid=bool(item.get("is_paid", False)),
            paid_at=date.fromisoformat(item["paid_at"]) if item.get("paid_at") else None,
            penalty=Decimal(item.get("penalty", "0")),
        )
        for item in raw or []
    )
    return AmortizationSchedule(entries=entries)


def terms_from_record(loan: LoanRecord) -> LoanTerms:
    return LoanTerms(
        principal=Decimal(loan.principal),
        annual_interest_rate=Decimal(loan.annual_interest_rate),
        emi_per_month=Decimal(loan.emi_per_month),
        tenure_months=loan.tenure_months,
        first_installment_date=loan.first_installment_date,
        emi_due_day=loan.emi_due_day,
    )


class LoanStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_loan(self, vehicle_id: uuid.UUID) -> LoanRecord | None:
        result = await self.session.execute(
            select(LoanRecord).where(LoanRecord.vehicle_id == vehicle_id)
        )
        return result.scalar_one_or_none()

    async def save_loan(
        self,
        vehicle_id: uuid.UUID,
        terms: LoanTerms,
        schedule: AmortizationSchedule,
        registration_number: str = "",
    ) -> LoanRecord:
        """Create the vehicle's loan, or replace its terms and schedule wholesale."""
        try:
            vehicle = await self.session.get(VehicleRecord, vehicle_id)
            if vehicle is None:
                vehicle = VehicleRecord(id=vehicle_id, registration_number=registration_number)
                self.session.add(vehicle)
            elif registration_number:
                vehicle.registration_number = registration_number

            loan = await self.get_loan(vehicle_id)
            if loan is None:
                loan = LoanRecord(
                    vehicle_id=vehicle_id,
                    prepayments_total=Decimal("0"),
                    schedule_version=0,
                )
                self.session.add(loan)

            self._apply_terms(loan, terms)
            self._swap_schedule(loan, schedule)
        except Exception:
            await self.session.rollback()
            raise
        await self._commit(f"vehicle {vehicle_id}")

        logger.info(
            "Saved loan for vehicle %s: %d installments (v%d)",
            vehicle_id, len(schedule), loan.schedule_version,
        )
        return loan

    async def replace_schedule(self, loan: LoanRecord, schedule: AmortizationSchedule) -> LoanRecord:
        """Swap in a new schedule, e.g. after an installment is marked paid."""
        self._swap_schedule(loan, schedule)
        await self._commit(f"loan {loan.id}")

        logger.debug("Replaced schedule for loan %s (v%d)", loan.id, loan.schedule_version)
        return loan

    async def commit_prepayment(
        self,
        loan: LoanRecord,
        confirmed: ConfirmedPrepayment,
        paid_on: date,
    ) -> LoanRecord:
        """Record a prepayment and swap in the rebuilt schedule in one commit."""
        result = confirmed.result
        try:
            self.session.add(PrepaymentRecord(
                loan_id=loan.id,
                paid_on=paid_on,
                amount=result.amount,
                new_outstanding=result.new_outstanding,
                tenure_reduction_months=result.tenure_reduction_months,
                interest_savings=result.interest_savings,
            ))
            loan.prepayments_total = Decimal(loan.prepayments_total or 0) + result.amount
            self._apply_terms(loan, confirmed.terms)
            self._swap_schedule(loan, confirmed.schedule)
        except Exception:
            await self.session.rollback()
            raise
        await self._commit(f"loan {loan.id}")

        logger.info(
            "Prepayment of %s on loan %s: outstanding now %s, tenure reduced by %d months",
            result.amount, loan.id, result.new_outstanding, result.tenure_reduction_months,
        )
        return loan

    async def _commit(self, label: str) -> None:
        """Commit, rejecting the write if another request bumped the schedule first.

        LoanRecord is mapped with schedule_version as its version column, so the
        UPDATE only matches the version this session loaded.
        """
        try:
            await self.session.commit()
        except StaleDataError as e:
            await self.session.rollback()
            logger.warning("Stale schedule write rejected for %s", label)
            raise ScheduleConflictError(
                f"Schedule for {label} was changed by another request; reload and retry"
            ) from e
        except Exception:
            await self.session.rollback()
            raise

    @staticmethod
    def _apply_terms(loan: LoanRecord, terms: LoanTerms) -> None:
        loan.principal = terms.principal
        loan.annual_interest_rate = terms.annual_interest_rate
        loan.emi_per_month = terms.emi_per_month
        loan.tenure_months = terms.tenure_months
        loan.first_installment_date = terms.first_installment_date
        loan.emi_due_day = terms.emi_due_day

    @staticmethod
    def _swap_schedule(loan: LoanRecord, schedule: AmortizationSchedule) -> None:
        loan.schedule = schedule_to_json(schedule)
        loan.schedule_version = (loan.schedule_version or 0) + 1
