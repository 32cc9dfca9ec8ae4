"""SQLAlchemy ORM models for vehicle loan persistence."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    String,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class VehicleRecord(Base):
    __tablename__ = "vehicles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    registration_number: Mapped[str] = mapped_column(String(32), default="")

    loan: Mapped[Optional["LoanRecord"]] = relationship(
        back_populates="vehicle", uselist=False, lazy="selectin"
    )


class LoanRecord(Base):
    __tablename__ = "loans"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    vehicle_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("vehicles.id"), unique=True)

    # Terms the current schedule was generated from
    principal: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    annual_interest_rate: Mapped[Decimal] = mapped_column(Numeric(6, 3))
    emi_per_month: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    tenure_months: Mapped[int] = mapped_column(Integer)
    first_installment_date: Mapped[date] = mapped_column(Date)
    emi_due_day: Mapped[int | None] = mapped_column(Integer, nullable=True)

    prepayments_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)

    # Full schedule, replaced as a whole on every change
    schedule: Mapped[list] = mapped_column(JSON)
    schedule_version: Mapped[int] = mapped_column(Integer, default=1)

    vehicle: Mapped["VehicleRecord"] = relationship(back_populates="loan")

    # UPDATEs match on the version the row was loaded with; the store bumps it
    __mapper_args__ = {"version_id_col": schedule_version, "version_id_generator": False}


class PrepaymentRecord(Base):
    __tablename__ = "prepayments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    loan_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("loans.id"), index=True)
    paid_on: Mapped[date] = mapped_column(Date)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    new_outstanding: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    tenure_reduction_months: Mapped[int] = mapped_column(Integer)
    interest_savings: Mapped[Decimal] = mapped_column(Numeric(12, 2))
