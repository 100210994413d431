from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .session import Base


class PatientModel(Base):
    """Animal patient row."""

    __tablename__ = "patients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    species: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    breed: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    age: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    owner_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class ProviderModel(Base):
    """Veterinarian row including working hours as HH:MM strings."""

    __tablename__ = "providers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    specialty: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str] = mapped_column(String(30), nullable=False, default="")
    available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    work_start: Mapped[str] = mapped_column(String(5), nullable=False, default="08:00")
    work_end: Mapped[str] = mapped_column(String(5), nullable=False, default="18:00")


class AppointmentModel(Base):
    """Booked appointment; (provider_id, scheduled_date, time) is the slot."""

    __tablename__ = "appointments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    time: Mapped[str] = mapped_column(String(5), nullable=False)
    reason: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="scheduled")
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id"), nullable=False)
    provider_id: Mapped[int] = mapped_column(
        ForeignKey("providers.id"), nullable=False, index=True
    )
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    patient: Mapped[PatientModel] = relationship(lazy="joined")
    provider: Mapped[ProviderModel] = relationship(lazy="joined")
