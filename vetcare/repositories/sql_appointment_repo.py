"""
SQLAlchemy-backed appointment repository.

Patients and providers are upserted alongside the appointment so the
stored row always reflects the participants that were validated at
booking time. Every read returns fresh domain objects.

Each operation runs in its own short-lived session taken from the
session factory, so one repository can be shared by request threads.
A session passed in explicitly is used as-is and left open for its owner.
"""

from contextlib import contextmanager
from datetime import date
from typing import Callable, Iterator, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from vetcare.core.logging_config import get_logger
from vetcare.db.base import AppointmentModel, PatientModel, ProviderModel
from vetcare.db.session import SessionLocal
from vetcare.domain.entities import (
    Appointment,
    Patient,
    Provider,
    as_calendar_day,
)
from vetcare.domain.interfaces import IAppointmentRepository

logger = get_logger(__name__)


class SqlAppointmentRepository(IAppointmentRepository):
    """Repository for Appointment persistence operations."""

    def __init__(
        self,
        db_session: Optional[Session] = None,
        session_factory: Optional[Callable[[], Session]] = None,
    ) -> None:
        self._shared_session = db_session
        self._session_factory = session_factory or SessionLocal

    @contextmanager
    def _session(self) -> Iterator[Session]:
        if self._shared_session is not None:
            yield self._shared_session
            return
        db = self._session_factory()
        try:
            yield db
        finally:
            db.close()

    def save(self, appointment: Appointment) -> Appointment:
        with self._session() as db:
            try:
                db_appointment = self._write(db, appointment)
                db.commit()
                db.refresh(db_appointment)
            except Exception as e:
                db.rollback()
                logger.error(
                    "Error saving appointment",
                    extra={
                        "context": {
                            "appointment_id": appointment.id,
                            "error": str(e),
                        }
                    },
                    exc_info=True,
                )
                raise

            if not appointment.id:
                appointment.id = db_appointment.id
            if appointment.patient.id is None:
                appointment.patient.id = db_appointment.patient_id
            if appointment.provider.id is None:
                appointment.provider.id = db_appointment.provider_id
            if appointment.created_at is None:
                appointment.created_at = db_appointment.created_at

        logger.debug(
            "Appointment row saved",
            extra={
                "context": {
                    "appointment_id": appointment.id,
                    "status": appointment.status.value,
                }
            },
        )
        return appointment

    def find_by_id(self, appointment_id: int) -> Optional[Appointment]:
        with self._session() as db:
            db_appointment = db.get(AppointmentModel, appointment_id)
            return self._to_domain(db_appointment) if db_appointment else None

    def list_all(self) -> List[Appointment]:
        stmt = select(AppointmentModel).order_by(AppointmentModel.id)
        return self._fetch(stmt)

    def find_by_provider(self, provider_id: int) -> List[Appointment]:
        stmt = (
            select(AppointmentModel)
            .where(AppointmentModel.provider_id == provider_id)
            .order_by(AppointmentModel.id)
        )
        return self._fetch(stmt)

    def find_by_date(self, day: date) -> List[Appointment]:
        stmt = (
            select(AppointmentModel)
            .where(AppointmentModel.scheduled_date == as_calendar_day(day))
            .order_by(AppointmentModel.id)
        )
        return self._fetch(stmt)

    def delete(self, appointment_id: int) -> bool:
        with self._session() as db:
            db_appointment = db.get(AppointmentModel, appointment_id)
            if db_appointment is None:
                return False
            try:
                db.delete(db_appointment)
                db.commit()
            except Exception as e:
                db.rollback()
                logger.error(
                    "Error deleting appointment",
                    extra={
                        "context": {"appointment_id": appointment_id, "error": str(e)}
                    },
                    exc_info=True,
                )
                raise
            return True

    def _fetch(self, stmt) -> List[Appointment]:
        with self._session() as db:
            return [self._to_domain(row) for row in db.execute(stmt).scalars()]

    def _write(self, db: Session, appointment: Appointment) -> AppointmentModel:
        patient_row = self._upsert_patient(db, appointment.patient)
        provider_row = self._upsert_provider(db, appointment.provider)

        db_appointment = None
        if appointment.id:
            db_appointment = db.get(AppointmentModel, appointment.id)
        if db_appointment is None:
            db_appointment = AppointmentModel(id=appointment.id or None)
            db.add(db_appointment)

        db_appointment.scheduled_date = appointment.scheduled_date
        db_appointment.time = appointment.time
        db_appointment.reason = appointment.reason
        db_appointment.status = appointment.status.value
        db_appointment.notes = appointment.notes or ""
        db_appointment.patient = patient_row
        db_appointment.provider = provider_row
        return db_appointment

    def _upsert_patient(self, db: Session, patient: Patient) -> PatientModel:
        row = db.get(PatientModel, patient.id) if patient.id else None
        if row is None:
            row = PatientModel(id=patient.id)
            db.add(row)
        row.name = patient.name
        row.species = patient.species
        row.breed = patient.breed
        row.age = patient.age
        row.owner_id = patient.owner_id
        db.flush()
        return row

    def _upsert_provider(self, db: Session, provider: Provider) -> ProviderModel:
        row = db.get(ProviderModel, provider.id) if provider.id else None
        if row is None:
            row = ProviderModel(id=provider.id)
            db.add(row)
        row.name = provider.name
        row.specialty = provider.specialty
        row.phone = provider.phone
        row.available = provider.available
        row.work_start = provider.work_start
        row.work_end = provider.work_end
        db.flush()
        return row

    def _to_domain(self, db_appointment: AppointmentModel) -> Appointment:
        """Convert database model to domain entity."""
        patient = db_appointment.patient
        provider = db_appointment.provider
        return Appointment(
            id=db_appointment.id,
            scheduled_date=db_appointment.scheduled_date,
            time=db_appointment.time,
            reason=db_appointment.reason,
            status=db_appointment.status,
            notes=db_appointment.notes or "",
            created_at=db_appointment.created_at,
            patient=Patient(
                id=patient.id,
                name=patient.name,
                species=patient.species,
                breed=patient.breed,
                age=patient.age,
                owner_id=patient.owner_id,
            ),
            provider=Provider(
                id=provider.id,
                name=provider.name,
                specialty=provider.specialty,
                phone=provider.phone,
                available=provider.available,
                work_start=provider.work_start,
                work_end=provider.work_end,
            ),
        )
