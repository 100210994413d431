"""
Scheduling service: booking, cancellation and lookup of appointments.
"""

import threading
from datetime import date, timedelta
from typing import List, Optional

from vetcare.core.exceptions import InvalidAppointmentError, SchedulingConflictError
from vetcare.core.logging_config import get_logger
from vetcare.domain.entities import Appointment, ReminderCategory, as_calendar_day
from vetcare.domain.interfaces import IAppointmentRepository, IReminderService

logger = get_logger(__name__)

# Slots hash onto a fixed set of locks; two slots sharing a stripe just
# book one after the other
_SLOT_LOCK_STRIPES = 64


class SchedulingService:
    """Application service for appointment booking use-cases.

    Business Rules:
    - An appointment must pass its own validity check to be booked
    - At most one non-cancelled appointment per (provider, day, time) slot
    - A booked appointment is confirmed and, when a reminder service is
      configured, gets a reminder one day before its start
    """

    def __init__(
        self,
        repository: IAppointmentRepository,
        reminder_service: Optional[IReminderService] = None,
    ):
        self.repository = repository
        self.reminder_service = reminder_service
        self._slot_locks = tuple(threading.Lock() for _ in range(_SLOT_LOCK_STRIPES))

    def book(self, appointment: Appointment) -> Appointment:
        """Validate, check conflicts, persist and confirm an appointment.

        Raises:
            InvalidAppointmentError: the appointment fails is_valid() or
                carries the id of an appointment already in the store
            SchedulingConflictError: the slot is already taken
        """
        if not appointment.is_valid():
            logger.warning(
                "Rejected invalid appointment",
                extra={
                    "context": {
                        "provider_id": appointment.provider.id,
                        "patient_id": appointment.patient.id,
                        "date": appointment.scheduled_date.isoformat(),
                        "time": appointment.time,
                    }
                },
            )
            raise InvalidAppointmentError(
                "Appointment is not valid for this patient and provider",
                appointment_id=appointment.id,
            )

        with self._lock_for(appointment.provider.id, appointment.scheduled_date):
            existing = self._find_conflict(appointment)
            if existing is not None:
                logger.info(
                    "Slot already booked",
                    extra={
                        "context": {
                            "provider_id": appointment.provider.id,
                            "date": appointment.scheduled_date.isoformat(),
                            "time": appointment.time,
                            "existing_id": existing.id,
                        }
                    },
                )
                raise SchedulingConflictError(
                    appointment.provider.id,
                    appointment.scheduled_date,
                    appointment.time,
                    existing_id=existing.id,
                )

            if appointment.id and self.repository.find_by_id(appointment.id) is not None:
                logger.warning(
                    "Rejected booking reusing a stored appointment id",
                    extra={"context": {"appointment_id": appointment.id}},
                )
                raise InvalidAppointmentError(
                    f"Appointment {appointment.id} is already booked",
                    appointment_id=appointment.id,
                )

            self.repository.save(appointment)
            appointment.confirm()
            self.repository.save(appointment)

        logger.info(
            "Appointment booked",
            extra={
                "context": {
                    "appointment_id": appointment.id,
                    "provider_id": appointment.provider.id,
                    "date": appointment.scheduled_date.isoformat(),
                    "time": appointment.time,
                    "status": appointment.status.value,
                }
            },
        )

        if self.reminder_service is not None:
            self._arm_reminder(appointment)

        return appointment

    def list_all(self) -> List[Appointment]:
        return list(self.repository.list_all())

    def get(self, appointment_id: int) -> Optional[Appointment]:
        return self.repository.find_by_id(appointment_id)

    def cancel(self, appointment_id: int) -> bool:
        """Cancel a booked appointment; False when unknown or completed."""
        appointment = self.repository.find_by_id(appointment_id)
        if appointment is None or not appointment.cancel():
            return False

        self.repository.save(appointment)
        logger.info(
            "Appointment cancelled",
            extra={"context": {"appointment_id": appointment_id}},
        )
        return True

    def complete(self, appointment_id: int, notes: str = "") -> bool:
        """Mark a confirmed appointment as completed; False otherwise."""
        appointment = self.repository.find_by_id(appointment_id)
        if appointment is None or not appointment.complete(notes):
            return False

        self.repository.save(appointment)
        logger.info(
            "Appointment completed",
            extra={"context": {"appointment_id": appointment_id}},
        )
        return True

    def list_by_provider(self, provider_id: int) -> List[Appointment]:
        return [
            a
            for a in self.repository.find_by_provider(provider_id)
            if a.provider.id == provider_id
        ]

    def list_by_date(self, day) -> List[Appointment]:
        target = as_calendar_day(day)
        return [
            a for a in self.repository.find_by_date(target) if a.scheduled_date == target
        ]

    def is_available(self, provider_id: int, day, time: str) -> bool:
        target = as_calendar_day(day)
        return not any(
            a.provider.id == provider_id and a.time == time and not a.is_cancelled
            for a in self.repository.find_by_date(target)
        )

    def _find_conflict(self, candidate: Appointment) -> Optional[Appointment]:
        """Linear scan of the same day's bookings for an occupied slot."""
        for existing in self.repository.find_by_date(candidate.scheduled_date):
            if existing.is_cancelled:
                continue
            if (
                existing.provider.id == candidate.provider.id
                and existing.time == candidate.time
            ):
                return existing
        return None

    def _lock_for(self, provider_id: Optional[int], day: date) -> threading.Lock:
        return self._slot_locks[hash((provider_id, day)) % len(self._slot_locks)]

    def _arm_reminder(self, appointment: Appointment) -> None:
        """Ask the reminder service for a day-before reminder.

        Failures are logged only; the appointment stays booked.
        """
        due_at = appointment.starts_at - timedelta(days=1)
        try:
            self.reminder_service.schedule_reminder(
                f"Reminder: appointment tomorrow with {appointment.provider.name}",
                due_at,
                category=ReminderCategory.APPOINTMENT,
                patient_id=appointment.patient.id,
                client_id=appointment.patient.owner_id,
            )
        except Exception as e:
            logger.error(
                "Failed to arm appointment reminder",
                extra={
                    "context": {
                        "appointment_id": appointment.id,
                        "due_at": due_at.isoformat(),
                        "error": str(e),
                    }
                },
                exc_info=True,
            )
