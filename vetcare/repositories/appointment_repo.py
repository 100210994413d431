"""
In-memory appointment repository.

Appointments live in a process-local list; the stored objects are the
caller's objects, so state changes made after booking are visible through
the repository and vice versa.
"""

import threading
from datetime import date, datetime
from typing import List, Optional

from vetcare.core.config import APP_TZ
from vetcare.domain.entities import Appointment, as_calendar_day
from vetcare.domain.interfaces import IAppointmentRepository


class InMemoryAppointmentRepository(IAppointmentRepository):
    """List-backed repository assigning sequential ids on first save."""

    def __init__(self) -> None:
        self._appointments: List[Appointment] = []
        self._next_id = 1
        self._lock = threading.Lock()

    def save(self, appointment: Appointment) -> Appointment:
        with self._lock:
            index = self._index_of(appointment.id)
            if index is not None:
                self._appointments[index] = appointment
                return appointment

            if not appointment.id:
                appointment.id = self._next_id
            self._next_id = max(self._next_id, appointment.id) + 1
            if appointment.created_at is None:
                appointment.created_at = datetime.now(APP_TZ)
            self._appointments.append(appointment)
            return appointment

    def find_by_id(self, appointment_id: int) -> Optional[Appointment]:
        with self._lock:
            index = self._index_of(appointment_id)
            return self._appointments[index] if index is not None else None

    def list_all(self) -> List[Appointment]:
        with self._lock:
            return list(self._appointments)

    def find_by_provider(self, provider_id: int) -> List[Appointment]:
        with self._lock:
            return [a for a in self._appointments if a.provider.id == provider_id]

    def find_by_date(self, day: date) -> List[Appointment]:
        target = as_calendar_day(day)
        with self._lock:
            return [a for a in self._appointments if a.scheduled_date == target]

    def delete(self, appointment_id: int) -> bool:
        with self._lock:
            index = self._index_of(appointment_id)
            if index is None:
                return False
            del self._appointments[index]
            return True

    def _index_of(self, appointment_id: Optional[int]) -> Optional[int]:
        if not appointment_id:
            return None
        for index, stored in enumerate(self._appointments):
            if stored.id == appointment_id:
                return index
        return None
