"""
Abstract interfaces for repositories and collaborators following
Interface Segregation Principle.

These interfaces define contracts without implementation details,
enabling dependency injection and easier testing.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import List, Optional

from .entities import Appointment, Reminder, ReminderCategory


class IAppointmentReader(ABC):
    """Interface for appointment read operations."""

    @abstractmethod
    def find_by_id(self, appointment_id: int) -> Optional[Appointment]:
        """Get appointment by ID."""
        pass

    @abstractmethod
    def list_all(self) -> List[Appointment]:
        """Get every stored appointment (a copy of the store's list)."""
        pass

    @abstractmethod
    def find_by_provider(self, provider_id: int) -> List[Appointment]:
        """Get all appointments for a provider."""
        pass

    @abstractmethod
    def find_by_date(self, day: date) -> List[Appointment]:
        """Get all appointments on a calendar day."""
        pass


class IAppointmentWriter(ABC):
    """Interface for appointment write operations."""

    @abstractmethod
    def save(self, appointment: Appointment) -> Appointment:
        """Insert or replace an appointment, assigning an id when missing."""
        pass

    @abstractmethod
    def delete(self, appointment_id: int) -> bool:
        """Remove an appointment from the store."""
        pass


class IAppointmentRepository(IAppointmentReader, IAppointmentWriter):
    """Complete appointment repository interface."""

    pass


class IReminderService(ABC):
    """Reminder capability consumed by the scheduling service."""

    @abstractmethod
    def schedule_reminder(
        self,
        message: str,
        due_at: datetime,
        category: ReminderCategory = ReminderCategory.GENERAL,
        patient_id: Optional[int] = None,
        client_id: Optional[int] = None,
    ) -> Reminder:
        """Arm a reminder for the given instant."""
        pass


class INotificationSender(ABC):
    """Delivers a reminder through one concrete channel."""

    @abstractmethod
    def send(self, reminder: Reminder) -> None:
        """Send the reminder; raise ChannelDeliveryError on failure."""
        pass
