"""
Domain package - Pure business logic layer.

This package contains:
- entities.py: Domain entities with business logic
- interfaces.py: Repository and collaborator contracts
"""

from .entities import (
    Appointment,
    AppointmentReason,
    AppointmentStatus,
    Patient,
    Provider,
    Reminder,
    ReminderCategory,
    ReminderChannel,
    ReminderState,
)
from .interfaces import (
    IAppointmentReader,
    IAppointmentRepository,
    IAppointmentWriter,
    INotificationSender,
    IReminderService,
)

__all__ = [
    # Domain entities
    "Patient",
    "Provider",
    "Appointment",
    "AppointmentReason",
    "AppointmentStatus",
    "Reminder",
    "ReminderCategory",
    "ReminderChannel",
    "ReminderState",
    # Repository interfaces
    "IAppointmentRepository",
    "IAppointmentReader",
    "IAppointmentWriter",
    # Collaborator interfaces
    "IReminderService",
    "INotificationSender",
]
