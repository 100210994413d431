"""
Custom exceptions for the application.
Centralized error taxonomy for scheduling and reminders.
"""

from datetime import date
from typing import Optional


class VetCareError(Exception):
    """Base class for all domain errors raised by the application."""

    pass


class InvalidAppointmentError(VetCareError):
    """
    Raised when an appointment fails its validity predicate.

    The appointment is never persisted and no reminder is armed.
    """

    def __init__(self, message: str = "Invalid appointment", appointment_id=None):
        super().__init__(message)
        self.appointment_id = appointment_id


class SchedulingConflictError(VetCareError):
    """
    Raised when a non-cancelled appointment already occupies the slot.
    """

    def __init__(
        self,
        provider_id: int,
        scheduled_date: date,
        time: str,
        existing_id: Optional[int] = None,
    ):
        super().__init__(
            f"Provider {provider_id} is already booked on "
            f"{scheduled_date.isoformat()} at {time}"
        )
        self.provider_id = provider_id
        self.scheduled_date = scheduled_date
        self.time = time
        self.existing_id = existing_id


class ChannelDeliveryError(VetCareError):
    """Raised by a notification sender when a reminder cannot be delivered."""

    pass
