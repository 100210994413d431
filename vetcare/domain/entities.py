"""
Domain entities - Pure business logic, no framework dependencies.

Patients and providers are plain records with their own validation rules;
Appointment owns the booking lifecycle and Reminder the dispatch lifecycle.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional

from vetcare.core.config import APP_TZ

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

GENERAL_MEDICINE = "General Medicine"


def is_hhmm(value: str) -> bool:
    """Check that a value is a zero-padded 24h "HH:MM" string."""
    return isinstance(value, str) and bool(_HHMM.match(value))


def as_calendar_day(value) -> date:
    """Reduce a date or datetime to its calendar day."""
    if isinstance(value, datetime):
        return value.date()
    return value


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AppointmentReason(str, Enum):
    """Known visit reasons with their estimated duration in minutes."""

    CONSULTATION = "consultation"
    VACCINATION = "vaccination"
    SURGERY = "surgery"
    CHECKUP = "checkup"

    @classmethod
    def parse(cls, text: str) -> Optional["AppointmentReason"]:
        """Case-insensitive lookup; None for free text outside the table."""
        try:
            return cls((text or "").strip().lower())
        except ValueError:
            return None

    @property
    def duration_minutes(self) -> int:
        return _REASON_DURATIONS[self]


_REASON_DURATIONS = {
    AppointmentReason.CONSULTATION: 30,
    AppointmentReason.VACCINATION: 15,
    AppointmentReason.SURGERY: 120,
    AppointmentReason.CHECKUP: 20,
}

DEFAULT_DURATION_MINUTES = 30


@dataclass
class Patient:
    """Domain entity representing an animal patient of the clinic."""

    id: Optional[int] = None
    name: str = ""
    species: str = ""
    breed: str = ""
    age: int = 0
    owner_id: Optional[int] = None

    def is_valid(self) -> bool:
        return len(self.name) > 0 and self.age >= 0

    def is_adult(self) -> bool:
        return self.age >= 1

    def have_birthday(self) -> None:
        self.age += 1

    @property
    def description(self) -> str:
        return f"{self.name} - {self.species} {self.breed}, {self.age} years".strip()


@dataclass
class Provider:
    """Domain entity representing a veterinarian who takes appointments.

    Working hours are "HH:MM" strings compared lexically, bounds inclusive.
    """

    id: Optional[int] = None
    name: str = ""
    specialty: str = GENERAL_MEDICINE
    phone: str = ""
    available: bool = True
    work_start: str = "08:00"
    work_end: str = "18:00"

    def __post_init__(self):
        """Validate business rules."""
        if not self.name:
            raise ValueError("Provider name is required")
        if not is_hhmm(self.work_start) or not is_hhmm(self.work_end):
            raise ValueError("Working hours must be HH:MM strings")
        if self.work_end < self.work_start:
            raise ValueError("Working hours end before they start")

    def is_available(self) -> bool:
        return self.available

    def set_availability(self, available: bool) -> None:
        self.available = available

    def can_treat_species(self, species: str) -> bool:
        """General medicine treats every species; specialists those named in
        their specialty. An unspecified species is accepted by anyone."""
        specialty = self.specialty.lower()
        if specialty == GENERAL_MEDICINE.lower():
            return True
        return (species or "").lower() in specialty

    def is_within_working_hours(self, hhmm: str) -> bool:
        return self.work_start <= hhmm <= self.work_end

    @property
    def info(self) -> str:
        return f"Dr. {self.name} - {self.specialty} ({self.phone})"


@dataclass
class Appointment:
    """Domain entity for a booked visit and its lifecycle.

    State machine: scheduled -> confirmed -> completed, and cancelled from
    any state except completed. The id cannot change once assigned.
    """

    scheduled_date: date
    time: str
    reason: str
    patient: Patient
    provider: Provider
    id: Optional[int] = None
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    notes: str = ""
    created_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate business rules."""
        if not is_hhmm(self.time):
            raise ValueError("Appointment time must be an HH:MM string")
        self.scheduled_date = as_calendar_day(self.scheduled_date)
        self.status = AppointmentStatus(self.status)

    def __setattr__(self, name, value):
        if name == "id":
            current = self.__dict__.get("id")
            if current and value != current:
                raise AttributeError("Appointment id is immutable once assigned")
        super().__setattr__(name, value)

    def confirm(self) -> bool:
        if self.status == AppointmentStatus.SCHEDULED:
            self.status = AppointmentStatus.CONFIRMED
            return True
        return False

    def complete(self, notes: str = "") -> bool:
        if self.status == AppointmentStatus.CONFIRMED:
            self.status = AppointmentStatus.COMPLETED
            self.notes = notes
            return True
        return False

    def cancel(self) -> bool:
        if self.status != AppointmentStatus.COMPLETED:
            self.status = AppointmentStatus.CANCELLED
            return True
        return False

    def is_valid(self) -> bool:
        return (
            self.patient.is_valid()
            and self.provider.is_available()
            and self.provider.can_treat_species(self.patient.species)
            and self.provider.is_within_working_hours(self.time)
        )

    def estimated_duration(self) -> int:
        reason = AppointmentReason.parse(self.reason)
        if reason is None:
            return DEFAULT_DURATION_MINUTES
        return reason.duration_minutes

    @property
    def is_cancelled(self) -> bool:
        return self.status == AppointmentStatus.CANCELLED

    @property
    def slot(self) -> tuple:
        """Conflict key: (provider id, calendar day, "HH:MM")."""
        return (self.provider.id, self.scheduled_date, self.time)

    @property
    def starts_at(self) -> datetime:
        hours, minutes = (int(part) for part in self.time.split(":"))
        return datetime.combine(
            self.scheduled_date, time(hours, minutes), tzinfo=APP_TZ
        )

    @property
    def ends_at(self) -> datetime:
        return self.starts_at + timedelta(minutes=self.estimated_duration())


class ReminderCategory(str, Enum):
    APPOINTMENT = "appointment"
    VACCINATION = "vaccination"
    FOLLOWUP = "followup"
    GENERAL = "general"


class ReminderState(str, Enum):
    PENDING = "pending"
    DISPATCHING = "dispatching"
    FIRED = "fired"
    CANCELLED = "cancelled"
    FAILED = "failed"


class ReminderChannel(str, Enum):
    SMS = "SMS"
    EMAIL = "email"
    PUSH = "push notification"

    @classmethod
    def for_category(cls, category: ReminderCategory) -> "ReminderChannel":
        return _CATEGORY_CHANNELS.get(category, cls.PUSH)


_CATEGORY_CHANNELS = {
    ReminderCategory.APPOINTMENT: ReminderChannel.SMS,
    ReminderCategory.VACCINATION: ReminderChannel.EMAIL,
    ReminderCategory.FOLLOWUP: ReminderChannel.PUSH,
    ReminderCategory.GENERAL: ReminderChannel.PUSH,
}


@dataclass
class Reminder:
    """A message due at a given instant, delivered through its category channel."""

    id: int
    message: str
    due_at: datetime
    category: ReminderCategory = ReminderCategory.GENERAL
    patient_id: Optional[int] = None
    client_id: Optional[int] = None
    sent: bool = False
    state: ReminderState = ReminderState.PENDING
    sent_at: Optional[datetime] = None
    created_at: Optional[datetime] = field(default=None, compare=False)

    def __post_init__(self):
        """Validate business rules."""
        if not self.message:
            raise ValueError("Reminder message is required")
        self.category = ReminderCategory(self.category)
        if self.due_at.tzinfo is None:
            self.due_at = self.due_at.replace(tzinfo=APP_TZ)

    @property
    def channel(self) -> ReminderChannel:
        return ReminderChannel.for_category(self.category)

    @property
    def is_pending(self) -> bool:
        return self.state == ReminderState.PENDING

    def mark_sent(self, when: datetime) -> None:
        self.sent = True
        self.sent_at = when
        self.state = ReminderState.FIRED
