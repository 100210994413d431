"""
Data Transfer Objects (DTOs) and validation schemas.

Request DTOs parse and validate JSON payloads; response DTOs flatten
domain entities into JSON-ready dictionaries.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Optional

from vetcare.core.api_utils import parse_date, parse_datetime
from vetcare.domain.entities import (
    Appointment,
    Patient,
    Provider,
    Reminder,
    ReminderCategory,
    is_hhmm,
)


def _require(data: Dict[str, Any], key: str) -> Any:
    value = data.get(key)
    if value is None or value == "":
        raise ValueError(f"{key} is required")
    return value


@dataclass
class PatientPayload:
    """DTO for the patient block of a booking request."""

    name: str
    species: str
    id: Optional[int] = None
    breed: str = ""
    age: int = 0
    owner_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatientPayload":
        return cls(
            id=data.get("id"),
            name=_require(data, "name"),
            species=_require(data, "species"),
            breed=data.get("breed", ""),
            age=int(data.get("age", 0)),
            owner_id=data.get("owner_id"),
        )

    def to_domain(self) -> Patient:
        return Patient(**asdict(self))


@dataclass
class ProviderPayload:
    """DTO for the provider block of a booking request."""

    id: int
    name: str
    specialty: str
    phone: str = ""
    available: bool = True
    work_start: str = "08:00"
    work_end: str = "18:00"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProviderPayload":
        return cls(
            id=int(_require(data, "id")),
            name=_require(data, "name"),
            specialty=_require(data, "specialty"),
            phone=data.get("phone", ""),
            available=bool(data.get("available", True)),
            work_start=data.get("work_start", "08:00"),
            work_end=data.get("work_end", "18:00"),
        )

    def to_domain(self) -> Provider:
        return Provider(**asdict(self))


@dataclass
class BookAppointmentRequest:
    """DTO for appointment booking requests."""

    scheduled_date: date
    time: str
    reason: str
    patient: PatientPayload
    provider: ProviderPayload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BookAppointmentRequest":
        patient = data.get("patient")
        provider = data.get("provider")
        if not isinstance(patient, dict):
            raise ValueError("patient is required")
        if not isinstance(provider, dict):
            raise ValueError("provider is required")
        # Ids are assigned by the store; a client-sent "id" is ignored
        return cls(
            scheduled_date=parse_date(data.get("date"), "date"),
            time=_require(data, "time"),
            reason=data.get("reason", ""),
            patient=PatientPayload.from_dict(patient),
            provider=ProviderPayload.from_dict(provider),
        )

    def validate(self) -> None:
        """Validate the request data."""
        if not is_hhmm(self.time):
            raise ValueError("time must be HH:MM")
        if self.patient.age < 0:
            raise ValueError("patient age cannot be negative")

    def to_domain(self) -> Appointment:
        return Appointment(
            scheduled_date=self.scheduled_date,
            time=self.time,
            reason=self.reason,
            patient=self.patient.to_domain(),
            provider=self.provider.to_domain(),
        )


@dataclass
class ReminderCreateRequest:
    """DTO for ad-hoc reminder requests."""

    message: str
    due_at: datetime
    category: ReminderCategory = ReminderCategory.GENERAL
    patient_id: Optional[int] = None
    client_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReminderCreateRequest":
        return cls(
            message=_require(data, "message"),
            due_at=parse_datetime(data.get("due_at"), "due_at"),
            category=ReminderCategory(data.get("category", "general")),
            patient_id=data.get("patient_id"),
            client_id=data.get("client_id"),
        )


@dataclass
class VaccinationReminderRequest:
    """DTO for vaccine expiry reminders."""

    vaccine_name: str
    expiry_date: date
    patient_id: Optional[int] = None
    client_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VaccinationReminderRequest":
        return cls(
            vaccine_name=_require(data, "vaccine_name"),
            expiry_date=parse_date(data.get("expiry_date"), "expiry_date"),
            patient_id=data.get("patient_id"),
            client_id=data.get("client_id"),
        )


@dataclass
class AppointmentResponse:
    """DTO for appointment API responses."""

    id: int
    date: str
    time: str
    reason: str
    status: str
    estimated_duration: int
    notes: str
    patient: Dict[str, Any] = field(default_factory=dict)
    provider: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_domain(cls, appointment: Appointment) -> "AppointmentResponse":
        """Create response from domain entity."""
        return cls(
            id=appointment.id,
            date=appointment.scheduled_date.isoformat(),
            time=appointment.time,
            reason=appointment.reason,
            status=appointment.status.value,
            estimated_duration=appointment.estimated_duration(),
            notes=appointment.notes,
            patient={
                "id": appointment.patient.id,
                "name": appointment.patient.name,
                "species": appointment.patient.species,
            },
            provider={
                "id": appointment.provider.id,
                "name": appointment.provider.name,
                "specialty": appointment.provider.specialty,
            },
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ReminderResponse:
    """DTO for reminder API responses."""

    id: int
    message: str
    due_at: str
    category: str
    channel: str
    state: str
    sent: bool
    patient_id: Optional[int]
    client_id: Optional[int]

    @classmethod
    def from_domain(cls, reminder: Reminder) -> "ReminderResponse":
        """Create response from domain entity."""
        return cls(
            id=reminder.id,
            message=reminder.message,
            due_at=reminder.due_at.isoformat(),
            category=reminder.category.value,
            channel=reminder.channel.value,
            state=reminder.state.value,
            sent=reminder.sent,
            patient_id=reminder.patient_id,
            client_id=reminder.client_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
