from .appointment_repo import InMemoryAppointmentRepository
from .sql_appointment_repo import SqlAppointmentRepository

__all__ = ["InMemoryAppointmentRepository", "SqlAppointmentRepository"]
