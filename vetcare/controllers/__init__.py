from .appointment_controller import appointment_bp
from .health_controller import health_bp
from .reminder_controller import reminder_bp

__all__ = ["appointment_bp", "health_bp", "reminder_bp"]
