from .reminder_scheduler import ReminderScheduler
from .scheduling_service import SchedulingService

__all__ = ["ReminderScheduler", "SchedulingService"]
