"""
Notification senders, one per reminder channel.

The default senders only record the delivery in the log; deployments swap
in real SMS/email/push gateways by passing their own INotificationSender
instances to the ReminderScheduler.
"""

from typing import Dict

from vetcare.core.logging_config import get_logger
from vetcare.domain.entities import Reminder, ReminderChannel
from vetcare.domain.interfaces import INotificationSender

logger = get_logger(__name__)


class LoggingNotificationSender(INotificationSender):
    """Sender that writes the delivered message to the application log."""

    def __init__(self, channel: ReminderChannel, label: str):
        self.channel = channel
        self.label = label

    def send(self, reminder: Reminder) -> None:
        logger.info(
            f"{self.label}: {reminder.message}",
            extra={
                "context": {
                    "reminder_id": reminder.id,
                    "channel": self.channel.value,
                    "category": reminder.category.value,
                    "client_id": reminder.client_id,
                    "patient_id": reminder.patient_id,
                }
            },
        )


def default_senders() -> Dict[ReminderChannel, INotificationSender]:
    """One logging sender per channel."""
    return {
        ReminderChannel.SMS: LoggingNotificationSender(ReminderChannel.SMS, "SMS sent"),
        ReminderChannel.EMAIL: LoggingNotificationSender(
            ReminderChannel.EMAIL, "Email sent"
        ),
        ReminderChannel.PUSH: LoggingNotificationSender(
            ReminderChannel.PUSH, "Notification"
        ),
    }
