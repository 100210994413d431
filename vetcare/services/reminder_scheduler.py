"""
Reminder scheduler: owns pending reminders and their deferred dispatch.

Reminders are indexed by id and ordered in a min-heap keyed by
(due_at, id). Two ways of driving them are supported:

- timers: an APScheduler scheduler is attached and every pending reminder
  gets its own DateTrigger job (``reminder_<id>``);
- polling: no scheduler is attached and something calls dispatch_due()
  periodically (create_app registers an IntervalTrigger job for that).

A reminder is claimed for delivery under the scheduler lock (state
``dispatching``), handed to its channel sender with the lock released, and
resolved under the lock again. Claiming and cancelling are mutually
exclusive, so a reminder whose dispatch has started can no longer be
cancelled and a cancelled reminder never fires. A slow gateway only delays
its own reminder; scheduling and cancelling carry on meanwhile.

Dispatch failures are not retried: when the channel sender raises, the
reminder moves to the terminal ``failed`` state (``sent`` stays False)
and the error is logged with its traceback.
"""

import heapq
import threading
from collections import Counter
from dataclasses import replace
from datetime import datetime, time, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.date import DateTrigger

from vetcare.core.config import (
    APP_TZ,
    get_appointment_reminder_hour,
    get_vaccination_lead_days,
)
from vetcare.core.exceptions import ChannelDeliveryError
from vetcare.core.logging_config import get_logger
from vetcare.domain.entities import (
    Reminder,
    ReminderCategory,
    ReminderChannel,
    ReminderState,
    as_calendar_day,
)
from vetcare.domain.interfaces import INotificationSender, IReminderService
from vetcare.services.notification_channels import default_senders

logger = get_logger(__name__)

# Rebuild the heap once stale entries outnumber live ones by this margin
_HEAP_SLACK = 64


class ReminderScheduler(IReminderService):
    """Schedules, cancels and dispatches reminders."""

    def __init__(
        self,
        timer_backend: Optional[BaseScheduler] = None,
        senders: Optional[Dict[ReminderChannel, INotificationSender]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        appointment_reminder_hour: Optional[int] = None,
        vaccination_lead_days: Optional[int] = None,
    ):
        self.timer_backend = timer_backend
        self.senders = senders if senders is not None else default_senders()
        self._clock = clock or (lambda: datetime.now(APP_TZ))
        self.appointment_reminder_hour = (
            appointment_reminder_hour
            if appointment_reminder_hour is not None
            else get_appointment_reminder_hour()
        )
        self.vaccination_lead_days = (
            vaccination_lead_days
            if vaccination_lead_days is not None
            else get_vaccination_lead_days()
        )

        self._reminders: Dict[int, Reminder] = {}
        self._heap: List[Tuple[datetime, int]] = []
        self._next_id = 1
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def schedule(
        self,
        message: str,
        due_at: datetime,
        category: ReminderCategory = ReminderCategory.GENERAL,
        patient_id: Optional[int] = None,
        client_id: Optional[int] = None,
    ) -> Reminder:
        """Create a pending reminder and arm its dispatch.

        A due instant that is not in the future fires immediately.
        """
        with self._lock:
            now = self._now()
            reminder = Reminder(
                id=self._next_id,
                message=message,
                due_at=due_at,
                category=category,
                patient_id=patient_id,
                client_id=client_id,
                created_at=now,
            )
            self._next_id += 1
            self._reminders[reminder.id] = reminder
            heapq.heappush(self._heap, (reminder.due_at, reminder.id))

            logger.info(
                "Reminder scheduled",
                extra={
                    "context": {
                        "reminder_id": reminder.id,
                        "category": reminder.category.value,
                        "due_at": reminder.due_at.isoformat(),
                    }
                },
            )

            if reminder.due_at > now:
                if self.timer_backend is not None:
                    self._arm_timer(reminder)
                return replace(reminder)
            snapshot = self._claim(reminder)

        return self._deliver(reminder, snapshot)

    def schedule_reminder(
        self,
        message: str,
        due_at: datetime,
        category: ReminderCategory = ReminderCategory.GENERAL,
        patient_id: Optional[int] = None,
        client_id: Optional[int] = None,
    ) -> Reminder:
        return self.schedule(message, due_at, category, patient_id, client_id)

    def schedule_for_appointment(
        self,
        appointment_id: int,
        patient_id: Optional[int],
        client_id: Optional[int],
        appointment_date,
    ) -> Reminder:
        """Remind the owner on the day before the visit at the configured hour."""
        day_before = as_calendar_day(appointment_date) - timedelta(days=1)
        due_at = datetime.combine(
            day_before, time(self.appointment_reminder_hour, 0), tzinfo=APP_TZ
        )
        logger.debug(
            "Computed appointment reminder instant",
            extra={
                "context": {
                    "appointment_id": appointment_id,
                    "due_at": due_at.isoformat(),
                }
            },
        )
        return self.schedule(
            "Reminder: your pet has an appointment scheduled for tomorrow",
            due_at,
            ReminderCategory.APPOINTMENT,
            patient_id=patient_id,
            client_id=client_id,
        )

    def schedule_for_vaccination(
        self,
        patient_id: Optional[int],
        client_id: Optional[int],
        vaccine_name: str,
        expiry_date,
    ) -> Reminder:
        """Remind the owner a fixed number of days before a vaccine expires."""
        if isinstance(expiry_date, datetime):
            expires_at = expiry_date
        else:
            expires_at = datetime.combine(expiry_date, time(0, 0), tzinfo=APP_TZ)
        due_at = expires_at - timedelta(days=self.vaccination_lead_days)
        return self.schedule(
            f"Reminder: your pet's {vaccine_name} vaccine expires soon. "
            "Please book an appointment.",
            due_at,
            ReminderCategory.VACCINATION,
            patient_id=patient_id,
            client_id=client_id,
        )

    # ------------------------------------------------------------------
    # Cancellation and dispatch
    # ------------------------------------------------------------------

    def cancel(self, reminder_id: int) -> bool:
        """Cancel a pending reminder; False for unknown or resolved ids."""
        with self._lock:
            reminder = self._reminders.get(reminder_id)
            if reminder is None or not reminder.is_pending:
                return False

            reminder.state = ReminderState.CANCELLED
            del self._reminders[reminder_id]
            self._remove_timer(reminder_id)
            self._maybe_compact()

        logger.info(
            "Reminder cancelled",
            extra={"context": {"reminder_id": reminder_id}},
        )
        return True

    def dispatch_due(self) -> List[Reminder]:
        """Dispatch every pending reminder whose due instant has arrived."""
        claimed: List[Tuple[Reminder, Reminder]] = []
        with self._lock:
            now = self._now()
            while self._heap and self._heap[0][0] <= now:
                _, reminder_id = heapq.heappop(self._heap)
                reminder = self._reminders.get(reminder_id)
                if reminder is None or not reminder.is_pending:
                    continue
                self._remove_timer(reminder_id)
                claimed.append((reminder, self._claim(reminder)))

        dispatched = [self._deliver(reminder, snapshot) for reminder, snapshot in claimed]
        if dispatched:
            logger.info(
                f"Dispatched {len(dispatched)} due reminder(s)",
                extra={"context": {"reminder_ids": [r.id for r in dispatched]}},
            )
        return dispatched

    def shutdown(self) -> None:
        """Remove every armed timer job; pending reminders stay pending."""
        with self._lock:
            for reminder in self._reminders.values():
                if reminder.is_pending:
                    self._remove_timer(reminder.id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, reminder_id: int) -> Optional[Reminder]:
        with self._lock:
            reminder = self._reminders.get(reminder_id)
            return replace(reminder) if reminder else None

    def all(self) -> List[Reminder]:
        with self._lock:
            return [replace(r) for r in self._ordered()]

    def pending(self) -> List[Reminder]:
        with self._lock:
            return [replace(r) for r in self._ordered() if r.is_pending]

    def by_category(self, category: ReminderCategory) -> List[Reminder]:
        category = ReminderCategory(category)
        with self._lock:
            return [replace(r) for r in self._ordered() if r.category == category]

    def pending_by_category(self, category: ReminderCategory) -> List[Reminder]:
        category = ReminderCategory(category)
        with self._lock:
            return [
                replace(r)
                for r in self._ordered()
                if r.is_pending and r.category == category
            ]

    def summary(self) -> dict:
        """Counts of known reminders by outcome and by category."""
        with self._lock:
            reminders = list(self._reminders.values())
        states = Counter(r.state for r in reminders)
        categories = Counter(r.category.value for r in reminders)
        return {
            "total": len(reminders),
            "sent": states[ReminderState.FIRED],
            "pending": states[ReminderState.PENDING],
            "dispatching": states[ReminderState.DISPATCHING],
            "failed": states[ReminderState.FAILED],
            "by_category": dict(categories),
        }

    # ------------------------------------------------------------------
    # Internals (lock held by caller unless stated otherwise)
    # ------------------------------------------------------------------

    def _now(self) -> datetime:
        now = self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=APP_TZ)
        return now

    def _ordered(self) -> List[Reminder]:
        return sorted(self._reminders.values(), key=lambda r: (r.due_at, r.id))

    @staticmethod
    def _job_id(reminder_id: int) -> str:
        return f"reminder_{reminder_id}"

    def _arm_timer(self, reminder: Reminder) -> None:
        self.timer_backend.add_job(
            self._fire,
            trigger=DateTrigger(run_date=reminder.due_at),
            args=[reminder.id],
            id=self._job_id(reminder.id),
            name=f"Dispatch {reminder.category.value} reminder {reminder.id}",
            replace_existing=True,
            misfire_grace_time=None,
        )

    def _remove_timer(self, reminder_id: int) -> None:
        if self.timer_backend is None:
            return
        try:
            self.timer_backend.remove_job(self._job_id(reminder_id))
        except JobLookupError:
            # Already ran or never armed (fired immediately)
            pass

    def _fire(self, reminder_id: int) -> bool:
        """Timer callback; acquires the lock itself."""
        with self._lock:
            reminder = self._reminders.get(reminder_id)
            if reminder is None or not reminder.is_pending:
                return False
            snapshot = self._claim(reminder)
        self._deliver(reminder, snapshot)
        return True

    def _claim(self, reminder: Reminder) -> Reminder:
        """Take a pending reminder out of the cancellable set for delivery."""
        reminder.state = ReminderState.DISPATCHING
        return replace(reminder)

    def _deliver(self, reminder: Reminder, snapshot: Reminder) -> Reminder:
        """Send a claimed reminder without holding the lock, then resolve it.

        Called with the lock released; senders may block.
        """
        channel = snapshot.channel
        logger.info(
            f"[{snapshot.category.value.upper()}] {snapshot.message}",
            extra={
                "context": {
                    "reminder_id": snapshot.id,
                    "channel": channel.value,
                }
            },
        )
        delivered = False
        try:
            sender = self.senders.get(channel)
            if sender is None:
                raise ChannelDeliveryError(f"No sender configured for {channel.value}")
            sender.send(snapshot)
            delivered = True
        except Exception as e:
            logger.error(
                "Reminder dispatch failed",
                extra={
                    "context": {
                        "reminder_id": snapshot.id,
                        "channel": channel.value,
                        "error": str(e),
                    }
                },
                exc_info=True,
            )

        with self._lock:
            if delivered:
                reminder.mark_sent(self._now())
            else:
                reminder.state = ReminderState.FAILED
            self._maybe_compact()
            return replace(reminder)

    def _maybe_compact(self) -> None:
        live = sum(1 for r in self._reminders.values() if r.is_pending)
        if len(self._heap) > 2 * live + _HEAP_SLACK:
            self._heap = [
                (r.due_at, r.id) for r in self._reminders.values() if r.is_pending
            ]
            heapq.heapify(self._heap)
