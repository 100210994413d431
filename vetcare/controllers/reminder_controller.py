"""
Reminder controller exposing the ReminderScheduler over HTTP.
"""

from flask import Blueprint, current_app, request

from vetcare.core.api_utils import api_response
from vetcare.domain.entities import ReminderCategory
from vetcare.schemas.dtos import (
    ReminderCreateRequest,
    ReminderResponse,
    VaccinationReminderRequest,
)
from vetcare.services.reminder_scheduler import ReminderScheduler

reminder_bp = Blueprint("reminders", __name__, url_prefix="/api/reminders")


def _scheduler() -> ReminderScheduler:
    return current_app.config["REMINDER_SCHEDULER"]


@reminder_bp.route("", methods=["GET"])
def list_reminders():
    """List reminders; ?category= filters, ?pending=true keeps unsent ones."""
    scheduler = _scheduler()
    category = request.args.get("category")
    pending_only = request.args.get("pending", "false").lower() in ("true", "1", "yes")

    if category:
        category = ReminderCategory(category)
        if pending_only:
            reminders = scheduler.pending_by_category(category)
        else:
            reminders = scheduler.by_category(category)
    elif pending_only:
        reminders = scheduler.pending()
    else:
        reminders = scheduler.all()

    return api_response(
        True,
        f"{len(reminders)} reminder(s)",
        [ReminderResponse.from_domain(r).to_dict() for r in reminders],
    )


@reminder_bp.route("", methods=["POST"])
def create_reminder():
    payload = ReminderCreateRequest.from_dict(request.get_json(silent=True) or {})
    reminder = _scheduler().schedule(
        payload.message,
        payload.due_at,
        payload.category,
        patient_id=payload.patient_id,
        client_id=payload.client_id,
    )
    return api_response(
        True, "Reminder scheduled", ReminderResponse.from_domain(reminder).to_dict(), 201
    )


@reminder_bp.route("/vaccination", methods=["POST"])
def create_vaccination_reminder():
    payload = VaccinationReminderRequest.from_dict(request.get_json(silent=True) or {})
    reminder = _scheduler().schedule_for_vaccination(
        payload.patient_id,
        payload.client_id,
        payload.vaccine_name,
        payload.expiry_date,
    )
    return api_response(
        True, "Reminder scheduled", ReminderResponse.from_domain(reminder).to_dict(), 201
    )


@reminder_bp.route("/<int:reminder_id>/cancel", methods=["POST"])
def cancel_reminder(reminder_id: int):
    if _scheduler().cancel(reminder_id):
        return api_response(True, "Reminder cancelled")
    return api_response(
        False, "Reminder not found or already resolved", status_code=404
    )


@reminder_bp.route("/dispatch", methods=["POST"])
def dispatch_due_reminders():
    dispatched = _scheduler().dispatch_due()
    return api_response(
        True,
        f"Dispatched {len(dispatched)} reminder(s)",
        [ReminderResponse.from_domain(r).to_dict() for r in dispatched],
    )


@reminder_bp.route("/summary", methods=["GET"])
def reminder_summary():
    return api_response(True, "Reminder summary", _scheduler().summary())
