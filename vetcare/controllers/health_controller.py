from flask import Blueprint, current_app

from vetcare.core.api_utils import api_response

health_bp = Blueprint("health", __name__)


@health_bp.route("/health", methods=["GET"])
def health():
    """Liveness check including the reminder scheduler state."""
    scheduler = current_app.config.get("SCHEDULER")
    reminders = current_app.config["REMINDER_SCHEDULER"]
    return api_response(
        True,
        "ok",
        {
            "scheduler_running": bool(scheduler and scheduler.running),
            "pending_reminders": len(reminders.pending()),
        },
    )
