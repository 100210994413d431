"""
Application factory wiring repositories, the reminder scheduler and the
scheduling service into a Flask app.
"""

from typing import Any, Dict, Optional

from flask import Flask
from werkzeug.exceptions import HTTPException

from vetcare.controllers import appointment_bp, health_bp, reminder_bp
from vetcare.core import config
from vetcare.core.api_utils import api_response
from vetcare.core.exceptions import InvalidAppointmentError, SchedulingConflictError
from vetcare.core.logging_config import get_logger, setup_logging
from vetcare.domain.interfaces import IAppointmentRepository
from vetcare.services.reminder_scheduler import ReminderScheduler
from vetcare.services.scheduling_service import SchedulingService

logger = get_logger(__name__)


def _build_repository() -> IAppointmentRepository:
    if config.get_appointment_store() == config.STORE_SQL:
        from vetcare.db.session import create_tables, get_sessionmaker
        from vetcare.repositories.sql_appointment_repo import SqlAppointmentRepository

        create_tables()
        return SqlAppointmentRepository(session_factory=get_sessionmaker())

    from vetcare.repositories.appointment_repo import InMemoryAppointmentRepository

    return InMemoryAppointmentRepository()


def _start_background_scheduler(app: Flask, reminders: ReminderScheduler) -> None:
    from apscheduler.schedulers.background import BackgroundScheduler
    from apscheduler.triggers.interval import IntervalTrigger

    scheduler = BackgroundScheduler(timezone=config.APP_TZ)
    mode = config.get_reminder_dispatch_mode()

    if mode == config.DISPATCH_MODE_TIMERS:
        reminders.timer_backend = scheduler
    else:
        poll_seconds = config.get_reminder_poll_seconds()
        scheduler.add_job(
            reminders.dispatch_due,
            trigger=IntervalTrigger(seconds=poll_seconds),
            id="reminder_dispatch",
            name="Dispatch due reminders",
            replace_existing=True,
        )
        logger.info(
            "Reminder polling job registered",
            extra={
                "context": {
                    "job_id": "reminder_dispatch",
                    "interval_seconds": poll_seconds,
                }
            },
        )

    scheduler.start()
    logger.info(
        "Background reminder scheduler started",
        extra={"context": {"dispatch_mode": mode}},
    )

    # Store scheduler reference to prevent garbage collection
    app.config["SCHEDULER"] = scheduler


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(InvalidAppointmentError)
    def handle_invalid_appointment(e):
        return api_response(False, str(e), status_code=422)

    @app.errorhandler(SchedulingConflictError)
    def handle_conflict(e):
        return api_response(
            False,
            str(e),
            {
                "provider_id": e.provider_id,
                "date": e.scheduled_date.isoformat(),
                "time": e.time,
                "existing_id": e.existing_id,
            },
            status_code=409,
        )

    @app.errorhandler(ValueError)
    def handle_validation_error(e):
        return api_response(False, str(e), status_code=400)

    @app.errorhandler(KeyError)
    def handle_missing_field(e):
        return api_response(False, f"Missing field: {e}", status_code=400)

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return api_response(False, e.description or e.name, status_code=e.code or 500)


def create_app(
    config_overrides: Optional[Dict[str, Any]] = None,
    repository: Optional[IAppointmentRepository] = None,
    reminder_scheduler: Optional[ReminderScheduler] = None,
) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.update(config_overrides or {})

    setup_logging(
        app,
        log_level=config.get_log_level(),
        log_to_file=config.get_log_to_file(),
        use_json_format=config.get_log_json(),
    )
    config.log_scheduling_config()

    reminders = reminder_scheduler or ReminderScheduler()
    service = SchedulingService(repository or _build_repository(), reminders)

    app.config["REMINDER_SCHEDULER"] = reminders
    app.config["SCHEDULING_SERVICE"] = service
    app.config.setdefault("SCHEDULER", None)

    if config.get_reminder_scheduler_enabled():
        _start_background_scheduler(app, reminders)
    else:
        logger.info(
            "Background reminder scheduler disabled by environment variable",
            extra={"context": {"ENABLE_REMINDER_SCHEDULER": "false"}},
        )

    app.register_blueprint(health_bp)
    app.register_blueprint(appointment_bp)
    app.register_blueprint(reminder_bp)
    _register_error_handlers(app)

    return app
