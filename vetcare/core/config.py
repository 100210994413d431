"""
Centralized configuration module for application-wide settings.

Values are read from the environment (a local ``.env`` file is loaded
first) so tests and deployments can override them without code changes.
"""

import logging
import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

_TRUTHY = ("true", "1", "yes")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in _TRUTHY


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning(
            f"Invalid integer '{raw}' for {name}. Falling back to {default}."
        )
        return default
    if value < minimum:
        logger.warning(
            f"{name}={value} is below the minimum of {minimum}. "
            f"Falling back to {default}."
        )
        return default
    return value


# ===========================
# Timezone Configuration
# ===========================


def get_app_timezone() -> ZoneInfo:
    """
    Get the clinic timezone from environment variable.

    Returns:
        ZoneInfo: Application timezone (defaults to UTC if not configured)

    Environment Variables:
        TZ: Timezone identifier (e.g., 'America/Lima', 'UTC')
            Default: 'UTC'
    """
    tz_name = os.getenv("TZ", "UTC")

    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.warning(
            f"Invalid timezone '{tz_name}' specified in TZ environment variable. "
            f"Falling back to UTC. Error: {e}"
        )
        return ZoneInfo("UTC")


# Global timezone instance - initialized once at import time
APP_TZ = get_app_timezone()


# ===========================
# Reminder Configuration
# ===========================

DISPATCH_MODE_TIMERS = "timers"
DISPATCH_MODE_POLLING = "polling"


def get_reminder_dispatch_mode() -> str:
    """
    Get how pending reminders are driven.

    Environment Variables:
        REMINDER_DISPATCH_MODE:
            'timers'  - one APScheduler DateTrigger job per reminder (default)
            'polling' - a single IntervalTrigger job calls dispatch_due()
    """
    mode = os.getenv("REMINDER_DISPATCH_MODE", DISPATCH_MODE_TIMERS).lower()
    if mode not in (DISPATCH_MODE_TIMERS, DISPATCH_MODE_POLLING):
        logger.warning(
            f"Unknown REMINDER_DISPATCH_MODE '{mode}'. Falling back to "
            f"'{DISPATCH_MODE_TIMERS}'."
        )
        return DISPATCH_MODE_TIMERS
    return mode


def get_reminder_poll_seconds() -> int:
    """Interval of the polling dispatch job (REMINDER_POLL_SECONDS, default 60)."""
    return _env_int("REMINDER_POLL_SECONDS", 60, minimum=1)


def get_appointment_reminder_hour() -> int:
    """Local hour at which day-before appointment reminders go out (default 10)."""
    hour = _env_int("APPOINTMENT_REMINDER_HOUR", 10)
    if hour > 23:
        logger.warning(
            f"APPOINTMENT_REMINDER_HOUR={hour} is not a valid hour. Falling back to 10."
        )
        return 10
    return hour


def get_vaccination_lead_days() -> int:
    """Days before vaccine expiry to remind the owner (default 7)."""
    return _env_int("VACCINATION_REMINDER_LEAD_DAYS", 7)


def get_reminder_scheduler_enabled() -> bool:
    """
    Whether create_app() starts the APScheduler background scheduler.

    Environment Variables:
        ENABLE_REMINDER_SCHEDULER: 'true' (default) or 'false'
    """
    return _env_bool("ENABLE_REMINDER_SCHEDULER", "true")


# ===========================
# Persistence Configuration
# ===========================

STORE_MEMORY = "memory"
STORE_SQL = "sql"


def get_database_url() -> str:
    return os.getenv("DATABASE_URL", "sqlite:///vetcare.db")


def get_appointment_store() -> str:
    """Appointment repository backend: 'memory' (default) or 'sql'."""
    store = os.getenv("APPOINTMENT_STORE", STORE_MEMORY).lower()
    if store not in (STORE_MEMORY, STORE_SQL):
        logger.warning(
            f"Unknown APPOINTMENT_STORE '{store}'. Falling back to '{STORE_MEMORY}'."
        )
        return STORE_MEMORY
    return store


# ===========================
# Logging Configuration
# ===========================


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()


def get_log_json() -> bool:
    return _env_bool("LOG_JSON", "false")


def get_log_to_file() -> bool:
    return _env_bool("LOG_TO_FILE", "false")


def log_scheduling_config():
    """
    Log the active scheduling configuration.

    Called during application startup to provide visibility into the
    timezone and reminder settings in effect.
    """
    logger.info(
        "Scheduling configuration initialized",
        extra={
            "context": {
                "timezone": str(APP_TZ),
                "dispatch_mode": get_reminder_dispatch_mode(),
                "poll_seconds": get_reminder_poll_seconds(),
                "appointment_reminder_hour": get_appointment_reminder_hour(),
                "vaccination_lead_days": get_vaccination_lead_days(),
                "appointment_store": get_appointment_store(),
            }
        },
    )
