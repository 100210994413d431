"""
Logging setup for VetCare.

Every module logs through ``get_logger(__name__)`` and attaches structured
data under ``extra={"context": {...}}``. ``setup_logging`` decides where
those records end up:

- stdout, colored for development or JSON for log shippers
- optional rotating JSON files (``vetcare.log`` and ``vetcare_errors.log``)
- one line per HTTP request and response when a Flask app is given

Usage:
    from vetcare.core.logging_config import setup_logging, get_logger

    setup_logging(app, log_level="INFO")

    logger = get_logger(__name__)
    logger.info("Appointment booked", extra={"context": {"appointment_id": 7}})
"""

import json
import logging
import logging.handlers
import sys
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from flask import Flask, g, request

_MAX_LOG_BYTES = 10 * 1024 * 1024
_LOG_BACKUPS = 5
_CONSOLE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Libraries that are chatty at INFO
_QUIET_LOGGERS = ("werkzeug", "apscheduler")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, carrying the ``context`` extra if present."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        context = getattr(record, "context", None)
        if context is not None:
            payload["context"] = context
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        # Dates and enums in context are rendered with str()
        return json.dumps(payload, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored level names for terminals."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # Other handlers share the record, so color a copy
        colored = logging.makeLogRecord(record.__dict__)
        color = self.LEVEL_COLORS.get(colored.levelname, self.RESET)
        colored.levelname = f"{color}{colored.levelname:8}{self.RESET}"
        return super().format(colored)


def _resolve_level(log_level: Union[int, str]) -> int:
    if isinstance(log_level, int):
        return log_level
    return getattr(logging, str(log_level).upper(), logging.INFO)


def _console_handler(level: int, use_json_format: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if use_json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            ConsoleFormatter(_CONSOLE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
    return handler


def _file_handlers(level: int, log_dir: Path) -> List[logging.Handler]:
    """Rotating JSON files: everything at ``level`` plus errors on their own."""
    log_dir.mkdir(parents=True, exist_ok=True)
    handlers: List[logging.Handler] = []
    for filename, handler_level in (
        ("vetcare.log", level),
        ("vetcare_errors.log", logging.ERROR),
    ):
        handler = logging.handlers.RotatingFileHandler(
            log_dir / filename,
            maxBytes=_MAX_LOG_BYTES,
            backupCount=_LOG_BACKUPS,
            encoding="utf-8",
        )
        handler.setLevel(handler_level)
        handler.setFormatter(JSONFormatter())
        handlers.append(handler)
    return handlers


def _install_request_logging(app: Flask) -> None:
    request_logger = logging.getLogger("vetcare.http")

    @app.before_request
    def _log_request_start():
        g.request_id = uuid.uuid4().hex[:12]
        g.request_started = time.perf_counter()
        request_logger.info(
            f"--> {request.method} {request.path}",
            extra={
                "context": {
                    "request_id": g.request_id,
                    "method": request.method,
                    "path": request.path,
                    "remote_addr": request.remote_addr,
                }
            },
        )

    @app.after_request
    def _log_request_end(response):
        started = g.get("request_started")
        if started is None:
            return response
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        request_logger.info(
            f"<-- {request.method} {request.path} {response.status_code} "
            f"({elapsed_ms}ms)",
            extra={
                "context": {
                    "request_id": g.get("request_id"),
                    "status_code": response.status_code,
                    "duration_ms": elapsed_ms,
                }
            },
        )
        return response


def setup_logging(
    app: Optional[Flask] = None,
    log_level: Union[int, str] = "INFO",
    log_to_file: bool = False,
    use_json_format: bool = False,
    log_dir: Optional[Path] = None,
) -> None:
    """
    Configure the root logger for the process.

    Args:
        app: Flask application; when given, requests and responses are logged
        log_level: Level as an int (logging.INFO) or a name ("INFO")
        log_to_file: Also write rotating JSON files under log_dir
        use_json_format: JSON on stdout instead of colored text
        log_dir: Directory for log files (defaults to ./logs)

    Calling it again replaces the handlers installed by the previous call.
    A log directory that cannot be created leaves console logging in place.
    """
    level = _resolve_level(log_level)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)
    root_logger.setLevel(level)
    root_logger.addHandler(_console_handler(level, use_json_format))

    if log_to_file:
        target_dir = log_dir or Path.cwd() / "logs"
        try:
            for handler in _file_handlers(level, target_dir):
                root_logger.addHandler(handler)
        except OSError as e:
            root_logger.warning(
                f"Cannot write logs under {target_dir}: {e}. Logging to console only.",
                extra={"context": {"component": "logging_setup"}},
            )

    if app is not None:
        _install_request_logging(app)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("vetcare").setLevel(level)
    get_logger(__name__).info(
        "Logging configured",
        extra={
            "context": {
                "level": logging.getLevelName(level),
                "log_to_file": log_to_file,
                "json_format": use_json_format,
            }
        },
    )


def get_logger(name: str) -> logging.Logger:
    """Module logger; pass ``__name__``."""
    return logging.getLogger(name)
