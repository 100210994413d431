"""
Common API utilities for consistent response formatting across all controllers.
"""

from datetime import date, datetime
from typing import Any, Optional

from flask import jsonify


def api_response(
    success: bool, message: str, data: Optional[Any] = None, status_code: int = 200
) -> tuple:
    """
    Standardized API response format for all endpoints.

    Args:
        success: Whether the operation was successful
        message: Human-readable message about the operation
        data: Optional data payload
        status_code: HTTP status code

    Returns:
        Tuple of (json_response, status_code)
    """
    response = {"success": success, "message": message}

    if data is not None:
        response["data"] = data

    return jsonify(response), status_code


def parse_date(value: Optional[str], field: str = "date") -> date:
    """Parse an ISO calendar date (YYYY-MM-DD) from a request value."""
    if not value:
        raise ValueError(f"{field} is required")
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be an ISO date (YYYY-MM-DD)")


def parse_datetime(value: Optional[str], field: str = "due_at") -> datetime:
    """Parse an ISO-8601 datetime from a request value."""
    if not value:
        raise ValueError(f"{field} is required")
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be an ISO-8601 datetime")
