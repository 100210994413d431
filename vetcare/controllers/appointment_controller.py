"""
Appointment controller: HTTP concerns only, business rules live in
SchedulingService.

InvalidAppointmentError and SchedulingConflictError propagate to the
error handlers registered in create_app().
"""

from flask import Blueprint, current_app, request

from vetcare.core.api_utils import api_response, parse_date
from vetcare.schemas.dtos import AppointmentResponse, BookAppointmentRequest
from vetcare.services.scheduling_service import SchedulingService

appointment_bp = Blueprint("appointments", __name__, url_prefix="/api/appointments")


def _service() -> SchedulingService:
    return current_app.config["SCHEDULING_SERVICE"]


@appointment_bp.route("", methods=["POST"])
def book_appointment():
    """Book an appointment from a JSON payload."""
    book_request = BookAppointmentRequest.from_dict(request.get_json(silent=True) or {})
    book_request.validate()

    appointment = _service().book(book_request.to_domain())
    return api_response(
        True,
        "Appointment booked",
        AppointmentResponse.from_domain(appointment).to_dict(),
        201,
    )


@appointment_bp.route("", methods=["GET"])
def list_appointments():
    """List appointments, optionally filtered by provider_id and/or date."""
    service = _service()
    provider_id = request.args.get("provider_id", type=int)
    day = request.args.get("date")

    if provider_id is not None:
        appointments = service.list_by_provider(provider_id)
        if day:
            target = parse_date(day)
            appointments = [a for a in appointments if a.scheduled_date == target]
    elif day:
        appointments = service.list_by_date(parse_date(day))
    else:
        appointments = service.list_all()

    return api_response(
        True,
        f"{len(appointments)} appointment(s)",
        [AppointmentResponse.from_domain(a).to_dict() for a in appointments],
    )


@appointment_bp.route("/availability", methods=["GET"])
def check_availability():
    """Whether a provider's slot is free."""
    provider_id = request.args.get("provider_id", type=int)
    time = request.args.get("time", "")
    if provider_id is None or not time:
        raise ValueError("provider_id, date and time are required")
    day = parse_date(request.args.get("date"))

    available = _service().is_available(provider_id, day, time)
    return api_response(
        True,
        "Slot available" if available else "Slot taken",
        {
            "provider_id": provider_id,
            "date": day.isoformat(),
            "time": time,
            "available": available,
        },
    )


@appointment_bp.route("/<int:appointment_id>", methods=["GET"])
def get_appointment(appointment_id: int):
    appointment = _service().get(appointment_id)
    if appointment is None:
        return api_response(False, "Appointment not found", status_code=404)
    return api_response(
        True, "Appointment found", AppointmentResponse.from_domain(appointment).to_dict()
    )


@appointment_bp.route("/<int:appointment_id>/cancel", methods=["POST"])
def cancel_appointment(appointment_id: int):
    if _service().cancel(appointment_id):
        return api_response(True, "Appointment cancelled")
    return api_response(
        False, "Appointment not found or already completed", status_code=404
    )


@appointment_bp.route("/<int:appointment_id>/complete", methods=["POST"])
def complete_appointment(appointment_id: int):
    data = request.get_json(silent=True) or {}
    if _service().complete(appointment_id, data.get("notes", "")):
        return api_response(True, "Appointment completed")
    return api_response(
        False, "Appointment not found or not confirmed", status_code=404
    )
