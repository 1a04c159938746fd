"""
Appointment controller - HTTP endpoints for booking, rescheduling,
cancelling and status changes.

Controllers only parse requests and shape responses. Scheduling errors
propagate to the handlers registered in ``create_app``.
"""

import logging
from typing import Any, Dict

from flask import Blueprint, request

from groombook.core.api_utils import api_response
from groombook.core.auth_decorators import get_current_user, jwt_required, roles_required
from groombook.core.limiter_config import BOOKING_WRITE_LIMIT, limiter
from groombook.db.session import SessionLocal
from groombook.domain.entities import UserRole
from groombook.schemas.dtos import (
    AppointmentResponse,
    BookingRequest,
    RescheduleRequest,
    StatusUpdateRequest,
)
from groombook.services.factory import build_booking_service

logger = logging.getLogger(__name__)

appointment_bp = Blueprint("appointments", __name__, url_prefix="/api/v1/appointments")


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


@appointment_bp.route("", methods=["POST"])
@limiter.limit(BOOKING_WRITE_LIMIT)
@jwt_required
@roles_required(UserRole.CLIENT)
def create_appointment():
    """Book an appointment for the authenticated client."""
    booking_request = BookingRequest.from_dict(_json_body())
    db = SessionLocal()
    try:
        appointment = build_booking_service(db).book(get_current_user(), booking_request)
    finally:
        db.close()
    return api_response(
        True,
        "Appointment created",
        AppointmentResponse.from_domain(appointment).to_dict(),
        201,
    )


@appointment_bp.route("", methods=["GET"])
@jwt_required
def list_appointments():
    db = SessionLocal()
    try:
        appointments = build_booking_service(db).list_for(get_current_user())
    finally:
        db.close()
    return api_response(
        True,
        "Appointments retrieved",
        [AppointmentResponse.from_domain(a).to_dict() for a in appointments],
    )


@appointment_bp.route("/<int:appointment_id>", methods=["GET"])
@jwt_required
def get_appointment(appointment_id: int):
    db = SessionLocal()
    try:
        appointment = build_booking_service(db).get_for(get_current_user(), appointment_id)
    finally:
        db.close()
    return api_response(
        True, "Appointment retrieved", AppointmentResponse.from_domain(appointment).to_dict()
    )


@appointment_bp.route("/<int:appointment_id>", methods=["PATCH"])
@limiter.limit(BOOKING_WRITE_LIMIT)
@jwt_required
@roles_required(UserRole.CLIENT, UserRole.GROOMER_OWNER)
def reschedule_appointment(appointment_id: int):
    """Move an appointment (keeping its duration) and/or change its address."""
    reschedule_request = RescheduleRequest.from_dict(_json_body())
    db = SessionLocal()
    try:
        appointment = build_booking_service(db).reschedule(
            get_current_user(), appointment_id, reschedule_request
        )
    finally:
        db.close()
    return api_response(
        True,
        "Appointment rescheduled" if reschedule_request.moves_window else "Appointment updated",
        AppointmentResponse.from_domain(appointment).to_dict(),
    )


@appointment_bp.route("/<int:appointment_id>/cancel", methods=["POST"])
@limiter.limit(BOOKING_WRITE_LIMIT)
@jwt_required
@roles_required(UserRole.CLIENT, UserRole.GROOMER_OWNER)
def cancel_appointment(appointment_id: int):
    data = _json_body()
    reason = data.get("reason")
    if reason is not None and not isinstance(reason, str):
        raise ValueError("reason must be a string")
    db = SessionLocal()
    try:
        appointment = build_booking_service(db).cancel(
            get_current_user(), appointment_id, reason=reason
        )
    finally:
        db.close()
    return api_response(
        True,
        "Appointment cancelled",
        AppointmentResponse.from_domain(appointment).to_dict(),
    )


@appointment_bp.route("/<int:appointment_id>/status", methods=["PATCH"])
@jwt_required
@roles_required(UserRole.GROOMER_OWNER)
def update_appointment_status(appointment_id: int):
    status_request = StatusUpdateRequest.from_dict(_json_body())
    db = SessionLocal()
    try:
        appointment = build_booking_service(db).update_status(
            get_current_user(),
            appointment_id,
            status_request.status,
            cancel_reason=status_request.cancel_reason,
        )
    finally:
        db.close()
    return api_response(
        True,
        "Appointment status updated",
        AppointmentResponse.from_domain(appointment).to_dict(),
    )
