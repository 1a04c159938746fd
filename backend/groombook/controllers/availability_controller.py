"""
Availability controller - free slots for a selection on a given day.
"""

from flask import Blueprint, request

from groombook.core.api_utils import api_response
from groombook.core.auth_decorators import get_current_user, jwt_required
from groombook.db.session import SessionLocal
from groombook.schemas.dtos import AvailabilityRequest
from groombook.services.factory import build_availability_service

availability_bp = Blueprint("availability", __name__, url_prefix="/api/v1/businesses")


@availability_bp.route("/<int:business_id>/availability", methods=["POST"])
@jwt_required
def get_availability(business_id: int):
    """
    Return bookable start times.

    Request body:
        date: YYYY-MM-DD in the business's local calendar
        location_type: IN_SALON or AT_HOME
        items: [{"pet_id": int, "service_id": int}]
        groomer_id: optional; required when the business has staff
        home_address: required for AT_HOME
        not_before: optional ISO datetime; earlier slots are dropped
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    availability_request = AvailabilityRequest.from_dict(data)

    db = SessionLocal()
    try:
        result = build_availability_service(db).get_availability(
            get_current_user(), business_id, availability_request
        )
    finally:
        db.close()
    return api_response(True, "Availability retrieved", result.to_dict())
