"""
Availability service: free start times for a selection on a given day.

Reads here are informational. A slot that is taken between this query and
the booking request is rejected by the booking transaction.
"""

import logging
import time
from datetime import date, datetime
from typing import Iterator, Optional

from groombook.core.exceptions import InvalidSelection
from groombook.core.logging_config import log_performance
from groombook.domain.entities import Actor, Business, Resource
from groombook.domain.interfaces import IAppointmentReader
from groombook.domain.slots import day_bounds
from groombook.domain.slots import generate_slots as generate_day_slots
from groombook.schemas.dtos import AvailabilityRequest, AvailabilityResponse
from groombook.services.selection_service import SelectionService

logger = logging.getLogger(__name__)


def parse_target_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise InvalidSelection("Invalid date format. Use YYYY-MM-DD.") from None


class AvailabilityService:
    def __init__(
        self, appointment_repo: IAppointmentReader, selection_service: SelectionService
    ):
        self.appointment_repo = appointment_repo
        self.selection_service = selection_service

    def generate_slots(
        self,
        business: Business,
        groomer_id: int,
        target_date: date,
        duration_minutes: int,
        not_before: Optional[datetime] = None,
    ) -> Iterator[datetime]:
        """Lazily yield free start times on ``groomer_id``'s calendar."""
        start, end = day_bounds(business, target_date)
        existing = self.appointment_repo.list_intersecting(
            Resource(business_id=business.id, groomer_id=groomer_id), start, end
        )
        return generate_day_slots(
            business, target_date, duration_minutes, existing, not_before=not_before
        )

    def get_availability(
        self, actor: Actor, business_id: int, request: AvailabilityRequest
    ) -> AvailabilityResponse:
        request.validate()
        started = time.perf_counter()

        target_date = parse_target_date(request.date)
        business = self.selection_service.get_business(business_id)
        quote = self.selection_service.quote(
            business,
            actor,
            request.location_type,
            [item.to_domain() for item in request.items],
            home_address=request.home_address,
        )
        groomer_id = self.selection_service.resolve_groomer(business, request.groomer_id)

        slots = list(
            self.generate_slots(
                business,
                groomer_id,
                target_date,
                quote.total_minutes,
                not_before=request.not_before,
            )
        )

        log_performance(
            "get_availability",
            (time.perf_counter() - started) * 1000,
            business_id=business.id,
            groomer_id=groomer_id,
            date=request.date,
            slot_count=len(slots),
        )

        return AvailabilityResponse(
            date=target_date.isoformat(),
            location_type=request.location_type.value,
            duration_minutes=quote.total_minutes,
            groomer_id=groomer_id,
            slots=slots,
        )
