"""Unit tests for request parsing and response serialization."""

from datetime import timedelta, timezone

import pytest

from groombook.domain.entities import AppointmentStatus, LocationType
from groombook.schemas.dtos import (
    AppointmentResponse,
    AvailabilityRequest,
    BookingRequest,
    RescheduleRequest,
    StatusUpdateRequest,
)
from groombook.utils.time_utils import ensure_utc, parse_iso_datetime, to_utc
from tests.factories.domain_factories import make_appointment, utc


def booking_payload(**overrides):
    payload = {
        "business_id": 1,
        "location_type": "IN_SALON",
        "start_time": "2030-01-07T10:00:00+01:00",
        "items": [{"pet_id": 3, "service_id": 4}],
    }
    payload.update(overrides)
    return payload


@pytest.mark.unit
class TestBookingRequest:
    def test_parses_payload(self):
        request = BookingRequest.from_dict(
            booking_payload(
                items=[{"pet_id": 3, "service_id": 4, "extras": {"bow": "red"}}],
                groomer_id=8,
                home_zone="  ",
            )
        )

        assert request.location_type == LocationType.IN_SALON
        assert to_utc(request.start_time) == utc(2030, 1, 7, 9, 0)
        assert request.items[0].to_domain().extras == {"bow": "red"}
        assert request.groomer_id == 8
        assert request.home_zone is None
        request.validate()

    def test_utc_designator_accepted(self):
        request = BookingRequest.from_dict(booking_payload(start_time="2030-01-07T09:00:00Z"))

        assert request.start_time == utc(2030, 1, 7, 9, 0)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"business_id": "1"},
            {"business_id": True},
            {"location_type": "MOBILE"},
            {"start_time": "2030-01-07T10:00:00"},
            {"start_time": "tomorrow"},
            {"start_time": None},
            {"items": "3:4"},
            {"items": [{"pet_id": 3}]},
            {"items": [3]},
            {"items": [{"pet_id": 3, "service_id": 4, "extras": "red"}]},
            {"home_address": 12},
        ],
    )
    def test_rejects_malformed_payloads(self, overrides):
        with pytest.raises(ValueError):
            BookingRequest.from_dict(booking_payload(**overrides))

    def test_validate_rejects_non_positive_ids(self):
        request = BookingRequest.from_dict(booking_payload(items=[{"pet_id": 0, "service_id": 4}]))

        with pytest.raises(ValueError, match="pet_id"):
            request.validate()


@pytest.mark.unit
class TestOtherRequests:
    def test_availability_request(self):
        request = AvailabilityRequest.from_dict(
            {
                "date": "2030-01-07",
                "location_type": "AT_HOME",
                "items": [{"pet_id": 1, "service_id": 2}],
                "home_address": "1 Calle Mayor",
                "not_before": "2030-01-07T12:00:00+01:00",
            }
        )

        assert request.location_type == LocationType.AT_HOME
        assert request.not_before.utcoffset() == timedelta(hours=1)

    def test_availability_request_requires_date(self):
        with pytest.raises(ValueError, match="date"):
            AvailabilityRequest.from_dict({"location_type": "IN_SALON", "items": []})

    def test_reschedule_request(self):
        request = RescheduleRequest.from_dict({"start_time": "2030-01-08T09:00:00+00:00"})

        assert request.start_time == utc(2030, 1, 8, 9, 0)
        assert request.moves_window

    def test_reschedule_request_address_only(self):
        request = RescheduleRequest.from_dict({"home_zone": " North "})
        request.validate()

        assert request.start_time is None
        assert request.home_zone == "North"
        assert not request.moves_window

    def test_reschedule_request_needs_some_change(self):
        request = RescheduleRequest.from_dict({})

        with pytest.raises(ValueError, match="Provide start_time"):
            request.validate()

    def test_status_update_request(self):
        request = StatusUpdateRequest.from_dict({"status": "CONFIRMED"})

        assert request.status == AppointmentStatus.CONFIRMED
        with pytest.raises(ValueError, match="status must be one of"):
            StatusUpdateRequest.from_dict({"status": "ARCHIVED"})


@pytest.mark.unit
class TestAppointmentResponse:
    def test_to_dict(self):
        appointment = make_appointment(utc(2030, 1, 7, 9, 0), 45, appointment_id=12)

        payload = AppointmentResponse.from_domain(appointment).to_dict()

        assert payload["id"] == 12
        assert payload["status"] == "PENDING"
        assert payload["location_type"] == "IN_SALON"
        assert payload["start_time"] == "2030-01-07T09:00:00+00:00"
        assert payload["duration_minutes"] == 45
        assert payload["items"][0]["calculated_duration_minutes"] == 45
        assert payload["created_at"] is None


@pytest.mark.unit
class TestTimeUtils:
    def test_to_utc_rejects_naive(self):
        with pytest.raises(ValueError):
            to_utc(utc(2030, 1, 1).replace(tzinfo=None))

    def test_ensure_utc_reattaches_timezone(self):
        naive = utc(2030, 1, 1, 8).replace(tzinfo=None)

        assert ensure_utc(naive).tzinfo == timezone.utc
        assert ensure_utc(None) is None

    def test_parse_requires_offset(self):
        with pytest.raises(ValueError):
            parse_iso_datetime("2030-01-01T08:00:00")
