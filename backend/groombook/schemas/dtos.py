"""
Data Transfer Objects (DTOs) and validation schemas.

Request DTOs parse the JSON body (``from_dict``) and check its shape
(``validate``); both raise ValueError, rendered as a 400 validation error.
Business rules live in the services. Response DTOs are built from domain
entities with ``from_domain`` and serialized with ``to_dict``.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from groombook.domain.entities import (
    Appointment,
    AppointmentStatus,
    BookingItem,
    LocationType,
)
from groombook.utils.time_utils import parse_iso_datetime


def _require_int(data: Dict[str, Any], key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return value


def _optional_int(data: Dict[str, Any], key: str) -> Optional[int]:
    if data.get(key) is None:
        return None
    return _require_int(data, key)


def _optional_str(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value.strip() or None


def _parse_location_type(value: Any) -> LocationType:
    try:
        return LocationType(value)
    except ValueError:
        allowed = ", ".join(location.value for location in LocationType)
        raise ValueError(f"location_type must be one of: {allowed}") from None


def _parse_datetime(data: Dict[str, Any], key: str) -> datetime:
    try:
        return parse_iso_datetime(data.get(key))
    except (TypeError, ValueError):
        raise ValueError(
            f"{key} must be an ISO-8601 datetime with a timezone offset"
        ) from None


def _parse_items(raw: Any) -> List["BookingItemRequest"]:
    if not isinstance(raw, list):
        raise ValueError("items must be a list")
    items = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValueError("Each item must be an object")
        items.append(BookingItemRequest.from_dict(entry))
    return items


@dataclass
class BookingItemRequest:
    """One requested (pet, service) pair."""

    pet_id: int
    service_id: int
    extras: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BookingItemRequest":
        extras = data.get("extras")
        if extras is not None and not isinstance(extras, dict):
            raise ValueError("extras must be an object")
        return cls(
            pet_id=_require_int(data, "pet_id"),
            service_id=_require_int(data, "service_id"),
            extras=extras,
        )

    def validate(self) -> None:
        if self.pet_id <= 0:
            raise ValueError("Valid pet_id is required")
        if self.service_id <= 0:
            raise ValueError("Valid service_id is required")

    def to_domain(self) -> BookingItem:
        return BookingItem(
            pet_id=self.pet_id, service_id=self.service_id, extras=self.extras
        )


@dataclass
class AvailabilityRequest:
    """DTO for free-slot queries."""

    date: str
    location_type: LocationType
    items: List[BookingItemRequest]
    groomer_id: Optional[int] = None
    home_address: Optional[str] = None
    not_before: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AvailabilityRequest":
        date_value = data.get("date")
        if not isinstance(date_value, str):
            raise ValueError("date is required (YYYY-MM-DD)")
        return cls(
            date=date_value,
            location_type=_parse_location_type(data.get("location_type")),
            items=_parse_items(data.get("items")),
            groomer_id=_optional_int(data, "groomer_id"),
            home_address=_optional_str(data, "home_address"),
            not_before=(
                _parse_datetime(data, "not_before") if data.get("not_before") else None
            ),
        )

    def validate(self) -> None:
        for item in self.items:
            item.validate()


@dataclass
class BookingRequest:
    """DTO for appointment creation requests."""

    business_id: int
    location_type: LocationType
    start_time: datetime
    items: List[BookingItemRequest]
    groomer_id: Optional[int] = None
    home_address: Optional[str] = None
    home_zone: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BookingRequest":
        return cls(
            business_id=_require_int(data, "business_id"),
            location_type=_parse_location_type(data.get("location_type")),
            start_time=_parse_datetime(data, "start_time"),
            items=_parse_items(data.get("items")),
            groomer_id=_optional_int(data, "groomer_id"),
            home_address=_optional_str(data, "home_address"),
            home_zone=_optional_str(data, "home_zone"),
        )

    def validate(self) -> None:
        if self.business_id <= 0:
            raise ValueError("Valid business_id is required")
        if self.start_time.tzinfo is None:
            raise ValueError("start_time must be timezone-aware")
        for item in self.items:
            item.validate()


@dataclass
class RescheduleRequest:
    """DTO for moving an appointment and/or changing its home-visit address.

    ``start_time`` is optional; without it the appointment keeps its window.
    """

    start_time: Optional[datetime] = None
    home_address: Optional[str] = None
    home_zone: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RescheduleRequest":
        return cls(
            start_time=(
                _parse_datetime(data, "start_time")
                if data.get("start_time") is not None
                else None
            ),
            home_address=_optional_str(data, "home_address"),
            home_zone=_optional_str(data, "home_zone"),
        )

    @property
    def moves_window(self) -> bool:
        return self.start_time is not None

    def validate(self) -> None:
        if self.start_time is None:
            if self.home_address is None and self.home_zone is None:
                raise ValueError("Provide start_time, home_address or home_zone")
            return
        if self.start_time.tzinfo is None:
            raise ValueError("start_time must be timezone-aware")


@dataclass
class StatusUpdateRequest:
    """DTO for groomer status changes."""

    status: AppointmentStatus
    cancel_reason: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatusUpdateRequest":
        try:
            status = AppointmentStatus(data.get("status"))
        except ValueError:
            allowed = ", ".join(s.value for s in AppointmentStatus)
            raise ValueError(f"status must be one of: {allowed}") from None
        return cls(status=status, cancel_reason=_optional_str(data, "cancel_reason"))


@dataclass
class AppointmentItemResponse:
    pet_id: int
    service_id: int
    calculated_duration_minutes: int
    extras: Optional[Dict[str, Any]] = None
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "pet_id": self.pet_id,
            "service_id": self.service_id,
            "calculated_duration_minutes": self.calculated_duration_minutes,
            "extras": self.extras,
        }


@dataclass
class AppointmentResponse:
    """DTO for appointment API responses."""

    id: int
    business_id: int
    groomer_id: int
    client_id: int
    location_type: str
    start_time: datetime
    end_time: datetime
    status: str
    cancel_reason: Optional[str] = None
    home_address: Optional[str] = None
    home_zone: Optional[str] = None
    items: List[AppointmentItemResponse] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, appointment: Appointment) -> "AppointmentResponse":
        """Create response from domain entity."""
        return cls(
            id=appointment.id,
            business_id=appointment.business_id,
            groomer_id=appointment.groomer_id,
            client_id=appointment.client_id,
            location_type=appointment.location_type.value,
            start_time=appointment.start_time,
            end_time=appointment.end_time,
            status=appointment.status.value,
            cancel_reason=appointment.cancel_reason,
            home_address=appointment.home_address,
            home_zone=appointment.home_zone,
            items=[
                AppointmentItemResponse(
                    id=item.id,
                    pet_id=item.pet_id,
                    service_id=item.service_id,
                    calculated_duration_minutes=item.calculated_duration_minutes,
                    extras=item.extras,
                )
                for item in appointment.items
            ],
            created_at=appointment.created_at,
            updated_at=appointment.updated_at,
        )

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "business_id": self.business_id,
            "groomer_id": self.groomer_id,
            "client_id": self.client_id,
            "location_type": self.location_type,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_minutes": self.duration_minutes,
            "status": self.status,
            "cancel_reason": self.cancel_reason,
            "home_address": self.home_address,
            "home_zone": self.home_zone,
            "items": [item.to_dict() for item in self.items],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class AvailabilityResponse:
    """DTO for free-slot query results."""

    date: str
    location_type: str
    duration_minutes: int
    groomer_id: int
    slots: List[datetime] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "location_type": self.location_type,
            "duration_minutes": self.duration_minutes,
            "groomer_id": self.groomer_id,
            "slots": [slot.isoformat() for slot in self.slots],
        }
