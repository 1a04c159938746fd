"""
Domain entities - pure business records, no framework dependencies.

Repositories map database rows to these dataclasses; services and the
scheduling functions only ever see these types.
"""

from dataclasses import dataclass, field
from datetime import datetime, time
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional
from zoneinfo import ZoneInfo

from groombook.core import config
from groombook.core.exceptions import BusinessConfigurationError


class UserRole(str, Enum):
    GROOMER_OWNER = "GROOMER_OWNER"
    GROOMER_STAFF = "GROOMER_STAFF"
    CLIENT = "CLIENT"
    ADMIN = "ADMIN"


class Species(str, Enum):
    DOG = "DOG"
    CAT = "CAT"


class PetSize(str, Enum):
    MINI = "MINI"
    SMALL = "SMALL"
    MEDIUM = "MEDIUM"
    LARGE = "LARGE"
    GIANT = "GIANT"


class LocationType(str, Enum):
    IN_SALON = "IN_SALON"
    AT_HOME = "AT_HOME"


class AppointmentStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


@dataclass(frozen=True)
class Actor:
    """Authenticated caller as supplied by the identity collaborator."""

    id: int
    role: UserRole
    email: Optional[str] = None


@dataclass(frozen=True)
class Resource:
    """Schedulable calendar: a business, narrowed to one groomer."""

    business_id: int
    groomer_id: int

    @property
    def key(self) -> str:
        return f"{self.business_id}:{self.groomer_id}"


def parse_clock_time(value: str) -> time:
    """Parse an ``HH:MM`` working-hour string."""
    try:
        hour_str, minute_str = value.split(":")
        return time(hour=int(hour_str), minute=int(minute_str))
    except (AttributeError, ValueError) as e:
        raise BusinessConfigurationError(
            f"Working hour '{value}' must be in HH:MM format"
        ) from e


@dataclass(frozen=True)
class WorkingHourBlock:
    """Opening block for one weekday (0 = Sunday ... 6 = Saturday)."""

    weekday: int
    start_time: time
    end_time: time

    def __post_init__(self):
        if not 0 <= self.weekday <= 6:
            raise BusinessConfigurationError(
                f"Weekday must be between 0 and 6, got {self.weekday}"
            )
        if self.start_time >= self.end_time:
            raise BusinessConfigurationError(
                f"Working hours start {self.start_time} must be before end {self.end_time}"
            )

    @classmethod
    def from_strings(cls, weekday: int, start: str, end: str) -> "WorkingHourBlock":
        return cls(
            weekday=weekday,
            start_time=parse_clock_time(start),
            end_time=parse_clock_time(end),
        )


@dataclass
class Business:
    """Business configuration read from the business registry."""

    id: int
    owner_user_id: int
    name: str = ""
    offers_in_salon: bool = True
    offers_at_home: bool = False
    max_dogs_per_home_visit: Optional[int] = None
    home_visit_setup_minutes: int = 0
    home_visit_teardown_minutes: int = 0
    default_transport_minutes: int = 0
    min_hours_before_cancel_or_reschedule: int = 24
    timezone: Optional[str] = None
    working_hours: List[WorkingHourBlock] = field(default_factory=list)

    def __post_init__(self):
        """Validate configuration rules."""
        if self.offers_at_home and not self.max_dogs_per_home_visit:
            raise BusinessConfigurationError(
                "max_dogs_per_home_visit is required when offers_at_home is true."
            )
        if self.max_dogs_per_home_visit is not None and self.max_dogs_per_home_visit <= 0:
            raise BusinessConfigurationError("max_dogs_per_home_visit must be positive.")
        for minutes in (
            self.home_visit_setup_minutes,
            self.home_visit_teardown_minutes,
            self.default_transport_minutes,
            self.min_hours_before_cancel_or_reschedule,
        ):
            if minutes < 0:
                raise BusinessConfigurationError(
                    "Home-visit overheads and notice period cannot be negative."
                )

    @property
    def tz(self) -> ZoneInfo:
        if self.timezone:
            return ZoneInfo(self.timezone)
        return config.APP_TZ

    @property
    def home_visit_overhead_minutes(self) -> int:
        """Setup + teardown + transport, added once per at-home appointment."""
        return (
            self.home_visit_setup_minutes
            + self.home_visit_teardown_minutes
            + self.default_transport_minutes
        )

    def offers(self, location_type: LocationType) -> bool:
        if location_type == LocationType.IN_SALON:
            return self.offers_in_salon
        return self.offers_at_home

    def blocks_for_weekday(self, weekday: int) -> List[WorkingHourBlock]:
        blocks = [block for block in self.working_hours if block.weekday == weekday]
        return sorted(blocks, key=lambda block: block.start_time)


@dataclass
class Service:
    id: int
    business_id: int
    name: str
    species_supported: FrozenSet[Species] = frozenset()
    locations_supported: FrozenSet[LocationType] = frozenset()
    is_active: bool = True

    def supports_species(self, species: Species) -> bool:
        return species in self.species_supported

    def supports_location(self, location_type: LocationType) -> bool:
        return location_type in self.locations_supported


@dataclass(frozen=True)
class DurationRule:
    """How long a service takes for a species, optionally narrowed by size or breed."""

    species: Species
    base_duration_minutes: int
    size: Optional[PetSize] = None
    breed: Optional[str] = None
    is_default_for_species: bool = False
    id: Optional[int] = None
    service_id: Optional[int] = None

    def __post_init__(self):
        if self.base_duration_minutes <= 0:
            raise ValueError("Duration must be positive")


@dataclass
class Pet:
    id: int
    owner_user_id: int
    species: Species
    size: PetSize
    breed: str
    name: str = ""


@dataclass(frozen=True)
class BookingItem:
    """One requested (pet, service) pair."""

    pet_id: int
    service_id: int
    extras: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class AppointmentItem:
    """Booked line item; ``calculated_duration_minutes`` is frozen at booking time."""

    pet_id: int
    service_id: int
    calculated_duration_minutes: int
    extras: Optional[Dict[str, Any]] = None
    id: Optional[int] = None
    appointment_id: Optional[int] = None


@dataclass
class Appointment:
    """Booked appointment occupying ``[start_time, end_time)`` on a resource."""

    business_id: int
    client_id: int
    location_type: LocationType
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus = AppointmentStatus.PENDING
    groomer_id: Optional[int] = None
    id: Optional[int] = None
    cancel_reason: Optional[str] = None
    home_address: Optional[str] = None
    home_zone: Optional[str] = None
    items: List[AppointmentItem] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.start_time.tzinfo is None or self.end_time.tzinfo is None:
            raise ValueError("Appointment times must be timezone-aware")
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)

    @property
    def resource(self) -> Resource:
        return Resource(business_id=self.business_id, groomer_id=self.groomer_id)

    @property
    def is_cancelled(self) -> bool:
        return self.status == AppointmentStatus.CANCELLED
