"""Builders for domain entities with sensible defaults."""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from groombook.domain.entities import (
    Appointment,
    AppointmentItem,
    AppointmentStatus,
    Business,
    DurationRule,
    LocationType,
    Pet,
    PetSize,
    Service,
    Species,
    WorkingHourBlock,
)

OWNER_ID = 10
CLIENT_ID = 20
BUSINESS_ID = 1


def make_business(**overrides) -> Business:
    values = dict(
        id=BUSINESS_ID,
        owner_user_id=OWNER_ID,
        name="Test Salon",
        offers_in_salon=True,
        offers_at_home=True,
        max_dogs_per_home_visit=2,
        home_visit_setup_minutes=10,
        home_visit_teardown_minutes=10,
        default_transport_minutes=15,
        min_hours_before_cancel_or_reschedule=24,
        timezone="Europe/Madrid",
        working_hours=[
            WorkingHourBlock.from_strings(weekday, "09:00", "18:00")
            for weekday in (1, 2, 3, 4, 5)
        ],
    )
    values.update(overrides)
    return Business(**values)


def make_pet(
    pet_id: int = 1,
    species: Species = Species.DOG,
    size: PetSize = PetSize.SMALL,
    breed: str = "Poodle",
    owner_user_id: int = CLIENT_ID,
) -> Pet:
    return Pet(
        id=pet_id,
        owner_user_id=owner_user_id,
        species=species,
        size=size,
        breed=breed,
        name=f"pet-{pet_id}",
    )


def make_service(
    service_id: int = 100,
    business_id: int = BUSINESS_ID,
    species: Iterable[Species] = (Species.DOG, Species.CAT),
    locations: Iterable[LocationType] = (LocationType.IN_SALON, LocationType.AT_HOME),
    is_active: bool = True,
    name: str = "Bath",
) -> Service:
    return Service(
        id=service_id,
        business_id=business_id,
        name=name,
        species_supported=frozenset(species),
        locations_supported=frozenset(locations),
        is_active=is_active,
    )


def make_rule(
    minutes: int,
    species: Species = Species.DOG,
    size: Optional[PetSize] = None,
    breed: Optional[str] = None,
    default: bool = False,
) -> DurationRule:
    return DurationRule(
        species=species,
        base_duration_minutes=minutes,
        size=size,
        breed=breed,
        is_default_for_species=default,
    )


def make_appointment(
    start: datetime,
    minutes: int = 60,
    appointment_id: Optional[int] = 1,
    status: AppointmentStatus = AppointmentStatus.PENDING,
    client_id: int = CLIENT_ID,
    business_id: int = BUSINESS_ID,
    groomer_id: int = OWNER_ID,
    location_type: LocationType = LocationType.IN_SALON,
) -> Appointment:
    return Appointment(
        id=appointment_id,
        business_id=business_id,
        groomer_id=groomer_id,
        client_id=client_id,
        location_type=location_type,
        start_time=start,
        end_time=start + timedelta(minutes=minutes),
        status=status,
        items=[
            AppointmentItem(
                pet_id=1,
                service_id=100,
                calculated_duration_minutes=minutes,
                appointment_id=appointment_id,
            )
        ],
    )


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)
