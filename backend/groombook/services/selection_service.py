"""
Selection validation shared by availability queries and bookings.

Turns a list of requested (pet, service) pairs into a ``Quote``: the total
appointment length, one frozen ``AppointmentItem`` per pair and the dog
count. Also resolves which groomer's calendar a request targets.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from groombook.core.exceptions import InvalidSelection, NoMatchingRule, NotFound
from groombook.domain.capacity import validate_home_visit_capacity
from groombook.domain.duration import resolve_duration_minutes
from groombook.domain.entities import (
    Actor,
    AppointmentItem,
    BookingItem,
    Business,
    DurationRule,
    LocationType,
    UserRole,
)
from groombook.domain.interfaces import IBusinessReader, ICatalogReader, IPetReader

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Quote:
    total_minutes: int
    items: List[AppointmentItem]
    dog_count: int


class SelectionService:
    """Validates what a client asks for against a business's catalog."""

    def __init__(
        self,
        business_repo: IBusinessReader,
        catalog_repo: ICatalogReader,
        pet_repo: IPetReader,
    ):
        self.business_repo = business_repo
        self.catalog_repo = catalog_repo
        self.pet_repo = pet_repo

    def get_business(self, business_id: int) -> Business:
        business = self.business_repo.get_by_id(business_id)
        if business is None:
            raise NotFound("Business not found.")
        return business

    def get_owned_business(self, owner_user_id: int) -> Business:
        business = self.business_repo.get_by_owner(owner_user_id)
        if business is None:
            raise NotFound("Business not found for this owner.")
        return business

    def resolve_groomer(self, business: Business, groomer_id: Optional[int]) -> int:
        """Pick the groomer whose calendar the request books against.

        Without a groomer, the owner is used unless the business has staff,
        in which case the caller must choose.
        """
        if groomer_id is None:
            if self.business_repo.has_active_staff(business.id):
                raise InvalidSelection("groomer_id is required for this business.")
            return business.owner_user_id
        if groomer_id == business.owner_user_id:
            return groomer_id
        if not self.business_repo.is_active_staff(business.id, groomer_id):
            raise InvalidSelection("Invalid groomer selection.")
        return groomer_id

    def quote(
        self,
        business: Business,
        actor: Actor,
        location_type: LocationType,
        items: Sequence[BookingItem],
        home_address: Optional[str] = None,
    ) -> Quote:
        """Validate the selection and compute durations.

        Raises:
            InvalidSelection: location, ownership or service eligibility failures
            NotFound: unknown pet or service IDs
            NoMatchingRule: a service has no duration rule for a pet
            CapacityExceeded: too many dogs for one home visit
        """
        if not business.offers(location_type):
            if location_type == LocationType.AT_HOME:
                raise InvalidSelection("Business does not offer at-home services.")
            raise InvalidSelection("Business does not offer in-salon services.")
        if not items:
            raise InvalidSelection("At least one pet and service is required.")
        if location_type == LocationType.AT_HOME and not home_address:
            raise InvalidSelection("home_address is required for at-home visits.")

        pets = {pet.id: pet for pet in self.pet_repo.get_pets([i.pet_id for i in items])}
        if any(item.pet_id not in pets for item in items):
            raise NotFound("One or more pets were not found.")
        if actor.role == UserRole.CLIENT and any(
            pet.owner_user_id != actor.id for pet in pets.values()
        ):
            raise InvalidSelection("Pets must belong to the current client.")

        services = {
            service.id: service
            for service in self.catalog_repo.get_services([i.service_id for i in items])
        }
        if any(item.service_id not in services for item in items):
            raise NotFound("One or more services were not found.")

        rules_by_service: Dict[int, List[DurationRule]] = {}
        quoted: List[AppointmentItem] = []
        total_minutes = 0

        for item in items:
            pet = pets[item.pet_id]
            service = services[item.service_id]

            if service.business_id != business.id:
                raise InvalidSelection("Service does not belong to this business.")
            if not service.is_active:
                raise InvalidSelection("Service is not active.")
            if not service.supports_location(location_type):
                raise InvalidSelection(
                    f"Service {service.name} is not offered for {location_type.value}."
                )
            if not service.supports_species(pet.species):
                raise InvalidSelection(
                    f"Service {service.name} does not support {pet.species.value}."
                )

            if service.id not in rules_by_service:
                rules_by_service[service.id] = self.catalog_repo.get_duration_rules(
                    service.id
                )
            try:
                minutes = resolve_duration_minutes(
                    rules_by_service[service.id], pet, service_id=service.id
                )
            except NoMatchingRule as e:
                logger.warning(
                    "Missing duration rule",
                    extra={
                        "context": {
                            "business_id": business.id,
                            "owner_user_id": business.owner_user_id,
                            "service_id": service.id,
                            "species": e.species,
                            "breed": e.breed,
                            "size": e.size,
                        }
                    },
                )
                raise

            quoted.append(
                AppointmentItem(
                    pet_id=pet.id,
                    service_id=service.id,
                    calculated_duration_minutes=minutes,
                    extras=item.extras,
                )
            )
            total_minutes += minutes

        if location_type == LocationType.AT_HOME:
            total_minutes += business.home_visit_overhead_minutes

        dog_count = validate_home_visit_capacity(
            [pets[item.pet_id] for item in items],
            location_type,
            business.max_dogs_per_home_visit,
        )

        return Quote(total_minutes=total_minutes, items=quoted, dog_count=dog_count)
