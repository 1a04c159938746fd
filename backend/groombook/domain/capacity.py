"""Home-visit capacity check."""

from typing import Iterable, Optional

from groombook.core.exceptions import CapacityExceeded
from groombook.domain.entities import LocationType, Pet, Species


def count_dogs(pets: Iterable[Pet]) -> int:
    return sum(1 for pet in pets if pet.species == Species.DOG)


def validate_home_visit_capacity(
    pets: Iterable[Pet],
    location_type: LocationType,
    max_dogs_per_home_visit: Optional[int],
) -> int:
    """Fail when a single at-home appointment holds more dogs than allowed.

    ``pets`` has one entry per booked item, so a dog booked for two services
    counts twice. Cats never count. In-salon bookings are not checked. The
    limit is per appointment, not across concurrent home visits.

    Returns:
        The dog count, for logging.
    """
    dog_count = count_dogs(pets)
    if location_type != LocationType.AT_HOME:
        return dog_count
    # A missing limit is a business setup error caught when the business is built
    if max_dogs_per_home_visit and dog_count > max_dogs_per_home_visit:
        raise CapacityExceeded(max_dogs=max_dogs_per_home_visit, dog_count=dog_count)
    return dog_count
