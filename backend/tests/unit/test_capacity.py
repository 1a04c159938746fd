"""Unit tests for the per-appointment home-visit dog limit."""

import pytest

from groombook.core.exceptions import CapacityExceeded
from groombook.domain.capacity import count_dogs, validate_home_visit_capacity
from groombook.domain.entities import LocationType, Species
from tests.factories.domain_factories import make_pet


@pytest.mark.unit
@pytest.mark.domain
class TestHomeVisitCapacity:
    def test_two_dogs_over_limit_of_one_fails(self):
        pets = [make_pet(1), make_pet(2)]

        with pytest.raises(CapacityExceeded) as exc_info:
            validate_home_visit_capacity(pets, LocationType.AT_HOME, 1)

        assert exc_info.value.max_dogs == 1
        assert exc_info.value.dog_count == 2
        assert exc_info.value.message == "Max dogs per home visit is 1."

    def test_dogs_at_limit_pass(self):
        pets = [make_pet(1), make_pet(2)]

        assert validate_home_visit_capacity(pets, LocationType.AT_HOME, 2) == 2

    def test_cats_never_count(self):
        pets = [make_pet(1), make_pet(2, species=Species.CAT), make_pet(3, species=Species.CAT)]

        assert validate_home_visit_capacity(pets, LocationType.AT_HOME, 1) == 1

    def test_same_dog_booked_for_two_services_counts_twice(self):
        dog = make_pet(1)

        with pytest.raises(CapacityExceeded):
            validate_home_visit_capacity([dog, dog], LocationType.AT_HOME, 1)

    def test_in_salon_is_not_limited(self):
        pets = [make_pet(i) for i in range(1, 6)]

        assert validate_home_visit_capacity(pets, LocationType.IN_SALON, 1) == 5

    def test_count_dogs(self):
        assert count_dogs([make_pet(1), make_pet(2, species=Species.CAT)]) == 1
        assert count_dogs([]) == 0
