"""
Custom exceptions for the application.

Every scheduling failure is a typed exception carrying the HTTP status and a
short machine-readable code, so controllers and error handlers never have to
inspect message text.
"""

from typing import Optional


class SchedulingError(Exception):
    """Base class for failures returned to the caller."""

    status_code = 400
    error = "scheduling_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.error, "message": self.message}


class InvalidSelection(SchedulingError):
    """Pet/service mismatch, inactive service or unsupported location/species."""

    error = "invalid_selection"


class NoMatchingRule(SchedulingError):
    """No duration rule applies to the pet; a gap in the business configuration."""

    error = "no_matching_rule"

    def __init__(
        self,
        species: str,
        breed: Optional[str] = None,
        size: Optional[str] = None,
        service_id: Optional[int] = None,
    ):
        super().__init__(f"No duration rule found for {species} ({breed}, {size}).")
        self.species = species
        self.breed = breed
        self.size = size
        self.service_id = service_id


class CapacityExceeded(SchedulingError):
    """Too many dogs for a single home visit."""

    error = "capacity_exceeded"

    def __init__(self, max_dogs: int, dog_count: int):
        super().__init__(f"Max dogs per home visit is {max_dogs}.")
        self.max_dogs = max_dogs
        self.dog_count = dog_count


class SlotUnavailable(SchedulingError):
    """The requested window overlaps an existing booking or lost a commit race."""

    status_code = 409
    error = "slot_unavailable"

    def __init__(self, message: str = "Time slot is not available."):
        super().__init__(message)


class TooLate(SchedulingError):
    """The business notice period for client changes has passed."""

    error = "too_late"


class InvalidTransition(SchedulingError):
    """Status change not permitted from the appointment's current status."""

    status_code = 409
    error = "invalid_transition"


class NotFound(SchedulingError):
    status_code = 404
    error = "not_found"


class Forbidden(SchedulingError):
    status_code = 403
    error = "forbidden"


class StorageUnavailable(SchedulingError):
    """Storage kept failing after the bounded retry policy gave up."""

    status_code = 503
    error = "storage_unavailable"

    def __init__(self, message: str = "Storage is temporarily unavailable."):
        super().__init__(message)


class BusinessConfigurationError(ValueError):
    """Invalid business setup (raised when building the business record)."""
