"""
Domain package - pure scheduling logic.

This package contains:
- entities.py: Domain records and enums
- interfaces.py: Repository and collaborator contracts
- duration.py, capacity.py, overlap.py, slots.py: the scheduling rules
- policy.py, transitions.py: who may change an appointment, and how
"""

from .capacity import validate_home_visit_capacity
from .duration import resolve_duration_minutes
from .entities import (
    Actor,
    Appointment,
    AppointmentItem,
    AppointmentStatus,
    BookingItem,
    Business,
    DurationRule,
    LocationType,
    Pet,
    PetSize,
    Resource,
    Service,
    Species,
    UserRole,
    WorkingHourBlock,
)
from .overlap import has_overlap
from .policy import authorize_change
from .slots import generate_slots

__all__ = [
    # Domain entities
    "Actor",
    "Appointment",
    "AppointmentItem",
    "AppointmentStatus",
    "BookingItem",
    "Business",
    "DurationRule",
    "LocationType",
    "Pet",
    "PetSize",
    "Resource",
    "Service",
    "Species",
    "UserRole",
    "WorkingHourBlock",
    # Scheduling rules
    "authorize_change",
    "generate_slots",
    "has_overlap",
    "resolve_duration_minutes",
    "validate_home_visit_capacity",
]
