"""Appointment status machine."""

from typing import Dict, FrozenSet

from groombook.core.exceptions import InvalidTransition
from groombook.domain.entities import AppointmentStatus

ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {
            AppointmentStatus.IN_PROGRESS,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.NO_SHOW,
        }
    ),
    AppointmentStatus.IN_PROGRESS: frozenset({AppointmentStatus.DONE}),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.DONE: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}


def is_terminal(status: AppointmentStatus) -> bool:
    return not ALLOWED_TRANSITIONS[status]


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: AppointmentStatus, target: AppointmentStatus) -> None:
    if not can_transition(current, target):
        raise InvalidTransition(
            f"Cannot change appointment status from {current.value} to {target.value}."
        )


def ensure_reschedulable(current: AppointmentStatus) -> None:
    """Only appointments that have not started can move in time."""
    if current not in (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED):
        raise InvalidTransition(
            f"Cannot reschedule an appointment with status {current.value}."
        )
