"""
Overlap decision rule for half-open ``[start, end)`` windows.

Back-to-back appointments share a boundary instant without overlapping.
CANCELLED appointments free their window; every other status, including
NO_SHOW and DONE, still occupies it.
"""

from datetime import datetime
from typing import Iterable, Optional

from groombook.domain.entities import Appointment, AppointmentStatus


def intervals_overlap(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    return start_a < end_b and end_a > start_b


def occupies_slot(appointment: Appointment, exclude_id: Optional[int] = None) -> bool:
    if exclude_id is not None and appointment.id == exclude_id:
        return False
    return appointment.status != AppointmentStatus.CANCELLED


def has_overlap(
    candidate_start: datetime,
    candidate_end: datetime,
    existing: Iterable[Appointment],
    exclude_id: Optional[int] = None,
) -> bool:
    """Return True when the candidate window collides with any booking in ``existing``.

    ``exclude_id`` skips the appointment being rescheduled.
    """
    return any(
        occupies_slot(appointment, exclude_id)
        and intervals_overlap(
            candidate_start, candidate_end, appointment.start_time, appointment.end_time
        )
        for appointment in existing
    )
