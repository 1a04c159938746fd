"""
Free slot generation for one resource and one calendar day.

Candidate starts walk each working-hour block in a fixed stride and are kept
when ``[start, start + duration)`` fits inside the block and does not collide
with an existing booking. The result is a lazy generator: callers can stop
early, and calling again with the same bookings yields the same sequence.

Working hours are local clock times in the business's timezone. Stepping is
done on UTC instants so a DST change inside a block never skews durations.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Iterator, List, Optional, Tuple

from groombook.core import config
from groombook.domain.entities import Appointment, Business
from groombook.domain.overlap import has_overlap


def business_weekday(target_date: date) -> int:
    """Weekday number used by working hours: 0 = Sunday ... 6 = Saturday."""
    return target_date.isoweekday() % 7


def day_bounds(business: Business, target_date: date) -> Tuple[datetime, datetime]:
    """UTC instants of local midnight and the following local midnight."""
    tz = business.tz
    start = datetime.combine(target_date, datetime.min.time(), tzinfo=tz)
    end = datetime.combine(target_date + timedelta(days=1), datetime.min.time(), tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def generate_slots(
    business: Business,
    target_date: date,
    duration_minutes: int,
    existing: Iterable[Appointment],
    step_minutes: Optional[int] = None,
    not_before: Optional[datetime] = None,
) -> Iterator[datetime]:
    """Yield bookable start instants (aware, in the business timezone).

    Args:
        business: Business whose working hours bound the day
        target_date: Calendar day in the business's local reference
        duration_minutes: Total appointment length including overheads
        existing: Bookings for the resource intersecting that day
        step_minutes: Stride between candidates (defaults to SLOT_STEP_MINUTES)
        not_before: Drop candidates starting before this instant
    """
    if duration_minutes <= 0:
        raise ValueError("Duration must be positive")

    step = timedelta(minutes=step_minutes or config.SLOT_STEP_MINUTES)
    duration = timedelta(minutes=duration_minutes)
    tz = business.tz
    bookings: List[Appointment] = list(existing)

    for block in business.blocks_for_weekday(business_weekday(target_date)):
        block_start = datetime.combine(target_date, block.start_time, tzinfo=tz).astimezone(
            timezone.utc
        )
        block_end = datetime.combine(target_date, block.end_time, tzinfo=tz).astimezone(
            timezone.utc
        )

        candidate = block_start
        while candidate + duration <= block_end:
            candidate_end = candidate + duration
            if (not_before is None or candidate >= not_before) and not has_overlap(
                candidate, candidate_end, bookings
            ):
                yield candidate.astimezone(tz)
            candidate += step
