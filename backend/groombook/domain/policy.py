"""
Change policy for cancel/reschedule requests.

Access comes first: each role maps to an ownership check, and roles without
an entry may not change appointments at all. Clients are then held to the
business notice period; the owning groomer can always adjust their own
schedule.
"""

from datetime import datetime
from typing import Callable, Dict

from groombook.core.exceptions import Forbidden, TooLate
from groombook.domain.entities import Actor, Appointment, Business, UserRole

AccessCheck = Callable[[Appointment, Business, Actor], bool]


def hours_until_start(appointment: Appointment, now: datetime) -> float:
    return (appointment.start_time - now).total_seconds() / 3600


def _client_owns(appointment: Appointment, business: Business, actor: Actor) -> bool:
    return appointment.client_id == actor.id


def _groomer_owner_owns(
    appointment: Appointment, business: Business, actor: Actor
) -> bool:
    return business.owner_user_id == actor.id and appointment.business_id == business.id


ACCESS_CHECKS: Dict[UserRole, AccessCheck] = {
    UserRole.CLIENT: _client_owns,
    UserRole.GROOMER_OWNER: _groomer_owner_owns,
}


def ensure_change_access(
    appointment: Appointment, business: Business, actor: Actor
) -> None:
    """Raise Forbidden unless ``actor`` owns ``appointment`` for their role."""
    check = ACCESS_CHECKS.get(actor.role)
    if check is None:
        raise Forbidden("Your role cannot change appointments.")
    if not check(appointment, business, actor):
        raise Forbidden("You do not have access to this appointment.")


def ensure_notice_period(
    appointment: Appointment, business: Business, actor: Actor, now: datetime
) -> None:
    if actor.role != UserRole.CLIENT:
        return
    if hours_until_start(appointment, now) < business.min_hours_before_cancel_or_reschedule:
        raise TooLate(
            "Too late to change this appointment: changes require at least "
            f"{business.min_hours_before_cancel_or_reschedule} hours notice. "
            "Please contact the business directly."
        )


def authorize_change(
    appointment: Appointment, business: Business, actor: Actor, now: datetime
) -> None:
    """Raise unless ``actor`` may cancel or reschedule ``appointment`` at ``now``.

    Raises:
        Forbidden: actor does not own the appointment or the role cannot change it
        TooLate: client request inside the notice period
    """
    ensure_change_access(appointment, business, actor)
    ensure_notice_period(appointment, business, actor, now)
