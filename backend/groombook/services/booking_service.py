"""
Booking service: create, reschedule, cancel and change the status of
appointments.

Every write runs inside ``appointment_repo.ledger(resource)``, which holds the
calendar lock for one (business, groomer) pair. The overlap check and the
insert/update share that transaction, so two requests racing for the same
window cannot both succeed. Lock contention and dropped connections surface
as SQLAlchemy errors; the transaction is retried a bounded number of times.
"""

import logging
import time
from datetime import datetime, timedelta
from typing import Callable, List, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError

from groombook.core import config
from groombook.core.exceptions import (
    Forbidden,
    NotFound,
    SlotUnavailable,
    StorageUnavailable,
)
from groombook.domain.entities import (
    Actor,
    Appointment,
    AppointmentStatus,
    Business,
    Resource,
    UserRole,
)
from groombook.domain.interfaces import (
    IAppointmentRepository,
    ILedgerSession,
    INotifier,
)
from groombook.domain.overlap import has_overlap
from groombook.domain.policy import (
    authorize_change,
    ensure_change_access,
    ensure_notice_period,
)
from groombook.domain.transitions import ensure_reschedulable, ensure_transition
from groombook.schemas.dtos import BookingRequest, RescheduleRequest
from groombook.services.notification_service import notify_safely
from groombook.services.selection_service import SelectionService
from groombook.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BookingService:
    """Application service for the appointment ledger."""

    def __init__(
        self,
        appointment_repo: IAppointmentRepository,
        selection_service: SelectionService,
        notifier: INotifier,
    ):
        self.appointment_repo = appointment_repo
        self.selection_service = selection_service
        self.notifier = notifier

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def book(self, actor: Actor, request: BookingRequest) -> Appointment:
        """Create a PENDING appointment for the requesting client.

        Raises:
            Forbidden: actor is not a client
            InvalidSelection, NotFound, NoMatchingRule, CapacityExceeded:
                the selection is not bookable
            SlotUnavailable: the window collides with an existing booking
        """
        request.validate()
        if actor.role != UserRole.CLIENT:
            raise Forbidden("Only clients can create appointments.")

        business = self.selection_service.get_business(request.business_id)
        quote = self.selection_service.quote(
            business,
            actor,
            request.location_type,
            [item.to_domain() for item in request.items],
            home_address=request.home_address,
        )
        groomer_id = self.selection_service.resolve_groomer(business, request.groomer_id)

        start_time = request.start_time
        end_time = start_time + timedelta(minutes=quote.total_minutes)
        appointment = Appointment(
            business_id=business.id,
            groomer_id=groomer_id,
            client_id=actor.id,
            location_type=request.location_type,
            start_time=start_time,
            end_time=end_time,
            status=AppointmentStatus.PENDING,
            home_address=request.home_address,
            home_zone=request.home_zone,
            items=quote.items,
        )

        def insert(ledger: ILedgerSession) -> Appointment:
            existing = ledger.list_intersecting(start_time, end_time)
            if has_overlap(start_time, end_time, existing):
                raise SlotUnavailable()
            return ledger.insert(appointment)

        created = self._run_in_ledger(appointment.resource, insert)

        logger.info(
            "Appointment booked",
            extra={
                "context": {
                    "appointment_id": created.id,
                    "business_id": business.id,
                    "groomer_id": groomer_id,
                    "client_id": actor.id,
                    "start_time": created.start_time.isoformat(),
                    "duration_minutes": quote.total_minutes,
                    "dog_count": quote.dog_count,
                }
            },
        )
        notify_safely(
            self.notifier,
            created.client_id,
            f"Appointment created for {self._local_time(created, business)}.",
        )
        return created

    def reschedule(
        self,
        actor: Actor,
        appointment_id: int,
        request: RescheduleRequest,
        now: Optional[datetime] = None,
    ) -> Appointment:
        """Move an appointment, keeping its booked duration.

        Without a new ``start_time`` only the home address/zone change and the
        current window is kept as is.

        Raises:
            TooLate: client request inside the business notice period
            InvalidTransition: the appointment can no longer move
            SlotUnavailable: the new window collides with another booking
        """
        request.validate()
        now = now or utcnow()
        appointment, business = self._load_for_change(actor, appointment_id, now)
        ensure_reschedulable(appointment.status)

        def move(ledger: ILedgerSession) -> Appointment:
            current = self._reload(ledger, appointment_id)
            ensure_reschedulable(current.status)
            if request.moves_window:
                new_start = request.start_time
                new_end = new_start + (current.end_time - current.start_time)
                existing = ledger.list_intersecting(new_start, new_end)
                if has_overlap(new_start, new_end, existing, exclude_id=appointment_id):
                    raise SlotUnavailable()
            else:
                new_start, new_end = current.start_time, current.end_time
            return ledger.update_window(
                appointment_id,
                new_start,
                new_end,
                home_address=request.home_address,
                home_zone=request.home_zone,
            )

        updated = self._run_in_ledger(appointment.resource, move)

        logger.info(
            "Appointment rescheduled" if request.moves_window else "Appointment updated",
            extra={
                "context": {
                    "appointment_id": appointment_id,
                    "actor_id": actor.id,
                    "actor_role": actor.role.value,
                    "old_start": appointment.start_time.isoformat(),
                    "new_start": updated.start_time.isoformat(),
                    "home_zone": updated.home_zone,
                }
            },
        )
        if request.moves_window:
            message = f"Appointment rescheduled to {self._local_time(updated, business)}."
        else:
            message = f"Appointment on {self._local_time(updated, business)} was updated."
        notify_safely(self.notifier, updated.client_id, message)
        return updated

    def cancel(
        self,
        actor: Actor,
        appointment_id: int,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Appointment:
        """Cancel an appointment and free its window.

        Ownership is checked before the current status.

        Raises:
            Forbidden: actor does not own the appointment
            InvalidTransition: the appointment already reached a final status
            TooLate: client request inside the business notice period
        """
        now = now or utcnow()
        appointment = self._get_or_404(appointment_id)
        business = self.selection_service.get_business(appointment.business_id)
        ensure_change_access(appointment, business, actor)
        ensure_transition(appointment.status, AppointmentStatus.CANCELLED)
        ensure_notice_period(appointment, business, actor, now)

        cancelled = self._set_status(appointment, AppointmentStatus.CANCELLED, reason)

        logger.info(
            "Appointment cancelled",
            extra={
                "context": {
                    "appointment_id": appointment_id,
                    "actor_id": actor.id,
                    "actor_role": actor.role.value,
                    "reason": reason,
                }
            },
        )
        notify_safely(
            self.notifier,
            cancelled.client_id,
            f"Appointment on {self._local_time(cancelled, business)} was cancelled.",
        )
        return cancelled

    def update_status(
        self,
        actor: Actor,
        appointment_id: int,
        status: AppointmentStatus,
        cancel_reason: Optional[str] = None,
    ) -> Appointment:
        """Groomer-owner status change along the allowed transitions."""
        if actor.role != UserRole.GROOMER_OWNER:
            raise Forbidden("Only groomers can update status.")
        appointment = self._get_or_404(appointment_id)
        business = self.selection_service.get_business(appointment.business_id)
        if business.owner_user_id != actor.id:
            raise Forbidden("Appointment does not belong to this business.")
        ensure_transition(appointment.status, status)

        updated = self._set_status(appointment, status, cancel_reason)

        logger.info(
            "Appointment status updated",
            extra={
                "context": {
                    "appointment_id": appointment_id,
                    "from_status": appointment.status.value,
                    "to_status": status.value,
                }
            },
        )
        notify_safely(
            self.notifier,
            updated.client_id,
            f"Appointment status updated to {status.value}.",
        )
        return updated

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_for(self, actor: Actor) -> List[Appointment]:
        if actor.role == UserRole.CLIENT:
            return self.appointment_repo.list_for_client(actor.id)
        if actor.role == UserRole.GROOMER_OWNER:
            business = self.selection_service.get_owned_business(actor.id)
            return self.appointment_repo.list_for_business(business.id)
        raise Forbidden("Unsupported role for listing appointments.")

    def get_for(self, actor: Actor, appointment_id: int) -> Appointment:
        appointment = self._get_or_404(appointment_id)
        if actor.role == UserRole.CLIENT:
            if appointment.client_id != actor.id:
                raise Forbidden("You do not have access to this appointment.")
            return appointment
        if actor.role == UserRole.GROOMER_OWNER:
            business = self.selection_service.get_business(appointment.business_id)
            if business.owner_user_id != actor.id:
                raise Forbidden("You do not have access to this appointment.")
            return appointment
        raise Forbidden("You do not have access to this appointment.")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_or_404(self, appointment_id: int) -> Appointment:
        appointment = self.appointment_repo.get_by_id(appointment_id)
        if appointment is None:
            raise NotFound("Appointment not found.")
        return appointment

    def _load_for_change(
        self,
        actor: Actor,
        appointment_id: int,
        now: datetime,
    ):
        appointment = self._get_or_404(appointment_id)
        business = self.selection_service.get_business(appointment.business_id)
        authorize_change(appointment, business, actor, now)
        return appointment, business

    def _reload(self, ledger: ILedgerSession, appointment_id: int) -> Appointment:
        current = ledger.get_appointment(appointment_id)
        if current is None:
            raise NotFound("Appointment not found.")
        return current

    def _set_status(
        self,
        appointment: Appointment,
        status: AppointmentStatus,
        reason: Optional[str],
    ) -> Appointment:
        def apply(ledger: ILedgerSession) -> Appointment:
            current = self._reload(ledger, appointment.id)
            ensure_transition(current.status, status)
            return ledger.update_status(appointment.id, status, cancel_reason=reason)

        return self._run_in_ledger(appointment.resource, apply)

    def _run_in_ledger(
        self, resource: Resource, operation: Callable[[ILedgerSession], T]
    ) -> T:
        """Run ``operation`` under the calendar lock, retrying storage conflicts.

        When retries run out, write conflicts become SlotUnavailable and lost
        connections become StorageUnavailable.
        """
        max_attempts = config.BOOKING_MAX_RETRIES
        last_error: Optional[Exception] = None
        connection_lost = False

        for attempt in range(1, max_attempts + 1):
            try:
                with self.appointment_repo.ledger(resource) as ledger:
                    return operation(ledger)
            except IntegrityError as e:
                last_error, connection_lost = e, False
            except OperationalError as e:
                last_error, connection_lost = e, bool(e.connection_invalidated)

            logger.warning(
                f"Booking transaction failed (attempt {attempt}/{max_attempts}): "
                f"{last_error.__class__.__name__}",
                extra={
                    "context": {
                        "resource": resource.key,
                        "attempt": attempt,
                        "connection_lost": connection_lost,
                    }
                },
            )
            if attempt < max_attempts:
                time.sleep(config.BOOKING_RETRY_BACKOFF_MS * attempt / 1000)

        logger.error(
            "Booking transaction retries exhausted",
            extra={"context": {"resource": resource.key, "attempts": max_attempts}},
        )
        if connection_lost:
            raise StorageUnavailable() from last_error
        raise SlotUnavailable() from last_error

    @staticmethod
    def _local_time(appointment: Appointment, business: Business) -> str:
        return appointment.start_time.astimezone(business.tz).isoformat()
