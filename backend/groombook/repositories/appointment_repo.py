"""
Appointment repository.

Reads open a short-lived session each. Writes go through ``ledger()``, which
serializes every booking, reschedule and status change on one groomer's
calendar:

1. an in-process lock keyed by ``business_id:groomer_id``;
2. the ``schedule_locks`` row of that calendar, read ``FOR UPDATE`` and
   bumped so the transaction holds the database write lock before it reads
   the current bookings.

The overlap check and the insert/update both run inside that transaction.
"""

import logging
import threading
import weakref
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from groombook.core.exceptions import NotFound
from groombook.db.base import Appointment as DbAppointment
from groombook.db.base import AppointmentItem as DbAppointmentItem
from groombook.db.base import ScheduleLock
from groombook.db.session import SessionLocal
from groombook.domain.entities import (
    Appointment,
    AppointmentItem,
    AppointmentStatus,
    LocationType,
    Resource,
)
from groombook.domain.interfaces import IAppointmentRepository, ILedgerSession
from groombook.utils.time_utils import ensure_utc, to_utc

logger = logging.getLogger(__name__)

# Entries go away once no thread holds or waits on the lock
_process_locks: "weakref.WeakValueDictionary[str, threading.Lock]" = (
    weakref.WeakValueDictionary()
)
_process_locks_guard = threading.Lock()


def _process_lock(key: str) -> threading.Lock:
    with _process_locks_guard:
        lock = _process_locks.get(key)
        if lock is None:
            lock = _process_locks[key] = threading.Lock()
        return lock


def _to_domain(db_appointment: DbAppointment) -> Appointment:
    return Appointment(
        id=db_appointment.id,
        business_id=db_appointment.business_id,
        groomer_id=db_appointment.groomer_id,
        client_id=db_appointment.client_id,
        location_type=LocationType(db_appointment.location_type),
        start_time=ensure_utc(db_appointment.start_time),
        end_time=ensure_utc(db_appointment.end_time),
        status=AppointmentStatus(db_appointment.status),
        cancel_reason=db_appointment.cancel_reason,
        home_address=db_appointment.home_address,
        home_zone=db_appointment.home_zone,
        created_at=ensure_utc(db_appointment.created_at),
        updated_at=ensure_utc(db_appointment.updated_at),
        items=[
            AppointmentItem(
                id=item.id,
                appointment_id=item.appointment_id,
                pet_id=item.pet_id,
                service_id=item.service_id,
                calculated_duration_minutes=item.calculated_duration_minutes,
                extras=item.extras,
            )
            for item in db_appointment.items
        ],
    )


def _intersecting_query(resource: Resource, start: datetime, end: datetime):
    return (
        select(DbAppointment)
        .options(selectinload(DbAppointment.items))
        .where(
            DbAppointment.business_id == resource.business_id,
            DbAppointment.groomer_id == resource.groomer_id,
            DbAppointment.status != AppointmentStatus.CANCELLED.value,
            DbAppointment.start_time < to_utc(end),
            DbAppointment.end_time > to_utc(start),
        )
        .order_by(DbAppointment.start_time)
    )


class LedgerSession(ILedgerSession):
    """Write operations bound to one locked calendar transaction."""

    def __init__(self, db: Session, resource: Resource) -> None:
        self.db = db
        self.resource = resource

    def list_intersecting(self, start: datetime, end: datetime) -> List[Appointment]:
        rows = self.db.scalars(_intersecting_query(self.resource, start, end)).all()
        return [_to_domain(row) for row in rows]

    def get_appointment(self, appointment_id: int) -> Optional[Appointment]:
        row = self._get_row(appointment_id)
        return _to_domain(row) if row else None

    def insert(self, appointment: Appointment) -> Appointment:
        if appointment.groomer_id is None:
            raise ValueError("Appointment must be assigned to a groomer")
        row = DbAppointment(
            business_id=appointment.business_id,
            groomer_id=appointment.groomer_id,
            client_id=appointment.client_id,
            location_type=appointment.location_type.value,
            start_time=to_utc(appointment.start_time),
            end_time=to_utc(appointment.end_time),
            status=appointment.status.value,
            cancel_reason=appointment.cancel_reason,
            home_address=appointment.home_address,
            home_zone=appointment.home_zone,
            items=[
                DbAppointmentItem(
                    pet_id=item.pet_id,
                    service_id=item.service_id,
                    calculated_duration_minutes=item.calculated_duration_minutes,
                    extras=item.extras,
                )
                for item in appointment.items
            ],
        )
        self.db.add(row)
        self.db.flush()
        self.db.refresh(row)
        return _to_domain(row)

    def update_window(
        self,
        appointment_id: int,
        start_time: datetime,
        end_time: datetime,
        home_address: Optional[str] = None,
        home_zone: Optional[str] = None,
    ) -> Appointment:
        row = self._require_row(appointment_id)
        row.start_time = to_utc(start_time)
        row.end_time = to_utc(end_time)
        if home_address is not None:
            row.home_address = home_address
        if home_zone is not None:
            row.home_zone = home_zone
        self.db.flush()
        self.db.refresh(row)
        return _to_domain(row)

    def update_status(
        self,
        appointment_id: int,
        status: AppointmentStatus,
        cancel_reason: Optional[str] = None,
    ) -> Appointment:
        row = self._require_row(appointment_id)
        row.status = status.value
        if cancel_reason is not None:
            row.cancel_reason = cancel_reason
        self.db.flush()
        self.db.refresh(row)
        return _to_domain(row)

    def _get_row(self, appointment_id: int) -> Optional[DbAppointment]:
        return self.db.scalars(
            select(DbAppointment)
            .options(selectinload(DbAppointment.items))
            .where(
                DbAppointment.id == appointment_id,
                DbAppointment.business_id == self.resource.business_id,
                DbAppointment.groomer_id == self.resource.groomer_id,
            )
        ).first()

    def _require_row(self, appointment_id: int) -> DbAppointment:
        row = self._get_row(appointment_id)
        if row is None:
            raise NotFound("Appointment not found.")
        return row


class AppointmentRepository(IAppointmentRepository):
    """Repository for Appointment persistence operations."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal) -> None:
        self._session_factory = session_factory

    def get_by_id(self, appointment_id: int) -> Optional[Appointment]:
        with self._session_factory() as db:
            row = db.scalars(
                select(DbAppointment)
                .options(selectinload(DbAppointment.items))
                .where(DbAppointment.id == appointment_id)
            ).first()
            return _to_domain(row) if row else None

    def list_for_client(self, client_id: int) -> List[Appointment]:
        with self._session_factory() as db:
            rows = db.scalars(
                select(DbAppointment)
                .options(selectinload(DbAppointment.items))
                .where(DbAppointment.client_id == client_id)
                .order_by(DbAppointment.start_time)
            ).all()
            return [_to_domain(row) for row in rows]

    def list_for_business(self, business_id: int) -> List[Appointment]:
        with self._session_factory() as db:
            rows = db.scalars(
                select(DbAppointment)
                .options(selectinload(DbAppointment.items))
                .where(DbAppointment.business_id == business_id)
                .order_by(DbAppointment.start_time)
            ).all()
            return [_to_domain(row) for row in rows]

    def list_intersecting(
        self, resource: Resource, start: datetime, end: datetime
    ) -> List[Appointment]:
        with self._session_factory() as db:
            rows = db.scalars(_intersecting_query(resource, start, end)).all()
            return [_to_domain(row) for row in rows]

    @contextmanager
    def ledger(self, resource: Resource) -> Iterator[LedgerSession]:
        with _process_lock(resource.key):
            db = self._session_factory()
            try:
                self._lock_calendar(db, resource)
                yield LedgerSession(db, resource)
                db.commit()
            except Exception:
                db.rollback()
                raise
            finally:
                db.close()

    def _lock_calendar(self, db: Session, resource: Resource) -> None:
        stmt = (
            select(ScheduleLock)
            .where(
                ScheduleLock.business_id == resource.business_id,
                ScheduleLock.groomer_id == resource.groomer_id,
            )
            .with_for_update()
        )
        lock_row = db.scalars(stmt).first()
        if lock_row is None:
            # A concurrent first booking on another process raises
            # IntegrityError here; the caller retries.
            db.add(
                ScheduleLock(
                    business_id=resource.business_id,
                    groomer_id=resource.groomer_id,
                    version=0,
                )
            )
            db.flush()
            lock_row = db.scalars(stmt).first()
            logger.debug(
                "Schedule lock row created",
                extra={"context": {"resource": resource.key}},
            )
        lock_row.version += 1
        db.flush()
