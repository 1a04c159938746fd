"""
Abstract interfaces for repositories and collaborators.

The scheduling services depend on these contracts only, so unit tests can
inject mocks and the storage engine can change without touching them.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from typing import List, Optional, Sequence

from .entities import (
    Appointment,
    AppointmentStatus,
    Business,
    DurationRule,
    Pet,
    Resource,
    Service,
)


class IBusinessReader(ABC):
    """Read access to the business registry."""

    @abstractmethod
    def get_by_id(self, business_id: int) -> Optional[Business]:
        """Get business (with working hours) by ID."""
        pass

    @abstractmethod
    def get_by_owner(self, owner_user_id: int) -> Optional[Business]:
        """Get the business owned by a groomer owner."""
        pass

    @abstractmethod
    def has_active_staff(self, business_id: int) -> bool:
        """Whether the business has any active staff members."""
        pass

    @abstractmethod
    def is_active_staff(self, business_id: int, user_id: int) -> bool:
        """Whether ``user_id`` is an active staff member of the business."""
        pass


class ICatalogReader(ABC):
    """Read access to services and their duration rules."""

    @abstractmethod
    def get_services(self, service_ids: Sequence[int]) -> List[Service]:
        """Get the services with the given IDs (missing IDs are omitted)."""
        pass

    @abstractmethod
    def get_duration_rules(self, service_id: int) -> List[DurationRule]:
        """Get all duration rules of a service."""
        pass


class IPetReader(ABC):
    """Read access to the pet registry."""

    @abstractmethod
    def get_pets(self, pet_ids: Sequence[int]) -> List[Pet]:
        """Get the pets with the given IDs (missing IDs are omitted)."""
        pass


class IAppointmentReader(ABC):
    """Interface for appointment read operations.

    Reads may be served from a replica; they are never used for the
    authoritative overlap check.
    """

    @abstractmethod
    def get_by_id(self, appointment_id: int) -> Optional[Appointment]:
        """Get appointment (with items) by ID."""
        pass

    @abstractmethod
    def list_for_client(self, client_id: int) -> List[Appointment]:
        """Get all appointments booked by a client."""
        pass

    @abstractmethod
    def list_for_business(self, business_id: int) -> List[Appointment]:
        """Get all appointments of a business."""
        pass

    @abstractmethod
    def list_intersecting(
        self, resource: Resource, start: datetime, end: datetime
    ) -> List[Appointment]:
        """Get non-cancelled appointments of ``resource`` intersecting ``[start, end)``."""
        pass


class ILedgerSession(ABC):
    """Operations available while holding the lock on one resource's ledger."""

    resource: Resource

    @abstractmethod
    def list_intersecting(
        self, start: datetime, end: datetime
    ) -> List[Appointment]:
        """Current non-cancelled bookings intersecting ``[start, end)``."""
        pass

    @abstractmethod
    def get_appointment(self, appointment_id: int) -> Optional[Appointment]:
        """Re-read an appointment inside the transaction."""
        pass

    @abstractmethod
    def insert(self, appointment: Appointment) -> Appointment:
        """Insert an appointment and its items."""
        pass

    @abstractmethod
    def update_window(
        self,
        appointment_id: int,
        start_time: datetime,
        end_time: datetime,
        home_address: Optional[str] = None,
        home_zone: Optional[str] = None,
    ) -> Appointment:
        """Move an appointment to a new window."""
        pass

    @abstractmethod
    def update_status(
        self,
        appointment_id: int,
        status: AppointmentStatus,
        cancel_reason: Optional[str] = None,
    ) -> Appointment:
        """Change an appointment's status."""
        pass


class IAppointmentWriter(ABC):
    """Interface for appointment write operations."""

    @abstractmethod
    def ledger(self, resource: Resource) -> AbstractContextManager:
        """Open a transaction holding the exclusive lock for ``resource``.

        The context yields an ``ILedgerSession``; it commits on normal exit
        and rolls back when the block raises.
        """
        pass


class IAppointmentRepository(IAppointmentReader, IAppointmentWriter):
    """Complete appointment repository interface."""

    pass


class INotifier(ABC):
    """Fire-and-forget client notifications."""

    @abstractmethod
    def notify(self, client_id: int, message: str) -> None:
        """Send ``message`` to the client."""
        pass
