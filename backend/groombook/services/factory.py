"""Wiring of repositories into services for one request-scoped session."""

from groombook.repositories.appointment_repo import AppointmentRepository
from groombook.repositories.business_repo import BusinessRepository
from groombook.repositories.catalog_repo import CatalogRepository
from groombook.repositories.pet_repo import PetRepository
from groombook.services.availability_service import AvailabilityService
from groombook.services.booking_service import BookingService
from groombook.services.notification_service import NotificationService
from groombook.services.selection_service import SelectionService


def build_selection_service(db) -> SelectionService:
    return SelectionService(
        BusinessRepository(db), CatalogRepository(db), PetRepository(db)
    )


def build_availability_service(db) -> AvailabilityService:
    return AvailabilityService(AppointmentRepository(), build_selection_service(db))


def build_booking_service(db) -> BookingService:
    return BookingService(
        AppointmentRepository(), build_selection_service(db), NotificationService()
    )
