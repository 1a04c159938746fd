"""Unit tests for BookingService using interface mocks."""

from dataclasses import replace
from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from groombook.core import config
from groombook.core.exceptions import (
    Forbidden,
    InvalidTransition,
    NotFound,
    SlotUnavailable,
    StorageUnavailable,
    TooLate,
)
from groombook.domain.entities import (
    Actor,
    AppointmentStatus,
    LocationType,
    PetSize,
    Resource,
    Species,
    UserRole,
)
from groombook.schemas.dtos import BookingItemRequest, BookingRequest, RescheduleRequest
from groombook.services.booking_service import BookingService
from groombook.services.selection_service import SelectionService
from tests.factories.domain_factories import (
    BUSINESS_ID,
    CLIENT_ID,
    OWNER_ID,
    make_appointment,
    make_business,
    make_pet,
    make_rule,
    make_service,
    utc,
)
from tests.factories.repository_factories import (
    AppointmentRepositoryFactory,
    BusinessRepositoryFactory,
    CatalogRepositoryFactory,
    NotifierFactory,
    PetRepositoryFactory,
)

BATH_ID = 100
LUNA_ID = 1

CLIENT = Actor(id=CLIENT_ID, role=UserRole.CLIENT)
OWNER = Actor(id=OWNER_ID, role=UserRole.GROOMER_OWNER)

START = utc(2030, 1, 7, 9, 0)  # Monday 10:00 in Madrid
NOW = utc(2030, 1, 1, 12, 0)


@pytest.fixture(autouse=True)
def fast_retries(monkeypatch):
    monkeypatch.setattr(config, "BOOKING_MAX_RETRIES", 3)
    monkeypatch.setattr(config, "BOOKING_RETRY_BACKOFF_MS", 0)


@pytest.fixture
def selection_service():
    business = make_business()
    return SelectionService(
        BusinessRepositoryFactory.create_mock_reader(business),
        CatalogRepositoryFactory.create_mock_reader(
            [make_service(BATH_ID)],
            {BATH_ID: [make_rule(45, Species.DOG, size=PetSize.SMALL)]},
        ),
        PetRepositoryFactory.create_mock_reader([make_pet(LUNA_ID)]),
    )


@pytest.fixture
def ledger_session():
    session = AppointmentRepositoryFactory.create_mock_ledger_session()
    session.insert.side_effect = lambda appointment: replace(appointment, id=1)
    return session


@pytest.fixture
def appointment_repo(ledger_session):
    return AppointmentRepositoryFactory.create_mock_full(ledger_session)


@pytest.fixture
def notifier():
    return NotifierFactory.create_mock()


@pytest.fixture
def service(appointment_repo, selection_service, notifier):
    return BookingService(appointment_repo, selection_service, notifier)


def booking_request(start=START, **overrides) -> BookingRequest:
    values = dict(
        business_id=BUSINESS_ID,
        location_type=LocationType.IN_SALON,
        start_time=start,
        items=[BookingItemRequest(pet_id=LUNA_ID, service_id=BATH_ID)],
    )
    values.update(overrides)
    return BookingRequest(**values)


def stored(appointment, appointment_repo, ledger_session):
    """Make ``appointment`` visible to both the reader and the ledger."""
    appointment_repo.get_by_id.return_value = appointment
    ledger_session.get_appointment.return_value = appointment
    ledger_session.update_window.side_effect = (
        lambda appointment_id, start, end, home_address=None, home_zone=None: replace(
            appointment, start_time=start, end_time=end
        )
    )
    ledger_session.update_status.side_effect = (
        lambda appointment_id, status, cancel_reason=None: replace(
            appointment, status=status, cancel_reason=cancel_reason
        )
    )
    return appointment


@pytest.mark.unit
@pytest.mark.services
@pytest.mark.appointment
class TestBook:
    def test_books_pending_appointment_with_computed_end(
        self, service, appointment_repo, ledger_session, notifier
    ):
        created = service.book(CLIENT, booking_request())

        assert created.id == 1
        assert created.status == AppointmentStatus.PENDING
        assert created.end_time == START + timedelta(minutes=45)
        assert created.groomer_id == OWNER_ID
        assert created.items[0].calculated_duration_minutes == 45
        appointment_repo.ledger.assert_called_once_with(
            Resource(business_id=BUSINESS_ID, groomer_id=OWNER_ID)
        )
        ledger_session.list_intersecting.assert_called_once_with(
            START, START + timedelta(minutes=45)
        )
        notifier.notify.assert_called_once()
        assert notifier.notify.call_args.args[0] == CLIENT_ID

    def test_overlap_is_rejected_without_notifying(self, service, ledger_session, notifier):
        ledger_session.list_intersecting.return_value = [
            make_appointment(START + timedelta(minutes=30), 60, appointment_id=9)
        ]

        with pytest.raises(SlotUnavailable):
            service.book(CLIENT, booking_request())

        ledger_session.insert.assert_not_called()
        notifier.notify.assert_not_called()

    def test_back_to_back_booking_is_allowed(self, service, ledger_session):
        ledger_session.list_intersecting.return_value = [
            make_appointment(START - timedelta(minutes=60), 60, appointment_id=9)
        ]

        assert service.book(CLIENT, booking_request()).id == 1

    def test_cancelled_booking_does_not_block(self, service, ledger_session):
        ledger_session.list_intersecting.return_value = [
            make_appointment(START, 60, appointment_id=9, status=AppointmentStatus.CANCELLED)
        ]

        assert service.book(CLIENT, booking_request()).id == 1

    def test_notifier_failure_does_not_fail_the_booking(self, service, notifier):
        notifier.notify.side_effect = RuntimeError("smtp down")

        assert service.book(CLIENT, booking_request()).id == 1

    def test_only_clients_can_book(self, service, appointment_repo):
        with pytest.raises(Forbidden):
            service.book(OWNER, booking_request())

        appointment_repo.ledger.assert_not_called()

    def test_naive_start_time_rejected(self, service):
        with pytest.raises(ValueError):
            service.book(CLIENT, booking_request(start=START.replace(tzinfo=None)))


@pytest.mark.unit
@pytest.mark.services
@pytest.mark.concurrency
class TestRetries:
    def test_transient_lock_error_is_retried(self, service, ledger_session):
        ledger_session.list_intersecting.side_effect = [
            OperationalError("SELECT", {}, Exception("database is locked")),
            [],
        ]

        assert service.book(CLIENT, booking_request()).id == 1
        assert ledger_session.list_intersecting.call_count == 2

    def test_persistent_write_conflict_becomes_slot_unavailable(
        self, service, ledger_session, notifier
    ):
        ledger_session.insert.side_effect = IntegrityError("INSERT", {}, Exception("conflict"))

        with pytest.raises(SlotUnavailable):
            service.book(CLIENT, booking_request())

        assert ledger_session.insert.call_count == 3
        notifier.notify.assert_not_called()

    def test_lost_connection_becomes_storage_unavailable(self, service, ledger_session):
        ledger_session.list_intersecting.side_effect = OperationalError(
            "SELECT", {}, Exception("server closed"), connection_invalidated=True
        )

        with pytest.raises(StorageUnavailable):
            service.book(CLIENT, booking_request())

    def test_retry_count_follows_config(self, service, ledger_session, monkeypatch):
        monkeypatch.setattr(config, "BOOKING_MAX_RETRIES", 1)
        ledger_session.list_intersecting.side_effect = OperationalError(
            "SELECT", {}, Exception("database is locked")
        )

        with pytest.raises(SlotUnavailable):
            service.book(CLIENT, booking_request())

        assert ledger_session.list_intersecting.call_count == 1


@pytest.mark.unit
@pytest.mark.services
@pytest.mark.appointment
class TestReschedule:
    def test_keeps_booked_duration(self, service, appointment_repo, ledger_session, notifier):
        stored(make_appointment(START, 75), appointment_repo, ledger_session)
        new_start = START + timedelta(days=1)

        updated = service.reschedule(CLIENT, 1, RescheduleRequest(start_time=new_start), now=NOW)

        assert updated.start_time == new_start
        assert updated.end_time == new_start + timedelta(minutes=75)
        ledger_session.update_window.assert_called_once_with(
            1, new_start, new_start + timedelta(minutes=75), home_address=None, home_zone=None
        )
        notifier.notify.assert_called_once()

    def test_own_window_does_not_block_the_move(self, service, appointment_repo, ledger_session):
        appointment = stored(make_appointment(START, 60), appointment_repo, ledger_session)
        ledger_session.list_intersecting.return_value = [appointment]

        updated = service.reschedule(
            CLIENT, 1, RescheduleRequest(start_time=START + timedelta(minutes=30)), now=NOW
        )

        assert updated.start_time == START + timedelta(minutes=30)

    def test_collision_with_other_booking(self, service, appointment_repo, ledger_session):
        stored(make_appointment(START, 60), appointment_repo, ledger_session)
        ledger_session.list_intersecting.return_value = [
            make_appointment(START + timedelta(hours=2), 60, appointment_id=2)
        ]

        with pytest.raises(SlotUnavailable):
            service.reschedule(
                CLIENT, 1, RescheduleRequest(start_time=START + timedelta(hours=2)), now=NOW
            )

        ledger_session.update_window.assert_not_called()

    def test_client_inside_notice_period(self, service, appointment_repo, ledger_session):
        stored(make_appointment(START, 60), appointment_repo, ledger_session)

        with pytest.raises(TooLate):
            service.reschedule(
                CLIENT,
                1,
                RescheduleRequest(start_time=START + timedelta(days=1)),
                now=START - timedelta(hours=10),
            )

    def test_owner_bypasses_notice_period(self, service, appointment_repo, ledger_session):
        stored(make_appointment(START, 60), appointment_repo, ledger_session)

        updated = service.reschedule(
            OWNER,
            1,
            RescheduleRequest(start_time=START + timedelta(hours=3)),
            now=START - timedelta(hours=1),
        )

        assert updated.start_time == START + timedelta(hours=3)

    def test_started_appointment_cannot_move(self, service, appointment_repo, ledger_session):
        stored(
            make_appointment(START, 60, status=AppointmentStatus.IN_PROGRESS),
            appointment_repo,
            ledger_session,
        )

        with pytest.raises(InvalidTransition):
            service.reschedule(
                OWNER, 1, RescheduleRequest(start_time=START + timedelta(days=1)), now=NOW
            )

    def test_address_only_change_keeps_window(
        self, service, appointment_repo, ledger_session, notifier
    ):
        appointment = stored(make_appointment(START, 60), appointment_repo, ledger_session)
        ledger_session.update_window.side_effect = (
            lambda appointment_id, start, end, home_address=None, home_zone=None: replace(
                appointment, start_time=start, end_time=end, home_zone=home_zone
            )
        )

        updated = service.reschedule(
            CLIENT, 1, RescheduleRequest(home_zone="North"), now=NOW
        )

        assert updated.start_time == START
        assert updated.home_zone == "North"
        ledger_session.list_intersecting.assert_not_called()
        ledger_session.update_window.assert_called_once_with(
            1, START, START + timedelta(minutes=60), home_address=None, home_zone="North"
        )
        notifier.notify.assert_called_once()

    def test_address_only_change_respects_notice_period(
        self, service, appointment_repo, ledger_session
    ):
        stored(make_appointment(START, 60), appointment_repo, ledger_session)

        with pytest.raises(TooLate):
            service.reschedule(
                CLIENT,
                1,
                RescheduleRequest(home_address="Calle Mayor 5"),
                now=START - timedelta(hours=10),
            )

        ledger_session.update_window.assert_not_called()

    def test_empty_change_is_rejected(self, service):
        with pytest.raises(ValueError):
            service.reschedule(CLIENT, 1, RescheduleRequest(), now=NOW)

    def test_missing_appointment(self, service):
        with pytest.raises(NotFound):
            service.reschedule(CLIENT, 404, RescheduleRequest(start_time=START), now=NOW)


@pytest.mark.unit
@pytest.mark.services
@pytest.mark.appointment
class TestCancel:
    def test_client_cancels_with_notice(self, service, appointment_repo, ledger_session, notifier):
        stored(make_appointment(START, 60), appointment_repo, ledger_session)

        cancelled = service.cancel(CLIENT, 1, reason="sick", now=NOW)

        assert cancelled.status == AppointmentStatus.CANCELLED
        assert cancelled.cancel_reason == "sick"
        ledger_session.update_status.assert_called_once_with(
            1, AppointmentStatus.CANCELLED, cancel_reason="sick"
        )
        notifier.notify.assert_called_once()

    def test_client_too_late(self, service, appointment_repo, ledger_session):
        stored(make_appointment(START, 60), appointment_repo, ledger_session)

        with pytest.raises(TooLate):
            service.cancel(CLIENT, 1, now=START - timedelta(hours=10))

        ledger_session.update_status.assert_not_called()

    def test_final_status_cannot_be_cancelled(self, service, appointment_repo, ledger_session):
        stored(
            make_appointment(START, 60, status=AppointmentStatus.DONE),
            appointment_repo,
            ledger_session,
        )

        with pytest.raises(InvalidTransition):
            service.cancel(CLIENT, 1, now=NOW)

    def test_other_client_is_forbidden(self, service, appointment_repo, ledger_session):
        stored(make_appointment(START, 60), appointment_repo, ledger_session)
        stranger = Actor(id=CLIENT_ID + 1, role=UserRole.CLIENT)

        with pytest.raises(Forbidden):
            service.cancel(stranger, 1, now=NOW)

    def test_other_client_is_forbidden_even_when_already_cancelled(
        self, service, appointment_repo, ledger_session
    ):
        stored(
            make_appointment(START, 60, status=AppointmentStatus.CANCELLED),
            appointment_repo,
            ledger_session,
        )
        stranger = Actor(id=CLIENT_ID + 1, role=UserRole.CLIENT)

        with pytest.raises(Forbidden):
            service.cancel(stranger, 1, now=NOW)

    def test_owner_of_another_business_is_forbidden(
        self, service, appointment_repo, ledger_session
    ):
        stored(
            make_appointment(START, 60, status=AppointmentStatus.DONE),
            appointment_repo,
            ledger_session,
        )
        other_owner = Actor(id=OWNER_ID + 1, role=UserRole.GROOMER_OWNER)

        with pytest.raises(Forbidden):
            service.cancel(other_owner, 1, now=NOW)


@pytest.mark.unit
@pytest.mark.services
@pytest.mark.appointment
class TestUpdateStatus:
    def test_owner_confirms(self, service, appointment_repo, ledger_session):
        stored(make_appointment(START, 60), appointment_repo, ledger_session)

        updated = service.update_status(OWNER, 1, AppointmentStatus.CONFIRMED)

        assert updated.status == AppointmentStatus.CONFIRMED

    def test_disallowed_transition(self, service, appointment_repo, ledger_session):
        stored(make_appointment(START, 60), appointment_repo, ledger_session)

        with pytest.raises(InvalidTransition):
            service.update_status(OWNER, 1, AppointmentStatus.DONE)

    def test_clients_cannot_change_status(self, service):
        with pytest.raises(Forbidden):
            service.update_status(CLIENT, 1, AppointmentStatus.CONFIRMED)

    def test_owner_of_another_business(self, service, appointment_repo, ledger_session):
        stored(make_appointment(START, 60), appointment_repo, ledger_session)
        other_owner = Actor(id=OWNER_ID + 1, role=UserRole.GROOMER_OWNER)

        with pytest.raises(Forbidden):
            service.update_status(other_owner, 1, AppointmentStatus.CONFIRMED)

    def test_status_changed_concurrently_is_rechecked(
        self, service, appointment_repo, ledger_session
    ):
        appointment_repo.get_by_id.return_value = make_appointment(START, 60)
        ledger_session.get_appointment.return_value = make_appointment(
            START, 60, status=AppointmentStatus.CANCELLED
        )

        with pytest.raises(InvalidTransition):
            service.update_status(OWNER, 1, AppointmentStatus.CONFIRMED)


@pytest.mark.unit
@pytest.mark.services
class TestReads:
    def test_client_lists_own_appointments(self, service, appointment_repo):
        appointment_repo.list_for_client.return_value = [make_appointment(START)]

        assert len(service.list_for(CLIENT)) == 1
        appointment_repo.list_for_client.assert_called_once_with(CLIENT_ID)

    def test_owner_lists_business_appointments(self, service, appointment_repo):
        service.list_for(OWNER)

        appointment_repo.list_for_business.assert_called_once_with(BUSINESS_ID)

    def test_staff_cannot_list(self, service):
        with pytest.raises(Forbidden):
            service.list_for(Actor(id=5, role=UserRole.GROOMER_STAFF))

    def test_get_for_checks_access(self, service, appointment_repo):
        appointment_repo.get_by_id.return_value = make_appointment(START)

        assert service.get_for(CLIENT, 1).id == 1
        assert service.get_for(OWNER, 1).id == 1
        with pytest.raises(Forbidden):
            service.get_for(Actor(id=CLIENT_ID + 1, role=UserRole.CLIENT), 1)
