"""Unit tests for cancel/reschedule authorization."""

from datetime import timedelta

import pytest

from groombook.core.exceptions import Forbidden, TooLate
from groombook.domain.entities import Actor, UserRole
from groombook.domain.policy import (
    authorize_change,
    ensure_change_access,
    hours_until_start,
)
from tests.factories.domain_factories import (
    CLIENT_ID,
    OWNER_ID,
    make_appointment,
    make_business,
    utc,
)

NOW = utc(2030, 1, 6, 10, 0)


def _appointment_in(hours: float):
    return make_appointment(NOW + timedelta(hours=hours))


@pytest.mark.unit
@pytest.mark.domain
@pytest.mark.security
class TestAuthorizeChange:
    def test_client_with_enough_notice_is_allowed(self):
        client = Actor(id=CLIENT_ID, role=UserRole.CLIENT)

        authorize_change(_appointment_in(48), make_business(), client, NOW)

    def test_client_exactly_at_threshold_is_allowed(self):
        client = Actor(id=CLIENT_ID, role=UserRole.CLIENT)

        authorize_change(_appointment_in(24), make_business(), client, NOW)

    def test_client_inside_notice_period_is_too_late(self):
        client = Actor(id=CLIENT_ID, role=UserRole.CLIENT)

        with pytest.raises(TooLate) as exc_info:
            authorize_change(_appointment_in(10), make_business(), client, NOW)

        assert "24 hours" in exc_info.value.message

    def test_zero_notice_business_lets_client_change_late(self):
        client = Actor(id=CLIENT_ID, role=UserRole.CLIENT)
        business = make_business(min_hours_before_cancel_or_reschedule=0)

        authorize_change(_appointment_in(0.5), business, client, NOW)

    def test_other_client_is_forbidden(self):
        stranger = Actor(id=CLIENT_ID + 1, role=UserRole.CLIENT)

        with pytest.raises(Forbidden):
            authorize_change(_appointment_in(48), make_business(), stranger, NOW)

    def test_owner_ignores_notice_period(self):
        owner = Actor(id=OWNER_ID, role=UserRole.GROOMER_OWNER)

        authorize_change(_appointment_in(1), make_business(), owner, NOW)

    def test_owner_of_another_business_is_forbidden(self):
        other_owner = Actor(id=OWNER_ID + 1, role=UserRole.GROOMER_OWNER)

        with pytest.raises(Forbidden):
            authorize_change(_appointment_in(48), make_business(), other_owner, NOW)

    def test_staff_cannot_change_appointments(self):
        staff = Actor(id=OWNER_ID + 2, role=UserRole.GROOMER_STAFF)

        with pytest.raises(Forbidden):
            authorize_change(_appointment_in(48), make_business(), staff, NOW)


@pytest.mark.unit
@pytest.mark.domain
@pytest.mark.security
class TestEnsureChangeAccess:
    def test_access_ignores_notice_period(self):
        client = Actor(id=CLIENT_ID, role=UserRole.CLIENT)

        ensure_change_access(_appointment_in(1), make_business(), client)

    def test_other_client_is_forbidden(self):
        stranger = Actor(id=CLIENT_ID + 1, role=UserRole.CLIENT)

        with pytest.raises(Forbidden, match="do not have access"):
            ensure_change_access(_appointment_in(48), make_business(), stranger)

    def test_staff_role_is_forbidden(self):
        staff = Actor(id=OWNER_ID + 2, role=UserRole.GROOMER_STAFF)

        with pytest.raises(Forbidden, match="role cannot"):
            ensure_change_access(_appointment_in(48), make_business(), staff)


@pytest.mark.unit
@pytest.mark.domain
def test_hours_until_start_is_fractional():
    assert hours_until_start(_appointment_in(1.5), NOW) == pytest.approx(1.5)
    assert hours_until_start(_appointment_in(-2), NOW) == pytest.approx(-2)
