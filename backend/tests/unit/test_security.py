"""Unit tests for JWT helpers."""

from datetime import timedelta

import pytest

from groombook.core.security import (
    create_access_token,
    create_user_token,
    get_jwt_secret_key,
    get_user_from_token,
)


@pytest.mark.unit
@pytest.mark.security
class TestTokens:
    def test_round_trip_user_token(self):
        token = create_user_token(7, "CLIENT", email="client@groomer.test")

        assert get_user_from_token(token) == {
            "user_id": 7,
            "role": "CLIENT",
            "email": "client@groomer.test",
        }

    def test_expired_token_is_rejected(self):
        token = create_access_token(
            {"sub": "7", "role": "CLIENT"}, expires_delta=timedelta(seconds=-1)
        )

        assert get_user_from_token(token) is None

    def test_token_without_role_is_rejected(self):
        token = create_access_token({"sub": "7"})

        assert get_user_from_token(token) is None

    def test_non_numeric_subject_is_rejected(self):
        token = create_access_token({"sub": "abc", "role": "CLIENT"})

        assert get_user_from_token(token) is None

    def test_garbage_token_is_rejected(self):
        assert get_user_from_token("not-a-jwt") is None


@pytest.mark.unit
@pytest.mark.security
class TestSecretKey:
    def test_weak_secret_rejected_in_production(self, monkeypatch):
        monkeypatch.setenv("FLASK_ENV", "production")
        monkeypatch.setenv("JWT_SECRET_KEY", "secret123")

        with pytest.raises(ValueError):
            get_jwt_secret_key()

    def test_strong_secret_accepted_in_production(self, monkeypatch):
        monkeypatch.setenv("FLASK_ENV", "production")
        monkeypatch.setenv("JWT_SECRET_KEY", "x" * 40)

        assert get_jwt_secret_key() == "x" * 40
