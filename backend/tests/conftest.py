"""
Central pytest configuration for the groombook tests.

Environment variables are set before any application module is imported so
import-time settings (timezone, retry budget, limiter) see test values.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ["TESTING"] = "true"
os.environ["RATE_LIMIT_ENABLED"] = "0"  # Disable rate limiting in tests
os.environ["LOG_TO_FILE"] = "0"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-for-the-suite"
os.environ["BOOKING_RETRY_BACKOFF_MS"] = "1"

import pytest  # noqa: E402

from tests.config.markers import *  # noqa: E402,F401,F403
from tests.fixtures.database_fixtures import *  # noqa: E402,F401,F403


@pytest.fixture
def app(database):
    """Create a Flask application bound to the per-test database."""
    from groombook.main import create_app

    flask_app = create_app()
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture
def client(app):
    """Create a test client for the Flask application."""
    return app.test_client()


@pytest.fixture
def auth_headers():
    """Build Authorization headers for a user ID and role."""
    from groombook.core.security import create_user_token

    def _headers(user_id: int, role: str) -> dict:
        token = create_user_token(user_id, role)
        return {"Authorization": f"Bearer {token}"}

    return _headers
