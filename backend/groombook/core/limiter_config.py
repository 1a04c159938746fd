import os
import sys

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address


def is_test_mode():
    """Check if we're running in test mode (pytest/CI)."""
    testing_val = os.getenv("TESTING", "").lower().strip()
    if testing_val in ("true", "1", "yes"):
        return True
    if "pytest" in sys.modules:
        return True
    if os.getenv("PYTEST_CURRENT_TEST"):
        return True
    return False


# Global Limiter instance imported by controllers; create_app() binds it and
# disables it when RATE_LIMIT_ENABLED is off.
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200 per hour", "50 per minute"],
    storage_uri=os.getenv("LIMITER_STORAGE_URI", "memory://"),
    enabled=True,
)

# Booking writes are the contended path; keep a tighter per-client budget.
BOOKING_WRITE_LIMIT = os.getenv("BOOKING_WRITE_LIMIT", "20 per minute")
