import logging
import os

from dotenv import load_dotenv
from flask import Flask
from werkzeug.exceptions import HTTPException

# Only load from .env when DATABASE_URL is not already defined by the environment
if not os.getenv("DATABASE_URL"):
    load_dotenv()

from groombook.core.api_utils import api_response  # noqa: E402
from groombook.core.exceptions import (  # noqa: E402
    BusinessConfigurationError,
    SchedulingError,
)

logger = logging.getLogger(__name__)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(SchedulingError)
    def handle_scheduling_error(e: SchedulingError):
        log = logger.error if e.status_code >= 500 else logger.info
        log(
            f"Request rejected: {e.message}",
            extra={"context": {"error": e.error, "status_code": e.status_code}},
        )
        return api_response(False, e.message, status_code=e.status_code, error=e.error)

    @app.errorhandler(BusinessConfigurationError)
    def handle_configuration_error(e: BusinessConfigurationError):
        logger.error(
            "Business configuration is invalid",
            extra={"context": {"error": str(e)}},
            exc_info=True,
        )
        return api_response(
            False, str(e), status_code=500, error="configuration_error"
        )

    @app.errorhandler(ValueError)
    def handle_validation_error(e: ValueError):
        return api_response(False, str(e), status_code=400, error="validation_error")

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return api_response(
            False,
            e.description or e.name,
            status_code=e.code or 500,
            error=e.name.lower().replace(" ", "_"),
        )

    @app.errorhandler(Exception)
    def handle_unexpected_error(e: Exception):
        logger.error(
            "Unhandled exception",
            extra={"context": {"error": str(e)}},
            exc_info=True,
        )
        return api_response(
            False, "Internal server error", status_code=500, error="internal_error"
        )


def _init_sentry(env: str) -> None:
    sentry_dsn = os.getenv("SENTRY_DSN")
    if not sentry_dsn:
        logger.info(
            "Sentry not initialized (SENTRY_DSN not set)",
            extra={"context": {"environment": env}},
        )
        return

    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    traces_sample_rate = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1"))
    sentry_sdk.init(
        dsn=sentry_dsn,
        environment=env,
        release=os.getenv("GIT_SHA", "unknown"),
        integrations=[FlaskIntegration(), SqlalchemyIntegration()],
        traces_sample_rate=traces_sample_rate,
        send_default_pii=False,
    )
    logger.info(
        "Sentry initialized",
        extra={"context": {"environment": env, "traces_sample_rate": traces_sample_rate}},
    )


def _init_rate_limiting(app: Flask) -> None:
    from groombook.core.config import get_rate_limit_enabled
    from groombook.core.limiter_config import is_test_mode, limiter

    app.config["RATELIMIT_STORAGE_URI"] = os.getenv("LIMITER_STORAGE_URI", "memory://")
    limiter.init_app(app)

    disabled_for_tests = is_test_mode() and os.getenv("RATE_LIMIT_ENABLED", "1") == "0"
    limiter.enabled = get_rate_limit_enabled() and not disabled_for_tests
    if not limiter.enabled:
        logger.info("Rate limiting disabled", extra={"context": {"test_mode": is_test_mode()}})


def create_app():
    env = os.getenv("FLASK_ENV", "development")
    is_production = env == "production"

    app = Flask(__name__)
    if os.getenv("TESTING", "").lower().strip() in ("true", "1", "yes"):
        app.config["TESTING"] = True
    app.config["SECRET_KEY"] = os.getenv("FLASK_SECRET_KEY", "dev-secret-change-me")

    from groombook.core.logging_config import setup_logging

    setup_logging(
        app=app,
        log_level=os.getenv("LOG_LEVEL", "INFO" if is_production else "DEBUG"),
        enable_sql_echo=os.getenv("SQL_ECHO", "0") == "1",
        log_to_file=os.getenv("LOG_TO_FILE", "1") == "1" and not app.config.get("TESTING"),
        use_json_format=is_production,
        slow_query_ms=float(os.getenv("SQL_SLOW_QUERY_MS", "0")),
    )

    from groombook.core.config import log_scheduling_config, log_timezone_config

    log_timezone_config()
    log_scheduling_config()

    _init_sentry(env)
    _init_rate_limiting(app)

    from groombook.controllers.appointment_controller import appointment_bp
    from groombook.controllers.availability_controller import availability_bp
    from groombook.controllers.health_controller import health_bp

    app.register_blueprint(appointment_bp)
    app.register_blueprint(availability_bp)
    app.register_blueprint(health_bp)

    _register_error_handlers(app)

    logger.info(
        "Application created",
        extra={"context": {"environment": env, "blueprints": list(app.blueprints)}},
    )
    return app
