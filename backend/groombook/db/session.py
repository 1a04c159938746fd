import logging

from sqlalchemy import create_engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from groombook.core import config

logger = logging.getLogger(__name__)

# Create Base class for models
Base = declarative_base()

# Internal lazy globals
_engine = None
_SessionLocal = None
_database_url = None


def get_engine():
    """Return a cached SQLAlchemy engine, creating it from DATABASE_URL on
    first call. This allows tests to set DATABASE_URL before the engine is
    constructed."""
    global _engine
    global _database_url
    global _SessionLocal
    database_url = config.get_database_url()
    # If engine not created yet or DATABASE_URL changed, (re)create engine
    if _engine is None or _database_url != database_url:
        if _engine is not None:
            _engine.dispose()
            _SessionLocal = None

        url = make_url(database_url)
        is_postgres = url.drivername.startswith("postgres")

        if is_postgres:
            _engine = create_engine(
                database_url,
                pool_size=20,
                max_overflow=40,
                pool_pre_ping=True,  # Detects and refreshes stale connections
                pool_recycle=3600,
                connect_args={
                    "application_name": "groombook",  # Visible in pg_stat_activity
                    "connect_timeout": 10,
                },
                echo=False,  # Controlled by logging config
            )
        elif url.drivername.startswith("sqlite") and url.database in (None, "", ":memory:"):
            # Share one in-memory database across the process so DDL persists
            # across sessions.
            _engine = create_engine(
                database_url,
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        elif url.drivername.startswith("sqlite"):
            # File databases are used by the threaded booking tests; writers
            # wait on the database lock instead of failing immediately.
            _engine = create_engine(
                database_url,
                echo=False,
                connect_args={"check_same_thread": False, "timeout": 30},
            )
        else:
            _engine = create_engine(database_url, echo=False)

        logger.debug(
            "SQLAlchemy engine created",
            extra={
                "context": {
                    "url": url.render_as_string(hide_password=True),
                    "dialect": _engine.dialect.name,
                }
            },
        )
        _database_url = database_url
    return _engine


def get_sessionmaker():
    """Return a cached sessionmaker bound to the lazy engine."""
    global _SessionLocal
    engine = get_engine()
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
        )
    return _SessionLocal


def SessionLocal():
    """Calling SessionLocal() returns a new Session instance."""
    return get_sessionmaker()()


def reset_engine():
    """Dispose the cached engine so the next call rebuilds it."""
    global _engine, _SessionLocal, _database_url
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None
    _database_url = None


def create_tables():
    """Create all tables in database using the lazy engine."""
    # Models must be imported so Base.metadata is populated
    from groombook.db import base  # noqa: F401

    Base.metadata.create_all(bind=get_engine())

