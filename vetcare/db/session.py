"""
Engine and session factory, built lazily from ``DATABASE_URL``.

Nothing touches the database at import time, so tests can point
``DATABASE_URL`` elsewhere before the first session is opened.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from vetcare.core.config import get_database_url
from vetcare.core.logging_config import get_logger

logger = get_logger(__name__)

Base = declarative_base()

_engine = None
_engine_url = None
_session_factory = None


def _build_engine(database_url: str) -> Engine:
    url = make_url(database_url)
    if url.drivername.startswith("sqlite") and url.database in (None, "", ":memory:"):
        # One connection shared process-wide keeps the in-memory schema alive
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_pre_ping=True)


def get_engine() -> Engine:
    """Cached engine; rebuilt when DATABASE_URL changes."""
    global _engine, _engine_url, _session_factory
    database_url = get_database_url()
    if _engine is not None and _engine_url == database_url:
        return _engine

    if _engine is not None:
        _engine.dispose()
    _engine = _build_engine(database_url)
    _engine_url = database_url
    _session_factory = None
    logger.info(
        "Database engine created",
        extra={"context": {"driver": _engine.url.drivername}},
    )
    return _engine


def get_sessionmaker() -> sessionmaker:
    global _session_factory
    engine = get_engine()
    if _session_factory is None:
        _session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return _session_factory


def SessionLocal():
    """New Session bound to the current engine."""
    return get_sessionmaker()()


def create_tables() -> None:
    """Create the appointment schema if it does not exist yet."""
    # Registers the models on Base.metadata
    from vetcare.db import base  # noqa: F401

    Base.metadata.create_all(bind=get_engine())
