"""Database connection and session management."""

import logging
from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fintrack.models import Base
from fintrack.services.config import get_settings

logger = logging.getLogger(__name__)


def make_engine(database_url: str) -> Engine:
    """Create an engine for ``database_url``.

    SQLite uses StaticPool and disables the same-thread check so one
    in-process database can be shared by sessions (dev/test).
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_pre_ping=True)


def make_session_factory(bind: Engine) -> sessionmaker[Session]:
    """Create the session factory used by services and tests."""
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


def init_db(bind: Engine) -> None:
    """Create all tables that do not exist yet.

    Production databases are managed with Alembic (``alembic upgrade head``);
    this is for local development and tests.
    """
    Base.metadata.create_all(bind=bind)
    logger.info("Database schema initialised on %s", bind.url)


engine = make_engine(get_settings().database_url)
SessionLocal = make_session_factory(engine)


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


__all__ = [
    "engine",
    "SessionLocal",
    "get_db",
    "init_db",
    "make_engine",
    "make_session_factory",
]
