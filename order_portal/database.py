"""
Database setup using SQLAlchemy.

This module configures the SQLAlchemy engine, session and base declarative
class for the portal. It also provides a dependency for FastAPI endpoints to
obtain a database session and ensure it is properly closed.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from order_portal.config import settings


def _engine_options(url: str) -> dict:
    """Return engine keyword arguments suited to the configured backend."""
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}
    # `check_same_thread=False` is required only for SQLite. FastAPI runs
    # sync path operations in a threadpool, so a connection may be used by a
    # thread other than the one that created it.
    options = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # An in-memory database only lives as long as its connection.
        options["poolclass"] = StaticPool
    return options


engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# `autocommit=False` and `autoflush=False` ensure we have explicit control
# over committing transactions and flushing changes to the database.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for our ORM models. All models should inherit from this.
Base = declarative_base()


def get_db():
    """Provide a database session to path operations via dependency injection.

    Yields a SQLAlchemy session and ensures it is closed after the request
    finishes processing.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
