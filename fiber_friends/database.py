"""
Database Configuration

SQLAlchemy setup for Fiber Friends persistence.
Uses SQLite for development, can switch to PostgreSQL for production.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from fiber_friends.config import settings


def build_engine(database_url: str = settings.DATABASE_URL):
    """
    Create an engine with bounded timeouts.

    pool_pre_ping re-establishes a stale pooled connection once before
    handing it out, so a dropped connection does not fail the request.
    """
    timeout = settings.STORE_TIMEOUT_SECONDS

    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": timeout},
            echo=False,  # Set True for SQL debugging
        )

    # PostgreSQL or other databases
    return create_engine(
        database_url,
        connect_args={"connect_timeout": timeout},
        pool_pre_ping=True,
        pool_timeout=timeout,
        echo=False,
    )


engine = build_engine()

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for ORM models
Base = declarative_base()


def get_db():
    """
    Dependency that provides a database session.
    Ensures proper cleanup after request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """
    Initialize database tables.
    Call this on application startup.
    """
    from fiber_friends.models.db_models import User, Monster, TombEntry, Streak, ActivityCompletion  # noqa
    Base.metadata.create_all(bind=engine)
