"""Database engine and session management for ci_models.

This module provides SQLAlchemy engine creation, session factory,
and base model class for the datastore tables.
"""

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from ci_models.config import get_settings


class Base(DeclarativeBase):
    """Base class for all datastore tables."""

    pass


def get_engine(db_url: str | None = None) -> Any:
    """Create and return a SQLAlchemy engine.

    Args:
        db_url: Database URL. If not provided, uses settings default.

    Returns:
        SQLAlchemy Engine instance.
    """
    if db_url is None:
        settings = get_settings()
        db_url = settings.db_url

    # Datastore calls run in worker threads
    connect_args: dict[str, Any] = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    return create_engine(
        db_url,
        connect_args=connect_args,
        echo=False,
    )


def get_session_factory(engine: Any | None = None) -> sessionmaker[Session]:
    """Create and return a session factory.

    Args:
        engine: SQLAlchemy engine. If not provided, creates one from settings.

    Returns:
        Session factory (sessionmaker).
    """
    if engine is None:
        engine = get_engine()
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@contextmanager
def get_session(
    session_factory: sessionmaker[Session] | None = None,
) -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations.

    Args:
        session_factory: Optional session factory. Creates one if not provided.

    Yields:
        SQLAlchemy Session instance.
    """
    if session_factory is None:
        session_factory = get_session_factory()

    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables(engine: Any | None = None) -> None:
    """Create all datastore tables.

    Args:
        engine: SQLAlchemy engine. If not provided, creates one from settings.
    """
    # Register the tables with the mapper before creating them
    from ci_models.datastore import tables  # noqa: F401

    if engine is None:
        engine = get_engine()
    Base.metadata.create_all(bind=engine)


def drop_all_tables(engine: Any | None = None) -> None:
    """Drop all datastore tables.

    WARNING: This is destructive. Only use in testing.

    Args:
        engine: SQLAlchemy engine. If not provided, creates one from settings.
    """
    if engine is None:
        engine = get_engine()
    Base.metadata.drop_all(bind=engine)


__all__ = [
    "Base",
    "create_all_tables",
    "drop_all_tables",
    "get_engine",
    "get_session",
    "get_session_factory",
]
