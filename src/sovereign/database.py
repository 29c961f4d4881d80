"""Database connection and session management.

This module provides database connection management, session factories,
and utility functions for database operations.
"""

from contextlib import suppress
from typing import Any

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from sovereign.config import get_settings
from sovereign.models import Base


def _configure_sqlite_wal(
    dbapi_connection: Any, connection_record: Any  # noqa: ARG001
) -> None:
    """Configure SQLite to use WAL mode for better concurrency.

    Args:
        dbapi_connection: The DBAPI connection
        connection_record: Connection record (required by SQLAlchemy event API)
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str | None = None) -> Engine:
    """Create and configure the database engine.

    Args:
        url: Database URL; defaults to ``Settings.DATABASE_URL``

    Returns:
        Engine: Configured SQLAlchemy engine

    Note:
        For SQLite databases, automatically configures WAL mode and foreign keys.
    """
    settings = get_settings()
    url = url or settings.DATABASE_URL

    if url.startswith("sqlite"):
        engine = create_engine(url, echo=settings.DATABASE_ECHO, pool_pre_ping=True)
        event.listen(engine, "connect", _configure_sqlite_wal)
    else:
        engine = create_engine(
            url,
            echo=settings.DATABASE_ECHO,
            pool_pre_ping=True,
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_recycle=settings.DATABASE_POOL_RECYCLE,
            pool_timeout=settings.DATABASE_POOL_TIMEOUT,
        )

    return engine


# Global engine and session factory
_engine: Engine | None = None
_SessionLocal: sessionmaker[Session] | None = None


def get_engine() -> Engine:
    """Get or create the global database engine."""
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """Get or create the global session factory.

    Sessions do not autoflush and keep attributes loaded after commit, so
    objects returned by the command services stay readable.
    """
    global _SessionLocal  # noqa: PLW0603
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=get_engine(),
        )
    return _SessionLocal


def dispose_engine() -> None:
    """Dispose the global engine and forget the cached session factory."""
    global _engine, _SessionLocal  # noqa: PLW0603
    if _engine is not None:
        with suppress(SQLAlchemyError):
            _engine.dispose()
    _engine = None
    _SessionLocal = None


def init_db(engine: Engine | None = None) -> None:
    """Initialize the database by creating all tables.

    Note:
        This creates tables directly without migrations. For production,
        use alembic migrations instead.
    """
    Base.metadata.create_all(bind=engine or get_engine())


def check_database_health() -> bool:
    """Check if the database is accessible.

    Returns:
        bool: True if database is healthy, False otherwise
    """
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        return False


def get_table_names() -> list[str]:
    """Get list of all table names in the database."""
    return inspect(get_engine()).get_table_names()

