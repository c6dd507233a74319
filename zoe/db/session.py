from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from fastapi import HTTPException
from loguru import logger
from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker

from zoe.config.settings import settings
from zoe.core.errors import DomainError


def _is_postgresql(url: str) -> bool:
    lowered = url.lower()
    return "postgresql" in lowered or "postgres" in lowered


def _validate_postgresql_driver() -> None:
    """Validate PostgreSQL driver is installed when using PostgreSQL.

    SQLAlchemy imports psycopg2 when the engine is created, so fail early
    with an install hint instead.
    """
    try:
        import psycopg2  # noqa: F401

        logger.info("PostgreSQL driver (psycopg2) is available")
    except ImportError as e:
        logger.error(
            "⚠️ CRITICAL: PostgreSQL driver (psycopg2) is not installed!\n"
            "Install it with: pip install psycopg2-binary"
        )
        raise ImportError("PostgreSQL driver required. Install with: pip install psycopg2-binary") from e


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Lazy initialization to avoid import-time database connections
_engine = None
_SessionLocal = None


def _get_engine():
    """Get or create the database engine (lazy initialization)."""
    global _engine
    if _engine is None:
        database_url = settings.database_url
        is_postgresql = _is_postgresql(database_url)
        connect_args: dict = {}
        if is_postgresql:
            _validate_postgresql_driver()
            connect_args = {
                "connect_timeout": 10,
                "application_name": "zoe-fitness",
            }
            logger.info("Using PostgreSQL database")
        elif "sqlite" in database_url.lower():
            connect_args = {"check_same_thread": False}
            logger.warning("Using SQLite database (local development only)")

        _engine = create_engine(
            database_url,
            connect_args=connect_args,
            echo=False,
            pool_pre_ping=True,
            pool_recycle=3600,
        )
        if "sqlite" in database_url.lower():
            event.listen(_engine, "connect", _enable_sqlite_foreign_keys)
        logger.info("Database engine initialized")
    return _engine


def get_engine():
    """Get or create the database engine (public API)."""
    return _get_engine()


def _get_session_local():
    """Get or create the session factory (lazy initialization)."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=_get_engine(),
        )
        logger.info("Database session factory initialized")
    return _SessionLocal


def check_database_connection() -> None:
    """Run a trivial query so misconfiguration fails at startup rather than on first request."""
    try:
        with _get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("✅ Database connection test successful")
    except Exception as e:
        logger.error(f"❌ Database connection test failed: {e}")
        raise


def _handle_session_commit(session: Session) -> None:
    """Commit the unit of work, including changes already flushed by repositories."""
    if session.dirty or session.new or session.deleted:
        logger.debug(f"Committing session: dirty={len(session.dirty)}, new={len(session.new)}, deleted={len(session.deleted)}")
    session.commit()


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Get database session context manager.

    - HTTPException: rolled back and re-raised without error logging (expected API responses)
    - DomainError: rolled back and re-raised (business rule, not a DB error)
    - Other exceptions: logged as database errors, rolled back and re-raised
    """
    session = _get_session_local()()
    try:
        yield session
        _handle_session_commit(session)
    except HTTPException:
        logger.debug("HTTPException in session, rolling back")
        session.rollback()
        raise
    except Exception as e:
        if isinstance(e, DomainError):
            logger.debug(f"{type(e).__name__} in session, rolling back (business logic error, not DB error)")
            session.rollback()
            raise
        logger.error(f"Database session error, rolling back: {type(e).__name__}: {e}")
        session.rollback()
        raise
    finally:
        session.close()
