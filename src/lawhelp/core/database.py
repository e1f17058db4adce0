"""
Database engine and session management for LawHelp.

This module builds SQLAlchemy engines for the configured SQL backend and
provides transaction-scoped sessions for the SQL storage adapter.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.exc import SQLAlchemyError

from lawhelp.core.config import get_config

config = get_config()
logger = logging.getLogger(__name__)


def create_database_engine(database_url: str, echo: Optional[bool] = None) -> Engine:
    """
    Create an engine for the given URL.

    SQLite (used by the test-suite) gets a single shared in-process connection;
    MySQL and PostgreSQL get a pre-pinged, recycled connection pool.
    """
    if echo is None:
        echo = config.application.debug

    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo,
        )

    engine = create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=config.database.db_pool_size,
        max_overflow=config.database.db_max_overflow,
        pool_timeout=config.database.db_pool_timeout,
        pool_pre_ping=True,  # Verify connections before use
        pool_recycle=3600,   # Recycle connections every hour
        echo=echo,
    )

    if engine.dialect.name == "postgresql":
        event.listen(engine, "connect", _set_postgresql_timeouts)

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory whose objects stay usable after commit."""
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def _set_postgresql_timeouts(dbapi_connection, connection_record):
    """Set statement and idle transaction timeouts on new PostgreSQL connections."""
    with dbapi_connection.cursor() as cursor:
        # Set statement timeout (5 minutes)
        cursor.execute("SET statement_timeout = '300s'")
        # Set idle transaction timeout (10 minutes)
        cursor.execute("SET idle_in_transaction_session_timeout = '600s'")


@contextmanager
def session_scope(session_factory: sessionmaker) -> Iterator[Session]:
    """
    Get database session with transaction management.

    Yields:
        Database session, committed on success and rolled back on error

    Raises:
        SQLAlchemyError: If database operation fails
    """
    db = session_factory()
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        logger.error(f"Database transaction error: {e}")
        db.rollback()
        raise
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def create_tables(engine: Engine):
    """Create all database tables."""
    try:
        # Import all models to ensure they are registered with SQLAlchemy
        from lawhelp.models import Base
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        logger.error(f"Failed to create database tables: {e}")
        raise


def check_database_connection(engine: Engine) -> bool:
    """
    Check if database connection is working.

    Returns:
        True if connection is successful, False otherwise
    """
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        logger.info("Database connection check successful")
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database connection check failed: {e}")
        return False
