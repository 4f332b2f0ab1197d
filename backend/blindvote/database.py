"""
Blindvote Database Configuration
SQLAlchemy setup backing the election entity store
"""

from contextlib import contextmanager
from typing import Iterator, Optional
import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from blindvote.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


def build_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """
    Create an engine for the given URL (defaults to settings.DATABASE_URL)

    SQLite connections are opened with check_same_thread disabled so a
    session factory can be shared with the host's worker thread.
    """
    url = database_url or settings.DATABASE_URL
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}

    logger.info(f"Database URL configured: {url.split('@')[-1]}")
    return create_engine(
        url,
        echo=settings.DATABASE_ECHO if echo is None else echo,
        future=True,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    """Session factory with explicit commits only"""
    return sessionmaker(
        bind=engine,
        class_=Session,
        expire_on_commit=False,
        autoflush=False,
    )


engine = build_engine()
SessionLocal = build_session_factory(engine)


@contextmanager
def session_scope(session_factory: sessionmaker = SessionLocal) -> Iterator[Session]:
    """
    Run one unit of work in a single transaction

    Commits when the block exits normally and rolls back on any exception,
    so a failed call never leaves partial writes behind.

    Usage:
        with session_scope(factory) as db:
            db.add(record)
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.debug(f"Transaction rolled back: {e!r}")
        raise
    finally:
        session.close()


def init_db(bind: Engine = engine) -> None:
    """
    Initialize database - create all tables

    This should be called once before the genesis build
    """
    try:
        # Import all models to ensure they're registered
        from blindvote import models  # noqa: F401

        Base.metadata.create_all(bind=bind)
        logger.info(f"Database tables created/verified: {', '.join(Base.metadata.tables.keys())}")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


def drop_all_tables(bind: Engine = engine) -> None:
    """
    Drop all tables (use with caution!)
    Only for testing/development
    """
    try:
        from blindvote import models  # noqa: F401

        Base.metadata.drop_all(bind=bind)
        logger.warning("All database tables dropped")
    except Exception as e:
        logger.error(f"Failed to drop tables: {e}")
        raise


def reset_db(bind: Engine = engine) -> None:
    """
    Reset database - drop and recreate all tables
    Only for testing/development
    """
    logger.warning("Resetting database...")
    drop_all_tables(bind)
    init_db(bind)
    logger.info("Database reset complete")


def check_connection(bind: Engine = engine) -> bool:
    """
    Check database connection
    Returns True if connection is working
    """
    try:
        with bind.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False
