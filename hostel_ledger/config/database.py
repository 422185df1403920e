"""
Database connection settings for the hostel fee ledger.
Provides SQLAlchemy engine, session management and connection pooling.
"""

import time
import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from hostel_ledger.config.settings import settings

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def build_engine(url: Optional[str] = None, **overrides) -> Engine:
    """
    Create an engine for the given URL.

    Pool sizing only applies to server databases; SQLite engines are
    created with the driver defaults.
    """
    url = url or settings.get_database_url()
    options = {
        "echo": settings.DB_ECHO,
        "pool_pre_ping": True,
    }
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    else:
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_POOL_OVERFLOW,
            pool_recycle=3600,
            connect_args=settings.DB_CONNECT_ARGS,
        )
    options.update(overrides)
    return create_engine(url, **options)


def get_engine() -> Engine:
    """Return the process-wide engine, creating it on first use"""
    global _engine
    if _engine is None:
        _engine = build_engine()
    return _engine


def get_session_factory() -> sessionmaker:
    """Return the process-wide sessionmaker bound to the engine"""
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=get_engine(),
        )
    return _session_factory


def configure_database(engine: Engine) -> sessionmaker:
    """Rebind the module to an externally created engine (tests, workers)"""
    global _engine, _session_factory
    _engine = engine
    _session_factory = sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )
    return _session_factory


# Event listeners for performance monitoring
@event.listens_for(Engine, "before_cursor_execute")
def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Log query execution time - start timer"""
    conn.info.setdefault('query_start_time', []).append(time.time())


@event.listens_for(Engine, "after_cursor_execute")
def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Log query execution time - stop timer and log if slow query"""
    total_time = time.time() - conn.info['query_start_time'].pop()

    if total_time > settings.DB_SLOW_QUERY_SECONDS:
        logger.warning(
            f"Slow query detected ({total_time:.4f}s): {statement[:100]}..."
        )


def get_db_session() -> Generator[Session, None, None]:
    """Get database session with automatic cleanup"""
    session = get_session_factory()()
    try:
        yield session
    except Exception as e:
        logger.error(f"Database session error: {str(e)}")
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """Context manager for database sessions"""
    session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception as e:
        logger.error(f"Database context error: {str(e)}")
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Create all ledger tables (development and test databases)"""
    from hostel_ledger.models import Base

    Base.metadata.create_all(bind=get_engine())
    logger.info("Database tables created")
