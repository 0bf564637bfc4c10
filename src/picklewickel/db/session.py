"""
Database session management for PickleWickel.

Provides the SQLAlchemy engine and session factory used by the key-value
store. Uses the settings from config.py.

Usage:
    # As a context manager (recommended for scripts)
    from picklewickel.db import get_session

    with get_session() as session:
        repo = CollectionRepository(SqlKeyValueStore(session))
        ...
        # Commits automatically on exit, rolls back on exception

    # As a dependency injection (for FastAPI)
    from picklewickel.db.session import get_db
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from picklewickel.config import settings
from picklewickel.db.models import Base


def get_engine(database_url: str | None = None) -> Engine:
    """
    Create a SQLAlchemy engine.

    Pool sizing only applies to server databases; SQLite picks its own pool.
    Pre-ping verifies connections before use (handles stale connections).
    """
    url = database_url or settings.database_url
    kwargs: dict = {
        "pool_pre_ping": True,
        "echo": settings.log_level == "DEBUG",  # Log SQL only in debug mode
    }
    if not url.startswith("sqlite"):
        kwargs["pool_size"] = settings.db_pool_size
        kwargs["max_overflow"] = settings.db_max_overflow
    return create_engine(url, **kwargs)


# Create the engine lazily (singleton pattern via module-level variable)
_engine = None


def _get_engine() -> Engine:
    """Get or create the singleton engine instance."""
    global _engine
    if _engine is None:
        _engine = get_engine()
    return _engine


# Session factory - bound on first use so importing never connects
SessionLocal = sessionmaker(
    autocommit=False,  # We'll handle commits explicitly
    autoflush=False,  # Don't auto-flush before queries (more control)
)


def init_db(engine: Engine | None = None) -> None:
    """Create the kv_documents table if missing (dev/SQLite convenience)."""
    Base.metadata.create_all(engine or _get_engine())


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Automatically commits on successful exit, rolls back on exception.
    This is the recommended way to use sessions in scripts.

    Raises:
        Any exception from the database operation (after rollback)
    """
    session = SessionLocal(bind=_get_engine())
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """
    Dependency injection function for FastAPI.

    Handlers commit explicitly after a successful write.
    """
    db = SessionLocal(bind=_get_engine())
    try:
        yield db
    finally:
        db.close()
