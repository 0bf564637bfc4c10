"""
Database module for PickleWickel.

Provides the SQLAlchemy model backing the key-value store and session
management.

Usage:
    from picklewickel.db import get_session

    with get_session() as session:
        ...
"""

from picklewickel.db.models import Base, KVDocument
from picklewickel.db.session import SessionLocal, get_engine, get_session, init_db

__all__ = [
    # Base
    "Base",
    # Models
    "KVDocument",
    # Session
    "get_session",
    "get_engine",
    "init_db",
    "SessionLocal",
]
