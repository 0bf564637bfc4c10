"""
SQLAlchemy ORM models for PickleWickel.

The application persists data as a flat key-value store: one JSON document
per logical collection (matches, scraped matches, tournaments, scrape
targets, scraper health). A single table backs it:

- kv_documents: key -> whole JSON document

There are no partial updates. Writers read the whole document, compute the
new one in memory and write it back, so concurrent writers race and the
last write wins.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
DocumentType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


class KVDocument(Base):
    """
    One whole JSON document stored under a key.

    Attributes:
        key: Collection key, e.g. 'picklewickel_scraped_matches_v1'
        value: The JSON document (usually a list of records)
        updated_at: Last time the document was replaced
    """

    __tablename__ = "kv_documents"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[Any] = mapped_column(DocumentType, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<KVDocument(key='{self.key}')>"
