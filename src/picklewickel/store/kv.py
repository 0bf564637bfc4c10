"""
Key-value store over the kv_documents table.

The contract is deliberately minimal: ``get(key)`` returns the whole JSON
document (or None) and ``set(key, value)`` replaces it. Writes are flushed
immediately and made durable by ``commit()``, so several documents written
by one operation land together or not at all.
"""

import copy
import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from picklewickel.db.models import KVDocument
from picklewickel.errors import StorageError

logger = logging.getLogger(__name__)


class SqlKeyValueStore:
    """Whole-document key-value store backed by a SQLAlchemy session."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, key: str) -> Optional[Any]:
        """Return a copy of the document stored under ``key``, or None."""
        try:
            doc = self.session.get(KVDocument, key)
        except SQLAlchemyError as exc:
            self._fail("read", key, exc)
        if doc is None:
            return None
        return copy.deepcopy(doc.value)

    def set(self, key: str, value: Any) -> None:
        """Replace the document stored under ``key``."""
        try:
            doc = self.session.get(KVDocument, key)
            if doc is None:
                doc = KVDocument(key=key, value=value)
                self.session.add(doc)
            else:
                doc.value = value
                flag_modified(doc, "value")
            self.session.flush()
        except SQLAlchemyError as exc:
            self._fail("write", key, exc)

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self._fail("commit", None, exc)

    def _fail(self, action: str, key: Optional[str], exc: Exception) -> None:
        self.session.rollback()
        logger.error("Key-value store %s failed for key=%s: %s", action, key, exc)
        raise StorageError(f"Failed to {action} {key or 'documents'}", key=key) from exc
