"""
Collection repository: the only way the services touch storage.

Two operations, both on whole collections:

- ``load_all(collection)``: read every record
- ``replace_all(collection, records)``: overwrite every record

There is no locking and no versioning. Two writers that load the same
collection and both replace it race, and the later write silently wins.
Callers keep each read-modify-write as short as possible instead.
"""

import enum
import logging
from typing import Any, Optional

from picklewickel.config import Settings, settings as default_settings
from picklewickel.records import upgrade_legacy_match_document
from picklewickel.store.kv import SqlKeyValueStore

logger = logging.getLogger(__name__)


class Collection(str, enum.Enum):
    MATCHES = "matches"
    SCRAPED_MATCHES = "scraped_matches"
    TOURNAMENTS = "tournaments"
    SCRAPE_TARGETS = "scrape_targets"
    SCRAPER_HEALTH = "scraper_health"


MATCH_COLLECTIONS = (Collection.MATCHES, Collection.SCRAPED_MATCHES)


class CollectionRepository:
    """
    Read and replace whole collections in the key-value store.

    Match collections are upgraded from the legacy flat player shape as
    they are read, so nothing downstream ever sees that shape.
    """

    def __init__(self, store: SqlKeyValueStore, config: Optional[Settings] = None):
        self.store = store
        self.config = config or default_settings

    def key_for(self, collection: Collection) -> str:
        return getattr(self.config, f"{collection.value}_key")

    def load_all(self, collection: Collection) -> list[dict[str, Any]]:
        key = self.key_for(collection)
        value = self.store.get(key)
        if value is None:
            return []
        if not isinstance(value, list):
            logger.warning("Document %s is not a list (%s); treating as empty", key, type(value).__name__)
            return []

        records = [r for r in value if isinstance(r, dict)]
        if collection in MATCH_COLLECTIONS:
            records = [upgrade_legacy_match_document(r) for r in records]
        return records

    def replace_all(self, collection: Collection, records: list[dict[str, Any]]) -> None:
        key = self.key_for(collection)
        self.store.set(key, list(records))
        logger.debug("Replaced %s with %d records", key, len(records))

    def commit(self) -> None:
        self.store.commit()
