"""Helpers shared by the mutating services."""

from datetime import datetime, timezone
from typing import Optional

from picklewickel.config import Settings, settings as default_settings
from picklewickel.errors import IngestionDisabledError
from picklewickel.store.repository import CollectionRepository


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with a trailing Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class RepositoryService:
    """Base for services that read and replace collections."""

    def __init__(self, repo: CollectionRepository, config: Optional[Settings] = None):
        self.repo = repo
        self.config = config or repo.config or default_settings

    def ensure_ingestion_enabled(self) -> None:
        """Single kill-switch check, called first by every mutating operation."""
        if not self.config.ingestion_enabled:
            raise IngestionDisabledError("Ingestion is disabled (INGESTION_ENABLED=false)")
