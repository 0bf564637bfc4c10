"""
Error taxonomy shared by the ingestion services and the web layer.

Each error carries the HTTP status the API answers with, so route handlers
never translate exceptions themselves.

Duplicate detection is deliberately absent here: a duplicate CSV row is
counted, and a scrape payload with a known external reference is an update.
"""

from typing import Optional


class PickleWickelError(Exception):
    """Base class for all domain errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PickleWickelError):
    """Malformed or missing required input."""

    status_code = 400

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        row: Optional[int] = None,
    ):
        super().__init__(message)
        self.field = field
        self.row = row


class NotFoundError(PickleWickelError):
    """Reference to a match, tournament or scrape target that doesn't exist."""

    status_code = 404


class PolicyError(PickleWickelError):
    """The target exists but its configuration forbids the action."""

    status_code = 403


class ConflictError(PickleWickelError):
    """The write would clash with an existing record (e.g. scrape target URL)."""

    status_code = 409


class IngestionDisabledError(PickleWickelError):
    """Mutations are switched off via ``settings.ingestion_enabled``."""

    status_code = 503


class StorageError(PickleWickelError):
    """The key-value store read or write failed. Never retried automatically."""

    status_code = 500

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key
