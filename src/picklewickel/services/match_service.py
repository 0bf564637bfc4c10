"""
Match service: admin CRUD, CSV import, review-queue approval.

Matches live in two collections:

- matches: entered through the admin form or imported from CSV
- scraped_matches: written by the scrape reconciler (including the
  review queue)

Reads see the union of both. Updates and deletes go to whichever collection
holds the record; new admin and CSV matches go to ``matches``.

Every mutation follows the same shape: check the kill-switch, load the
whole collection, change it in memory, replace it, commit.

Usage:
    with get_session() as session:
        service = MatchService(CollectionRepository(SqlKeyValueStore(session)))
        result = service.preview_csv_import(text)
        print(result.summary())
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Union

from picklewickel.csv_import import CSVParseResult, parse_matches_csv
from picklewickel.derived_state import determine_match_status
from picklewickel.errors import NotFoundError, ValidationError
from picklewickel.match_statuses import PENDING_APPROVAL, is_public_status
from picklewickel.payloads import ManualMatchPayload, parse_payload
from picklewickel.records import (
    Match,
    clean_match_data,
    deep_merge,
    generate_match_id,
    validate_match,
)
from picklewickel.services.base import RepositoryService
from picklewickel.store.repository import MATCH_COLLECTIONS, Collection

logger = logging.getLogger(__name__)

MatchInput = Union[Mapping[str, Any], ManualMatchPayload, Match]


@dataclass
class CSVImportOutcome:
    """Result of committing a CSV import."""

    parse: CSVParseResult
    created: list[Match] = field(default_factory=list)

    def to_dict(self) -> dict:
        payload = self.parse.to_dict()
        payload["createdCount"] = len(self.created)
        payload["createdIds"] = [m.id for m in self.created]
        return payload


class MatchService(RepositoryService):
    """Admin-side operations over both match collections."""

    # ==========================================================================
    # Reads
    # ==========================================================================

    def _load(self, collection: Collection) -> list[dict]:
        return self.repo.load_all(collection)

    def all_matches(self) -> list[Match]:
        matches: list[Match] = []
        for collection in MATCH_COLLECTIONS:
            matches.extend(Match.from_document(doc) for doc in self._load(collection))
        return matches

    def public_matches(self) -> list[Match]:
        return [m for m in self.all_matches() if is_public_status(m.status)]

    def review_queue(self) -> list[Match]:
        return [m for m in self.all_matches() if m.status == PENDING_APPROVAL]

    def get_match(self, match_id: str) -> Match:
        for match in self.all_matches():
            if match.id == match_id:
                return match
        raise NotFoundError(f"Match '{match_id}' not found")

    def matches_by_date(self, date: str) -> list[Match]:
        return [m for m in self.all_matches() if m.date == date]

    def unique_tournament_names(self) -> list[str]:
        return sorted({m.tournament_name for m in self.all_matches()})

    def match_count_by_tournament(self, tournament_name: str) -> int:
        return sum(1 for m in self.all_matches() if m.tournament_name == tournament_name)

    # ==========================================================================
    # Creates
    # ==========================================================================

    def _prepare_new(self, data: MatchInput) -> dict:
        if isinstance(data, Match):
            document = data.to_document()
        else:
            document = parse_payload(ManualMatchPayload, data).to_document()
        document = clean_match_data(document)
        document["id"] = generate_match_id()
        validate_match(Match.from_document(document))
        return document

    def add_match(self, data: MatchInput) -> Match:
        """Create one match from the admin form (or an already built Match)."""
        return self.add_matches_bulk([data])[0]

    def add_matches_bulk(self, items: Iterable[MatchInput]) -> list[Match]:
        """Create several matches in one write. Any invalid item aborts the batch."""
        self.ensure_ingestion_enabled()
        documents = [self._prepare_new(item) for item in items]
        if not documents:
            return []

        existing = self._load(Collection.MATCHES)
        self.repo.replace_all(Collection.MATCHES, existing + documents)
        self.repo.commit()
        logger.info("Added %d match(es)", len(documents))
        return [Match.from_document(doc) for doc in documents]

    def duplicate_match(self, match_id: str) -> Match:
        """Copy a match verbatim under a new id, into the same collection."""
        self.ensure_ingestion_enabled()
        collection, documents, index = self._locate(match_id)
        copy = dict(documents[index])
        copy["id"] = generate_match_id()
        self.repo.replace_all(collection, documents + [copy])
        self.repo.commit()
        return Match.from_document(copy)

    # ==========================================================================
    # Updates and deletes
    # ==========================================================================

    def _locate(self, match_id: str) -> tuple[Collection, list[dict], int]:
        for collection in MATCH_COLLECTIONS:
            documents = self._load(collection)
            for index, doc in enumerate(documents):
                if doc.get("id") == match_id:
                    return collection, documents, index
        raise NotFoundError(f"Match '{match_id}' not found")

    def update_match(self, match_id: str, updates: Mapping[str, Any]) -> Match:
        """
        Partially update a match.

        Team objects merge field by field, score arrays are replaced whole,
        ``None`` leaves a field unchanged and ``id`` can never change.
        """
        self.ensure_ingestion_enabled()
        collection, documents, index = self._locate(match_id)

        cleaned = clean_match_data({k: v for k, v in updates.items() if k != "id"})
        merged = deep_merge(documents[index], cleaned)
        merged["id"] = match_id
        updated = Match.from_document(merged)
        validate_match(updated)

        documents[index] = merged
        self.repo.replace_all(collection, documents)
        self.repo.commit()
        return updated

    def delete_match(self, match_id: str) -> None:
        self.ensure_ingestion_enabled()
        collection, documents, index = self._locate(match_id)
        del documents[index]
        self.repo.replace_all(collection, documents)
        self.repo.commit()

    def delete_matches(self, match_ids: Iterable[str]) -> int:
        """Bulk delete by id across both collections. Unknown ids are ignored."""
        self.ensure_ingestion_enabled()
        doomed = set(match_ids)
        removed = self._delete_where(lambda doc: doc.get("id") in doomed)
        self.repo.commit()
        return removed

    def delete_tournament_matches(self, tournament_name: str, commit: bool = True) -> int:
        """
        Cascade delete every match of a tournament.

        Matching is exact string equality on tournamentName: "Open" and
        "Open " are different tournaments. Pass ``commit=False`` to fold the
        delete into a caller's larger write.
        """
        self.ensure_ingestion_enabled()
        removed = self._delete_where(lambda doc: doc.get("tournamentName") == tournament_name)
        if commit:
            self.repo.commit()
        logger.info("Deleted %d match(es) of tournament '%s'", removed, tournament_name)
        return removed

    def _delete_where(self, predicate) -> int:
        removed = 0
        for collection in MATCH_COLLECTIONS:
            documents = self._load(collection)
            kept = [doc for doc in documents if not predicate(doc)]
            if len(kept) != len(documents):
                removed += len(documents) - len(kept)
                self.repo.replace_all(collection, kept)
        return removed

    # ==========================================================================
    # Review queue
    # ==========================================================================

    def approve_match(self, match_id: str) -> Match:
        """
        Promote a review-queue match to Live or Completed based on its scores.

        Raises:
            NotFoundError: unknown id
            ValidationError: the match is not awaiting approval
        """
        match = self.get_match(match_id)
        if match.status != PENDING_APPROVAL:
            raise ValidationError(
                f"Match '{match_id}' is not awaiting approval (status {match.status})",
                field="status",
            )
        new_status = determine_match_status(match.set_scores_team1, match.set_scores_team2)
        logger.info("Approving match %s as %s", match_id, new_status)
        return self.update_match(match_id, {"status": new_status})

    # ==========================================================================
    # CSV import
    # ==========================================================================

    def preview_csv_import(self, text: str) -> CSVParseResult:
        """Parse a CSV against the stored matches without writing anything."""
        return parse_matches_csv(text, self.all_matches())

    def commit_csv_import(self, text: str) -> CSVImportOutcome:
        """
        Parse again against current data and store the valid rows.

        Raises:
            ValidationError: when the file itself is unusable (empty, headers)
        """
        self.ensure_ingestion_enabled()
        result = self.preview_csv_import(text)
        if result.fatal:
            raise ValidationError(result.errors[0], field="csv")

        created = self.add_matches_bulk(result.valid_matches) if result.valid_matches else []
        logger.info(result.summary())
        return CSVImportOutcome(parse=result, created=created)
