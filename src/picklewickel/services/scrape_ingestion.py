"""
Scrape ingestion reconciler.

The external scraping pipeline posts one match at a time. Each record is
checked against its scrape target, normalized into a canonical match and
either replaces an existing scraped match (same ``externalRefId``) or is
appended as a new one.

Trust boundary: unless the owning target has ``autoApproval`` switched on,
every ingested match lands in the review queue as ``pending_approval``
whatever status the scraper reported.

An array payload is the trusted-writer shortcut used by the admin UI to
save its full edited state: it replaces the scraped-matches collection
wholesale without per-record validation.

Usage:
    service = ScrapeIngestionService(repo)
    result = service.ingest(payload)
    print(result.operation, result.match.id)
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from picklewickel.errors import NotFoundError, PolicyError, ValidationError
from picklewickel.match_statuses import ALL_MATCH_STATUSES, PENDING_APPROVAL, UPCOMING
from picklewickel.payloads import ScrapedMatchPayload, TeamPayload, parse_payload
from picklewickel.records import (
    Match,
    clean_match_data,
    generate_match_id,
    validate_match,
)
from picklewickel.services.base import RepositoryService, utc_now_iso
from picklewickel.store.repository import Collection

logger = logging.getLogger(__name__)

REQUIRED_SCRAPE_FIELDS = ("scrapeTargetId", "tournamentName", "date")
_SNAKE_CASE_NAMES = {"scrapeTargetId": "scrape_target_id", "tournamentName": "tournament_name", "date": "date"}

SCRAPED_DEFAULT_TIME = "12:00"
SCRAPED_DEFAULT_DRAW = "Main Draw"
SCRAPED_DEFAULT_ROUND = "Round 1"
SCRAPED_DEFAULT_PLAYERS = [{"name": "TBD"}]

CREATED = "created"
UPDATED = "updated"


@dataclass
class IngestResult:
    """Outcome of reconciling one scraped record."""

    operation: str
    match: Match
    auto_approved: bool
    confidence: str
    dry_run: bool = False

    def to_dict(self) -> dict:
        return {
            "success": True,
            "operation": self.operation,
            "match": self.match.to_document(),
            "autoApproved": self.auto_approved,
            "confidence": self.confidence,
            "dryRun": self.dry_run,
        }


@dataclass
class BulkReplaceResult:
    count: int

    def to_dict(self) -> dict:
        return {
            "success": True,
            "operation": "bulk-update",
            "count": self.count,
            "message": "Bulk update completed",
        }


def _check_required(raw: Mapping[str, Any]) -> None:
    # Either spelling counts, as it does for the payload model
    missing = [
        name for name in REQUIRED_SCRAPE_FIELDS
        if not raw.get(name) and not raw.get(_SNAKE_CASE_NAMES[name])
    ]
    if missing:
        raise ValidationError(
            "Missing required fields: " + ", ".join(REQUIRED_SCRAPE_FIELDS),
            field=missing[0],
        )


def find_scrape_target(scrape_targets: Sequence[Mapping[str, Any]], target_id: str) -> dict:
    for target in scrape_targets:
        if target.get("id") == target_id:
            return dict(target)
    raise NotFoundError(f"Scrape target '{target_id}' not found")


def _resolve_status(reported: Optional[str], auto_approval: bool) -> str:
    if not auto_approval:
        return PENDING_APPROVAL
    if not reported:
        return UPCOMING
    if reported not in ALL_MATCH_STATUSES:
        raise ValidationError(f"Unknown match status '{reported}'", field="status")
    return reported


def _team_document(team: Optional[TeamPayload]) -> dict:
    return (team or TeamPayload()).to_document(default_players=SCRAPED_DEFAULT_PLAYERS)


def reconcile_scraped_match(
    raw: Any,
    scrape_targets: Sequence[Mapping[str, Any]],
    existing_scraped: Sequence[Mapping[str, Any]],
    now: str,
    default_confidence: str = "medium",
) -> tuple[IngestResult, list[dict]]:
    """
    Reconcile one raw scraped record against the current scraped matches.

    Pure function: returns the ingest result and the new scraped-matches
    collection, and touches no storage.

    Raises:
        ValidationError: scrapeTargetId, tournamentName or date missing
        NotFoundError: no scrape target with that id
        PolicyError: the target has tournament mode switched off
    """
    if isinstance(raw, ScrapedMatchPayload):
        raw = raw.model_dump(by_alias=True)
    if not isinstance(raw, Mapping):
        raise ValidationError("Scraped match payload must be an object")
    _check_required(raw)

    payload = parse_payload(ScrapedMatchPayload, raw)
    target = find_scrape_target(scrape_targets, payload.scrape_target_id)
    if not target.get("tournamentMode"):
        raise PolicyError(f"Tournament mode not enabled for target '{target['id']}'")

    auto_approval = bool(target.get("autoApproval"))
    confidence = payload.confidence or default_confidence

    document = clean_match_data({
        "id": generate_match_id("scraped"),
        "date": payload.date,
        "time": payload.time or SCRAPED_DEFAULT_TIME,
        "status": _resolve_status(payload.status, auto_approval),
        "tournamentName": payload.tournament_name,
        "drawName": payload.draw_name or SCRAPED_DEFAULT_DRAW,
        "round": payload.round or SCRAPED_DEFAULT_ROUND,
        "court": payload.court or "",
        "team1": _team_document(payload.team1),
        "team2": _team_document(payload.team2),
        "setScoresTeam1": list(payload.set_scores_team1 or []),
        "setScoresTeam2": list(payload.set_scores_team2 or []),
        "scrapeTargetId": payload.scrape_target_id,
        "scrapedAt": now,
        "confidence": confidence,
    })
    if payload.external_ref_id:
        document["externalRefId"] = payload.external_ref_id
    validate_match(Match.from_document(document))

    records = [dict(r) for r in existing_scraped]
    operation = CREATED
    if payload.external_ref_id:
        for index, existing in enumerate(records):
            if existing.get("externalRefId") == payload.external_ref_id:
                document["id"] = existing.get("id") or document["id"]
                records[index] = document
                operation = UPDATED
                break
    if operation == CREATED:
        records.append(document)

    result = IngestResult(
        operation=operation,
        match=Match.from_document(document),
        auto_approved=auto_approval,
        confidence=confidence,
    )
    return result, records


class ScrapeIngestionService(RepositoryService):
    """Persists reconciled scraped matches and stamps their targets."""

    def list_scraped(self) -> list[Match]:
        return [Match.from_document(d) for d in self.repo.load_all(Collection.SCRAPED_MATCHES)]

    def ingest(self, raw: Any, dry_run: bool = False):
        """
        Ingest a single record, or bulk-replace when given a list.

        Returns an ``IngestResult`` for a single record and a
        ``BulkReplaceResult`` for a list.
        """
        self.ensure_ingestion_enabled()
        if isinstance(raw, list):
            return self.bulk_replace(raw, dry_run=dry_run)

        now = utc_now_iso()
        targets = self.repo.load_all(Collection.SCRAPE_TARGETS)
        existing = self.repo.load_all(Collection.SCRAPED_MATCHES)
        result, records = reconcile_scraped_match(
            raw,
            targets,
            existing,
            now,
            default_confidence=self.config.default_scrape_confidence,
        )

        if dry_run:
            result.dry_run = True
            logger.info("Dry run: would have %s scraped match %s", result.operation, result.match.id)
            return result

        for target in targets:
            if target.get("id") == result.match.scrape_target_id:
                target["lastScraped"] = now

        self.repo.replace_all(Collection.SCRAPED_MATCHES, records)
        self.repo.replace_all(Collection.SCRAPE_TARGETS, targets)
        self.repo.commit()
        logger.info(
            "Scraped match %s %s (target=%s, status=%s)",
            result.match.id,
            result.operation,
            result.match.scrape_target_id,
            result.match.status,
        )
        return result

    def bulk_replace(self, records: list, dry_run: bool = False) -> BulkReplaceResult:
        """Replace the scraped-matches collection verbatim. Trusted callers only."""
        self.ensure_ingestion_enabled()
        documents = [r for r in records if isinstance(r, Mapping)]
        if len(documents) != len(records):
            raise ValidationError("Bulk update entries must all be objects")
        if not dry_run:
            self.repo.replace_all(Collection.SCRAPED_MATCHES, [dict(d) for d in documents])
            self.repo.commit()
        logger.info("Bulk replaced scraped matches with %d records (dry_run=%s)", len(documents), dry_run)
        return BulkReplaceResult(count=len(documents))
