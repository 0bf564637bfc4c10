"""
Scrape target management.

A scrape target is one tournament page the scraping pipeline watches. Its
flags gate ingestion: ``tournamentMode`` must be on for ingestion to be
accepted at all, and ``autoApproval`` lets reported statuses through
without a pass through the review queue.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from picklewickel.brands import SCRAPE_TARGET_LEAGUES
from picklewickel.errors import ConflictError, NotFoundError, ValidationError
from picklewickel.payloads import ScrapeTargetPayload, parse_payload
from picklewickel.services.base import RepositoryService, utc_now_iso
from picklewickel.store.repository import Collection

logger = logging.getLogger(__name__)

REQUIRED_TARGET_FIELDS = ("league", "tournamentName", "url")

# Fields an update may never overwrite
_IMMUTABLE_FIELDS = ("id", "createdAt", "updatedAt")


@dataclass
class ScrapeTargetSummary:
    total: int = 0
    active: int = 0
    tournament_mode: int = 0
    auto_approval: int = 0
    by_league: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "active": self.active,
            "tournamentMode": self.tournament_mode,
            "autoApproval": self.auto_approval,
            "byLeague": dict(self.by_league),
        }


def summarize_targets(targets: list[Mapping[str, Any]]) -> ScrapeTargetSummary:
    summary = ScrapeTargetSummary(
        total=len(targets),
        active=sum(1 for t in targets if t.get("isActive")),
        tournament_mode=sum(1 for t in targets if t.get("tournamentMode")),
        auto_approval=sum(1 for t in targets if t.get("autoApproval")),
    )
    for league in SCRAPE_TARGET_LEAGUES:
        summary.by_league[league] = sum(1 for t in targets if t.get("league") == league)
    return summary


def filter_targets(
    targets: list[dict],
    league: Optional[str] = None,
    tournament_mode: Optional[bool] = None,
    is_active: Optional[bool] = None,
    limit: Optional[int] = None,
) -> list[dict]:
    """Filter, order by most recently updated, then cut to ``limit``."""
    result = list(targets)
    if league:
        result = [t for t in result if t.get("league") == league]
    if tournament_mode is not None:
        result = [t for t in result if bool(t.get("tournamentMode")) == tournament_mode]
    if is_active is not None:
        result = [t for t in result if bool(t.get("isActive")) == is_active]

    result.sort(key=lambda t: t.get("updatedAt") or "", reverse=True)
    if limit is not None:
        result = result[: max(limit, 0)]
    return result


def _check_league(league: str) -> None:
    if league not in SCRAPE_TARGET_LEAGUES:
        raise ValidationError(
            f"Unknown league '{league}' (expected one of {', '.join(SCRAPE_TARGET_LEAGUES)})",
            field="league",
        )


class ScrapeTargetService(RepositoryService):
    def list_targets(self, **filters) -> list[dict]:
        return filter_targets(self.repo.load_all(Collection.SCRAPE_TARGETS), **filters)

    def summary(self) -> ScrapeTargetSummary:
        return summarize_targets(self.repo.load_all(Collection.SCRAPE_TARGETS))

    def get_target(self, target_id: str) -> dict:
        for target in self.repo.load_all(Collection.SCRAPE_TARGETS):
            if target.get("id") == target_id:
                return target
        raise NotFoundError(f"Scrape target '{target_id}' not found")

    def create(self, data: Mapping[str, Any]) -> dict:
        """
        Register a new target.

        Raises:
            ValidationError: league, tournamentName or url missing
            ConflictError: another target already watches the same url
        """
        self.ensure_ingestion_enabled()
        if any(not data.get(name) for name in REQUIRED_TARGET_FIELDS):
            raise ValidationError("Missing required fields: " + ", ".join(REQUIRED_TARGET_FIELDS))
        payload = parse_payload(ScrapeTargetPayload, data)
        _check_league(payload.league)

        targets = self.repo.load_all(Collection.SCRAPE_TARGETS)
        url = payload.url.strip()
        if any(t.get("url") == url for t in targets):
            raise ConflictError("A scrape target with this URL already exists")

        now = utc_now_iso()
        target = {
            "id": f"target_{uuid.uuid4().hex}",
            "league": payload.league,
            "tournamentName": payload.tournament_name.strip(),
            "url": url,
            "isActive": payload.is_active,
            "tournamentMode": payload.tournament_mode,
            "autoApproval": payload.auto_approval,
            "createdAt": now,
            "updatedAt": now,
        }
        self.repo.replace_all(Collection.SCRAPE_TARGETS, targets + [target])
        self.repo.commit()
        logger.info("Created scrape target %s for %s", target["id"], target["tournamentName"])
        return target

    def update(self, target_id: str, updates: Mapping[str, Any]) -> dict:
        """Shallow-merge ``updates`` into a target. ``id`` never changes."""
        self.ensure_ingestion_enabled()
        targets = self.repo.load_all(Collection.SCRAPE_TARGETS)
        for index, existing in enumerate(targets):
            if existing.get("id") != target_id:
                continue
            changes = {k: v for k, v in updates.items() if k not in _IMMUTABLE_FIELDS}
            if "league" in changes:
                _check_league(changes["league"])
            if "url" in changes:
                url = str(changes["url"]).strip()
                if any(t.get("url") == url and t.get("id") != target_id for t in targets):
                    raise ConflictError("A scrape target with this URL already exists")
                changes["url"] = url
            updated = {**existing, **changes, "id": target_id, "updatedAt": utc_now_iso()}
            targets[index] = updated
            self.repo.replace_all(Collection.SCRAPE_TARGETS, targets)
            self.repo.commit()
            return updated
        raise NotFoundError(f"Scrape target '{target_id}' not found")

    def delete(self, target_id: str) -> dict:
        self.ensure_ingestion_enabled()
        targets = self.repo.load_all(Collection.SCRAPE_TARGETS)
        doomed = next((t for t in targets if t.get("id") == target_id), None)
        if doomed is None:
            raise NotFoundError(f"Scrape target '{target_id}' not found")
        self.repo.replace_all(Collection.SCRAPE_TARGETS, [t for t in targets if t.get("id") != target_id])
        self.repo.commit()
        logger.info("Deleted scrape target %s", target_id)
        return doomed
