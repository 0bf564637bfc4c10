"""Managed tournament CRUD and the hybrid tournament listing."""

import logging
import uuid
from typing import Any, Mapping, Optional

from picklewickel.brands import tournament_league
from picklewickel.errors import NotFoundError, ValidationError
from picklewickel.payloads import TournamentPayload, parse_payload
from picklewickel.services.base import RepositoryService
from picklewickel.services.match_service import MatchService
from picklewickel.sorting import build_bracket_view
from picklewickel.store.repository import Collection
from picklewickel.tournaments import (
    INFERRED_ID_PREFIX,
    HybridTournament,
    build_hybrid_view,
    filter_by_league,
    find_by_slug,
)

logger = logging.getLogger(__name__)


class TournamentService(RepositoryService):
    def __init__(self, repo, config=None):
        super().__init__(repo, config)
        self.matches = MatchService(repo, self.config)

    def managed_tournaments(self) -> list[dict]:
        return self.repo.load_all(Collection.TOURNAMENTS)

    def hybrid_tournaments(self, league: Optional[str] = None) -> list[HybridTournament]:
        view = build_hybrid_view(self.managed_tournaments(), self.matches.all_matches())
        return filter_by_league(view, league)

    def get_by_slug(self, slug: str) -> HybridTournament:
        tournament = find_by_slug(self.hybrid_tournaments(), slug)
        if tournament is None:
            raise NotFoundError(f"Tournament '{slug}' not found")
        return tournament

    def bracket(self, slug: str, draw_name: Optional[str] = None, public_only: bool = True):
        """Tournament page data: the tournament plus its matches grouped by round."""
        tournament = self.get_by_slug(slug)
        source = self.matches.public_matches() if public_only else self.matches.all_matches()
        matches = [m for m in source if m.tournament_name == tournament.name]
        return tournament, build_bracket_view(matches, league=tournament.league, draw_name=draw_name)

    # ==========================================================================
    # Managed CRUD
    # ==========================================================================

    @staticmethod
    def _validated(document: Mapping[str, Any]) -> dict:
        payload = parse_payload(TournamentPayload, document)
        if payload.end_date < payload.start_date:
            raise ValidationError("endDate must not be before startDate", field="endDate")
        return {
            "name": payload.name,
            "startDate": payload.start_date,
            "endDate": payload.end_date,
            "league": payload.league or tournament_league(payload.name),
        }

    def create(self, data: Mapping[str, Any]) -> dict:
        """Create a managed tournament. League defaults to the one inferred from the name."""
        self.ensure_ingestion_enabled()
        document = {"id": uuid.uuid4().hex, **self._validated(data)}
        tournaments = self.managed_tournaments()
        self.repo.replace_all(Collection.TOURNAMENTS, tournaments + [document])
        self.repo.commit()
        logger.info("Created tournament %s (%s)", document["name"], document["id"])
        return document

    def update(self, tournament_id: str, updates: Mapping[str, Any]) -> dict:
        self.ensure_ingestion_enabled()
        tournaments = self.managed_tournaments()
        for index, existing in enumerate(tournaments):
            if existing.get("id") == tournament_id:
                merged = {**existing, **{k: v for k, v in updates.items() if v is not None}}
                document = {"id": tournament_id, **self._validated(merged)}
                tournaments[index] = document
                self.repo.replace_all(Collection.TOURNAMENTS, tournaments)
                self.repo.commit()
                return document
        raise NotFoundError(f"Tournament '{tournament_id}' not found")

    def delete(self, tournament_id: str) -> int:
        """
        Delete a managed or inferred tournament and cascade to its matches.

        Inferred tournaments are addressed by their ``inferred-<name>`` id.
        Returns the number of matches removed.
        """
        self.ensure_ingestion_enabled()
        if tournament_id.startswith(INFERRED_ID_PREFIX):
            name = tournament_id[len(INFERRED_ID_PREFIX):]
            # An inferred tournament exists only while it has matches
            if not self.matches.match_count_by_tournament(name):
                raise NotFoundError(f"Tournament '{tournament_id}' not found")
            return self.matches.delete_tournament_matches(name)

        tournaments = self.managed_tournaments()
        target = next((t for t in tournaments if t.get("id") == tournament_id), None)
        if target is None:
            raise NotFoundError(f"Tournament '{tournament_id}' not found")

        removed = self.matches.delete_tournament_matches(str(target.get("name") or ""), commit=False)
        self.repo.replace_all(
            Collection.TOURNAMENTS, [t for t in tournaments if t.get("id") != tournament_id]
        )
        self.repo.commit()
        return removed

    def delete_by_name(self, name: str) -> int:
        """Cascade delete by exact tournament name, dropping any managed record too."""
        self.ensure_ingestion_enabled()
        removed = self.matches.delete_tournament_matches(name, commit=False)
        tournaments = self.managed_tournaments()
        kept = [t for t in tournaments if t.get("name") != name]
        if len(kept) != len(tournaments):
            self.repo.replace_all(Collection.TOURNAMENTS, kept)
        self.repo.commit()
        return removed
