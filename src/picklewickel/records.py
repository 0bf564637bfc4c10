"""
Canonical match record model.

Every ingestion path (admin form, CSV import, scrape ingestion) ends up
producing the same ``Match`` shape defined here. The persisted form is a
camelCase JSON document, one list of them per collection:

    {
        "id": "m_3f2a...",
        "date": "2025-03-14", "time": "14:30",
        "status": "Completed",
        "tournamentName": "PPA Atlanta Open",
        "drawName": "Men's Doubles", "round": "Semifinals", "court": "CC",
        "team1": {"players": [{"name": "Ben Johns"}, ...], "seed": 1, "isWinner": true},
        "team2": {...},
        "setScoresTeam1": [11, 11], "setScoresTeam2": [5, 7],
        # scraped matches only
        "scrapeTargetId": "...", "scrapedAt": "...", "confidence": "high",
        "externalRefId": "...",
    }

Key invariants:
- setScoresTeam1 and setScoresTeam2 always have the same length
- team player lists never hold blank names once cleaned
- team1 and team2 are never both flagged as winner
- id never changes after creation
"""

import copy
import uuid
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from picklewickel.errors import ValidationError

DEFAULT_DRAW_NAME = "Main Draw"
DEFAULT_ROUND = "R1"


@dataclass
class Player:
    name: str

    def to_document(self) -> dict:
        return {"name": self.name}


@dataclass
class Team:
    """One side of a match: 1 player for singles, 2 for doubles."""

    players: list[Player] = field(default_factory=list)
    seed: Optional[int] = None
    # Set directly for forfeits and walkovers, so not always derivable from scores
    is_winner: bool = False

    @property
    def player_names(self) -> list[str]:
        return [p.name for p in self.players]

    def to_document(self) -> dict:
        doc: dict[str, Any] = {
            "players": [p.to_document() for p in self.players],
            "isWinner": self.is_winner,
        }
        if self.seed is not None:
            doc["seed"] = self.seed
        return doc

    @classmethod
    def from_document(cls, doc: Optional[Mapping[str, Any]]) -> "Team":
        if not isinstance(doc, Mapping):
            return cls()
        raw_players = doc.get("players")
        players = [
            Player(name=str(p.get("name", "")))
            for p in (raw_players if isinstance(raw_players, list) else [])
            if isinstance(p, Mapping)
        ]
        return cls(
            players=players,
            seed=_optional_int(doc.get("seed")),
            is_winner=bool(doc.get("isWinner", False)),
        )


@dataclass
class Match:
    """A single match in canonical form."""

    id: str
    date: str
    time: str
    status: str
    tournament_name: str
    draw_name: str = DEFAULT_DRAW_NAME
    round: str = DEFAULT_ROUND
    court: str = ""
    team1: Team = field(default_factory=Team)
    team2: Team = field(default_factory=Team)
    set_scores_team1: list[int] = field(default_factory=list)
    set_scores_team2: list[int] = field(default_factory=list)

    # Scrape provenance, only populated by the scrape reconciler
    scrape_target_id: Optional[str] = None
    scraped_at: Optional[str] = None
    confidence: Optional[str] = None
    external_ref_id: Optional[str] = None

    @property
    def all_player_names(self) -> list[str]:
        return self.team1.player_names + self.team2.player_names

    @property
    def set_pairs(self) -> list[tuple[int, int]]:
        return list(zip(self.set_scores_team1, self.set_scores_team2))

    def to_document(self) -> dict:
        doc: dict[str, Any] = {
            "id": self.id,
            "date": self.date,
            "time": self.time,
            "status": self.status,
            "tournamentName": self.tournament_name,
            "drawName": self.draw_name,
            "round": self.round,
            "court": self.court,
            "team1": self.team1.to_document(),
            "team2": self.team2.to_document(),
            "setScoresTeam1": list(self.set_scores_team1),
            "setScoresTeam2": list(self.set_scores_team2),
        }
        provenance = {
            "scrapeTargetId": self.scrape_target_id,
            "scrapedAt": self.scraped_at,
            "confidence": self.confidence,
            "externalRefId": self.external_ref_id,
        }
        doc.update({k: v for k, v in provenance.items() if v is not None})
        return doc

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Match":
        return cls(
            id=str(doc.get("id", "")),
            date=str(doc.get("date") or ""),
            time=str(doc.get("time") or ""),
            status=str(doc.get("status") or ""),
            tournament_name=str(doc.get("tournamentName") or ""),
            draw_name=str(doc.get("drawName") or ""),
            round=str(doc.get("round") or ""),
            court=str(doc.get("court") or ""),
            team1=Team.from_document(doc.get("team1")),
            team2=Team.from_document(doc.get("team2")),
            set_scores_team1=_score_list(doc.get("setScoresTeam1")),
            set_scores_team2=_score_list(doc.get("setScoresTeam2")),
            scrape_target_id=doc.get("scrapeTargetId"),
            scraped_at=doc.get("scrapedAt"),
            confidence=doc.get("confidence"),
            external_ref_id=doc.get("externalRefId"),
        )


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _score_list(value: Any) -> list[int]:
    """Stored set scores as ints. Entries that are not numbers are skipped."""
    if not isinstance(value, list):
        return []
    scores = (_optional_int(s) for s in value)
    return [s for s in scores if s is not None]


def generate_match_id(prefix: str = "m") -> str:
    """Return a fresh opaque id. Ids are random, so never reused."""
    return f"{prefix}_{uuid.uuid4().hex}"


def clean_match_data(partial: Mapping[str, Any]) -> dict:
    """
    Normalize a (possibly partial) match document before any write.

    - Players with a blank name are dropped from both teams
    - An empty drawName becomes "Main Draw", an empty round becomes "R1"

    Missing keys stay missing so partial updates remain partial, and nothing
    else is coerced. The input mapping is not modified.
    """
    cleaned = copy.deepcopy(dict(partial))

    for team_key in ("team1", "team2"):
        team = cleaned.get(team_key)
        if isinstance(team, dict) and isinstance(team.get("players"), list):
            team["players"] = [
                p for p in team["players"]
                if isinstance(p, Mapping) and str(p.get("name") or "").strip()
            ]

    if cleaned.get("drawName") == "":
        cleaned["drawName"] = DEFAULT_DRAW_NAME
    if cleaned.get("round") == "":
        cleaned["round"] = DEFAULT_ROUND

    return cleaned


def upgrade_legacy_match_document(doc: Mapping[str, Any]) -> dict:
    """
    Convert a stored match from the legacy flat shape to the canonical one.

    Legacy records carried ``playersTeam1``/``playersTeam2`` string arrays and
    sometimes ``courtNumber`` instead of ``court``. Canonical records pass
    through unchanged (apart from being copied).
    """
    upgraded = copy.deepcopy(dict(doc))

    for team_key, legacy_key in (("team1", "playersTeam1"), ("team2", "playersTeam2")):
        legacy_players = upgraded.pop(legacy_key, None)
        team = upgraded.get(team_key)
        if not isinstance(team, dict):
            team = {"isWinner": False}
            upgraded[team_key] = team
        if team.get("players") is None:
            names = legacy_players if isinstance(legacy_players, list) else []
            team["players"] = [{"name": str(name)} for name in names]

    legacy_court = upgraded.pop("courtNumber", None)
    if not upgraded.get("court") and legacy_court:
        upgraded["court"] = str(legacy_court)

    upgraded.setdefault("setScoresTeam1", [])
    upgraded.setdefault("setScoresTeam2", [])
    return upgraded


def validate_match(match: Match) -> None:
    """
    Check the invariants every persisted match must satisfy.

    Raises:
        ValidationError: on mismatched score arrays or two winners
    """
    if len(match.set_scores_team1) != len(match.set_scores_team2):
        raise ValidationError(
            "setScoresTeam1 and setScoresTeam2 must have the same length "
            f"({len(match.set_scores_team1)} != {len(match.set_scores_team2)})",
            field="setScores",
        )
    if match.team1.is_winner and match.team2.is_winner:
        raise ValidationError("Both teams cannot be flagged as winner", field="isWinner")


def deep_merge(base: Mapping[str, Any], updates: Mapping[str, Any]) -> dict:
    """
    Merge ``updates`` into ``base`` for partial match updates.

    Nested objects (teams) merge key by key, lists are replaced whole, and a
    ``None`` update keeps the existing value.
    """
    merged = dict(base)
    for key, new_value in updates.items():
        old_value = base.get(key)
        if isinstance(new_value, Mapping):
            merged[key] = deep_merge(old_value if isinstance(old_value, Mapping) else {}, new_value)
        elif new_value is None:
            merged[key] = old_value
        else:
            merged[key] = new_value
    return merged
