"""
Inbound payload models, validated at the API boundary.

Each ingestion path has its own payload type, tagged by ``source``:

- ManualMatchPayload: the admin match form
- ScrapedMatchPayload: one record posted by the scraping pipeline
- CSV rows are parsed by ``picklewickel.csv_import`` into the same Match

Every variant is turned into the canonical match document here, so nothing
past the boundary needs to know where a match came from. Field names are
camelCase on the wire and snake_case in Python.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from picklewickel.errors import ValidationError


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class PlayerPayload(_CamelModel):
    name: str = ""


class TeamPayload(_CamelModel):
    players: Optional[list[PlayerPayload]] = None
    seed: Optional[int] = None
    is_winner: Optional[bool] = None

    def to_document(self, default_players: Optional[list[dict]] = None) -> dict:
        if self.players is None:
            players = list(default_players or [])
        else:
            players = [p.model_dump() for p in self.players]
        doc = {"players": players, "isWinner": bool(self.is_winner)}
        if self.seed is not None:
            doc["seed"] = self.seed
        return doc


class ManualMatchPayload(_CamelModel):
    """Match submitted from the admin form."""

    source: Literal["manual"] = "manual"
    date: str = Field(pattern=r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")
    time: str = Field(pattern=r"^[0-9]{2}:[0-9]{2}$")
    status: Literal["Live", "Upcoming", "Completed", "Forfeit", "Walkover", "pending_approval"]
    tournament_name: str = Field(min_length=1)
    draw_name: str = ""
    round: str = ""
    court: str = ""
    team1: TeamPayload = Field(default_factory=TeamPayload)
    team2: TeamPayload = Field(default_factory=TeamPayload)
    set_scores_team1: list[int] = Field(default_factory=list)
    set_scores_team2: list[int] = Field(default_factory=list)

    def to_document(self) -> dict:
        return {
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


class ScrapedMatchPayload(_CamelModel):
    """
    One match reported by the scraping pipeline.

    Only ``scrapeTargetId``, ``tournamentName`` and ``date`` are required;
    the reconciler fills the rest with defaults.
    """

    source: Literal["scrape"] = "scrape"
    scrape_target_id: str
    tournament_name: str
    date: str = Field(pattern=r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")
    # Blank falls back to the default time
    time: Optional[str] = Field(default=None, pattern=r"^([0-9]{2}:[0-9]{2})?$")
    status: Optional[str] = None
    draw_name: Optional[str] = None
    round: Optional[str] = None
    court: Optional[str] = None
    team1: Optional[TeamPayload] = None
    team2: Optional[TeamPayload] = None
    set_scores_team1: Optional[list[int]] = None
    set_scores_team2: Optional[list[int]] = None
    confidence: Optional[str] = None
    external_ref_id: Optional[str] = None


class TournamentPayload(_CamelModel):
    name: str = Field(min_length=1)
    start_date: str = Field(pattern=r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")
    end_date: str = Field(pattern=r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")
    league: Optional[str] = None


class ScrapeTargetPayload(_CamelModel):
    league: str = Field(min_length=1)
    tournament_name: str = Field(min_length=1)
    url: str = Field(min_length=1)
    is_active: bool = True
    tournament_mode: bool = False
    auto_approval: bool = False


class ScraperHealthPayload(_CamelModel):
    status: Literal["started", "completed", "failed", "heartbeat"]
    workflow: str = Field(min_length=1)
    execution_id: Optional[str] = None
    timestamp: Optional[str] = None
    metrics: Optional[dict] = None
    error: Optional[str] = None
    message: Optional[str] = None


def parse_payload(model: type[_CamelModel], data) -> _CamelModel:
    """
    Validate raw input against a payload model.

    Raises:
        ValidationError: (ours, not pydantic's) naming every offending field
    """
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        problems = []
        for err in exc.errors():
            location = ".".join(str(part) for part in err.get("loc", ()))
            problems.append(f"{location}: {err.get('msg')}" if location else err.get("msg"))
        first_field = ".".join(str(p) for p in exc.errors()[0].get("loc", ())) if exc.errors() else None
        raise ValidationError("; ".join(problems), field=first_field) from exc
