"""
Tournament identity resolution.

Tournaments come from two places. Admins can create *managed* tournaments
with explicit dates and league. Any tournamentName that appears on a match
but has no managed record is *inferred*: its dates span its matches and its
league comes from the name prefix.

Identity is the tournament name string, compared exactly. Deleting either
kind of tournament removes every match carrying that exact name.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence

from picklewickel.brands import tournament_brand, tournament_league, tournament_slug
from picklewickel.records import Match
from picklewickel.sorting import utc_today

INFERRED_ID_PREFIX = "inferred-"


@dataclass
class HybridTournament:
    id: str
    name: str
    start_date: str
    end_date: str
    league: str
    is_managed: bool
    match_count: int = 0

    @property
    def slug(self) -> str:
        return tournament_slug(self.name)

    def to_dict(self) -> dict:
        brand = tournament_brand(self.name)
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "brand": brand.abbreviation,
            "brandColor": brand.color,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "league": self.league,
            "isManaged": self.is_managed,
            "matchCount": self.match_count,
        }


def _managed(doc: Mapping[str, Any], match_count: int) -> HybridTournament:
    name = str(doc.get("name") or "")
    return HybridTournament(
        id=str(doc.get("id") or ""),
        name=name,
        start_date=str(doc.get("startDate") or ""),
        end_date=str(doc.get("endDate") or ""),
        league=str(doc.get("league") or tournament_league(name)),
        is_managed=True,
        match_count=match_count,
    )


def _inferred(name: str, matches: Sequence[Match], today: str) -> HybridTournament:
    dates = sorted(m.date for m in matches if m.date)
    return HybridTournament(
        id=f"{INFERRED_ID_PREFIX}{name}",
        name=name,
        start_date=dates[0] if dates else today,
        end_date=dates[-1] if dates else today,
        league=tournament_league(name),
        is_managed=False,
        match_count=len(matches),
    )


def build_hybrid_view(
    managed_tournaments: Iterable[Mapping[str, Any]],
    all_matches: Iterable[Match],
    today: Optional[str] = None,
) -> list[HybridTournament]:
    """
    Merge managed tournaments with those inferred from match data.

    Every distinct tournamentName on a match yields one entry (managed when
    a managed tournament has exactly that name). Managed tournaments with
    no matches are included too. The result is sorted by name,
    case-insensitively.
    """
    today = today or utc_today()

    by_name: dict[str, list[Match]] = defaultdict(list)
    for match in all_matches:
        by_name[match.tournament_name].append(match)

    managed_by_name: dict[str, Mapping[str, Any]] = {}
    for doc in managed_tournaments:
        managed_by_name.setdefault(str(doc.get("name") or ""), doc)

    hybrid: list[HybridTournament] = []
    for name, matches in by_name.items():
        if name in managed_by_name:
            hybrid.append(_managed(managed_by_name[name], len(matches)))
        else:
            hybrid.append(_inferred(name, matches, today))

    for name, doc in managed_by_name.items():
        if name not in by_name:
            hybrid.append(_managed(doc, 0))

    return sorted(hybrid, key=lambda t: t.name.lower())


def filter_by_league(tournaments: Iterable[HybridTournament], league: Optional[str]) -> list[HybridTournament]:
    if not league or league == "All":
        return list(tournaments)
    return [t for t in tournaments if t.league == league]


def find_by_slug(tournaments: Iterable[HybridTournament], slug: str) -> Optional[HybridTournament]:
    for tournament in tournaments:
        if tournament.slug == slug:
            return tournament
    return None
