"""
Sorting and grouping of match collections for each view.

Each view has its own tie-break policy, so each gets its own function rather
than one parameterised sort:

- Admin table default: today's matches first (status, then latest time),
  then every other date (latest date and time first)
- Admin table column click: a single key, ascending or descending
- Public schedule: Live, then priority rounds (always expanded), then the
  remaining rounds (collapsed unless nothing else is expanded)
- Tournament bracket: rounds by tournament progression, then status, then
  time. MLP events put every Premier round before any Challenger round.
- Grouping: tournament -> draw -> round, draws in a fixed hierarchy

All functions return new lists and rely on Python's stable sort, so ties
keep their incoming order. Inputs are never mutated.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional, Sequence

from picklewickel.errors import ValidationError
from picklewickel.match_statuses import (
    ADMIN_TODAY_STATUS_DEFAULT,
    ADMIN_TODAY_STATUS_ORDER,
    LIVE,
    SCHEDULE_STATUS_DEFAULT,
    SCHEDULE_STATUS_ORDER,
    STATUS_ORDER,
    STATUS_ORDER_DEFAULT,
    is_public_status,
    status_rank,
)
from picklewickel.records import Match

# Round priority for tournament pages (Finals first, Qualifiers last).
# Gaps leave room for new round names without renumbering.
ROUND_SORT_ORDER: dict[str, int] = {
    "Finals": 1,
    "Bronze Match": 2,
    "Semifinals": 3,
    "Quarterfinals": 4,
    "Round of 16": 5,
    "Round of 32": 6,
    "Round of 64": 7,
    "Round of 128": 8,
    "Pool Play": 20,
    "Back Draw": 98,
    "Qualifiers": 99,
}
ROUND_SORT_DEFAULT = 50

# Rounds that are always expanded on the public schedule, in display order
PRIORITY_ROUNDS: tuple[str, ...] = (
    "Finals",
    "Bronze Match",
    "Semifinals",
    "Quarterfinals",
    "Round of 16",
    "Round of 32",
)

DRAW_SORT_ORDER: dict[str, int] = {
    # Pro
    "Men's Doubles": 1,
    "Women's Doubles": 2,
    "Mixed Doubles": 3,
    "Men's Singles": 4,
    "Women's Singles": 5,
    # Senior Pro
    "Senior Men's Doubles": 10,
    "Senior Women's Doubles": 11,
    "Senior Mixed Doubles": 12,
    "Senior Men's Singles": 13,
    "Senior Women's Singles": 14,
    # Champions Pro
    "Champions Men's Doubles": 20,
    "Champions Women's Doubles": 21,
    "Champions Mixed Doubles": 22,
    "Champions Men's Singles": 23,
    "Champions Women's Singles": 24,
    # Masters Pro
    "Masters Men's Doubles": 30,
    "Masters Women's Doubles": 31,
    "Masters Mixed Doubles": 32,
    "Masters Men's Singles": 33,
    "Masters Women's Singles": 34,
}
DRAW_SORT_DEFAULT = 99

MLP_LEAGUE = "MLP"

ADMIN_SORT_COLUMNS: tuple[str, ...] = (
    "date", "time", "tournament", "draw", "players", "status", "court",
)


@dataclass
class RoundGroup:
    round: str
    matches: list[Match] = field(default_factory=list)
    expanded: bool = True


@dataclass
class DrawGroup:
    draw_name: str
    rounds: list[RoundGroup] = field(default_factory=list)


@dataclass
class TournamentGroup:
    tournament_name: str
    draws: list[DrawGroup] = field(default_factory=list)


@dataclass
class ScheduleView:
    """Public scores page for one date."""

    date: str
    live: list[Match] = field(default_factory=list)
    priority_rounds: list[RoundGroup] = field(default_factory=list)
    collapsible_rounds: list[RoundGroup] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.live or self.priority_rounds or self.collapsible_rounds)


def round_priority(round_name: str) -> int:
    return ROUND_SORT_ORDER.get(round_name, ROUND_SORT_DEFAULT)


def draw_priority(draw_name: str) -> int:
    return DRAW_SORT_ORDER.get(draw_name, DRAW_SORT_DEFAULT)


def sort_draw_names(draw_names: Iterable[str]) -> list[str]:
    """Order draw names by the draw hierarchy; unknown draws go last."""
    return sorted(draw_names, key=draw_priority)


def utc_today() -> str:
    """Current UTC date as YYYY-MM-DD. Every "today" comparison uses this."""
    return datetime.now(timezone.utc).date().isoformat()


# ==========================================================================
# Admin table
# ==========================================================================


def sort_matches_for_admin(matches: Sequence[Match], today: Optional[str] = None) -> list[Match]:
    """
    Default admin order: today's matches, then all other dates.

    Today's partition sorts by status (Live, Upcoming, then every finished
    outcome together) and then latest time first. The rest sorts by date,
    then time, both latest first. ``today`` is an ISO date compared by
    string equality; defaults to the current UTC date.
    """
    today = today or utc_today()
    todays = [m for m in matches if m.date == today]
    others = [m for m in matches if m.date != today]

    todays = sorted(todays, key=lambda m: m.time, reverse=True)
    todays.sort(key=lambda m: status_rank(m.status, ADMIN_TODAY_STATUS_ORDER, ADMIN_TODAY_STATUS_DEFAULT))

    others = sorted(others, key=lambda m: (m.date, m.time), reverse=True)
    return todays + others


def _first_player(match: Match) -> str:
    players = match.team1.player_names
    return players[0].lower() if players else ""


_COLUMN_KEYS: dict[str, Callable[[Match], object]] = {
    # Date and time together, so same-day matches order correctly
    "date": lambda m: f"{m.date}T{m.time}",
    "time": lambda m: m.time,
    "tournament": lambda m: m.tournament_name.lower(),
    "draw": lambda m: (m.draw_name or "").lower(),
    "players": _first_player,
    "status": lambda m: status_rank(m.status, STATUS_ORDER, STATUS_ORDER_DEFAULT),
    "court": lambda m: (m.court or "").lower(),
}


def sort_matches_by_column(
    matches: Sequence[Match],
    column: str,
    direction: str = "asc",
) -> list[Match]:
    """
    Single-column admin order chosen by clicking a table header.

    Raises:
        ValidationError: for an unknown column or direction
    """
    key = _COLUMN_KEYS.get(column)
    if key is None:
        raise ValidationError(
            f"Unknown sort column '{column}'. Must be one of: {', '.join(ADMIN_SORT_COLUMNS)}",
            field="sort",
        )
    if direction not in ("asc", "desc"):
        raise ValidationError("Sort direction must be 'asc' or 'desc'", field="direction")
    return sorted(matches, key=key, reverse=direction == "desc")


def sort_admin_matches(
    matches: Sequence[Match],
    column: Optional[str] = None,
    direction: str = "asc",
    today: Optional[str] = None,
) -> list[Match]:
    """Admin table order: the default order unless a column was picked."""
    if column is None:
        return sort_matches_for_admin(matches, today=today)
    return sort_matches_by_column(matches, column, direction)


# ==========================================================================
# Public schedule
# ==========================================================================


def _sort_schedule_bucket(matches: Iterable[Match]) -> list[Match]:
    ordered = sorted(matches, key=lambda m: m.time, reverse=True)
    ordered.sort(key=lambda m: status_rank(m.status, SCHEDULE_STATUS_ORDER, SCHEDULE_STATUS_DEFAULT))
    return ordered


def build_schedule_view(matches: Sequence[Match], date: str) -> ScheduleView:
    """
    Bucket one day's public matches for the scores page.

    Review-queue matches never appear. Live matches get their own bucket
    ordered by start time. Everything else is grouped by round: priority
    rounds (Finals down to Round of 32) are always expanded, other rounds
    are collapsed, except that the first one opens when there are no
    priority rounds that day.
    """
    days_matches = [m for m in matches if m.date == date and is_public_status(m.status)]
    view = ScheduleView(date=date)
    view.live = sorted((m for m in days_matches if m.status == LIVE), key=lambda m: m.time)

    by_round: dict[str, list[Match]] = {}
    for match in days_matches:
        if match.status == LIVE:
            continue
        by_round.setdefault(match.round, []).append(match)

    for round_name in PRIORITY_ROUNDS:
        if round_name in by_round:
            view.priority_rounds.append(
                RoundGroup(round_name, _sort_schedule_bucket(by_round[round_name]), expanded=True)
            )

    other_rounds = sorted(
        (name for name in by_round if name not in PRIORITY_ROUNDS),
        key=round_priority,
    )
    for round_name in other_rounds:
        view.collapsible_rounds.append(
            RoundGroup(round_name, _sort_schedule_bucket(by_round[round_name]), expanded=False)
        )

    if not view.priority_rounds and view.collapsible_rounds:
        view.collapsible_rounds[0].expanded = True

    return view


def available_dates(matches: Iterable[Match]) -> list[str]:
    """Distinct dates with at least one public match, ascending."""
    return sorted({m.date for m in matches if m.date and is_public_status(m.status)})


def resolve_schedule_date(
    requested: Optional[str],
    dates: Sequence[str],
    today: Optional[str] = None,
) -> str:
    """
    Pick the date the scores page opens on.

    An explicitly requested date always wins. Otherwise today if it has
    matches, else the earliest date with matches, else today.
    """
    if requested:
        return requested
    today = today or utc_today()
    if not dates or today in dates:
        return today
    return dates[0]


# ==========================================================================
# Tournament bracket
# ==========================================================================


def _bracket_key(match: Match) -> tuple[int, int, str]:
    return (
        round_priority(match.round),
        status_rank(match.status, STATUS_ORDER, STATUS_ORDER_DEFAULT),
        match.time,
    )


def is_premier_round(round_name: str) -> bool:
    return "premier" in (round_name or "").lower()


def sort_matches_for_bracket(matches: Sequence[Match]) -> list[Match]:
    """Round (tournament progression), then status, then earliest time."""
    return sorted(matches, key=_bracket_key)


def sort_mlp_matches(matches: Sequence[Match]) -> list[Match]:
    """MLP order: every Premier-level round before Challenger, then bracket order."""
    return sorted(matches, key=lambda m: (0 if is_premier_round(m.round) else 1, *_bracket_key(m)))


def group_by_round(matches: Sequence[Match]) -> list[RoundGroup]:
    """Group already-sorted matches by round, rounds in first-seen order."""
    groups: dict[str, RoundGroup] = {}
    for match in matches:
        round_name = match.round or "TBD"
        if round_name not in groups:
            groups[round_name] = RoundGroup(round_name)
        groups[round_name].matches.append(match)
    return list(groups.values())


def build_bracket_view(
    matches: Sequence[Match],
    league: Optional[str] = None,
    draw_name: Optional[str] = None,
) -> list[RoundGroup]:
    """
    Rounds for one tournament's page.

    Args:
        matches: The tournament's matches
        league: Tournament league; "MLP" switches to the Premier/Challenger order
        draw_name: Restrict to one draw ("All" or None keeps every draw)
    """
    if draw_name and draw_name != "All":
        matches = [m for m in matches if m.draw_name == draw_name]

    if league == MLP_LEAGUE:
        ordered = sort_mlp_matches(matches)
    else:
        ordered = sort_matches_for_bracket(matches)
    return group_by_round(ordered)


# ==========================================================================
# Hierarchical grouping
# ==========================================================================


def group_matches(matches: Sequence[Match]) -> list[TournamentGroup]:
    """
    Group matches tournament -> draw -> round.

    Tournaments keep first-seen order, draws follow the draw hierarchy and
    rounds follow tournament progression. Matches inside a round keep
    their incoming order.
    """
    tree: dict[str, dict[str, dict[str, list[Match]]]] = {}
    for match in matches:
        draws = tree.setdefault(match.tournament_name, {})
        rounds = draws.setdefault(match.draw_name or "", {})
        rounds.setdefault(match.round or "TBD", []).append(match)

    result: list[TournamentGroup] = []
    for tournament_name, draws in tree.items():
        tournament_group = TournamentGroup(tournament_name)
        for draw_name in sort_draw_names(draws):
            rounds = draws[draw_name]
            tournament_group.draws.append(
                DrawGroup(
                    draw_name,
                    [RoundGroup(r, rounds[r]) for r in sorted(rounds, key=round_priority)],
                )
            )
        result.append(tournament_group)
    return result
