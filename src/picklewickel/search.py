"""Free-text match search and table formatting helpers."""

from typing import Iterable, Sequence

from picklewickel.records import Match, Team


def search_matches(matches: Iterable[Match], query: str) -> list[Match]:
    """
    Case-insensitive substring search across the fields admins search by.

    Looks at player names, tournament, draw, round and court. A blank query
    returns every match.
    """
    needle = (query or "").strip().lower()
    if not needle:
        return list(matches)

    def _matches(match: Match) -> bool:
        haystack = (
            " ".join(match.all_player_names),
            match.tournament_name,
            match.draw_name,
            match.round,
            match.court,
        )
        return any(needle in (value or "").lower() for value in haystack)

    return [m for m in matches if _matches(m)]


def format_players(team: Team) -> str:
    """Player names joined with " / ", or "TBD" for an empty team."""
    if not team.players:
        return "TBD"
    return " / ".join(team.player_names)


def format_scores(set_scores_team1: Sequence[int], set_scores_team2: Sequence[int]) -> str:
    """
    Render parallel score arrays as "11-5, 11-7".

    Examples:
        >>> format_scores([11, 9], [5, 11])
        '11-5, 9-11'
        >>> format_scores([], [])
        '-'
    """
    if not set_scores_team1 or not set_scores_team2:
        return "-"
    return ", ".join(f"{s1}-{s2}" for s1, s2 in zip(set_scores_team1, set_scores_team2))
