"""
Content fingerprints for duplicate detection.

A fingerprint is ``tournament|round|players`` where players is the sorted,
lower-cased, whitespace-free concatenation of every player name on both
teams. Date, time, court and scores are deliberately left out: they change
between re-imports of corrected data while the identity fields don't.

Known limitation: two genuine matches between the same players in the same
round of the same tournament (repeated pool play) share a fingerprint, and
the second one is treated as a duplicate.
"""

import re
from typing import Iterable

from picklewickel.records import Match

_WHITESPACE_RE = re.compile(r"\s+")


def match_fingerprint(match: Match) -> str:
    """
    Build the dedup fingerprint for a match.

    Examples:
        >>> m = Match(id="", date="2025-01-01", time="10:00", status="Upcoming",
        ...           tournament_name="PPA Atlanta", round="Finals")
        >>> match_fingerprint(m)
        'ppa atlanta|finals|'
    """
    players = sorted(
        _WHITESPACE_RE.sub("", name.lower()) for name in match.all_player_names
    )
    tournament = (match.tournament_name or "").lower()
    round_name = (match.round or "").lower()
    return f"{tournament}|{round_name}|{''.join(players)}"


class FingerprintIndex:
    """
    Set of known fingerprints used while importing a batch.

    Seeded with the existing matches, then grows with each accepted row so
    a file that repeats itself is deduplicated too.
    """

    def __init__(self, matches: Iterable[Match] = ()):
        self._seen: set[str] = {match_fingerprint(m) for m in matches}

    def add_if_new(self, match: Match) -> bool:
        """Record the match and return True, or return False for a duplicate."""
        fingerprint = match_fingerprint(match)
        if fingerprint in self._seen:
            return False
        self._seen.add(fingerprint)
        return True
