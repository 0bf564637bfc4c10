"""
Winner and status inference from raw set scores.

Pickleball games are played to 11, win by 2. A game tied late can run on,
and from 15 points the higher score takes it. Matches are best of three.

Two rules live here on purpose and must not be merged:
- ``derive_winners`` (match cards): winner of the LAST set only
- ``determine_match_status`` (review-queue approval): majority of sets
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from picklewickel.match_statuses import COMPLETED, LIVE
from picklewickel.records import Match

GAME_POINT_TARGET = 11
WIN_BY = 2
DEUCE_CAP = 15
SETS_TO_WIN = 2


@dataclass(frozen=True)
class WinnerFlags:
    team1_is_winner: bool = False
    team2_is_winner: bool = False

    def to_dict(self) -> dict:
        return {"team1IsWinner": self.team1_is_winner, "team2IsWinner": self.team2_is_winner}


def derive_winners(match: Match) -> WinnerFlags:
    """
    Work out which team to highlight as winner.

    Explicit flags win (forfeits and walkovers have no usable scores). Otherwise
    a Completed match with scores goes to whoever took the last set; a tied
    last set, or any other status, gives no winner.
    """
    if match.team1.is_winner or match.team2.is_winner:
        return WinnerFlags(match.team1.is_winner, match.team2.is_winner)

    pairs = match.set_pairs
    if match.status == COMPLETED and pairs:
        last1, last2 = pairs[-1]
        return WinnerFlags(last1 > last2, last2 > last1)

    return WinnerFlags()


def set_winner(score1: int, score2: int) -> Optional[int]:
    """
    Return 1 or 2 for a decided set, None while it is still in play.

    Examples:
        >>> set_winner(11, 9)
        1
        >>> set_winner(10, 11)
        >>> set_winner(15, 14)
        1
    """
    if score1 >= GAME_POINT_TARGET and score1 - score2 >= WIN_BY:
        return 1
    if score2 >= GAME_POINT_TARGET and score2 - score1 >= WIN_BY:
        return 2
    if (score1 >= DEUCE_CAP or score2 >= DEUCE_CAP) and score1 != score2:
        return 1 if score1 > score2 else 2
    return None


def determine_match_status(
    set_scores_team1: Sequence[int],
    set_scores_team2: Sequence[int],
) -> str:
    """
    Decide between Completed and Live when approving a scraped match.

    No scores at all means Completed: the scraper reported a final result
    without a scoreline (walkover-like). Any undecided set means Live, and
    the match is only Completed once a team has won two sets.

    Examples:
        >>> determine_match_status([11, 9], [7, 11])
        'Live'
        >>> determine_match_status([11, 11], [9, 7])
        'Completed'
    """
    if not set_scores_team1 or not set_scores_team2:
        return COMPLETED

    sets_won = {1: 0, 2: 0}
    for score1, score2 in zip(set_scores_team1, set_scores_team2):
        winner = set_winner(score1, score2)
        if winner is None:
            return LIVE
        sets_won[winner] += 1

    if sets_won[1] >= SETS_TO_WIN or sets_won[2] >= SETS_TO_WIN:
        return COMPLETED
    return LIVE
