#!/usr/bin/env python3
"""
Promote review-queue matches to Live or Completed based on their scores.

Usage:
    python scripts/approve_review_queue.py                  # list the queue
    python scripts/approve_review_queue.py --apply          # approve everything
    python scripts/approve_review_queue.py --apply --tournament "PPA Atlanta Open"
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from picklewickel.db.session import get_session
from picklewickel.derived_state import determine_match_status
from picklewickel.logging_config import configure_logging
from picklewickel.search import format_players, format_scores
from picklewickel.services.match_service import MatchService
from picklewickel.store import CollectionRepository, SqlKeyValueStore


def main():
    parser = argparse.ArgumentParser(description="Approve pending scraped matches")
    parser.add_argument(
        "--apply", action="store_true",
        help="Actually approve (default is dry-run)",
    )
    parser.add_argument(
        "--tournament",
        help="Only approve matches of this exact tournament name",
    )
    args = parser.parse_args()
    configure_logging(fmt="console")

    with get_session() as session:
        service = MatchService(CollectionRepository(SqlKeyValueStore(session)))
        queue = service.review_queue()
        if args.tournament is not None:
            queue = [m for m in queue if m.tournament_name == args.tournament]

        if not queue:
            print("Review queue is empty.")
            return

        for match in queue:
            new_status = determine_match_status(match.set_scores_team1, match.set_scores_team2)
            print(
                f"{match.id}  {match.date} {match.time}  {match.tournament_name} / {match.round}: "
                f"{format_players(match.team1)} vs {format_players(match.team2)} "
                f"[{format_scores(match.set_scores_team1, match.set_scores_team2)}] -> {new_status}"
            )

        if not args.apply:
            print(f"\n{len(queue)} match(es) pending. Run with --apply to approve.")
            return

        for match in queue:
            service.approve_match(match.id)
        print(f"\nApproved {len(queue)} match(es).")


if __name__ == "__main__":
    main()
