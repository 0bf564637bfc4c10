"""
CSV match import parser.

Expected format (header names are case-insensitive, column order is free):

    date,time,tournamentName,drawName,round,team1Player1,team1Player2,
    team2Player1,team2Player2,team1Seed,team2Seed,court,status,scores,winner

Required headers:
    date, time, tournamentname, drawname, round, team1player1,
    team2player1, status

Cell rules:
- date: YYYY-MM-DD, time: HH:MM (24h)
- status: Live, Upcoming, Completed, Forfeit or Walkover (exact spelling)
- scores: "11-5,11-7" (quote the cell), one team1-team2 pair per set.
  Malformed pairs are dropped without failing the row.
- winner: team1 / team2, only honoured when status is Completed

A bad row is reported as ``Row <n>: <reason>, <reason>`` (the header is
row 1) and skipped; it never stops the rest of the file. Rows whose
fingerprint matches an existing match, or an earlier row of the same file,
are counted in ``duplicate_count`` and left out.

Usage:
    result = parse_matches_csv(text, existing_matches)
    print(result.summary())
"""

import csv
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from picklewickel.fingerprint import FingerprintIndex
from picklewickel.match_statuses import COMPLETED, PUBLIC_MATCH_STATUSES
from picklewickel.records import Match, Player, Team

logger = logging.getLogger(__name__)

REQUIRED_HEADERS: tuple[str, ...] = (
    "date",
    "time",
    "tournamentname",
    "drawname",
    "round",
    "team1player1",
    "team2player1",
    "status",
)

# Human readable names for missing required values
_REQUIRED_FIELD_LABELS: dict[str, str] = {
    "date": "Missing date",
    "time": "Missing time",
    "tournamentname": "Missing tournament name",
    "drawname": "Missing draw name",
    "round": "Missing round",
    "team1player1": "Missing team 1 player 1",
    "team2player1": "Missing team 2 player 1",
    "status": "Missing status",
}

_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_TIME_RE = re.compile(r"[0-9]{2}:[0-9]{2}")


@dataclass
class CSVParseResult:
    """Outcome of parsing one CSV file. Nothing is persisted at this stage."""

    valid_matches: list[Match] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    duplicate_count: int = 0
    total_rows: int = 0
    # True when the whole file was rejected (empty, missing headers)
    fatal: bool = False

    @property
    def error_row_count(self) -> int:
        return 0 if self.fatal else len(self.errors)

    def summary(self) -> str:
        """Return a human-readable summary of the parse."""
        lines = [
            "CSV parse complete:",
            f"  Data rows:          {self.total_rows}",
            f"  Valid matches:      {len(self.valid_matches)}",
            f"  Duplicates skipped: {self.duplicate_count}",
        ]
        if self.errors:
            lines.append(f"  Errors: {len(self.errors)}")
            for err in self.errors[:5]:
                lines.append(f"    - {err}")
            if len(self.errors) > 5:
                lines.append(f"    ... and {len(self.errors) - 5} more")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            "validMatches": [m.to_document() for m in self.valid_matches],
            "errors": list(self.errors),
            "duplicateCount": self.duplicate_count,
            "validCount": len(self.valid_matches),
            "errorCount": self.error_row_count,
            "totalRows": self.total_rows,
        }


def parse_csv_line(line: str) -> list[str]:
    """
    Split one CSV line into trimmed cells.

    Double-quoted cells may contain commas; the surrounding quotes are removed.

    Examples:
        >>> parse_csv_line('a, "b, c" ,d')
        ['a', 'b, c', 'd']
    """
    cells = next(csv.reader([line], skipinitialspace=True), [])
    return [cell.strip() for cell in cells]


def parse_scores(scores: str) -> tuple[list[int], list[int]]:
    """
    Parse a "11-5,11-7" style cell into parallel score arrays.

    Pairs that aren't exactly two integers are skipped, so the two arrays
    always have the same length.

    Examples:
        >>> parse_scores("11-5, 9-11, bad, 11-")
        ([11, 9], [5, 11])
    """
    team1: list[int] = []
    team2: list[int] = []
    if not scores or not scores.strip():
        return team1, team2

    for game in scores.split(","):
        parts = [p.strip() for p in game.strip().split("-")]
        if len(parts) != 2:
            continue
        try:
            score1, score2 = int(parts[0]), int(parts[1])
        except ValueError:
            continue
        team1.append(score1)
        team2.append(score2)
    return team1, team2


def _parse_seed(raw: str) -> Optional[int]:
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _build_team(row: dict[str, str], prefix: str) -> Team:
    players = [Player(name=row[f"{prefix}player1"].strip())]
    second = (row.get(f"{prefix}player2") or "").strip()
    if second:
        players.append(Player(name=second))
    return Team(players=players, seed=_parse_seed(row.get(f"{prefix}seed", "")))


def _row_errors(row: dict[str, str]) -> list[str]:
    missing = [label for key, label in _REQUIRED_FIELD_LABELS.items() if not row.get(key)]
    if missing:
        return missing

    errors: list[str] = []
    if not _DATE_RE.fullmatch(row["date"]):
        errors.append("Date must be in YYYY-MM-DD format")
    if not _TIME_RE.fullmatch(row["time"]):
        errors.append("Time must be in HH:MM format")
    if row["status"] not in PUBLIC_MATCH_STATUSES:
        errors.append(
            f'Invalid status "{row["status"]}". '
            f"Must be one of: {', '.join(PUBLIC_MATCH_STATUSES)}"
        )
    return errors


def _build_match(row: dict[str, str]) -> Match:
    team1 = _build_team(row, "team1")
    team2 = _build_team(row, "team2")

    winner = (row.get("winner") or "").strip().lower()
    if row["status"] == COMPLETED:
        team1.is_winner = winner == "team1"
        team2.is_winner = winner == "team2"

    scores1, scores2 = parse_scores(row.get("scores", ""))
    return Match(
        id="",
        date=row["date"],
        time=row["time"],
        status=row["status"],
        tournament_name=row["tournamentname"],
        draw_name=row["drawname"],
        round=row["round"],
        court=row.get("court", ""),
        team1=team1,
        team2=team2,
        set_scores_team1=scores1,
        set_scores_team2=scores2,
    )


def parse_matches_csv(text: str, existing_matches: Iterable[Match] = ()) -> CSVParseResult:
    """
    Parse CSV text into canonical matches, ready for a preview.

    Args:
        text: Full CSV text including the header row
        existing_matches: Already stored matches, used for duplicate checks

    Returns:
        CSVParseResult. ``valid_matches`` carry an empty id; ids are assigned
        when the import is committed.
    """
    result = CSVParseResult()
    lines = [line for line in (text or "").strip().splitlines() if line.strip()]

    if not lines:
        result.errors.append("CSV is empty")
        result.fatal = True
        return result

    headers = [h.lower().strip() for h in parse_csv_line(lines[0])]
    missing_headers = [h for h in REQUIRED_HEADERS if h not in headers]
    if missing_headers:
        result.errors.append(f"Missing required headers: {', '.join(missing_headers)}")
        result.fatal = True
        return result

    fingerprints = FingerprintIndex(existing_matches)

    for index, line in enumerate(lines[1:], start=2):
        result.total_rows += 1
        values = parse_csv_line(line.strip())

        if len(values) != len(headers):
            result.errors.append(
                f"Row {index}: Column count mismatch "
                f"(expected {len(headers)}, got {len(values)})"
            )
            continue

        row = dict(zip(headers, values))
        errors = _row_errors(row)
        if errors:
            result.errors.append(f"Row {index}: {', '.join(errors)}")
            continue

        match = _build_match(row)
        if not fingerprints.add_if_new(match):
            logger.debug("Row %d is a duplicate of an existing match", index)
            result.duplicate_count += 1
            continue

        result.valid_matches.append(match)

    logger.info(
        "Parsed CSV: %d rows, %d valid, %d duplicates, %d errors",
        result.total_rows, len(result.valid_matches),
        result.duplicate_count, len(result.errors),
    )
    return result
