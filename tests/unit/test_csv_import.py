"""
Unit tests for CSV match import.

Tests the parse-then-preview flow:
- Header validation (case-insensitive, order free)
- Per-row errors collected without stopping the batch
- Score and winner parsing
- Fingerprint deduplication against stored matches and within a file
"""

from picklewickel.csv_import import parse_csv_line, parse_matches_csv, parse_scores
from picklewickel.fingerprint import match_fingerprint

HEADER = (
    "date,time,tournamentName,drawName,round,team1Player1,team1Player2,"
    "team2Player1,team2Player2,team1Seed,team2Seed,court,status,scores,winner"
)

ROW_FINAL = (
    '2025-03-16,14:00,PPA Atlanta Open,Men\'s Doubles,Finals,Ben Johns,Collin Johns,'
    'Hayden Patriquin,Federico Staksrud,1,2,CC,Completed,"11-5,11-7",team1'
)
ROW_SEMI = (
    "2025-03-15,10:30,PPA Atlanta Open,Men's Doubles,Semifinals,JW Johnson,Dylan Frazier,"
    "Andrei Daescu,James Ignatowich,3,,Court 2,Upcoming,,"
)


def _csv(*rows: str) -> str:
    return "\n".join((HEADER, *rows)) + "\n"


class TestParseHelpers:
    def test_quoted_cells_keep_commas(self):
        assert parse_csv_line('a, "11-5,11-7" ,b') == ["a", "11-5,11-7", "b"]

    def test_malformed_score_pairs_are_dropped(self):
        assert parse_scores("11-5, 9-11, bad, 11-") == ([11, 9], [5, 11])

    def test_empty_scores(self):
        assert parse_scores("") == ([], [])


class TestParseMatchesCsv:
    def test_completed_row_round_trip(self):
        result = parse_matches_csv(_csv(ROW_FINAL))

        assert result.errors == []
        assert len(result.valid_matches) == 1
        match = result.valid_matches[0]
        assert match.team1.is_winner is True
        assert match.team2.is_winner is False
        assert match.set_scores_team1 == [11, 11]
        assert match.set_scores_team2 == [5, 7]
        assert match.team1.seed == 1
        assert match.team1.player_names == ["Ben Johns", "Collin Johns"]

    def test_winner_ignored_unless_completed(self):
        row = ROW_SEMI + "team2"
        result = parse_matches_csv(_csv(row))

        match = result.valid_matches[0]
        assert match.team1.is_winner is False
        assert match.team2.is_winner is False

    def test_optional_second_players_are_skipped(self):
        row = (
            "2025-03-15,09:00,APP Chicago,Men's Singles,Round of 16,Tyson McGuffin,,"
            "Christian Alshon,,,,,Upcoming,,"
        )
        match = parse_matches_csv(_csv(row)).valid_matches[0]

        assert match.team1.player_names == ["Tyson McGuffin"]
        assert match.team2.player_names == ["Christian Alshon"]

    def test_headers_are_case_insensitive(self):
        text = HEADER.upper() + "\n" + ROW_FINAL
        result = parse_matches_csv(text)

        assert len(result.valid_matches) == 1

    def test_missing_headers_is_fatal(self):
        result = parse_matches_csv("date,time,round\n2025-01-01,10:00,Finals\n")

        assert result.fatal is True
        assert result.valid_matches == []
        assert result.errors[0].startswith("Missing required headers:")
        assert "tournamentname" in result.errors[0]

    def test_empty_file_is_fatal(self):
        result = parse_matches_csv("   \n\n")

        assert result.fatal is True
        assert result.errors == ["CSV is empty"]

    def test_bad_rows_are_reported_and_skipped(self):
        bad_date = ROW_SEMI.replace("2025-03-15", "15/03/2025")
        bad_status = ROW_SEMI.replace("Upcoming", "Finished").replace("Semifinals", "Quarterfinals")
        short_row = "2025-03-15,10:00,PPA Atlanta Open"

        result = parse_matches_csv(_csv(ROW_FINAL, bad_date, bad_status, short_row))

        assert len(result.valid_matches) == 1
        assert result.total_rows == 4
        assert len(result.errors) == 3
        assert result.errors[0].startswith("Row 3: Date must be in YYYY-MM-DD format")
        assert result.errors[1].startswith('Row 4: Invalid status "Finished"')
        assert result.errors[2].startswith("Row 5: Column count mismatch")

    def test_missing_required_values_are_named(self):
        row = ",10:30,PPA Atlanta Open,Men's Doubles,Semifinals,,,B,,,,,Upcoming,,"
        result = parse_matches_csv(_csv(row))

        assert result.errors == ["Row 2: Missing date, Missing team 1 player 1"]

    def test_blank_lines_are_ignored(self):
        result = parse_matches_csv(HEADER + "\n\n" + ROW_FINAL + "\n\n")

        assert result.total_rows == 1
        assert len(result.valid_matches) == 1


class TestDeduplication:
    def test_reimport_is_idempotent(self):
        text = _csv(ROW_FINAL, ROW_SEMI)
        first = parse_matches_csv(text)
        second = parse_matches_csv(text, first.valid_matches)

        assert len(first.valid_matches) == 2
        assert second.valid_matches == []
        assert second.duplicate_count == second.total_rows == 2

    def test_duplicate_within_same_file(self):
        rescheduled = ROW_FINAL.replace("14:00", "18:00").replace(",CC,", ",Court 5,")
        result = parse_matches_csv(_csv(ROW_FINAL, rescheduled))

        assert len(result.valid_matches) == 1
        assert result.duplicate_count == 1

    def test_fingerprint_ignores_date_time_court_and_scores(self, make_match):
        a = make_match(date="2025-03-14", time="10:00", court="1", scores1=[11], scores2=[3])
        b = make_match(
            date="2025-03-15",
            time="18:30",
            court="CC",
            team1=("Hayden Patriquin", "Federico Staksrud"),
            team2=("collin johns", "BEN JOHNS"),
        )

        assert match_fingerprint(a) == match_fingerprint(b)

    def test_different_round_is_not_duplicate(self, make_match):
        assert match_fingerprint(make_match(round="Finals")) != match_fingerprint(
            make_match(round="Semifinals")
        )


def test_summary_mentions_counts():
    result = parse_matches_csv(_csv(ROW_FINAL, "2025-03-15,10:00,x"))
    summary = result.summary()

    assert "Valid matches:      1" in summary
    assert "Errors: 1" in summary
    assert result.to_dict()["errorCount"] == 1
