"""
Unit tests for the per-view match orderings and grouping.
"""

import pytest

from picklewickel.errors import ValidationError
from picklewickel.sorting import (
    build_bracket_view,
    build_schedule_view,
    group_matches,
    resolve_schedule_date,
    sort_admin_matches,
    sort_draw_names,
    sort_matches_by_column,
    sort_matches_for_admin,
)

TODAY = "2025-03-15"
YESTERDAY = "2025-03-14"


class TestAdminDefaultOrder:
    def test_today_live_upcoming_then_yesterday(self, make_match):
        a = make_match(id="A", date=TODAY, status="Live", time="14:00")
        b = make_match(id="B", date=TODAY, status="Upcoming", time="09:00")
        c = make_match(id="C", date=YESTERDAY, status="Completed", time="16:00")

        ordered = sort_matches_for_admin([c, b, a], today=TODAY)

        assert [m.id for m in ordered] == ["A", "B", "C"]

    def test_finished_outcomes_share_a_rank_and_sort_by_latest_time(self, make_match):
        done = make_match(id="done", date=TODAY, status="Completed", time="08:00")
        walkover = make_match(id="wo", date=TODAY, status="Walkover", time="12:00")
        upcoming = make_match(id="up", date=TODAY, status="Upcoming", time="07:00")

        ordered = sort_matches_for_admin([done, walkover, upcoming], today=TODAY)

        assert [m.id for m in ordered] == ["up", "wo", "done"]

    def test_other_dates_latest_first(self, make_match):
        older = make_match(id="older", date="2025-03-10", time="20:00")
        newer = make_match(id="newer", date="2025-03-12", time="08:00")
        future = make_match(id="future", date="2025-03-20", time="08:00")

        ordered = sort_matches_for_admin([older, newer, future], today=TODAY)

        assert [m.id for m in ordered] == ["future", "newer", "older"]

    def test_input_is_not_mutated(self, make_match):
        matches = [make_match(id="1", date=YESTERDAY), make_match(id="2", date=TODAY)]
        sort_matches_for_admin(matches, today=TODAY)

        assert [m.id for m in matches] == ["1", "2"]


class TestAdminColumnOrder:
    def test_status_column(self, make_match):
        matches = [
            make_match(id="c", status="Completed"),
            make_match(id="l", status="Live"),
            make_match(id="u", status="Upcoming"),
        ]

        assert [m.id for m in sort_matches_by_column(matches, "status")] == ["l", "u", "c"]
        assert [m.id for m in sort_matches_by_column(matches, "status", "desc")] == ["c", "u", "l"]

    def test_players_column_uses_first_player(self, make_match):
        matches = [
            make_match(id="z", team1=("zane navratil",)),
            make_match(id="a", team1=("Anna Bright",)),
        ]

        assert [m.id for m in sort_matches_by_column(matches, "players")] == ["a", "z"]

    def test_column_overrides_default(self, make_match):
        matches = [
            make_match(id="today", date=TODAY, tournament_name="Zephyr Open"),
            make_match(id="old", date=YESTERDAY, tournament_name="Alpha Open"),
        ]

        ordered = sort_admin_matches(matches, column="tournament", today=TODAY)

        assert [m.id for m in ordered] == ["old", "today"]

    def test_unknown_column_rejected(self, make_match):
        with pytest.raises(ValidationError):
            sort_matches_by_column([make_match()], "rating")

    def test_stable_for_ties(self, make_match):
        matches = [make_match(id=str(i), court="1") for i in range(5)]

        assert [m.id for m in sort_matches_by_column(matches, "court")] == ["0", "1", "2", "3", "4"]


class TestScheduleView:
    def test_buckets(self, make_match):
        matches = [
            make_match(id="live2", date=TODAY, status="Live", round="Round of 64", time="11:00"),
            make_match(id="live1", date=TODAY, status="Live", round="Finals", time="09:00"),
            make_match(id="f_done", date=TODAY, status="Completed", round="Finals", time="15:00"),
            make_match(id="f_up", date=TODAY, status="Upcoming", round="Finals", time="12:00"),
            make_match(id="sf", date=TODAY, status="Completed", round="Semifinals", time="10:00"),
            make_match(id="pool", date=TODAY, status="Upcoming", round="Pool Play", time="08:00"),
            make_match(id="other_day", date=YESTERDAY, status="Upcoming", round="Finals"),
            make_match(id="pending", date=TODAY, status="pending_approval", round="Finals"),
        ]

        view = build_schedule_view(matches, TODAY)

        assert [m.id for m in view.live] == ["live1", "live2"]
        assert [g.round for g in view.priority_rounds] == ["Finals", "Semifinals"]
        assert [m.id for m in view.priority_rounds[0].matches] == ["f_up", "f_done"]
        assert all(g.expanded for g in view.priority_rounds)
        assert [g.round for g in view.collapsible_rounds] == ["Pool Play"]
        assert view.collapsible_rounds[0].expanded is False

    def test_first_collapsible_round_opens_without_priority_rounds(self, make_match):
        matches = [
            make_match(id="q", date=TODAY, round="Qualifiers"),
            make_match(id="p", date=TODAY, round="Pool Play"),
        ]

        view = build_schedule_view(matches, TODAY)

        assert [g.round for g in view.collapsible_rounds] == ["Pool Play", "Qualifiers"]
        assert [g.expanded for g in view.collapsible_rounds] == [True, False]

    def test_bucket_time_descending_within_status(self, make_match):
        matches = [
            make_match(id="early", date=TODAY, round="Finals", time="09:00"),
            make_match(id="late", date=TODAY, round="Finals", time="17:00"),
        ]

        view = build_schedule_view(matches, TODAY)

        assert [m.id for m in view.priority_rounds[0].matches] == ["late", "early"]

    def test_empty_day(self):
        assert build_schedule_view([], TODAY).is_empty

    def test_resolve_date(self):
        assert resolve_schedule_date("2025-01-01", ["2025-03-10"], today=TODAY) == "2025-01-01"
        assert resolve_schedule_date(None, ["2025-03-10", TODAY], today=TODAY) == TODAY
        assert resolve_schedule_date(None, ["2025-03-10", "2025-03-20"], today=TODAY) == "2025-03-10"
        assert resolve_schedule_date(None, [], today=TODAY) == TODAY


class TestBracketView:
    def test_round_progression_then_status_then_time(self, make_match):
        matches = [
            make_match(id="qf_done", round="Quarterfinals", status="Completed", time="09:00"),
            make_match(id="final", round="Finals", status="Upcoming", time="16:00"),
            make_match(id="qf_live_late", round="Quarterfinals", status="Live", time="11:00"),
            make_match(id="qf_live_early", round="Quarterfinals", status="Live", time="10:00"),
            make_match(id="qual", round="Qualifiers", status="Completed"),
            make_match(id="unknown", round="Consolation", status="Completed"),
        ]

        rounds = build_bracket_view(matches)

        assert [g.round for g in rounds] == ["Finals", "Quarterfinals", "Consolation", "Qualifiers"]
        assert [m.id for m in rounds[1].matches] == ["qf_live_early", "qf_live_late", "qf_done"]

    def test_mlp_premier_before_challenger(self, make_match):
        matches = [
            make_match(id="chal_final", round="Challenger Finals"),
            make_match(id="prem_pool", round="Premier Pool Play"),
        ]

        rounds = build_bracket_view(matches, league="MLP")

        assert [g.round for g in rounds] == ["Premier Pool Play", "Challenger Finals"]

    def test_draw_filter(self, make_match):
        matches = [
            make_match(id="md", draw_name="Men's Doubles"),
            make_match(id="wd", draw_name="Women's Doubles"),
        ]

        rounds = build_bracket_view(matches, draw_name="Women's Doubles")

        assert [m.id for g in rounds for m in g.matches] == ["wd"]


class TestGrouping:
    def test_draw_hierarchy(self):
        draws = ["Senior Mixed Doubles", "Mixed Doubles", "Open 3.5", "Men's Doubles", "Women's Doubles"]

        assert sort_draw_names(draws) == [
            "Men's Doubles",
            "Women's Doubles",
            "Mixed Doubles",
            "Senior Mixed Doubles",
            "Open 3.5",
        ]

    def test_group_tournament_draw_round(self, make_match):
        matches = [
            make_match(id="1", draw_name="Mixed Doubles", round="Semifinals"),
            make_match(id="2", draw_name="Men's Doubles", round="Quarterfinals"),
            make_match(id="3", draw_name="Men's Doubles", round="Finals"),
            make_match(id="4", tournament_name="APP Chicago", draw_name="Men's Doubles"),
        ]

        groups = group_matches(matches)

        assert [g.tournament_name for g in groups] == ["PPA Atlanta Open", "APP Chicago"]
        ppa = groups[0]
        assert [d.draw_name for d in ppa.draws] == ["Men's Doubles", "Mixed Doubles"]
        assert [r.round for r in ppa.draws[0].rounds] == ["Finals", "Quarterfinals"]
