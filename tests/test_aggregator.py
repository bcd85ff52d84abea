from __future__ import annotations

import pytest

from conftest import FIXTURE_ID, TEAM_ID, make_event
from match_tracker.directory import Fixture
from match_tracker.events import EVENT_VOCABULARY_VERSION, Side
from match_tracker.reports.aggregator import (
    build_match_report,
    conversion_rate,
    effective_events,
    fixture_stats,
    quarter_for,
)

MATCH_SECONDS = 4200


def test_empty_log_gives_zeroed_report() -> None:
    report = build_match_report([], {})

    assert report.event_count == 0
    assert report.vocabulary_version == EVENT_VOCABULARY_VERSION
    assert report.match_seconds == MATCH_SECONDS
    totals = report.team_totals
    assert totals.total_score == 0
    assert totals.conversion_rate == 0.0
    assert totals.puckout_win_percentage == 0.0
    assert totals.free_conversion_rate == 0.0
    assert report.player_stats == []
    assert [quarter.quarter for quarter in report.quarter_breakdown] == [1, 2, 3, 4]
    assert all(quarter.shots == 0 for quarter in report.quarter_breakdown)
    assert report.shot_heatmap == {}


def test_goal_point_wide_early_on() -> None:
    events = [
        make_event("Goal", timestamp=30),
        make_event("Point", timestamp=90),
        make_event("Wide", timestamp=150),
    ]
    report = build_match_report(events, {})

    totals = report.team_totals
    assert (totals.goals, totals.points, totals.wides) == (1, 1, 1)
    assert totals.total_score == 4
    assert totals.conversion_rate == pytest.approx(4 / 9)
    first, *rest = report.quarter_breakdown
    assert first.shots == 3
    assert first.total_score == 4
    assert all(quarter.shots == 0 for quarter in rest)


@pytest.mark.parametrize(
    ("timestamp", "expected"),
    [(0, 1), (1049, 1), (1050, 2), (2100, 3), (3149, 3), (3150, 4), (4199, 4), (4200, 4), (9000, 4)],
)
def test_quarter_boundaries(timestamp: int, expected: int) -> None:
    assert quarter_for(timestamp, MATCH_SECONDS) == expected


def test_quarter_for_degenerate_length() -> None:
    assert quarter_for(500, 0) == 1


def test_quarters_partition_team_totals() -> None:
    events = [
        make_event("Goal", timestamp=100),
        make_event("Point", timestamp=1200),
        make_event("Point", timestamp=2300, side=Side.AWAY),
        make_event("Wide", timestamp=3500),
        make_event("Won Clean", timestamp=3600),
        make_event("Lost", timestamp=4300),
        make_event("Turnover Won", timestamp=2000),
    ]
    report = build_match_report(events, {})
    totals = report.team_totals

    for field in ("goals", "points", "wides", "puckouts_won", "puckouts_lost", "turnovers_won"):
        assert sum(getattr(quarter, field) for quarter in report.quarter_breakdown) == getattr(totals, field)
    assert [quarter.shots for quarter in report.quarter_breakdown] == [1, 1, 1, 1]


def test_side_totals_split_by_side() -> None:
    events = [
        make_event("Goal"),
        make_event("Point", side=Side.AWAY),
        make_event("Point", side=Side.AWAY),
    ]
    report = build_match_report(events, {})
    assert report.side_totals["HOME"].total_score == 3
    assert report.side_totals["AWAY"].total_score == 2
    assert report.team_totals.total_score == 5


def test_undone_events_are_dropped_with_their_undo() -> None:
    goal = make_event("Goal", timestamp=200)
    point = make_event("Point", timestamp=260)
    undo = goal.compensation("undo-goal", timestamp=300)

    log = effective_events([goal, point, undo])
    assert [event.client_id for event in log] == [point.client_id]

    report = build_match_report([goal, point, undo], {})
    assert report.event_count == 1
    assert report.team_totals.goals == 0
    assert report.team_totals.total_score == 1


def test_events_sorted_by_match_clock() -> None:
    late = make_event("Point", timestamp=500)
    early = make_event("Goal", timestamp=20)
    same_time = make_event("Wide", timestamp=500)
    assert [event.client_id for event in effective_events([late, early, same_time])] == [
        early.client_id,
        late.client_id,
        same_time.client_id,
    ]


def test_discipline_frees_and_turnovers() -> None:
    events = [
        make_event("Free Converted"),
        make_event("Free Converted"),
        make_event("Free Missed"),
        make_event("Turnover Won"),
        make_event("Turnover Lost"),
        make_event("Turnover Lost"),
        make_event("Yellow Card"),
        make_event("Red Card"),
        make_event("Sub On"),
    ]
    totals = build_match_report(events, {}).team_totals
    assert totals.frees_converted == 2
    assert totals.free_conversion_rate == pytest.approx(2 / 3)
    assert totals.turnover_differential == -1
    assert (totals.yellow_cards, totals.red_cards) == (1, 1)
    assert totals.substitutions == 1


def test_puckouts_and_directions() -> None:
    events = [
        make_event("Won Clean", zone="Midfield Centre"),
        make_event("Broken Won", zone="Midfield Left"),
        make_event("Lost", zone="Midfield Centre"),
        make_event("Direction", outcome="Long"),
        make_event("Direction", outcome="Long"),
        make_event("Direction", outcome="Short"),
    ]
    report = build_match_report(events, {})

    assert report.team_totals.puckouts_won == 2
    assert report.team_totals.puckouts_lost == 1
    assert report.team_totals.puckout_win_percentage == pytest.approx(2 / 3)
    assert report.team_totals.puckout_directions == {"Long": 2, "Short": 1}
    assert report.restart_heatmap["Midfield Centre"].attempts == 2
    assert report.restart_heatmap["Midfield Centre"].won == 1
    assert report.zone_counts["Puckouts"] == {"Midfield Centre": 2, "Midfield Left": 1}


def test_shot_heatmap() -> None:
    events = [
        make_event("Point", zone="Attack Centre"),
        make_event("Goal", zone="Attack Centre"),
        make_event("Wide", zone="Attack Centre"),
        make_event("Point", zone="Midfield Right"),
    ]
    heatmap = build_match_report(events, {}).shot_heatmap
    assert heatmap["Attack Centre"].attempts == 3
    assert heatmap["Attack Centre"].successful == 2
    assert heatmap["Midfield Right"].successful == 1


def test_player_contributions_ranked_and_named() -> None:
    events = [
        make_event("Point", player_id="p-1"),
        make_event("Goal", player_id="p-2"),
        make_event("Point", player_id="p-2"),
        make_event("Won Clean", player_id="p-3"),
        make_event("Wide"),
    ]
    players = {"p-2": "TJ Reid"}
    rows = build_match_report(events, players).player_stats

    assert [row.player_id for row in rows] == ["p-2", "p-1", "p-3"]
    assert rows[0].player_name == "TJ Reid"
    assert rows[1].player_name is None
    assert rows[0].goals == 1 and rows[0].points == 1
    assert rows[0].efficiency == pytest.approx(2 / 5)
    assert rows[2].puckouts_won == 1
    assert all(0.0 <= row.efficiency <= 1.0 for row in rows)


def test_fixture_details_and_match_length() -> None:
    fixture = Fixture(
        fixture_id=FIXTURE_ID,
        team_id=TEAM_ID,
        opponent="Cork",
        fixture_date="2026-06-01",
        venue="Thurles",
        match_minutes=60,
    )
    report = build_match_report([make_event("Point", timestamp=900)], {}, fixture=fixture)

    assert report.fixture_id == FIXTURE_ID
    assert report.opponent == "Cork"
    assert report.match_seconds == 3600
    assert report.quarter_breakdown[1].points == 1


def test_conversion_rate_bounds() -> None:
    assert conversion_rate(0, 0, 0) == 0.0
    assert conversion_rate(3, 0, 0) == 1.0
    assert conversion_rate(0, 5, 0) == pytest.approx(1 / 3)
    for goals in range(4):
        for points in range(4):
            for wides in range(4):
                assert 0.0 <= conversion_rate(goals, points, wides) <= 1.0


def test_report_is_deterministic() -> None:
    events = [make_event("Point", player_id="p-1"), make_event("Goal", player_id="p-2")]
    assert build_match_report(events, {}) == build_match_report(list(events), {})


def test_fixture_stats_matches_team_totals() -> None:
    events = [make_event("Goal"), make_event("Wide"), make_event("Won Clean"), make_event("Lost")]
    stats = fixture_stats(events)
    assert (stats.goals, stats.wides) == (1, 1)
    assert stats.puckout_win_percentage == pytest.approx(0.5)
    assert stats.conversion_rate == pytest.approx(3 / 6)
