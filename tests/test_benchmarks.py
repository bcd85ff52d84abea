from __future__ import annotations

import pytest

from conftest import TEAM_ID
from match_tracker.directory import Fixture
from match_tracker.reports.benchmarks import (
    build_benchmarks,
    build_season_dashboard,
)
from match_tracker.reports.schemas import FixtureStats


def stats(**values) -> FixtureStats:
    return FixtureStats(**values)


def fixture(fixture_id: str, date, competition: str) -> Fixture:
    return Fixture(
        fixture_id=fixture_id,
        team_id=TEAM_ID,
        fixture_date=date,
        opponent=f"Opponent {fixture_id}",
        competition_type=competition,
        season_id="2026",
    )


def test_averages_and_variances() -> None:
    others = [
        stats(goals=2, points=14, conversion_rate=0.5, puckout_win_percentage=0.6),
        stats(goals=0, points=18, conversion_rate=0.7, puckout_win_percentage=0.6),
    ]
    report = build_benchmarks(
        "f-1",
        stats(goals=3, points=15, conversion_rate=0.65, puckout_win_percentage=0.62),
        others,
    )

    averages = report.season_averages
    assert averages.fixture_count == 2
    assert averages.avg_goals == pytest.approx(1.0)
    assert averages.avg_points == pytest.approx(16.0)
    assert averages.avg_conversion_rate == pytest.approx(0.6)
    assert report.comparisons.goals_variance == pytest.approx(2.0)
    assert report.comparisons.points_variance == pytest.approx(-1.0)
    assert report.comparisons.conversion_variance == pytest.approx(0.05)
    assert report.comparisons.puckout_variance == pytest.approx(0.02)
    assert report.flags == []


def test_puckout_swing_flags() -> None:
    others = [stats(puckout_win_percentage=0.5, goals=2, points=15)]

    better = build_benchmarks("f-1", stats(puckout_win_percentage=0.75), others)
    assert [(flag.type, flag.severity) for flag in better.flags] == [("puckout_win_percentage", "positive")]
    assert "increased by 25.0 points" in better.flags[0].message

    worse = build_benchmarks("f-1", stats(puckout_win_percentage=0.3), others)
    assert [(flag.type, flag.severity) for flag in worse.flags] == [("puckout_win_percentage", "warning")]
    assert "decreased" in worse.flags[0].message


def test_wide_count_flag() -> None:
    others = [stats(goals=1, points=3)]
    report = build_benchmarks("f-1", stats(wides=7), others)
    wide_flags = [flag for flag in report.flags if flag.type == "wide_count"]
    assert len(wide_flags) == 1
    assert wide_flags[0].severity == "warning"
    assert "3.0" in wide_flags[0].message

    calm = build_benchmarks("f-1", stats(wides=6), others)
    assert not [flag for flag in calm.flags if flag.type == "wide_count"]


def test_no_other_fixtures_gives_zero_averages() -> None:
    report = build_benchmarks("f-1", stats(goals=1, points=10), [])
    assert report.season_averages.fixture_count == 0
    assert report.season_averages.avg_points == 0.0
    assert report.comparisons.points_variance == pytest.approx(10.0)


def test_season_dashboard_orders_trends_and_splits_competitions() -> None:
    rows = [
        (fixture("a", "2026-03-01", "League"), stats(goals=1, points=10, conversion_rate=0.5)),
        (fixture("b", "2026-06-15", "Championship"), stats(goals=2, points=20, conversion_rate=0.7)),
        (fixture("c", "2026-04-01", "League"), stats(goals=3, points=12, conversion_rate=0.6)),
        (fixture("d", None, "Challenge"), stats()),
    ]
    dashboard = build_season_dashboard(TEAM_ID, "2026", rows)

    assert [trend.fixture_id for trend in dashboard.trends] == ["b", "c", "a", "d"]
    assert dashboard.trends[0].opponent == "Opponent b"
    assert dashboard.trends[-1].date is None

    league = dashboard.competition_comparison["League"]
    assert league.fixture_count == 2
    assert league.avg_goals == pytest.approx(2.0)
    assert league.avg_points == pytest.approx(11.0)
    assert league.avg_conversion_rate == pytest.approx(0.55)

    championship = dashboard.competition_comparison["Championship"]
    assert championship.fixture_count == 1
    assert championship.avg_points == pytest.approx(20.0)


def test_empty_season_dashboard() -> None:
    dashboard = build_season_dashboard(TEAM_ID, None, [])
    assert dashboard.trends == []
    assert dashboard.competition_comparison["League"].fixture_count == 0
