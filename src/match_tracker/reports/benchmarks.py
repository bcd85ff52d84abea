"""Compare a fixture against its season and build the team season dashboard."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from match_tracker.directory import Fixture
from match_tracker.reports.schemas import (
    BenchmarkComparisons,
    BenchmarkFlag,
    BenchmarkReport,
    CompetitionAverages,
    FixtureStats,
    SeasonDashboard,
    SeasonTrend,
)

logger = logging.getLogger(__name__)

PUCKOUT_SWING_THRESHOLD = 0.10
WIDE_SPIKE_THRESHOLD = 2
DASHBOARD_COMPETITIONS = ("League", "Championship")

_STAT_COLUMNS = list(FixtureStats.model_fields)


def _stats_frame(stats: Iterable[FixtureStats]) -> pd.DataFrame:
    return pd.DataFrame([item.model_dump() for item in stats], columns=_STAT_COLUMNS)


def competition_averages(frame: pd.DataFrame) -> CompetitionAverages:
    """Mean goals, points, and rates over the rows of ``frame``; zeros when empty."""

    if frame.empty:
        return CompetitionAverages()
    means = frame[["goals", "points", "conversion_rate", "puckout_win_percentage"]].mean()
    return CompetitionAverages(
        avg_goals=float(means["goals"]),
        avg_points=float(means["points"]),
        avg_conversion_rate=float(means["conversion_rate"]),
        avg_puckout_win_percentage=float(means["puckout_win_percentage"]),
        fixture_count=int(len(frame)),
    )


def _flags(stats: FixtureStats, averages: CompetitionAverages) -> List[BenchmarkFlag]:
    flags: List[BenchmarkFlag] = []

    puckout_change = stats.puckout_win_percentage - averages.avg_puckout_win_percentage
    if abs(puckout_change) > PUCKOUT_SWING_THRESHOLD:
        direction = "increased" if puckout_change > 0 else "decreased"
        flags.append(
            BenchmarkFlag(
                type="puckout_win_percentage",
                message=f"Puckout win % {direction} by {abs(puckout_change) * 100:.1f} points",
                severity="positive" if puckout_change > 0 else "warning",
            )
        )

    wide_change = stats.wides - (averages.avg_goals + averages.avg_points)
    if wide_change > WIDE_SPIKE_THRESHOLD:
        flags.append(
            BenchmarkFlag(
                type="wide_count",
                message=f"Wide count spiked by {wide_change:.1f} above average",
                severity="warning",
            )
        )

    return flags


def build_benchmarks(
    fixture_id: str,
    stats: FixtureStats,
    others: Sequence[FixtureStats],
) -> BenchmarkReport:
    """Benchmark ``stats`` against ``others``.

    ``others`` holds the stats of the team's other fixtures in the same season
    and competition type; the fixture itself must not be included.
    """

    averages = competition_averages(_stats_frame(others))
    comparisons = BenchmarkComparisons(
        goals_variance=stats.goals - averages.avg_goals,
        points_variance=stats.points - averages.avg_points,
        conversion_variance=stats.conversion_rate - averages.avg_conversion_rate,
        puckout_variance=stats.puckout_win_percentage - averages.avg_puckout_win_percentage,
    )
    flags = _flags(stats, averages)
    logger.info("fixture %s benchmarked against %s fixtures, %s flags", fixture_id, len(others), len(flags))
    return BenchmarkReport(
        fixture_id=fixture_id,
        fixture_stats=stats,
        season_averages=averages,
        comparisons=comparisons,
        flags=flags,
    )


def build_season_dashboard(
    team_id: str,
    season_id: Optional[str],
    fixtures: Sequence[Tuple[Fixture, FixtureStats]],
) -> SeasonDashboard:
    """Per-fixture trends, newest first, plus League and Championship averages."""

    records = [
        {
            "fixture_id": fixture.fixture_id,
            "date": fixture.fixture_date,
            "opponent": fixture.opponent,
            "competition_type": fixture.competition_type,
            **stats.model_dump(),
        }
        for fixture, stats in fixtures
    ]
    frame = pd.DataFrame(
        records,
        columns=["fixture_id", "date", "opponent", "competition_type", *_STAT_COLUMNS],
    )
    frame = frame.sort_values("date", ascending=False, na_position="last", kind="stable")

    trends = [SeasonTrend(**records[position]) for position in frame.index.tolist()]
    comparison = {
        competition: competition_averages(frame[frame["competition_type"] == competition])
        for competition in DASHBOARD_COMPETITIONS
    }
    return SeasonDashboard(
        team_id=team_id,
        season_id=season_id,
        trends=trends,
        competition_comparison=comparison,
    )


__all__ = [
    "DASHBOARD_COMPETITIONS",
    "PUCKOUT_SWING_THRESHOLD",
    "WIDE_SPIKE_THRESHOLD",
    "build_benchmarks",
    "build_season_dashboard",
    "competition_averages",
]
