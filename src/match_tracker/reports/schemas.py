"""Report payloads derived from the event log; nothing here is persisted."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class TallySummary(BaseModel):
    """Category tallies plus the metrics derived from them.

    Rates are fractions in ``[0, 1]``.
    """

    goals: int = 0
    points: int = 0
    wides: int = 0
    total_score: int = 0
    shots: int = 0
    conversion_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    frees_converted: int = 0
    frees_missed: int = 0
    free_conversion_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    puckouts_won: int = 0
    puckouts_lost: int = 0
    puckout_win_percentage: float = Field(default=0.0, ge=0.0, le=1.0)
    turnovers_won: int = 0
    turnovers_lost: int = 0
    turnover_differential: int = 0
    yellow_cards: int = 0
    red_cards: int = 0
    substitutions: int = 0


class TeamTotals(TallySummary):
    puckout_directions: Dict[str, int] = Field(default_factory=dict)


class QuarterBreakdown(TallySummary):
    quarter: int = Field(..., ge=1, le=4)


class PlayerContribution(BaseModel):
    player_id: str
    player_name: Optional[str] = None
    contributions: int = 0
    goals: int = 0
    points: int = 0
    wides: int = 0
    frees_converted: int = 0
    puckouts_won: int = 0
    puckouts_lost: int = 0
    turnovers_won: int = 0
    turnovers_lost: int = 0
    yellow_cards: int = 0
    red_cards: int = 0
    efficiency: float = Field(default=0.0, ge=0.0, le=1.0)


class ShotZone(BaseModel):
    attempts: int = 0
    successful: int = 0


class RestartZone(BaseModel):
    attempts: int = 0
    won: int = 0


class MatchReport(BaseModel):
    fixture_id: Optional[str] = None
    opponent: Optional[str] = None
    date: Optional[str] = None
    venue: Optional[str] = None
    status: Optional[str] = None
    match_seconds: int
    vocabulary_version: int = Field(..., description="Event vocabulary the tallies are routed over.")
    event_count: int = 0
    team_totals: TeamTotals
    side_totals: Dict[str, TallySummary] = Field(default_factory=dict)
    player_stats: List[PlayerContribution] = Field(default_factory=list)
    quarter_breakdown: List[QuarterBreakdown] = Field(default_factory=list)
    shot_heatmap: Dict[str, ShotZone] = Field(default_factory=dict)
    restart_heatmap: Dict[str, RestartZone] = Field(default_factory=dict)
    zone_counts: Dict[str, Dict[str, int]] = Field(default_factory=dict)


class FixtureStats(BaseModel):
    """The compact per-fixture figures used by benchmarks and season trends."""

    goals: int = 0
    points: int = 0
    wides: int = 0
    conversion_rate: float = 0.0
    puckout_win_percentage: float = 0.0
    turnover_differential: int = 0


class CompetitionAverages(BaseModel):
    avg_goals: float = 0.0
    avg_points: float = 0.0
    avg_conversion_rate: float = 0.0
    avg_puckout_win_percentage: float = 0.0
    fixture_count: int = 0


class BenchmarkComparisons(BaseModel):
    goals_variance: float = 0.0
    points_variance: float = 0.0
    conversion_variance: float = 0.0
    puckout_variance: float = 0.0


class BenchmarkFlag(BaseModel):
    type: str
    message: str
    severity: str


class BenchmarkReport(BaseModel):
    fixture_id: str
    fixture_stats: FixtureStats
    season_averages: CompetitionAverages
    comparisons: BenchmarkComparisons
    flags: List[BenchmarkFlag] = Field(default_factory=list)


class SeasonTrend(FixtureStats):
    fixture_id: str
    date: Optional[str] = None
    opponent: Optional[str] = None
    competition_type: Optional[str] = None


class SeasonDashboard(BaseModel):
    team_id: str
    season_id: Optional[str] = None
    trends: List[SeasonTrend] = Field(default_factory=list)
    competition_comparison: Dict[str, CompetitionAverages] = Field(default_factory=dict)


__all__ = [
    "BenchmarkComparisons",
    "BenchmarkFlag",
    "BenchmarkReport",
    "CompetitionAverages",
    "FixtureStats",
    "MatchReport",
    "PlayerContribution",
    "QuarterBreakdown",
    "RestartZone",
    "SeasonDashboard",
    "SeasonTrend",
    "ShotZone",
    "TallySummary",
    "TeamTotals",
]
