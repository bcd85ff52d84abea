"""Fold a fixture's event log into a match report.

Everything in this module is a pure function of its inputs: the same event
log and player directory always produce the same report, and nothing is read
from or written to storage.
"""

from __future__ import annotations

import math
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from match_tracker.directory import DEFAULT_MATCH_MINUTES, Fixture
from match_tracker.events import (
    EVENT_VOCABULARY_VERSION,
    PUCKOUT_WON_TYPES,
    SCORING_SUCCESS_TYPES,
    DisciplineType,
    EventCategory,
    MatchEvent,
    PossessionType,
    PuckoutType,
    ScoringType,
    Side,
)
from match_tracker.reports.schemas import (
    FixtureStats,
    MatchReport,
    PlayerContribution,
    QuarterBreakdown,
    RestartZone,
    ShotZone,
    TallySummary,
    TeamTotals,
)
from match_tracker.state import POINTS_PER_GOAL, total_score

QUARTERS = 4


def conversion_rate(goals: int, points: int, wides: int) -> float:
    """Points scored as a fraction of the maximum available from all attempts."""

    attempts = goals + points + wides
    if attempts == 0:
        return 0.0
    return (goals * POINTS_PER_GOAL + points) / (attempts * POINTS_PER_GOAL)


def _ratio(numerator: int, denominator: int) -> float:
    return numerator / denominator if denominator else 0.0


def quarter_for(timestamp: int, match_seconds: int) -> int:
    """Map a match-clock timestamp to a quarter index in ``[1, 4]``."""

    quarter_length = match_seconds / QUARTERS
    if quarter_length <= 0:
        return 1
    quarter = math.floor(timestamp / quarter_length) + 1
    return min(QUARTERS, max(1, quarter))


def effective_events(events: Iterable[MatchEvent]) -> List[MatchEvent]:
    """Sort by match clock and drop undone events together with their undo markers."""

    ordered = sorted(events, key=lambda event: event.timestamp)
    undone = {event.undoes for event in ordered if event.undoes}
    return [
        event
        for event in ordered
        if not event.is_compensation and event.client_id not in undone
    ]


@dataclass
class CategoryTally:
    goals: int = 0
    points: int = 0
    wides: int = 0
    frees_converted: int = 0
    frees_missed: int = 0
    puckouts_won: int = 0
    puckouts_lost: int = 0
    turnovers_won: int = 0
    turnovers_lost: int = 0
    yellow_cards: int = 0
    red_cards: int = 0
    substitutions: int = 0

    def add(self, event: MatchEvent) -> None:
        _ROUTES[event.event_category](self, event.event_type)

    def summary(self) -> Dict[str, object]:
        return {
            "goals": self.goals,
            "points": self.points,
            "wides": self.wides,
            "total_score": total_score(self.goals, self.points),
            "shots": self.goals + self.points + self.wides,
            "conversion_rate": conversion_rate(self.goals, self.points, self.wides),
            "frees_converted": self.frees_converted,
            "frees_missed": self.frees_missed,
            "free_conversion_rate": _ratio(
                self.frees_converted, self.frees_converted + self.frees_missed
            ),
            "puckouts_won": self.puckouts_won,
            "puckouts_lost": self.puckouts_lost,
            "puckout_win_percentage": _ratio(
                self.puckouts_won, self.puckouts_won + self.puckouts_lost
            ),
            "turnovers_won": self.turnovers_won,
            "turnovers_lost": self.turnovers_lost,
            "turnover_differential": self.turnovers_won - self.turnovers_lost,
            "yellow_cards": self.yellow_cards,
            "red_cards": self.red_cards,
            "substitutions": self.substitutions,
        }


def _tally_scoring(tally: CategoryTally, event_type: str) -> None:
    if event_type == ScoringType.GOAL.value:
        tally.goals += 1
    elif event_type == ScoringType.POINT.value:
        tally.points += 1
    elif event_type == ScoringType.WIDE.value:
        tally.wides += 1
    elif event_type == ScoringType.FREE_CONVERTED.value:
        tally.frees_converted += 1
    elif event_type == ScoringType.FREE_MISSED.value:
        tally.frees_missed += 1


def _tally_puckout(tally: CategoryTally, event_type: str) -> None:
    if event_type in PUCKOUT_WON_TYPES:
        tally.puckouts_won += 1
    elif event_type == PuckoutType.LOST.value:
        tally.puckouts_lost += 1


def _tally_possession(tally: CategoryTally, event_type: str) -> None:
    if event_type == PossessionType.TURNOVER_WON.value:
        tally.turnovers_won += 1
    elif event_type == PossessionType.TURNOVER_LOST.value:
        tally.turnovers_lost += 1


def _tally_discipline(tally: CategoryTally, event_type: str) -> None:
    if event_type == DisciplineType.YELLOW_CARD.value:
        tally.yellow_cards += 1
    elif event_type == DisciplineType.RED_CARD.value:
        tally.red_cards += 1


def _tally_substitution(tally: CategoryTally, event_type: str) -> None:
    tally.substitutions += 1


_ROUTES: Dict[EventCategory, Callable[[CategoryTally, str], None]] = {
    EventCategory.SCORING: _tally_scoring,
    EventCategory.PUCKOUTS: _tally_puckout,
    EventCategory.POSSESSION: _tally_possession,
    EventCategory.DISCIPLINE: _tally_discipline,
    EventCategory.SUBSTITUTIONS: _tally_substitution,
}


@dataclass
class _PlayerAccumulator:
    player_id: str
    tally: CategoryTally = field(default_factory=CategoryTally)
    contributions: int = 0


def _player_rows(
    events: Sequence[MatchEvent], players: Mapping[str, str]
) -> List[PlayerContribution]:
    accumulators: Dict[str, _PlayerAccumulator] = {}
    for event in events:
        if not event.player_id:
            continue
        accumulator = accumulators.get(event.player_id)
        if accumulator is None:
            accumulator = _PlayerAccumulator(player_id=event.player_id)
            accumulators[event.player_id] = accumulator
        accumulator.tally.add(event)
        accumulator.contributions += 1

    total = len(events)
    rows = [
        PlayerContribution(
            player_id=acc.player_id,
            player_name=players.get(acc.player_id),
            contributions=acc.contributions,
            goals=acc.tally.goals,
            points=acc.tally.points,
            wides=acc.tally.wides,
            frees_converted=acc.tally.frees_converted,
            puckouts_won=acc.tally.puckouts_won,
            puckouts_lost=acc.tally.puckouts_lost,
            turnovers_won=acc.tally.turnovers_won,
            turnovers_lost=acc.tally.turnovers_lost,
            yellow_cards=acc.tally.yellow_cards,
            red_cards=acc.tally.red_cards,
            efficiency=_ratio(acc.contributions, total),
        )
        for acc in accumulators.values()
    ]
    # sorted() is stable, so ties keep first-appearance order.
    return sorted(rows, key=lambda row: row.contributions, reverse=True)


def _heatmaps(events: Sequence[MatchEvent]):
    shots: Dict[str, ShotZone] = {}
    restarts: Dict[str, RestartZone] = {}
    zone_counts: Dict[str, Counter] = defaultdict(Counter)

    for event in events:
        if not event.zone:
            continue
        zone_counts[event.event_category.value][event.zone] += 1
        if event.event_category is EventCategory.SCORING:
            bucket = shots.setdefault(event.zone, ShotZone())
            bucket.attempts += 1
            if event.event_type in SCORING_SUCCESS_TYPES:
                bucket.successful += 1
        elif event.event_category is EventCategory.PUCKOUTS:
            bucket = restarts.setdefault(event.zone, RestartZone())
            bucket.attempts += 1
            if event.event_type in PUCKOUT_WON_TYPES:
                bucket.won += 1

    return shots, restarts, {category: dict(counts) for category, counts in zone_counts.items()}


def build_match_report(
    events: Iterable[MatchEvent],
    players: Optional[Mapping[str, str]] = None,
    *,
    fixture: Optional[Fixture] = None,
    match_seconds: Optional[int] = None,
) -> MatchReport:
    """Aggregate the full event log of one fixture into a :class:`MatchReport`."""

    directory: Mapping[str, str] = players or {}
    if match_seconds is None:
        match_seconds = fixture.match_seconds() if fixture else DEFAULT_MATCH_MINUTES * 60

    log = effective_events(events)

    team = CategoryTally()
    sides: Dict[Side, CategoryTally] = {Side.HOME: CategoryTally(), Side.AWAY: CategoryTally()}
    quarters: Dict[int, CategoryTally] = {index: CategoryTally() for index in range(1, QUARTERS + 1)}
    directions: Counter = Counter()

    for event in log:
        team.add(event)
        sides[event.side].add(event)
        quarters[quarter_for(event.timestamp, match_seconds)].add(event)
        if event.event_category is EventCategory.PUCKOUTS and event.outcome:
            directions[event.outcome] += 1

    shot_heatmap, restart_heatmap, zone_counts = _heatmaps(log)

    return MatchReport(
        fixture_id=fixture.fixture_id if fixture else None,
        opponent=fixture.opponent if fixture else None,
        date=fixture.fixture_date if fixture else None,
        venue=fixture.venue if fixture else None,
        status=fixture.status if fixture else None,
        match_seconds=match_seconds,
        vocabulary_version=EVENT_VOCABULARY_VERSION,
        event_count=len(log),
        team_totals=TeamTotals(**team.summary(), puckout_directions=dict(directions)),
        side_totals={side.value: TallySummary(**tally.summary()) for side, tally in sides.items()},
        player_stats=_player_rows(log, directory),
        quarter_breakdown=[
            QuarterBreakdown(quarter=index, **tally.summary()) for index, tally in quarters.items()
        ],
        shot_heatmap=shot_heatmap,
        restart_heatmap=restart_heatmap,
        zone_counts=zone_counts,
    )


def fixture_stats(events: Iterable[MatchEvent]) -> FixtureStats:
    tally = CategoryTally()
    for event in effective_events(events):
        tally.add(event)
    summary = tally.summary()
    return FixtureStats(**{name: summary[name] for name in FixtureStats.model_fields})


__all__ = [
    "CategoryTally",
    "QUARTERS",
    "build_match_report",
    "conversion_rate",
    "effective_events",
    "fixture_stats",
    "quarter_for",
]
