"""Match state aggregate and the transitions allowed on it."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Optional

from pydantic import BaseModel, Field

from match_tracker.clock import ClockTicker, TickerFactory
from match_tracker.errors import (
    InvalidTransitionError,
    MatchCompletedError,
    StartPreconditionError,
)
from match_tracker.events import Half, MatchEvent, Side
from match_tracker.squads import MatchSquad, start_checklist

logger = logging.getLogger(__name__)

POINTS_PER_GOAL = 3

SCORE_FIELDS = ("home_goals", "home_points", "away_goals", "away_points")


class MatchStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"


class MatchState(BaseModel):
    """Live score, clock, and lifecycle status for one fixture."""

    fixture_id: str
    status: MatchStatus = MatchStatus.NOT_STARTED
    home_goals: int = Field(default=0, ge=0)
    home_points: int = Field(default=0, ge=0)
    away_goals: int = Field(default=0, ge=0)
    away_points: int = Field(default=0, ge=0)
    match_clock: int = Field(default=0, ge=0, description="Elapsed match seconds.")
    half: Half = Half.H1
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    version: int = Field(default=0, ge=0, description="Incremented on every server-side write.")

    @property
    def home_score(self) -> int:
        return total_score(self.home_goals, self.home_points)

    @property
    def away_score(self) -> int:
        return total_score(self.away_goals, self.away_points)

    def score(self, side: Side) -> int:
        return self.home_score if side is Side.HOME else self.away_score


def total_score(goals: int, points: int) -> int:
    return goals * POINTS_PER_GOAL + points


def format_score(goals: int, points: int) -> str:
    """Render a score the way it is read out in the ground, e.g. ``1-04 (7)``."""

    return f"{goals}-{points:02d} ({total_score(goals, points)})"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


_ALLOWED: Dict[MatchStatus, frozenset] = {
    MatchStatus.NOT_STARTED: frozenset({MatchStatus.IN_PROGRESS}),
    MatchStatus.IN_PROGRESS: frozenset({MatchStatus.PAUSED, MatchStatus.COMPLETED}),
    MatchStatus.PAUSED: frozenset({MatchStatus.IN_PROGRESS, MatchStatus.COMPLETED}),
    MatchStatus.COMPLETED: frozenset(),
}


class MatchStateMachine:
    """Owns a :class:`MatchState` and mutates it only through defined transitions.

    When a ``ticker_factory`` is supplied the machine also owns the clock
    ticker: it runs exactly while the status is ``IN_PROGRESS`` and is stopped
    on every other transition and on :meth:`close`.
    """

    def __init__(
        self,
        state: MatchState,
        *,
        ticker_factory: Optional[TickerFactory] = None,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._state = state.model_copy()
        self._ticker_factory = ticker_factory
        self._ticker: Optional[ClockTicker] = None
        self._now = now
        self._lock = threading.RLock()

    @property
    def state(self) -> MatchState:
        with self._lock:
            return self._state.model_copy()

    @property
    def status(self) -> MatchStatus:
        return self._state.status

    @property
    def clock_running(self) -> bool:
        return self._ticker is not None and self._ticker.running

    # -- lifecycle -----------------------------------------------------------------

    def start(self, home_squad: Optional[MatchSquad], away_squad: Optional[MatchSquad]) -> MatchState:
        with self._lock:
            self._require(MatchStatus.IN_PROGRESS)
            checklist = start_checklist(home_squad, away_squad)
            if checklist:
                raise StartPreconditionError(checklist)
            self._state.status = MatchStatus.IN_PROGRESS
            self._state.started_at = self._now()
            self._state.match_clock = 0
            self._state.half = Half.H1
            self._start_ticker()
            logger.info("match %s started", self._state.fixture_id)
            return self._state.model_copy()

    def pause(self) -> MatchState:
        with self._lock:
            self._require(MatchStatus.PAUSED)
            self._state.status = MatchStatus.PAUSED
            self._stop_ticker()
            return self._state.model_copy()

    def resume(self) -> MatchState:
        with self._lock:
            self._guard_completed()
            if self._state.status is not MatchStatus.PAUSED:
                raise InvalidTransitionError(
                    f"Cannot resume a match that is {self._state.status.value}"
                )
            self._state.status = MatchStatus.IN_PROGRESS
            self._start_ticker()
            return self._state.model_copy()

    def complete(self) -> MatchState:
        with self._lock:
            self._require(MatchStatus.COMPLETED)
            self._state.status = MatchStatus.COMPLETED
            self._state.completed_at = self._now()
            self._stop_ticker()
            logger.info(
                "match %s completed %s to %s",
                self._state.fixture_id,
                format_score(self._state.home_goals, self._state.home_points),
                format_score(self._state.away_goals, self._state.away_points),
            )
            return self._state.model_copy()

    def transition_to(self, status: MatchStatus) -> MatchState:
        """Move to ``status`` through pause/resume/complete; same status is a no-op."""

        with self._lock:
            current = self._state.status
            if status is current:
                return self._state.model_copy()
            if status is MatchStatus.PAUSED:
                return self.pause()
            if status is MatchStatus.COMPLETED:
                return self.complete()
            if status is MatchStatus.IN_PROGRESS and current is MatchStatus.PAUSED:
                return self.resume()
            if status is MatchStatus.IN_PROGRESS:
                raise InvalidTransitionError("A match must be started before it can run")
            raise InvalidTransitionError(f"Cannot move a match from {current.value} to {status.value}")

    # -- clock and period ----------------------------------------------------------

    def tick(self) -> int:
        """Advance the clock by one second while the match is running."""

        with self._lock:
            if self._state.status is MatchStatus.IN_PROGRESS:
                self._state.match_clock += 1
            return self._state.match_clock

    def advance_clock(self, match_clock: int) -> int:
        """Merge an externally reported clock value; the clock never moves backwards."""

        with self._lock:
            self._guard_completed()
            if match_clock < 0:
                raise ValueError("match_clock must be non-negative")
            self._state.match_clock = max(self._state.match_clock, match_clock)
            return self._state.match_clock

    def set_half(self, half: Half) -> MatchState:
        with self._lock:
            self._guard_completed()
            self._state.half = Half(half)
            return self._state.model_copy()

    # -- score ---------------------------------------------------------------------

    def apply_event(self, event: MatchEvent, *, reconcile: bool = False) -> MatchState:
        """Apply the score effect of ``event``; non-scoring events leave the score alone.

        ``reconcile`` is used by the server when it confirms events captured
        before the match was completed.
        """

        with self._lock:
            if not reconcile:
                self._guard_completed()
            if event.is_compensation:
                raise ValueError("Compensating events are applied with revert_event on their target")
            field = event.score_field
            if field is not None:
                setattr(self._state, field, getattr(self._state, field) + 1)
            return self._state.model_copy()

    def revert_event(self, event: MatchEvent, *, reconcile: bool = False) -> MatchState:
        """Reverse the score effect of ``event``, clamping counters at zero."""

        with self._lock:
            if not reconcile:
                self._guard_completed()
            field = event.score_field
            if field is not None:
                setattr(self._state, field, max(0, getattr(self._state, field) - 1))
            return self._state.model_copy()

    def set_scores(self, **scores: int) -> MatchState:
        """Overwrite score counters directly (server partial update path)."""

        with self._lock:
            self._guard_completed()
            for field, value in scores.items():
                if field not in SCORE_FIELDS:
                    raise KeyError(field)
                if value < 0:
                    raise ValueError(f"{field} must be non-negative")
                setattr(self._state, field, value)
            return self._state.model_copy()

    # -- teardown ------------------------------------------------------------------

    def close(self) -> None:
        with self._lock:
            self._stop_ticker()

    def __enter__(self) -> "MatchStateMachine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -- helpers -------------------------------------------------------------------

    def _require(self, target: MatchStatus) -> None:
        current = self._state.status
        if current is MatchStatus.COMPLETED:
            raise MatchCompletedError(self._state.fixture_id)
        if target not in _ALLOWED[current]:
            raise InvalidTransitionError(f"Cannot move a match from {current.value} to {target.value}")

    def _guard_completed(self) -> None:
        if self._state.status is MatchStatus.COMPLETED:
            raise MatchCompletedError(self._state.fixture_id)

    def _start_ticker(self) -> None:
        if self._ticker_factory is None:
            return
        if self._ticker is None:
            self._ticker = self._ticker_factory(self.tick)
        self._ticker.start()

    def _stop_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.stop(wait=False)
            self._ticker = None


__all__ = [
    "MatchState",
    "MatchStateMachine",
    "MatchStatus",
    "POINTS_PER_GOAL",
    "SCORE_FIELDS",
    "format_score",
    "total_score",
]
