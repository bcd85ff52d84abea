"""Query helpers for the per-fixture match state row."""

from __future__ import annotations

from typing import Optional

import sqlite3

from match_tracker.api._row_utils import as_int, format_timestamp, parse_timestamp, row_value, utcnow
from match_tracker.events import Half
from match_tracker.state import MatchState, MatchStatus


def _row_to_state(row: sqlite3.Row) -> MatchState:
    return MatchState(
        fixture_id=row_value(row, "fixture_id"),
        status=MatchStatus(row_value(row, "status")),
        home_goals=as_int(row_value(row, "home_goals")) or 0,
        home_points=as_int(row_value(row, "home_points")) or 0,
        away_goals=as_int(row_value(row, "away_goals")) or 0,
        away_points=as_int(row_value(row, "away_points")) or 0,
        match_clock=as_int(row_value(row, "match_clock")) or 0,
        half=Half(row_value(row, "half") or Half.H1.value),
        started_at=parse_timestamp(row_value(row, "started_at")),
        completed_at=parse_timestamp(row_value(row, "completed_at")),
        version=as_int(row_value(row, "version")) or 0,
    )


def load_state(connection: sqlite3.Connection, fixture_id: str) -> Optional[MatchState]:
    row = connection.execute(
        "SELECT * FROM match_state WHERE fixture_id = ?", (fixture_id,)
    ).fetchone()
    return _row_to_state(row) if row is not None else None


def load_or_default(connection: sqlite3.Connection, fixture_id: str) -> MatchState:
    return load_state(connection, fixture_id) or MatchState(fixture_id=fixture_id)


def save_state(connection: sqlite3.Connection, state: MatchState) -> MatchState:
    """Persist ``state`` with its version bumped by one and return the stored copy."""

    stored = state.model_copy(update={"version": state.version + 1})
    connection.execute(
        """
        INSERT INTO match_state (
            fixture_id, status, home_goals, home_points, away_goals, away_points,
            match_clock, half, started_at, completed_at, version, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(fixture_id) DO UPDATE SET
            status = excluded.status,
            home_goals = excluded.home_goals,
            home_points = excluded.home_points,
            away_goals = excluded.away_goals,
            away_points = excluded.away_points,
            match_clock = excluded.match_clock,
            half = excluded.half,
            started_at = excluded.started_at,
            completed_at = excluded.completed_at,
            version = excluded.version,
            updated_at = excluded.updated_at
        """,
        (
            stored.fixture_id,
            stored.status.value,
            stored.home_goals,
            stored.home_points,
            stored.away_goals,
            stored.away_points,
            stored.match_clock,
            stored.half.value,
            format_timestamp(stored.started_at),
            format_timestamp(stored.completed_at),
            stored.version,
            format_timestamp(utcnow()),
        ),
    )
    return stored


__all__ = ["load_or_default", "load_state", "save_state"]
