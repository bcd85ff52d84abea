"""SQLite storage for fixtures, squads, match state, and the canonical event log."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

PathLike = Union[str, Path]

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS fixtures (
        fixture_id TEXT PRIMARY KEY,
        team_id TEXT NOT NULL,
        opponent TEXT,
        fixture_date TEXT,
        venue TEXT,
        status TEXT NOT NULL DEFAULT 'SCHEDULED',
        competition_type TEXT,
        season_id TEXT,
        match_minutes INTEGER
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_fixtures_team ON fixtures(team_id);",
    """
    CREATE TABLE IF NOT EXISTS players (
        player_id TEXT PRIMARY KEY,
        team_id TEXT NOT NULL,
        name TEXT NOT NULL,
        jersey_no INTEGER
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_players_team ON players(team_id);",
    """
    CREATE TABLE IF NOT EXISTS match_squads (
        fixture_id TEXT NOT NULL REFERENCES fixtures(fixture_id) ON DELETE CASCADE,
        side TEXT NOT NULL,
        starting_slots TEXT NOT NULL,
        bench TEXT NOT NULL,
        subs_log TEXT NOT NULL DEFAULT '[]',
        locked INTEGER NOT NULL DEFAULT 0,
        updated_at TEXT NOT NULL,
        PRIMARY KEY (fixture_id, side)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS match_state (
        fixture_id TEXT PRIMARY KEY REFERENCES fixtures(fixture_id) ON DELETE CASCADE,
        status TEXT NOT NULL DEFAULT 'NOT_STARTED',
        home_goals INTEGER NOT NULL DEFAULT 0 CHECK (home_goals >= 0),
        home_points INTEGER NOT NULL DEFAULT 0 CHECK (home_points >= 0),
        away_goals INTEGER NOT NULL DEFAULT 0 CHECK (away_goals >= 0),
        away_points INTEGER NOT NULL DEFAULT 0 CHECK (away_points >= 0),
        match_clock INTEGER NOT NULL DEFAULT 0,
        half TEXT NOT NULL DEFAULT 'H1',
        started_at TEXT,
        completed_at TEXT,
        version INTEGER NOT NULL DEFAULT 0,
        updated_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS match_events (
        event_id TEXT PRIMARY KEY,
        fixture_id TEXT NOT NULL REFERENCES fixtures(fixture_id) ON DELETE CASCADE,
        client_id TEXT NOT NULL,
        player_id TEXT,
        side TEXT NOT NULL,
        timestamp INTEGER NOT NULL,
        event_type TEXT NOT NULL,
        event_category TEXT NOT NULL,
        half TEXT NOT NULL,
        outcome TEXT,
        zone TEXT,
        notes TEXT,
        undoes TEXT,
        created_at TEXT NOT NULL
    );
    """,
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_events_fixture_client ON match_events(fixture_id, client_id);",
    "CREATE INDEX IF NOT EXISTS idx_events_fixture_time ON match_events(fixture_id, timestamp);",
)


def connect(db_path: PathLike) -> sqlite3.Connection:
    connection = sqlite3.connect(str(db_path))
    connection.row_factory = sqlite3.Row
    connection.execute("PRAGMA foreign_keys = ON")
    return connection


def initialise_database(db_path: PathLike) -> None:
    """Create the schema if it does not exist yet."""

    path = Path(db_path)
    if str(db_path) != ":memory:":
        path.parent.mkdir(parents=True, exist_ok=True)
    with get_connection(db_path) as connection:
        for statement in SCHEMA_STATEMENTS:
            connection.execute(statement)


@contextmanager
def get_connection(db_path: PathLike) -> Iterator[sqlite3.Connection]:
    """Yield a connection that commits on success and rolls back on error."""

    connection = connect(db_path)
    try:
        yield connection
        connection.commit()
    except BaseException:
        connection.rollback()
        raise
    finally:
        connection.close()


__all__ = ["SCHEMA_STATEMENTS", "connect", "get_connection", "initialise_database"]
