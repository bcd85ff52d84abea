"""Query helpers for fixtures and the team player directory."""

from __future__ import annotations

from typing import List, Optional

import sqlite3

from match_tracker.api._row_utils import as_int, row_value
from match_tracker.directory import Fixture, Player


def _row_to_fixture(row: sqlite3.Row) -> Fixture:
    return Fixture(
        fixture_id=row_value(row, "fixture_id"),
        team_id=row_value(row, "team_id"),
        opponent=row_value(row, "opponent"),
        fixture_date=row_value(row, "fixture_date"),
        venue=row_value(row, "venue"),
        status=row_value(row, "status") or "SCHEDULED",
        competition_type=row_value(row, "competition_type"),
        season_id=row_value(row, "season_id"),
        match_minutes=as_int(row_value(row, "match_minutes")),
    )


def insert_fixture(connection: sqlite3.Connection, fixture: Fixture) -> Fixture:
    connection.execute(
        """
        INSERT INTO fixtures (
            fixture_id, team_id, opponent, fixture_date, venue, status,
            competition_type, season_id, match_minutes
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            fixture.fixture_id,
            fixture.team_id,
            fixture.opponent,
            fixture.fixture_date,
            fixture.venue,
            fixture.status,
            fixture.competition_type,
            fixture.season_id,
            fixture.match_minutes,
        ),
    )
    return fixture


def get_fixture(connection: sqlite3.Connection, fixture_id: str) -> Optional[Fixture]:
    row = connection.execute(
        "SELECT * FROM fixtures WHERE fixture_id = ?", (fixture_id,)
    ).fetchone()
    return _row_to_fixture(row) if row is not None else None


def list_team_fixtures(connection: sqlite3.Connection, team_id: str) -> List[Fixture]:
    rows = connection.execute(
        """
        SELECT * FROM fixtures
        WHERE team_id = ?
        ORDER BY fixture_date IS NULL, fixture_date, fixture_id
        """,
        (team_id,),
    ).fetchall()
    return [_row_to_fixture(row) for row in rows]


def insert_player(connection: sqlite3.Connection, player: Player) -> Player:
    connection.execute(
        "INSERT INTO players (player_id, team_id, name, jersey_no) VALUES (?, ?, ?, ?)",
        (player.player_id, player.team_id, player.name, player.jersey_no),
    )
    return player


def list_team_players(connection: sqlite3.Connection, team_id: str) -> List[Player]:
    rows = connection.execute(
        """
        SELECT player_id, team_id, name, jersey_no
        FROM players
        WHERE team_id = ?
        ORDER BY COALESCE(jersey_no, 999), name
        """,
        (team_id,),
    ).fetchall()
    return [
        Player(
            player_id=row_value(row, "player_id"),
            team_id=row_value(row, "team_id"),
            name=row_value(row, "name"),
            jersey_no=as_int(row_value(row, "jersey_no")),
        )
        for row in rows
    ]


__all__ = [
    "get_fixture",
    "insert_fixture",
    "insert_player",
    "list_team_fixtures",
    "list_team_players",
]
