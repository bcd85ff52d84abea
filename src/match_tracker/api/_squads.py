"""Query helpers for match squads."""

from __future__ import annotations

import json
from typing import Dict, Optional

import sqlite3

from match_tracker.api._row_utils import format_timestamp, int_to_bool, json_list, row_value, utcnow
from match_tracker.events import Side
from match_tracker.squads import LineupSlot, MatchSquad, SubEvent


def _row_to_squad(row: sqlite3.Row) -> MatchSquad:
    return MatchSquad(
        fixture_id=row_value(row, "fixture_id"),
        side=Side(row_value(row, "side")),
        starting_slots=[LineupSlot(**slot) for slot in json_list(row_value(row, "starting_slots"))],
        bench=[LineupSlot(**slot) for slot in json_list(row_value(row, "bench"))],
        subs_log=[SubEvent(**entry) for entry in json_list(row_value(row, "subs_log"))],
        locked=int_to_bool(row_value(row, "locked"), default=False) or False,
    )


def get_squads(connection: sqlite3.Connection, fixture_id: str) -> Dict[Side, MatchSquad]:
    rows = connection.execute(
        "SELECT * FROM match_squads WHERE fixture_id = ? ORDER BY side DESC", (fixture_id,)
    ).fetchall()
    squads = [_row_to_squad(row) for row in rows]
    return {squad.side: squad for squad in squads}


def get_squad(connection: sqlite3.Connection, fixture_id: str, side: Side) -> Optional[MatchSquad]:
    row = connection.execute(
        "SELECT * FROM match_squads WHERE fixture_id = ? AND side = ?",
        (fixture_id, side.value),
    ).fetchone()
    return _row_to_squad(row) if row is not None else None


def save_squad(connection: sqlite3.Connection, squad: MatchSquad) -> MatchSquad:
    """Insert or replace the squad for ``(fixture_id, side)``."""

    connection.execute(
        """
        INSERT INTO match_squads (
            fixture_id, side, starting_slots, bench, subs_log, locked, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(fixture_id, side) DO UPDATE SET
            starting_slots = excluded.starting_slots,
            bench = excluded.bench,
            subs_log = excluded.subs_log,
            locked = excluded.locked,
            updated_at = excluded.updated_at
        """,
        (
            squad.fixture_id,
            squad.side.value,
            json.dumps([slot.model_dump() for slot in squad.starting_slots]),
            json.dumps([slot.model_dump() for slot in squad.bench]),
            json.dumps([entry.model_dump() for entry in squad.subs_log]),
            int(squad.locked),
            format_timestamp(utcnow()),
        ),
    )
    return squad


def lock_squads(connection: sqlite3.Connection, fixture_id: str) -> None:
    connection.execute(
        "UPDATE match_squads SET locked = 1, updated_at = ? WHERE fixture_id = ?",
        (format_timestamp(utcnow()), fixture_id),
    )


__all__ = ["get_squad", "get_squads", "lock_squads", "save_squad"]
