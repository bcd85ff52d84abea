"""Query helpers for the canonical match event log."""

from __future__ import annotations

import uuid
from typing import List, Optional

import sqlite3

from match_tracker.api._row_utils import as_int, format_timestamp, row_value, utcnow
from match_tracker.api.schemas import EventUpdate, StoredMatchEvent
from match_tracker.events import MatchEvent


def _row_to_event(row: sqlite3.Row) -> StoredMatchEvent:
    return StoredMatchEvent(
        event_id=row_value(row, "event_id"),
        created_at=row_value(row, "created_at"),
        fixture_id=row_value(row, "fixture_id"),
        client_id=row_value(row, "client_id"),
        player_id=row_value(row, "player_id"),
        side=row_value(row, "side"),
        timestamp=as_int(row_value(row, "timestamp")) or 0,
        event_type=row_value(row, "event_type"),
        event_category=row_value(row, "event_category"),
        half=row_value(row, "half"),
        outcome=row_value(row, "outcome"),
        zone=row_value(row, "zone"),
        notes=row_value(row, "notes"),
        undoes=row_value(row, "undoes"),
    )


def list_events(connection: sqlite3.Connection, fixture_id: str) -> List[StoredMatchEvent]:
    rows = connection.execute(
        """
        SELECT * FROM match_events
        WHERE fixture_id = ?
        ORDER BY timestamp, created_at, rowid
        """,
        (fixture_id,),
    ).fetchall()
    return [_row_to_event(row) for row in rows]


def find_by_client_id(
    connection: sqlite3.Connection, fixture_id: str, client_id: str
) -> Optional[StoredMatchEvent]:
    row = connection.execute(
        "SELECT * FROM match_events WHERE fixture_id = ? AND client_id = ?",
        (fixture_id, client_id),
    ).fetchone()
    return _row_to_event(row) if row is not None else None


def find_compensation(
    connection: sqlite3.Connection, fixture_id: str, client_id: str
) -> Optional[StoredMatchEvent]:
    """Return the first stored event that undoes ``client_id``, if any."""

    row = connection.execute(
        """
        SELECT * FROM match_events
        WHERE fixture_id = ? AND undoes = ?
        ORDER BY created_at, rowid
        LIMIT 1
        """,
        (fixture_id, client_id),
    ).fetchone()
    return _row_to_event(row) if row is not None else None


def get_event(connection: sqlite3.Connection, event_id: str) -> Optional[StoredMatchEvent]:
    row = connection.execute(
        "SELECT * FROM match_events WHERE event_id = ?", (event_id,)
    ).fetchone()
    return _row_to_event(row) if row is not None else None


def insert_event(connection: sqlite3.Connection, event: MatchEvent) -> StoredMatchEvent:
    """Insert ``event``; raises ``sqlite3.IntegrityError`` if its client id is taken."""

    event_id = str(uuid.uuid4())
    created_at = format_timestamp(utcnow())
    connection.execute(
        """
        INSERT INTO match_events (
            event_id, fixture_id, client_id, player_id, side, timestamp, event_type,
            event_category, half, outcome, zone, notes, undoes, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            event_id,
            event.fixture_id,
            event.client_id,
            event.player_id,
            event.side.value,
            event.timestamp,
            event.event_type,
            event.event_category.value,
            event.half.value,
            event.outcome,
            event.zone,
            event.notes,
            event.undoes,
            created_at,
        ),
    )
    return StoredMatchEvent(
        **event.model_dump(exclude={"synced"}),
        event_id=event_id,
        created_at=created_at,
    )


def update_event_details(
    connection: sqlite3.Connection, event_id: str, update: EventUpdate
) -> None:
    changes = update.model_dump(exclude_unset=True)
    if not changes:
        return
    assignments = ", ".join(f"{column} = ?" for column in changes)
    connection.execute(
        f"UPDATE match_events SET {assignments} WHERE event_id = ?",
        (*changes.values(), event_id),
    )


__all__ = [
    "find_by_client_id",
    "find_compensation",
    "get_event",
    "insert_event",
    "list_events",
    "update_event_details",
]
