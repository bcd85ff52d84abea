"""Durable local queue of events captured but not yet accepted by the server."""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Iterable, List, Optional

from pydantic import BaseModel

from match_tracker.api._database import PathLike, get_connection
from match_tracker.api._row_utils import format_timestamp, json_list, row_value, utcnow
from match_tracker.events import MatchEvent

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS pending_events (
        fixture_id TEXT PRIMARY KEY,
        events TEXT NOT NULL DEFAULT '[]',
        updated_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS dead_letter (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        fixture_id TEXT NOT NULL,
        client_id TEXT NOT NULL,
        event TEXT NOT NULL,
        reason TEXT,
        failed_at TEXT NOT NULL
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_dead_letter_fixture ON dead_letter(fixture_id);",
)


class DeadLetter(BaseModel):
    fixture_id: str
    client_id: str
    event: MatchEvent
    reason: Optional[str] = None
    failed_at: str


class OfflineQueue:
    """Pending events stored per fixture as a JSON array in a SQLite file.

    Every mutation is written before the caller attempts any network call, so
    a crash or restart never loses a captured event.
    """

    def __init__(self, path: PathLike) -> None:
        self._path = path
        self._lock = threading.Lock()
        if str(path) != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        with get_connection(path) as connection:
            for statement in _SCHEMA:
                connection.execute(statement)

    @property
    def path(self) -> PathLike:
        return self._path

    # -- pending -------------------------------------------------------------------

    def _load(self, connection: sqlite3.Connection, fixture_id: str) -> List[MatchEvent]:
        row = connection.execute(
            "SELECT events FROM pending_events WHERE fixture_id = ?", (fixture_id,)
        ).fetchone()
        if row is None:
            return []
        return [MatchEvent.model_validate(item) for item in json_list(row_value(row, "events"))]

    def _store(self, connection: sqlite3.Connection, fixture_id: str, events: List[MatchEvent]) -> None:
        if not events:
            connection.execute("DELETE FROM pending_events WHERE fixture_id = ?", (fixture_id,))
            return
        connection.execute(
            """
            INSERT INTO pending_events (fixture_id, events, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(fixture_id) DO UPDATE SET
                events = excluded.events,
                updated_at = excluded.updated_at
            """,
            (
                fixture_id,
                json.dumps([event.model_dump(mode="json") for event in events]),
                format_timestamp(utcnow()),
            ),
        )

    def append(self, event: MatchEvent) -> int:
        """Queue ``event``; a client id already queued is ignored. Returns the queue length."""

        with self._lock, get_connection(self._path) as connection:
            events = self._load(connection, event.fixture_id)
            if any(queued.client_id == event.client_id for queued in events):
                return len(events)
            events.append(event)
            self._store(connection, event.fixture_id, events)
            return len(events)

    def pending(self, fixture_id: str) -> List[MatchEvent]:
        with self._lock, get_connection(self._path) as connection:
            return self._load(connection, fixture_id)

    def count(self, fixture_id: str) -> int:
        return len(self.pending(fixture_id))

    def fixtures_with_pending(self) -> List[str]:
        with self._lock, get_connection(self._path) as connection:
            rows = connection.execute(
                "SELECT fixture_id FROM pending_events ORDER BY updated_at, fixture_id"
            ).fetchall()
        return [row_value(row, "fixture_id") for row in rows]

    def remove(self, fixture_id: str, client_ids: Iterable[str]) -> int:
        """Drop the given client ids from the fixture's queue; returns how many were removed."""

        targets = set(client_ids)
        if not targets:
            return 0
        with self._lock, get_connection(self._path) as connection:
            events = self._load(connection, fixture_id)
            kept = [event for event in events if event.client_id not in targets]
            self._store(connection, fixture_id, kept)
            return len(events) - len(kept)

    def remove_last(self, fixture_id: str) -> Optional[MatchEvent]:
        with self._lock, get_connection(self._path) as connection:
            events = self._load(connection, fixture_id)
            if not events:
                return None
            last = events.pop()
            self._store(connection, fixture_id, events)
            return last

    def clear(self, fixture_id: Optional[str] = None) -> None:
        with self._lock, get_connection(self._path) as connection:
            if fixture_id is None:
                connection.execute("DELETE FROM pending_events")
            else:
                connection.execute("DELETE FROM pending_events WHERE fixture_id = ?", (fixture_id,))

    # -- dead letters --------------------------------------------------------------

    def dead_letter(self, event: MatchEvent, reason: Optional[str]) -> None:
        """Move ``event`` out of the pending queue into the dead-letter table."""

        with self._lock, get_connection(self._path) as connection:
            events = self._load(connection, event.fixture_id)
            self._store(
                connection,
                event.fixture_id,
                [queued for queued in events if queued.client_id != event.client_id],
            )
            connection.execute(
                """
                INSERT INTO dead_letter (fixture_id, client_id, event, reason, failed_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    event.fixture_id,
                    event.client_id,
                    event.model_dump_json(),
                    (reason or "")[:500] or None,
                    format_timestamp(utcnow()),
                ),
            )
        logger.warning(
            "fixture %s event %s moved to dead letter: %s", event.fixture_id, event.client_id, reason
        )

    def dead_letters(self, fixture_id: Optional[str] = None) -> List[DeadLetter]:
        query = "SELECT * FROM dead_letter"
        params: tuple = ()
        if fixture_id is not None:
            query += " WHERE fixture_id = ?"
            params = (fixture_id,)
        with self._lock, get_connection(self._path) as connection:
            rows = connection.execute(query + " ORDER BY id", params).fetchall()
        return [
            DeadLetter(
                fixture_id=row_value(row, "fixture_id"),
                client_id=row_value(row, "client_id"),
                event=MatchEvent.model_validate_json(row_value(row, "event")),
                reason=row_value(row, "reason"),
                failed_at=row_value(row, "failed_at"),
            )
            for row in rows
        ]


__all__ = ["DeadLetter", "OfflineQueue"]
