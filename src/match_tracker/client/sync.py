"""Drain the offline queue into the server's canonical event log."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from match_tracker.api.schemas import EventStatus
from match_tracker.client.interfaces import EventTransport
from match_tracker.client.queue import OfflineQueue
from match_tracker.errors import ApiError, TransportError

logger = logging.getLogger(__name__)

SyncListener = Callable[[str, List[str]], None]


@dataclass
class SyncOutcome:
    """What one sync attempt did; ``error`` is set when nothing reached the server."""

    fixture_id: Optional[str]
    attempted: int = 0
    synced: int = 0
    duplicates: int = 0
    failed: int = 0
    dead_lettered: int = 0
    skipped: bool = False
    error: Optional[str] = None
    accepted_client_ids: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None and not self.skipped


class SyncEngine:
    """Sends queued events in batches; at most one sync runs at a time.

    A call that finds another sync in progress returns immediately with a
    ``skipped`` outcome rather than waiting.
    """

    def __init__(self, queue: OfflineQueue, transport: EventTransport) -> None:
        self._queue = queue
        self._transport = transport
        self._lock = threading.Lock()
        self._connected: Optional[bool] = None
        self._listeners: List[SyncListener] = []

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @property
    def connected(self) -> Optional[bool]:
        return self._connected

    def add_listener(self, listener: SyncListener) -> None:
        """Call ``listener(fixture_id, client_ids)`` for events the server accepted."""

        self._listeners.append(listener)

    def sync(self, fixture_id: str) -> SyncOutcome:
        if not self._lock.acquire(blocking=False):
            logger.info("sync for %s skipped; another sync is running", fixture_id)
            return SyncOutcome(fixture_id=fixture_id, skipped=True)
        try:
            return self._sync_fixture(fixture_id)
        finally:
            self._lock.release()

    def sync_all(self) -> List[SyncOutcome]:
        if not self._lock.acquire(blocking=False):
            logger.info("sync skipped; another sync is running")
            return [SyncOutcome(fixture_id=None, skipped=True)]
        try:
            return [self._sync_fixture(fixture_id) for fixture_id in self._queue.fixtures_with_pending()]
        finally:
            self._lock.release()

    def on_connectivity_change(self, connected: bool) -> List[SyncOutcome]:
        """Record connectivity; regaining it drains every fixture with pending events."""

        previous, self._connected = self._connected, connected
        if connected and previous is not True:
            logger.info("connectivity restored; syncing pending events")
            return self.sync_all()
        return []

    def _sync_fixture(self, fixture_id: str) -> SyncOutcome:
        events = self._queue.pending(fixture_id)
        outcome = SyncOutcome(fixture_id=fixture_id, attempted=len(events))
        if not events:
            return outcome

        try:
            result = self._transport.submit_batch(fixture_id, events)
        except (TransportError, ApiError) as exc:
            logger.warning("sync for %s failed; %s events stay queued: %s", fixture_id, len(events), exc)
            outcome.error = str(exc)
            return outcome

        by_client_id = {event.client_id: event for event in events}
        accepted: List[str] = []
        rejected: Dict[str, Optional[str]] = {}
        for item in result.results:
            if item.client_id not in by_client_id:
                continue
            if item.status in (EventStatus.SYNCED, EventStatus.DUPLICATE):
                accepted.append(item.client_id)
            elif item.status is EventStatus.INVALID:
                rejected[item.client_id] = item.detail

        self._queue.remove(fixture_id, accepted)
        for client_id, reason in rejected.items():
            self._queue.dead_letter(by_client_id[client_id], reason)

        outcome.synced = result.synced
        outcome.duplicates = result.duplicates
        outcome.failed = result.failed
        outcome.dead_lettered = len(rejected)
        outcome.accepted_client_ids = accepted
        logger.info(
            "sync for %s: %s synced, %s duplicates, %s failed, %s dead-lettered",
            fixture_id,
            outcome.synced,
            outcome.duplicates,
            outcome.failed,
            outcome.dead_lettered,
        )

        if accepted:
            for listener in self._listeners:
                listener(fixture_id, list(accepted))
        return outcome


__all__ = ["SyncEngine", "SyncListener", "SyncOutcome"]
