"""Live capture session for one fixture on the sideline device."""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from match_tracker.client.queue import OfflineQueue
from match_tracker.client.sync import SyncEngine, SyncOutcome
from match_tracker.clock import ClockTicker, TickerFactory
from match_tracker.errors import InvalidTransitionError
from match_tracker.events import (
    EventCategory,
    Half,
    MatchEvent,
    Side,
    category_for,
    new_client_id,
    require_uuid,
)
from match_tracker.squads import MatchSquad
from match_tracker.state import MatchState, MatchStateMachine, MatchStatus

logger = logging.getLogger(__name__)

_CAPTURE_STATUSES = frozenset({MatchStatus.IN_PROGRESS, MatchStatus.PAUSED})


class MatchTracker:
    """Capture events, keep the local score and clock, and undo mistakes.

    Captured events go to the offline queue before anything else happens, so
    capture works the same with or without connectivity. While the sync engine
    reports a connection, each capture or queued undo also drains the queue.
    Events restored from the queue on construction are replayed onto the
    local score.
    """

    def __init__(
        self,
        fixture_id: str,
        queue: OfflineQueue,
        *,
        sync_engine: Optional[SyncEngine] = None,
        state: Optional[MatchState] = None,
        home_squad: Optional[MatchSquad] = None,
        away_squad: Optional[MatchSquad] = None,
        ticker_factory: Optional[TickerFactory] = ClockTicker,
        id_factory: Callable[[], str] = new_client_id,
    ) -> None:
        require_uuid("fixture_id", fixture_id)
        self._fixture_id = fixture_id
        self._queue = queue
        self._sync_engine = sync_engine
        self._home_squad = home_squad
        self._away_squad = away_squad
        self._new_id = id_factory
        self._lock = threading.RLock()
        self._machine = MatchStateMachine(
            state or MatchState(fixture_id=fixture_id),
            ticker_factory=ticker_factory,
        )
        self._events: List[MatchEvent] = queue.pending(fixture_id)
        if self._events and state is None:
            for event in self._events:
                self._apply(event, reconcile=True)
        if sync_engine is not None:
            sync_engine.add_listener(self._mark_synced)

    @property
    def fixture_id(self) -> str:
        return self._fixture_id

    @property
    def state(self) -> MatchState:
        return self._machine.state

    @property
    def events(self) -> List[MatchEvent]:
        with self._lock:
            return list(self._events)

    @property
    def pending_count(self) -> int:
        return self._queue.count(self._fixture_id)

    @property
    def clock_running(self) -> bool:
        return self._machine.clock_running

    # -- lifecycle -----------------------------------------------------------------

    def set_squads(self, home: Optional[MatchSquad], away: Optional[MatchSquad]) -> None:
        self._home_squad = home
        self._away_squad = away

    def start(self) -> MatchState:
        return self._machine.start(self._home_squad, self._away_squad)

    def pause(self) -> MatchState:
        return self._machine.pause()

    def resume(self) -> MatchState:
        return self._machine.resume()

    def complete(self) -> MatchState:
        return self._machine.complete()

    def set_half(self, half: Half) -> MatchState:
        return self._machine.set_half(half)

    def tick(self) -> int:
        return self._machine.tick()

    # -- capture -------------------------------------------------------------------

    def capture(
        self,
        event_type: str,
        category: Optional[EventCategory] = None,
        *,
        side: Side = Side.HOME,
        player_id: Optional[str] = None,
        outcome: Optional[str] = None,
        zone: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> MatchEvent:
        """Record an event at the current match clock."""

        with self._lock:
            state = self._machine.state
            if state.status not in _CAPTURE_STATUSES:
                raise InvalidTransitionError(
                    f"Events can only be captured while a match is running, not {state.status.value}"
                )
            event = MatchEvent(
                fixture_id=self._fixture_id,
                client_id=self._new_id(),
                side=side,
                timestamp=state.match_clock,
                event_type=event_type,
                event_category=category or category_for(event_type),
                half=state.half,
                player_id=player_id,
                outcome=outcome,
                zone=zone,
                notes=notes,
            )
            self._queue.append(event)
            self._events.append(event)
            self._apply(event)
            logger.debug("captured %s %s at %ss", event.side.value, event.event_type, event.timestamp)
        self._sync_if_connected()
        return event

    def undo_last(self) -> Optional[MatchEvent]:
        """Undo the most recent event that has not been undone yet.

        An event still waiting in the queue is dropped outright. Once the
        server may have it, a compensating event is queued instead and history
        is left intact. Returns the removed or the compensating event.
        """

        with self._lock:
            target = self._last_undoable()
            if target is None:
                return None

            sync_in_flight = self._sync_engine is not None and self._sync_engine.busy
            if not target.synced and not sync_in_flight:
                self._machine.revert_event(target)
                self._queue.remove(self._fixture_id, [target.client_id])
                self._events = [event for event in self._events if event.client_id != target.client_id]
                logger.info("removed unsynced %s %s", target.event_type, target.client_id)
                return target

            self._machine.revert_event(target)
            compensation = target.compensation(self._new_id(), self._machine.state.match_clock)
            self._queue.append(compensation)
            self._events.append(compensation)
            logger.info("queued undo of %s %s", target.event_type, target.client_id)
        self._sync_if_connected()
        return compensation

    def _last_undoable(self) -> Optional[MatchEvent]:
        undone = {event.undoes for event in self._events if event.is_compensation}
        for event in reversed(self._events):
            if not event.is_compensation and event.client_id not in undone:
                return event
        return None

    def _apply(self, event: MatchEvent, *, reconcile: bool = False) -> None:
        if not event.is_compensation:
            self._machine.apply_event(event, reconcile=reconcile)
            return
        target = next((item for item in self._events if item.client_id == event.undoes), None)
        if target is not None:
            self._machine.revert_event(target, reconcile=reconcile)

    # -- sync ----------------------------------------------------------------------

    def sync(self) -> Optional[SyncOutcome]:
        if self._sync_engine is None:
            return None
        return self._sync_engine.sync(self._fixture_id)

    def on_connectivity_change(self, connected: bool) -> List[SyncOutcome]:
        if self._sync_engine is None:
            return []
        return self._sync_engine.on_connectivity_change(connected)

    def _sync_if_connected(self) -> Optional[SyncOutcome]:
        # Called outside self._lock; the engine's listener takes it again.
        if self._sync_engine is None or not self._sync_engine.connected:
            return None
        return self._sync_engine.sync(self._fixture_id)

    def _mark_synced(self, fixture_id: str, client_ids: List[str]) -> None:
        if fixture_id != self._fixture_id:
            return
        accepted = set(client_ids)
        with self._lock:
            self._events = [
                event.model_copy(update={"synced": True}) if event.client_id in accepted else event
                for event in self._events
            ]

    # -- teardown ------------------------------------------------------------------

    def close(self) -> None:
        self._machine.close()

    def __enter__(self) -> "MatchTracker":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["MatchTracker"]
