"""Core business logic for the match tracker API."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from match_tracker.api._database import PathLike, get_connection, initialise_database
from match_tracker.api._events import (
    find_by_client_id,
    find_compensation,
    get_event,
    insert_event,
    list_events as load_events,
    update_event_details,
)
from match_tracker.api._fixtures import (
    get_fixture,
    insert_fixture,
    insert_player,
    list_team_fixtures,
    list_team_players,
)
from match_tracker.api._match_state import load_or_default, save_state
from match_tracker.api._squads import get_squad, get_squads, lock_squads, save_squad
from match_tracker.api.schemas import (
    BatchEventResult,
    BatchRequest,
    BatchResult,
    EventPayload,
    EventStatus,
    EventUpdate,
    MatchStateUpdate,
    MatchSummary,
    SideSummary,
    SquadRequest,
    StoredMatchEvent,
    SubstitutionRequest,
)
from match_tracker.directory import DEFAULT_MATCH_MINUTES, Fixture, Player, player_directory
from match_tracker.errors import (
    EventNotFoundError,
    FixtureNotFoundError,
    MatchCompletedError,
    SquadLockedError,
    SquadNotFoundError,
    VersionConflictError,
)
from match_tracker.events import (
    EVENT_VOCABULARY_VERSION,
    EventCategory,
    MatchEvent,
    ScoringType,
    Side,
    require_uuid,
)
from match_tracker.reports.aggregator import build_match_report, effective_events, fixture_stats
from match_tracker.reports.benchmarks import build_benchmarks, build_season_dashboard
from match_tracker.reports.schemas import BenchmarkReport, MatchReport, SeasonDashboard
from match_tracker.squads import MatchSquad, substitute
from match_tracker.state import SCORE_FIELDS, MatchState, MatchStateMachine, MatchStatus, total_score

logger = logging.getLogger(__name__)


class MatchTrackerService:
    """Facade over the SQLite store used by the FastAPI routes.

    Every public method opens its own connection, so the service can be shared
    by the worker threads FastAPI runs synchronous handlers on.
    """

    def __init__(self, db_path: PathLike, *, match_minutes: int = DEFAULT_MATCH_MINUTES) -> None:
        self._db_path = db_path
        self._match_minutes = match_minutes
        self._schema_ready = False

    @property
    def db_path(self) -> PathLike:
        return self._db_path

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        if not self._schema_ready:
            initialise_database(self._db_path)
            self._schema_ready = True
        with get_connection(self._db_path) as connection:
            yield connection

    def _require_fixture(self, connection: sqlite3.Connection, fixture_id: str) -> Fixture:
        require_uuid("fixture_id", fixture_id)
        fixture = get_fixture(connection, fixture_id)
        if fixture is None:
            raise FixtureNotFoundError(fixture_id)
        return fixture

    # -- directory -----------------------------------------------------------------

    def add_fixture(self, fixture: Fixture) -> Fixture:
        require_uuid("fixture_id", fixture.fixture_id)
        with self._connection() as connection:
            return insert_fixture(connection, fixture)

    def add_player(self, player: Player) -> Player:
        with self._connection() as connection:
            return insert_player(connection, player)

    def get_fixture(self, fixture_id: str) -> Fixture:
        with self._connection() as connection:
            return self._require_fixture(connection, fixture_id)

    # -- match state ---------------------------------------------------------------

    def get_match_state(self, fixture_id: str) -> MatchState:
        with self._connection() as connection:
            self._require_fixture(connection, fixture_id)
            return load_or_default(connection, fixture_id)

    def update_match_state(self, fixture_id: str, update: MatchStateUpdate) -> MatchState:
        """Apply a partial update; omitted or null fields are left untouched."""

        with self._connection() as connection:
            self._require_fixture(connection, fixture_id)
            current = load_or_default(connection, fixture_id)
            if update.expected_version is not None and update.expected_version != current.version:
                raise VersionConflictError(update.expected_version, current.version)

            changes: Dict[str, Any] = {
                key: value
                for key, value in update.model_dump(exclude_unset=True, exclude={"expected_version"}).items()
                if value is not None
            }
            status = changes.pop("status", None)

            if current.status is MatchStatus.COMPLETED:
                if changes or status not in (None, MatchStatus.COMPLETED):
                    raise MatchCompletedError(fixture_id)
                return current

            machine = MatchStateMachine(current)
            if status is MatchStatus.IN_PROGRESS and current.status is MatchStatus.NOT_STARTED:
                self._start(connection, machine)
                status = None

            scores = {field: changes.pop(field) for field in SCORE_FIELDS if field in changes}
            if scores:
                machine.set_scores(**scores)
            if "match_clock" in changes:
                machine.advance_clock(changes.pop("match_clock"))
            if "half" in changes:
                machine.set_half(changes.pop("half"))
            if status is not None:
                machine.transition_to(status)

            return save_state(connection, machine.state)

    def start_match(self, fixture_id: str) -> MatchState:
        with self._connection() as connection:
            self._require_fixture(connection, fixture_id)
            machine = MatchStateMachine(load_or_default(connection, fixture_id))
            self._start(connection, machine)
            return save_state(connection, machine.state)

    def complete_match(self, fixture_id: str) -> MatchState:
        with self._connection() as connection:
            self._require_fixture(connection, fixture_id)
            machine = MatchStateMachine(load_or_default(connection, fixture_id))
            machine.complete()
            return save_state(connection, machine.state)

    def _start(self, connection: sqlite3.Connection, machine: MatchStateMachine) -> None:
        fixture_id = machine.state.fixture_id
        squads = get_squads(connection, fixture_id)
        machine.start(squads.get(Side.HOME), squads.get(Side.AWAY))
        lock_squads(connection, fixture_id)

    def match_summary(self, fixture_id: str) -> MatchSummary:
        with self._connection() as connection:
            fixture = self._require_fixture(connection, fixture_id)
            state = load_or_default(connection, fixture_id)
            squads = get_squads(connection, fixture_id)
            events = effective_events(load_events(connection, fixture_id))

        sides = {Side.HOME: SideSummary(), Side.AWAY: SideSummary()}
        for event in events:
            summary = sides[event.side]
            summary.events += 1
            if event.event_category is not EventCategory.SCORING:
                continue
            if event.event_type == ScoringType.GOAL.value:
                summary.goals += 1
            elif event.event_type == ScoringType.POINT.value:
                summary.points += 1
            elif event.event_type == ScoringType.WIDE.value:
                summary.wides += 1
        for summary in sides.values():
            summary.total_score = total_score(summary.goals, summary.points)

        return MatchSummary(
            fixture=fixture,
            match_state=state,
            home_squad=squads.get(Side.HOME),
            away_squad=squads.get(Side.AWAY),
            home=sides[Side.HOME],
            away=sides[Side.AWAY],
            event_count=len(events),
        )

    # -- squads --------------------------------------------------------------------

    def get_squads(self, fixture_id: str) -> List[MatchSquad]:
        with self._connection() as connection:
            self._require_fixture(connection, fixture_id)
            return list(get_squads(connection, fixture_id).values())

    def save_squad(self, fixture_id: str, request: SquadRequest) -> MatchSquad:
        with self._connection() as connection:
            self._require_fixture(connection, fixture_id)
            existing = get_squad(connection, fixture_id, request.side)
            if existing is not None and existing.locked:
                raise SquadLockedError(
                    f"The {request.side.value} squad is locked because the match has started"
                )
            squad = MatchSquad(
                fixture_id=fixture_id,
                side=request.side,
                starting_slots=request.starting_slots,
                bench=request.bench,
                subs_log=existing.subs_log if existing is not None else [],
            )
            return save_squad(connection, squad)

    def substitute(self, fixture_id: str, side: Side, request: SubstitutionRequest) -> MatchSquad:
        with self._connection() as connection:
            self._require_fixture(connection, fixture_id)
            squad = get_squad(connection, fixture_id, side)
            if squad is None:
                raise SquadNotFoundError(fixture_id, side.value)
            updated = substitute(
                squad,
                player_off_id=request.player_off_id,
                player_on_id=request.player_on_id,
                match_time=request.match_time,
                player_off_name=request.player_off_name,
                player_on_name=request.player_on_name,
            )
            logger.info(
                "fixture %s %s substitution at %ss: %s off, %s on",
                fixture_id,
                side.value,
                request.match_time,
                request.player_off_id,
                request.player_on_id,
            )
            return save_squad(connection, updated)

    # -- events --------------------------------------------------------------------

    def list_events(self, fixture_id: str) -> List[StoredMatchEvent]:
        with self._connection() as connection:
            self._require_fixture(connection, fixture_id)
            return load_events(connection, fixture_id)

    def create_event(self, fixture_id: str, payload: EventPayload) -> Tuple[StoredMatchEvent, bool]:
        """Store a single event idempotently; the flag is False for a known client id."""

        event = MatchEvent(fixture_id=fixture_id, **payload.model_dump())
        with self._connection() as connection:
            self._require_fixture(connection, fixture_id)
            return self._store_event(connection, event)

    def ingest_batch(self, request: BatchRequest) -> BatchResult:
        """Store a batch of events, reporting a status for each one.

        Each event gets its own transaction so that one bad event cannot roll
        back the others.
        """

        with self._connection() as connection:
            self._require_fixture(connection, request.fixture_id)
        if request.vocabulary_version != EVENT_VOCABULARY_VERSION:
            logger.warning(
                "fixture %s batch uses event vocabulary v%s, server has v%s",
                request.fixture_id,
                request.vocabulary_version,
                EVENT_VOCABULARY_VERSION,
            )

        result = BatchResult()
        for raw in request.events:
            item = self._ingest_one(request.fixture_id, raw)
            result.results.append(item)
            if item.status is EventStatus.SYNCED:
                result.synced += 1
            elif item.status is EventStatus.DUPLICATE:
                result.duplicates += 1
            else:
                result.failed += 1

        logger.info(
            "fixture %s batch: %s synced, %s duplicates, %s failed",
            request.fixture_id,
            result.synced,
            result.duplicates,
            result.failed,
        )
        return result

    def _ingest_one(self, fixture_id: str, raw: Mapping[str, Any]) -> BatchEventResult:
        client_id = raw.get("client_id")
        # Echoed back on error results before the item itself is validated.
        if client_id is not None:
            client_id = str(client_id)
        if raw.get("fixture_id") not in (None, fixture_id):
            return BatchEventResult(
                client_id=client_id,
                status=EventStatus.INVALID,
                detail="Event belongs to a different fixture",
            )
        try:
            event = MatchEvent.model_validate({**raw, "fixture_id": fixture_id})
        except ValidationError as exc:
            logger.warning("fixture %s rejected event %s: %s", fixture_id, client_id, exc)
            return BatchEventResult(client_id=client_id, status=EventStatus.INVALID, detail=str(exc))

        try:
            with self._connection() as connection:
                stored, created = self._store_event(connection, event)
        except sqlite3.IntegrityError:
            # Lost an insert race on the (fixture_id, client_id) index.
            return BatchEventResult(client_id=event.client_id, status=EventStatus.DUPLICATE)
        except sqlite3.Error as exc:
            logger.exception("fixture %s failed to store event %s", fixture_id, event.client_id)
            return BatchEventResult(client_id=event.client_id, status=EventStatus.FAILED, detail=str(exc))

        return BatchEventResult(
            client_id=event.client_id,
            status=EventStatus.SYNCED if created else EventStatus.DUPLICATE,
            event_id=stored.event_id,
        )

    def _store_event(
        self, connection: sqlite3.Connection, event: MatchEvent
    ) -> Tuple[StoredMatchEvent, bool]:
        existing = find_by_client_id(connection, event.fixture_id, event.client_id)
        if existing is not None:
            return existing, False
        already_undone = (
            find_compensation(connection, event.fixture_id, event.undoes)
            if event.is_compensation
            else find_compensation(connection, event.fixture_id, event.client_id)
        )
        stored = insert_event(connection, event)
        if already_undone is None:
            self._reconfirm_score(connection, event)
        return stored, True

    def _reconfirm_score(self, connection: sqlite3.Connection, event: MatchEvent) -> None:
        """Move the stored score for a newly inserted event.

        A compensating event reverts its target; a target that has not arrived
        yet is skipped here and also skipped when it does arrive.
        """

        target: Optional[MatchEvent] = event
        if event.is_compensation:
            target = find_by_client_id(connection, event.fixture_id, event.undoes)
        if target is None or target.score_field is None:
            return

        state = load_or_default(connection, event.fixture_id)
        reconcile = state.status is MatchStatus.COMPLETED
        machine = MatchStateMachine(state)
        if event.is_compensation:
            machine.revert_event(target, reconcile=reconcile)
        else:
            machine.apply_event(event, reconcile=reconcile)
        save_state(connection, machine.state)

    def update_event(self, event_id: str, update: EventUpdate) -> StoredMatchEvent:
        require_uuid("event_id", event_id)
        with self._connection() as connection:
            existing = get_event(connection, event_id)
            if existing is None:
                raise EventNotFoundError(event_id)
            changes = update.model_dump(exclude_unset=True)
            # Re-validate against the vocabulary before writing.
            MatchEvent.model_validate(
                {**existing.model_dump(exclude={"event_id", "created_at", "synced"}), **changes}
            )
            update_event_details(connection, event_id, update)
            return get_event(connection, event_id)

    # -- reports -------------------------------------------------------------------

    def build_report(self, fixture_id: str) -> MatchReport:
        with self._connection() as connection:
            fixture = self._require_fixture(connection, fixture_id)
            events = load_events(connection, fixture_id)
            players = list_team_players(connection, fixture.team_id)
        return build_match_report(
            events,
            player_directory(players),
            fixture=fixture,
            match_seconds=fixture.match_seconds(self._match_minutes),
        )

    def benchmarks(self, fixture_id: str) -> BenchmarkReport:
        with self._connection() as connection:
            fixture = self._require_fixture(connection, fixture_id)
            stats = fixture_stats(load_events(connection, fixture_id))
            others = [
                fixture_stats(load_events(connection, other.fixture_id))
                for other in list_team_fixtures(connection, fixture.team_id)
                if other.fixture_id != fixture_id
                and other.season_id == fixture.season_id
                and other.competition_type == fixture.competition_type
            ]
        return build_benchmarks(fixture_id, stats, others)

    def season_dashboard(self, team_id: str, season_id: Optional[str] = None) -> SeasonDashboard:
        with self._connection() as connection:
            fixtures = [
                fixture
                for fixture in list_team_fixtures(connection, team_id)
                if season_id is None or fixture.season_id == season_id
            ]
            rows = [
                (fixture, fixture_stats(load_events(connection, fixture.fixture_id)))
                for fixture in fixtures
            ]
        return build_season_dashboard(team_id, season_id, rows)


__all__ = ["MatchTrackerService"]
