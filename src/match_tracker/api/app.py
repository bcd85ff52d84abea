"""FastAPI application exposing the match tracker endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, Response, status

from match_tracker.api._database import PathLike
from match_tracker.api.schemas import (
    BatchRequest,
    BatchResult,
    EventPayload,
    EventUpdate,
    MatchStateUpdate,
    MatchSummary,
    SquadRequest,
    StoredMatchEvent,
    SubstitutionRequest,
)
from match_tracker.api.service import MatchTrackerService
from match_tracker.config import Settings
from match_tracker.errors import (
    EventNotFoundError,
    FixtureNotFoundError,
    InvalidIdentifierError,
    InvalidTransitionError,
    MatchTrackerError,
    SquadLockedError,
    SquadNotFoundError,
    StartPreconditionError,
    SubstitutionError,
    VersionConflictError,
)
from match_tracker.events import Side
from match_tracker.reports.schemas import BenchmarkReport, MatchReport, SeasonDashboard
from match_tracker.squads import MatchSquad
from match_tracker.state import MatchState


def _http_error(exc: Exception) -> HTTPException:
    """Translate a service error into the matching HTTP response."""

    if isinstance(exc, StartPreconditionError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Match cannot start", "checklist": exc.checklist},
        )
    if isinstance(exc, (FixtureNotFoundError, EventNotFoundError, SquadNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, (InvalidTransitionError, VersionConflictError, SquadLockedError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, (InvalidIdentifierError, SubstitutionError, ValueError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


_SERVICE_ERRORS = (MatchTrackerError, ValueError)


def create_app(
    settings: Optional[Settings] = None,
    db_path: Optional[PathLike] = None,
) -> FastAPI:
    """Instantiate the FastAPI application backed by the SQLite file in ``settings``."""

    settings = settings or Settings.from_env()
    app = FastAPI(title="GAA Match Tracker", version="0.1.0")
    app.state.settings = settings
    app.state.match_service = MatchTrackerService(
        db_path or settings.db_path,
        match_minutes=settings.match_minutes,
    )

    router = APIRouter()

    def get_service(request: Request) -> MatchTrackerService:
        return request.app.state.match_service

    @router.get("/fixtures/{fixture_id}/match-state", response_model=MatchState)
    def get_match_state(
        fixture_id: str,
        service: MatchTrackerService = Depends(get_service),
    ) -> MatchState:
        try:
            return service.get_match_state(fixture_id)
        except _SERVICE_ERRORS as exc:
            raise _http_error(exc) from exc

    @router.put("/fixtures/{fixture_id}/match-state", response_model=MatchState)
    def update_match_state(
        fixture_id: str,
        payload: MatchStateUpdate,
        service: MatchTrackerService = Depends(get_service),
    ) -> MatchState:
        try:
            return service.update_match_state(fixture_id, payload)
        except _SERVICE_ERRORS as exc:
            raise _http_error(exc) from exc

    @router.post("/fixtures/{fixture_id}/match-state/start", response_model=MatchState)
    def start_match(
        fixture_id: str,
        service: MatchTrackerService = Depends(get_service),
    ) -> MatchState:
        try:
            return service.start_match(fixture_id)
        except _SERVICE_ERRORS as exc:
            raise _http_error(exc) from exc

    @router.post("/fixtures/{fixture_id}/match-state/complete", response_model=MatchState)
    def complete_match(
        fixture_id: str,
        service: MatchTrackerService = Depends(get_service),
    ) -> MatchState:
        try:
            return service.complete_match(fixture_id)
        except _SERVICE_ERRORS as exc:
            raise _http_error(exc) from exc

    @router.get("/fixtures/{fixture_id}/match-summary", response_model=MatchSummary)
    def get_match_summary(
        fixture_id: str,
        service: MatchTrackerService = Depends(get_service),
    ) -> MatchSummary:
        try:
            return service.match_summary(fixture_id)
        except _SERVICE_ERRORS as exc:
            raise _http_error(exc) from exc

    @router.get("/fixtures/{fixture_id}/squads", response_model=List[MatchSquad])
    def get_squads(
        fixture_id: str,
        service: MatchTrackerService = Depends(get_service),
    ) -> List[MatchSquad]:
        try:
            return service.get_squads(fixture_id)
        except _SERVICE_ERRORS as exc:
            raise _http_error(exc) from exc

    @router.post("/fixtures/{fixture_id}/squads", response_model=MatchSquad)
    def save_squad(
        fixture_id: str,
        payload: SquadRequest,
        service: MatchTrackerService = Depends(get_service),
    ) -> MatchSquad:
        try:
            return service.save_squad(fixture_id, payload)
        except _SERVICE_ERRORS as exc:
            raise _http_error(exc) from exc

    @router.post("/fixtures/{fixture_id}/squads/{side}/substitute", response_model=MatchSquad)
    def substitute_player(
        fixture_id: str,
        side: Side,
        payload: SubstitutionRequest,
        service: MatchTrackerService = Depends(get_service),
    ) -> MatchSquad:
        try:
            return service.substitute(fixture_id, side, payload)
        except _SERVICE_ERRORS as exc:
            raise _http_error(exc) from exc

    @router.get("/fixtures/{fixture_id}/events", response_model=List[StoredMatchEvent])
    def list_events(
        fixture_id: str,
        service: MatchTrackerService = Depends(get_service),
    ) -> List[StoredMatchEvent]:
        try:
            return service.list_events(fixture_id)
        except _SERVICE_ERRORS as exc:
            raise _http_error(exc) from exc

    @router.post(
        "/fixtures/{fixture_id}/events",
        response_model=StoredMatchEvent,
        status_code=status.HTTP_201_CREATED,
    )
    def create_event(
        fixture_id: str,
        payload: EventPayload,
        response: Response,
        service: MatchTrackerService = Depends(get_service),
    ) -> StoredMatchEvent:
        try:
            stored, created = service.create_event(fixture_id, payload)
        except _SERVICE_ERRORS as exc:
            raise _http_error(exc) from exc
        if not created:
            response.status_code = status.HTTP_200_OK
        return stored

    @router.post("/match-events/batch", response_model=BatchResult)
    def ingest_batch(
        payload: BatchRequest,
        service: MatchTrackerService = Depends(get_service),
    ) -> BatchResult:
        try:
            return service.ingest_batch(payload)
        except _SERVICE_ERRORS as exc:
            raise _http_error(exc) from exc

    @router.patch("/match-events/{event_id}", response_model=StoredMatchEvent)
    def update_event(
        event_id: str,
        payload: EventUpdate,
        service: MatchTrackerService = Depends(get_service),
    ) -> StoredMatchEvent:
        try:
            return service.update_event(event_id, payload)
        except _SERVICE_ERRORS as exc:
            raise _http_error(exc) from exc

    @router.get("/fixtures/{fixture_id}/report", response_model=MatchReport)
    def get_report(
        fixture_id: str,
        service: MatchTrackerService = Depends(get_service),
    ) -> MatchReport:
        try:
            return service.build_report(fixture_id)
        except _SERVICE_ERRORS as exc:
            raise _http_error(exc) from exc

    @router.get("/fixtures/{fixture_id}/benchmarks", response_model=BenchmarkReport)
    def get_benchmarks(
        fixture_id: str,
        service: MatchTrackerService = Depends(get_service),
    ) -> BenchmarkReport:
        try:
            return service.benchmarks(fixture_id)
        except _SERVICE_ERRORS as exc:
            raise _http_error(exc) from exc

    @router.get("/teams/{team_id}/season-dashboard", response_model=SeasonDashboard)
    def get_season_dashboard(
        team_id: str,
        season_id: Optional[str] = Query(
            default=None,
            description="Restrict the dashboard to one season; all seasons when omitted.",
        ),
        service: MatchTrackerService = Depends(get_service),
    ) -> SeasonDashboard:
        try:
            return service.season_dashboard(team_id, season_id)
        except _SERVICE_ERRORS as exc:
            raise _http_error(exc) from exc

    app.include_router(router)
    return app


app = create_app()

__all__ = ["app", "create_app"]
