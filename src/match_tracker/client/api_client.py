"""HTTP client for the match tracker API."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from match_tracker.api.schemas import (
    BatchResult,
    EventUpdate,
    MatchStateUpdate,
    MatchSummary,
    SquadRequest,
    StoredMatchEvent,
    SubstitutionRequest,
)
from match_tracker.client.interfaces import EventTransport
from match_tracker.config import DEFAULT_BASE_URL, DEFAULT_HTTP_TIMEOUT_SECONDS
from match_tracker.errors import ApiError, NotFoundError, TransportError
from match_tracker.events import EVENT_VOCABULARY_VERSION, MatchEvent, Side, require_uuid
from match_tracker.reports.schemas import BenchmarkReport, MatchReport, SeasonDashboard
from match_tracker.squads import MatchSquad
from match_tracker.state import MatchState

logger = logging.getLogger(__name__)


class ApiClient(EventTransport):
    """Thin wrapper that maps each endpoint to a method returning typed models.

    ``session`` may be any object with a requests-compatible ``request``
    method, which lets tests drive a FastAPI ``TestClient`` directly.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        session: Any = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._session = session if session is not None else requests.Session()
        self._timeout = timeout or DEFAULT_HTTP_TIMEOUT_SECONDS

    @property
    def base_url(self) -> str:
        return self._base_url

    def _build_url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = self._build_url(path)
        try:
            response = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

        if response.status_code >= 400:
            try:
                detail = response.json().get("detail")
            except (ValueError, AttributeError):
                detail = response.text
            logger.debug("%s %s returned %s: %s", method, url, response.status_code, detail)
            if response.status_code == 404:
                raise NotFoundError(response.status_code, detail)
            raise ApiError(response.status_code, detail)
        return response.json()

    # -- match state ---------------------------------------------------------------

    def get_match_state(self, fixture_id: str) -> MatchState:
        require_uuid("fixture_id", fixture_id)
        return MatchState.model_validate(self._request("GET", f"/fixtures/{fixture_id}/match-state"))

    def update_match_state(self, fixture_id: str, update: MatchStateUpdate) -> MatchState:
        require_uuid("fixture_id", fixture_id)
        payload = update.model_dump(mode="json", exclude_unset=True)
        return MatchState.model_validate(
            self._request("PUT", f"/fixtures/{fixture_id}/match-state", json=payload)
        )

    def start_match(self, fixture_id: str) -> MatchState:
        require_uuid("fixture_id", fixture_id)
        return MatchState.model_validate(
            self._request("POST", f"/fixtures/{fixture_id}/match-state/start")
        )

    def complete_match(self, fixture_id: str) -> MatchState:
        require_uuid("fixture_id", fixture_id)
        return MatchState.model_validate(
            self._request("POST", f"/fixtures/{fixture_id}/match-state/complete")
        )

    def get_match_summary(self, fixture_id: str) -> MatchSummary:
        require_uuid("fixture_id", fixture_id)
        return MatchSummary.model_validate(self._request("GET", f"/fixtures/{fixture_id}/match-summary"))

    # -- squads --------------------------------------------------------------------

    def get_squads(self, fixture_id: str) -> List[MatchSquad]:
        require_uuid("fixture_id", fixture_id)
        payload = self._request("GET", f"/fixtures/{fixture_id}/squads")
        return [MatchSquad.model_validate(item) for item in payload]

    def save_squad(self, fixture_id: str, squad: SquadRequest) -> MatchSquad:
        require_uuid("fixture_id", fixture_id)
        return MatchSquad.model_validate(
            self._request("POST", f"/fixtures/{fixture_id}/squads", json=squad.model_dump(mode="json"))
        )

    def substitute(self, fixture_id: str, side: Side, request: SubstitutionRequest) -> MatchSquad:
        require_uuid("fixture_id", fixture_id)
        return MatchSquad.model_validate(
            self._request(
                "POST",
                f"/fixtures/{fixture_id}/squads/{Side(side).value}/substitute",
                json=request.model_dump(mode="json"),
            )
        )

    # -- events --------------------------------------------------------------------

    def list_events(self, fixture_id: str) -> List[StoredMatchEvent]:
        require_uuid("fixture_id", fixture_id)
        payload = self._request("GET", f"/fixtures/{fixture_id}/events")
        return [StoredMatchEvent.model_validate(item) for item in payload]

    def create_event(self, event: MatchEvent) -> StoredMatchEvent:
        require_uuid("fixture_id", event.fixture_id)
        body: Dict[str, Any] = event.to_wire()
        body.pop("fixture_id", None)
        return StoredMatchEvent.model_validate(
            self._request("POST", f"/fixtures/{event.fixture_id}/events", json=body)
        )

    def submit_batch(self, fixture_id: str, events: Sequence[MatchEvent]) -> BatchResult:
        require_uuid("fixture_id", fixture_id)
        payload = {
            "fixture_id": fixture_id,
            "vocabulary_version": EVENT_VOCABULARY_VERSION,
            "events": [event.to_wire() for event in events],
        }
        return BatchResult.model_validate(self._request("POST", "/match-events/batch", json=payload))

    def update_event(self, event_id: str, update: EventUpdate) -> StoredMatchEvent:
        require_uuid("event_id", event_id)
        return StoredMatchEvent.model_validate(
            self._request(
                "PATCH",
                f"/match-events/{event_id}",
                json=update.model_dump(mode="json", exclude_unset=True),
            )
        )

    # -- reports -------------------------------------------------------------------

    def get_report(self, fixture_id: str) -> MatchReport:
        require_uuid("fixture_id", fixture_id)
        return MatchReport.model_validate(self._request("GET", f"/fixtures/{fixture_id}/report"))

    def get_benchmarks(self, fixture_id: str) -> BenchmarkReport:
        require_uuid("fixture_id", fixture_id)
        return BenchmarkReport.model_validate(self._request("GET", f"/fixtures/{fixture_id}/benchmarks"))

    def get_season_dashboard(self, team_id: str, season_id: Optional[str] = None) -> SeasonDashboard:
        params = {"season_id": season_id} if season_id else None
        return SeasonDashboard.model_validate(
            self._request("GET", f"/teams/{team_id}/season-dashboard", params=params)
        )


__all__ = ["ApiClient"]
