"""Pydantic schemas used by the FastAPI service and its client."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from match_tracker.directory import Fixture
from match_tracker.events import EVENT_VOCABULARY_VERSION, EventCategory, Half, MatchEvent, Side
from match_tracker.squads import LineupSlot, MatchSquad
from match_tracker.state import MatchState, MatchStatus


class StoredMatchEvent(MatchEvent):
    """A match event as held in the canonical server-side log."""

    event_id: str = Field(..., description="Server-assigned identifier.")
    created_at: str = Field(..., description="Time the server stored the event (RFC3339).")
    synced: bool = True


class EventPayload(BaseModel):
    """Body of a single event submission; the fixture comes from the path."""

    client_id: str = Field(..., min_length=1)
    side: Side
    timestamp: int = Field(..., ge=0)
    event_type: str
    event_category: EventCategory
    half: Half = Half.H1
    player_id: Optional[str] = None
    outcome: Optional[str] = None
    zone: Optional[str] = None
    notes: Optional[str] = None
    undoes: Optional[str] = None


class BatchRequest(BaseModel):
    """Payload for ``POST /match-events/batch``.

    Events are kept as raw mappings so that one malformed event is reported
    per item instead of rejecting the whole batch.
    """

    fixture_id: str
    vocabulary_version: int = Field(
        default=EVENT_VOCABULARY_VERSION,
        description="Event vocabulary the client captured the batch with.",
    )
    events: List[Dict[str, Any]] = Field(default_factory=list)


class EventStatus(str, Enum):
    SYNCED = "synced"
    DUPLICATE = "duplicate"
    INVALID = "invalid"
    FAILED = "failed"


class BatchEventResult(BaseModel):
    client_id: Optional[str] = None
    status: EventStatus
    event_id: Optional[str] = None
    detail: Optional[str] = None


class BatchResult(BaseModel):
    synced: int = 0
    duplicates: int = 0
    failed: int = Field(default=0, description="Invalid plus storage failures.")
    results: List[BatchEventResult] = Field(default_factory=list)


class EventUpdate(BaseModel):
    """Corrections allowed on a stored event; everything else is immutable."""

    model_config = ConfigDict(extra="forbid")

    zone: Optional[str] = None
    outcome: Optional[str] = None
    notes: Optional[str] = None


class MatchStateUpdate(BaseModel):
    """Partial update of a match state; omitted fields are left untouched."""

    status: Optional[MatchStatus] = None
    home_goals: Optional[int] = Field(default=None, ge=0)
    home_points: Optional[int] = Field(default=None, ge=0)
    away_goals: Optional[int] = Field(default=None, ge=0)
    away_points: Optional[int] = Field(default=None, ge=0)
    match_clock: Optional[int] = Field(default=None, ge=0)
    half: Optional[Half] = None
    expected_version: Optional[int] = Field(
        default=None,
        ge=0,
        description="Reject the update with 409 unless the stored version matches.",
    )


class SquadRequest(BaseModel):
    side: Side
    starting_slots: List[LineupSlot] = Field(default_factory=list)
    bench: List[LineupSlot] = Field(default_factory=list)


class SubstitutionRequest(BaseModel):
    player_off_id: str
    player_on_id: str
    match_time: int = Field(..., ge=0)
    player_off_name: Optional[str] = None
    player_on_name: Optional[str] = None


class SideSummary(BaseModel):
    goals: int = 0
    points: int = 0
    wides: int = 0
    events: int = 0
    total_score: int = 0


class MatchSummary(BaseModel):
    fixture: Fixture
    match_state: MatchState
    home_squad: Optional[MatchSquad] = None
    away_squad: Optional[MatchSquad] = None
    home: SideSummary
    away: SideSummary
    event_count: int = 0


__all__ = [
    "BatchEventResult",
    "BatchRequest",
    "BatchResult",
    "EventPayload",
    "EventStatus",
    "EventUpdate",
    "MatchStateUpdate",
    "MatchSummary",
    "SideSummary",
    "SquadRequest",
    "StoredMatchEvent",
    "SubstitutionRequest",
]
