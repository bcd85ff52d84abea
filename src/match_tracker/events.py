"""Match event model and the closed event vocabulary used during capture."""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from match_tracker.errors import InvalidIdentifierError

# Bump whenever a type is added to or removed from EVENT_TYPES.
EVENT_VOCABULARY_VERSION = 1


class Side(str, Enum):
    HOME = "HOME"
    AWAY = "AWAY"


class Half(str, Enum):
    H1 = "H1"
    H2 = "H2"


class EventCategory(str, Enum):
    SCORING = "Scoring"
    PUCKOUTS = "Puckouts"
    POSSESSION = "Possession"
    DISCIPLINE = "Discipline"
    SUBSTITUTIONS = "Substitutions"


class ScoringType(str, Enum):
    GOAL = "Goal"
    POINT = "Point"
    WIDE = "Wide"
    SAVED = "Saved"
    DROPPED_SHORT = "Dropped Short"
    BLOCKED = "Blocked"
    FREE_CONVERTED = "Free Converted"
    FREE_MISSED = "Free Missed"


class PuckoutType(str, Enum):
    WON_CLEAN = "Won Clean"
    BROKEN_WON = "Broken Won"
    LOST = "Lost"
    DIRECTION = "Direction"


class PossessionType(str, Enum):
    TURNOVER_WON = "Turnover Won"
    TURNOVER_LOST = "Turnover Lost"
    HOOK = "Hook"
    BLOCK = "Block"
    TACKLE = "Tackle"
    RUCK_WON = "Ruck Won"
    RUCK_LOST = "Ruck Lost"


class DisciplineType(str, Enum):
    YELLOW_CARD = "Yellow Card"
    RED_CARD = "Red Card"


class SubstitutionType(str, Enum):
    SUB_ON = "Sub On"
    SUB_OFF = "Sub Off"


EVENT_TYPES: Dict[EventCategory, Tuple[str, ...]] = {
    EventCategory.SCORING: tuple(member.value for member in ScoringType),
    EventCategory.PUCKOUTS: tuple(member.value for member in PuckoutType),
    EventCategory.POSSESSION: tuple(member.value for member in PossessionType),
    EventCategory.DISCIPLINE: tuple(member.value for member in DisciplineType),
    EventCategory.SUBSTITUTIONS: tuple(member.value for member in SubstitutionType),
}

PUCKOUT_DIRECTIONS: Tuple[str, ...] = ("Short", "Long", "Left", "Centre", "Right")

PITCH_ZONES: Tuple[str, ...] = (
    "Defence Left",
    "Defence Centre",
    "Defence Right",
    "Midfield Left",
    "Midfield Centre",
    "Midfield Right",
    "Attack Left",
    "Attack Centre",
    "Attack Right",
)

SCORING_SUCCESS_TYPES = frozenset({ScoringType.GOAL.value, ScoringType.POINT.value})
PUCKOUT_WON_TYPES = frozenset({PuckoutType.WON_CLEAN.value, PuckoutType.BROKEN_WON.value})


def category_for(event_type: str) -> EventCategory:
    """Return the category whose vocabulary contains ``event_type``."""

    for category, types in EVENT_TYPES.items():
        if event_type in types:
            return category
    raise ValueError(f"Unknown event type {event_type!r}")


def new_client_id() -> str:
    return uuid.uuid4().hex


def is_valid_uuid(value: object) -> bool:
    if not isinstance(value, str) or not value:
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def require_uuid(name: str, value: object) -> str:
    """Fail fast on malformed identifiers before touching storage or the network."""

    if not is_valid_uuid(value):
        raise InvalidIdentifierError(name, value)
    return str(value)


class MatchEvent(BaseModel):
    """A single immutable occurrence captured during a match."""

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    fixture_id: str = Field(..., description="Identifier of the fixture the event belongs to.")
    client_id: str = Field(
        ...,
        min_length=1,
        description="Client-generated idempotency key, unique per fixture.",
    )
    side: Side
    timestamp: int = Field(..., ge=0, description="Elapsed match-clock seconds at capture.")
    event_type: str
    event_category: EventCategory
    half: Half = Half.H1
    player_id: Optional[str] = None
    outcome: Optional[str] = None
    zone: Optional[str] = None
    notes: Optional[str] = None
    undoes: Optional[str] = Field(
        default=None,
        description="client_id of the event this one compensates, if it is an undo.",
    )
    synced: bool = Field(default=False, description="Local-only flag; never persisted by the server.")

    @model_validator(mode="after")
    def _check_vocabulary(self) -> "MatchEvent":
        allowed = EVENT_TYPES[self.event_category]
        if self.event_type not in allowed:
            raise ValueError(
                f"Event type {self.event_type!r} is not valid for category {self.event_category.value!r}"
            )
        if self.event_type == PuckoutType.DIRECTION.value and self.outcome not in PUCKOUT_DIRECTIONS:
            raise ValueError(
                "Direction events require an outcome of " + ", ".join(PUCKOUT_DIRECTIONS)
            )
        if self.zone is not None and self.zone not in PITCH_ZONES:
            raise ValueError(f"Unknown pitch zone {self.zone!r}")
        if self.undoes is not None and self.undoes == self.client_id:
            raise ValueError("An event cannot undo itself")
        return self

    @property
    def is_compensation(self) -> bool:
        return self.undoes is not None

    @property
    def score_field(self) -> Optional[str]:
        """Name of the MatchState counter this event moves, if any."""

        if self.event_category is not EventCategory.SCORING:
            return None
        prefix = "home" if self.side is Side.HOME else "away"
        if self.event_type == ScoringType.GOAL.value:
            return f"{prefix}_goals"
        if self.event_type == ScoringType.POINT.value:
            return f"{prefix}_points"
        return None

    def compensation(self, client_id: str, timestamp: int) -> "MatchEvent":
        """Build the event that cancels this one without rewriting history."""

        return MatchEvent(
            fixture_id=self.fixture_id,
            client_id=client_id,
            side=self.side,
            timestamp=timestamp,
            event_type=self.event_type,
            event_category=self.event_category,
            half=self.half,
            player_id=self.player_id,
            outcome=self.outcome,
            undoes=self.client_id,
            notes=f"Undo of {self.event_type}",
        )

    def to_wire(self) -> Dict[str, object]:
        return self.model_dump(mode="json", exclude={"synced"})


__all__ = [
    "EVENT_TYPES",
    "EVENT_VOCABULARY_VERSION",
    "PITCH_ZONES",
    "PUCKOUT_DIRECTIONS",
    "PUCKOUT_WON_TYPES",
    "SCORING_SUCCESS_TYPES",
    "DisciplineType",
    "EventCategory",
    "Half",
    "MatchEvent",
    "PossessionType",
    "PuckoutType",
    "ScoringType",
    "Side",
    "SubstitutionType",
    "category_for",
    "is_valid_uuid",
    "new_client_id",
    "require_uuid",
]
