from __future__ import annotations

import pytest
from pydantic import ValidationError

from conftest import FIXTURE_ID, make_event
from match_tracker.errors import InvalidIdentifierError
from match_tracker.events import (
    EVENT_TYPES,
    EventCategory,
    MatchEvent,
    Side,
    category_for,
    is_valid_uuid,
    new_client_id,
    require_uuid,
)


def test_category_for_resolves_every_vocabulary_entry() -> None:
    for category, types in EVENT_TYPES.items():
        for event_type in types:
            assert category_for(event_type) is category


def test_category_for_rejects_unknown_type() -> None:
    with pytest.raises(ValueError):
        category_for("Sideline Cut")


def test_event_type_must_belong_to_category() -> None:
    with pytest.raises(ValidationError):
        MatchEvent(
            fixture_id=FIXTURE_ID,
            client_id="c-1",
            side=Side.HOME,
            timestamp=10,
            event_type="Goal",
            event_category=EventCategory.PUCKOUTS,
        )


def test_direction_requires_known_outcome() -> None:
    with pytest.raises(ValidationError):
        make_event("Direction")
    event = make_event("Direction", outcome="Long")
    assert event.outcome == "Long"


def test_unknown_zone_is_rejected() -> None:
    with pytest.raises(ValidationError):
        make_event("Point", zone="Car Park")
    assert make_event("Point", zone="Attack Centre").zone == "Attack Centre"


def test_negative_timestamp_is_rejected() -> None:
    with pytest.raises(ValidationError):
        make_event("Point", timestamp=-1)


def test_score_field_only_for_goals_and_points() -> None:
    assert make_event("Goal").score_field == "home_goals"
    assert make_event("Point", side=Side.AWAY).score_field == "away_points"
    assert make_event("Wide").score_field is None
    assert make_event("Won Clean").score_field is None


def test_compensation_points_at_original() -> None:
    original = make_event("Point", player_id="home-14", zone="Attack Left")
    undo = original.compensation("undo-1", timestamp=75)

    assert undo.is_compensation
    assert undo.undoes == original.client_id
    assert undo.client_id == "undo-1"
    assert undo.event_type == original.event_type
    assert undo.side is original.side
    assert undo.timestamp == 75
    assert not original.is_compensation


def test_compensation_of_direction_keeps_outcome() -> None:
    original = make_event("Direction", outcome="Short")
    assert original.compensation("undo-2", timestamp=80).outcome == "Short"


def test_event_cannot_undo_itself() -> None:
    with pytest.raises(ValidationError):
        make_event("Goal", client_id="same", undoes="same")


def test_events_are_immutable() -> None:
    event = make_event("Goal")
    with pytest.raises(ValidationError):
        event.timestamp = 99  # type: ignore[misc]


def test_wire_format_drops_local_flag() -> None:
    wire = make_event("Goal").to_wire()
    assert "synced" not in wire
    assert wire["side"] == "HOME"
    assert wire["event_category"] == "Scoring"


def test_uuid_helpers() -> None:
    assert is_valid_uuid(FIXTURE_ID)
    assert is_valid_uuid(new_client_id())
    assert not is_valid_uuid("fixture-1")
    assert not is_valid_uuid(None)
    assert require_uuid("fixture_id", FIXTURE_ID) == FIXTURE_ID
    with pytest.raises(InvalidIdentifierError):
        require_uuid("fixture_id", "not-a-uuid")
