from __future__ import annotations

import pytest

from conftest import FIXTURE_ID, bench, lineup
from match_tracker.errors import SubstitutionError
from match_tracker.events import Side
from match_tracker.squads import (
    DEFAULT_POSITIONS,
    FULL_STARTING_LINEUP,
    LineupSlot,
    MatchSquad,
    has_starting_lineup,
    start_checklist,
    substitute,
)


def home_squad() -> MatchSquad:
    return MatchSquad(
        fixture_id=FIXTURE_ID,
        side=Side.HOME,
        starting_slots=[LineupSlot(**slot) for slot in lineup("home")],
        bench=[LineupSlot(**slot) for slot in bench("home")],
    )


def test_default_positions_cover_a_full_team() -> None:
    assert len(DEFAULT_POSITIONS) == FULL_STARTING_LINEUP
    assert DEFAULT_POSITIONS[0].position_name.startswith("GK")
    assert [slot.position_no for slot in DEFAULT_POSITIONS] == list(range(1, 16))


def test_has_starting_lineup() -> None:
    assert has_starting_lineup(home_squad())
    assert not has_starting_lineup(None)
    assert not has_starting_lineup(MatchSquad(fixture_id=FIXTURE_ID, side=Side.AWAY))


def test_checklist_empty_when_both_sides_ready() -> None:
    away = home_squad().model_copy(update={"side": Side.AWAY})
    assert start_checklist(home_squad(), away) == []


def test_substitution_swaps_players_and_logs() -> None:
    squad = home_squad()
    updated = substitute(squad, player_off_id="home-14", player_on_id="home-sub-0", match_time=2700)

    assert "home-sub-0" in updated.on_field()
    assert "home-14" not in updated.on_field()
    assert "home-14" in updated.on_bench()
    slot = next(slot for slot in updated.starting_slots if slot.player_id == "home-sub-0")
    assert slot.position_no == 14

    assert len(updated.subs_log) == 1
    entry = updated.subs_log[0]
    assert entry.match_time == 2700
    assert entry.player_off_id == "home-14"
    assert entry.player_on_name == "Home Sub 0"
    assert entry.time.endswith("Z")

    # The original squad is left untouched.
    assert "home-14" in squad.on_field()
    assert squad.subs_log == []


def test_substitution_rejects_unknown_players() -> None:
    squad = home_squad()
    with pytest.raises(SubstitutionError, match="starting lineup"):
        substitute(squad, player_off_id="nobody", player_on_id="home-sub-0", match_time=10)
    with pytest.raises(SubstitutionError, match="bench"):
        substitute(squad, player_off_id="home-14", player_on_id="home-3", match_time=10)
