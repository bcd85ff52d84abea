"""Match squads: starting lineups, benches, and the substitution log."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from match_tracker.errors import SubstitutionError
from match_tracker.events import Side

logger = logging.getLogger(__name__)

FULL_STARTING_LINEUP = 15


class LineupSlot(BaseModel):
    """One numbered position in a lineup, optionally filled by a player."""

    position_no: int = Field(..., ge=1)
    position_name: str
    player_id: Optional[str] = None
    player_name: Optional[str] = None
    jersey_no: Optional[str] = None


class SubEvent(BaseModel):
    time: str = Field(..., description="Wall-clock time the substitution was recorded (RFC3339).")
    match_time: int = Field(..., ge=0, description="Match clock seconds at the substitution.")
    player_off_id: str
    player_off_name: Optional[str] = None
    player_on_id: str
    player_on_name: Optional[str] = None


class MatchSquad(BaseModel):
    fixture_id: str
    side: Side
    starting_slots: List[LineupSlot] = Field(default_factory=list)
    bench: List[LineupSlot] = Field(default_factory=list)
    subs_log: List[SubEvent] = Field(default_factory=list)
    locked: bool = False

    def on_field(self) -> List[str]:
        return [slot.player_id for slot in self.starting_slots if slot.player_id]

    def on_bench(self) -> List[str]:
        return [slot.player_id for slot in self.bench if slot.player_id]


_POSITION_NAMES = (
    "GK (Goalkeeper)",
    "RCB (R Corner Back)",
    "FB (Full Back)",
    "LCB (L Corner Back)",
    "RHB (R Half Back)",
    "CB (Centre Back)",
    "LHB (L Half Back)",
    "MF (Midfield)",
    "MF (Midfield)",
    "RHF (R Half Forward)",
    "CF (Centre Forward)",
    "LHF (L Half Forward)",
    "RCF (R Corner Forward)",
    "FF (Full Forward)",
    "LCF (L Corner Forward)",
)

DEFAULT_POSITIONS: List[LineupSlot] = [
    LineupSlot(position_no=index, position_name=name)
    for index, name in enumerate(_POSITION_NAMES, start=1)
]


def has_starting_lineup(squad: Optional[MatchSquad]) -> bool:
    return squad is not None and bool(squad.on_field())


def start_checklist(home: Optional[MatchSquad], away: Optional[MatchSquad]) -> List[str]:
    """List what is still missing before a match may start; empty when ready."""

    checklist: List[str] = []
    for side, squad in ((Side.HOME, home), (Side.AWAY, away)):
        if squad is None:
            checklist.append(f"Create the {side.value} squad")
        elif not squad.on_field():
            checklist.append(f"Add starting players to the {side.value} squad")
        elif len(squad.on_field()) < FULL_STARTING_LINEUP:
            logger.warning(
                "%s squad has %s of %s starters; starting anyway",
                side.value,
                len(squad.on_field()),
                FULL_STARTING_LINEUP,
            )
    return checklist


def substitute(
    squad: MatchSquad,
    *,
    player_off_id: str,
    player_on_id: str,
    match_time: int,
    player_off_name: Optional[str] = None,
    player_on_name: Optional[str] = None,
) -> MatchSquad:
    """Swap a starter with a bench player and append the substitution to the log."""

    starting = [slot.model_copy() for slot in squad.starting_slots]
    bench = [slot.model_copy() for slot in squad.bench]

    off_index = next((i for i, slot in enumerate(starting) if slot.player_id == player_off_id), None)
    if off_index is None:
        raise SubstitutionError("Player not found in starting lineup")
    on_index = next((i for i, slot in enumerate(bench) if slot.player_id == player_on_id), None)
    if on_index is None:
        raise SubstitutionError("Player not found in bench")

    off_slot = starting[off_index]
    on_slot = bench[on_index]

    starting[off_index] = LineupSlot(
        position_no=off_slot.position_no,
        position_name=off_slot.position_name,
        player_id=on_slot.player_id,
        player_name=player_on_name or on_slot.player_name,
        jersey_no=on_slot.jersey_no,
    )
    bench[on_index] = LineupSlot(
        position_no=on_slot.position_no,
        position_name=on_slot.position_name,
        player_id=off_slot.player_id,
        player_name=player_off_name or off_slot.player_name,
        jersey_no=off_slot.jersey_no,
    )

    entry = SubEvent(
        time=datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z"),
        match_time=match_time,
        player_off_id=player_off_id,
        player_off_name=player_off_name or off_slot.player_name,
        player_on_id=player_on_id,
        player_on_name=player_on_name or on_slot.player_name,
    )

    return squad.model_copy(
        update={
            "starting_slots": starting,
            "bench": bench,
            "subs_log": [*squad.subs_log, entry],
        }
    )


__all__ = [
    "DEFAULT_POSITIONS",
    "FULL_STARTING_LINEUP",
    "LineupSlot",
    "MatchSquad",
    "SubEvent",
    "has_starting_lineup",
    "start_checklist",
    "substitute",
]
