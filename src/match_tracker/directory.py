"""Read-only fixture and player records consumed by the tracker and the reports."""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from pydantic import BaseModel, Field

DEFAULT_MATCH_MINUTES = 70


class Fixture(BaseModel):
    fixture_id: str
    team_id: str
    opponent: Optional[str] = None
    fixture_date: Optional[str] = Field(default=None, description="Throw-in date (ISO 8601).")
    venue: Optional[str] = None
    status: str = "SCHEDULED"
    competition_type: Optional[str] = Field(default=None, description="League, Championship, ...")
    season_id: Optional[str] = None
    match_minutes: Optional[int] = Field(default=None, ge=1)

    def match_seconds(self, default_minutes: int = DEFAULT_MATCH_MINUTES) -> int:
        return (self.match_minutes or default_minutes) * 60


class Player(BaseModel):
    player_id: str
    team_id: str
    name: str
    jersey_no: Optional[int] = None


def player_directory(players: Iterable[Player]) -> Dict[str, str]:
    """Map player ids to display names."""

    return {player.player_id: player.name for player in players}


__all__ = ["DEFAULT_MATCH_MINUTES", "Fixture", "Player", "player_directory"]
