from __future__ import annotations

import itertools
from pathlib import Path
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

from match_tracker.api.app import create_app
from match_tracker.api.service import MatchTrackerService
from match_tracker.config import Settings
from match_tracker.directory import Fixture, Player
from match_tracker.events import MatchEvent, Side, category_for
from match_tracker.squads import DEFAULT_POSITIONS, LineupSlot

FIXTURE_ID = "5b0c7a9e-3f51-4c1e-9d2a-2f7f0d6c1a11"
OTHER_FIXTURE_ID = "8d7e1f20-6a3b-4c5d-8e9f-0a1b2c3d4e5f"
TEAM_ID = "team-kilkenny"
SEASON_ID = "2026"

_CLIENT_IDS = itertools.count(1)


def make_event(event_type: str = "Goal", **overrides: Any) -> MatchEvent:
    counter = next(_CLIENT_IDS)
    data: Dict[str, Any] = {
        "fixture_id": FIXTURE_ID,
        "client_id": f"c-{counter}",
        "side": Side.HOME,
        "timestamp": 60,
        "event_type": event_type,
        "event_category": category_for(event_type),
    }
    data.update(overrides)
    return MatchEvent(**data)


def lineup(prefix: str, count: int = 15) -> List[Dict[str, Any]]:
    return [
        LineupSlot(
            position_no=slot.position_no,
            position_name=slot.position_name,
            player_id=f"{prefix}-{slot.position_no}" if slot.position_no <= count else None,
            player_name=f"{prefix.title()} {slot.position_no}" if slot.position_no <= count else None,
        ).model_dump()
        for slot in DEFAULT_POSITIONS
    ]


def bench(prefix: str, count: int = 3) -> List[Dict[str, Any]]:
    return [
        LineupSlot(
            position_no=16 + index,
            position_name="SUB",
            player_id=f"{prefix}-sub-{index}",
            player_name=f"{prefix.title()} Sub {index}",
        ).model_dump()
        for index in range(count)
    ]


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "tracker.sqlite"


@pytest.fixture()
def service(db_path: Path) -> MatchTrackerService:
    service = MatchTrackerService(db_path)
    service.add_fixture(
        Fixture(
            fixture_id=FIXTURE_ID,
            team_id=TEAM_ID,
            opponent="Tipperary",
            fixture_date="2026-05-10",
            venue="Nowlan Park",
            competition_type="Championship",
            season_id=SEASON_ID,
        )
    )
    service.add_player(Player(player_id="home-14", team_id=TEAM_ID, name="TJ Reid", jersey_no=14))
    return service


@pytest.fixture()
def api_client(db_path: Path, service: MatchTrackerService) -> TestClient:
    app = create_app(settings=Settings(db_path=str(db_path)))
    return TestClient(app)
