from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import FIXTURE_ID, OTHER_FIXTURE_ID, make_event
from match_tracker import cli
from match_tracker.api.schemas import BatchRequest
from match_tracker.api.service import MatchTrackerService
from match_tracker.client.queue import OfflineQueue
from match_tracker.config import (
    DEFAULT_BASE_URL,
    DEFAULT_MATCH_MINUTES,
    ENV_VAR_BASE_URL,
    ENV_VAR_HTTP_TIMEOUT,
    ENV_VAR_MATCH_MINUTES,
    Settings,
)


def test_settings_defaults() -> None:
    settings = Settings.from_env({})
    assert settings.api_base_url == DEFAULT_BASE_URL
    assert settings.match_minutes == DEFAULT_MATCH_MINUTES
    assert settings.match_seconds == DEFAULT_MATCH_MINUTES * 60


def test_settings_overrides() -> None:
    settings = Settings.from_env(
        {
            ENV_VAR_BASE_URL: "https://tracker.example.ie/api/",
            ENV_VAR_MATCH_MINUTES: "60",
            ENV_VAR_HTTP_TIMEOUT: "2.5",
        }
    )
    assert settings.api_base_url == "https://tracker.example.ie/api"
    assert settings.match_seconds == 3600
    assert settings.http_timeout == 2.5


@pytest.mark.parametrize("value", ["seventy", "0", "-5"])
def test_settings_reject_bad_match_minutes(value: str) -> None:
    with pytest.raises(ValueError, match=ENV_VAR_MATCH_MINUTES):
        Settings.from_env({ENV_VAR_MATCH_MINUTES: value})


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(ENV_VAR_MATCH_MINUTES, raising=False)
    monkeypatch.delenv(ENV_VAR_HTTP_TIMEOUT, raising=False)


def test_cli_report_prints_json(db_path: Path, service: MatchTrackerService, capsys) -> None:
    service.ingest_batch(
        BatchRequest(
            fixture_id=FIXTURE_ID,
            events=[make_event("Goal").to_wire(), make_event("Wide").to_wire()],
        )
    )

    exit_code = cli.main(["--db", str(db_path), "report", "--fixture", FIXTURE_ID])

    assert exit_code == 0
    report = json.loads(capsys.readouterr().out)
    assert report["fixture_id"] == FIXTURE_ID
    assert report["team_totals"]["goals"] == 1
    assert report["team_totals"]["wides"] == 1


def test_cli_report_unknown_fixture(db_path: Path, service: MatchTrackerService) -> None:
    assert cli.main(["--db", str(db_path), "report", "--fixture", OTHER_FIXTURE_ID]) == 1
    assert cli.main(["--db", str(db_path), "report", "--fixture", "latest"]) == 1


def test_cli_queue_lists_pending(tmp_path: Path, capsys) -> None:
    queue_path = tmp_path / "offline.sqlite"
    queue = OfflineQueue(queue_path)
    first, second = make_event("Point"), make_event("Hook")
    queue.append(first)
    queue.append(second)

    exit_code = cli.main(["--queue-path", str(queue_path), "queue", "--fixture", FIXTURE_ID])

    assert exit_code == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert [json.loads(line)["client_id"] for line in lines] == [first.client_id, second.client_id]


def test_cli_sync_with_empty_queue(tmp_path: Path) -> None:
    queue_path = tmp_path / "offline.sqlite"
    assert cli.main(["--queue-path", str(queue_path), "sync"]) == 0
    assert cli.main(["--queue-path", str(queue_path), "sync", "--fixture", FIXTURE_ID]) == 0
