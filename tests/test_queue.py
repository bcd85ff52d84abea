from __future__ import annotations

from pathlib import Path

import pytest

from conftest import FIXTURE_ID, OTHER_FIXTURE_ID, make_event
from match_tracker.client.queue import OfflineQueue


@pytest.fixture()
def queue(tmp_path: Path) -> OfflineQueue:
    return OfflineQueue(tmp_path / "queue" / "offline.sqlite")


def test_append_survives_reopen(queue: OfflineQueue) -> None:
    first = make_event("Goal")
    second = make_event("Wide")
    assert queue.append(first) == 1
    assert queue.append(second) == 2

    reopened = OfflineQueue(queue.path)
    assert [event.client_id for event in reopened.pending(FIXTURE_ID)] == [first.client_id, second.client_id]
    assert reopened.pending(FIXTURE_ID)[0] == first


def test_append_ignores_known_client_id(queue: OfflineQueue) -> None:
    event = make_event("Point")
    queue.append(event)
    assert queue.append(event) == 1
    assert queue.count(FIXTURE_ID) == 1


def test_fixtures_with_pending(queue: OfflineQueue) -> None:
    assert queue.fixtures_with_pending() == []
    queue.append(make_event("Point"))
    queue.append(make_event("Point", fixture_id=OTHER_FIXTURE_ID))
    assert sorted(queue.fixtures_with_pending()) == sorted([FIXTURE_ID, OTHER_FIXTURE_ID])


def test_remove_and_remove_last(queue: OfflineQueue) -> None:
    events = [make_event("Goal"), make_event("Point"), make_event("Wide")]
    for event in events:
        queue.append(event)

    assert queue.remove(FIXTURE_ID, [events[0].client_id, "unknown"]) == 1
    assert queue.remove(FIXTURE_ID, []) == 0
    assert queue.remove_last(FIXTURE_ID) == events[2]
    assert [event.client_id for event in queue.pending(FIXTURE_ID)] == [events[1].client_id]

    queue.remove_last(FIXTURE_ID)
    assert queue.remove_last(FIXTURE_ID) is None
    assert queue.fixtures_with_pending() == []


def test_clear(queue: OfflineQueue) -> None:
    queue.append(make_event("Goal"))
    queue.append(make_event("Goal", fixture_id=OTHER_FIXTURE_ID))
    queue.clear(FIXTURE_ID)
    assert queue.pending(FIXTURE_ID) == []
    assert queue.count(OTHER_FIXTURE_ID) == 1
    queue.clear()
    assert queue.fixtures_with_pending() == []


def test_dead_letter_moves_event_out_of_queue(queue: OfflineQueue) -> None:
    bad = make_event("Point")
    good = make_event("Goal")
    queue.append(bad)
    queue.append(good)

    queue.dead_letter(bad, "side must be HOME or AWAY")

    assert [event.client_id for event in queue.pending(FIXTURE_ID)] == [good.client_id]
    letters = queue.dead_letters(FIXTURE_ID)
    assert len(letters) == 1
    assert letters[0].client_id == bad.client_id
    assert letters[0].event == bad
    assert letters[0].reason == "side must be HOME or AWAY"
    assert queue.dead_letters(OTHER_FIXTURE_ID) == []
    assert len(queue.dead_letters()) == 1
