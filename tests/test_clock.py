from __future__ import annotations

import threading

import pytest

from match_tracker.clock import ClockTicker


def test_ticker_calls_back_until_stopped() -> None:
    ticked = threading.Event()
    calls = []

    def on_tick() -> None:
        calls.append(1)
        ticked.set()

    ticker = ClockTicker(on_tick, interval=0.01)
    ticker.start()
    assert ticked.wait(2.0)
    ticker.stop()

    assert not ticker.running
    count = len(calls)
    threading.Event().wait(0.05)
    assert len(calls) == count


def test_stop_is_idempotent_and_safe_before_start() -> None:
    ticker = ClockTicker(lambda: None, interval=0.01)
    ticker.stop()
    ticker.start()
    ticker.stop()
    ticker.stop(wait=False)
    assert not ticker.running


def test_start_twice_keeps_one_thread() -> None:
    ticker = ClockTicker(lambda: None, interval=0.05, name="test-clock")
    ticker.start()
    ticker.start()
    try:
        names = [thread.name for thread in threading.enumerate()]
        assert names.count("test-clock") == 1
    finally:
        ticker.stop()


def test_context_manager_stops_ticker() -> None:
    with ClockTicker(lambda: None, interval=0.01) as ticker:
        assert ticker.running
    assert not ticker.running


def test_interval_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ClockTicker(lambda: None, interval=0)
