"""Single timer source driving the match clock."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)

TICK_INTERVAL_SECONDS = 1.0


class ClockTicker:
    """Call ``on_tick`` once per interval on a background thread until stopped.

    The ticker is a scoped resource: ``stop`` is idempotent and is also called
    when the ticker is used as a context manager, so the thread never outlives
    the tracking session that owns it.
    """

    def __init__(
        self,
        on_tick: Callable[[], None],
        *,
        interval: float = TICK_INTERVAL_SECONDS,
        name: str = "match-clock",
    ) -> None:
        if interval <= 0:
            raise ValueError("Tick interval must be positive")
        self._on_tick = on_tick
        self._interval = interval
        self._name = name
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def stop(self, *, wait: bool = True) -> None:
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        if wait and thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self._interval * 2)

    def _run(self) -> None:
        stop_event = self._stop_event
        while not stop_event.wait(self._interval):
            try:
                self._on_tick()
            except Exception:  # pragma: no cover - log and stop ticking
                logger.exception("clock tick failed; stopping %s", self._name)
                return

    def __enter__(self) -> "ClockTicker":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


TickerFactory = Callable[[Callable[[], None]], ClockTicker]


__all__ = ["ClockTicker", "TICK_INTERVAL_SECONDS", "TickerFactory"]
