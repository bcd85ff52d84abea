"""Interfaces between the sync engine and whatever delivers batches to the server."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence, TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from match_tracker.api.schemas import BatchResult
    from match_tracker.events import MatchEvent


class EventTransport(ABC):
    """Delivers queued events for one fixture to the canonical log."""

    @abstractmethod
    def submit_batch(self, fixture_id: str, events: Sequence["MatchEvent"]) -> "BatchResult":
        """Send ``events`` and return the per-event outcome.

        Implementations raise :class:`~match_tracker.errors.TransportError`
        when the server cannot be reached and
        :class:`~match_tracker.errors.ApiError` for rejected requests.
        """
