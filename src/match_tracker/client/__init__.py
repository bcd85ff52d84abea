from __future__ import annotations

from .api_client import ApiClient
from .interfaces import EventTransport
from .queue import DeadLetter, OfflineQueue
from .sync import SyncEngine, SyncOutcome
from .tracker import MatchTracker

__all__ = [
    "ApiClient",
    "DeadLetter",
    "EventTransport",
    "MatchTracker",
    "OfflineQueue",
    "SyncEngine",
    "SyncOutcome",
]
