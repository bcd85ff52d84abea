"""Exceptions shared by the tracking client, the API service, and the reports."""

from __future__ import annotations

from typing import Iterable, List, Optional


class MatchTrackerError(Exception):
    """Base class for all match tracker errors."""


class InvalidIdentifierError(MatchTrackerError, ValueError):
    """Raised before any I/O when a fixture or event identifier is malformed."""

    def __init__(self, name: str, value: object) -> None:
        super().__init__(f"{name} must be a valid UUID, got {value!r}")
        self.name = name
        self.value = value


class InvalidTransitionError(MatchTrackerError):
    """Raised when a match state transition is not allowed from the current status."""


class StartPreconditionError(InvalidTransitionError):
    """Raised when a match cannot start because the squads are incomplete."""

    def __init__(self, checklist: Iterable[str]) -> None:
        self.checklist: List[str] = list(checklist)
        super().__init__("Match cannot start: " + "; ".join(self.checklist))


class MatchCompletedError(InvalidTransitionError):
    """Raised on any score or clock mutation once the match is completed."""

    def __init__(self, fixture_id: Optional[str] = None) -> None:
        message = "Match is completed and can no longer be modified"
        if fixture_id:
            message = f"Match '{fixture_id}' is completed and can no longer be modified"
        super().__init__(message)
        self.fixture_id = fixture_id


class VersionConflictError(MatchTrackerError):
    """Raised when a match state update carries a stale version token."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Match state version mismatch: expected {expected}, current is {actual}")
        self.expected = expected
        self.actual = actual


class FixtureNotFoundError(MatchTrackerError, KeyError):
    """Raised when the requested fixture does not exist."""

    def __init__(self, fixture_id: str) -> None:  # pragma: no cover - trivial
        super().__init__(f"Fixture '{fixture_id}' not found.")
        self.fixture_id = fixture_id

    def __str__(self) -> str:
        return self.args[0]


class EventNotFoundError(MatchTrackerError, KeyError):
    """Raised when a match event id is unknown."""

    def __init__(self, event_id: str) -> None:  # pragma: no cover - trivial
        super().__init__(f"Match event '{event_id}' not found.")
        self.event_id = event_id

    def __str__(self) -> str:
        return self.args[0]


class SquadNotFoundError(MatchTrackerError, KeyError):
    """Raised when a squad for the given side has not been created."""

    def __init__(self, fixture_id: str, side: str) -> None:  # pragma: no cover - trivial
        super().__init__(f"No {side} squad for fixture '{fixture_id}'.")
        self.fixture_id = fixture_id
        self.side = side

    def __str__(self) -> str:
        return self.args[0]


class SquadLockedError(MatchTrackerError):
    """Raised when editing a squad that was locked by the match start."""


class SubstitutionError(MatchTrackerError, ValueError):
    """Raised when a substitution names players outside the expected partitions."""


class TransportError(MatchTrackerError):
    """Raised by the API client when the server cannot be reached."""


class ApiError(MatchTrackerError):
    """Raised by the API client for non-success HTTP responses."""

    def __init__(self, status_code: int, detail: object) -> None:
        super().__init__(f"API request failed with status {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class NotFoundError(ApiError):
    """404 returned by the server; the caller may retry later."""


__all__ = [
    "ApiError",
    "EventNotFoundError",
    "FixtureNotFoundError",
    "InvalidIdentifierError",
    "InvalidTransitionError",
    "MatchCompletedError",
    "MatchTrackerError",
    "NotFoundError",
    "SquadLockedError",
    "SquadNotFoundError",
    "StartPreconditionError",
    "SubstitutionError",
    "TransportError",
    "VersionConflictError",
]
