"""Configuration helpers for the API service, the tracking client, and the CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_DB_PATH = "./match-tracker.sqlite"
DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_QUEUE_PATH = "./offline-queue.sqlite"
DEFAULT_MATCH_MINUTES = 70
DEFAULT_HTTP_TIMEOUT_SECONDS = 15.0

ENV_VAR_DB_PATH = "MATCH_TRACKER_DB_PATH"
ENV_VAR_BASE_URL = "MATCH_TRACKER_API_BASE_URL"
ENV_VAR_QUEUE_PATH = "MATCH_TRACKER_QUEUE_PATH"
ENV_VAR_MATCH_MINUTES = "MATCH_TRACKER_MATCH_MINUTES"
ENV_VAR_HTTP_TIMEOUT = "MATCH_TRACKER_HTTP_TIMEOUT"


@dataclass(frozen=True)
class Settings:
    db_path: str = DEFAULT_DB_PATH
    api_base_url: str = DEFAULT_BASE_URL
    queue_path: str = DEFAULT_QUEUE_PATH
    match_minutes: int = DEFAULT_MATCH_MINUTES
    http_timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS

    @property
    def match_seconds(self) -> int:
        return self.match_minutes * 60

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Read settings from ``environ`` (``os.environ`` by default)."""

        env = os.environ if environ is None else environ
        return cls(
            db_path=env.get(ENV_VAR_DB_PATH, DEFAULT_DB_PATH),
            api_base_url=env.get(ENV_VAR_BASE_URL, DEFAULT_BASE_URL).rstrip("/"),
            queue_path=env.get(ENV_VAR_QUEUE_PATH, DEFAULT_QUEUE_PATH),
            match_minutes=_positive_int(env, ENV_VAR_MATCH_MINUTES, DEFAULT_MATCH_MINUTES),
            http_timeout=_positive_float(env, ENV_VAR_HTTP_TIMEOUT, DEFAULT_HTTP_TIMEOUT_SECONDS),
        )


def _positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _positive_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw in (None, ""):
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


__all__ = [
    "DEFAULT_BASE_URL",
    "DEFAULT_DB_PATH",
    "DEFAULT_HTTP_TIMEOUT_SECONDS",
    "DEFAULT_MATCH_MINUTES",
    "DEFAULT_QUEUE_PATH",
    "ENV_VAR_BASE_URL",
    "ENV_VAR_DB_PATH",
    "ENV_VAR_HTTP_TIMEOUT",
    "ENV_VAR_MATCH_MINUTES",
    "ENV_VAR_QUEUE_PATH",
    "Settings",
]
