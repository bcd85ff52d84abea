"""Utility helpers for working with SQLite rows."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, List, Optional

import sqlite3


def row_value(row: sqlite3.Row, key: str) -> Any:
    """Safely extract a column value from a row."""

    try:
        return row[key]
    except (KeyError, IndexError):  # pragma: no cover - defensive guardrail
        return None


def as_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def int_to_bool(value: Any, *, default: Optional[bool] = None) -> Optional[bool]:
    if value is None:
        return default
    try:
        return bool(int(value))
    except (TypeError, ValueError):
        return default


def json_list(value: Any) -> List[Any]:
    if value in (None, ""):
        return []
    parsed = json.loads(value)
    if not isinstance(parsed, list):
        raise ValueError("Expected a JSON array")
    return parsed


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    iso_text = text[:-1] + "+00:00" if text.endswith("Z") else text
    dt = datetime.fromisoformat(iso_text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


__all__ = [
    "as_int",
    "format_timestamp",
    "int_to_bool",
    "json_list",
    "parse_timestamp",
    "row_value",
    "utcnow",
]
