"""Offline-first GAA match tracking: live capture, sync, and post-match reports."""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
