from __future__ import annotations

from .aggregator import build_match_report, conversion_rate, fixture_stats, quarter_for
from .benchmarks import build_benchmarks, build_season_dashboard

__all__ = [
    "build_benchmarks",
    "build_match_report",
    "build_season_dashboard",
    "conversion_rate",
    "fixture_stats",
    "quarter_for",
]
