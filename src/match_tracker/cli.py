from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from typing import Iterable, List, Optional

from match_tracker.api.service import MatchTrackerService
from match_tracker.client.api_client import ApiClient
from match_tracker.client.queue import OfflineQueue
from match_tracker.client.sync import SyncEngine, SyncOutcome
from match_tracker.config import Settings
from match_tracker.errors import MatchTrackerError

logger = logging.getLogger(__name__)


def _log_outcome(outcome: SyncOutcome) -> None:
    if outcome.skipped:
        logger.info("Sync skipped: another sync is running")
    elif outcome.error:
        logger.error("✗ %s: %s events kept in queue (%s)", outcome.fixture_id, outcome.attempted, outcome.error)
    elif not outcome.attempted:
        logger.info("%s: nothing to sync", outcome.fixture_id)
    else:
        logger.info(
            "✓ %s: %s synced, %s duplicates, %s failed, %s dead-lettered",
            outcome.fixture_id,
            outcome.synced,
            outcome.duplicates,
            outcome.failed,
            outcome.dead_lettered,
        )


def run_sync(settings: Settings, fixture_id: Optional[str]) -> int:
    queue = OfflineQueue(settings.queue_path)
    engine = SyncEngine(queue, ApiClient(settings.api_base_url, timeout=settings.http_timeout))
    outcomes: List[SyncOutcome] = [engine.sync(fixture_id)] if fixture_id else engine.sync_all()
    for outcome in outcomes:
        _log_outcome(outcome)
    return 0 if all(outcome.ok for outcome in outcomes) else 1


def run_report(settings: Settings, fixture_id: str) -> int:
    service = MatchTrackerService(settings.db_path, match_minutes=settings.match_minutes)
    report = service.build_report(fixture_id)
    print(report.model_dump_json(indent=2))
    return 0


def run_queue(settings: Settings, fixture_id: str) -> int:
    queue = OfflineQueue(settings.queue_path)
    pending = queue.pending(fixture_id)
    for event in pending:
        print(json.dumps(event.to_wire()))
    dead = queue.dead_letters(fixture_id)
    logger.info("%s pending, %s dead-lettered for %s", len(pending), len(dead), fixture_id)
    return 0


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="match-tracker",
        description="Sync captured match events, inspect the offline queue, and print match reports.",
    )
    parser.add_argument("--db", help="SQLite database used by the report command.")
    parser.add_argument("--queue-path", help="SQLite file holding the offline queue.")
    parser.add_argument("--base-url", help="Base URL of the match tracker API.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser("sync", help="Drain the offline queue to the API.")
    sync_parser.add_argument("--fixture", help="Fixture to sync; all fixtures with pending events when omitted.")

    report_parser = subparsers.add_parser("report", help="Print the match report JSON from the local database.")
    report_parser.add_argument("--fixture", required=True)

    queue_parser = subparsers.add_parser("queue", help="List events waiting in the offline queue.")
    queue_parser.add_argument("--fixture", required=True)

    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    settings = Settings.from_env()
    overrides = {
        "db_path": args.db,
        "queue_path": args.queue_path,
        "api_base_url": args.base_url.rstrip("/") if args.base_url else None,
    }
    settings = replace(settings, **{key: value for key, value in overrides.items() if value})

    try:
        if args.command == "sync":
            return run_sync(settings, args.fixture)
        if args.command == "report":
            return run_report(settings, args.fixture)
        return run_queue(settings, args.fixture)
    except MatchTrackerError as exc:
        logger.error("✗ %s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
