#!/usr/bin/env python
"""Fetch, classify and store transactions for every linked Plaid item.

Usage:
    cd backend
    python -m scripts.ingest                # configured lookback (default 30 days)
    python -m scripts.ingest --days=90
    python -m scripts.ingest --no-log       # skip the results journal
"""

import argparse
import sys

from sqlalchemy.orm import Session

from config import settings
from logging_config import setup_logging
from scripts.common import build_ingest_service, open_session
from services.ingest_service import IngestReport, IngestService
from services.run_journal import RunJournal, utc_timestamp


def print_report(report: IngestReport) -> None:
    """Print the run summary."""
    print("\n--- Ingest Summary ---")
    print(f"Window: {report.start_date} to {report.end_date}")
    print(f"Total items: {report.total_items}")
    print(f"Transactions fetched: {report.total_fetched}")
    print(f"New transactions inserted: {report.total_inserted}")
    print(f"Transactions categorized: {report.total_categorized}")
    if report.errors:
        print(f"Errors: {len(report.errors)}")
        for err in report.errors:
            hint = " (retry later)" if err.retriable else ""
            print(f"  - {err.item_id}: {err.message}{hint}")


def run(
    db: Session,
    service: IngestService,
    journal: RunJournal,
    lookback_days: int | None = None,
) -> IngestReport:
    """Run one ingest, print and journal the result."""
    report = service.ingest(db, lookback_days)

    if report.total_items == 0:
        print("No Plaid items found. Link an account first via /api/plaid/link-token and /api/plaid/exchange-token.")
        journal.record({
            "status": "ingest-skipped",
            "reason": "no-items",
            "timestamp": utc_timestamp(),
        })
        return report

    print_report(report)
    journal.record({
        "status": "ingest-complete",
        "timestamp": utc_timestamp(),
        **report.to_dict(),
    })
    return report


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Ingest Plaid transactions")
    parser.add_argument(
        "--days",
        type=int,
        default=settings.INGEST_LOOKBACK_DAYS,
        help=f"Lookback window in days (default: {settings.INGEST_LOOKBACK_DAYS})",
    )
    parser.add_argument("--no-log", action="store_true", help="Do not write the results journal")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    args = parser.parse_args(argv)

    if args.days < 1:
        parser.error("--days must be a positive integer")

    setup_logging("DEBUG" if args.verbose else None)
    journal = RunJournal.from_settings(settings, enabled=not args.no_log)
    service = build_ingest_service(settings)

    print(f"Starting ingest with {args.days} days lookback...")
    try:
        with open_session() as db:
            run(db, service, journal, args.days)
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        journal.record({
            "status": "error",
            "action": "ingest",
            "error": str(e),
            "timestamp": utc_timestamp(),
        })
        return 1

    print("\nIngest complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
