#!/usr/bin/env python
"""Fetch and upsert accounts for every linked Plaid item.

Usage:
    cd backend
    python -m scripts.fetch_accounts
"""

import argparse
import sys

from config import settings
from logging_config import setup_logging
from models import Account
from scripts.common import build_ingest_service, open_session
from services.run_journal import RunJournal, utc_timestamp


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Refresh accounts from Plaid")
    parser.add_argument("--no-log", action="store_true", help="Do not write the results journal")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    args = parser.parse_args(argv)

    setup_logging("DEBUG" if args.verbose else None)
    journal = RunJournal.from_settings(settings, enabled=not args.no_log)
    service = build_ingest_service(settings)

    try:
        with open_session() as db:
            report = service.refresh_accounts(db)
            accounts = db.query(Account).order_by(Account.item_id, Account.name).all()
            print(f"Fetched accounts for {report.total_items} items")
            for acct in accounts:
                print(f"  - {acct.name} ({acct.type} - {acct.subtype}) ...{acct.mask or 'N/A'}")
            for err in report.errors:
                print(f"Error fetching accounts for item {err.item_id}: {err.message}")
            print(f"\nTotal accounts in database: {len(accounts)}")
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        journal.record({
            "status": "error",
            "action": "fetch-accounts",
            "error": str(e),
            "timestamp": utc_timestamp(),
        })
        return 1

    journal.record({
        "status": "accounts-refreshed",
        "timestamp": utc_timestamp(),
        **report.to_dict(),
    })
    return 0


if __name__ == "__main__":
    sys.exit(main())
