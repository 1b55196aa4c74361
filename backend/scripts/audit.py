#!/usr/bin/env python
"""Log checksums of the database and CSV export plus table row counts.

Usage:
    cd backend
    python -m scripts.audit [--csv FILE]
"""

import argparse
import sys

from config import settings
from database import db_file_path
from scripts.common import open_session
from services.audit_service import AuditReport, run_audit
from services.run_journal import RunJournal, utc_timestamp


def print_report(report: AuditReport) -> None:
    print("\nAudit Report:")
    print("=" * 60)
    print(f"\nDatabase: {report.database.path}")
    print(f"  SHA256: {report.database.sha256}")
    print("  Row Counts:")
    for table, count in report.row_counts.items():
        print(f"    {table}: {count}")
    print(f"\nCSV: {report.csv.path}")
    print(f"  Exists: {report.csv.exists}")
    print(f"  SHA256: {report.csv.sha256 or 'N/A'}")
    print("=" * 60)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Audit database and export integrity")
    parser.add_argument("--csv", default=settings.EXPORT_PATH, help="CSV export to checksum")
    parser.add_argument("--no-log", action="store_true", help="Do not write the results journal")
    args = parser.parse_args(argv)

    journal = RunJournal.from_settings(settings, enabled=not args.no_log)
    try:
        with open_session() as db:
            report = run_audit(db, db_file_path(settings.DATABASE_URL), args.csv)
    except Exception as e:
        print(f"Audit failed: {e}", file=sys.stderr)
        journal.record({"status": "audit-error", "error": str(e), "timestamp": utc_timestamp()})
        return 1

    print_report(report)
    journal.record({"status": "audit-complete", "timestamp": utc_timestamp(), **report.to_dict()})
    return 0


if __name__ == "__main__":
    sys.exit(main())
