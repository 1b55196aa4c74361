#!/usr/bin/env python
"""Export all stored transactions to CSV.

Usage:
    cd backend
    python -m scripts.export_csv [--output FILE]
"""

import argparse

from config import settings
from scripts.common import open_session
from services.export_service import export_transactions_csv


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Export transactions to CSV")
    parser.add_argument(
        "--output",
        default=settings.EXPORT_PATH,
        help=f"Output file (default: {settings.EXPORT_PATH})",
    )
    args = parser.parse_args(argv)

    with open_session() as db:
        count = export_transactions_csv(db, args.output)

    print(f"Exported to {args.output}")
    print(f"Total transactions: {count}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
