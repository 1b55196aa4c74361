"""CSV export of stored transactions."""

import csv
import logging
from pathlib import Path

from sqlalchemy.orm import Session

from models import Account, Transaction

logger = logging.getLogger(__name__)

CSV_HEADER = [
    "Date",
    "Account",
    "Account Type",
    "Last 4",
    "Transaction Name",
    "Merchant",
    "Amount",
    "Currency",
    "Category",
    "Confidence",
    "Original Category",
]


def _cell(value) -> str:
    return "" if value is None else str(value)


def export_rows(db: Session) -> list[list[str]]:
    """Build CSV rows for every transaction, newest first.

    Transactions are left-joined to accounts on the provider account id;
    a transaction whose account is unknown is exported as ``Unknown``.
    """
    rows = (
        db.query(Transaction, Account)
        .outerjoin(Account, Transaction.account_id == Account.account_id)
        .order_by(Transaction.posted_at.desc(), Transaction.transaction_id)
        .all()
    )

    out = []
    for txn, account in rows:
        out.append([
            _cell(txn.posted_at.isoformat() if txn.posted_at else None),
            (account.name if account and account.name else "Unknown"),
            _cell(account.type if account else None),
            _cell(account.mask if account else None),
            _cell(txn.name),
            _cell(txn.merchant),
            _cell(float(txn.amount) if txn.amount is not None else None),
            _cell(txn.iso_currency),
            _cell(txn.category),
            _cell(txn.confidence),
            _cell(txn.raw_category),
        ])
    return out


def export_transactions_csv(db: Session, output_path: str | Path) -> int:
    """Write all transactions to ``output_path`` as CSV.

    Returns:
        Number of transaction rows written (excluding the header).
    """
    rows = export_rows(db)
    path = Path(output_path)
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        writer.writerows(rows)

    logger.info("Exported %d transactions to %s", len(rows), path)
    return len(rows)
