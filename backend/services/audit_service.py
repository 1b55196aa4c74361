"""Database and export integrity audit."""

import hashlib
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path

from sqlalchemy.orm import Session

from models import Account, PlaidItem, Transaction, User

logger = logging.getLogger(__name__)

AUDITED_TABLES = {
    "users": User,
    "plaid_items": PlaidItem,
    "accounts": Account,
    "transactions": Transaction,
}

_CHUNK_SIZE = 1 << 16


@dataclass
class FileDigest:
    path: str
    exists: bool
    sha256: str | None = None


@dataclass
class AuditReport:
    """Checksums of the database and CSV export plus table row counts."""

    database: FileDigest
    csv: FileDigest
    row_counts: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


def compute_file_hash(path: str | Path | None) -> str | None:
    """SHA-256 hex digest of a file, or None if it does not exist."""
    if path is None:
        return None
    path = Path(path)
    if not path.is_file():
        return None
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def get_row_counts(db: Session) -> dict[str, int]:
    """Row count for each audited table."""
    return {name: db.query(model).count() for name, model in AUDITED_TABLES.items()}


def _digest(path: str | Path | None) -> FileDigest:
    sha = compute_file_hash(path)
    return FileDigest(path=str(path) if path else "", exists=sha is not None, sha256=sha)


def run_audit(db: Session, db_path: str | Path | None, csv_path: str | Path | None) -> AuditReport:
    """Compute checksums and row counts.

    Args:
        db: Database session
        db_path: SQLite file path (None for non-file databases)
        csv_path: CSV export path

    Returns:
        AuditReport
    """
    report = AuditReport(
        database=_digest(db_path),
        csv=_digest(csv_path),
        row_counts=get_row_counts(db),
    )
    logger.info(
        "Audit: db sha256=%s, csv sha256=%s, rows=%s",
        report.database.sha256, report.csv.sha256, report.row_counts,
    )
    return report
