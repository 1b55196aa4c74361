"""Encrypt plaintext Plaid access tokens in place."""

import logging
from dataclasses import asdict, dataclass

from sqlalchemy import inspect, text
from sqlalchemy.orm import Session

from models import PlaidItem
from services.token_cipher import CredentialError, TokenCipher, looks_encrypted

logger = logging.getLogger(__name__)


@dataclass
class TokenMigrationReport:
    candidates: int = 0
    encrypted: int = 0
    skipped: int = 0
    errors: int = 0
    total_encrypted_db: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def ensure_encrypted_column(db: Session) -> bool:
    """Add ``plaid_items.access_token_enc`` to databases created before it existed.

    Returns:
        True if the column was added.
    """
    columns = {c["name"] for c in inspect(db.get_bind()).get_columns("plaid_items")}
    if "access_token_enc" in columns:
        return False
    db.execute(text("ALTER TABLE plaid_items ADD COLUMN access_token_enc TEXT"))
    db.commit()
    logger.info("Added access_token_enc column")
    return True


def encrypt_plaintext_tokens(db: Session, cipher: TokenCipher) -> TokenMigrationReport:
    """Populate ``access_token_enc`` for every item that only has a plaintext token.

    The plaintext column is left in place so the migration can be verified
    before it is cleared. Rows whose plaintext already has the ciphertext
    shape are skipped. A failure on one row is counted and the rest continue.
    """
    report = TokenMigrationReport()
    items = (
        db.query(PlaidItem)
        .filter(PlaidItem.access_token_enc.is_(None), PlaidItem.access_token.isnot(None))
        .all()
    )
    report.candidates = len(items)

    for item in items:
        if looks_encrypted(item.access_token):
            logger.info("Skipping item %s (already encrypted format)", item.item_id)
            report.skipped += 1
            continue
        try:
            item.access_token_enc = cipher.encrypt(item.access_token)
        except CredentialError as e:
            logger.error("Failed to encrypt token for item %s: %s", item.item_id, e)
            report.errors += 1
            continue
        db.commit()
        report.encrypted += 1
        logger.info("Encrypted token for item %s", item.item_id)

    report.total_encrypted_db = (
        db.query(PlaidItem).filter(PlaidItem.access_token_enc.isnot(None)).count()
    )
    return report
