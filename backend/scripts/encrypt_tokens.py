#!/usr/bin/env python
"""Encrypt existing plaintext Plaid access tokens with ENCRYPTION_KEY.

Usage:
    cd backend
    python -m scripts.encrypt_tokens

The script:
1. Adds the ``access_token_enc`` column to older databases
2. Encrypts every token that has no encrypted form yet
3. Prints and journals a summary

Plaintext tokens are kept until you have verified ingest works with the
encrypted ones.
"""

import sys

from config import settings
from logging_config import setup_logging
from scripts.common import fail, open_session
from services.run_journal import RunJournal, utc_timestamp
from services.token_cipher import CredentialError, TokenCipher
from services.token_migration import encrypt_plaintext_tokens, ensure_encrypted_column


def main() -> int:
    setup_logging()
    try:
        cipher = TokenCipher.from_hex(settings.ENCRYPTION_KEY)
    except CredentialError as e:
        fail(str(e))

    journal = RunJournal.from_settings(settings)
    print("Starting token encryption migration...")
    try:
        with open_session() as db:
            ensure_encrypted_column(db)
            report = encrypt_plaintext_tokens(db, cipher)
    except Exception as e:
        print(f"Migration failed: {e}", file=sys.stderr)
        journal.record({"status": "migration-error", "error": str(e), "timestamp": utc_timestamp()})
        return 1

    print("\nMigration complete:")
    print(f"- Items without encrypted token: {report.candidates}")
    print(f"- Encrypted: {report.encrypted}")
    print(f"- Skipped: {report.skipped}")
    print(f"- Errors: {report.errors}")
    print(f"- Total encrypted in DB: {report.total_encrypted_db}")
    journal.record({"status": "migration-complete", "timestamp": utc_timestamp(), **report.to_dict()})

    if report.encrypted:
        print("\nWARNING: Plain text tokens are still in the access_token column.")
        print("Clear them after verifying the encrypted tokens work:")
        print("  UPDATE plaid_items SET access_token = NULL WHERE access_token_enc IS NOT NULL;")
    return 0


if __name__ == "__main__":
    sys.exit(main())
