#!/usr/bin/env python
"""Move Mint Lite secrets into the system keychain, or generate new ones.

Reads ``PLAID_CLIENT_ID``, ``PLAID_SECRET``, ``ENCRYPTION_KEY`` and
``API_KEY`` from the backend ``.env`` file and stores each non-empty value
via ``keyring``. Settings read the keychain before the environment, so the
values can then be removed from ``.env`` with ``--clean``.

``--generate-encryption-key`` and ``--generate-api-key`` create fresh random
secrets (32 bytes, hex) and store them directly. Generating a new
ENCRYPTION_KEY makes previously encrypted access tokens unreadable; re-link
those items or keep the old key.

Usage:
    cd backend
    python -m scripts.store_credentials                        # .env -> keychain
    python -m scripts.store_credentials --clean                # ... and strip .env
    python -m scripts.store_credentials --generate-api-key
"""

import argparse
import re
import secrets
import sys
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import dotenv_values

from services.credential_manager import CREDENTIAL_KEYS, get_credential, set_credential


@dataclass
class StoreResult:
    stored: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def store_from_env(env_path: Path) -> StoreResult:
    """Copy every non-empty credential in ``env_path`` into the keychain."""
    values = dotenv_values(env_path)
    result = StoreResult()

    for key in sorted(CREDENTIAL_KEYS):
        value = values.get(key)
        if not value:
            result.missing.append(key)
        elif get_credential(key) == value:
            result.unchanged.append(key)
        elif set_credential(key, value):
            result.stored.append(key)
        else:
            result.failed.append(key)
    return result


def generate_secret(key: str) -> str | None:
    """Store a fresh 64-hex-character secret under ``key``.

    Returns:
        The new value, or None if it could not be stored.
    """
    value = secrets.token_hex(32)
    return value if set_credential(key, value) else None


def strip_env_file(env_path: Path, keys: list[str]) -> int:
    """Remove ``KEY=`` lines for ``keys`` from the .env file, keeping everything else."""
    if not keys:
        return 0
    pattern = re.compile(r"^(" + "|".join(re.escape(k) for k in keys) + r")\s*=")
    lines = env_path.read_text().splitlines(keepends=True)
    kept = [line for line in lines if not pattern.match(line)]
    env_path.write_text("".join(kept))
    return len(lines) - len(kept)


def print_result(result: StoreResult) -> None:
    for label, marker, keys in (
        ("Stored in keychain", "+", result.stored),
        ("Already in keychain", "=", result.unchanged),
        ("Not set in .env", "-", result.missing),
        ("Failed", "!", result.failed),
    ):
        if keys:
            print(f"\n  {label} ({len(keys)}):")
            for key in keys:
                print(f"    {marker} {key}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Store Mint Lite secrets in the system keychain")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=Path(__file__).parent.parent / ".env",
        help="Path to .env file (default: backend/.env)",
    )
    parser.add_argument("--clean", action="store_true", help="Remove stored secrets from .env")
    parser.add_argument("--generate-encryption-key", action="store_true", help="Generate a new ENCRYPTION_KEY")
    parser.add_argument("--generate-api-key", action="store_true", help="Generate a new API_KEY")
    args = parser.parse_args(argv)

    generate = [
        key for key, wanted in (
            ("ENCRYPTION_KEY", args.generate_encryption_key),
            ("API_KEY", args.generate_api_key),
        ) if wanted
    ]
    if generate:
        status = 0
        for key in generate:
            value = generate_secret(key)
            if value is None:
                print(f"Failed to store {key} in keychain", file=sys.stderr)
                status = 1
            else:
                print(f"{key}={value}")
        return status

    if not args.env_file.exists():
        print(f"No .env file found at {args.env_file}", file=sys.stderr)
        return 1

    result = store_from_env(args.env_file)
    print_result(result)

    if args.clean:
        removed = strip_env_file(args.env_file, result.stored + result.unchanged)
        print(f"\nRemoved {removed} line(s) from {args.env_file}")
    return 1 if result.failed else 0


if __name__ == "__main__":
    sys.exit(main())
