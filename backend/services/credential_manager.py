"""Keyring-backed storage for Mint Lite secrets.

The Plaid credentials, the token encryption key and the API key can live
in the system keychain (macOS Keychain, Secret Service, Windows Credential
Locker) instead of ``.env``. ``keyring`` is imported lazily; without it
every lookup misses and settings fall back to the environment.
"""

import logging

logger = logging.getLogger(__name__)

SERVICE_NAME = "mint-lite"

# Settings fields that are looked up in the keychain
CREDENTIAL_KEYS: frozenset[str] = frozenset(
    {
        "PLAID_CLIENT_ID",
        "PLAID_SECRET",
        "ENCRYPTION_KEY",
        "API_KEY",
    }
)


def _keyring():
    """Return the keyring module, or None if it is not installed."""
    try:
        import keyring
    except ImportError:
        return None
    return keyring


def get_credential(key: str) -> str | None:
    """Look up ``key`` in the keychain.

    Returns:
        The stored value, or ``None`` when absent or when no keychain
        backend is usable.
    """
    backend = _keyring()
    if backend is None:
        return None
    try:
        return backend.get_password(SERVICE_NAME, key)
    except Exception:
        logger.debug("Keychain lookup for %s failed", key, exc_info=True)
        return None


def set_credential(key: str, value: str) -> bool:
    """Store ``value`` under ``key``; only :data:`CREDENTIAL_KEYS` are accepted.

    Returns:
        ``True`` if the keychain accepted the value.
    """
    if key not in CREDENTIAL_KEYS:
        logger.warning("Refusing to store unknown credential %s", key)
        return False
    if not value or not value.strip():
        logger.warning("Refusing to store empty value for %s", key)
        return False

    backend = _keyring()
    if backend is None:
        logger.warning("keyring is not installed; cannot store %s", key)
        return False
    try:
        backend.set_password(SERVICE_NAME, key, value)
    except Exception:
        logger.warning("Keychain rejected %s", key, exc_info=True)
        return False
    logger.info("Stored %s in keychain", key)
    return True
