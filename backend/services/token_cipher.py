"""Encryption overlay for Plaid access tokens.

Tokens are encrypted with AES-256-GCM and stored as three hex fields,
``iv:authTag:ciphertext``, in ``plaid_items.access_token_enc``. A stored
token is either :class:`PlainToken` or :class:`EncryptedToken`; only
:func:`resolve_access_token` turns it into a usable credential, and it
decrypts only when the encrypted field is populated.
"""

import logging
import os
import re
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

logger = logging.getLogger(__name__)

_HEX_KEY_RE = re.compile(r"^[0-9a-fA-F]{64}$")

_IV_BYTES = 16
_TAG_BYTES = 16


class CredentialError(Exception):
    """An access token cannot be encrypted or decrypted."""

    pass


@dataclass(frozen=True)
class PlainToken:
    """Access token stored in plaintext."""

    value: str


@dataclass(frozen=True)
class EncryptedToken:
    """Access token stored as ``iv:authTag:ciphertext`` hex."""

    ciphertext: str


StoredToken = PlainToken | EncryptedToken


def looks_encrypted(text: str | None) -> bool:
    """Return True if ``text`` has the three-part ``iv:tag:ciphertext`` shape."""
    return bool(text) and text.count(":") == 2


class TokenCipher:
    """AES-256-GCM cipher bound to one 32-byte key."""

    def __init__(self, key: bytes):
        if len(key) != 32:
            raise CredentialError("ENCRYPTION_KEY must be 32 bytes")
        self._aesgcm = AESGCM(key)

    @classmethod
    def from_hex(cls, hex_key: str | None) -> "TokenCipher":
        """Build a cipher from a 64-character hex key.

        Raises:
            CredentialError: If the key is missing or malformed.
        """
        if not hex_key or not _HEX_KEY_RE.match(hex_key):
            raise CredentialError("ENCRYPTION_KEY must be 64 hex characters (32 bytes)")
        return cls(bytes.fromhex(hex_key))

    def encrypt(self, plaintext: str) -> str:
        """Encrypt ``plaintext`` with a fresh random IV."""
        iv = os.urandom(_IV_BYTES)
        try:
            sealed = self._aesgcm.encrypt(iv, plaintext.encode("utf-8"), None)
        except (OverflowError, UnicodeEncodeError) as e:
            raise CredentialError(f"Cannot encrypt access token: {e}") from e
        # AESGCM appends the tag to the ciphertext
        ciphertext, tag = sealed[:-_TAG_BYTES], sealed[-_TAG_BYTES:]
        return f"{iv.hex()}:{tag.hex()}:{ciphertext.hex()}"

    def decrypt(self, token: str) -> str:
        """Decrypt an ``iv:authTag:ciphertext`` string.

        Raises:
            CredentialError: If the format is invalid or authentication fails.
        """
        parts = token.split(":")
        if len(parts) != 3:
            raise CredentialError("Invalid ciphertext format")
        try:
            iv, tag, ciphertext = (bytes.fromhex(p) for p in parts)
        except ValueError as e:
            raise CredentialError("Invalid ciphertext format") from e
        if len(tag) != _TAG_BYTES or len(iv) < 8:
            raise CredentialError("Invalid ciphertext format")
        try:
            plaintext = self._aesgcm.decrypt(iv, ciphertext + tag, None)
        except InvalidTag as e:
            raise CredentialError("Access token failed authentication (wrong ENCRYPTION_KEY?)") from e
        return plaintext.decode("utf-8")


def optional_cipher(hex_key: str | None) -> TokenCipher | None:
    """Return a cipher for ``hex_key``, or None when no key is configured."""
    if not hex_key:
        return None
    return TokenCipher.from_hex(hex_key)


def stored_token(item) -> StoredToken | None:
    """Return the authoritative stored form of an item's access token."""
    if item.access_token_enc:
        return EncryptedToken(item.access_token_enc)
    if item.access_token:
        return PlainToken(item.access_token)
    return None


def resolve_access_token(item, cipher: TokenCipher | None) -> str:
    """Turn an item's stored token into a usable access token.

    Raises:
        CredentialError: If the item has no token, or the token is
            encrypted and no valid key is available.
    """
    token = stored_token(item)
    if token is None:
        raise CredentialError(f"Item {item.item_id} has no access token")
    if isinstance(token, PlainToken):
        return token.value
    if cipher is None:
        raise CredentialError(
            f"Item {item.item_id} has an encrypted access token but no ENCRYPTION_KEY is configured"
        )
    return cipher.decrypt(token.ciphertext)


def store_access_token(item, access_token: str, cipher: TokenCipher | None) -> None:
    """Write a fresh access token onto ``item``, encrypted when a cipher is given."""
    if cipher is None:
        item.access_token = access_token
        item.access_token_enc = None
    else:
        item.access_token = None
        item.access_token_enc = cipher.encrypt(access_token)
