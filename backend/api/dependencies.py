"""Shared FastAPI dependencies.

Each collaborator is built from the process-wide ``Settings`` value via a
dependency, so tests can swap any of them with ``app.dependency_overrides``.
"""

import logging
import secrets

from fastapi import Depends, Header, HTTPException

from config import ConfigurationError, Settings, settings
from integrations.plaid_client import PlaidClient
from services.ingest_service import IngestService
from services.run_journal import RunJournal
from services.token_cipher import CredentialError, TokenCipher, optional_cipher

logger = logging.getLogger(__name__)


def get_settings() -> Settings:
    """Return the settings value built at process start."""
    return settings


def get_plaid_client(app_settings: Settings = Depends(get_settings)) -> PlaidClient:
    """Dependency for injecting the Plaid client (overridable in tests)."""
    return PlaidClient.from_settings(app_settings)


def get_token_cipher(app_settings: Settings = Depends(get_settings)) -> TokenCipher | None:
    """Cipher for access tokens, or None when no ENCRYPTION_KEY is configured."""
    try:
        return optional_cipher(app_settings.ENCRYPTION_KEY)
    except CredentialError as e:
        logger.error("Invalid ENCRYPTION_KEY: %s", e)
        raise HTTPException(status_code=500, detail="Token encryption is misconfigured")


def get_ingest_service(app_settings: Settings = Depends(get_settings)) -> IngestService:
    """Build the ingest pipeline for one request."""
    try:
        return IngestService.from_settings(app_settings)
    except ConfigurationError as e:
        logger.error("Ingest unavailable: %s", e)
        raise HTTPException(status_code=400, detail="Plaid is not configured")


def get_journal(app_settings: Settings = Depends(get_settings)) -> RunJournal:
    return RunJournal.from_settings(app_settings)


def require_api_key(
    x_api_key: str | None = Header(default=None),
    app_settings: Settings = Depends(get_settings),
) -> None:
    """Reject requests whose ``X-API-Key`` header does not match API_KEY.

    When no API_KEY is configured every request is rejected.
    """
    expected = app_settings.API_KEY
    if not x_api_key or not expected or not secrets.compare_digest(x_api_key, expected):
        raise HTTPException(
            status_code=401,
            detail="Unauthorized - Invalid or missing API key",
        )
