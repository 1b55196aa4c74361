"""Plaid Link API endpoints.

Provides the server-side endpoints for the Plaid Link browser-based
authentication flow: creating link tokens, exchanging public tokens,
and listing linked institutions (PlaidItems).
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from api.dependencies import get_journal, get_plaid_client, get_token_cipher
from database import DEFAULT_USER_ID, get_db
from integrations.exceptions import ProviderError
from integrations.plaid_client import PlaidClient
from models.plaid_item import PlaidItem
from schemas import ExchangeTokenRequest, ExchangeTokenResponse, LinkTokenResponse, PlaidItemResponse
from services.run_journal import RunJournal, utc_timestamp
from services.token_cipher import TokenCipher, store_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/plaid", tags=["plaid"])


@router.post("/link-token", response_model=LinkTokenResponse)
def create_link_token(
    client: PlaidClient = Depends(get_plaid_client),
    journal: RunJournal = Depends(get_journal),
):
    """Create a Plaid Link token for the frontend."""
    if not client.is_configured():
        raise HTTPException(status_code=400, detail="Plaid is not configured")

    try:
        link_token = client.create_link_token(DEFAULT_USER_ID)
    except ProviderError as e:
        error_detail = str(e)
        journal.record({
            "status": "error",
            "action": "link-token-create",
            "error": error_detail,
            "timestamp": utc_timestamp(),
        })
        # Surface actionable hint for the most common error
        if "INVALID_API_KEYS" in error_detail:
            hint = (
                "Plaid rejected the credentials. Check that PLAID_ENVIRONMENT "
                "matches your keys (sandbox or production). "
                "Each environment has different secrets."
            )
            logger.error("Plaid INVALID_API_KEYS: %s", hint)
            raise HTTPException(status_code=400, detail=hint)
        logger.error("Failed to create Plaid link token: %s", e)
        raise HTTPException(status_code=500, detail="Failed to create link token")

    journal.record({
        "status": "link-token-created",
        "timestamp": utc_timestamp(),
        "link_token": link_token[:20] + "...",
    })
    return LinkTokenResponse(link_token=link_token)


@router.post("/exchange-token", response_model=ExchangeTokenResponse)
def exchange_token(
    body: ExchangeTokenRequest,
    db: Session = Depends(get_db),
    client: PlaidClient = Depends(get_plaid_client),
    cipher: TokenCipher | None = Depends(get_token_cipher),
    journal: RunJournal = Depends(get_journal),
):
    """Exchange a Plaid Link public_token and store the resulting Item."""
    if not client.is_configured():
        raise HTTPException(status_code=400, detail="Plaid is not configured")

    try:
        credentials = client.exchange_public_token(body.public_token)
    except ProviderError as e:
        logger.error("Failed to exchange Plaid token: %s", e)
        journal.record({
            "status": "error",
            "action": "exchange-token",
            "error": str(e),
            "timestamp": utc_timestamp(),
        })
        raise HTTPException(status_code=500, detail="Failed to exchange token")

    item_id = credentials.item_id

    # Upsert: re-linking the same institution replaces its token
    item = db.query(PlaidItem).filter(PlaidItem.item_id == item_id).first()
    if item is None:
        item = PlaidItem(item_id=item_id, user_id=DEFAULT_USER_ID)
        db.add(item)
        logger.info("Created PlaidItem %s for %s", item_id, body.institution_name)
    else:
        logger.info("Updated PlaidItem %s", item_id)
    store_access_token(item, credentials.access_token, cipher)
    if body.institution_id:
        item.institution_id = body.institution_id
    if body.institution_name:
        item.institution_name = body.institution_name

    db.commit()

    journal.record({
        "status": "token-exchanged",
        "timestamp": utc_timestamp(),
        "item_id": item_id,
    })
    return ExchangeTokenResponse(item_id=item_id, institution_name=body.institution_name)


@router.get("/items", response_model=list[PlaidItemResponse])
def list_items(db: Session = Depends(get_db)):
    """List all linked Plaid Items."""
    items = db.query(PlaidItem).order_by(PlaidItem.created_at.desc()).all()
    return [
        PlaidItemResponse(
            id=item.id,
            item_id=item.item_id,
            institution_id=item.institution_id,
            institution_name=item.institution_name,
            encrypted=item.access_token_enc is not None,
            created_at=item.created_at.isoformat() if item.created_at else None,
        )
        for item in items
    ]
