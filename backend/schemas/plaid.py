"""Pydantic schemas for the Plaid Link flow."""

from pydantic import BaseModel


class LinkTokenResponse(BaseModel):
    link_token: str


class ExchangeTokenRequest(BaseModel):
    public_token: str
    institution_id: str | None = None
    institution_name: str | None = None


class ExchangeTokenResponse(BaseModel):
    success: bool = True
    item_id: str
    institution_name: str | None = None


class PlaidItemResponse(BaseModel):
    """A linked item. The access token is never exposed."""

    id: str
    item_id: str
    institution_id: str | None = None
    institution_name: str | None = None
    encrypted: bool
    created_at: str | None = None
