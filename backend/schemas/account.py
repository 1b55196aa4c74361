"""Pydantic schemas for accounts."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class AccountResponse(BaseModel):
    """Schema for Account API response."""

    id: str
    account_id: str
    item_id: Optional[str] = None
    source: str
    name: Optional[str] = None
    type: Optional[str] = None
    subtype: Optional[str] = None
    mask: Optional[str] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AccountListResponse(BaseModel):
    accounts: list[AccountResponse]
    total: int
