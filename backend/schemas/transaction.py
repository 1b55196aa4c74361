"""Pydantic schemas for transactions."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class TransactionResponse(BaseModel):
    """Schema for Transaction API response."""

    id: str
    transaction_id: str
    item_id: Optional[str] = None
    account_id: Optional[str] = None
    name: Optional[str] = None
    merchant: Optional[str] = None
    amount: Optional[Decimal] = None
    iso_currency: Optional[str] = None
    posted_at: Optional[date] = None
    raw_category: Optional[str] = None
    category: Optional[str] = None
    confidence: Optional[float] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TransactionListResponse(BaseModel):
    """A page of transactions, newest first."""

    transactions: list[TransactionResponse]
    total: int
    limit: int
    offset: int
