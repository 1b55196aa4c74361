"""Pydantic schemas for API request/response validation."""

from schemas.account import AccountListResponse, AccountResponse
from schemas.ingest import IngestReportResponse, ItemErrorResponse, ManualIngestResponse
from schemas.plaid import (
    ExchangeTokenRequest,
    ExchangeTokenResponse,
    LinkTokenResponse,
    PlaidItemResponse,
)
from schemas.transaction import TransactionListResponse, TransactionResponse

__all__ = [
    "AccountListResponse",
    "AccountResponse",
    "ExchangeTokenRequest",
    "ExchangeTokenResponse",
    "IngestReportResponse",
    "ItemErrorResponse",
    "LinkTokenResponse",
    "ManualIngestResponse",
    "PlaidItemResponse",
    "TransactionListResponse",
    "TransactionResponse",
]
