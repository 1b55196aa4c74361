"""Provider protocol definitions for the bank-aggregation provider.

This module defines the normalized records and the client interface the
ingest pipeline depends on. The Plaid client implements it; tests use a
mock implementation.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Protocol


@dataclass
class ProviderAccount:
    """Normalized account data from the provider."""

    id: str  # Provider's account_id
    name: str
    type: str | None = None  # e.g., "depository", "credit"
    subtype: str | None = None  # e.g., "checking"
    mask: str | None = None  # Last 4 digits


@dataclass
class ProviderTransaction:
    """Normalized posted transaction from the provider.

    Amount keeps the provider's sign convention: positive means money
    leaving the account.
    """

    transaction_id: str
    account_id: str
    name: str
    amount: Decimal | None
    date: date
    currency: str | None = None
    merchant_name: str | None = None
    category: list[str] = field(default_factory=list)  # Category hierarchy, broadest first

    @property
    def raw_category(self) -> str | None:
        """Comma-joined category hierarchy, or None when the provider sent none."""
        return ",".join(self.category) if self.category else None


@dataclass
class LinkedItemCredentials:
    """Result of exchanging a Link public token."""

    access_token: str
    item_id: str


class TransactionProvider(Protocol):
    """Protocol that the aggregation provider client must implement.

    Every method that talks to the provider raises a subclass of
    :class:`integrations.exceptions.ProviderError` on failure.
    """

    @property
    def provider_name(self) -> str:
        """Return the provider name (e.g., 'Plaid')."""
        ...

    def is_configured(self) -> bool:
        """Check if this provider has credentials configured."""
        ...

    def create_link_token(self, user_id: str) -> str:
        """Create a short-lived token for the client-side link handshake."""
        ...

    def exchange_public_token(self, public_token: str) -> LinkedItemCredentials:
        """Exchange a Link public token for a permanent access token."""
        ...

    def get_accounts(self, access_token: str) -> list[ProviderAccount]:
        """Fetch all accounts under one linked item."""
        ...

    def get_transactions(
        self,
        access_token: str,
        start_date: date,
        end_date: date,
    ) -> list[ProviderTransaction]:
        """Fetch every posted transaction in ``[start_date, end_date]``.

        Implementations follow the provider's pagination to completion.
        """
        ...
