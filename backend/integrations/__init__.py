"""External API integrations.

This package contains:
- Provider protocol: the interface the ingest pipeline talks to
- Exceptions: typed provider errors
- Plaid client: integration with the Plaid API
"""

from integrations.exceptions import ProviderError
from integrations.provider_protocol import (
    LinkedItemCredentials,
    ProviderAccount,
    ProviderTransaction,
    TransactionProvider,
)

__all__ = [
    "LinkedItemCredentials",
    "ProviderAccount",
    "ProviderError",
    "ProviderTransaction",
    "TransactionProvider",
]
