"""Typed exception hierarchy for provider errors.

Everything the ingest pipeline treats as a per-item fault derives from
:class:`ProviderError`. Anything else (storage, programming errors) is
allowed to propagate.

``retriable`` tells the operator whether running the ingest again later
may succeed without intervention. It is copied onto the item's error
record in the run report.
"""


class ProviderError(Exception):
    """Base exception for all provider-related errors."""

    retriable = False

    def __init__(self, message: str, provider_name: str = ""):
        self.provider_name = provider_name
        super().__init__(message)


class ProviderAuthError(ProviderError):
    """Credentials or access token rejected (HTTP 401/403, ITEM_LOGIN_REQUIRED).

    The item has to be re-linked before another run can succeed.
    """


class ProviderConnectionError(ProviderError):
    """Timeouts, DNS failures, refused connections."""

    retriable = True


class ProviderAPIError(ProviderError):
    """Any other 4xx/5xx response, with Plaid's ``error_code`` if present."""

    def __init__(
        self,
        message: str,
        provider_name: str = "",
        status_code: int | None = None,
        error_code: str = "",
    ):
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message, provider_name)

    @property
    def retriable(self) -> bool:
        # Rate limits and server-side failures
        return self.status_code is not None and (self.status_code == 429 or self.status_code >= 500)


class ProviderDataError(ProviderError):
    """Response arrived but could not be mapped (bad shape, unknown enum value)."""
