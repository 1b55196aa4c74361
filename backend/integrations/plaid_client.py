"""Plaid API client.

Implements the TransactionProvider protocol on top of the plaid-python
SDK: Link token creation, public token exchange, account listing and
paginated transaction fetches.

Every SDK call goes through :meth:`PlaidClient._call`, which applies the
configured request timeout and converts SDK errors (API responses and
response parsing) and transport errors into the
:mod:`integrations.exceptions` hierarchy, so callers only ever see
``ProviderError`` subclasses.
"""

import json
import logging
from datetime import date

from plaid import ApiException, Environment
from plaid.api.plaid_api import PlaidApi
from plaid.api_client import ApiClient
from plaid.configuration import Configuration
from plaid.exceptions import OpenApiException
from plaid.model.accounts_get_request import AccountsGetRequest
from plaid.model.country_code import CountryCode
from plaid.model.item_public_token_exchange_request import ItemPublicTokenExchangeRequest
from plaid.model.link_token_create_request import LinkTokenCreateRequest
from plaid.model.link_token_create_request_user import LinkTokenCreateRequestUser
from plaid.model.products import Products
from plaid.model.transactions_get_request import TransactionsGetRequest
from plaid.model.transactions_get_request_options import TransactionsGetRequestOptions
from urllib3.exceptions import HTTPError as TransportError

from integrations.exceptions import (
    ProviderAPIError,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderDataError,
)
from integrations.parsing_utils import enum_text, parse_iso_date, to_decimal
from integrations.provider_protocol import (
    LinkedItemCredentials,
    ProviderAccount,
    ProviderTransaction,
)

logger = logging.getLogger(__name__)

PROVIDER_NAME = "Plaid"

# Map PLAID_ENVIRONMENT setting to SDK host URLs.
# Plaid's Development environment is deprecated; only sandbox and production
# are supported.
_ENVIRONMENT_MAP: dict[str, str] = {
    "sandbox": Environment.Sandbox,
    "production": Environment.Production,
}

# Plaid caps /transactions/get pages at 500.
_PAGE_SIZE = 500

_AUTH_ERROR_CODES = frozenset({"INVALID_ACCESS_TOKEN", "ITEM_LOGIN_REQUIRED", "INVALID_API_KEYS"})


class PlaidClient:
    """Wrapper around the Plaid API.

    Credentials are passed in by the caller (built once from
    :class:`config.Settings`); the client never reads configuration itself.
    """

    def __init__(
        self,
        client_id: str,
        secret: str,
        environment: str = "sandbox",
        timeout: float | None = None,
        client_name: str = "Mint Lite",
    ):
        self._client_id = client_id
        self._secret = secret
        self._environment = environment
        self._timeout = timeout
        self._client_name = client_name

        # Lazily created on first use
        self._api: PlaidApi | None = None

    @classmethod
    def from_settings(cls, settings) -> "PlaidClient":
        """Build a client from an application ``Settings`` value."""
        return cls(
            client_id=settings.PLAID_CLIENT_ID,
            secret=settings.PLAID_SECRET,
            environment=settings.PLAID_ENVIRONMENT,
            timeout=settings.PLAID_TIMEOUT_SECONDS,
        )

    def _get_api(self) -> PlaidApi:
        """Return (and cache) a PlaidApi instance."""
        if self._api is None:
            env_key = self._environment.lower()
            host = _ENVIRONMENT_MAP.get(env_key)
            if host is None:
                logger.warning(
                    "Unknown PLAID_ENVIRONMENT=%r, falling back to sandbox. "
                    "Valid values: sandbox, production",
                    self._environment,
                )
                host = Environment.Sandbox
            logger.info(
                "Plaid API client: environment=%s, host=%s, client_id=<configured>",
                env_key,
                host,
            )
            configuration = Configuration(
                host=host,
                api_key={
                    "clientId": self._client_id,
                    "secret": self._secret,
                },
            )
            self._api = PlaidApi(ApiClient(configuration))
        return self._api

    @property
    def provider_name(self) -> str:
        """Return the provider name for logs and error records."""
        return PROVIDER_NAME

    def is_configured(self) -> bool:
        """Check if Plaid credentials are configured."""
        return bool(self._client_id) and bool(self._secret)

    def _call(self, method_name: str, request):
        """Invoke one SDK endpoint with timeout and error mapping."""
        api = self._get_api()
        kwargs = {}
        if self._timeout:
            kwargs["_request_timeout"] = self._timeout
        try:
            return getattr(api, method_name)(request, **kwargs)
        except ApiException as e:
            raise self._map_api_exception(e) from e
        except OpenApiException as e:
            raise ProviderDataError(
                f"Plaid response could not be parsed: {e}", provider_name=PROVIDER_NAME
            ) from e
        except TransportError as e:
            raise ProviderConnectionError(
                f"Plaid request failed: {e}", provider_name=PROVIDER_NAME
            ) from e

    # ------------------------------------------------------------------
    # Link Token & Token Exchange
    # ------------------------------------------------------------------

    def create_link_token(self, user_id: str) -> str:
        """Create a Plaid Link token for the browser-based auth flow.

        Returns:
            The link_token string to be passed to Plaid Link.
        """
        request = LinkTokenCreateRequest(
            user=LinkTokenCreateRequestUser(client_user_id=user_id),
            client_name=self._client_name,
            products=[Products("transactions")],
            country_codes=[CountryCode("US")],
            language="en",
        )
        response = self._call("link_token_create", request)
        return response["link_token"]

    def exchange_public_token(self, public_token: str) -> LinkedItemCredentials:
        """Exchange a Plaid Link public_token for a permanent access_token."""
        request = ItemPublicTokenExchangeRequest(public_token=public_token)
        response = self._call("item_public_token_exchange", request)
        return LinkedItemCredentials(
            access_token=response["access_token"],
            item_id=response["item_id"],
        )

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def get_accounts(self, access_token: str) -> list[ProviderAccount]:
        """Fetch the accounts under one Item."""
        response = self._call("accounts_get", AccountsGetRequest(access_token=access_token))

        accounts: list[ProviderAccount] = []
        for acct in response.get("accounts", []) or []:
            acct_id = acct.get("account_id")
            if not acct_id:
                continue
            accounts.append(ProviderAccount(
                id=acct_id,
                name=acct.get("name") or acct.get("official_name") or "Plaid Account",
                type=enum_text(acct.get("type")),
                subtype=enum_text(acct.get("subtype")),
                mask=acct.get("mask"),
            ))
        return accounts

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def get_transactions(
        self,
        access_token: str,
        start_date: date,
        end_date: date,
    ) -> list[ProviderTransaction]:
        """Fetch every transaction in the window, following offset pagination.

        Raises:
            ProviderError: On any API, transport, or response-shape failure.
        """
        transactions: list[ProviderTransaction] = []
        total_transactions = None
        offset = 0

        while True:
            request = TransactionsGetRequest(
                access_token=access_token,
                start_date=start_date,
                end_date=end_date,
                options=TransactionsGetRequestOptions(count=_PAGE_SIZE, offset=offset),
            )
            response = self._call("transactions_get", request)

            if total_transactions is None:
                total_transactions = response.get("total_transactions", 0) or 0

            page = response.get("transactions", []) or []
            for txn in page:
                transactions.append(self._map_transaction(txn))

            offset += len(page)
            if not page or offset >= total_transactions:
                break

        logger.debug(
            "Plaid: %d transactions between %s and %s",
            len(transactions), start_date, end_date,
        )
        return transactions

    def _map_transaction(self, txn) -> ProviderTransaction:
        """Map a Plaid transaction to a ProviderTransaction."""
        transaction_id = txn.get("transaction_id")
        posted = parse_iso_date(txn.get("date"))
        if not transaction_id or posted is None:
            raise ProviderDataError(
                f"Plaid transaction missing id or date: {transaction_id!r}",
                provider_name=PROVIDER_NAME,
            )

        currency = txn.get("iso_currency_code") or txn.get("unofficial_currency_code")

        return ProviderTransaction(
            transaction_id=transaction_id,
            account_id=txn.get("account_id") or "",
            name=txn.get("name") or "",
            amount=to_decimal(txn.get("amount")),
            date=posted,
            currency=currency,
            merchant_name=txn.get("merchant_name"),
            category=self._category_hierarchy(txn),
        )

    @staticmethod
    def _category_hierarchy(txn) -> list[str]:
        """Return the legacy category list, or the personal-finance category.

        Newer Plaid accounts no longer receive the legacy ``category``
        field; ``personal_finance_category`` carries the same information
        as a primary/detailed pair.
        """
        legacy = txn.get("category")
        if legacy:
            return [str(c) for c in legacy]
        pfc = txn.get("personal_finance_category")
        if pfc:
            return [str(c) for c in (pfc.get("primary"), pfc.get("detailed")) if c]
        return []

    # ------------------------------------------------------------------
    # Error mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _map_api_exception(exc: ApiException):
        """Map a Plaid ApiException to a ProviderError subclass."""
        status = exc.status or 0
        message = str(exc)

        error_code = ""
        try:
            body = json.loads(exc.body) if exc.body else {}
        except (TypeError, ValueError):
            body = {}
        if isinstance(body, dict):
            error_code = body.get("error_code", "") or ""
            error_message = body.get("error_message", "")
            if error_message:
                message = f"Plaid error ({error_code}): {error_message}"

        if status in (401, 403) or error_code in _AUTH_ERROR_CODES:
            return ProviderAuthError(message, provider_name=PROVIDER_NAME)
        return ProviderAPIError(
            message,
            provider_name=PROVIDER_NAME,
            status_code=status or None,
            error_code=error_code,
        )
