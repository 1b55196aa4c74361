"""Ingest service - pulls transactions and accounts for every linked item."""

import logging
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from config import ConfigurationError
from database import DEFAULT_USER_ID
from integrations.exceptions import ProviderError
from integrations.provider_protocol import (
    ProviderAccount,
    ProviderTransaction,
    TransactionProvider,
)
from models import Account, PlaidItem, Transaction
from services.categorizer import Categorizer
from services.token_cipher import CredentialError, TokenCipher, optional_cipher, resolve_access_token

logger = logging.getLogger(__name__)

# Dialect-specific INSERT constructs that support ON CONFLICT DO NOTHING.
_CONFLICT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": pg_insert,
}


def utc_today() -> date:
    """Today's calendar date in UTC."""
    return datetime.now(timezone.utc).date()


@dataclass
class ItemError:
    """A linked item that could not be processed during a run."""

    item_id: str
    message: str
    retriable: bool = False

    @classmethod
    def from_exception(cls, item_id: str, exc: Exception) -> "ItemError":
        retriable = isinstance(exc, ProviderError) and exc.retriable
        return cls(item_id=item_id, message=str(exc), retriable=retriable)


@dataclass
class IngestReport:
    """Aggregate result of one ingest run.

    ``total_inserted`` and ``total_categorized`` are always equal: every
    row is classified at the moment it is inserted.
    """

    lookback_days: int
    start_date: date
    end_date: date
    total_items: int = 0
    total_fetched: int = 0
    total_inserted: int = 0
    total_categorized: int = 0
    errors: list[ItemError] = field(default_factory=list)

    @property
    def failed_items(self) -> int:
        return len(self.errors)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["start_date"] = self.start_date.isoformat()
        data["end_date"] = self.end_date.isoformat()
        return data


@dataclass
class AccountRefreshReport:
    """Aggregate result of one account refresh."""

    total_items: int = 0
    total_accounts: int = 0
    errors: list[ItemError] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


class IngestService:
    """Fetches, classifies and stores provider data for all linked items.

    Items are processed one at a time. A provider or credential failure on
    one item is recorded in the report and the run moves on; storage errors
    are not caught and abort the run. Each insert is committed on its own,
    so rows written before an abort stay written.
    """

    def __init__(
        self,
        provider: TransactionProvider,
        categorizer: Optional[Categorizer] = None,
        token_cipher: Optional[TokenCipher] = None,
        default_lookback_days: int = 30,
        user_id: str = DEFAULT_USER_ID,
        today: Callable[[], date] = utc_today,
    ):
        """Initialize with the collaborators of a run.

        Args:
            provider: Client for the aggregation provider.
            categorizer: Rule-based categorizer. Defaults to the built-in rules.
            token_cipher: Cipher for encrypted access tokens, or None if no
                          key is configured.
            default_lookback_days: Window used when ``ingest`` is called
                                   without one.
            user_id: Owner recorded on inserted rows.
            today: Clock returning the window's end date.
        """
        self._provider = provider
        self._categorizer = categorizer or Categorizer()
        self._cipher = token_cipher
        self._default_lookback_days = default_lookback_days
        self._user_id = user_id
        self._today = today

    @classmethod
    def from_settings(
        cls,
        settings,
        provider: Optional[TransactionProvider] = None,
    ) -> "IngestService":
        """Build a service from application settings.

        Raises:
            ConfigurationError: If Plaid credentials are missing or the
                                encryption key is malformed.
        """
        if provider is None:
            from integrations.plaid_client import PlaidClient

            settings.require_plaid_credentials()
            provider = PlaidClient.from_settings(settings)

        try:
            cipher = optional_cipher(settings.ENCRYPTION_KEY)
        except CredentialError as e:
            raise ConfigurationError(str(e)) from e

        return cls(
            provider=provider,
            categorizer=Categorizer(),
            token_cipher=cipher,
            default_lookback_days=settings.INGEST_LOOKBACK_DAYS,
        )

    @property
    def default_lookback_days(self) -> int:
        return self._default_lookback_days

    def date_window(self, lookback_days: int) -> tuple[date, date]:
        """Return ``(today - lookback_days, today)``."""
        end_date = self._today()
        return end_date - timedelta(days=lookback_days), end_date

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def ingest(self, db: Session, lookback_days: Optional[int] = None) -> IngestReport:
        """Fetch, classify and store transactions for every linked item.

        Args:
            db: Database session
            lookback_days: Days of history to (re-)fetch. Defaults to the
                           configured window.

        Returns:
            IngestReport with run counters and per-item errors.

        Raises:
            ValueError: If ``lookback_days`` is not positive.
        """
        if lookback_days is None:
            lookback_days = self._default_lookback_days
        if lookback_days < 1:
            raise ValueError(f"lookback_days must be positive, got {lookback_days}")

        start_date, end_date = self.date_window(lookback_days)
        report = IngestReport(
            lookback_days=lookback_days,
            start_date=start_date,
            end_date=end_date,
        )

        items = self._list_items(db)
        report.total_items = len(items)
        if not items:
            logger.info("No linked items; nothing to ingest")
            return report

        logger.info(
            "Ingesting %d items, transactions from %s to %s",
            len(items), start_date, end_date,
        )

        for item in items:
            item_id = item.item_id
            try:
                access_token = resolve_access_token(item, self._cipher)
                transactions = self._provider.get_transactions(access_token, start_date, end_date)
            except (ProviderError, CredentialError) as e:
                logger.warning("Item %s: fetch failed: %s", item_id, e)
                report.errors.append(ItemError.from_exception(item_id, e))
                continue

            inserted = 0
            for txn in transactions:
                if self._insert_transaction(db, item_id, txn):
                    inserted += 1

            report.total_fetched += len(transactions)
            report.total_inserted += inserted
            report.total_categorized += inserted
            logger.info(
                "Item %s: %d fetched, %d new",
                item_id, len(transactions), inserted,
            )

        logger.info(
            "Ingest complete: %d items, %d fetched, %d inserted, %d errors",
            report.total_items, report.total_fetched,
            report.total_inserted, len(report.errors),
        )
        return report

    def _insert_transaction(self, db: Session, item_id: str, txn: ProviderTransaction) -> bool:
        """Classify and insert one transaction unless its id already exists.

        Returns:
            True if a new row was written.
        """
        raw_category = txn.raw_category
        classification = self._categorizer.classify(txn.name, txn.merchant_name, raw_category)

        dialect = db.get_bind().dialect.name
        insert = _CONFLICT_INSERTS.get(dialect)
        if insert is None:
            raise NotImplementedError(f"Idempotent insert not supported for dialect {dialect!r}")

        stmt = (
            insert(Transaction.__table__)
            .values(
                user_id=self._user_id,
                item_id=item_id,
                account_id=txn.account_id,
                transaction_id=txn.transaction_id,
                name=txn.name,
                merchant=txn.merchant_name or None,
                amount=txn.amount,
                iso_currency=txn.currency,
                posted_at=txn.date,
                raw_category=raw_category,
                category=classification.category,
                confidence=classification.confidence,
            )
            .on_conflict_do_nothing(index_elements=["transaction_id"])
        )
        result = db.execute(stmt)
        db.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def refresh_accounts(self, db: Session) -> AccountRefreshReport:
        """Fetch and upsert the accounts of every linked item.

        Returns:
            AccountRefreshReport with counts and per-item errors.
        """
        report = AccountRefreshReport()
        items = self._list_items(db)
        report.total_items = len(items)

        for item in items:
            try:
                access_token = resolve_access_token(item, self._cipher)
                remote_accounts = self._provider.get_accounts(access_token)
            except (ProviderError, CredentialError) as e:
                logger.warning("Item %s: account fetch failed: %s", item.item_id, e)
                report.errors.append(ItemError.from_exception(item.item_id, e))
                continue

            self._upsert_accounts(db, item.item_id, remote_accounts)
            db.commit()
            report.total_accounts += len(remote_accounts)

        return report

    def _upsert_accounts(
        self,
        db: Session,
        item_id: str,
        remote_accounts: list[ProviderAccount],
    ) -> list[Account]:
        """Create or overwrite accounts by provider account id (last write wins)."""
        upserted = []
        new_count = 0
        for remote in remote_accounts:
            account = db.query(Account).filter_by(account_id=remote.id).first()
            if account is None:
                account = Account(account_id=remote.id, user_id=self._user_id)
                db.add(account)
                new_count += 1
            account.item_id = item_id
            account.source = self._provider.provider_name.lower()
            account.name = remote.name
            account.type = remote.type
            account.subtype = remote.subtype
            account.mask = remote.mask
            upserted.append(account)

        db.flush()
        logger.info(
            "Item %s: accounts upserted (%d new, %d existing)",
            item_id, new_count, len(upserted) - new_count,
        )
        return upserted

    @staticmethod
    def _list_items(db: Session) -> list[PlaidItem]:
        return db.query(PlaidItem).order_by(PlaidItem.created_at, PlaidItem.id).all()
