"""Unit tests for IngestService."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import patch

import pytest
from plaid.exceptions import ApiValueError
from sqlalchemy.exc import OperationalError

from config import ConfigurationError, Settings
from integrations.plaid_client import PlaidClient
from integrations.provider_protocol import ProviderAccount
from models import Account, Transaction
from services.categorizer import Categorizer, CategoryRule
from services.ingest_service import IngestService
from services.token_cipher import TokenCipher
from tests.fixtures import TEST_ENCRYPTION_KEY, make_item
from tests.fixtures.mocks import (
    SAMPLE_ACCOUNTS,
    SAMPLE_TRANSACTIONS,
    MockPlaidClient,
    make_transaction,
)

TODAY = date(2026, 10, 15)


def _service(provider, **kwargs) -> IngestService:
    return IngestService(provider=provider, today=lambda: TODAY, **kwargs)


def _two_items(db):
    """Create two items with distinct creation times (item-a first)."""
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    make_item(db, "item-a", access_token="access-a", created_at=base)
    make_item(db, "item-b", access_token="access-b", created_at=base + timedelta(days=1))


class TestIngest:
    def test_inserts_and_classifies_new_transactions(self, db, plaid_item):
        provider = MockPlaidClient(transactions={"access-1": SAMPLE_TRANSACTIONS})
        report = _service(provider).ingest(db)

        assert report.total_items == 1
        assert report.total_fetched == 4
        assert report.total_inserted == 4
        assert report.total_categorized == 4
        assert report.errors == []

        shell = db.query(Transaction).filter_by(transaction_id="txn_001").one()
        assert shell.category == "Auto:Fuel"
        assert shell.confidence == 0.9
        assert shell.item_id == "item-1"
        assert shell.user_id == "user-1"
        assert shell.amount == Decimal("45.2000")
        assert shell.iso_currency == "USD"
        assert shell.posted_at == date(2026, 10, 1)

        payroll = db.query(Transaction).filter_by(transaction_id="txn_003").one()
        assert payroll.category == "Uncategorized"
        assert payroll.confidence == 0.3
        assert payroll.raw_category == "Transfer,Payroll"
        assert payroll.amount == Decimal("-2500.0000")

    def test_merchant_and_raw_category_absent_stored_as_null(self, db, plaid_item):
        provider = MockPlaidClient(transactions={"access-1": [make_transaction("txn_x")]})
        _service(provider).ingest(db)

        txn = db.query(Transaction).filter_by(transaction_id="txn_x").one()
        assert txn.merchant is None
        assert txn.raw_category is None

    def test_second_run_inserts_nothing(self, db, plaid_item):
        provider = MockPlaidClient(transactions={"access-1": SAMPLE_TRANSACTIONS})
        service = _service(provider)
        service.ingest(db)

        report = service.ingest(db)
        assert report.total_fetched == 4
        assert report.total_inserted == 0
        assert report.total_categorized == 0
        assert db.query(Transaction).count() == 4

    def test_existing_rows_never_reclassified(self, db, plaid_item):
        provider = MockPlaidClient(transactions={"access-1": SAMPLE_TRANSACTIONS})
        _service(provider).ingest(db)

        recategorizing = Categorizer([CategoryRule.keywords("Everything", "")])
        report = _service(provider, categorizer=recategorizing).ingest(db)

        assert report.total_inserted == 0
        shell = db.query(Transaction).filter_by(transaction_id="txn_001").one()
        assert shell.category == "Auto:Fuel"

    def test_duplicate_ids_within_one_fetch(self, db, plaid_item):
        txns = [make_transaction("dup", name="first"), make_transaction("dup", name="second")]
        provider = MockPlaidClient(transactions={"access-1": txns})
        report = _service(provider).ingest(db)

        assert report.total_fetched == 2
        assert report.total_inserted == 1
        assert db.query(Transaction).one().name == "first"

    def test_no_items_returns_zero_report(self, db):
        provider = MockPlaidClient()
        report = _service(provider).ingest(db)

        assert report.total_items == 0
        assert report.total_fetched == 0
        assert report.total_inserted == 0
        assert report.errors == []
        assert provider.transaction_calls == []

    def test_date_window(self, db, plaid_item):
        provider = MockPlaidClient()
        report = _service(provider).ingest(db, lookback_days=90)

        assert report.start_date == date(2026, 7, 17)
        assert report.end_date == TODAY
        assert provider.transaction_calls == [("access-1", date(2026, 7, 17), TODAY)]

    def test_default_lookback(self, db, plaid_item):
        provider = MockPlaidClient()
        report = _service(provider, default_lookback_days=7).ingest(db)

        assert report.lookback_days == 7
        assert report.start_date == date(2026, 10, 8)

    @pytest.mark.parametrize("days", [0, -1])
    def test_rejects_non_positive_lookback(self, db, days):
        with pytest.raises(ValueError):
            _service(MockPlaidClient()).ingest(db, lookback_days=days)

    def test_failing_item_does_not_stop_others(self, db):
        _two_items(db)
        provider = MockPlaidClient(
            transactions={"access-b": [make_transaction("b1"), make_transaction("b2")]},
            failing_tokens={"access-a"},
        )
        report = _service(provider).ingest(db)

        assert report.total_items == 2
        assert report.total_inserted == 2
        assert report.failed_items == 1
        assert report.errors[0].item_id == "item-a"
        assert "Mock Plaid error" in report.errors[0].message

    @pytest.mark.parametrize("failure_type", ["auth", "connection", "api"])
    def test_all_provider_failures_are_per_item(self, db, failure_type):
        _two_items(db)
        provider = MockPlaidClient(
            transactions={"access-b": [make_transaction("b1")]},
            failing_tokens={"access-a"},
            failure_type=failure_type,
        )
        report = _service(provider).ingest(db)
        assert report.total_inserted == 1
        assert [e.item_id for e in report.errors] == ["item-a"]

    def test_sdk_parse_fault_is_per_item(self, db):
        _two_items(db)

        def transactions_get(request, **kwargs):
            if request.access_token == "access-a":
                raise ApiValueError("Invalid value for `subtype` (crypto exchange)")
            return {
                "total_transactions": 1,
                "transactions": [{
                    "transaction_id": "b1",
                    "account_id": "acc_checking",
                    "name": "SHELL OIL 57442",
                    "amount": 45.2,
                    "iso_currency_code": "USD",
                    "date": date(2026, 10, 1),
                }],
            }

        with (
            patch("integrations.plaid_client.PlaidApi") as MockApi,
            patch("integrations.plaid_client.ApiClient"),
        ):
            MockApi.return_value.transactions_get.side_effect = transactions_get
            report = _service(PlaidClient("client-id", "secret")).ingest(db)

        assert [e.item_id for e in report.errors] == ["item-a"]
        assert report.total_inserted == 1
        assert db.query(Transaction).one().category == "Auto:Fuel"

    @pytest.mark.parametrize(
        "failure_type,retriable",
        [("auth", False), ("connection", True), ("api", True)],
    )
    def test_item_error_records_retriable(self, db, plaid_item, failure_type, retriable):
        provider = MockPlaidClient(failing_tokens={"access-1"}, failure_type=failure_type)
        report = _service(provider).ingest(db)
        assert report.errors[0].retriable is retriable

    def test_credential_error_is_not_retriable(self, db):
        make_item(db, "item-empty")
        report = _service(MockPlaidClient()).ingest(db)
        assert report.errors[0].retriable is False

    def test_items_processed_in_creation_order(self, db):
        _two_items(db)
        provider = MockPlaidClient()
        _service(provider).ingest(db)

        assert [call[0] for call in provider.transaction_calls] == ["access-a", "access-b"]

    def test_item_without_token_is_recorded(self, db):
        make_item(db, "item-empty")
        report = _service(MockPlaidClient()).ingest(db)
        assert report.errors[0].item_id == "item-empty"

    def test_storage_error_aborts_run(self, db, plaid_item):
        provider = MockPlaidClient(transactions={"access-1": SAMPLE_TRANSACTIONS})
        service = _service(provider)

        with patch.object(
            IngestService,
            "_insert_transaction",
            side_effect=OperationalError("INSERT", {}, Exception("disk I/O error")),
        ):
            with pytest.raises(OperationalError):
                service.ingest(db)

    def test_report_to_dict(self, db, plaid_item):
        provider = MockPlaidClient(transactions={"access-1": SAMPLE_TRANSACTIONS[:1]})
        data = _service(provider).ingest(db).to_dict()

        assert data["start_date"] == "2026-09-15"
        assert data["end_date"] == "2026-10-15"
        assert data["total_inserted"] == data["total_categorized"] == 1
        assert data["errors"] == []


class TestEncryptedTokens:
    def test_decrypts_encrypted_token(self, db):
        cipher = TokenCipher.from_hex(TEST_ENCRYPTION_KEY)
        make_item(db, "item-enc", access_token_enc=cipher.encrypt("access-secret"))
        provider = MockPlaidClient(transactions={"access-secret": [make_transaction("e1")]})

        report = _service(provider, token_cipher=cipher).ingest(db)

        assert report.total_inserted == 1
        assert provider.transaction_calls[0][0] == "access-secret"

    def test_encrypted_field_is_authoritative(self, db):
        cipher = TokenCipher.from_hex(TEST_ENCRYPTION_KEY)
        make_item(
            db,
            "item-both",
            access_token="stale-plaintext",
            access_token_enc=cipher.encrypt("fresh-token"),
        )
        provider = MockPlaidClient()
        _service(provider, token_cipher=cipher).ingest(db)

        assert provider.transaction_calls[0][0] == "fresh-token"

    def test_encrypted_token_without_key_is_item_error(self, db, plaid_item):
        cipher = TokenCipher.from_hex(TEST_ENCRYPTION_KEY)
        make_item(db, "item-enc", access_token_enc=cipher.encrypt("access-secret"))
        provider = MockPlaidClient(transactions={"access-1": [make_transaction("p1")]})

        report = _service(provider).ingest(db)

        assert report.total_inserted == 1
        assert [e.item_id for e in report.errors] == ["item-enc"]
        assert "ENCRYPTION_KEY" in report.errors[0].message

    def test_wrong_key_is_item_error(self, db):
        cipher = TokenCipher.from_hex(TEST_ENCRYPTION_KEY)
        make_item(db, "item-enc", access_token_enc=cipher.encrypt("access-secret"))
        other = TokenCipher.from_hex("ff" * 32)

        report = _service(MockPlaidClient(), token_cipher=other).ingest(db)
        assert report.failed_items == 1


class TestRefreshAccounts:
    def test_creates_accounts(self, db, plaid_item):
        provider = MockPlaidClient(accounts={"access-1": SAMPLE_ACCOUNTS})
        report = _service(provider).refresh_accounts(db)

        assert report.total_items == 1
        assert report.total_accounts == 2
        checking = db.query(Account).filter_by(account_id="acc_checking").one()
        assert checking.name == "Everyday Checking"
        assert checking.item_id == "item-1"
        assert checking.source == "plaid"
        assert checking.mask == "0000"

    def test_last_write_wins(self, db, plaid_item, account):
        renamed = [ProviderAccount(
            id="acc_checking", name="Renamed Checking", type="depository",
            subtype="checking", mask="9999",
        )]
        provider = MockPlaidClient(accounts={"access-1": renamed})
        _service(provider).refresh_accounts(db)

        accounts = db.query(Account).all()
        assert len(accounts) == 1
        assert accounts[0].name == "Renamed Checking"
        assert accounts[0].mask == "9999"

    def test_failing_item_recorded(self, db):
        _two_items(db)
        provider = MockPlaidClient(
            accounts={"access-b": SAMPLE_ACCOUNTS[:1]},
            failing_tokens={"access-a"},
        )
        report = _service(provider).refresh_accounts(db)

        assert report.total_accounts == 1
        assert [e.item_id for e in report.errors] == ["item-a"]


class TestFromSettings:
    def test_missing_credentials_raise(self):
        s = Settings(_env_file=None, PLAID_CLIENT_ID="", PLAID_SECRET="", ENCRYPTION_KEY="")
        with pytest.raises(ConfigurationError, match="PLAID_CLIENT_ID"):
            IngestService.from_settings(s)

    def test_malformed_key_raises(self):
        s = Settings(_env_file=None, ENCRYPTION_KEY="not-hex")
        with pytest.raises(ConfigurationError):
            IngestService.from_settings(s, provider=MockPlaidClient())

    def test_builds_with_provider(self):
        s = Settings(_env_file=None, ENCRYPTION_KEY=TEST_ENCRYPTION_KEY, INGEST_LOOKBACK_DAYS=14)
        service = IngestService.from_settings(s, provider=MockPlaidClient())
        assert service.default_lookback_days == 14

    def test_builds_plaid_client(self):
        s = Settings(
            _env_file=None,
            PLAID_CLIENT_ID="id",
            PLAID_SECRET="secret",
            ENCRYPTION_KEY="",
        )
        service = IngestService.from_settings(s)
        assert service.default_lookback_days == s.INGEST_LOOKBACK_DAYS
