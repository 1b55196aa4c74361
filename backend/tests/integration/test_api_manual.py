"""Integration tests for the API-key protected /manual endpoints."""

from datetime import date

import pytest

from models import Account

from tests.fixtures import TEST_API_KEY, make_stored_transaction

AUTH = {"X-API-Key": TEST_API_KEY}


class TestApiKey:
    @pytest.mark.parametrize("path", ["/manual/accounts", "/manual/transactions"])
    def test_missing_key_is_401(self, client, path):
        response = client.get(path)
        assert response.status_code == 401
        assert response.json()["detail"] == "Unauthorized - Invalid or missing API key"

    def test_wrong_key_is_401(self, client):
        response = client.get("/manual/accounts", headers={"X-API-Key": "nope"})
        assert response.status_code == 401

    def test_ingest_requires_key(self, client):
        assert client.post("/manual/ingest").status_code == 401

    def test_rejected_when_no_key_configured(self, client, test_settings):
        from api.dependencies import get_settings
        from main import app

        keyless = test_settings.model_copy(update={"API_KEY": ""})
        app.dependency_overrides[get_settings] = lambda: keyless

        response = client.get("/manual/accounts", headers={"X-API-Key": ""})
        assert response.status_code == 401


class TestManualAccounts:
    def test_lists_accounts(self, client, account, db):
        db.add(Account(account_id="acc_savings", name="Savings", type="depository"))
        db.commit()

        response = client.get("/manual/accounts", headers=AUTH)
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert [a["name"] for a in data["accounts"]] == ["Everyday Checking", "Savings"]
        assert data["accounts"][0]["mask"] == "0000"


class TestManualTransactions:
    def test_newest_first_with_paging(self, client, db):
        for day in range(1, 6):
            make_stored_transaction(db, f"t{day}", posted_at=date(2026, 10, day))

        response = client.get("/manual/transactions", headers=AUTH, params={"limit": 2, "offset": 1})
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 5
        assert data["limit"] == 2
        assert data["offset"] == 1
        assert [t["transaction_id"] for t in data["transactions"]] == ["t4", "t3"]

    def test_default_limit(self, client, db):
        make_stored_transaction(db, "t1")
        data = client.get("/manual/transactions", headers=AUTH).json()
        assert data["limit"] == 100
        assert data["transactions"][0]["category"] == "Uncategorized"

    @pytest.mark.parametrize("params", [{"limit": 0}, {"limit": 1001}, {"offset": -1}])
    def test_invalid_paging(self, client, params):
        response = client.get("/manual/transactions", headers=AUTH, params=params)
        assert response.status_code == 422


class TestManualIngest:
    def test_runs_ingest(self, client, plaid_item, journal):
        response = client.post("/manual/ingest", headers=AUTH)
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "success"
        assert data["total_inserted"] == 4
        assert data["lookback_days"] == 30
        assert '"status": "manual-ingest-complete"' in journal.path.read_text()
