"""Pytest configuration and fixtures."""

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from api.dependencies import get_ingest_service, get_journal, get_plaid_client, get_settings
from config import Settings
from database import Base, get_db
from main import app
from services.ingest_service import IngestService
from services.run_journal import RunJournal
# Pytest fixtures - imported to make them available to tests
from tests.fixtures import TEST_API_KEY, account, plaid_item  # noqa: F401
from tests.fixtures.mocks import SAMPLE_ACCOUNTS, SAMPLE_TRANSACTIONS, MockPlaidClient

TODAY = date(2026, 10, 15)


@pytest.fixture(name="db")
def db_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="test_settings")
def test_settings_fixture(tmp_path):
    """Settings with Plaid configured and outputs under tmp_path."""
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite:///:memory:",
        PLAID_CLIENT_ID="test-client-id",
        PLAID_SECRET="test-secret",
        PLAID_ENVIRONMENT="sandbox",
        API_KEY=TEST_API_KEY,
        ENCRYPTION_KEY="",
        RESULTS_LOG_PATH=str(tmp_path / "results.txt"),
        EXPORT_PATH=str(tmp_path / "transactions.csv"),
    )


@pytest.fixture(name="mock_plaid_client")
def mock_plaid_client_fixture():
    """Mock Plaid client serving sample data for access token ``access-1``."""
    return MockPlaidClient(
        transactions={"access-1": SAMPLE_TRANSACTIONS},
        accounts={"access-1": SAMPLE_ACCOUNTS},
    )


@pytest.fixture(name="journal")
def journal_fixture(test_settings):
    return RunJournal.from_settings(test_settings)


@pytest.fixture(name="client")
def client_fixture(db, test_settings, mock_plaid_client, journal):
    """Create a test client with the test database and a mocked Plaid client."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    def override_get_ingest_service():
        return IngestService(
            provider=mock_plaid_client,
            default_lookback_days=test_settings.INGEST_LOOKBACK_DAYS,
            today=lambda: TODAY,
        )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_plaid_client] = lambda: mock_plaid_client
    app.dependency_overrides[get_ingest_service] = override_get_ingest_service
    app.dependency_overrides[get_journal] = lambda: journal
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
