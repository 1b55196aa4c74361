"""Test fixtures and sample data."""
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from models import Account, PlaidItem, Transaction

TEST_API_KEY = "test-api-key"
TEST_ENCRYPTION_KEY = "00112233445566778899aabbccddeeff00112233445566778899aabbccddeeff"


def make_item(
    db: Session,
    item_id: str,
    access_token: str | None = None,
    access_token_enc: str | None = None,
    institution_name: str | None = None,
    created_at: datetime | None = None,
) -> PlaidItem:
    """Create and commit a PlaidItem."""
    item = PlaidItem(
        item_id=item_id,
        access_token=access_token,
        access_token_enc=access_token_enc,
        institution_name=institution_name,
        created_at=created_at or datetime.now(timezone.utc),
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def make_stored_transaction(
    db: Session,
    transaction_id: str,
    posted_at: date = date(2026, 10, 1),
    account_id: str = "acc_checking",
    name: str = "Test Purchase",
    amount: str = "10.00",
    category: str = "Uncategorized",
    confidence: float = 0.3,
    **kwargs,
) -> Transaction:
    """Create and commit a stored Transaction row."""
    txn = Transaction(
        transaction_id=transaction_id,
        posted_at=posted_at,
        account_id=account_id,
        name=name,
        amount=Decimal(amount),
        category=category,
        confidence=confidence,
        **kwargs,
    )
    db.add(txn)
    db.commit()
    db.refresh(txn)
    return txn


@pytest.fixture
def plaid_item(db: Session) -> PlaidItem:
    """A linked item with a plaintext access token."""
    return make_item(db, "item-1", access_token="access-1", institution_name="First Bank")


@pytest.fixture
def account(db: Session) -> Account:
    """A checking account under item-1."""
    acct = Account(
        account_id="acc_checking",
        item_id="item-1",
        name="Everyday Checking",
        type="depository",
        subtype="checking",
        mask="0000",
    )
    db.add(acct)
    db.commit()
    db.refresh(acct)
    return acct
