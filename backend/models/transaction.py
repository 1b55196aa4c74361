"""Transaction model - a posted transaction pulled from the provider."""

from sqlalchemy import Column, Date, DateTime, Float, Numeric, String

from database import DEFAULT_USER_ID, Base
from models.utils import generate_uuid, utc_now


class Transaction(Base):
    """A single posted transaction.

    ``transaction_id`` is the provider's globally unique id and the dedup
    key: rows are inserted once and never overwritten or reclassified.
    ``account_id`` and ``item_id`` reference the provider ids and are not
    enforced as foreign keys.
    """

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String, nullable=False, default=DEFAULT_USER_ID)
    item_id = Column(String, nullable=True)
    account_id = Column(String, nullable=True, index=True)
    transaction_id = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=True)
    merchant = Column(String, nullable=True)
    amount = Column(Numeric(18, 4), nullable=True)  # positive = money leaving the account
    iso_currency = Column(String, nullable=True)
    posted_at = Column(Date, nullable=True, index=True)
    raw_category = Column(String, nullable=True)  # comma-joined provider hierarchy
    category = Column(String, nullable=True)
    confidence = Column(Float, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
