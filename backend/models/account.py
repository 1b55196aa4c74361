"""Account model - a bank or card account under a linked Plaid Item."""

from sqlalchemy import Column, DateTime, String

from database import DEFAULT_USER_ID, Base
from models.utils import generate_uuid, utc_now


class Account(Base):
    """A financial account reported by the aggregation provider.

    ``account_id`` is the provider's identifier and is unique. Re-fetching
    an account replaces its attributes (last write wins, no history).
    """

    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String, nullable=False, default=DEFAULT_USER_ID)
    source = Column(String, nullable=False, default="plaid")
    item_id = Column(String, nullable=True)
    account_id = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)
    type = Column(String, nullable=True)  # e.g., "depository", "credit"
    subtype = Column(String, nullable=True)  # e.g., "checking", "credit card"
    mask = Column(String, nullable=True)  # last 4 digits, display only
    updated_at = Column(
        DateTime,
        default=utc_now,
        onupdate=utc_now,
    )
