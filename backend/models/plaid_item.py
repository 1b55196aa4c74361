"""PlaidItem model - stores Plaid access tokens per linked institution."""

from sqlalchemy import Column, DateTime, String

from database import DEFAULT_USER_ID, Base
from models.utils import generate_uuid, utc_now


class PlaidItem(Base):
    """A Plaid Item representing a linked financial institution.

    Each institution linked via Plaid Link gets its own access token.
    The token may be held in plaintext (``access_token``), encrypted
    (``access_token_enc``), or both while a migration is in progress.
    When ``access_token_enc`` is set it is the authoritative value.
    """

    __tablename__ = "plaid_items"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String, nullable=False, default=DEFAULT_USER_ID)
    item_id = Column(String, unique=True, index=True, nullable=False)
    access_token = Column(String, nullable=True)
    access_token_enc = Column(String, nullable=True)  # iv:authTag:ciphertext (hex)
    institution_id = Column(String, nullable=True)
    institution_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=utc_now)
