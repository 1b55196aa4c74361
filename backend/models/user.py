"""User model - the single implicit owner of all data."""

from sqlalchemy import Column, DateTime, String

from database import Base
from models.utils import utc_now


class User(Base):
    """The one user of the hub.

    Mint Lite is single-user; ``init_db`` seeds a row with id ``user-1``
    and every other table points at it.
    """

    __tablename__ = "users"

    id = Column(String, primary_key=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
