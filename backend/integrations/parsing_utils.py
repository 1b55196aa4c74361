"""Value parsing helpers for provider responses."""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation


def parse_iso_date(value) -> date | None:
    """Parse a provider date into a ``date``.

    Accepts ``date``/``datetime`` objects (the Plaid SDK deserializes
    dates already) and ``YYYY-MM-DD`` strings.

    Returns:
        The calendar date, or None if the value cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def to_decimal(value) -> Decimal | None:
    """Convert a value to Decimal, returning None on failure."""
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def enum_text(value) -> str | None:
    """Return the plain string behind an SDK enum wrapper (or None)."""
    if value is None:
        return None
    inner = getattr(value, "value", value)
    text = str(inner)
    return text or None
