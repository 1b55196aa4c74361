"""Shared column defaults for ORM models."""

import uuid
from datetime import datetime, timezone


def generate_uuid() -> str:
    """Generate a UUID string for surrogate primary keys."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Timezone-aware current time, used for created/updated columns."""
    return datetime.now(timezone.utc)
