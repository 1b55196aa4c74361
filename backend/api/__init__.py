"""API route handlers."""
from . import ingest, manual, plaid

__all__ = ["ingest", "manual", "plaid"]
