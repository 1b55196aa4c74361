"""Helpers shared by the command-line scripts."""

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import NoReturn

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import ConfigurationError, Settings  # noqa: E402
from database import get_session_local, init_db  # noqa: E402
from services.ingest_service import IngestService  # noqa: E402


def fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    print(f"ERROR: {message}", file=sys.stderr)
    sys.exit(1)


def build_ingest_service(app_settings: Settings) -> IngestService:
    """Build the ingest pipeline, exiting before any work if configuration is incomplete."""
    try:
        return IngestService.from_settings(app_settings)
    except ConfigurationError as e:
        fail(str(e))


@contextmanager
def open_session():
    """Initialize the schema if needed and yield a session."""
    init_db()
    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
