#!/usr/bin/env python
"""Create the database schema and seed the default user, then exit.

Usage:
    cd backend
    python -m scripts.init_db
"""

from config import settings
from database import init_db
from logging_config import setup_logging
from services.run_journal import RunJournal, utc_timestamp


def main() -> None:
    setup_logging()
    init_db()
    print(f"Database initialized: {settings.DATABASE_URL}")
    RunJournal.from_settings(settings).record({
        "status": "init",
        "message": "Database initialized via init_db",
        "timestamp": utc_timestamp(),
    })


if __name__ == "__main__":
    main()
