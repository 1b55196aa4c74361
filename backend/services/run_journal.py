"""Append-only results journal.

Each entry is written as a timestamp header, a JSON body and a separator
line, so the file reads as a plain-text history of every run (ingests,
account refreshes, audits, migrations, link events).
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)

SEPARATOR = "=" * 60


class RunJournal:
    """Writes run results to a text file.

    A disabled journal accepts entries and drops them, so callers do not
    need to branch on the ``--no-log`` flag.
    """

    def __init__(self, path: str | Path, enabled: bool = True):
        self.path = Path(path)
        self.enabled = enabled

    @classmethod
    def from_settings(cls, settings, enabled: bool = True) -> "RunJournal":
        return cls(settings.RESULTS_LOG_PATH, enabled=enabled)

    def record(self, entry: dict | str) -> None:
        """Append one entry to the journal file."""
        if not self.enabled:
            return

        if isinstance(entry, str):
            body = entry
        else:
            body = json.dumps(entry, indent=2, default=str)

        timestamp = datetime.now(timezone.utc).isoformat()
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(f"\n[{timestamp}]\n{body}\n{SEPARATOR}\n")
        logger.debug("Recorded journal entry to %s", self.path)


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp for journal entry bodies."""
    return datetime.now(timezone.utc).isoformat()
