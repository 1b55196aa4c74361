#!/usr/bin/env python
"""Daily job: ingest, then export, then audit.

Steps run in order and the job stops at the first failure. Each step's
duration is printed and the overall outcome is written to the results
journal.

Usage:
    cd backend
    python -m scripts.daily
"""

import sys
import time
from typing import Callable

from config import settings
from logging_config import setup_logging
from scripts import audit, export_csv, ingest
from services.run_journal import RunJournal, utc_timestamp

STEPS: list[tuple[str, Callable[[list[str]], int]]] = [
    ("ingest", ingest.main),
    ("export", export_csv.main),
    ("audit", audit.main),
]


def run_steps(steps=STEPS) -> tuple[bool, list[dict]]:
    """Run each step in order, stopping at the first non-zero exit.

    Returns:
        (success, per-step results with name, status and duration in ms)
    """
    results = []
    for name, step in steps:
        print(f"\n=== {name} ===")
        start = time.monotonic()
        try:
            code = step([])
        except SystemExit as e:
            code = e.code if isinstance(e.code, int) else 1
        except Exception as e:
            print(f"{name} failed: {e}", file=sys.stderr)
            code = 1
        duration_ms = int((time.monotonic() - start) * 1000)

        ok = code == 0
        results.append({"step": name, "ok": ok, "duration_ms": duration_ms})
        print(f"{name}: {'OK' if ok else 'FAILED'} ({duration_ms} ms)")
        if not ok:
            return False, results
    return True, results


def main() -> int:
    setup_logging()
    journal = RunJournal.from_settings(settings)

    start = time.monotonic()
    success, results = run_steps()
    total_ms = int((time.monotonic() - start) * 1000)

    journal.record({
        "status": "daily-complete" if success else "daily-failed",
        "steps": results,
        "duration_ms": total_ms,
        "timestamp": utc_timestamp(),
    })
    print(f"\nDaily job {'completed' if success else 'FAILED'} in {total_ms} ms")
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
