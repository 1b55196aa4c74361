"""Centralized logging configuration."""

import logging

from config import settings

# Third-party loggers pinned to WARNING regardless of LOG_LEVEL
NOISY_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "httpx",
    "httpcore",
    "urllib3",
    "plaid",
)


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger once per process.

    Args:
        level: Level name overriding ``settings.LOG_LEVEL`` (used by the
               scripts' ``--verbose`` flag).
    """
    logging.basicConfig(
        format="%(asctime)s %(levelname)-8s %(name)s  %(message)s",
        datefmt="%H:%M:%S",
        level=getattr(logging, (level or settings.LOG_LEVEL).upper()),
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
