"""Database setup and session management."""

import logging
from functools import lru_cache
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from config import settings

logger = logging.getLogger(__name__)

DEFAULT_USER_ID = "user-1"


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def db_file_path(database_url: str) -> Path | None:
    """Extract the filesystem path from a ``sqlite:///`` URL.

    Returns ``None`` for in-memory databases (``:memory:`` or empty path)
    and for non-SQLite URLs.
    """
    if not database_url.startswith("sqlite"):
        return None
    # sqlite:///./mint.db  ->  ./mint.db
    path_part = database_url.split("///", 1)[-1]
    if not path_part or path_part == ":memory:":
        return None
    return Path(path_part)


@lru_cache
def get_engine() -> Engine:
    """Get or create the database engine (cached)."""
    connect_args = {}
    database_url = settings.DATABASE_URL

    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    return create_engine(
        database_url,
        connect_args=connect_args,
        echo=False,
    )


def get_session_local():
    """Get a sessionmaker bound to the engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def get_db():
    """Dependency that provides a database session.

    Transaction conventions:
    - Default: the API layer ``commit()``s
    - ``IngestService`` commits each insert on its own so a crash mid-run
      keeps everything written before it
    """
    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def seed_default_user(db: Session) -> bool:
    """Insert the single implicit user row if it is missing.

    Returns:
        ``True`` if the row was created.
    """
    from models.user import User

    if db.get(User, DEFAULT_USER_ID) is not None:
        return False
    db.add(User(id=DEFAULT_USER_ID))
    db.commit()
    logger.info("Seeded default user %s", DEFAULT_USER_ID)
    return True


def init_db(engine: Engine | None = None) -> None:
    """Create any missing tables and seed the default user."""
    import models  # noqa: F401  (registers all tables on Base.metadata)

    engine = engine or get_engine()
    Base.metadata.create_all(bind=engine)

    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = SessionLocal()
    try:
        seed_default_user(db)
    finally:
        db.close()
