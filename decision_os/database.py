"""
Database engine and sessions.

State lives in one SQLite file on the device by default; any other
SQLAlchemy URL gets a small pooled engine.
"""
from pathlib import Path
from typing import Generator

import structlog
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from decision_os.config import get_settings

logger = structlog.get_logger(__name__)


def create_db_engine(database_url: str) -> Engine:
    """Engine for a database URL, creating the folder of a SQLite file if needed."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(database_url, pool_pre_ping=True, pool_size=5, max_overflow=10)

    if url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    # Sessions are handed across FastAPI's threadpool
    return create_engine(database_url, connect_args={"check_same_thread": False})


engine = create_db_engine(get_settings().database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that provides a database session.

    Yields:
        Session closed once the request finishes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create the stored_values table if it does not exist."""
    from decision_os.models import stored_value  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("database_initialized", backend=engine.url.get_backend_name())
