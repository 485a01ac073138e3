from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from config import get_settings
from src.db.models.base import Base


def create_db_engine(database_url: str | None = None, echo: bool | None = None) -> Engine:
    """Create an engine for `database_url` (defaults to the configured URL)."""
    settings = get_settings()
    url = database_url or settings.database_url
    if echo is None:
        echo = settings.log_level == "DEBUG"

    connect_args = {}
    if url.startswith("sqlite"):
        # Store calls run in worker threads via asyncio.to_thread
        connect_args["check_same_thread"] = False

    return create_engine(url, echo=echo, pool_pre_ping=True, connect_args=connect_args)


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Initialize database tables."""
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables initialized")


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:  # Intentionally broad - rollback on any error before re-raising
        session.rollback()
        raise
    finally:
        session.close()
