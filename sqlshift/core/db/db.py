"""Database connection and session management."""

import logging
import os
import time
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Owns the SQLAlchemy engine and hands out transactional sessions.

    Usage:
        db = DatabaseManager("postgresql://...")
        db.init_db()
        with db.get_session() as session:
            session.add(...)
    """

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        engine_kwargs = {"echo": echo, "future": True}
        if database_url.startswith("sqlite"):
            # Sessions are opened from worker threads (asyncio.to_thread)
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_pre_ping"] = True

        self.engine = create_engine(database_url, **engine_kwargs)
        self._session_factory = sessionmaker(
            bind=self.engine, expire_on_commit=False
        )
        logger.info(f"DatabaseManager initialized ({self.engine.dialect.name})")

    def init_db(self) -> None:
        """Create missing tables."""
        Base.metadata.create_all(self.engine)
        logger.info("Database tables ensured")

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Yield a session that commits on success and rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.debug(f"Database ping failed: {e}")
            return False

    def dispose(self) -> None:
        self.engine.dispose()


def get_database_manager(database_url: Optional[str] = None) -> Optional[DatabaseManager]:
    """Build a DatabaseManager from the argument or DATABASE_URL.

    Returns None when no URL is configured (shared cache tier disabled).
    """
    url = database_url or os.getenv("DATABASE_URL")
    if not url:
        return None
    return DatabaseManager(url)


def wait_for_db(db_manager: DatabaseManager, retries: int = 10, delay: float = 2.0) -> bool:
    """Poll the database until it answers or retries run out."""
    for attempt in range(1, retries + 1):
        if db_manager.ping():
            logger.info(f"Database available (attempt {attempt})")
            return True
        if attempt < retries:
            logger.warning(f"Database not ready, retrying in {delay}s ({attempt}/{retries})")
            time.sleep(delay)
    logger.error("Database unavailable after retries")
    return False
