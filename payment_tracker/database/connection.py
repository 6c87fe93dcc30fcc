"""
Database connection and session management.

Uses DATABASE_URL (any SQLAlchemy URL, e.g. PostgreSQL) when configured;
otherwise SQLite. One Database instance owns one engine; dispose() on shutdown.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from payment_tracker.database.models import Base
from payment_tracker.tracker_logging import get_logger

logger = get_logger(__name__)


def describe_url(url: str) -> str:
    """Database URL safe for logs: password masked, query string dropped."""
    return make_url(url).set(query={}).render_as_string(hide_password=True)


class Database:
    """Engine + session factory for tracker tables."""

    def __init__(self, url: str) -> None:
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.url = url
        self.engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        logger.info("database_engine", url=describe_url(url))

    def init_schema(self) -> None:
        """Create tables if they do not exist."""
        Base.metadata.create_all(self.engine)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Single session. Commits on success, rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()
