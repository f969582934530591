"""
Engine and session management.

Database owns one SQLAlchemy engine and session factory. It is constructed
once by the composition root and handed to every repository.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from walletwatch.config.env import mask_url
from walletwatch.database.tables import Base
from walletwatch.logging import get_logger

logger = get_logger(__name__)


class Database:
    """SQLAlchemy engine + session factory for one database URL."""

    def __init__(self, url: str, *, echo: bool = False) -> None:
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.url = url
        self.engine: Engine = create_engine(
            url, connect_args=connect_args, pool_pre_ping=True, echo=echo
        )
        self._session_factory = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine
        )
        logger.info("database_engine_created", url=mask_url(url))

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """One session per unit of work. Commits on success, rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def init_db(self) -> None:
        """Create tables if they do not exist. Safe to call on every startup."""
        try:
            Base.metadata.create_all(bind=self.engine)
            logger.info("database_init_db", url=mask_url(self.url))
        except Exception as e:
            logger.exception("database_init_db_failed", error=str(e))
            raise

    def dispose(self) -> None:
        self.engine.dispose()
