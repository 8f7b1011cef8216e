"""Taskboard database engine and session management."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from taskboard.config import get_config
from taskboard.errors import StoreUnavailableError

from .models import Base

logger = logging.getLogger(__name__)


class Database:
    """Lazily connected handle to the task store.

    The engine is created on first use, at most once, and the schema is
    created alongside it. Without a database URL the handle never connects:
    callers check ``get_sessionmaker()`` for None on reads and use
    ``transaction()`` (which raises) for writes.
    """

    def __init__(self, database_url: Optional[str], *, echo: bool = False):
        self.database_url = database_url or None
        self.echo = echo
        self._engine: Optional[Engine] = None
        self._sessionmaker: Optional[sessionmaker] = None
        self._lock = threading.Lock()

    @property
    def configured(self) -> bool:
        return self.database_url is not None

    def get_engine(self) -> Optional[Engine]:
        if self._engine is not None or not self.configured:
            return self._engine

        with self._lock:
            # Another thread may have connected while we waited.
            if self._engine is not None:
                return self._engine

            connect_args = {}
            if self.database_url.startswith("sqlite:"):
                connect_args = {"check_same_thread": False}

            engine: Optional[Engine] = None
            try:
                engine = create_engine(
                    self.database_url,
                    echo=self.echo,
                    pool_pre_ping=True,
                    connect_args=connect_args,
                )
                Base.metadata.create_all(engine)
            except Exception:
                # Left unconnected; the next call tries again.
                logger.warning("Failed to connect to the task database", exc_info=True)
                if engine is not None:
                    engine.dispose()
                return None

            self._sessionmaker = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
            self._engine = engine
            logger.info("Connected to task database (%s)", engine.url.get_backend_name())
            return self._engine

    def get_sessionmaker(self) -> Optional[sessionmaker]:
        if self.get_engine() is None:
            return None
        return self._sessionmaker

    @contextmanager
    def transaction(self, session: Optional[Session] = None) -> Iterator[Session]:
        """Yield a session that commits on success and rolls back on error.

        Passing an existing session joins it instead; the outer
        ``transaction()`` owns the commit.
        """
        if session is not None:
            yield session
            return

        sm = self.get_sessionmaker()
        if sm is None:
            raise StoreUnavailableError()

        with sm.begin() as s:
            yield s

    def dispose(self) -> None:
        with self._lock:
            if self._engine is not None:
                self._engine.dispose()
            self._engine = None
            self._sessionmaker = None


# ==================== Global Instance ====================

_database: Optional[Database] = None
_database_lock = threading.Lock()


def get_database() -> Database:
    """Get or create the process-wide Database built from configuration."""
    global _database

    if _database is None:
        with _database_lock:
            if _database is None:
                config = get_config()
                _database = Database(config.database_url, echo=config.echo_sql)
    return _database


def reset_database() -> None:
    """Dispose the process-wide Database (mainly for testing)."""
    global _database
    with _database_lock:
        if _database is not None:
            _database.dispose()
        _database = None
