"""
DatabaseManager - Centralized SQLAlchemy engine and session management.

Provides a singleton pattern for the shared engine and a session factory
for per-transaction units of work.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from .tables import Base

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./survey_validation.db"


@dataclass
class DatabaseConfig:
    """Configuration for database connections."""

    url: str = DEFAULT_DATABASE_URL
    echo: bool = False
    sqlite_timeout: float = 30.0

    @classmethod
    def from_env(cls) -> DatabaseConfig:
        """Load configuration from environment variables."""
        return cls(
            url=os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL),
            echo=os.environ.get("DATABASE_ECHO", "false").lower() in ("true", "1", "yes"),
        )

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


def _install_sqlite_pragmas(engine: Engine) -> None:
    """Enable foreign keys and write-locking transactions on SQLite.

    pysqlite's own transaction handling is disabled so that BEGIN IMMEDIATE
    is emitted at the start of every transaction. Two writers on the same
    queue entry therefore serialize instead of both reading stale state.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class DatabaseManager:
    """
    Manages the SQLAlchemy engine with singleton pattern.

    Usage:
        # Get shared manager (singleton)
        manager = DatabaseManager.get_instance()
        with manager.session_scope() as session:
            ...

        # Reset singleton (for testing)
        DatabaseManager.reset()
    """

    _instance: DatabaseManager | None = None

    def __init__(self, config: DatabaseConfig | None = None):
        """
        Initialize database manager with config.

        Args:
            config: Database configuration. Defaults to loading from environment.
        """
        self._config = config or DatabaseConfig.from_env()
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    @classmethod
    def get_instance(cls, config: DatabaseConfig | None = None) -> DatabaseManager:
        """
        Get the singleton instance.

        Args:
            config: Optional config for first initialization only.

        Returns:
            The singleton DatabaseManager instance.
        """
        if cls._instance is None:
            cls._instance = cls(config)
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Dispose the singleton's engine and drop the instance. Used for testing."""
        if cls._instance is not None:
            cls._instance.dispose()
        cls._instance = None

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def engine(self) -> Engine:
        """Get the shared engine, creating if needed."""
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    @property
    def session_factory(self) -> sessionmaker[Session]:
        """Get the sessionmaker bound to the shared engine."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        return self._session_factory

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Provide a transactional scope: commit on success, rollback on error."""
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_all(self) -> None:
        """Create every table and index that does not exist yet."""
        Base.metadata.create_all(self.engine)
        logger.info("Database schema ready")

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._session_factory = None

    def _create_engine(self) -> Engine:
        kwargs: dict[str, Any] = {"echo": self._config.echo}
        if self._config.is_sqlite:
            kwargs["connect_args"] = {
                "check_same_thread": False,
                "timeout": self._config.sqlite_timeout,
            }
        else:
            kwargs["pool_pre_ping"] = True

        engine = create_engine(self._config.url, **kwargs)
        if self._config.is_sqlite:
            _install_sqlite_pragmas(engine)

        logger.debug(f"Created database engine for {engine.url.render_as_string(hide_password=True)}")
        return engine
