"""Database connection manager."""

import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool

from app.core.config import get_settings

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, **overrides) -> Engine:
    """
    Create an engine with pool and timeout settings applied.

    SQLite (used by tests) gets foreign keys switched on so that
    ON DELETE SET NULL behaves as on PostgreSQL. In-memory SQLite shares a
    single connection across threads.
    """
    settings = get_settings()

    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        kwargs.update(overrides)
        engine = create_engine(database_url, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    kwargs = {
        "poolclass": QueuePool,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout,
        "echo": settings.db_echo,
        "pool_pre_ping": True,  # Verify connections before using
        "connect_args": {
            "options": f"-c statement_timeout={settings.db_statement_timeout_ms}",
        },
    }
    kwargs.update(overrides)
    return create_engine(database_url, **kwargs)


class DatabaseManager:
    """Manages database connections and sessions."""

    _engine: Optional[Engine] = None
    _session_factory = None

    @classmethod
    def initialize(cls, database_url: Optional[str] = None, **engine_overrides):
        """Initialize database connection pool."""
        if cls._engine is not None:
            return

        database_url = database_url or get_settings().database_url
        if not database_url:
            raise ValueError("DATABASE_URL not set in environment")

        cls._engine = build_engine(database_url, **engine_overrides)
        cls._session_factory = sessionmaker(bind=cls._engine, expire_on_commit=False)

        logger.info("[DB] Database connection initialized")

    @classmethod
    def get_engine(cls) -> Engine:
        """Get SQLAlchemy engine."""
        if cls._engine is None:
            cls.initialize()
        return cls._engine

    @classmethod
    def session_factory(cls):
        if cls._session_factory is None:
            cls.initialize()
        return cls._session_factory

    @classmethod
    @contextmanager
    def get_session(cls) -> Session:
        """Get database session (context manager)."""
        session = cls.session_factory()()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @classmethod
    def create_all_tables(cls):
        """Create all tables (for initial setup)."""
        from src.database.models import Base

        Base.metadata.create_all(cls.get_engine())
        logger.info("[DB] All tables created")

    @classmethod
    def drop_all_tables(cls):
        """Drop all tables (for testing/reset)."""
        from src.database.models import Base

        Base.metadata.drop_all(cls.get_engine())
        logger.info("[DB] All tables dropped")

    @classmethod
    def dispose(cls):
        """Dispose the engine and forget the session factory."""
        if cls._engine is not None:
            cls._engine.dispose()
        cls._engine = None
        cls._session_factory = None
