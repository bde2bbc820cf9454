"""
Database engine and session management

One ``DatabaseManager`` owns the engine and session factory. Failures are
surfaced to the caller as-is; nothing here retries.
"""

import logging
import time
from typing import Any, Dict, Optional

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from flamex_pos.config import Settings, get_config
from flamex_pos.infrastructure.database.models import Base
from flamex_pos.infrastructure.logging.logging_config import PerformanceLogger
from flamex_pos.infrastructure.utilities.constants import DatabaseSettings
from flamex_pos.infrastructure.utilities.exceptions import DatabaseError

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Database manager owning the engine and session factory"""

    def __init__(self, config: Optional[Settings] = None, engine: Optional[Engine] = None):
        self.config = config or get_config()
        self._engine: Optional[Engine] = engine
        self._session_factory: Optional[sessionmaker] = None
        self.logger = logging.getLogger(__name__)

    def get_engine(self) -> Engine:
        """Get database engine with proper configuration"""
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    def _create_engine(self) -> Engine:
        """Create database engine with environment-specific settings"""
        database_url = self.config.database_url
        engine_kwargs: dict[str, Any] = {"echo": self.config.database_echo}

        if database_url.startswith(DatabaseSettings.SQLITE_PREFIX):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in database_url or database_url.rstrip("/").endswith("sqlite:"):
                engine_kwargs["poolclass"] = StaticPool
        else:
            if self.config.environment == "production":
                pool_size = DatabaseSettings.PRODUCTION_POOL_SIZE
                max_overflow = DatabaseSettings.PRODUCTION_MAX_OVERFLOW
            else:
                pool_size = DatabaseSettings.DEVELOPMENT_POOL_SIZE
                max_overflow = DatabaseSettings.DEVELOPMENT_MAX_OVERFLOW
            engine_kwargs.update(
                {
                    "pool_size": pool_size,
                    "max_overflow": max_overflow,
                    "pool_recycle": DatabaseSettings.POOL_RECYCLE_SECONDS,
                    "pool_pre_ping": True,
                }
            )

        engine = create_engine(database_url, **engine_kwargs)
        self._setup_engine_events(engine)
        return engine

    def _setup_engine_events(self, engine: Engine) -> None:
        """Time every statement at DEBUG level"""

        @event.listens_for(engine, "before_cursor_execute")
        def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            conn.info.setdefault("query_start_time", []).append(time.perf_counter())

        @event.listens_for(engine, "after_cursor_execute")
        def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            started = conn.info["query_start_time"].pop()
            logger.debug("Query complete in %.2fms", (time.perf_counter() - started) * 1000)

        if engine.dialect.name == "sqlite":

            @event.listens_for(engine, "connect")
            def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

    def get_session_factory(self) -> sessionmaker:
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.get_engine(), expire_on_commit=False, autoflush=False
            )
        return self._session_factory

    def get_session(self) -> Session:
        return self.get_session_factory()()

    def create_tables(self) -> None:
        """Create all database tables"""
        try:
            with PerformanceLogger("create_tables", self.logger):
                Base.metadata.create_all(self.get_engine())
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to create database tables: {e}", "create_tables") from e

    def drop_tables(self) -> None:
        """Drop all database tables"""
        try:
            with PerformanceLogger("drop_tables", self.logger):
                Base.metadata.drop_all(self.get_engine())
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to drop database tables: {e}", "drop_tables") from e

    def health_check(self) -> Dict[str, Any]:
        """Run ``SELECT 1`` and report the outcome"""
        try:
            with self.get_session() as session:
                result = session.execute(text("SELECT 1")).scalar()
            if result == 1:
                return {"status": "healthy", "environment": self.config.environment}
            return {"status": "unhealthy", "error": "Unexpected health check result"}
        except SQLAlchemyError as e:
            self.logger.error("Database health check failed: %s", e, exc_info=True)
            return {"status": "unhealthy", "error": str(e)}

    def close(self) -> None:
        """Close database connections"""
        if self._engine:
            self._engine.dispose()
            self._engine = None
        self._session_factory = None
        self.logger.info("Database connections closed")


_db_manager: Optional[DatabaseManager] = None


def get_db_manager() -> DatabaseManager:
    """Get global database manager instance"""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


def set_db_manager(manager: Optional[DatabaseManager]) -> None:
    """Replace the global manager (used by tests and scripts)"""
    global _db_manager
    if _db_manager is not None and _db_manager is not manager:
        _db_manager.close()
    _db_manager = manager


def get_session() -> Session:
    """Get a session from the global manager"""
    return get_db_manager().get_session()


def init_db() -> None:
    """Create the schema on the configured database"""
    manager = get_db_manager()
    manager.create_tables()
    logger.info("Database initialized")
