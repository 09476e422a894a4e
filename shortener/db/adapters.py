"""
Database Adapters

This module implements the DatabaseAdapter interface for the supported
backends. All backend-specific configuration is encapsulated here.

- SQLite (aiosqlite): default, file-based, for development and tests
- PostgreSQL (asyncpg): production deployments
"""

from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from shortener.db.interface import DatabaseAdapter


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter implementation.

    SQLite uses file-based storage and has different characteristics than
    server-based databases like PostgreSQL.
    """

    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        """
        Create SQLite async engine with appropriate configuration.

        SQLite-specific configuration:
        - NullPool: Single connection (file-based, no pooling needed)
        - check_same_thread=False: Required for async SQLite operations
        - PRAGMA foreign_keys=ON on every connection, SQLite leaves it off

        Args:
            database_url: SQLite connection string (sqlite+aiosqlite:///...)
            **kwargs: Additional engine options (merged with SQLite defaults)

        Returns:
            Configured AsyncEngine for SQLite
        """
        engine_kwargs = self.get_engine_kwargs()
        engine_kwargs.update(kwargs)

        engine = create_async_engine(
            database_url,
            poolclass=self.get_pool_class(),
            connect_args=self.get_connect_args(),
            **engine_kwargs
        )

        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    def get_pool_class(self) -> type[NullPool]:
        return NullPool

    def get_connect_args(self) -> dict[str, Any]:
        return {
            "check_same_thread": False
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False  # Set to True only for SQL debugging in development
        }


class PostgreSQLAdapter(DatabaseAdapter):
    """
    PostgreSQL database adapter implementation.

    Uses SQLAlchemy's default queue pool with pre-ping so connections
    dropped by the server are replaced transparently.
    """

    def __init__(self, pool_size: int = 10, max_overflow: int = 20):
        self.pool_size = pool_size
        self.max_overflow = max_overflow

    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        engine_kwargs = self.get_engine_kwargs()
        engine_kwargs.update(kwargs)
        return create_async_engine(
            database_url,
            connect_args=self.get_connect_args(),
            **engine_kwargs
        )

    def get_connect_args(self) -> dict[str, Any]:
        return {}

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False,
            "pool_pre_ping": True,
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
        }


def get_database_adapter(database_url: str) -> DatabaseAdapter:
    """
    Factory function to get the database adapter for a connection string.

    Args:
        database_url: Async SQLAlchemy URL

    Returns:
        DatabaseAdapter instance

    Raises:
        ValueError: If the URL scheme is not supported
    """
    if database_url.startswith("sqlite"):
        return SQLiteAdapter()
    if database_url.startswith("postgresql"):
        return PostgreSQLAdapter()
    raise ValueError(f"Unsupported database URL: {database_url.split('://')[0]}")
