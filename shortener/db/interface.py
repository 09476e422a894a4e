"""
Database Abstraction Interface

This module defines the two seams between the service and its storage:

- DatabaseAdapter: engine configuration per database backend (SQLite,
  PostgreSQL, ...), so the rest of the codebase never branches on dialect.
- URLStore: the CRUD contract the shortening service depends on. The service
  only ever talks to a URLStore, which keeps it testable with an in-memory
  implementation.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine

from shortener.db.models import URLRecord, VisitRecord


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    This interface defines the contract that all database implementations
    must follow. By using this abstraction, we can switch between SQLite,
    PostgreSQL, or any other database without modifying the rest of the codebase.

    To add a new database backend:
    1. Create a new class inheriting from DatabaseAdapter
    2. Implement all abstract methods
    3. Register its URL prefix in get_database_adapter()
    """

    @abstractmethod
    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        """
        Create and configure the async database engine.

        Args:
            database_url: Connection string for the database
            **kwargs: Additional engine configuration options

        Returns:
            Configured AsyncEngine instance
        """
        pass

    @abstractmethod
    def get_connect_args(self) -> dict[str, Any]:
        """Get connection arguments specific to this database type."""
        pass

    @abstractmethod
    def get_engine_kwargs(self) -> dict[str, Any]:
        """Get additional engine configuration specific to this database type."""
        pass


class URLStore(ABC):
    """
    Persistence contract for short URLs and their visits.

    Implementations own their concurrency safety (connection pooling,
    unique indexes). Identifiers are assigned by the store, start at 1 and
    increase monotonically.
    """

    @abstractmethod
    async def insert_url(self, original_url: str) -> int:
        """
        Insert a new URL and return its identifier.

        Raises:
            DuplicateURLError: If original_url is already stored
        """
        pass

    @abstractmethod
    async def get_url_by_id(self, url_id: int) -> URLRecord:
        """
        Fetch a URL by identifier.

        Raises:
            ShortURLNotFoundError: If no URL has this identifier
        """
        pass

    @abstractmethod
    async def insert_visit(self, url_id: int, ip: str, visited_at: datetime) -> None:
        """Record one visit and bump the URL's visitor counter."""
        pass

    @abstractmethod
    async def list_urls(self, offset: int, limit: int) -> list[URLRecord]:
        """List URLs in creation order."""
        pass

    @abstractmethod
    async def list_visits(self, url_id: int, offset: int, limit: int) -> list[VisitRecord]:
        """List visits of one URL, most recent first."""
        pass

    @abstractmethod
    async def count_urls(self) -> int:
        """Total number of stored URLs."""
        pass
