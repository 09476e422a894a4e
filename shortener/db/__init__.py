"""
Database module with abstraction layer.

This module provides:
- DatabaseAdapter interface: engine configuration per backend
- URLStore interface: the persistence contract used by the services
- SQLModelURLStore: URLStore backed by SQLModel tables
- Session management: Database session creation and management

To add a new database backend:
1. Create a new adapter class inheriting from DatabaseAdapter
2. Implement all abstract methods
3. Register it in get_database_adapter() in adapters.py
"""

from shortener.db.interface import DatabaseAdapter, URLStore
from shortener.db.session import build_engine, build_session_maker, get_session, init_db
from shortener.db.sql_store import SQLModelURLStore

__all__ = [
    "DatabaseAdapter",
    "URLStore",
    "SQLModelURLStore",
    "build_engine",
    "build_session_maker",
    "get_session",
    "init_db",
]
