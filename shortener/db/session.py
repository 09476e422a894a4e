"""
Database Session Management with Connection Pooling

This module handles async database connections using SQLAlchemy's async engine.
Uses a database abstraction layer to support different database backends.

Key Features:
- Database abstraction: adapter picked from the DATABASE_URL scheme
- Async session management: Proper async context management
- Error handling: Automatic rollback on exceptions

The engine and session factory are built by the application factory and kept
on app.state, so each application instance (and each test) owns its database.
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from shortener.db import models  # noqa: F401  (registers tables on SQLModel.metadata)
from shortener.db.adapters import get_database_adapter


def build_engine(database_url: str, **kwargs) -> AsyncEngine:
    """Create the async engine for a connection string through its adapter."""
    return get_database_adapter(database_url).create_engine(database_url, **kwargs)


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """Create the session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=SQLModelAsyncSession,
        expire_on_commit=False,  # Prevents SQLAlchemy from expiring objects after commit
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create missing tables. Existing tables are left untouched."""
    async with engine.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function for FastAPI to get database session.

    This function:
    - Creates a new async session from the application's factory
    - Yields it to the endpoint
    - Automatically commits on success
    - Rolls back on exception
    """
    async with request.app.state.session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
