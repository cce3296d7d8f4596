"""
Database Engine and Session Factories

This module builds async database engines and session factories using
SQLAlchemy's async engine. Uses the database abstraction layer to support
different database backends.

Nothing here is created at import time: the application builds one engine
and one session factory on startup and hands them to the link store, which
owns them until shutdown.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from app.db.adapters import get_database_adapter


def create_engine_for_url(database_url: str, timeout: Optional[float] = None) -> AsyncEngine:
    """
    Create an async engine for the given connection string.

    The adapter picked from the URL handles all database-specific
    configuration (pool class, connect args, timeouts).

    Args:
        database_url: SQLAlchemy async connection string
        timeout: Connection/query timeout in seconds

    Returns:
        Configured AsyncEngine
    """
    db_adapter = get_database_adapter(database_url)
    return db_adapter.create_engine(database_url, timeout=timeout)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """
    Create an async session factory bound to an engine.

    Args:
        engine: The engine sessions should use

    Returns:
        async_sessionmaker producing SQLModel AsyncSession objects
    """
    return async_sessionmaker(
        engine,
        class_=SQLModelAsyncSession,
        expire_on_commit=False,  # Prevents SQLAlchemy from expiring objects after commit
        autoflush=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables known to SQLModel metadata that don't exist yet."""
    # Imported for its side effect of registering the table on the metadata
    from app.db import models  # noqa: F401

    async with engine.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)
