"""
Database Adapters

This module implements the DatabaseAdapter interface for the supported backends.
All backend-specific configuration and behavior is encapsulated here.

SQLite is perfect for:
- Local development
- Testing
- Single-instance deployments

PostgreSQL (asyncpg) is the production backend: server-based, real connection
pooling, many concurrent writers.
"""

from typing import Any, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.pool import NullPool

from app.db.interface import DatabaseAdapter


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter implementation.

    SQLite uses file-based storage and has different characteristics than
    server-based databases like PostgreSQL.
    """

    def get_pool_class(self) -> type[NullPool]:
        """
        Get the connection pool class for SQLite.

        SQLite uses NullPool (connection per session) because:
        - File-based database doesn't benefit from connection pooling
        - SQLite handles one writer at a time (file locking)

        Returns:
            NullPool class
        """
        return NullPool

    def get_connect_args(self, timeout: Optional[float] = None) -> dict[str, Any]:
        """
        Get SQLite-specific connection arguments.

        ``timeout`` is how long SQLite waits on a locked database file before
        giving up with an OperationalError.

        Returns:
            Dictionary with SQLite connection arguments
        """
        connect_args: dict[str, Any] = {"check_same_thread": False}
        if timeout is not None:
            connect_args["timeout"] = timeout
        return connect_args

    def get_engine_kwargs(self) -> dict[str, Any]:
        """
        Get SQLite-specific engine configuration.

        Returns:
            Dictionary with SQLite engine options
        """
        return {
            "echo": False  # Set to True only for SQL debugging in development
        }

    def get_dialect_name(self) -> str:
        return "sqlite"


class PostgreSQLAdapter(DatabaseAdapter):
    """
    PostgreSQL database adapter (asyncpg driver).

    Uses SQLAlchemy's default async queue pool with pre-ping so connections
    dropped by the server are detected before a request uses them.
    """

    def get_pool_class(self) -> None:
        return None

    def get_connect_args(self, timeout: Optional[float] = None) -> dict[str, Any]:
        """
        Get asyncpg connection arguments.

        ``timeout`` bounds connection establishment and ``command_timeout``
        bounds each statement.
        """
        if timeout is None:
            return {}
        return {
            "timeout": timeout,
            "command_timeout": timeout,
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False,
            "pool_pre_ping": True,
            "pool_size": 5,
            "max_overflow": 10,
        }

    def get_dialect_name(self) -> str:
        return "postgresql"


_ADAPTERS: dict[str, type[DatabaseAdapter]] = {
    "sqlite": SQLiteAdapter,
    "postgresql": PostgreSQLAdapter,
}


def get_database_adapter(database_url: str) -> DatabaseAdapter:
    """
    Factory function to get the database adapter for a connection string.

    The backend is picked from the URL's dialect (the part before ``+driver``).

    Args:
        database_url: SQLAlchemy connection string

    Returns:
        DatabaseAdapter instance

    Raises:
        ValueError: If the URL is malformed or names an unsupported backend
    """
    try:
        backend = make_url(database_url).get_backend_name()
    except ArgumentError as e:
        raise ValueError(f"Invalid DATABASE_URL: {e}") from e

    adapter_class = _ADAPTERS.get(backend)
    if adapter_class is None:
        raise ValueError(
            f"Unsupported database backend '{backend}'. "
            f"Supported: {', '.join(sorted(_ADAPTERS))}"
        )
    return adapter_class()
