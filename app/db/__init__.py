"""
Database module with abstraction layer.

This module provides:
- DatabaseAdapter interface: Abstract base class for database implementations
- SQLiteAdapter / PostgreSQLAdapter: backend-specific engine configuration
- Engine and session factory construction
- LinkStore: the storage interface the rest of the service depends on

To add a new database backend:
1. Create a new adapter class inheriting from DatabaseAdapter
2. Implement all abstract methods
3. Register it in _ADAPTERS in adapters.py
"""

from app.db.interface import DatabaseAdapter
from app.db.session import create_engine_for_url, create_session_maker, create_tables
from app.db.store import LinkStore, SQLLinkStore

__all__ = [
    "DatabaseAdapter",
    "create_engine_for_url",
    "create_session_maker",
    "create_tables",
    "LinkStore",
    "SQLLinkStore",
]
