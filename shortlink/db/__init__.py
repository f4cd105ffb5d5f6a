"""
Database module with abstraction layer.

This module provides:
- DatabaseAdapter interface: Abstract base class for database implementations
- SQLiteAdapter: SQLite-specific implementation (default)
- Session management: Engine, session factory and session dependency
"""

from shortlink.db.interface import DatabaseAdapter
from shortlink.db.session import build_engine, get_session, init_db, make_session_maker

__all__ = [
    "DatabaseAdapter",
    "build_engine",
    "get_session",
    "init_db",
    "make_session_maker",
]
