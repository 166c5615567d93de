"""
SQLite Database Adapter

This module implements the DatabaseAdapter interface for SQLite.

SQLite is the default backend for:
- Local development
- Testing
- Single-instance deployments

Key characteristics:
- File-based (single .db file)
- No server required
- Single writer at a time (file locking), so each visit insert is serialized
"""

from typing import Any
from sqlalchemy.pool import NullPool

from visit_counter.db.interface import DatabaseAdapter


class SQLiteAdapter(DatabaseAdapter):
    """SQLite database adapter implementation."""

    def get_pool_class(self) -> type[NullPool]:
        """
        SQLite uses NullPool: a file-based database doesn't benefit from
        connection pooling, and a fresh aiosqlite connection per session keeps
        connections from leaking across event loops.
        """
        return NullPool

    def get_connect_args(self) -> dict[str, Any]:
        return {
            "check_same_thread": False
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False  # Set to True only for SQL debugging in development
        }

    def get_dialect_name(self) -> str:
        return "sqlite"
