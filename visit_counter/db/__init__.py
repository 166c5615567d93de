"""
Database module with abstraction layer.

This module provides:
- DatabaseAdapter interface: Abstract base class for database implementations
- SQLiteAdapter / PostgreSQLAdapter: backend-specific engine configuration
- Engine and session factory builders
"""

from visit_counter.db.interface import DatabaseAdapter
from visit_counter.db.session import (
    build_engine,
    build_session_maker,
    create_tables,
    get_database_adapter,
)

__all__ = [
    "DatabaseAdapter",
    "build_engine",
    "build_session_maker",
    "create_tables",
    "get_database_adapter",
]
