"""
PostgreSQL Database Adapter

This module implements the DatabaseAdapter interface for PostgreSQL
(asyncpg driver). It is the production backend for the visit ledger.
"""

from typing import Any, Optional
from sqlalchemy.pool import Pool

from visit_counter.db.interface import DatabaseAdapter


class PostgreSQLAdapter(DatabaseAdapter):
    """
    PostgreSQL database adapter implementation.

    Uses SQLAlchemy's default async queue pool: one long-lived pool per
    process, shared by all requests.
    """

    def __init__(self, pool_size: int = 5, max_overflow: int = 10, command_timeout: float = 10.0):
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.command_timeout = command_timeout

    def get_pool_class(self) -> Optional[type[Pool]]:
        return None  # AsyncAdaptedQueuePool (SQLAlchemy default for async engines)

    def get_connect_args(self) -> dict[str, Any]:
        return {
            "command_timeout": self.command_timeout,
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False,
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
            # Dropped connections are replaced instead of failing the next insert
            "pool_pre_ping": True,
        }

    def get_dialect_name(self) -> str:
        return "postgresql"
