"""
Database Engine and Session Factory

This module builds the async SQLAlchemy engine and session factory used by
the visit ledger. Nothing is created at import time: the application builds
one engine at startup (see core.lifecycle) and hands the session factory to
the ledger adapter.

The database adapter pattern allows us to:
- Use SQLite by default
- Switch to PostgreSQL by changing DATABASE_URL (no code changes needed)
- Add new database backends easily
"""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from visit_counter.db.interface import DatabaseAdapter
from visit_counter.db.postgresql_adapter import PostgreSQLAdapter
from visit_counter.db.sqlite_adapter import SQLiteAdapter


def get_database_adapter(database_url: str) -> DatabaseAdapter:
    """
    Pick the database adapter for a connection string.

    Args:
        database_url: SQLAlchemy URL (sqlite+aiosqlite://... or postgresql+asyncpg://...)

    Returns:
        DatabaseAdapter instance

    Raises:
        ValueError: If the backend is not supported
    """
    backend = make_url(database_url).get_backend_name()
    if backend == "sqlite":
        return SQLiteAdapter()
    if backend == "postgresql":
        return PostgreSQLAdapter()
    raise ValueError(f"Unsupported database backend: {backend}")


def build_engine(database_url: str, **kwargs) -> AsyncEngine:
    """Create the async engine for database_url through its adapter."""
    return get_database_adapter(database_url).create_engine(database_url, **kwargs)


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """
    Create the async session factory bound to engine.

    Sessions keep attributes loaded after commit so a freshly inserted
    visit can be returned without another round trip.
    """
    return async_sessionmaker(
        engine,
        class_=SQLModelAsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create missing tables (no-op for tables that already exist)."""
    from visit_counter.db import models  # noqa: F401  register table metadata

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
