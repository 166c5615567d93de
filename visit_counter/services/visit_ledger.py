"""
Visit Ledger Service

This service is the durable, authoritative store of visit records.

Design Decisions:
- Append-only: one INSERT per visit, committed on its own (single-row
  transaction), never updated or deleted
- id and timestamp come from the database, not from the application
- Database errors are wrapped in LedgerWriteFailedError / LedgerReadFailedError
  so callers never depend on SQLAlchemy exception types
- No retries: a failed append is reported once to the caller
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from visit_counter.core.exceptions import LedgerReadFailedError, LedgerWriteFailedError
from visit_counter.db.models import Visit


def _as_utc(value: datetime) -> datetime:
    # SQLite returns naive datetimes; CURRENT_TIMESTAMP is UTC there
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class VisitRecord:
    """One immutable row of the visit ledger."""
    id: int
    timestamp: datetime
    visitor_count: int

    @classmethod
    def from_row(cls, row: Visit) -> "VisitRecord":
        return cls(
            id=row.id,
            timestamp=_as_utc(row.timestamp),
            visitor_count=row.visitor_count,
        )


class VisitLedger(ABC):
    """Abstract visit ledger."""

    @abstractmethod
    async def append(self, count: int) -> VisitRecord:
        """
        Persist a new visit with the given count.

        Raises:
            LedgerWriteFailedError: If the record could not be committed
        """
        pass

    @abstractmethod
    async def recent(self, limit: int) -> list[VisitRecord]:
        """
        Return up to limit most recent visits, newest first.

        Raises:
            LedgerReadFailedError: If the ledger could not be queried
        """
        pass

    @abstractmethod
    async def self_test(self) -> datetime:
        """
        Return the store's current time (connectivity check).

        Raises:
            LedgerReadFailedError: If the store is unreachable
        """
        pass


class SqlVisitLedger(VisitLedger):
    """
    Visit ledger backed by the `visits` table (SQLite or PostgreSQL).

    Each operation opens its own session from the shared factory, so the
    ledger object itself is safe to share across concurrent requests.
    """

    def __init__(self, session_maker: async_sessionmaker):
        """
        Args:
            session_maker: Async session factory bound to the application engine
        """
        self.session_maker = session_maker

    async def append(self, count: int) -> VisitRecord:
        visit = Visit(visitor_count=count)
        try:
            async with self.session_maker() as session:
                session.add(visit)
                await session.flush()
                # Server-assigned fields are loaded before the commit, so any
                # failure up to here rolls the row back
                await session.refresh(visit)
                record = VisitRecord.from_row(visit)
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise LedgerWriteFailedError(str(e), original_error=e) from e

        return record

    async def recent(self, limit: int) -> list[VisitRecord]:
        if limit < 1:
            raise ValueError(f"limit must be positive, got {limit}")

        # id breaks timestamp ties (same-second inserts on SQLite)
        statement = (
            select(Visit)
            .order_by(Visit.timestamp.desc(), Visit.id.desc())
            .limit(limit)
        )
        try:
            async with self.session_maker() as session:
                result = await session.execute(statement)
                rows = result.scalars().all()
        except (SQLAlchemyError, OSError) as e:
            raise LedgerReadFailedError(str(e), original_error=e) from e

        return [VisitRecord.from_row(row) for row in rows]

    async def self_test(self) -> datetime:
        try:
            async with self.session_maker() as session:
                result = await session.execute(select(func.current_timestamp()))
                now = result.scalar_one()
        except (SQLAlchemyError, OSError) as e:
            raise LedgerReadFailedError(str(e), original_error=e) from e

        return _as_utc(now)
