"""
Visit Service

This service orchestrates recording a visit across the counter cache and
the visit ledger, and serves the visit history.

Recording runs as a small state machine per request:

    START -> READ_CACHE -> APPEND_LEDGER -> DONE
                                 |
                                 +--> FAILED

- READ_CACHE always proceeds. An unavailable cache reads as 0, so a cold
  or unreachable cache restarts the count at 1. The count is not derived
  from the ledger.
- The cache write is best effort; its result only sets the `cached` flag.
- APPEND_LEDGER must succeed. The ledger is the source of truth, so a
  failed append fails the whole request and is not retried.

No lock spans the cache read, cache write and ledger append. Concurrent
requests may record the same visitor_count.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from visit_counter.core.exceptions import (
    LedgerReadFailedError,
    VisitCounterException,
    VisitRecordingError,
)
from visit_counter.services.counter_cache import CounterCache
from visit_counter.services.visit_ledger import VisitLedger, VisitRecord

logger = logging.getLogger(__name__)


class RecordingState(Enum):
    START = "start"
    READ_CACHE = "read_cache"
    APPEND_LEDGER = "append_ledger"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class VisitOutcome:
    """Result of a successful recording."""
    visits: int
    cached: bool
    record: VisitRecord


class VisitService:
    """
    Service for recording visits and reading visit history.

    The cache and ledger adapters are created once at startup and injected;
    a VisitService is cheap and can be built per request.
    """

    def __init__(self, counter_cache: CounterCache, ledger: VisitLedger):
        """
        Args:
            counter_cache: Best-effort running counter
            ledger: Durable visit ledger
        """
        self.counter_cache = counter_cache
        self.ledger = ledger

    async def record_visit(self) -> VisitOutcome:
        """
        Record one visit.

        Returns:
            VisitOutcome with the computed count and whether the cache took it

        Raises:
            LedgerWriteFailedError: If the ledger append failed
            VisitRecordingError: On any unexpected adapter error
        """
        state = RecordingState.START
        try:
            state = RecordingState.READ_CACHE
            reading = await self.counter_cache.read()
            if not reading.available:
                logger.warning("Redis not available, counting visit from 0")

            next_count = reading.value + 1
            cached = await self.counter_cache.write(next_count)

            state = RecordingState.APPEND_LEDGER
            record = await self.ledger.append(next_count)
        except VisitCounterException as e:
            logger.error(f"Visit recording {RecordingState.FAILED.value} in {state.value}: {e}")
            raise
        except Exception as e:
            logger.exception(f"Visit recording {RecordingState.FAILED.value} in {state.value}")
            raise VisitRecordingError(f"Unexpected error in {state.value}: {e}", original_error=e) from e

        state = RecordingState.DONE
        logger.debug(
            f"Visit recording {state.value}: id={record.id} "
            f"visits={next_count} cached={cached}"
        )
        return VisitOutcome(visits=next_count, cached=cached, record=record)

    async def history(self, limit: int) -> list[VisitRecord]:
        """
        Get the most recent visits, newest first. Reads the ledger only.

        Raises:
            LedgerReadFailedError: If the ledger could not be read
        """
        try:
            return await self.ledger.recent(limit)
        except (VisitCounterException, ValueError):
            raise
        except Exception as e:
            logger.exception("Unexpected error reading visit history")
            raise LedgerReadFailedError(str(e), original_error=e) from e

    async def ledger_status(self) -> datetime:
        """Current time reported by the ledger store."""
        return await self.ledger.self_test()

    async def cache_status(self) -> str:
        """Value round-tripped through the cache."""
        return await self.counter_cache.self_test()
