"""
Tests for the visit recording flow across cache and ledger.
"""

import asyncio

import pytest

from visit_counter.core.exceptions import (
    LedgerReadFailedError,
    LedgerWriteFailedError,
    VisitRecordingError,
)
from visit_counter.services.visit_ledger import SqlVisitLedger
from visit_counter.services.visit_service import VisitService


class ExplodingLedger(SqlVisitLedger):
    """Ledger raising a non-domain error, as a driver bug would."""

    async def append(self, count):
        raise RuntimeError("driver exploded")

    async def recent(self, limit):
        raise RuntimeError("driver exploded")


class TestRecordVisit:

    @pytest.mark.asyncio
    async def test_nth_request_yields_n(self, counter_cache, ledger):
        service = VisitService(counter_cache, ledger)

        outcomes = [await service.record_visit() for _ in range(5)]

        assert [o.visits for o in outcomes] == [1, 2, 3, 4, 5]
        assert all(o.cached for o in outcomes)

    @pytest.mark.asyncio
    async def test_ledger_row_matches_returned_count(self, counter_cache, ledger):
        service = VisitService(counter_cache, ledger)

        outcome = await service.record_visit()

        assert outcome.record.visitor_count == outcome.visits
        assert [r.visitor_count for r in await ledger.recent(10)] == [1]

    @pytest.mark.asyncio
    async def test_continues_from_cached_value(self, counter_cache, fake_redis, ledger):
        fake_redis.data["visitor_count"] = "99"
        service = VisitService(counter_cache, ledger)

        outcome = await service.record_visit()

        assert outcome.visits == 100
        assert fake_redis.data["visitor_count"] == "100"

    @pytest.mark.asyncio
    async def test_unavailable_cache_restarts_at_one(self, cold_counter_cache, ledger):
        service = VisitService(cold_counter_cache, ledger)
        await ledger.append(41)

        outcome = await service.record_visit()

        # Not derived from the ledger's last row
        assert outcome.visits == 1
        assert outcome.cached is False
        assert (await ledger.recent(1))[0].visitor_count == 1

    @pytest.mark.asyncio
    async def test_failed_cache_write_only_clears_cached_flag(self, counter_cache, fake_redis, ledger):
        fake_redis.data["visitor_count"] = "4"
        service = VisitService(counter_cache, ledger)

        original_set = fake_redis.set

        async def failing_set(key, value):
            fake_redis.down = True
            try:
                return await original_set(key, value)
            finally:
                fake_redis.down = False

        fake_redis.set = failing_set

        outcome = await service.record_visit()

        assert outcome.visits == 5
        assert outcome.cached is False
        assert (await ledger.recent(1))[0].visitor_count == 5

    @pytest.mark.asyncio
    async def test_ledger_failure_fails_request(self, counter_cache, broken_ledger):
        service = VisitService(counter_cache, broken_ledger)

        with pytest.raises(LedgerWriteFailedError):
            await service.record_visit()

    @pytest.mark.asyncio
    async def test_ledger_failure_is_not_retried(self, counter_cache, ledger, monkeypatch):
        calls = []

        async def failing_append(count):
            calls.append(count)
            raise LedgerWriteFailedError("boom")

        monkeypatch.setattr(ledger, "append", failing_append)
        service = VisitService(counter_cache, ledger)

        with pytest.raises(LedgerWriteFailedError):
            await service.record_visit()

        assert calls == [1]
        assert await ledger.recent(10) == []

    @pytest.mark.asyncio
    async def test_unexpected_error_is_wrapped(self, counter_cache, ledger):
        service = VisitService(counter_cache, ExplodingLedger(ledger.session_maker))

        with pytest.raises(VisitRecordingError) as exc_info:
            await service.record_visit()

        assert isinstance(exc_info.value.original_error, RuntimeError)
        assert exc_info.value.public_message == "Failed to process visit"

    @pytest.mark.asyncio
    async def test_concurrent_requests_may_share_a_count(self, counter_cache, fake_redis, ledger):
        # Both requests read before either writes: the accepted lost update
        reads = asyncio.Event()
        waiting = []
        original_get = fake_redis.get

        async def synchronized_get(key):
            value = await original_get(key)
            waiting.append(key)
            if len(waiting) == 2:
                reads.set()
            await reads.wait()
            return value

        fake_redis.get = synchronized_get
        service = VisitService(counter_cache, ledger)

        outcomes = await asyncio.gather(service.record_visit(), service.record_visit())

        assert [o.visits for o in outcomes] == [1, 1]
        assert [r.visitor_count for r in await ledger.recent(10)] == [1, 1]


class TestHistory:

    @pytest.mark.asyncio
    async def test_history_reads_ledger_only(self, cold_counter_cache, ledger):
        await ledger.append(7)
        await ledger.append(8)
        service = VisitService(cold_counter_cache, ledger)

        records = await service.history(10)

        assert [r.visitor_count for r in records] == [8, 7]

    @pytest.mark.asyncio
    async def test_unexpected_error_maps_to_read_failed(self, counter_cache, ledger):
        service = VisitService(counter_cache, ExplodingLedger(ledger.session_maker))

        with pytest.raises(LedgerReadFailedError):
            await service.history(10)
