"""
Counter Cache Service

This service keeps the running visit count in Redis under a single key.

Design Decisions:
- Best effort: the cache is never authoritative (the visit ledger is)
- Never raises on read/write: unavailability is reported to the caller
  as a status so the recording path can continue in degraded mode
- Connects in the background at startup; until the first successful
  ping every operation reports "unavailable" immediately
- A Redis error marks the cache unavailable and schedules a reconnect

Concurrency:
- read() then write() is NOT atomic. Two concurrent requests can read the
  same value and both write value + 1 (lost update). The cache is a
  fast-path counter only, so this is accepted.
"""

import asyncio
import contextlib
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError
from tenacity import AsyncRetrying, before_sleep_log, retry_if_exception_type, wait_fixed

from visit_counter.core.exceptions import CacheUnavailableError, VisitCounterException
from visit_counter.core.setting import Settings

logger = logging.getLogger(__name__)

SELF_TEST_KEY = "test"
SELF_TEST_VALUE = "hello"


@dataclass(frozen=True)
class CacheRead:
    """Result of reading the counter: the value and whether the cache answered."""
    value: int
    available: bool


class CounterCache(ABC):
    """
    Abstract counter cache.

    Implementations must not raise from read() or write().
    """

    @property
    @abstractmethod
    def is_available(self) -> bool:
        pass

    @abstractmethod
    async def read(self) -> CacheRead:
        """Return the stored count (0 when absent or unreachable)."""
        pass

    @abstractmethod
    async def write(self, value: int) -> bool:
        """Store value under the counter key. Returns False when it could not."""
        pass

    @abstractmethod
    async def self_test(self) -> str:
        """
        Round-trip a test key through the cache.

        Raises:
            CacheUnavailableError: If the cache is not connected
            VisitCounterException: If the value read back is not the one written
        """
        pass

    def start(self) -> None:
        """Begin connecting. Default: nothing to connect."""

    async def close(self) -> None:
        """Release connections. Default: nothing to release."""


class RedisCounterCache(CounterCache):
    """
    Counter cache backed by redis.asyncio.

    The client is created once per process (it owns a connection pool) and
    shared by every request.
    """

    def __init__(
        self,
        client: Redis,
        key: str = "visitor_count",
        reconnect_interval: float = 5.0,
    ):
        """
        Args:
            client: redis.asyncio client (decode_responses=True)
            key: Cache key holding the running count
            reconnect_interval: Seconds between connection attempts
        """
        self._client = client
        self._key = key
        self._reconnect_interval = reconnect_interval
        self._connected = False
        self._connect_task: Optional[asyncio.Task] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisCounterCache":
        client = Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
            socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
        )
        return cls(
            client,
            key=settings.REDIS_COUNTER_KEY,
            reconnect_interval=settings.REDIS_RECONNECT_INTERVAL,
        )

    @property
    def is_available(self) -> bool:
        return self._connected

    def start(self) -> None:
        """
        Schedule the background connection task.

        Must be called from a running event loop. Calling it while a
        connection attempt is already in flight does nothing.
        """
        if self._connect_task is not None and not self._connect_task.done():
            return
        self._connect_task = asyncio.create_task(self.connect())

    async def connect(self) -> None:
        """
        Ping Redis until it answers, then mark the cache available.

        Every failure is logged and retried; only cancellation (close())
        ends the loop early.
        """
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(Exception),
            wait=wait_fixed(self._reconnect_interval),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        ):
            with attempt:
                await self._client.ping()
        self._connected = True
        logger.info("Connected to Redis")

    def _mark_unavailable(self, operation: str, error: Exception) -> None:
        if self._connected:
            logger.warning(f"Redis {operation} failed, cache marked unavailable: {error}")
        self._connected = False
        self.start()

    async def read(self) -> CacheRead:
        if not self._connected:
            return CacheRead(value=0, available=False)

        try:
            raw = await self._client.get(self._key)
        except (RedisError, OSError) as e:
            self._mark_unavailable("read", e)
            return CacheRead(value=0, available=False)

        if raw is None:
            return CacheRead(value=0, available=True)

        try:
            value = int(raw)
        except (TypeError, ValueError):
            logger.warning(f"Non-integer value {raw!r} under '{self._key}', counting from 0")
            value = 0
        return CacheRead(value=value, available=True)

    async def write(self, value: int) -> bool:
        if not self._connected:
            return False

        try:
            await self._client.set(self._key, value)
        except (RedisError, OSError) as e:
            self._mark_unavailable("write", e)
            return False
        return True

    async def self_test(self) -> str:
        if not self._connected:
            raise CacheUnavailableError("Redis client not connected")

        try:
            await self._client.set(SELF_TEST_KEY, SELF_TEST_VALUE)
            value = await self._client.get(SELF_TEST_KEY)
        except (RedisError, OSError) as e:
            self._mark_unavailable("self-test", e)
            raise CacheUnavailableError(f"Redis self-test failed: {e}", original_error=e) from e

        if value != SELF_TEST_VALUE:
            raise VisitCounterException(f"Redis self-test read back {value!r}, expected {SELF_TEST_VALUE!r}")
        return value

    async def close(self) -> None:
        if self._connect_task is not None:
            self._connect_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._connect_task
            self._connect_task = None

        self._connected = False
        await self._client.aclose()
        logger.info("Redis connection closed")
