"""
Shared test fixtures.

- A temporary SQLite file database backs the visit ledger (real SQL, real
  server-side defaults).
- FakeRedis stands in for the redis.asyncio client and can be switched
  "down" to simulate an unreachable cache.
- The API client talks to the app in-process through httpx's ASGI
  transport; adapters are injected with dependency overrides, so the
  startup handler (real Redis / database URLs) never runs.
"""

import httpx
import pytest
import pytest_asyncio
from redis.exceptions import ConnectionError as RedisConnectionError

from visit_counter.api.dependencies import get_counter_cache, get_visit_ledger
from visit_counter.core.rate_limit import limiter
from visit_counter.core.setting import Settings
from visit_counter.db.session import build_engine, build_session_maker, create_tables
from visit_counter.main import create_app
from visit_counter.services.counter_cache import RedisCounterCache
from visit_counter.services.visit_ledger import SqlVisitLedger


class FakeRedis:
    """In-memory stand-in for the parts of redis.asyncio.Redis the cache uses."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.down = False
        self.closed = False

    def _check(self):
        if self.down:
            raise RedisConnectionError("Connection refused")

    async def ping(self):
        self._check()
        return True

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def set(self, key, value):
        self._check()
        # decode_responses=True clients hand values back as str
        self.data[key] = str(value)
        return True

    async def aclose(self):
        self.closed = True


@pytest.fixture(autouse=True)
def disable_rate_limits(monkeypatch):
    monkeypatch.setattr(limiter, "enabled", False)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest_asyncio.fixture
async def counter_cache(fake_redis):
    """Connected counter cache over FakeRedis."""
    cache = RedisCounterCache(fake_redis, key="visitor_count", reconnect_interval=0.01)
    await cache.connect()
    yield cache
    await cache.close()


@pytest_asyncio.fixture
async def cold_counter_cache(fake_redis):
    """Counter cache that never managed to connect."""
    fake_redis.down = True
    cache = RedisCounterCache(fake_redis, key="visitor_count", reconnect_interval=0.01)
    yield cache
    await cache.close()


@pytest_asyncio.fixture
async def ledger(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    await create_tables(engine)
    yield SqlVisitLedger(build_session_maker(engine))
    await engine.dispose()


@pytest_asyncio.fixture
async def broken_ledger(tmp_path):
    """Ledger whose database file cannot be opened."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'ledger.db'}")
    yield SqlVisitLedger(build_session_maker(engine))
    await engine.dispose()


@pytest.fixture
def make_client():
    """Build an API client wired to the given cache and ledger adapters."""
    def _make(counter_cache, ledger, settings: Settings = None) -> httpx.AsyncClient:
        app = create_app(settings or Settings(RATE_LIMIT_ENABLED=False))
        app.dependency_overrides[get_counter_cache] = lambda: counter_cache
        app.dependency_overrides[get_visit_ledger] = lambda: ledger
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app),
            base_url="http://test"
        )

    return _make
