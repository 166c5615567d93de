"""
Application Resource Lifecycle

This module creates the long-lived store adapters on startup and releases
them on shutdown.

Design:
- One Redis client (connection pool) and one database engine per process
- Adapters live on app.state and reach endpoints through FastAPI
  dependencies (see api.dependencies), never through module globals
- Redis connects in the background: startup does not wait for it, and the
  service runs in degraded mode until it is reachable
"""

import logging

from fastapi import FastAPI

from visit_counter.core.setting import Settings
from visit_counter.db.session import build_session_maker, create_tables, get_database_adapter
from visit_counter.services.counter_cache import RedisCounterCache
from visit_counter.services.visit_ledger import SqlVisitLedger

logger = logging.getLogger(__name__)


async def initialize_resources(app: FastAPI, settings: Settings) -> None:
    """
    Build the counter cache and visit ledger and attach them to app.state.

    Table creation failures are logged, not raised: the ledger reports its own
    errors per request, and /api/db-test exposes connectivity.
    """
    db_adapter = get_database_adapter(settings.DATABASE_URL)
    engine = db_adapter.create_engine(settings.DATABASE_URL)
    app.state.db_engine = engine
    app.state.visit_ledger = SqlVisitLedger(build_session_maker(engine))

    if settings.CREATE_TABLES_ON_STARTUP:
        try:
            await create_tables(engine)
            logger.info("Database initialized")
        except Exception as e:
            logger.error(f"Database initialization error: {str(e)}", exc_info=True)

    counter_cache = RedisCounterCache.from_settings(settings)
    counter_cache.start()
    app.state.counter_cache = counter_cache

    logger.info(
        f"Resources initialized: environment={settings.ENV_SETTING.value}, "
        f"database={db_adapter.get_dialect_name()}"
    )


async def shutdown_resources(app: FastAPI) -> None:
    """Close the Redis client and dispose of the database engine."""
    counter_cache = getattr(app.state, "counter_cache", None)
    if counter_cache is not None:
        try:
            await counter_cache.close()
        except Exception as e:
            logger.warning(f"Failed to close Redis client: {e}")
        app.state.counter_cache = None

    engine = getattr(app.state, "db_engine", None)
    if engine is not None:
        logger.info("Disposing database engine")
        await engine.dispose()
        app.state.db_engine = None
        app.state.visit_ledger = None
