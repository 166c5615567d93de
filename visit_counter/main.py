"""
FastAPI Application Entry Point

This module builds the FastAPI application and configures:
- API routes
- Middleware (logging, CORS)
- Rate limiting
- Error mapping for service exceptions
- Startup/shutdown of the Redis and database connections

Run with:
    uvicorn visit_counter.main:app
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from visit_counter import __version__
from visit_counter.api import endpoints
from visit_counter.core.exceptions import VisitCounterException
from visit_counter.core.lifecycle import initialize_resources, shutdown_resources
from visit_counter.core.rate_limit import limiter
from visit_counter.core.setting import Settings, settings as default_settings
from visit_counter.middleware.logging import add_logging_middleware, configure_logging

logger = logging.getLogger(__name__)

SERVICE_NAME = "Visit Counter API"


async def visit_counter_exception_handler(request: Request, exc: VisitCounterException) -> JSONResponse:
    """
    Map service exceptions to a fixed public message.

    Full detail (including the wrapped driver error) stays in the server log.
    """
    logger.error(
        f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}",
        exc_info=exc.original_error,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.public_message}
    )


def create_app(settings: Settings = default_settings) -> FastAPI:
    """
    Build the FastAPI application.

    Store adapters are created by the startup handler, so building the app
    does not touch Redis or the database.
    """
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=SERVICE_NAME,
        description="Records visits in a Redis counter and a durable visit ledger",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Endpoints read configuration through api.dependencies.get_settings
    app.state.settings = settings
    # One limiter per process; the most recently built app decides
    limiter.enabled = settings.RATE_LIMIT_ENABLED
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(VisitCounterException, visit_counter_exception_handler)

    add_logging_middleware(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Liveness check. Does not touch Redis or the database."""
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.ENV_SETTING.value,
        }

    @app.get("/api/info", tags=["Health"])
    async def api_info():
        return {
            "name": SERVICE_NAME,
            "version": __version__,
            "environment": settings.ENV_SETTING.value,
            "logLevel": settings.LOG_LEVEL,
        }

    app.include_router(endpoints.router, tags=["Visits"])

    @app.on_event("startup")
    async def startup_event():
        """Connect to the visit ledger and start connecting to Redis."""
        await initialize_resources(app, settings)

    @app.on_event("shutdown")
    async def shutdown_event():
        """Release connections after in-flight requests complete."""
        logger.info("Shutdown received, closing connections...")
        await shutdown_resources(app)

    return app


app = create_app()
