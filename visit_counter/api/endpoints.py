"""
FastAPI Endpoints for the Visit Counter Service

This module defines all REST API endpoints with minimal logic.
Endpoints only handle:
- Request validation
- Rate limiting
- Shaping HTTP responses
- Delegating to the service layer

Errors raised by the service layer are mapped to HTTP responses by the
application exception handler (see main.py), which only ever returns a
fixed message per error kind. The two diagnostic endpoints shape their own
error bodies.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from visit_counter.api.dependencies import get_settings, get_visit_service
from visit_counter.api.schemas import (
    DbTestResponse,
    ErrorResponse,
    HistoryResponse,
    RedisTestResponse,
    VisitRecordOut,
    VisitResponse,
)
from visit_counter.core.exceptions import CacheUnavailableError, LedgerReadFailedError
from visit_counter.core.rate_limit import limiter, RATE_LIMITS
from visit_counter.core.setting import Settings
from visit_counter.services.visit_service import VisitService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.get(
    "/visits",
    response_model=VisitResponse,
    responses={500: {"model": ErrorResponse}},
    summary="Record a visit",
    description="Increments the visit counter and appends a record to the visit ledger"
)
@limiter.limit(RATE_LIMITS["visits"])
async def record_visit(
    request: Request,  # Required for rate limiting (slowapi expects parameter named 'request')
    visit_service: VisitService = Depends(get_visit_service)
) -> VisitResponse:
    """
    Record a visit.

    Returns:
        VisitResponse with the recorded count and whether the cache was updated

    Raises:
        LedgerWriteFailedError: Mapped to HTTP 500 by the exception handler
    """
    outcome = await visit_service.record_visit()

    return VisitResponse(
        visits=outcome.visits,
        message="Visit recorded successfully",
        cached=outcome.cached
    )


@router.get(
    "/history",
    response_model=HistoryResponse,
    responses={500: {"model": ErrorResponse}},
    summary="Get visit history",
    description="Returns the most recent visit records, newest first"
)
@limiter.limit(RATE_LIMITS["history"])
async def get_history(
    request: Request,
    limit: Optional[int] = Query(
        default=None,
        ge=1,
        description="Maximum number of records to return (HISTORY_DEFAULT_LIMIT when omitted)"
    ),
    settings: Settings = Depends(get_settings),
    visit_service: VisitService = Depends(get_visit_service)
) -> HistoryResponse:
    if limit is None:
        limit = settings.HISTORY_DEFAULT_LIMIT
    elif limit > settings.HISTORY_MAX_LIMIT:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"limit must be at most {settings.HISTORY_MAX_LIMIT}"
        )

    records = await visit_service.history(limit)

    return HistoryResponse(
        history=[VisitRecordOut.model_validate(record) for record in records],
        count=len(records)
    )


@router.get(
    "/db-test",
    response_model=DbTestResponse,
    summary="Test database connection"
)
@limiter.limit(RATE_LIMITS["diagnostics"])
async def db_test(
    request: Request,
    visit_service: VisitService = Depends(get_visit_service)
):
    try:
        now = await visit_service.ledger_status()
    except LedgerReadFailedError as e:
        logger.error(f"Database test failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": "error", "message": "Database connection failed"}
        )

    return DbTestResponse(status="connected", timestamp=now)


@router.get(
    "/redis-test",
    response_model=RedisTestResponse,
    summary="Test Redis connection"
)
@limiter.limit(RATE_LIMITS["diagnostics"])
async def redis_test(
    request: Request,
    visit_service: VisitService = Depends(get_visit_service)
):
    try:
        value = await visit_service.cache_status()
    except CacheUnavailableError as e:
        logger.warning(f"Redis test failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "disconnected", "message": e.public_message}
        )
    except Exception as e:
        logger.error(f"Unexpected error during Redis test: {str(e)}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": "error", "message": "Redis test failed"}
        )

    return RedisTestResponse(status="connected", test=value)
