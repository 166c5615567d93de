"""
API Response Schemas

This module defines all Pydantic models for API responses.
Separated from endpoints to keep concerns separated and enable reuse.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class VisitResponse(BaseModel):
    """Response model for the visit recording endpoint."""
    visits: int = Field(..., description="Count recorded for this visit")
    message: str
    cached: bool = Field(..., description="Whether the counter cache accepted the new count")


class VisitRecordOut(BaseModel):
    """One visit ledger record."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    timestamp: datetime
    visitor_count: int


class HistoryResponse(BaseModel):
    """Response model for the visit history endpoint."""
    history: list[VisitRecordOut]
    count: int


class ErrorResponse(BaseModel):
    """Body returned for failed requests."""
    error: str


class DbTestResponse(BaseModel):
    status: str
    timestamp: datetime


class RedisTestResponse(BaseModel):
    status: str
    test: str
