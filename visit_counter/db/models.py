"""
Database Models for the Visit Counter Service

This module defines the SQLModel database schema for:
- Visit: one row per recorded visit (the visit ledger)

Design Decisions:
- Append-only: rows are inserted once and never updated or deleted
- id and timestamp are assigned by the database on insert
- Index on timestamp for the "most recent visits" query
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, Integer, text
from sqlmodel import SQLModel, Field


class Visit(SQLModel, table=True):
    """
    Visit ledger table.

    Fields:
    - id: Auto-incrementing primary key (monotonic, follows insertion order)
    - timestamp: Insert time, defaulted by the database (CURRENT_TIMESTAMP)
    - visitor_count: Snapshot of the counter computed by the recording request
    """
    __tablename__ = "visits"

    id: Optional[int] = Field(default=None, primary_key=True)
    # None is left out of the INSERT so the server default applies
    timestamp: Optional[datetime] = Field(
        default=None,
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            index=True,
            server_default=text("CURRENT_TIMESTAMP"),
        )
    )
    visitor_count: int = Field(sa_column=Column(Integer, nullable=False))
