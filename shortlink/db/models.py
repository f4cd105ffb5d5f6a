"""
Database Models for the Short-Link Service

This module defines the SQLModel database schema for:
- Link: Stores the mapping between short keys and destination URLs

Design Decisions:
- Unique index on key: key uniqueness is enforced by the database, which is
  what makes the conditional insert atomic under concurrent requests
- Non-unique index on destination: supports the dedup lookup without
  turning dedup into a hard constraint
- Links are immutable: no update paths, no click counters
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, String, Text
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Link(SQLModel, table=True):
    """
    Table storing key -> destination mappings.

    Fields:
    - id: Auto-incrementing surrogate primary key
    - key: Unique short key (3-32 chars of [a-zA-Z0-9_-])
    - destination: The absolute URL the key redirects to
    - created_at: Timestamp when the link was created (set once)

    Indexes:
    - key: Unique index for redirects and for the atomic insert
    - destination: For the dedup lookup
    """
    __tablename__ = "links"

    id: Optional[int] = Field(default=None, primary_key=True)
    key: str = Field(
        sa_column=Column(String(32), nullable=False, unique=True, index=True)
    )
    destination: str = Field(sa_column=Column(Text, nullable=False, index=True))
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
