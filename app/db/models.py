"""
Database Models for the Link Service

This module defines the SQLModel database schema for:
- Link: Maps a shortcode to its target URL together with usage metadata

Design Decisions:
- Unique index on code for fast lookups (the redirect path is the hot path)
- Index on created_at for newest-first listing
- clicks and last_clicked live on the link row; they are updated with a single
  UPDATE statement so concurrent redirects never read-modify-write
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text
from sqlmodel import Column, Field, SQLModel


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class Link(SQLModel, table=True):
    """
    A shortcode and the URL it redirects to.

    Fields:
    - id: Auto-incrementing primary key (internal)
    - code: Unique 6-8 character alphanumeric shortcode, immutable
    - url: The redirect target, stored as given
    - clicks: Number of successful resolutions (approximate under concurrency)
    - created_at: When the link was created
    - last_clicked: When the link was last resolved, None until the first hit

    Links are hard-deleted; there is no soft-delete flag.
    """
    __tablename__ = "links"

    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(
        sa_column=Column(String(8), nullable=False, unique=True, index=True),
        max_length=8
    )
    url: str = Field(sa_column=Column(Text, nullable=False))
    clicks: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
    last_clicked: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True)
    )
