"""
Database Models for URL Shortener Service

This module defines the SQLModel database schemas for:
- ShortURL: Stores original URLs; the primary key is the base62 source
- Visitor: Stores one row per redirect (IP and timestamp)

It also defines the plain records the store hands back to the service, so
that no ORM object escapes a single store call.

Design Decisions:
- Short codes are not stored, they are computed from the id on demand
- Unique index on original_url: a URL can be shortened only once
- total_visitors denormalized in ShortURL for listing without joins
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlmodel import Column, Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ShortURL(SQLModel, table=True):
    """
    Main table storing shortened URLs.

    Fields:
    - id: Auto-incrementing primary key (encoded as the short code)
    - original_url: The URL that was shortened, unique
    - created_at: Timestamp when URL was shortened
    - total_visitors: Incremented together with every Visitor insert
    """
    __tablename__ = "urls"
    __table_args__ = (UniqueConstraint("original_url", name="url_original_url_key"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    original_url: str = Field(
        sa_column=Column(Text, nullable=False)
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
    total_visitors: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0, server_default="0")
    )


class Visitor(SQLModel, table=True):
    """
    Visit log table.

    One row per redirect attempt on an existing short URL.
    """
    __tablename__ = "visitors"

    id: Optional[int] = Field(default=None, primary_key=True)
    url_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("urls.id", ondelete="CASCADE"),
            nullable=False,
            index=True
        )
    )
    ip: str = Field(sa_column=Column(String(45), nullable=False))  # IPv6 max length
    time_visited: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )


@dataclass(frozen=True)
class URLRecord:
    """A short URL row as returned by the store."""
    id: int
    original_url: str
    total_visitors: int
    created_at: datetime


@dataclass(frozen=True)
class VisitRecord:
    """A visit row as returned by the store."""
    ip: str
    visited_at: datetime
