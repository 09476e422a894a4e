"""
API Request and Response Schemas

This module defines all Pydantic models for API requests and responses.
Separated from endpoints to keep concerns separated and enable reuse.

Field names follow the public JSON payloads exactly.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class ShortenRequest(BaseModel):
    """Request model for URL shortening endpoint."""
    url: str = Field(..., description="The URL to shorten")


class ShortenResponse(BaseModel):
    """Response model for URL shortening endpoint."""
    shorten_url: str = Field(..., description="The complete short URL")


class ShortURLResponse(BaseModel):
    """One entry of the URL listing."""
    original: str
    shorten: str
    total_visitor: int
    created_at: datetime


class VisitorResponse(BaseModel):
    """One entry of the visitor listing."""
    ip: str
    original: str
    shorten: str
    time_visited: datetime


class CountResponse(BaseModel):
    """Response model for the URL count endpoint."""
    total_urls: int


class ErrorResponse(BaseModel):
    """Body of every error response."""
    error: str
