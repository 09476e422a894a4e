"""
URL Shortening Service

This service handles the core business logic for URL shortening:
- Creating short URLs (store assigns the id, base62 turns it into a code)
- Resolving short codes for redirection and recording the visit
- Paginated listings of short URLs and of their visitors

Design Decisions:
- Counter-based codes: the store's auto-incrementing id encoded in base62,
  unique by construction, no collision handling needed
- The service depends on the URLStore contract only, never on a session
- Visit recording is best-effort: a failed insert is logged and dropped,
  the redirect still succeeds
- No retries: every other failure surfaces immediately
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from shortener.core.base62 import decode_base62, encode_base62
from shortener.core.exceptions import (
    DatabaseError,
    InvalidInputError,
    ShortURLNotFoundError,
    URLShortenerException,
)
from shortener.db.interface import URLStore
from shortener.db.models import utcnow

logger = logging.getLogger(__name__)

MIN_PAGE_SIZE = 1
MAX_PAGE_SIZE = 100

# Largest id a 64-bit integer primary key can hold
MAX_URL_ID = 2**63 - 1


@dataclass(frozen=True)
class ShortURLSummary:
    original_url: str
    short_code: str
    total_visitors: int
    created_at: datetime


@dataclass(frozen=True)
class VisitSummary:
    ip: str
    original_url: str
    short_code: str
    visited_at: datetime


def validate_pagination(page_size: int, page_index: int) -> tuple[int, int]:
    """
    Validate paging values and convert them to (offset, limit).

    Args:
        page_size: Items per page, 1 to 100
        page_index: 1-based page number

    Returns:
        Tuple of (offset, limit)

    Raises:
        InvalidInputError: If either value is out of range
    """
    if not MIN_PAGE_SIZE <= page_size <= MAX_PAGE_SIZE:
        raise InvalidInputError(
            "page_size",
            "invalid value for page_size, must be a positive integer smaller than or equal 100"
        )
    if page_index < 1:
        raise InvalidInputError(
            "page_index",
            "invalid value for page_index, must be a positive integer"
        )
    return (page_index - 1) * page_size, page_size


class URLShorteningService:
    """
    Core business logic for URL shortening.

    Admission control happens before any method here is called.
    """

    def __init__(self, store: URLStore):
        """
        Initialize the URL shortening service.

        Args:
            store: Persistence collaborator
        """
        self.store = store

    async def _call_store(self, operation: str, coro):
        """Await a store call, wrapping unexpected failures in DatabaseError."""
        try:
            return await coro
        except URLShortenerException:
            raise
        except Exception as e:
            logger.error(f"Failed to {operation}: {e}", exc_info=True)
            raise DatabaseError(f"Failed to {operation}", original_error=e)

    def _resolve_code(self, short_code: str) -> int:
        """Decode a short code to an id, rejecting ids no store can hold."""
        url_id = decode_base62(short_code)
        if url_id > MAX_URL_ID:
            raise ShortURLNotFoundError(short_code)
        return url_id

    async def create_short_url(self, original_url: str) -> str:
        """
        Shorten a URL.

        Args:
            original_url: The URL to shorten

        Returns:
            The short code for the new record

        Raises:
            InvalidInputError: If the URL is empty
            DuplicateURLError: If the URL was already shortened
            DatabaseError: If the store fails otherwise
        """
        if not original_url or not original_url.strip():
            raise InvalidInputError("url", "url should not be empty")

        url_id = await self._call_store("insert URL", self.store.insert_url(original_url))
        short_code = encode_base62(url_id)

        logger.info(f"Short URL created: code={short_code} url={original_url}")
        return short_code

    async def redirect_and_record(self, short_code: str, visitor_ip: str) -> str:
        """
        Resolve a short code and record the visit.

        Returns:
            The original URL, also when the visit could not be recorded

        Raises:
            InvalidShortCodeError: If the code is malformed
            ShortURLNotFoundError: If the code matches no record
            DatabaseError: If the lookup fails
        """
        url_id = self._resolve_code(short_code)
        record = await self._call_store("get URL", self.store.get_url_by_id(url_id))

        await self.record_visit(url_id, visitor_ip)

        return record.original_url

    async def record_visit(self, url_id: int, visitor_ip: str) -> bool:
        """
        Fire-and-forget visit recording.

        Failures are logged and never raised or retried: redirect
        availability takes priority over visit tracking.

        Returns:
            True if the visit was stored, False otherwise
        """
        try:
            await self.store.insert_visit(url_id, visitor_ip, utcnow())
        except Exception as e:
            logger.error(
                f"Failed to record visitor {visitor_ip} for URL {url_id}: {e}",
                exc_info=True
            )
            return False
        return True

    async def list_short_urls(self, page_size: int, page_index: int) -> list[ShortURLSummary]:
        """
        List one page of short URLs in store order.

        Raises:
            InvalidInputError: If the paging values are out of range
            DatabaseError: If the store fails
        """
        offset, limit = validate_pagination(page_size, page_index)
        records = await self._call_store("list URLs", self.store.list_urls(offset, limit))

        return [
            ShortURLSummary(
                original_url=record.original_url,
                short_code=encode_base62(record.id),
                total_visitors=record.total_visitors,
                created_at=record.created_at,
            )
            for record in records
        ]

    async def list_visitors(
        self,
        short_code: str,
        page_size: int,
        page_index: int
    ) -> list[VisitSummary]:
        """
        List one page of visits for a short URL, most recent first.

        Raises:
            InvalidInputError: If the paging values are out of range
            InvalidShortCodeError: If the code is malformed
            ShortURLNotFoundError: If the code matches no record
            DatabaseError: If the store fails
        """
        offset, limit = validate_pagination(page_size, page_index)
        url_id = self._resolve_code(short_code)
        record = await self._call_store("get URL", self.store.get_url_by_id(url_id))

        visits = await self._call_store(
            "list visitors",
            self.store.list_visits(url_id, offset, limit)
        )

        code = encode_base62(record.id)
        return [
            VisitSummary(
                ip=visit.ip,
                original_url=record.original_url,
                short_code=code,
                visited_at=visit.visited_at,
            )
            for visit in visits
        ]

    async def count_short_urls(self) -> int:
        """
        Total number of short URLs.

        Raises:
            DatabaseError: If the store fails
        """
        return await self._call_store("count URLs", self.store.count_urls())
