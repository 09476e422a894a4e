"""
SQLModel URL Store

URLStore implementation on top of the SQLModel tables in models.py.
One store wraps one request-scoped AsyncSession.

Design Decisions:
- Uniqueness of original_url is enforced by the database, an IntegrityError
  on insert becomes DuplicateURLError
- Visit insert and visitor counter increment share one transaction
- Counter uses a database-level UPDATE (no read-modify-write)
"""

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shortener.core.exceptions import DuplicateURLError, ShortURLNotFoundError
from shortener.db.interface import URLStore
from shortener.db.models import ShortURL, URLRecord, Visitor, VisitRecord


def _to_record(short_url: ShortURL) -> URLRecord:
    return URLRecord(
        id=short_url.id,
        original_url=short_url.original_url,
        total_visitors=short_url.total_visitors,
        created_at=short_url.created_at,
    )


class SQLModelURLStore(URLStore):
    """URLStore backed by a SQL database through SQLModel."""

    def __init__(self, session: AsyncSession):
        """
        Args:
            session: Async database session for database operations
        """
        self.session = session

    async def insert_url(self, original_url: str) -> int:
        short_url = ShortURL(original_url=original_url)
        self.session.add(short_url)
        try:
            await self.session.flush()
            url_id = short_url.id
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise DuplicateURLError(original_url) from e
        return url_id

    async def get_url_by_id(self, url_id: int) -> URLRecord:
        short_url = await self.session.get(ShortURL, url_id)
        if short_url is None:
            raise ShortURLNotFoundError(url_id)
        return _to_record(short_url)

    async def insert_visit(self, url_id: int, ip: str, visited_at: datetime) -> None:
        try:
            self.session.add(Visitor(url_id=url_id, ip=ip, time_visited=visited_at))
            await self.session.execute(
                update(ShortURL)
                .where(ShortURL.id == url_id)
                .values(total_visitors=ShortURL.total_visitors + 1)
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    async def list_urls(self, offset: int, limit: int) -> list[URLRecord]:
        statement = (
            select(ShortURL)
            .order_by(ShortURL.id)
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(statement)
        return [_to_record(short_url) for short_url in result.scalars().all()]

    async def list_visits(self, url_id: int, offset: int, limit: int) -> list[VisitRecord]:
        statement = (
            select(Visitor.ip, Visitor.time_visited)
            .where(Visitor.url_id == url_id)
            .order_by(Visitor.time_visited.desc(), Visitor.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(statement)
        return [VisitRecord(ip=ip, visited_at=visited_at) for ip, visited_at in result.all()]

    async def count_urls(self) -> int:
        result = await self.session.execute(select(func.count(ShortURL.id)))
        return result.scalar_one()
