"""
Shared fixtures: an in-memory URLStore and a temporary SQLite database.
"""

from datetime import datetime

import pytest
import pytest_asyncio

from shortener.core.exceptions import DuplicateURLError, ShortURLNotFoundError
from shortener.core.setting import Settings
from shortener.db.interface import URLStore
from shortener.db.models import URLRecord, VisitRecord, utcnow
from shortener.db.session import build_engine, build_session_maker, init_db


class InMemoryURLStore(URLStore):
    """
    URLStore keeping rows in dictionaries.

    Records every call in `calls` so tests can assert what reached the store.
    Set `fail_on` to an operation name to make that operation raise.
    """

    def __init__(self):
        self.urls: dict[int, dict] = {}
        self.visits: list[tuple[int, str, datetime]] = []
        self.calls: list[tuple] = []
        self.fail_on: set[str] = set()
        self._next_id = 1

    def _enter(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        if operation in self.fail_on:
            raise RuntimeError(f"{operation} failed")

    async def insert_url(self, original_url: str) -> int:
        self._enter("insert_url", original_url)
        if any(row["original_url"] == original_url for row in self.urls.values()):
            raise DuplicateURLError(original_url)
        url_id = self._next_id
        self._next_id += 1
        self.urls[url_id] = {
            "original_url": original_url,
            "total_visitors": 0,
            "created_at": utcnow(),
        }
        return url_id

    async def get_url_by_id(self, url_id: int) -> URLRecord:
        self._enter("get_url_by_id", url_id)
        if url_id not in self.urls:
            raise ShortURLNotFoundError(url_id)
        return URLRecord(id=url_id, **self.urls[url_id])

    async def insert_visit(self, url_id: int, ip: str, visited_at: datetime) -> None:
        self._enter("insert_visit", url_id, ip)
        self.visits.append((url_id, ip, visited_at))
        self.urls[url_id]["total_visitors"] += 1

    async def list_urls(self, offset: int, limit: int) -> list[URLRecord]:
        self._enter("list_urls", offset, limit)
        ids = sorted(self.urls)[offset:offset + limit]
        return [URLRecord(id=url_id, **self.urls[url_id]) for url_id in ids]

    async def list_visits(self, url_id: int, offset: int, limit: int) -> list[VisitRecord]:
        self._enter("list_visits", url_id, offset, limit)
        rows = [visit for visit in reversed(self.visits) if visit[0] == url_id]
        return [
            VisitRecord(ip=ip, visited_at=visited_at)
            for _, ip, visited_at in rows[offset:offset + limit]
        ]

    async def count_urls(self) -> int:
        self._enter("count_urls")
        return len(self.urls)


@pytest.fixture
def memory_store() -> InMemoryURLStore:
    return InMemoryURLStore()


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
def test_settings(database_url) -> Settings:
    return Settings(
        DATABASE_URL=database_url,
        DOMAIN="localhost",
        PORT="8080",
        MAX_REQUEST=1000,
        REFILL_RATE=1.0,
        AUTO_CREATE_TABLES=True,
    )


@pytest_asyncio.fixture
async def session_maker(database_url):
    engine = build_engine(database_url)
    await init_db(engine)
    yield build_session_maker(engine)
    await engine.dispose()
