"""
Tests for the URL shortening service.

The service is exercised against the in-memory store from conftest.py, so
every test can see exactly which store calls were made.
"""

import logging

import pytest

from shortener.core.base62 import decode_base62, encode_base62
from shortener.core.exceptions import (
    DatabaseError,
    DuplicateURLError,
    InvalidInputError,
    InvalidShortCodeError,
    ShortURLNotFoundError,
)
from shortener.services.url_service import URLShorteningService, validate_pagination


@pytest.fixture
def service(memory_store) -> URLShorteningService:
    return URLShorteningService(memory_store)


class TestValidatePagination:

    def test_offset_and_limit(self):
        assert validate_pagination(5, 1) == (0, 5)
        assert validate_pagination(5, 2) == (5, 5)
        assert validate_pagination(100, 3) == (200, 100)

    @pytest.mark.parametrize("page_size,page_index", [(0, 1), (101, 1), (-1, 1), (5, 0), (5, -3)])
    def test_out_of_range(self, page_size, page_index):
        with pytest.raises(InvalidInputError):
            validate_pagination(page_size, page_index)


class TestCreateShortURL:

    @pytest.mark.asyncio
    async def test_create_returns_decodable_code(self, service, memory_store):
        code = await service.create_short_url("https://example.com/a")
        url_id = decode_base62(code)
        assert url_id == 1
        assert memory_store.urls[url_id]["original_url"] == "https://example.com/a"

    @pytest.mark.asyncio
    async def test_codes_follow_store_identifiers(self, service):
        codes = [await service.create_short_url(f"https://example.com/{i}") for i in range(63)]
        assert codes[0] == "1"
        assert codes[60] == "z"
        assert codes[61] == "10"

    @pytest.mark.asyncio
    async def test_duplicate_url(self, service):
        await service.create_short_url("https://example.com/a")
        with pytest.raises(DuplicateURLError):
            await service.create_short_url("https://example.com/a")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["", "   "])
    async def test_empty_url_rejected_before_store(self, service, memory_store, url):
        with pytest.raises(InvalidInputError):
            await service.create_short_url(url)
        assert memory_store.calls == []

    @pytest.mark.asyncio
    async def test_storage_failure(self, service, memory_store):
        memory_store.fail_on.add("insert_url")
        with pytest.raises(DatabaseError) as exc_info:
            await service.create_short_url("https://example.com/a")
        assert isinstance(exc_info.value.original_error, RuntimeError)


class TestRedirectAndRecord:

    @pytest.mark.asyncio
    async def test_redirect_records_visit(self, service, memory_store):
        code = await service.create_short_url("https://example.com/a")

        original = await service.redirect_and_record(code, "10.0.0.1")

        assert original == "https://example.com/a"
        assert [(url_id, ip) for url_id, ip, _ in memory_store.visits] == [(1, "10.0.0.1")]
        assert memory_store.urls[1]["total_visitors"] == 1

    @pytest.mark.asyncio
    async def test_every_redirect_is_recorded(self, service, memory_store):
        code = await service.create_short_url("https://example.com/a")
        for _ in range(3):
            await service.redirect_and_record(code, "10.0.0.1")
        assert len(memory_store.visits) == 3

    @pytest.mark.asyncio
    async def test_visit_failure_does_not_fail_redirect(self, service, memory_store, caplog):
        code = await service.create_short_url("https://example.com/a")
        memory_store.fail_on.add("insert_visit")

        with caplog.at_level(logging.ERROR):
            original = await service.redirect_and_record(code, "10.0.0.1")

        assert original == "https://example.com/a"
        assert memory_store.visits == []
        assert "Failed to record visitor" in caplog.text

    @pytest.mark.asyncio
    async def test_record_visit_reports_outcome(self, service, memory_store):
        await service.create_short_url("https://example.com/a")
        assert await service.record_visit(1, "10.0.0.1") is True
        memory_store.fail_on.add("insert_visit")
        assert await service.record_visit(1, "10.0.0.1") is False

    @pytest.mark.asyncio
    async def test_unknown_code(self, service, memory_store):
        with pytest.raises(ShortURLNotFoundError):
            await service.redirect_and_record(encode_base62(999), "10.0.0.1")
        assert memory_store.visits == []

    @pytest.mark.asyncio
    async def test_malformed_code(self, service, memory_store):
        with pytest.raises(InvalidShortCodeError):
            await service.redirect_and_record("a-b", "10.0.0.1")
        assert memory_store.calls == []

    @pytest.mark.asyncio
    async def test_code_beyond_id_range_is_unknown(self, service, memory_store):
        with pytest.raises(ShortURLNotFoundError):
            await service.redirect_and_record("zzzzzzzzzzzz", "10.0.0.1")
        assert memory_store.calls == []

    @pytest.mark.asyncio
    async def test_lookup_failure(self, service, memory_store):
        code = await service.create_short_url("https://example.com/a")
        memory_store.fail_on.add("get_url_by_id")
        with pytest.raises(DatabaseError):
            await service.redirect_and_record(code, "10.0.0.1")


class TestListShortURLs:

    @pytest.mark.asyncio
    async def test_page_maps_to_offset_and_limit(self, service, memory_store):
        for i in range(12):
            await service.create_short_url(f"https://example.com/{i}")

        page = await service.list_short_urls(page_size=5, page_index=2)

        assert ("list_urls", 5, 5) in memory_store.calls
        assert [summary.original_url for summary in page] == [
            f"https://example.com/{i}" for i in range(5, 10)
        ]
        assert [summary.short_code for summary in page] == ["6", "7", "8", "9", "A"]

    @pytest.mark.asyncio
    async def test_last_page_is_partial(self, service):
        for i in range(7):
            await service.create_short_url(f"https://example.com/{i}")
        page = await service.list_short_urls(page_size=5, page_index=2)
        assert len(page) == 2

    @pytest.mark.asyncio
    async def test_summary_carries_visitor_count(self, service):
        code = await service.create_short_url("https://example.com/a")
        await service.redirect_and_record(code, "10.0.0.1")
        await service.redirect_and_record(code, "10.0.0.2")

        (summary,) = await service.list_short_urls(page_size=10, page_index=1)
        assert summary.total_visitors == 2
        assert summary.created_at is not None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page_size,page_index", [(5, 0), (101, 1), (0, 1)])
    async def test_invalid_page_does_not_touch_store(self, service, memory_store, page_size, page_index):
        with pytest.raises(InvalidInputError):
            await service.list_short_urls(page_size=page_size, page_index=page_index)
        assert memory_store.calls == []

    @pytest.mark.asyncio
    async def test_storage_failure(self, service, memory_store):
        memory_store.fail_on.add("list_urls")
        with pytest.raises(DatabaseError):
            await service.list_short_urls(page_size=5, page_index=1)


class TestListVisitors:

    @pytest.mark.asyncio
    async def test_visits_of_one_url_only(self, service):
        first = await service.create_short_url("https://example.com/a")
        second = await service.create_short_url("https://example.com/b")
        await service.redirect_and_record(first, "10.0.0.1")
        await service.redirect_and_record(second, "10.0.0.2")
        await service.redirect_and_record(first, "10.0.0.3")

        visits = await service.list_visitors(first, page_size=10, page_index=1)

        assert [visit.ip for visit in visits] == ["10.0.0.3", "10.0.0.1"]
        assert all(visit.original_url == "https://example.com/a" for visit in visits)
        assert all(visit.short_code == first for visit in visits)

    @pytest.mark.asyncio
    async def test_pagination(self, service, memory_store):
        code = await service.create_short_url("https://example.com/a")
        for i in range(4):
            await service.redirect_and_record(code, f"10.0.0.{i}")

        visits = await service.list_visitors(code, page_size=3, page_index=2)

        assert ("list_visits", 1, 3, 3) in memory_store.calls
        assert [visit.ip for visit in visits] == ["10.0.0.0"]

    @pytest.mark.asyncio
    async def test_unknown_url(self, service):
        with pytest.raises(ShortURLNotFoundError):
            await service.list_visitors("zz", page_size=5, page_index=1)

    @pytest.mark.asyncio
    async def test_code_beyond_id_range_is_unknown(self, service, memory_store):
        with pytest.raises(ShortURLNotFoundError):
            await service.list_visitors("zzzzzzzzzzzz", page_size=5, page_index=1)
        assert memory_store.calls == []

    @pytest.mark.asyncio
    async def test_invalid_page_does_not_touch_store(self, service, memory_store):
        with pytest.raises(InvalidInputError):
            await service.list_visitors("1", page_size=101, page_index=1)
        assert memory_store.calls == []


class TestCountShortURLs:

    @pytest.mark.asyncio
    async def test_count(self, service):
        assert await service.count_short_urls() == 0
        await service.create_short_url("https://example.com/a")
        await service.create_short_url("https://example.com/b")
        assert await service.count_short_urls() == 2

    @pytest.mark.asyncio
    async def test_storage_failure(self, service, memory_store):
        memory_store.fail_on.add("count_urls")
        with pytest.raises(DatabaseError):
            await service.count_short_urls()
