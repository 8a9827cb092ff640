"""Unit tests for idempotent page persistence."""

import json
from unittest.mock import AsyncMock, Mock

import pytest

from pagerender.database.page_records import (
    INSERT_PAGE_SQL,
    SELECT_PAGE_ID_SQL,
    UPDATE_ORIENTATION_SQL,
    PageRecordStore,
)
from pagerender.models.dto import PageLink, PageMetadata


class _AsyncContext:
    def __init__(self, value=None):
        self.value = value

    async def __aenter__(self):
        return self.value

    async def __aexit__(self, *_):
        return False


class FakeConnection:
    """asyncpg connection double; `fetchval` answers from a script."""

    def __init__(self, fetchval_results):
        self.fetchval = AsyncMock(side_effect=list(fetchval_results))
        self.execute = AsyncMock()
        self.transactions = 0

    def transaction(self):
        self.transactions += 1
        return _AsyncContext()


def _store(conn):
    pool = Mock()
    pool.acquire.return_value = _AsyncContext(conn)
    db_manager = Mock()
    db_manager.get_pool = AsyncMock(return_value=pool)
    return PageRecordStore(db_manager)


def _metadata(width, height, scale=2.95):
    return PageMetadata.from_geometry(width, height, scale)


LINKS = [PageLink(href="https://example.com", bounding_box=(10.0, 20.5, 110.0, 40.0))]


class TestUpsertPage:
    @pytest.mark.asyncio
    async def test_existing_row_short_circuits(self):
        conn = FakeConnection(["page_existing"])

        page_id = await _store(conn).upsert_page(
            "ver_1", 2, "S3_PATH", "t/doc/page-2.png", LINKS, _metadata(600, 800)
        )

        assert page_id == "page_existing"
        assert conn.transactions == 0
        conn.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_inserts_new_row(self):
        conn = FakeConnection([None, "page_new"])

        page_id = await _store(conn).upsert_page(
            "ver_1", 2, "S3_PATH", "t/doc/page-2.png", LINKS, _metadata(600, 800)
        )

        assert page_id == "page_new"
        insert_call = conn.fetchval.call_args_list[1]
        assert insert_call.args[0] == INSERT_PAGE_SQL
        _, _, version_id, page_number, file_key, storage_type, links, metadata = insert_call.args
        assert (version_id, page_number, file_key, storage_type) == (
            "ver_1",
            2,
            "t/doc/page-2.png",
            "S3_PATH",
        )
        assert json.loads(links) == [{"href": "https://example.com", "coords": "10,20.5,110,40"}]
        assert json.loads(metadata) == {
            "originalWidth": 600,
            "originalHeight": 800,
            "width": pytest.approx(1770),
            "height": pytest.approx(2360),
            "scaleFactor": 2.95,
        }
        # Orientation is only written from page 1
        conn.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_lost_race_returns_winner(self):
        conn = FakeConnection([None, None, "page_winner"])

        page_id = await _store(conn).upsert_page(
            "ver_1", 1, "S3_PATH", "t/doc/page-1.png", [], _metadata(600, 800)
        )

        assert page_id == "page_winner"
        assert conn.fetchval.call_args_list[2].args[0] == SELECT_PAGE_ID_SQL
        conn.execute.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "width, height, is_vertical",
        [(600, 800, True), (800, 600, False), (700, 700, False)],
    )
    async def test_first_page_sets_orientation(self, width, height, is_vertical):
        conn = FakeConnection([None, "page_1"])

        await _store(conn).upsert_page(
            "ver_1", 1, "S3_PATH", "t/doc/page-1.png", [], _metadata(width, height)
        )

        conn.execute.assert_awaited_once_with(UPDATE_ORIENTATION_SQL, is_vertical, "ver_1")
        assert conn.transactions == 1


class TestFindPageId:
    @pytest.mark.asyncio
    async def test_returns_id_or_none(self):
        conn = FakeConnection(["page_1", None])
        store = _store(conn)

        assert await store.find_page_id("ver_1", 1) == "page_1"
        assert await store.find_page_id("ver_1", 2) is None


@pytest.mark.asyncio
async def test_set_orientation_without_connection():
    conn = FakeConnection([])

    await _store(conn).set_orientation("ver_9", False)

    conn.execute.assert_awaited_once_with(UPDATE_ORIENTATION_SQL, False, "ver_9")
