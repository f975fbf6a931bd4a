"""
Unit tests for scrolled partition pagination
"""

import pytest
from unittest.mock import AsyncMock, MagicMock
from core.exceptions import ScrollExpiredError, SearchStoreError
from ingestion.extractors.partition_cursor import PartitionCursor
from schemas.search import SearchHit, SearchPage

INDEX = "junoslogs-2023.01.01-13"
MATCH_ALL = {"match_all": {}}


def seed(search_store, count, index_name=INDEX):
    search_store.add_index(index_name, {
        str(i): {"event_category": "ips", "event_timestamp": "2023-01-01T13:00:00Z"}
        for i in range(count)
    })


async def collect(cursor):
    return [page async for page in cursor.pages()]


@pytest.mark.asyncio
async def test_2400_documents_take_exactly_three_fetches(search_client, search_store):
    seed(search_store, 2400)
    cursor = PartitionCursor(search_client, INDEX, MATCH_ALL, page_size=1000)

    pages = await collect(cursor)

    assert [len(p) for p in pages] == [1000, 1000, 400]
    assert search_store.search_calls[INDEX] == 3
    assert cursor.documents_fetched == 2400
    assert cursor.total == 2400


@pytest.mark.asyncio
async def test_exact_multiple_needs_one_empty_fetch(search_client, search_store):
    seed(search_store, 2000)
    cursor = PartitionCursor(search_client, INDEX, MATCH_ALL, page_size=1000)

    pages = await collect(cursor)

    assert [len(p) for p in pages] == [1000, 1000]
    assert search_store.search_calls[INDEX] == 3
    assert cursor.pages_fetched == 3


@pytest.mark.asyncio
async def test_empty_partition_yields_nothing(search_client, search_store):
    search_store.add_index(INDEX)
    cursor = PartitionCursor(search_client, INDEX, MATCH_ALL, page_size=1000)

    assert await collect(cursor) == []
    assert search_store.search_calls[INDEX] == 1


@pytest.mark.asyncio
async def test_reported_total_is_not_trusted(search_client, search_store):
    seed(search_store, 25)
    search_store.reported_total = 10
    cursor = PartitionCursor(search_client, INDEX, MATCH_ALL, page_size=10)

    pages = await collect(cursor)

    assert sum(len(p) for p in pages) == 25


@pytest.mark.asyncio
async def test_every_document_seen_once(search_client, search_store):
    seed(search_store, 57)
    cursor = PartitionCursor(search_client, INDEX, MATCH_ALL, page_size=10)

    ids = [hit.id for page in await collect(cursor) for hit in page]

    assert len(ids) == 57
    assert len(set(ids)) == 57


@pytest.mark.asyncio
async def test_follows_latest_continuation_token():
    client = MagicMock()
    client.open_scroll = AsyncMock(return_value=SearchPage(
        scroll_id="s1", hits=[SearchHit(_id="1"), SearchHit(_id="2")]
    ))
    client.continue_scroll = AsyncMock(side_effect=[
        SearchPage(scroll_id="s2", hits=[SearchHit(_id="3"), SearchHit(_id="4")]),
        SearchPage(scroll_id="s3", hits=[SearchHit(_id="5")]),
    ])

    cursor = PartitionCursor(client, INDEX, MATCH_ALL, page_size=2, scroll_timeout="30s")
    await collect(cursor)

    tokens = [call.args[0] for call in client.continue_scroll.call_args_list]
    assert tokens == ["s1", "s2"]
    client.open_scroll.assert_called_once_with(INDEX, MATCH_ALL, 2, "30s")


@pytest.mark.asyncio
async def test_full_page_without_token_is_an_error():
    client = MagicMock()
    client.open_scroll = AsyncMock(return_value=SearchPage(
        scroll_id=None, hits=[SearchHit(_id="1"), SearchHit(_id="2")]
    ))

    cursor = PartitionCursor(client, INDEX, MATCH_ALL, page_size=2)

    with pytest.raises(SearchStoreError):
        await collect(cursor)


@pytest.mark.asyncio
async def test_failure_mid_scan_propagates_after_earlier_pages(search_client, search_store):
    seed(search_store, 30)
    search_store.fail(INDEX, page=2, status=503)
    cursor = PartitionCursor(search_client, INDEX, MATCH_ALL, page_size=10)

    received = []
    with pytest.raises(SearchStoreError):
        async for page in cursor.pages():
            received.append(page)

    assert [len(p) for p in received] == [10]


@pytest.mark.asyncio
async def test_expired_token_surfaces(search_client, search_store):
    seed(search_store, 30)
    cursor = PartitionCursor(search_client, INDEX, MATCH_ALL, page_size=10)
    pages = cursor.pages()

    await pages.__anext__()
    search_store.scrolls.clear()

    with pytest.raises(ScrollExpiredError):
        await pages.__anext__()


@pytest.mark.asyncio
async def test_cursor_is_single_use(search_client, search_store):
    seed(search_store, 3)
    cursor = PartitionCursor(search_client, INDEX, MATCH_ALL, page_size=10)
    await collect(cursor)

    with pytest.raises(RuntimeError):
        await collect(cursor)


def test_page_size_must_be_positive():
    with pytest.raises(ValueError):
        PartitionCursor(MagicMock(), INDEX, MATCH_ALL, page_size=0)
