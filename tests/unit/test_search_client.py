"""
Unit tests for the search store client
"""

import json
import pytest
import httpx
from core.exceptions import (
    SearchStoreError,
    NetworkError,
    ScrollExpiredError,
    AuthenticationError,
    ResourceNotFoundError,
    RetryableError,
    NonRetryableError,
)
from ingestion.extractors.search_client import SearchStoreClient


def client_for(handler) -> SearchStoreClient:
    http_client = httpx.AsyncClient(
        base_url="http://search.test:9200",
        transport=httpx.MockTransport(handler),
    )
    return SearchStoreClient(base_url="http://search.test:9200", http_client=http_client)


class TestListIndices:

    @pytest.mark.asyncio
    async def test_lists_matching_indices(self, search_client, search_store):
        search_store.add_index("junoslogs-2023.01.01-00")
        search_store.add_index("junoslogs-2023.01.01-01")
        search_store.add_index("other-2023.01.01-01")

        names = await search_client.list_indices("junoslogs-*")

        assert sorted(names) == ["junoslogs-2023.01.01-00", "junoslogs-2023.01.01-01"]

    @pytest.mark.asyncio
    async def test_requests_json_index_column(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=[{"index": "junoslogs-2023.01.01-00"}])

        async with client_for(handler) as client:
            await client.list_indices("junoslogs-*")

        assert seen["path"] == "/_cat/indices/junoslogs-*"
        assert seen["params"] == {"format": "json", "h": "index"}


class TestScroll:

    @pytest.mark.asyncio
    async def test_open_scroll_sends_filter_and_size(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "_scroll_id": "abc",
                "hits": {"total": {"value": 1, "relation": "eq"}, "hits": [
                    {"_index": "p", "_id": "1", "_source": {"event_category": "ips"}}
                ]},
            })

        query = {"match_all": {}}
        async with client_for(handler) as client:
            page = await client.open_scroll("junoslogs-2023.01.01-00", query, 500, "1m")

        assert seen["path"] == "/junoslogs-2023.01.01-00/_search"
        assert seen["params"] == {"scroll": "1m"}
        assert seen["body"] == {"query": query, "size": 500, "sort": ["_doc"]}
        assert page.scroll_id == "abc"
        assert page.total == 1
        assert page.hits[0].id == "1"
        assert page.hits[0].source == {"event_category": "ips"}

    @pytest.mark.asyncio
    async def test_continue_scroll_sends_token_only(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"_scroll_id": "def", "hits": {"total": 7, "hits": []}})

        async with client_for(handler) as client:
            page = await client.continue_scroll("abc", "1m")

        assert seen["path"] == "/_search/scroll"
        assert seen["body"] == {"scroll": "1m", "scroll_id": "abc"}
        assert page.total == 7
        assert page.hits == []


class TestErrorMapping:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_auth_failures(self, status):
        async with client_for(lambda r: httpx.Response(status, text="denied")) as client:
            with pytest.raises(AuthenticationError) as exc_info:
                await client.list_indices("junoslogs-*")

        assert isinstance(exc_info.value, NonRetryableError)
        assert exc_info.value.status_code == status

    @pytest.mark.asyncio
    async def test_expired_scroll(self):
        def handler(request):
            return httpx.Response(404, json={
                "error": {
                    "root_cause": [{"type": "search_context_missing_exception"}],
                    "type": "search_phase_execution_exception",
                },
                "status": 404,
            })

        async with client_for(handler) as client:
            with pytest.raises(ScrollExpiredError) as exc_info:
                await client.continue_scroll("gone")

        assert isinstance(exc_info.value, RetryableError)

    @pytest.mark.asyncio
    async def test_missing_index(self):
        def handler(request):
            return httpx.Response(404, json={"error": {"type": "index_not_found_exception"}, "status": 404})

        async with client_for(handler) as client:
            with pytest.raises(ResourceNotFoundError):
                await client.open_scroll("junoslogs-2023.01.01-00", {"match_all": {}}, 10)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [429, 500, 503])
    async def test_unavailable(self, status):
        async with client_for(lambda r: httpx.Response(status, text="busy")) as client:
            with pytest.raises(NetworkError):
                await client.list_indices("junoslogs-*")

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with client_for(handler) as client:
            with pytest.raises(NetworkError) as exc_info:
                await client.list_indices("junoslogs-*")

        assert isinstance(exc_info.value.original_exception, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_error_context_carries_status_headers_and_body(self):
        def handler(request):
            return httpx.Response(400, headers={"X-Trace": "t-1"}, json={"error": {"type": "parsing_exception"}})

        async with client_for(handler) as client:
            with pytest.raises(SearchStoreError) as exc_info:
                await client.open_scroll("junoslogs-2023.01.01-00", {"match_all": {}}, 10)

        error = exc_info.value
        assert type(error) is SearchStoreError
        assert error.context["status_code"] == 400
        assert "x-trace=t-1" in error.context["headers"]
        assert "parsing_exception" in error.context["body"]
        assert error.to_dict()["error_type"] == "SearchStoreError"

    @pytest.mark.asyncio
    async def test_error_member_in_2xx_body(self):
        def handler(request):
            return httpx.Response(200, json={"error": "something broke"})

        async with client_for(handler) as client:
            with pytest.raises(SearchStoreError):
                await client.open_scroll("junoslogs-2023.01.01-00", {"match_all": {}}, 10)

    @pytest.mark.asyncio
    async def test_non_json_success(self):
        async with client_for(lambda r: httpx.Response(200, text="<html>")) as client:
            with pytest.raises(SearchStoreError):
                await client.list_indices("junoslogs-*")
