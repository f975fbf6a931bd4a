"""
Pytest configuration and fixtures
"""

import fnmatch
import json
import pytest
import pytest_asyncio
import httpx
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool
from typing import Any, AsyncGenerator, Dict, List, Optional, Tuple
from core.database import build_session_maker
from ingestion.extractors.search_client import SearchStoreClient
from models.base import Base
# Register every table on Base.metadata
from models.checkpoint import PartitionCheckpoint
from models.document import SyncedDocument
from models.sync_run import SyncRun

SEARCH_BASE_URL = "http://search.test:9200"


# ============================================================================
# In-memory search store
# ============================================================================

def matches_query(query: Dict[str, Any], source: Dict[str, Any]) -> bool:
    """Evaluate the subset of the query DSL the sync sends."""
    if "match_all" in query:
        return True
    if "match_phrase" in query:
        ((field, value),) = query["match_phrase"].items()
        return field in source and str(source[field]) == str(value)
    if "bool" in query:
        clause = query["bool"]
        must = clause.get("must", [])
        if not all(matches_query(q, source) for q in must):
            return False
        should = clause.get("should", [])
        if should:
            needed = clause.get("minimum_should_match", 1)
            return sum(1 for q in should if matches_query(q, source)) >= needed
        return True
    raise AssertionError(f"Unsupported query: {query}")


class FakeSearchStore:
    """
    Elasticsearch stand-in served through httpx.MockTransport.

    Supports _cat/indices, scrolled _search, index and document PUTs.
    Scroll ids change on every page so callers must follow the latest one.
    """

    def __init__(self):
        self.indices: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.scrolls: Dict[str, Dict[str, Any]] = {}
        self.requests: List[Tuple[str, str]] = []
        self.search_calls: Dict[str, int] = {}
        self.failures: Dict[Tuple[str, int], List[int]] = {}
        self.reported_total: Optional[int] = None
        self._scroll_counter = 0

    # -------------------------- setup helpers --------------------------

    def add_index(self, name: str, documents: Optional[Dict[str, Dict[str, Any]]] = None):
        self.indices.setdefault(name, {}).update(documents or {})

    def fail(self, index_name: str, page: int, status: int = 500, times: int = 1):
        """Answer request number ``page`` (1 = open) for ``index_name`` with ``status``."""
        self.failures[(index_name, page)] = [status] * times

    # ---------------------------- transport ----------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append((request.method, path))
        body = json.loads(request.content) if request.content else None

        if request.method == "GET" and path.startswith("/_cat/indices/"):
            pattern = path[len("/_cat/indices/"):]
            names = [n for n in self.indices if fnmatch.fnmatch(n, pattern)]
            # _cat makes no ordering promise
            return httpx.Response(200, json=[{"index": n} for n in reversed(names)])

        if request.method == "POST" and path == "/_search/scroll":
            return self._continue(body["scroll_id"])

        if request.method == "POST" and path.endswith("/_search"):
            return self._open(path.strip("/").split("/")[0], body)

        if request.method == "PUT":
            parts = path.strip("/").split("/")
            if len(parts) == 1:
                self.indices.setdefault(parts[0], {})
                return httpx.Response(200, json={"acknowledged": True, "index": parts[0]})
            if len(parts) == 3 and parts[1] == "_doc":
                self.indices.setdefault(parts[0], {})[parts[2]] = body
                return httpx.Response(201, json={"_id": parts[2], "result": "created"})

        return httpx.Response(400, json={"error": {"type": "unsupported", "reason": path}})

    def _injected_failure(self, index_name: str, page: int) -> Optional[httpx.Response]:
        pending = self.failures.get((index_name, page))
        if not pending:
            return None
        status = pending.pop(0)
        return httpx.Response(
            status,
            headers={"X-Fake-Store": "injected"},
            json={"error": {"type": "injected_failure", "reason": f"page {page}"}, "status": status},
        )

    def _page_response(self, scroll_id: str) -> httpx.Response:
        state = self.scrolls[scroll_id]
        start = state["position"]
        hits = state["hits"][start:start + state["size"]]
        state["position"] = start + len(hits)

        total = self.reported_total if self.reported_total is not None else len(state["hits"])
        return httpx.Response(200, json={
            "_scroll_id": scroll_id,
            "hits": {
                "total": {"value": total, "relation": "eq"},
                "hits": hits,
            },
        })

    def _open(self, index_name: str, body: Dict[str, Any]) -> httpx.Response:
        self.search_calls[index_name] = self.search_calls.get(index_name, 0) + 1
        failure = self._injected_failure(index_name, 1)
        if failure is not None:
            return failure

        if index_name not in self.indices:
            return httpx.Response(404, json={
                "error": {"root_cause": [{"type": "index_not_found_exception"}], "type": "index_not_found_exception"},
                "status": 404,
            })

        hits = [
            {"_index": index_name, "_id": doc_id, "_source": source}
            for doc_id, source in self.indices[index_name].items()
            if matches_query(body["query"], source)
        ]

        self._scroll_counter += 1
        scroll_id = f"scroll-{self._scroll_counter}"
        self.scrolls[scroll_id] = {
            "index": index_name,
            "hits": hits,
            "size": body["size"],
            "position": 0,
            "page": 1,
        }
        return self._page_response(scroll_id)

    def _continue(self, scroll_id: str) -> httpx.Response:
        state = self.scrolls.pop(scroll_id, None)
        if state is None:
            return httpx.Response(404, json={
                "error": {
                    "root_cause": [{"type": "search_context_missing_exception"}],
                    "type": "search_phase_execution_exception",
                },
                "status": 404,
            })

        index_name = state["index"]
        self.search_calls[index_name] = self.search_calls.get(index_name, 0) + 1
        state["page"] += 1
        failure = self._injected_failure(index_name, state["page"])
        if failure is not None:
            return failure

        self._scroll_counter += 1
        next_id = f"scroll-{self._scroll_counter}"
        self.scrolls[next_id] = state
        return self._page_response(next_id)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def search_store():
    """Empty in-memory search store"""
    return FakeSearchStore()


@pytest_asyncio.fixture
async def search_client(search_store) -> AsyncGenerator[SearchStoreClient, None]:
    """SearchStoreClient wired to the in-memory store"""
    http_client = httpx.AsyncClient(
        base_url=SEARCH_BASE_URL,
        transport=httpx.MockTransport(search_store.handler),
    )
    client = SearchStoreClient(base_url=SEARCH_BASE_URL, http_client=http_client)
    yield client
    await client.aclose()


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """File-backed SQLite engine with the full schema"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'sync_test.db'}",
        echo=False,
        poolclass=NullPool,  # every session gets its own connection
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return build_session_maker(test_engine)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests"""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def make_source():
    """Factory for Junos _source bodies; keyword overrides replace fields."""

    def _make(**overrides) -> Dict[str, Any]:
        source = {
            "event_category": "apptrack",
            "event_type": "APPTRACK_SESSION_CLOSE",
            "event_timestamp": "2023-01-01T13:10:29+00:00",
            "application": "BITTORRENT",
            "reason": "Closed by junos-dynapp",
            "host": "10.255.12.235",
            "syslog_hostname": "vSRX.apollogr",
            "source_zone_name": "business-Wired",
            "category": "P2P",
        }
        source.update(overrides)
        return {k: v for k, v in source.items() if v is not None}

    return _make


@pytest.fixture
def make_hit(make_source):
    """Factory for raw search hits"""

    def _make(document_id: str, index_name: str = "junoslogs-2023.01.01-13", **overrides) -> Dict[str, Any]:
        return {"_index": index_name, "_id": document_id, "_source": make_source(**overrides)}

    return _make
