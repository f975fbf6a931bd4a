"""
HTTP client for the Elasticsearch-compatible search store.

This module provides:
- Index listing via the _cat API
- Scrolled searches (initial request + continuation)
- Index/document creation for populate mode
- Mapping of HTTP failures onto the pipeline exception hierarchy

Requests are not retried here. A failed request fails the partition that
issued it and the next run scans that partition again.
"""

import httpx
from typing import Any, Dict, List, Optional
from pydantic import ValidationError
from schemas.search import SearchPage
from core.config import settings
from core.exceptions import (
    SearchStoreError,
    NetworkError,
    ScrollExpiredError,
    AuthenticationError,
    ResourceNotFoundError,
)
import logging

logger = logging.getLogger(__name__)

SCROLL_MISSING = "search_context_missing_exception"


class SearchStoreClient:
    """
    Thin async wrapper over the search store REST API.

    Features:
    - Basic authentication
    - One pooled httpx client shared by every partition task
    - Error responses surfaced with status, headers and body

    Use as an async context manager, or call ``aclose()`` when done.
    """

    def __init__(
        self,
        base_url: str = settings.ES_BASE_URL,
        username: Optional[str] = settings.ES_USER_NAME,
        password: Optional[str] = settings.ES_PASSWORD,
        timeout: float = settings.ES_REQUEST_TIMEOUT,
        max_connections: int = settings.SYNC_CONCURRENCY * 2,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = base_url.rstrip("/")
        if http_client is None:
            auth = httpx.BasicAuth(username, password or "") if username else None
            http_client = httpx.AsyncClient(
                base_url=self.base_url,
                auth=auth,
                headers={"Accept": "application/json"},
                timeout=timeout,
                limits=httpx.Limits(max_connections=max_connections),
            )
        self._client = http_client

    async def __aenter__(self) -> "SearchStoreClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        url: str,
        *,
        json: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Issue one request and return the decoded JSON body.

        Raises:
            NetworkError: Timeouts, connection failures, 429 and 5xx
            AuthenticationError: 401 / 403
            ScrollExpiredError: The scroll context is gone
            ResourceNotFoundError: Other 404s
            SearchStoreError: Any other non-2xx or ``error`` body
        """
        try:
            response = await self._client.request(method, url, json=json, params=params)
        except httpx.TimeoutException as e:
            raise NetworkError(
                f"Request timed out: {method} {url}",
                context={"url": url, "method": method},
                original_exception=e
            )
        except httpx.TransportError as e:
            raise NetworkError(
                f"Transport error: {method} {url}",
                context={"url": url, "method": method},
                original_exception=e
            )

        payload = None
        if response.content:
            try:
                payload = response.json()
            except ValueError:
                payload = None

        failed = response.status_code >= 300 or (
            isinstance(payload, dict) and payload.get("error") is not None
        )
        if failed:
            raise self._error_for(method, url, response, payload)

        if payload is None and response.content:
            raise SearchStoreError(
                f"Response is not valid JSON: {method} {url}",
                context={"url": url, "method": method},
                status_code=response.status_code,
                headers=response.headers,
                body=response.text
            )

        return payload

    def _error_for(
        self,
        method: str,
        url: str,
        response: httpx.Response,
        payload: Any
    ) -> SearchStoreError:
        status = response.status_code
        error_type = None
        if isinstance(payload, dict):
            error = payload.get("error")
            if isinstance(error, dict):
                error_type = error.get("type")
                root_causes = error.get("root_cause") or []
                if root_causes and isinstance(root_causes[0], dict):
                    error_type = root_causes[0].get("type", error_type)
            elif isinstance(error, str):
                error_type = error

        kwargs = {
            "context": {"url": url, "method": method, "error_type": error_type},
            "status_code": status,
            "headers": response.headers,
            "body": response.text,
        }

        if status in (401, 403):
            return AuthenticationError(f"Authentication failed for {url}", **kwargs)
        if error_type == SCROLL_MISSING:
            return ScrollExpiredError("Scroll context expired before the next page was requested", **kwargs)
        if status == 404:
            return ResourceNotFoundError(f"Resource not found: {url}", **kwargs)
        if status == 429 or status >= 500:
            return NetworkError(f"Search store unavailable ({status}) for {url}", **kwargs)
        return SearchStoreError(f"Search store rejected {method} {url} ({status})", **kwargs)

    def _page(self, payload: Any, url: str) -> SearchPage:
        if not isinstance(payload, dict):
            raise SearchStoreError(
                "Search response is not a JSON object",
                context={"url": url, "payload_type": type(payload).__name__}
            )
        try:
            return SearchPage.from_response(payload)
        except ValidationError as e:
            raise SearchStoreError(
                "Search response has an unexpected shape",
                context={"url": url},
                original_exception=e
            )

    # ------------------------------------------------------------------
    # API
    # ------------------------------------------------------------------

    async def list_indices(self, pattern: str = "*") -> List[str]:
        """Names of the indices matching ``pattern`` (unordered)."""
        url = f"/_cat/indices/{pattern}"
        payload = await self._request("GET", url, params={"format": "json", "h": "index"})
        if not isinstance(payload, list):
            raise SearchStoreError(
                "Index listing is not a JSON array",
                context={"url": url, "payload_type": type(payload).__name__}
            )
        return [row["index"] for row in payload if isinstance(row, dict) and row.get("index")]

    async def open_scroll(
        self,
        index_name: str,
        query: Dict[str, Any],
        size: int,
        scroll: str = settings.SCROLL_TIMEOUT
    ) -> SearchPage:
        """First page of a scrolled search; the filter is only sent here."""
        url = f"/{index_name}/_search"
        payload = await self._request(
            "POST",
            url,
            params={"scroll": scroll},
            json={"query": query, "size": size, "sort": ["_doc"]},
        )
        return self._page(payload, url)

    async def continue_scroll(self, scroll_id: str, scroll: str = settings.SCROLL_TIMEOUT) -> SearchPage:
        """Next page of a scrolled search, addressed by continuation token only."""
        url = "/_search/scroll"
        payload = await self._request(
            "POST",
            url,
            json={"scroll": scroll, "scroll_id": scroll_id},
        )
        return self._page(payload, url)

    async def create_index(self, index_name: str) -> Dict[str, Any]:
        return await self._request("PUT", f"/{index_name}")

    async def index_document(self, index_name: str, document_id: str, document: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/{index_name}/_doc/{document_id}", json=document)
