"""
Scrolled pagination over one partition's matching documents
"""

from typing import Any, AsyncIterator, Dict, List, Optional
from ingestion.extractors.search_client import SearchStoreClient
from schemas.search import SearchHit
from core.config import settings
from core.exceptions import SearchStoreError
import logging

logger = logging.getLogger(__name__)


class PartitionCursor:
    """
    Lazy, finite, single-use sequence of pages for one partition.

    Protocol:
    1. Open a scroll with the filter and page size
    2. Follow the continuation token alone for every later page
    3. Stop on the first page shorter than ``page_size``

    A full page never proves there is more data and the reported total is
    not trusted, so the loop always asks once more until a short page
    arrives. The token expires server-side after ``scroll_timeout`` of
    inactivity; an expired token surfaces as ScrollExpiredError.

    Page order is stable within one cursor only. Nothing about positions is
    remembered across runs, which is why writes dedup on document identity.
    """

    def __init__(
        self,
        client: SearchStoreClient,
        index_name: str,
        query: Dict[str, Any],
        page_size: int = settings.PAGE_SIZE,
        scroll_timeout: str = settings.SCROLL_TIMEOUT
    ):
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self.client = client
        self.index_name = index_name
        self.query = query
        self.page_size = page_size
        self.scroll_timeout = scroll_timeout

        self.total: Optional[int] = None
        self.pages_fetched = 0
        self.documents_fetched = 0
        self._consumed = False

    async def pages(self) -> AsyncIterator[List[SearchHit]]:
        """Yield each non-empty page of hits, in fetch order."""
        if self._consumed:
            raise RuntimeError(f"Cursor for {self.index_name} has already been consumed")
        self._consumed = True

        page = await self.client.open_scroll(
            self.index_name, self.query, self.page_size, self.scroll_timeout
        )
        self.total = page.total

        while True:
            self.pages_fetched += 1
            self.documents_fetched += len(page.hits)
            logger.debug(
                f"{self.index_name}: page {self.pages_fetched} has {len(page.hits)} hits "
                f"({self.documents_fetched}/{self.total})"
            )

            if page.hits:
                yield page.hits

            if len(page.hits) < self.page_size:
                break

            if not page.scroll_id:
                raise SearchStoreError(
                    "Full page returned without a continuation token",
                    context={"index_name": self.index_name, "page": self.pages_fetched}
                )

            page = await self.client.continue_scroll(page.scroll_id, self.scroll_timeout)
