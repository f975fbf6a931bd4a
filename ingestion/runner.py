# ============================================================================
# File: ingestion/runner.py
# Description: Incremental sync orchestrator with per-partition isolation
# ============================================================================
"""
Sync Runner - Orchestrates discovery, scan and write for every partition.

This module provides:
- Eligibility: catalog ∩ at-or-before-horizon − already checkpointed
- One scan-then-write pipeline per eligible partition, bounded fan-out
- Failure isolation: a failed partition never affects its siblings
- Checkpointing only after a partition has been fully drained
- A SyncRun audit row per run
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ingestion.catalog import PartitionCatalog
from ingestion.checkpoints import CheckpointStore
from ingestion.extractors.partition_cursor import PartitionCursor
from ingestion.extractors.search_client import SearchStoreClient
from ingestion.loaders.document_sink import DocumentSink
from ingestion.partitions import horizon_partition, within_horizon
from ingestion.query import build_match_predicate, load_match_rules
from models.base import PartitionState, SyncStatus
from models.sync_run import SyncRun
from core.config import settings
from core.exceptions import ETLException

import logging

logger = logging.getLogger(__name__)


@dataclass
class PartitionResult:
    """Outcome of one partition's pipeline"""
    index_name: str
    state: PartitionState = PartitionState.PENDING
    pages: int = 0
    documents_scraped: int = 0
    documents_written: int = 0
    checkpoint_inserted: bool = False
    error: Optional[Dict[str, Any]] = field(default=None)


class SyncRunner:
    """
    Incremental sync orchestrator.

    Responsibilities:
    - Compute the eligible partition set for "now"
    - Drive PartitionCursor -> DocumentSink for each partition
    - Checkpoint drained partitions, leave failed ones for the next run
    - Record aggregate counts on a SyncRun row

    Every partition task opens its own session from ``session_factory`` and
    keeps it for its whole scan; sessions are never shared across tasks.
    """

    def __init__(
        self,
        client: SearchStoreClient,
        session_factory: async_sessionmaker,
        *,
        prefix: str = settings.PARTITION_PREFIX,
        match_rules: Sequence[Dict[str, str]] = settings.MATCH_RULES,
        page_size: int = settings.PAGE_SIZE,
        scroll_timeout: str = settings.SCROLL_TIMEOUT,
        concurrency: int = settings.SYNC_CONCURRENCY,
        skew_hours: int = settings.HORIZON_SKEW_HOURS,
        isolation_level: str = settings.WRITE_ISOLATION_LEVEL,
        checkpoint_batch_size: int = settings.CHECKPOINT_BATCH_SIZE,
        clock: Callable[[], datetime] = datetime.utcnow
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be positive")
        self.client = client
        self.session_factory = session_factory
        self.prefix = prefix
        self.query = build_match_predicate(load_match_rules(match_rules))
        self.page_size = page_size
        self.scroll_timeout = scroll_timeout
        self.concurrency = concurrency
        self.skew_hours = skew_hours
        self.isolation_level = isolation_level
        self.checkpoint_batch_size = checkpoint_batch_size
        self.clock = clock

    # ------------------------------------------------------------------
    # Eligibility
    # ------------------------------------------------------------------

    async def eligible_partitions(self, session: AsyncSession, now: datetime) -> Tuple[str, List[str]]:
        """
        Returns:
            (horizon, eligible partitions ascending)
        """
        catalog = PartitionCatalog(self.client, self.prefix)
        partitions = await catalog.list_partitions()

        horizon = horizon_partition(self.prefix, now, self.skew_hours)
        safe = within_horizon(partitions, horizon)

        checkpoints = CheckpointStore(session, batch_size=self.checkpoint_batch_size)
        done = await checkpoints.completed(safe)

        eligible = [p for p in safe if p not in done]

        logger.info(
            f"Horizon {horizon} (now={now.isoformat()}): {len(partitions)} listed, "
            f"{len(safe)} at or before horizon, {len(done)} already completed, "
            f"{len(eligible)} eligible"
        )
        if eligible:
            logger.info(f"Partitions to scan: {', '.join(eligible)}")

        return horizon, eligible

    # ------------------------------------------------------------------
    # Per-partition pipeline
    # ------------------------------------------------------------------

    async def sync_partition(self, index_name: str) -> PartitionResult:
        """
        Scan one partition to exhaustion, writing each page before fetching
        the next, then checkpoint it.

        Never raises: failures are logged and reported on the result.
        """
        result = PartitionResult(index_name=index_name)

        async with self.session_factory() as session:
            sink = DocumentSink(session, isolation_level=self.isolation_level)
            cursor = PartitionCursor(
                self.client,
                index_name,
                self.query,
                page_size=self.page_size,
                scroll_timeout=self.scroll_timeout,
            )

            result.state = PartitionState.SCANNING
            logger.info(f"[{index_name}] Scanning")

            try:
                async for page in cursor.pages():
                    result.documents_scraped += len(page)
                    result.documents_written += await sink.apply(page, index_name)
                    result.pages = cursor.pages_fetched

                result.pages = cursor.pages_fetched
                checkpoints = CheckpointStore(session, batch_size=self.checkpoint_batch_size)
                result.checkpoint_inserted = await checkpoints.mark_complete(index_name)

            except ETLException as e:
                result.state = PartitionState.FAILED
                result.error = e.to_dict()
                logger.error(
                    f"[{index_name}] Failed after {result.documents_scraped} documents: {e}",
                    extra={"error_context": e.to_dict()}
                )
                return result

            except Exception as e:
                result.state = PartitionState.FAILED
                result.error = {
                    "error_type": type(e).__name__,
                    "message": str(e),
                }
                logger.exception(f"[{index_name}] Unexpected error after {result.documents_scraped} documents")
                return result

        result.state = PartitionState.SUCCEEDED
        logger.info(
            f"[{index_name}] Completed: {result.pages} pages, "
            f"{result.documents_scraped} scraped, {result.documents_written} written"
        )
        return result

    async def _bounded(self, semaphore: asyncio.Semaphore, index_name: str) -> PartitionResult:
        async with semaphore:
            return await self.sync_partition(index_name)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Execute one incremental sync.

        Args:
            now: Reference time for the horizon (defaults to the clock)

        Returns:
            Dictionary with run statistics:
            - status: "success", "partial_success" or "failed"
            - horizon, partitions_eligible/completed/failed
            - documents_scraped, documents_written
            - failed_partitions: index names that will be retried next run

        Raises:
            ETLException: discovery failed (catalog or checkpoint read);
                nothing was scanned
        """
        now = now or self.clock()
        started = datetime.utcnow()

        async with self.session_factory() as control:
            sync_run = SyncRun(run_id=uuid.uuid4(), status=SyncStatus.RUNNING, started_at=started)
            control.add(sync_run)
            await control.commit()
            run_id = str(sync_run.run_id)

            logger.info(f"Sync run {run_id} started")

            try:
                horizon, eligible = await self.eligible_partitions(control, now)
            except Exception as e:
                await control.rollback()
                await self._finish(control, sync_run, started, SyncStatus.FAILED, error_message=str(e))
                logger.error(f"Sync run {run_id} failed during discovery: {e}")
                raise

            sync_run.horizon = horizon
            sync_run.partitions_eligible = len(eligible)
            await control.commit()

            semaphore = asyncio.Semaphore(self.concurrency)
            results: List[PartitionResult] = await asyncio.gather(
                *(self._bounded(semaphore, index_name) for index_name in eligible)
            )

            succeeded = [r for r in results if r.state == PartitionState.SUCCEEDED]
            failed = [r for r in results if r.state == PartitionState.FAILED]

            if not failed:
                status = SyncStatus.SUCCESS
            elif succeeded:
                status = SyncStatus.PARTIAL
            else:
                status = SyncStatus.FAILED

            summary = {
                "status": {
                    SyncStatus.SUCCESS: "success",
                    SyncStatus.PARTIAL: "partial_success",
                    SyncStatus.FAILED: "failed",
                }[status],
                "run_id": run_id,
                "horizon": horizon,
                "partitions_eligible": len(eligible),
                "partitions_completed": len(succeeded),
                "partitions_failed": len(failed),
                "documents_scraped": sum(r.documents_scraped for r in results),
                "documents_written": sum(r.documents_written for r in results),
                "failed_partitions": [r.index_name for r in failed],
            }

            await self._finish(
                control,
                sync_run,
                started,
                status,
                summary=summary,
                error_message=f"{len(failed)} partitions failed" if failed else None,
            )

        logger.info(
            f"Sync run {summary['run_id']} finished: {summary['status']} - "
            f"partitions completed={summary['partitions_completed']}/{summary['partitions_eligible']}, "
            f"failed={summary['partitions_failed']}, "
            f"documents scraped={summary['documents_scraped']}, written={summary['documents_written']}"
        )
        return summary

    async def _finish(
        self,
        session: AsyncSession,
        sync_run: SyncRun,
        started: datetime,
        status: SyncStatus,
        summary: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None
    ):
        sync_run.status = status
        sync_run.completed_at = datetime.utcnow()
        sync_run.duration_seconds = (sync_run.completed_at - started).total_seconds()
        sync_run.error_message = error_message
        if summary:
            sync_run.partitions_completed = summary["partitions_completed"]
            sync_run.partitions_failed = summary["partitions_failed"]
            sync_run.documents_scraped = summary["documents_scraped"]
            sync_run.documents_written = summary["documents_written"]
            sync_run.failed_partitions = ",".join(summary["failed_partitions"]) or None
        await session.commit()
