"""
Sync statistics endpoint
"""
from datetime import datetime
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_
from api.dependencies import get_db
from schemas.api import StatsResponse, SyncRunSummary
from models.base import SyncStatus
from models.checkpoint import PartitionCheckpoint
from models.document import SyncedDocument
from models.sync_run import SyncRun
import uuid
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Statistics"])


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    request: Request,
    limit: int = Query(10, ge=1, le=100, description="Number of recent runs to return"),
    db: AsyncSession = Depends(get_db)
):
    """
    Get sync statistics.

    Returns:
    - Document totals, overall and per event category
    - Completed partitions
    - Recent sync run history
    """
    request_id = getattr(request.state, "request_id", f"req_{uuid.uuid4().hex[:12]}")

    logger.info(f"[{request_id}] GET /stats")

    # ========== Documents ==========

    total_documents = (await db.execute(
        select(func.count()).select_from(SyncedDocument)
    )).scalar()

    category_rows = await db.execute(
        select(SyncedDocument.event_category, func.count())
        .group_by(SyncedDocument.event_category)
    )
    documents_by_category = {
        (category or "unknown"): count for category, count in category_rows.all()
    }

    # ========== Partitions ==========

    partitions_completed, latest_partition = (await db.execute(
        select(func.count(), func.max(PartitionCheckpoint.index_name))
    )).one()

    # ========== Runs ==========

    total_runs = (await db.execute(
        select(func.count()).select_from(SyncRun)
    )).scalar()

    last_success = (await db.execute(
        select(func.max(SyncRun.completed_at)).where(SyncRun.status == SyncStatus.SUCCESS)
    )).scalar()

    last_failure = (await db.execute(
        select(func.max(SyncRun.completed_at)).where(
            SyncRun.status.in_([SyncStatus.FAILED, SyncStatus.PARTIAL])
        )
    )).scalar()

    avg_duration = (await db.execute(
        select(func.avg(SyncRun.duration_seconds)).where(
            and_(
                SyncRun.status != SyncStatus.RUNNING,
                SyncRun.duration_seconds.isnot(None)
            )
        )
    )).scalar()

    recent_runs_result = await db.execute(
        select(SyncRun)
        .order_by(SyncRun.started_at.desc())
        .limit(limit)
    )
    recent_runs = [SyncRunSummary.from_run(run) for run in recent_runs_result.scalars().all()]

    logger.info(
        f"[{request_id}] Stats: {total_documents} documents, "
        f"{partitions_completed} partitions, {total_runs} runs"
    )

    return StatsResponse(
        timestamp=datetime.utcnow(),
        total_documents=total_documents or 0,
        documents_by_category=documents_by_category,
        partitions_completed=partitions_completed or 0,
        latest_partition=latest_partition,
        total_runs=total_runs or 0,
        recent_runs=recent_runs,
        last_success=last_success,
        last_failure=last_failure,
        avg_run_duration_seconds=round(avg_duration, 2) if avg_duration else None
    )
