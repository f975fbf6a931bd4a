"""
Health check endpoint with database and sync status
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, text
from sqlalchemy.exc import SQLAlchemyError
from api.dependencies import get_db
from schemas.api import HealthCheckResponse, SyncRunSummary
from models.checkpoint import PartitionCheckpoint
from models.sync_run import SyncRun
from datetime import datetime
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint.

    Returns:
    - Database connectivity status
    - Checkpointed partition count and the latest one
    - The most recent sync run
    """

    # Check database connectivity
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {str(e)}")
        return HealthCheckResponse(timestamp=datetime.utcnow(), database_connected=False)

    partitions_completed = 0
    latest_partition = None
    last_run = None

    try:
        result = await db.execute(
            select(func.count(), func.max(PartitionCheckpoint.index_name))
        )
        partitions_completed, latest_partition = result.one()

        result = await db.execute(
            select(SyncRun).order_by(SyncRun.started_at.desc()).limit(1)
        )
        run = result.scalars().first()
        if run is not None:
            last_run = SyncRunSummary.from_run(run)
    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch sync status: {str(e)}")

    return HealthCheckResponse(
        timestamp=datetime.utcnow(),
        database_connected=True,
        partitions_completed=partitions_completed or 0,
        latest_partition=latest_partition,
        last_run=last_run
    )
