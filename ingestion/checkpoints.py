"""
Durable record of fully ingested partitions
"""

from typing import Iterable, Optional, Set
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from models.checkpoint import PartitionCheckpoint
from core.config import settings
from core.exceptions import CheckpointError
import logging

logger = logging.getLogger(__name__)


class CheckpointStore:
    """
    Read and write partition checkpoints (the log_entries table).

    Responsibilities:
    - Answer "which of these partitions are done?" for any number of names
    - Record a partition as done exactly once
    """

    def __init__(self, db_session: AsyncSession, batch_size: int = settings.CHECKPOINT_BATCH_SIZE):
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self.db = db_session
        self.batch_size = batch_size

    async def completed(self, candidates: Iterable[str]) -> Set[str]:
        """
        Subset of ``candidates`` that already has a checkpoint.

        Candidates are queried in IN (...) batches of ``batch_size`` so large
        catalogs stay under the driver's bind parameter limit.
        """
        names = sorted(set(candidates))
        done: Set[str] = set()

        for start in range(0, len(names), self.batch_size):
            batch = names[start:start + self.batch_size]
            try:
                result = await self.db.execute(
                    select(PartitionCheckpoint.index_name).where(
                        PartitionCheckpoint.index_name.in_(batch)
                    )
                )
            except SQLAlchemyError as e:
                raise CheckpointError(
                    "Failed to read partition checkpoints",
                    context={
                        "operation": "read",
                        "table_name": PartitionCheckpoint.__tablename__,
                        "batch_start": batch[0],
                        "batch_size": len(batch),
                    },
                    original_exception=e
                )
            done.update(result.scalars().all())

        return done

    async def mark_complete(self, index_name: str, at: Optional[datetime] = None) -> bool:
        """
        Record ``index_name`` as fully ingested.

        Returns:
            True if this call inserted the checkpoint, False if another run
            already had (the unique index rejected the duplicate).
        """
        checkpoint = PartitionCheckpoint(
            index_name=index_name,
            inserted_at=at or datetime.utcnow()
        )
        self.db.add(checkpoint)

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(f"Checkpoint for {index_name} already exists; nothing to do")
            return False
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise CheckpointError(
                "Failed to write partition checkpoint",
                context={
                    "operation": "write",
                    "table_name": PartitionCheckpoint.__tablename__,
                    "index_name": index_name,
                },
                original_exception=e
            )

        logger.debug(f"Checkpoint written for {index_name}")
        return True
