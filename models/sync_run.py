from sqlalchemy import Column, String, Enum, DateTime, Float, Integer, Text, Index, Uuid
from datetime import datetime
import uuid
from models.base import Base, BigIntegerPK, SyncStatus


class SyncRun(Base):
    """
    Audit row for one orchestrator run.

    Purpose:
    - Operability: what ran, how far it got, what failed
    - Feeds the /health and /stats endpoints

    Never consulted when deciding which partitions to scan; that is
    the job of the log_entries checkpoints alone.
    """
    __tablename__ = "sync_runs"

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    run_id = Column(Uuid, default=uuid.uuid4, unique=True, nullable=False, index=True)

    status = Column(Enum(SyncStatus), default=SyncStatus.RUNNING, nullable=False, index=True)

    # Timestamps
    started_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    completed_at = Column(DateTime, nullable=True)
    duration_seconds = Column(Float, nullable=True)

    # Scope
    horizon = Column(String(255), nullable=True)
    partitions_eligible = Column(Integer, default=0)
    partitions_completed = Column(Integer, default=0)
    partitions_failed = Column(Integer, default=0)

    # Volume
    documents_scraped = Column(Integer, default=0)
    documents_written = Column(Integer, default=0)

    # Error tracking
    error_message = Column(Text, nullable=True)
    failed_partitions = Column(Text, nullable=True)  # comma separated index names

    __table_args__ = (
        Index("idx_sync_run_status", "status", "started_at"),
    )
