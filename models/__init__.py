"""
SQLAlchemy ORM models for database tables.

Models:
    base: Base declarative class and shared enums (SyncStatus, PartitionState)
    checkpoint: log_entries, one row per fully ingested partition
    document: documents, the synced log rows
    sync_run: sync_runs, one audit row per orchestrator run

Usage:
    from models.checkpoint import PartitionCheckpoint
    from models.document import SyncedDocument
    from models.sync_run import SyncRun
    from models.base import Base, SyncStatus

The models stick to portable column types so the same metadata creates the
schema on PostgreSQL (production) and SQLite (tests).
"""

__all__ = [
    "Base",
    "SyncStatus",
    "PartitionState",
    "PartitionCheckpoint",
    "SyncedDocument",
    "SyncRun",
]
