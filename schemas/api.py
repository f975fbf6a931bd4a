"""
Pydantic schemas for API request/response models
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from models.base import SyncStatus


# ============================================================================
# Sync Run Schemas
# ============================================================================

class SyncRunSummary(BaseModel):
    """One orchestrator run as recorded in sync_runs"""
    run_id: str
    status: SyncStatus
    started_at: datetime
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    horizon: Optional[str] = None
    partitions_eligible: int = 0
    partitions_completed: int = 0
    partitions_failed: int = 0
    documents_scraped: int = 0
    documents_written: int = 0
    failed_partitions: List[str] = Field(default_factory=list)
    error_message: Optional[str] = None

    @classmethod
    def from_run(cls, run):
        """Build from a SyncRun row (failed_partitions is stored comma separated)"""
        return cls(
            run_id=str(run.run_id),
            status=run.status,
            started_at=run.started_at,
            completed_at=run.completed_at,
            duration_seconds=run.duration_seconds,
            horizon=run.horizon,
            partitions_eligible=run.partitions_eligible or 0,
            partitions_completed=run.partitions_completed or 0,
            partitions_failed=run.partitions_failed or 0,
            documents_scraped=run.documents_scraped or 0,
            documents_written=run.documents_written or 0,
            failed_partitions=run.failed_partitions.split(",") if run.failed_partitions else [],
            error_message=run.error_message,
        )

    class Config:
        use_enum_values = True


# ============================================================================
# Health Check Schemas
# ============================================================================

class HealthCheckResponse(BaseModel):
    """Health check response model"""
    status: str = Field("healthy", description="Overall system status: healthy, degraded, unhealthy")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    database_connected: bool
    partitions_completed: int = 0
    latest_partition: Optional[str] = None
    last_run: Optional[SyncRunSummary] = None

    @model_validator(mode="after")
    def determine_status(self):
        """Determine overall health status"""
        if not self.database_connected:
            self.status = "unhealthy"
        elif self.last_run is not None and self.last_run.status in (
            SyncStatus.FAILED.value,
            SyncStatus.PARTIAL.value,
        ):
            self.status = "degraded"
        else:
            self.status = "healthy"
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "status": "healthy",
                "timestamp": "2023-01-02T09:00:05Z",
                "database_connected": True,
                "partitions_completed": 32,
                "latest_partition": "junoslogs-2023.01.02-07",
            }
        }


# ============================================================================
# Document Query Schemas
# ============================================================================

class DocumentResponse(BaseModel):
    """Response model for one synced document"""
    id: int
    document_id: str
    index_name: str
    event_category: Optional[str] = None
    event_timestamp: datetime
    event_type: Optional[str] = None
    host: Optional[str] = None
    syslog_hostname: Optional[str] = None
    source_zone: Optional[str] = None
    application: Optional[str] = None
    reason: Optional[str] = None
    category: Optional[str] = None
    url: Optional[str] = None
    attack_name: Optional[str] = None
    threat_severity: Optional[str] = None
    inserted_at: datetime

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "id": 1,
                "document_id": "17",
                "index_name": "junoslogs-2023.01.01-13",
                "event_category": "apptrack",
                "event_timestamp": "2023-01-01T13:10:29",
                "event_type": "APPTRACK_SESSION_CLOSE",
                "host": "10.255.12.235",
                "syslog_hostname": "vSRX.apollogr",
                "source_zone": "business-Wired",
                "application": "BITTORRENT",
                "reason": "Closed by junos-dynapp",
                "category": "P2P",
                "inserted_at": "2023-01-02T09:00:04",
            }
        }


class PaginationMetadata(BaseModel):
    """Pagination metadata"""
    total_items: int
    total_pages: int
    current_page: int
    page_size: int
    has_next: bool
    has_previous: bool


class DocumentListResponse(BaseModel):
    """Paginated document response"""
    items: List[DocumentResponse]
    pagination: PaginationMetadata
    filters_applied: Dict[str, Any] = Field(default_factory=dict)


# ============================================================================
# Statistics Schemas
# ============================================================================

class StatsResponse(BaseModel):
    """Statistics response model"""
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    # Documents
    total_documents: int
    documents_by_category: Dict[str, int]

    # Partitions
    partitions_completed: int
    latest_partition: Optional[str] = None

    # Runs
    total_runs: int
    recent_runs: List[SyncRunSummary] = Field(default_factory=list)
    last_success: Optional[datetime] = None
    last_failure: Optional[datetime] = None
    avg_run_duration_seconds: Optional[float] = None

    class Config:
        json_schema_extra = {
            "example": {
                "timestamp": "2023-01-02T09:00:05Z",
                "total_documents": 2560,
                "documents_by_category": {
                    "apptrack": 640,
                    "firewall": 640,
                    "ips": 640,
                    "webfilter": 640
                },
                "partitions_completed": 32,
                "latest_partition": "junoslogs-2023.01.02-07",
                "total_runs": 1,
                "avg_run_duration_seconds": 4.2
            }
        }
