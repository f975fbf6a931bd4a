"""
Pydantic schema for a persisted document row, built from a search hit
"""

from pydantic import BaseModel, Field, field_validator, ValidationError
from typing import Optional, Dict, Any, List
from datetime import datetime, timezone
from schemas.search import SearchHit
from core.exceptions import MalformedDocumentError

# Row column -> _source key, for every column copied from the document body
SOURCE_FIELDS: Dict[str, str] = {
    "event_category": "event_category",
    "event_timestamp": "event_timestamp",
    "event_type": "event_type",
    "host": "host",
    "syslog_hostname": "syslog_hostname",
    "source_zone": "source_zone_name",
    "application": "application",
    "reason": "reason",
    "category": "category",
    "url": "url",
    "attack_name": "attack_name",
    "threat_severity": "threat_severity",
}

# Column order used for every insert parameter set
ROW_COLUMNS: List[str] = ["document_id", "index_name", *SOURCE_FIELDS, "inserted_at"]


class DocumentRow(BaseModel):
    """
    One row of the documents table.

    Ensures:
    - document_id, event_category and event_timestamp are present
    - event_timestamp is stored as naive UTC
    - scalar values (e.g. numeric severities) are stored as text
    """

    document_id: str = Field(..., min_length=1, max_length=255)
    index_name: str = Field(..., min_length=1, max_length=255)

    event_category: str = Field(..., min_length=1, max_length=255)
    event_timestamp: datetime
    event_type: Optional[str] = Field(None, max_length=255)
    host: Optional[str] = Field(None, max_length=255)
    syslog_hostname: Optional[str] = Field(None, max_length=255)
    source_zone: Optional[str] = Field(None, max_length=255)
    application: Optional[str] = Field(None, max_length=255)
    reason: Optional[str] = None
    category: Optional[str] = Field(None, max_length=255)
    url: Optional[str] = None
    attack_name: Optional[str] = Field(None, max_length=255)
    threat_severity: Optional[str] = Field(None, max_length=32)

    inserted_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator(
        "event_category", "event_type", "host", "syslog_hostname", "source_zone",
        "application", "reason", "category", "url", "attack_name", "threat_severity",
        mode="before",
    )
    @classmethod
    def stringify_scalars(cls, v):
        if isinstance(v, bool):
            return str(v).lower()
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @field_validator("event_timestamp")
    @classmethod
    def to_naive_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is not None:
            v = v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    @classmethod
    def from_hit(cls, hit: SearchHit, index_name: str, inserted_at: Optional[datetime] = None) -> "DocumentRow":
        """
        Map a search hit onto a row.

        Raises:
            MalformedDocumentError: a required field is absent or unparseable
        """
        if hit.source is None:
            raise MalformedDocumentError(
                "Document has no _source",
                context={"index_name": index_name, "document_id": hit.id}
            )

        values: Dict[str, Any] = {
            column: hit.source.get(key)
            for column, key in SOURCE_FIELDS.items()
        }
        values["document_id"] = hit.id
        values["index_name"] = index_name
        if inserted_at is not None:
            values["inserted_at"] = inserted_at

        try:
            return cls(**values)
        except ValidationError as e:
            field_errors = {
                ".".join(str(part) for part in err["loc"]): err["msg"]
                for err in e.errors()
            }
            raise MalformedDocumentError(
                "Document failed validation",
                context={
                    "index_name": index_name,
                    "document_id": hit.id,
                    "field_errors": field_errors,
                },
                original_exception=e
            )

    def to_params(self) -> Dict[str, Any]:
        """Explicit column -> value map, in ROW_COLUMNS order."""
        return {column: getattr(self, column) for column in ROW_COLUMNS}
