"""
Pydantic schemas for data validation and serialization.

Schemas:
    search: Search store wire format (hits, scroll pages) and match rules
    documents: The persisted document row and its mapping from a hit
    api: API endpoint response models

Usage:
    from schemas.search import SearchHit, SearchPage, MatchRule
    from schemas.documents import DocumentRow
    from schemas.api import HealthCheckResponse, StatsResponse

Validation:
    A hit missing _id, _source, event_category or event_timestamp is
    rejected with MalformedDocumentError; every other column is optional
    and stored as NULL when absent.
"""

__all__ = [
    "MatchRule",
    "SearchHit",
    "SearchPage",
    "DocumentRow",
    "HealthCheckResponse",
    "StatsResponse",
    "SyncRunSummary",
    "DocumentListResponse",
]
