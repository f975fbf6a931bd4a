"""
Pydantic schemas for the search store wire format and match rules
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any


class MatchRule(BaseModel):
    """
    A conjunction of field == value conditions.

    An empty rule would match every document, so it is rejected.
    """
    terms: Dict[str, str]

    @field_validator("terms")
    @classmethod
    def require_terms(cls, v):
        if not v:
            raise ValueError("A match rule needs at least one field condition")
        for field in v:
            if not field.strip():
                raise ValueError("Match rule field names cannot be blank")
        return v

    def describe(self) -> str:
        return " AND ".join(f"{k}={v!r}" for k, v in self.terms.items())


class SearchHit(BaseModel):
    """One document from a search response"""
    id: Optional[str] = Field(None, alias="_id")
    index: Optional[str] = Field(None, alias="_index")
    source: Optional[Dict[str, Any]] = Field(None, alias="_source")

    class Config:
        populate_by_name = True


class SearchPage(BaseModel):
    """
    One page of a scrolled search.

    ``scroll_id`` is the continuation token for the next request and
    may change from page to page.
    """
    scroll_id: Optional[str] = None
    total: Optional[int] = None
    hits: List[SearchHit] = Field(default_factory=list)

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "SearchPage":
        hits_block = payload.get("hits") or {}
        total = hits_block.get("total")
        # Elasticsearch 7+ reports {"value": n, "relation": "eq"}
        if isinstance(total, dict):
            total = total.get("value")
        return cls(
            scroll_id=payload.get("_scroll_id"),
            total=total,
            hits=hits_block.get("hits") or [],
        )
