"""
Synced document retrieval with pagination and filtering
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_
from api.dependencies import get_db
from schemas.api import DocumentListResponse, DocumentResponse, PaginationMetadata
from models.document import SyncedDocument
from typing import Optional
import time
import uuid
import math
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Documents"])


@router.get("/documents", response_model=DocumentListResponse)
async def get_documents(
    request: Request,
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=1000, description="Items per page"),
    index_name: Optional[str] = Query(None, description="Filter by partition"),
    event_category: Optional[str] = Query(None, description="Filter by event category"),
    event_type: Optional[str] = Query(None, description="Filter by event type"),
    host: Optional[str] = Query(None, description="Filter by reporting host"),
    db: AsyncSession = Depends(get_db)
):
    """
    Retrieve synced documents, newest event first.
    """
    start_time = time.time()
    request_id = getattr(request.state, "request_id", f"req_{uuid.uuid4().hex[:12]}")

    filters_applied = {k: v for k, v in {
        "index_name": index_name,
        "event_category": event_category,
        "event_type": event_type,
        "host": host,
    }.items() if v is not None}

    logger.info(
        f"[{request_id}] GET /documents - page={page}, page_size={page_size}, "
        f"filters: {filters_applied}"
    )

    filters = [getattr(SyncedDocument, column) == value for column, value in filters_applied.items()]

    # Get total count
    count_query = select(func.count()).select_from(SyncedDocument)
    if filters:
        count_query = count_query.where(and_(*filters))
    total_items = (await db.execute(count_query)).scalar() or 0

    # Calculate pagination
    total_pages = math.ceil(total_items / page_size) if total_items > 0 else 0
    offset = (page - 1) * page_size

    query = select(SyncedDocument)
    if filters:
        query = query.where(and_(*filters))
    query = (
        query.order_by(SyncedDocument.event_timestamp.desc(), SyncedDocument.id.desc())
        .offset(offset)
        .limit(page_size)
    )

    result = await db.execute(query)
    items = [DocumentResponse.model_validate(row) for row in result.scalars().all()]

    api_latency_ms = (time.time() - start_time) * 1000
    logger.info(f"[{request_id}] Returned {len(items)} documents ({api_latency_ms:.2f}ms)")

    return DocumentListResponse(
        items=items,
        pagination=PaginationMetadata(
            current_page=page,
            page_size=page_size,
            total_items=total_items,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_previous=page > 1
        ),
        filters_applied=filters_applied
    )
