"""
brain.py
--------
Purpose:
    API endpoints for capturing items and querying a user's brain.

Architecture:
    - API layer: HTTP concerns and validation
    - Service layer: returns domain models (BrainItem, BrainAnswer)
    - API layer: converts domain models -> HTTP response models

Usage:
    1. POST   /brain/items            - Capture an item (AI metadata attached)
    2. GET    /brain/items            - Latest items, optional search/type/tag filters
    3. DELETE /brain/items/{item_id}  - Remove an item
    4. POST   /brain/query            - Ask a question across saved items
    5. POST   /brain/enrich           - Preview AI metadata without saving

Authentication is handled upstream; the caller passes user_id explicitly.
"""

import uuid
from datetime import UTC, datetime

from fastapi import APIRouter, HTTPException, Query, Response, status

from app.infrastructure.observability.logging import get_logger
from app.models.api.brain_request import (
    BrainQueryRequest,
    CreateBrainItemRequest,
    EnrichPreviewRequest,
)
from app.models.api.brain_response import (
    BrainItemListResponse,
    BrainItemResponse,
    BrainQueryResponse,
    ConversationSourceResponse,
    EnrichmentResponse,
)
from app.services.brain_service import BrainServiceError, BrainValidationError, brain_service
from app.services.enrichment_service import generate_metadata

router = APIRouter(prefix="/brain", tags=["brain"])
logger = get_logger(__name__)


def _server_error(e: BrainServiceError) -> HTTPException:
    if not e.recoverable:
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Storage is unavailable"
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {e.operation.replace('_', ' ')}",
    )


@router.post("/items", response_model=BrainItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(request: CreateBrainItemRequest):
    """
    Capture a new item. Summary, tags and category are generated
    automatically; when the model is unavailable, offline heuristics fill
    them in and the save still succeeds.
    """
    try:
        item = await brain_service.create_item(
            str(request.user_id), request.title, request.content, request.type
        )
    except BrainValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except BrainServiceError as e:
        raise _server_error(e) from e

    return BrainItemResponse.from_domain(item)


@router.get("/items", response_model=BrainItemListResponse)
async def list_items(
    user_id: uuid.UUID = Query(...),
    search: str | None = Query(None),
    item_type: str | None = Query(None, alias="type"),
    tag: str | None = Query(None),
    limit: int = Query(10, ge=1, le=50),
):
    """Latest items for a user, newest first."""
    try:
        items = await brain_service.list_items(
            str(user_id), search=search, item_type=item_type, tag=tag, limit=limit
        )
    except BrainServiceError as e:
        raise _server_error(e) from e

    return BrainItemListResponse(
        count=len(items),
        items=[BrainItemResponse.from_domain(item) for item in items],
        timestamp=datetime.now(UTC),
    )


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(item_id: uuid.UUID, user_id: uuid.UUID = Query(...)):
    try:
        deleted = await brain_service.delete_item(str(user_id), str(item_id))
    except BrainServiceError as e:
        raise _server_error(e) from e

    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/query", response_model=BrainQueryResponse)
async def query_brain(request: BrainQueryRequest):
    """
    Ask a question across the user's saved items.

    AI failures are answered with a friendly message rather than an error
    status; only persistence failures return 500 (503 when storage is down).
    """
    if not request.question.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="'question' is required",
        )

    user_id = str(request.user_id)
    try:
        result = await brain_service.ask(user_id, request.question.strip())
    except BrainServiceError as e:
        logger.error("Brain query could not load items", user_id=user_id, error=str(e))
        raise _server_error(e) from e

    return BrainQueryResponse(
        answer=result.answer,
        sources=[ConversationSourceResponse.from_domain(s) for s in result.sources],
        timestamp=datetime.now(UTC),
    )


@router.post("/enrich", response_model=EnrichmentResponse)
async def enrich_preview(request: EnrichPreviewRequest):
    """Generate metadata for text without saving it."""
    result = await generate_metadata(request.title, request.content)
    return EnrichmentResponse.from_domain(result)
