"""
Learning API endpoints for tag corrections, feedback and suggestion ranking.

Errors raised by the learning service (ValidationError, NotFoundError,
StorageError) are turned into envelopes by the app-level handlers.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query

from newsroom.api.models import CorrectionRequest, FeedbackRequest, SuggestionRequest, ok
from newsroom.config import API_LIST_LIMIT_DEFAULT, API_LIST_LIMIT_MAX
from newsroom.learning.service import LearningService
from newsroom.observability.logging import get_logger

router = APIRouter(prefix="/learning", tags=["learning"])
logger = get_logger(__name__)

# Learning service instance (injected by the app factory)
learning_service: LearningService | None = None


def set_learning_service(service: LearningService | None) -> None:
    """
    Inject learning service instance

    Side Effects:
        - Modifies global learning_service variable
    """
    global learning_service
    learning_service = service


def _service() -> LearningService:
    if learning_service is None:
        raise HTTPException(status_code=500, detail="Learning service not initialized")
    return learning_service


@router.post("/corrections")
async def record_correction(body: CorrectionRequest) -> dict[str, Any]:
    """
    Record the tags an editor actually kept for a message.

    Side Effects:
        - Appends to tag_corrections
        - Updates tag_accuracy counters
    """
    correction = _service().record_correction(
        message_id=body.message_id,
        original_tags=body.original_tags,
        corrected_tags=body.corrected_tags,
        user_id=body.user_id,
    )
    return ok(correction.to_api(), "Tag correction recorded successfully")


@router.post("/feedback")
async def record_feedback(body: FeedbackRequest) -> dict[str, Any]:
    """
    Record a thumbs-up/down on a message's tags.

    Side Effects:
        - Appends to tag_feedback
        - Updates tag_accuracy counters
    """
    entry = _service().record_feedback(
        message_id=body.message_id,
        tags=body.tags,
        feedback=body.feedback,
        user_id=body.user_id,
    )
    return ok(entry.to_api(), "Tag feedback recorded successfully")


@router.post("/suggestions/improve")
async def improve_suggestions(body: SuggestionRequest) -> dict[str, Any]:
    suggestions = _service().improve_suggestions(
        message_text=body.message_text,
        channel_name=body.channel_name,
        original_suggestions=body.original_suggestions,
    )
    return ok({"suggestions": suggestions}, "Improved tag suggestions generated successfully")


@router.get("/metrics")
async def get_learning_metrics() -> dict[str, Any]:
    """
    Accuracy stats, most-corrected tags and feedback counts.

    Side Effects:
        - Reads tag_corrections and tag_feedback
    """
    metrics = _service().get_metrics()
    return ok(metrics.to_api(), "Learning metrics retrieved successfully")


@router.get("/corrections/recent")
async def get_recent_corrections(
    limit: int = Query(API_LIST_LIMIT_DEFAULT, ge=1, le=API_LIST_LIMIT_MAX),
) -> dict[str, Any]:
    corrections = _service().get_recent_corrections(limit)
    return ok(
        [c.to_api() for c in corrections],
        f"Retrieved {len(corrections)} recent corrections",
    )


@router.get("/tags")
async def list_tag_counters() -> dict[str, Any]:
    counters = _service().list_tag_counters()
    return ok([c.to_api() for c in counters], f"Retrieved {len(counters)} tag counters")


@router.get("/tags/{tag}")
async def get_tag_counter(tag: str) -> dict[str, Any]:
    return ok(_service().get_tag_counter(tag).to_api())
