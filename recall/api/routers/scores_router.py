"""
Scores router.

Endpoints for:
- Saving a test score
- Paging through score history
- Aggregate statistics and progress
"""
from __future__ import annotations

from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from recall.api.dependencies import get_memory_store, get_progress_tracker
from recall.db.memory_store import MemoryStore
from recall.progress import ProgressTracker

router = APIRouter()


# ========================================
# Request/Response Models
# ========================================


class ScoreCreateRequest(BaseModel):
    """Request model for saving a test score."""

    total_questions: int = Field(..., gt=0)
    correct_answers: int = Field(..., ge=0)
    final_score: float = Field(..., ge=0)
    partial_answers: int = Field(0, ge=0)
    percentage: Optional[int] = Field(None, ge=0, le=100)
    details: list[dict[str, Any]] = Field(default_factory=list)
    memories_tested: list[Any] = Field(default_factory=list)


# ========================================
# Endpoints
# ========================================


@router.post("", status_code=status.HTTP_201_CREATED)
def save_score(
    request: ScoreCreateRequest,
    store: MemoryStore = Depends(get_memory_store),
) -> dict[str, Any]:
    if request.correct_answers + request.partial_answers > request.total_questions:
        raise HTTPException(status_code=400, detail="More answers graded than questions asked")

    score = store.create_test_score(
        total_questions=request.total_questions,
        correct_answers=request.correct_answers,
        final_score=request.final_score,
        partial_answers=request.partial_answers,
        percentage=request.percentage,
        details=request.details,
        memories_tested=request.memories_tested,
    )
    return {
        "success": True,
        "data": {"id": score.id, "message": "Test score saved successfully"},
    }


@router.get("")
def list_scores(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    order: Literal["asc", "desc", "ASC", "DESC"] = Query("desc"),
    store: MemoryStore = Depends(get_memory_store),
) -> dict[str, Any]:
    scores, total = store.list_test_scores(limit=limit, offset=offset, order=order)
    return {
        "success": True,
        "data": [s.to_dict() for s in scores],
        "pagination": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "has_more": total > offset + limit,
        },
    }


@router.get("/stats")
def score_stats(store: MemoryStore = Depends(get_memory_store)) -> dict[str, Any]:
    return {"success": True, "data": store.get_aggregate_stats()}


@router.get("/progress")
def score_progress(
    window: int = Query(7, ge=1, le=50, description="Number of recent tests"),
    tracker: ProgressTracker = Depends(get_progress_tracker),
) -> dict[str, Any]:
    """Headline progress numbers and the last ``window`` results, oldest first."""
    return {"success": True, "data": tracker.summary(window).to_dict()}


@router.get("/{score_id}")
def get_score(score_id: int, store: MemoryStore = Depends(get_memory_store)) -> dict[str, Any]:
    score = store.get_test_score(score_id)
    if score is None:
        raise HTTPException(status_code=404, detail="Test score not found")
    return {"success": True, "data": score.to_dict()}
