"""
Questions router - the generation/scoring pipeline over HTTP.

Endpoints for:
- Question generation from a set of memories
- Answer scoring (optionally persisted as a test score)
- Question history reset and statistics
- Ollama health
"""
from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from pydantic import AliasChoices, BaseModel, Field

from config import get_settings
from recall.api.dependencies import (
    get_answer_scorer,
    get_memory_store,
    get_ollama_client,
    get_question_generator,
    get_usage_tracker,
)
from recall.db.memory_store import MemoryStore
from recall.generation import MemorySnapshot, QuestionGenerator, UsageTracker
from recall.llm import OllamaClient
from recall.scoring import AnswerScorer

router = APIRouter()


# ========================================
# Request/Response Models
# ========================================


class MemoryInput(BaseModel):
    """A memory to generate questions from."""

    id: int | str
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None

    def to_snapshot(self) -> MemorySnapshot:
        return MemorySnapshot(
            id=self.id,
            title=self.title,
            description=self.description or "",
            category=self.category,
        )


class GenerateQuestionsRequest(BaseModel):
    memories: list[MemoryInput] = Field(default_factory=list)
    count: int = Field(
        default_factory=lambda: get_settings().default_question_count,
        ge=1,
        le=50,
        description="Number of questions wanted",
    )


class QuestionInput(BaseModel):
    """A previously generated question being answered."""

    text: str = Field(..., min_length=1)
    context: Optional[str] = None
    memory_id: Optional[int | str] = Field(
        default=None, validation_alias=AliasChoices("memory_id", "memoryId")
    )
    category: Optional[str] = None
    type: str = "recall"


class ScoreAnswersRequest(BaseModel):
    questions: list[QuestionInput] = Field(default_factory=list)
    answers: list[Optional[str]] = Field(default_factory=list)
    save: bool = Field(False, description="Persist the result as a test score")


def _resolve_contexts(questions: list[QuestionInput], store: MemoryStore) -> None:
    """
    Fill in missing contexts from the referenced memory.

    Raises:
        HTTPException: 400 if a question has neither context nor a resolvable memory
    """
    missing = [q for q in questions if q.context is None]
    if not missing:
        return

    ids = []
    for q in missing:
        try:
            ids.append(int(q.memory_id))
        except (TypeError, ValueError):
            raise HTTPException(
                status_code=400,
                detail=f'Question "{q.text}" has no context and no valid memory_id',
            )

    found = store.get_memories_by_ids(ids)
    for q, memory_id in zip(missing, ids):
        memory = found.get(memory_id)
        if memory is None:
            raise HTTPException(
                status_code=400,
                detail=f'Question "{q.text}" references unknown memory {memory_id}',
            )
        q.context = memory.description or ""


# ========================================
# Generation
# ========================================


@router.post("/generate-questions")
def generate_questions(
    request: GenerateQuestionsRequest,
    generator: QuestionGenerator = Depends(get_question_generator),
) -> dict[str, Any]:
    """
    Generate recall questions from the given memories.

    A QuestionGenerationError (nothing usable at all) is turned into a 500
    by the application's exception handler.
    """
    if not request.memories:
        raise HTTPException(status_code=400, detail="No memories provided")

    result = generator.generate([m.to_snapshot() for m in request.memories], request.count)
    return {
        "success": True,
        "data": [q.to_dict() for q in result.questions],
        "metadata": result.metadata,
    }


# ========================================
# Scoring
# ========================================


@router.post("/score-answers")
def score_answers(
    request: ScoreAnswersRequest,
    scorer: AnswerScorer = Depends(get_answer_scorer),
    store: MemoryStore = Depends(get_memory_store),
) -> dict[str, Any]:
    """Score answers by position against their questions."""
    if not request.questions:
        raise HTTPException(status_code=400, detail="Questions and answers are required")

    _resolve_contexts(request.questions, store)
    summary = scorer.score_and_summarize(request.questions, request.answers)
    data = summary.to_dict()

    if request.save:
        saved = store.create_test_score(
            total_questions=summary.total_questions,
            correct_answers=summary.correct_answers,
            partial_answers=summary.partial_answers,
            final_score=summary.final_score,
            percentage=summary.percentage,
            details=summary.details,
            memories_tested=summary.memories_tested,
        )
        data["test_score_id"] = saved.id

    return {"success": True, "data": data}


# ========================================
# History
# ========================================


@router.api_route("/reset-question-history", methods=["GET", "POST"])
def reset_question_history(usage: UsageTracker = Depends(get_usage_tracker)) -> dict[str, Any]:
    usage.reset()
    return {"success": True, "message": "Question history reset successfully"}


@router.get("/question-stats")
def question_stats(usage: UsageTracker = Depends(get_usage_tracker)) -> dict[str, Any]:
    return {"success": True, "data": usage.stats()}


# ========================================
# Health
# ========================================


@router.get("/health/ollama")
def ollama_health(client: OllamaClient = Depends(get_ollama_client)) -> dict[str, Any]:
    """Whether Ollama is reachable and the configured model is installed."""
    status = client.check_status()
    if not status.running:
        logger.warning("Ollama health check failed: {}", status.error)
    return {
        "success": status.running,
        "data": {
            "ollama_running": status.running,
            "model_available": status.model_available,
            "installed_models": status.models,
            "recommended_model": status.model,
            "error": status.error,
        },
    }
