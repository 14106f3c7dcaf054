"""
FastAPI dependency providers.

Process-wide collaborators (usage record, Ollama client) live here so tests
can swap them with ``app.dependency_overrides``.
"""
from __future__ import annotations

from datetime import timedelta
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from config import get_settings
from recall.db.database import get_session
from recall.db.memory_store import MemoryStore
from recall.generation import QuestionGenerator, UsageTracker
from recall.llm import OllamaClient
from recall.progress import FeedbackService, ProgressTracker
from recall.scoring import AnswerScorer


@lru_cache(maxsize=1)
def get_usage_tracker() -> UsageTracker:
    """The shared usage record for this process."""
    settings = get_settings()
    return UsageTracker(question_window=timedelta(minutes=settings.question_history_window_minutes))


@lru_cache(maxsize=1)
def get_ollama_client() -> OllamaClient:
    return OllamaClient()


def get_memory_store(session: Session = Depends(get_session)) -> MemoryStore:
    return MemoryStore(session)


def get_question_generator(
    client: OllamaClient = Depends(get_ollama_client),
    usage: UsageTracker = Depends(get_usage_tracker),
) -> QuestionGenerator:
    return QuestionGenerator(client, usage)


def get_answer_scorer(client: OllamaClient = Depends(get_ollama_client)) -> AnswerScorer:
    return AnswerScorer(client)


def get_progress_tracker(store: MemoryStore = Depends(get_memory_store)) -> ProgressTracker:
    return ProgressTracker(store)


def get_feedback_service(
    client: OllamaClient = Depends(get_ollama_client),
    tracker: ProgressTracker = Depends(get_progress_tracker),
) -> FeedbackService:
    return FeedbackService(client, tracker)
