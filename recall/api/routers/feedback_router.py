"""
Feedback router - coaching feedback and AI availability.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from config import get_settings
from recall.api.dependencies import get_feedback_service, get_ollama_client
from recall.llm import OllamaClient
from recall.progress import FeedbackService

router = APIRouter()


@router.get("/ai-feedback")
def ai_feedback(service: FeedbackService = Depends(get_feedback_service)) -> dict[str, Any]:
    """Feedback on the most recent tests; template text when the model is unavailable."""
    result = service.generate()
    return {"success": True, **result.to_dict()}


@router.get("/ai-status")
def ai_status(client: OllamaClient = Depends(get_ollama_client)) -> dict[str, Any]:
    status = client.check_status(timeout=get_settings().ollama_status_timeout)
    return {"success": True, **status.to_dict()}
