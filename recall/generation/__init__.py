"""
Question generation pipeline.

Flow:
    MemorySelector -> QuestionGenerator (per-memory model calls, parser
    cascade, duplicate filter, rule-based fallback, batch pass) -> UsageTracker
"""
from recall.generation.models import MemorySnapshot, Question
from recall.generation.question_generator import (
    GenerationResult,
    QuestionGenerationError,
    QuestionGenerator,
)
from recall.generation.selector import MemorySelector
from recall.generation.usage import UsageTracker

__all__ = [
    "GenerationResult",
    "MemorySelector",
    "MemorySnapshot",
    "Question",
    "QuestionGenerationError",
    "QuestionGenerator",
    "UsageTracker",
]
