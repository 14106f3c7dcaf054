"""
Question Generator - turns selected memories into recall questions.

Per call:
1. Select diverse, not-recently-used memories and dedupe them by id
2. One model call per memory, parsed through the parser cascade
3. Duplicate filter against this call and against recent history
4. Rule-based fallback question when the model fails or repeats itself
5. One batch call for memories still without a question
6. Commit memories and question texts to the usage record, only on success
"""
from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

from loguru import logger

from config import get_settings
from recall.generation.dedup import is_duplicate
from recall.generation.fallback import fallback_questions
from recall.generation.models import MemorySnapshot, Question
from recall.generation.parsers import (
    find_best_matching_memory,
    parse_numbered_questions,
    parse_single_question,
)
from recall.generation.prompts import build_batch_prompt, build_single_memory_prompt
from recall.generation.selector import MemorySelector
from recall.generation.usage import UsageTracker
from recall.llm import GenerationServiceError, SamplingOptions, TextGenerator


class QuestionGenerationError(RuntimeError):
    """No usable question came out of either generation pass."""

    def __init__(self, message: str, selected_count: int = 0) -> None:
        super().__init__(message)
        self.selected_count = selected_count


@dataclass
class GenerationResult:
    """Questions for one quiz plus bookkeeping about how they were made."""

    questions: list[Question]
    metadata: dict[str, Any] = field(default_factory=dict)


class QuestionGenerator:
    """
    Generates recall questions from memories using a text generator.

    The generator never lets a model failure abort the call: each memory
    degrades to a fallback question. Only a call that ends with zero
    questions raises QuestionGenerationError.
    """

    def __init__(
        self,
        client: TextGenerator,
        usage: UsageTracker,
        selector: MemorySelector | None = None,
        inter_call_delay: float | None = None,
        duplicate_threshold: float | None = None,
        match_threshold: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        settings = get_settings()
        self.client = client
        self.usage = usage
        self.selector = selector or MemorySelector(
            usage, reuse_window=timedelta(minutes=settings.memory_reuse_window_minutes)
        )
        self.inter_call_delay = (
            settings.question_inter_call_delay if inter_call_delay is None else inter_call_delay
        )
        self.duplicate_threshold = (
            settings.duplicate_similarity_threshold
            if duplicate_threshold is None
            else duplicate_threshold
        )
        self.match_threshold = (
            settings.memory_match_threshold if match_threshold is None else match_threshold
        )
        self._sleep = sleep
        self._calls_made = 0

    # ========================================
    # Public API
    # ========================================

    def generate(self, memories: Sequence[MemorySnapshot], count: int) -> GenerationResult:
        """
        Generate up to ``count`` questions.

        Raises:
            ValueError: If no memories are given or count is not positive
            QuestionGenerationError: If no question could be produced
        """
        if not memories:
            raise ValueError("No memories provided")
        if count < 1:
            raise ValueError("count must be at least 1")

        logger.info("Generating {} questions from {} memories", count, len(memories))

        selected = self.selector.select(memories, min(count, len(memories)))
        unique = _unique_by_id(selected)
        target = min(count, len(unique))

        history = self.usage.recent_question_texts()
        accepted: list[Question] = []
        options = SamplingOptions.for_purpose("generation")
        self._calls_made = 0

        for memory in unique[:target]:
            question = self._question_for_memory(memory, accepted, history, options)
            if question is not None:
                accepted.append(question)

        if len(accepted) < target:
            self._batch_pass(unique, accepted, history, target, options)

        if not accepted:
            raise QuestionGenerationError(
                "Failed to generate any valid questions", selected_count=len(unique)
            )

        questions = accepted[:target]
        self.usage.commit(unique, (q.text for q in questions))

        logger.info(
            "Generated {} questions ({} from fallback rules)",
            len(questions),
            sum(1 for q in questions if q.source == "fallback"),
        )
        return GenerationResult(
            questions=questions,
            metadata=self._metadata(memories, unique, questions),
        )

    # ========================================
    # Per-memory pass
    # ========================================

    def _call_model(self, prompt: str, options: SamplingOptions) -> str:
        if self._calls_made and self.inter_call_delay > 0:
            self._sleep(self.inter_call_delay)
        self._calls_made += 1
        return self.client.generate(prompt, options)

    def _is_duplicate(self, text: str, accepted: list[Question], history: list[str]) -> bool:
        return is_duplicate(
            text,
            (q.text for q in accepted),
            history,
            threshold=self.duplicate_threshold,
        )

    def _question_for_memory(
        self,
        memory: MemorySnapshot,
        accepted: list[Question],
        history: list[str],
        options: SamplingOptions,
    ) -> Question | None:
        try:
            response = self._call_model(build_single_memory_prompt(memory), options)
        except GenerationServiceError as e:
            logger.warning("Model call failed for memory {}: {}", memory.id, e)
        else:
            text = parse_single_question(response)
            if text is None:
                logger.info("Could not parse a question for memory {}", memory.id)
            elif self._is_duplicate(text, accepted, history):
                logger.info("Duplicate question for memory {}: {}", memory.id, text)
            else:
                return Question.for_memory(text, memory, source="model")

        return self._fallback_question(memory, accepted, history)

    def _fallback_question(
        self,
        memory: MemorySnapshot,
        accepted: list[Question],
        history: list[str],
    ) -> Question | None:
        for text in fallback_questions(memory):
            if not self._is_duplicate(text, accepted, history):
                logger.debug("Fallback question for memory {}: {}", memory.id, text)
                return Question.for_memory(text, memory, source="fallback")
        logger.info("Every fallback question for memory {} was a duplicate", memory.id)
        return None

    # ========================================
    # Batch pass
    # ========================================

    def _batch_pass(
        self,
        unique: list[MemorySnapshot],
        accepted: list[Question],
        history: list[str],
        target: int,
        options: SamplingOptions,
    ) -> None:
        covered = {str(q.memory_id) for q in accepted}
        remaining = [m for m in unique if str(m.id) not in covered]
        if not remaining:
            return

        wanted = target - len(accepted)
        logger.info("Trying batch generation for {} more questions", wanted)
        try:
            response = self._call_model(build_batch_prompt(remaining, wanted), options)
        except GenerationServiceError as e:
            logger.warning("Batch generation failed: {}", e)
            return

        for text in parse_numbered_questions(response):
            if len(accepted) >= target:
                break
            if self._is_duplicate(text, accepted, history):
                continue
            memory = find_best_matching_memory(text, remaining, self.match_threshold)
            accepted.append(Question.for_memory(text, memory, source="batch"))

    # ========================================
    # Metadata
    # ========================================

    def _metadata(
        self,
        memories: Sequence[MemorySnapshot],
        unique: list[MemorySnapshot],
        questions: list[Question],
    ) -> dict[str, Any]:
        titles = {str(m.id): m.title for m in unique}
        categories = list(dict.fromkeys(m.category_or_default for m in unique))
        return {
            "total_memories": len(memories),
            "selected_memories": len(unique),
            "generated_questions": len(questions),
            "fallback_questions": sum(1 for q in questions if q.source == "fallback"),
            "used_memories_count": self.usage.stats()["used_memories_count"],
            "categories": categories,
            "memory_question_map": [
                {
                    "question_text": q.text,
                    "memory_id": q.memory_id,
                    "memory_title": titles.get(str(q.memory_id), "unknown"),
                }
                for q in questions
            ],
        }


def _unique_by_id(memories: Sequence[MemorySnapshot]) -> list[MemorySnapshot]:
    seen: set[str] = set()
    unique = []
    for memory in memories:
        key = str(memory.id)
        if key in seen:
            logger.debug("Skipping duplicate memory {} in selection", memory.id)
            continue
        seen.add(key)
        unique.append(memory)
    return unique
