"""
Score value types and aggregation.
"""
from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction
from typing import Any


class Verdict(str, Enum):
    """Grade for one question/answer pair."""

    CORRECT = "CORRECT"
    PARTIAL = "PARTIAL"
    INCORRECT = "INCORRECT"


@dataclass
class ScoreResult:
    """Verdict for one pair, with the reason and where it came from."""

    score: Verdict
    reasoning: str
    source: str = "model"  # model | override | heuristic

    def to_dict(self) -> dict[str, Any]:
        return {"score": self.score.value, "reasoning": self.reasoning, "source": self.source}


def round_half_up(value: float | Fraction) -> int:
    return int(math.floor(value + Fraction(1, 2)))


def compute_percentage(final_score: float, total_questions: int) -> int:
    """
    round(100 * final_score / total_questions), halves rounded up.

    Raises:
        ValueError: If total_questions is not positive
    """
    if total_questions <= 0:
        raise ValueError("total_questions must be positive")
    # Exact arithmetic: 11.5 / 20 * 100 is 57.49999... as a float
    exact = Fraction(final_score).limit_denominator() * 100 / total_questions
    return round_half_up(exact)


@dataclass
class ScoreSummary:
    """Aggregated result of one test."""

    total_questions: int
    correct_answers: int
    partial_answers: int
    final_score: float
    percentage: int
    details: list[dict[str, Any]] = field(default_factory=list)
    memories_tested: list[Any] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "partial_answers": self.partial_answers,
            "final_score": self.final_score,
            "percentage": self.percentage,
            "details": self.details,
            "memories_tested": self.memories_tested,
        }


def summarize(
    questions: Sequence[str],
    answers: Sequence[str],
    results: Sequence[ScoreResult],
    memory_ids: Sequence[Any] | None = None,
) -> ScoreSummary:
    """
    Aggregate per-pair results.

    Raises:
        ValueError: If there are no results
    """
    total = len(results)
    if total == 0:
        raise ValueError("Cannot summarize an empty test")

    correct = sum(1 for r in results if r.score is Verdict.CORRECT)
    partial = sum(1 for r in results if r.score is Verdict.PARTIAL)
    final_score = correct + 0.5 * partial

    details = [
        {
            "question": questions[i],
            "user_answer": answers[i],
            "correct": r.score is Verdict.CORRECT,
            "partial": r.score is Verdict.PARTIAL,
            "reasoning": r.reasoning,
        }
        for i, r in enumerate(results)
    ]
    tested = list(dict.fromkeys(m for m in (memory_ids or []) if m is not None))

    return ScoreSummary(
        total_questions=total,
        correct_answers=correct,
        partial_answers=partial,
        final_score=final_score,
        percentage=compute_percentage(final_score, total),
        details=details,
        memories_tested=tested,
    )
