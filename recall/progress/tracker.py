"""
Progress Tracker - aggregates stored test scores for display.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from recall.db.memory_store import MemoryStore
from recall.db.models import TestScore

BAR_FULL = "█"
BAR_EMPTY = "░"


@dataclass
class ProgressSummary:
    """Headline numbers plus the recent results, oldest first."""

    total_tests: int
    average_score: float | None
    best_score: int | None
    worst_score: int | None
    improvement_trend: int
    recent: list[dict[str, Any]] = field(default_factory=list)

    @property
    def recent_average(self) -> float | None:
        values = [r["percentage"] for r in self.recent if r["percentage"] is not None]
        if not values:
            return None
        return round(sum(values) / len(values), 1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_tests": self.total_tests,
            "average_score": self.average_score,
            "best_score": self.best_score,
            "worst_score": self.worst_score,
            "improvement_trend": self.improvement_trend,
            "recent_average": self.recent_average,
            "recent": self.recent,
        }


def _result_row(score: TestScore) -> dict[str, Any]:
    return {
        "id": score.id,
        "test_date": score.test_date.isoformat() if score.test_date else None,
        "percentage": score.percentage,
        "correct_answers": score.correct_answers,
        "partial_answers": score.partial_answers,
        "total_questions": score.total_questions,
    }


class ProgressTracker:
    """Read-only view over the score history."""

    def __init__(self, store: MemoryStore):
        self.store = store

    def recent_results(self, window: int = 7) -> list[dict[str, Any]]:
        """The last ``window`` tests in chronological order."""
        scores = self.store.get_recent_test_scores(window)
        return [_result_row(s) for s in reversed(scores)]

    def summary(self, window: int = 7) -> ProgressSummary:
        stats = self.store.get_aggregate_stats()
        average = stats["average_score"]
        return ProgressSummary(
            total_tests=stats["total_tests"],
            average_score=round(average, 1) if average is not None else None,
            best_score=stats["best_score"],
            worst_score=stats["worst_score"],
            improvement_trend=stats["improvement_trend"],
            recent=self.recent_results(window),
        )

    @staticmethod
    def render_chart(results: list[dict[str, Any]], width: int = 30) -> list[str]:
        """One text bar per result, e.g. ``2026-10-17  ██████░░░░  60%``."""
        lines = []
        for row in results:
            percentage = max(0, min(100, row.get("percentage") or 0))
            filled = round(width * percentage / 100)
            date = (row.get("test_date") or "")[:10]
            lines.append(f"{date:<10}  {BAR_FULL * filled}{BAR_EMPTY * (width - filled)}  {percentage:>3}%")
        return lines
