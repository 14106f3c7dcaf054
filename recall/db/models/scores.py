"""
Test score history.

One row per completed recall test. ``details`` keeps the per-question
breakdown exactly as it was scored; ``memories_tested`` the memory ids in
question order.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, Integer
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow


class TestScore(Base):
    """Persisted result of one recall test."""

    __tablename__ = "test_scores"
    __test__ = False  # keep pytest from collecting the model

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    correct_answers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    partial_answers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    final_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    percentage: Mapped[int | None] = mapped_column(Integer)
    details: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, default=list)
    memories_tested: Mapped[list[Any] | None] = mapped_column(JSON, default=list)
    test_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<TestScore(id={self.id}, percentage={self.percentage})>"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "partial_answers": self.partial_answers,
            "final_score": self.final_score,
            "percentage": self.percentage,
            "details": list(self.details or []),
            "memories_tested": list(self.memories_tested or []),
            "test_date": self.test_date.isoformat() if self.test_date else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
