"""
Memory Store - relational persistence for memories, facts and test scores.

Service object wrapping one SQLAlchemy session. Write methods commit; callers
own the session lifetime (``get_session`` dependency or ``session_scope``).
"""
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import Any

from loguru import logger
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from recall.db.models import ExtractedFact, Memory, TestScore
from recall.db.models.base import utcnow
from recall.scoring.summary import compute_percentage

# Columns a caller may change through update_memory
UPDATABLE_MEMORY_FIELDS = frozenset(
    {"title", "description", "category", "photo_path", "tags", "location", "date_logged"}
)

DEFAULT_CATEGORY = "other"
RECENT_SCORES_LIMIT = 10


class MemoryStore:
    """
    CRUD and aggregate queries over the memory journal.

    Handles:
    - Memory create/read/update/delete with AND-combined list filters
    - Extracted facts attached to a memory
    - Test score history with pagination and aggregate statistics
    """

    def __init__(self, session: Session):
        self.session = session

    # ========================================
    # Memories
    # ========================================

    def create_memory(
        self,
        title: str,
        description: str | None = None,
        category: str | None = None,
        tags: Iterable[str] | None = None,
        location: str | None = None,
        photo_path: str | None = None,
        date_logged: datetime | None = None,
    ) -> Memory:
        """
        Create and persist a memory.

        Raises:
            ValueError: If title is missing or blank
        """
        if not title or not title.strip():
            raise ValueError("Title is required")

        memory = Memory(
            title=title.strip(),
            description=description or "",
            category=category or DEFAULT_CATEGORY,
            tags=_clean_tags(tags),
            location=location,
            photo_path=photo_path,
        )
        if date_logged is not None:
            memory.date_logged = date_logged

        self.session.add(memory)
        self.session.commit()
        self.session.refresh(memory)
        logger.info("Created memory {} ({})", memory.id, memory.category)
        return memory

    def get_memory(self, memory_id: int) -> Memory | None:
        return self.session.get(Memory, memory_id)

    def list_memories(
        self,
        category: str | None = None,
        search: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        limit: int | None = None,
    ) -> list[Memory]:
        """
        List memories, newest first.

        All supplied filters are AND-combined. ``search`` matches a substring
        of the title OR the description.
        """
        stmt = select(Memory)

        if category:
            stmt = stmt.where(Memory.category == category)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(Memory.title.ilike(pattern), Memory.description.ilike(pattern)))
        if date_from is not None:
            stmt = stmt.where(Memory.date_logged >= date_from)
        if date_to is not None:
            stmt = stmt.where(Memory.date_logged <= date_to)

        stmt = stmt.order_by(Memory.date_logged.desc(), Memory.id.desc())
        if limit:
            stmt = stmt.limit(limit)

        return list(self.session.scalars(stmt))

    def update_memory(self, memory_id: int, **changes: Any) -> Memory | None:
        """
        Apply field changes to a memory.

        Returns:
            The updated memory, or None if it does not exist

        Raises:
            ValueError: On unknown fields or a blank title
        """
        unknown = set(changes) - UPDATABLE_MEMORY_FIELDS
        if unknown:
            raise ValueError(f"Unknown memory fields: {', '.join(sorted(unknown))}")

        memory = self.get_memory(memory_id)
        if memory is None:
            return None

        if "title" in changes:
            title = changes["title"]
            if not title or not str(title).strip():
                raise ValueError("Title cannot be empty")
            changes["title"] = str(title).strip()
        if "tags" in changes:
            changes["tags"] = _clean_tags(changes["tags"])
        if "category" in changes and not changes["category"]:
            changes["category"] = DEFAULT_CATEGORY

        for field, value in changes.items():
            setattr(memory, field, value)
        memory.updated_at = utcnow()

        self.session.commit()
        self.session.refresh(memory)
        logger.info("Updated memory {}: {}", memory_id, sorted(changes))
        return memory

    def delete_memory(self, memory_id: int) -> bool:
        memory = self.get_memory(memory_id)
        if memory is None:
            return False
        self.session.delete(memory)
        self.session.commit()
        logger.info("Deleted memory {}", memory_id)
        return True

    def get_memories_by_ids(self, memory_ids: Iterable[int]) -> dict[int, Memory]:
        ids = list({int(i) for i in memory_ids})
        if not ids:
            return {}
        rows = self.session.scalars(select(Memory).where(Memory.id.in_(ids)))
        return {m.id: m for m in rows}

    def get_memory_stats(self) -> dict[str, Any]:
        """Total count, per-category counts and memories logged in the last 7 days."""
        total = self.session.scalar(select(func.count(Memory.id))) or 0

        by_category = [
            {"category": category, "count": count}
            for category, count in self.session.execute(
                select(Memory.category, func.count(Memory.id))
                .where(Memory.category.is_not(None))
                .group_by(Memory.category)
                .order_by(Memory.category)
            )
        ]

        week_ago = utcnow() - timedelta(days=7)
        this_week = (
            self.session.scalar(
                select(func.count(Memory.id)).where(Memory.date_logged >= week_ago)
            )
            or 0
        )

        return {"total": total, "by_category": by_category, "this_week": this_week}

    # ========================================
    # Extracted Facts
    # ========================================

    def add_extracted_fact(
        self,
        memory_id: int,
        fact_text: str,
        confidence_score: float = 0.8,
    ) -> ExtractedFact | None:
        """
        Attach a fact to an existing memory.

        Returns:
            The stored fact, or None if the memory does not exist

        Raises:
            ValueError: On blank text or a confidence outside [0, 1]
        """
        if not fact_text or not fact_text.strip():
            raise ValueError("Fact text is required")
        if not 0.0 <= confidence_score <= 1.0:
            raise ValueError("Confidence score must be between 0 and 1")
        if self.get_memory(memory_id) is None:
            return None

        fact = ExtractedFact(
            memory_id=memory_id,
            fact_text=fact_text.strip(),
            confidence_score=confidence_score,
        )
        self.session.add(fact)
        self.session.commit()
        self.session.refresh(fact)
        return fact

    def get_extracted_facts(self, memory_id: int) -> list[ExtractedFact]:
        stmt = (
            select(ExtractedFact)
            .where(ExtractedFact.memory_id == memory_id)
            .order_by(ExtractedFact.created_at.desc(), ExtractedFact.id.desc())
        )
        return list(self.session.scalars(stmt))

    # ========================================
    # Test Scores
    # ========================================

    def create_test_score(
        self,
        total_questions: int,
        correct_answers: int,
        final_score: float,
        partial_answers: int = 0,
        percentage: int | None = None,
        details: list[dict[str, Any]] | None = None,
        memories_tested: list[Any] | None = None,
    ) -> TestScore:
        """
        Persist one test result.

        ``percentage`` is derived from ``final_score`` when not supplied.

        Raises:
            ValueError: If total_questions is not positive
        """
        if total_questions <= 0:
            raise ValueError("total_questions must be positive")
        if percentage is None:
            percentage = compute_percentage(final_score, total_questions)

        score = TestScore(
            total_questions=total_questions,
            correct_answers=correct_answers,
            partial_answers=partial_answers,
            final_score=final_score,
            percentage=percentage,
            details=list(details or []),
            memories_tested=list(memories_tested or []),
        )
        self.session.add(score)
        self.session.commit()
        self.session.refresh(score)
        logger.info(
            "Saved test score {}: {}/{} ({}%)",
            score.id,
            final_score,
            total_questions,
            percentage,
        )
        return score

    def get_test_score(self, score_id: int) -> TestScore | None:
        return self.session.get(TestScore, score_id)

    def list_test_scores(
        self,
        limit: int = 20,
        offset: int = 0,
        order: str = "desc",
    ) -> tuple[list[TestScore], int]:
        """
        Page through test scores by creation time.

        Returns:
            Tuple of (scores on this page, total number of scores)
        """
        if order.lower() == "asc":
            ordering = (TestScore.created_at.asc(), TestScore.id.asc())
        else:
            ordering = (TestScore.created_at.desc(), TestScore.id.desc())

        stmt = select(TestScore).order_by(*ordering).limit(limit).offset(offset)
        scores = list(self.session.scalars(stmt))
        total = self.session.scalar(select(func.count(TestScore.id))) or 0
        return scores, total

    def get_recent_test_scores(self, limit: int) -> list[TestScore]:
        """Most recent scores, newest first."""
        scores, _ = self.list_test_scores(limit=limit, offset=0, order="desc")
        return scores

    def get_aggregate_stats(self) -> dict[str, Any]:
        """Aggregate statistics over the whole score history plus the recent trend."""
        row = self.session.execute(
            select(
                func.count(TestScore.id),
                func.avg(TestScore.percentage),
                func.max(TestScore.percentage),
                func.min(TestScore.percentage),
                func.avg(TestScore.final_score),
                func.sum(TestScore.correct_answers),
                func.sum(TestScore.total_questions),
            )
        ).one()

        recent = self.get_recent_test_scores(RECENT_SCORES_LIMIT)
        recent_scores = [
            {
                "percentage": s.percentage,
                "test_date": s.test_date.isoformat() if s.test_date else None,
            }
            for s in recent
        ]
        trend = 0
        if len(recent) > 1:
            trend = (recent[0].percentage or 0) - (recent[-1].percentage or 0)

        return {
            "total_tests": row[0] or 0,
            "average_score": float(row[1]) if row[1] is not None else None,
            "best_score": row[2],
            "worst_score": row[3],
            "avg_final_score": float(row[4]) if row[4] is not None else None,
            "total_correct": row[5] or 0,
            "total_questions_answered": row[6] or 0,
            "recent_scores": recent_scores,
            "improvement_trend": trend,
        }


def _clean_tags(tags: Iterable[str] | None) -> list[str]:
    if not tags:
        return []
    if isinstance(tags, str):
        tags = [tags]
    return [str(t).strip() for t in tags if str(t).strip()]
