"""
Usage Tracker - short-term memory of what was recently quizzed.

Tracks two things, both in process memory only:
- memories recently used in a quiz, keyed by (id, title)
- question texts recently issued, for cross-session duplicate checks

Entries are pruned lazily. All access goes through one lock because FastAPI
serves sync endpoints from a thread pool.
"""
from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable
from datetime import timedelta
from typing import Any

from loguru import logger

from recall.generation.models import MemorySnapshot

MemoryKey = tuple[str, str]


def _seconds(value: timedelta | float) -> float:
    return value.total_seconds() if isinstance(value, timedelta) else float(value)


class UsageTracker:
    """
    Injectable record of recently used memories and recently issued questions.

    Args:
        question_window: How long question texts count for duplicate checks
        clock: Returns the current time in seconds (``time.time`` by default)
    """

    def __init__(
        self,
        question_window: timedelta | float = timedelta(hours=1),
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.question_window = _seconds(question_window)
        self._clock = clock
        self._lock = threading.RLock()
        self._used: dict[MemoryKey, float] = {}
        self._questions: dict[str, float] = {}

    @staticmethod
    def key(memory_id: int | str, title: str) -> MemoryKey:
        return (str(memory_id), title)

    # ========================================
    # Memories
    # ========================================

    def is_recently_used(self, memory_id: int | str, title: str | None = None) -> bool:
        """True if the memory is in the usage record (any title when ``title`` is None)."""
        with self._lock:
            if title is not None:
                return self.key(memory_id, title) in self._used
            return any(mid == str(memory_id) for mid, _ in self._used)

    def last_used(self, memory_id: int | str, title: str) -> float | None:
        with self._lock:
            return self._used.get(self.key(memory_id, title))

    def mark_used(self, memory_id: int | str, title: str) -> None:
        with self._lock:
            self._used[self.key(memory_id, title)] = self._clock()

    def forget_renamed(self, memories: Iterable[MemorySnapshot]) -> int:
        """
        Drop entries whose id belongs to one of ``memories`` but whose title differs.

        Returns:
            Number of entries removed
        """
        current = {str(m.id): m.title for m in memories}
        with self._lock:
            stale = [
                k for k in self._used if k[0] in current and current[k[0]] != k[1]
            ]
            for k in stale:
                del self._used[k]
        if stale:
            logger.debug("Dropped {} usage entries for renamed memories", len(stale))
        return len(stale)

    # ========================================
    # Questions
    # ========================================

    def record_question(self, text: str) -> None:
        with self._lock:
            self._questions[text] = self._clock()

    def recent_question_texts(self) -> list[str]:
        """Question texts issued within the question window (prunes older ones)."""
        with self._lock:
            cutoff = self._clock() - self.question_window
            for text in [t for t, ts in self._questions.items() if ts < cutoff]:
                del self._questions[text]
            return list(self._questions)

    # ========================================
    # Maintenance
    # ========================================

    def prune_older_than(self, age: timedelta | float) -> int:
        """
        Remove memory and question entries recorded more than ``age`` ago.

        Returns:
            Number of entries removed
        """
        with self._lock:
            cutoff = self._clock() - _seconds(age)
            old_memories = [k for k, ts in self._used.items() if ts < cutoff]
            old_questions = [t for t, ts in self._questions.items() if ts < cutoff]
            for k in old_memories:
                del self._used[k]
            for t in old_questions:
                del self._questions[t]
        removed = len(old_memories) + len(old_questions)
        if removed:
            logger.debug("Pruned {} usage entries older than {}s", removed, _seconds(age))
        return removed

    def commit(self, memories: Iterable[MemorySnapshot], question_texts: Iterable[str]) -> None:
        """Record one finished generation call: memories used and questions issued."""
        with self._lock:
            now = self._clock()
            for memory in memories:
                self._used[self.key(memory.id, memory.title)] = now
            for text in question_texts:
                self._questions[text] = now

    def reset(self) -> None:
        with self._lock:
            self._used.clear()
            self._questions.clear()
        logger.info("Question history reset")

    def stats(self) -> dict[str, Any]:
        with self._lock:
            now = self._clock()
            recent = sum(1 for ts in self._questions.values() if now - ts < self.question_window)
            return {
                "used_memories_count": len(self._used),
                "recent_questions_count": recent,
                "total_tracked_questions": len(self._questions),
            }
