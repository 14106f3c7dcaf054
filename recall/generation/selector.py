"""
Memory Selector - picks which memories to quiz on.

Prefers memories not quizzed recently, then spreads the picks across
categories before any category repeats. The result is shuffled so callers
never see category-grouping order.
"""
from __future__ import annotations

import random
from collections.abc import Sequence
from datetime import timedelta

from loguru import logger

from recall.generation.models import MemorySnapshot
from recall.generation.usage import UsageTracker


class MemorySelector:
    """
    Diversity-first, non-repeating memory selection.

    Args:
        usage: Shared usage record
        reuse_window: Age after which a used memory becomes eligible again
        rng: Random source for the final shuffle (injectable for tests)
    """

    def __init__(
        self,
        usage: UsageTracker,
        reuse_window: timedelta = timedelta(hours=1),
        rng: random.Random | None = None,
    ) -> None:
        self.usage = usage
        self.reuse_window = reuse_window
        self.rng = rng or random.Random()

    def _available(self, memories: Sequence[MemorySnapshot]) -> list[int]:
        return [
            i for i, m in enumerate(memories) if not self.usage.is_recently_used(m.id, m.title)
        ]

    def _candidate_pool(self, memories: Sequence[MemorySnapshot], count: int) -> list[int]:
        pool = self._available(memories)
        if len(pool) >= count:
            return pool

        self.usage.forget_renamed(memories)
        self.usage.prune_older_than(self.reuse_window)
        pool = self._available(memories)
        if len(pool) >= count:
            return pool

        # Still short: re-admit recently used memories, least recently used first
        in_pool = set(pool)
        recent = sorted(
            (i for i in range(len(memories)) if i not in in_pool),
            key=lambda i: self.usage.last_used(memories[i].id, memories[i].title) or 0.0,
        )
        readmitted = recent[: count - len(pool)]
        if readmitted:
            logger.debug("Re-admitting {} recently used memories", len(readmitted))
        return pool + readmitted

    def select(self, memories: Sequence[MemorySnapshot], count: int) -> list[MemorySnapshot]:
        """
        Select up to ``count`` memories.

        Returns:
            Shuffled selection (empty if there are no candidates)
        """
        if not memories or count <= 0:
            return []

        pool = self._candidate_pool(memories, count)
        selected: list[int] = []
        category_counts: dict[str, int] = {}

        # One per category, first-seen order
        for i in pool:
            if len(selected) >= count:
                break
            category = memories[i].category_or_default
            if category not in category_counts:
                category_counts[category] = 1
                selected.append(i)

        # Fill from the least represented category
        while len(selected) < count and len(selected) < len(pool):
            chosen = set(selected)
            min_category = min(category_counts, key=category_counts.__getitem__)
            candidate = next(
                (
                    i
                    for i in pool
                    if i not in chosen and memories[i].category_or_default == min_category
                ),
                None,
            )
            if candidate is None:
                candidate = next((i for i in pool if i not in chosen), None)
                if candidate is None:
                    break
            category = memories[candidate].category_or_default
            category_counts[category] = category_counts.get(category, 0) + 1
            selected.append(candidate)

        result = [memories[i] for i in selected]
        self.rng.shuffle(result)
        logger.debug(
            "Selected {} of {} memories across {} categories",
            len(result),
            len(memories),
            len(category_counts),
        )
        return result
