"""
Value types passed through the generation pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

DEFAULT_MEMORY_CATEGORY = "other"
DEFAULT_QUESTION_CATEGORY = "general"


@dataclass(frozen=True)
class MemorySnapshot:
    """The parts of a memory the generator needs, detached from any session."""

    id: int | str
    title: str
    description: str = ""
    category: str | None = None

    @property
    def category_or_default(self) -> str:
        return self.category or DEFAULT_MEMORY_CATEGORY

    @property
    def combined_text(self) -> str:
        return f"{self.title} {self.description}"

    @classmethod
    def from_model(cls, memory: Any) -> MemorySnapshot:
        """Build from a Memory row or anything with the same attributes."""
        return cls(
            id=memory.id,
            title=memory.title or "",
            description=memory.description or "",
            category=memory.category,
        )


@dataclass
class Question:
    """A recall question tied (weakly) to the memory it was generated from."""

    text: str
    context: str
    memory_id: int | str | None
    category: str = DEFAULT_QUESTION_CATEGORY
    type: str = "recall"
    source: str = "model"  # model | fallback | batch

    @classmethod
    def for_memory(cls, text: str, memory: MemorySnapshot, source: str = "model") -> Question:
        return cls(
            text=text,
            context=memory.description,
            memory_id=memory.id,
            category=memory.category or DEFAULT_QUESTION_CATEGORY,
            source=source,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "context": self.context,
            "memory_id": self.memory_id,
            "category": self.category,
            "type": self.type,
            "source": self.source,
        }
