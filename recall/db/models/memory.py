"""
Memory journal models.

Implements:
- Memory: A logged memory (title, description, category, tags, optional photo)
- ExtractedFact: A short fact pulled out of a memory, with a confidence score
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow


class Memory(Base):
    """
    A single logged memory.

    ``tags`` is stored as JSON text and is always a list when read.
    ``category`` defaults to "other" so selection never sees a missing category
    for stored rows.
    """

    __tablename__ = "memories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str | None] = mapped_column(String(50), default="other")
    photo_path: Mapped[str | None] = mapped_column(String(500))
    tags: Mapped[list[str] | None] = mapped_column(JSON, default=list)
    location: Mapped[str | None] = mapped_column(String(255))
    date_logged: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Memory(id={self.id}, title='{self.title[:30]}', category={self.category})>"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description or "",
            "category": self.category,
            "photo_path": self.photo_path,
            "tags": list(self.tags or []),
            "location": self.location,
            "date_logged": self.date_logged.isoformat() if self.date_logged else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class ExtractedFact(Base):
    """A fact extracted from a memory."""

    __tablename__ = "extracted_facts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    memory_id: Mapped[int] = mapped_column(ForeignKey("memories.id"), nullable=False, index=True)
    fact_text: Mapped[str] = mapped_column(Text, nullable=False)
    confidence_score: Mapped[float] = mapped_column(Float, default=0.8)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "memory_id": self.memory_id,
            "fact_text": self.fact_text,
            "confidence_score": self.confidence_score,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
