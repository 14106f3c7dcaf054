"""
Rule-based fallback questions, used when the model is unavailable or its
output is unusable.

Rules are checked in table order against the memory's lowercased
title + description. Every matching rule contributes a candidate; the
generic questions always come last.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

from recall.generation.models import MemorySnapshot

GENERIC_QUESTION = "What is the main thing you remember about this?"


def _keywords(*words: str) -> re.Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(re.escape(w) for w in words) + r")")


@dataclass(frozen=True)
class FallbackRule:
    """A canned question asked when every pattern matches the memory text."""

    name: str
    question: str
    patterns: tuple[re.Pattern[str], ...]

    def matches(self, text: str) -> bool:
        return all(p.search(text) for p in self.patterns)


PET = _keywords("dog", "cat", "pet")

FALLBACK_RULES: tuple[FallbackRule, ...] = (
    FallbackRule("pet_name", "What is your pet's name?", (PET, re.compile(r"name is (\w+)"))),
    FallbackRule(
        "pet_breed",
        "What breed is your pet?",
        (PET, _keywords("breed", "corgi", "labrador")),
    ),
    FallbackRule("purchase", "What did you buy?", (_keywords("bought", "purchased"),)),
    FallbackRule(
        "location",
        "Where did you go?",
        (re.compile(r"\b(?:went to|visited|in) ([^,.]+)"),),
    ),
    FallbackRule(
        "family",
        "Who is in this memory?",
        (
            _keywords(
                "mother", "father", "brother", "sister",
                "uncle", "aunt", "grandfather", "grandmother",
            ),
        ),
    ),
    FallbackRule(
        "food",
        "What did you eat?",
        (_keywords("eat", "food", "breakfast", "lunch", "dinner"),),
    ),
    FallbackRule("activity", "What activity did you start or stop?", (_keywords("started", "quit"),)),
    FallbackRule("number", "What number is mentioned in this memory?", (re.compile(r"\d+"),)),
)


def fallback_questions(memory: MemorySnapshot) -> list[str]:
    """Candidate fallback questions for ``memory``, best first."""
    text = memory.combined_text.lower()
    candidates = [rule.question for rule in FALLBACK_RULES if rule.matches(text)]
    candidates.append(GENERIC_QUESTION)
    if memory.title.strip():
        candidates.append(f'What do you remember about "{memory.title.strip()}"?')
    return candidates
