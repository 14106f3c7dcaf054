"""
Parsers that turn free-form model output into question text.

Single-question parsing is an ordered cascade of pure strategies; the first
one that returns text wins. Batch output is parsed as a numbered list.
"""
from __future__ import annotations

import re
from collections.abc import Callable, Sequence

from recall.generation.models import MemorySnapshot

INTERROGATIVES = frozenset(
    {
        "what", "where", "who", "when", "how", "which", "why",
        "did", "do", "does", "can", "will", "would", "is", "are",
    }
)

MIN_QUESTION_CHARS = 10
MAX_LOOSE_BATCH_QUESTIONS = 5

_MARKER_RE = re.compile(r"Question:\s*(.+\?)", re.IGNORECASE)
_NUMBERING_RE = re.compile(r"^\d+[.)]\s*")
_BULLET_RE = re.compile(r"^[-*•]\s*")
_BRACKET_PREFIX_RE = re.compile(r"^\[.*?\]\s*")
_QUESTION_PREFIX_RE = re.compile(r"^Question:\s*", re.IGNORECASE)
_DECORATION_RE = re.compile(r"^[*_\"'`\s]+|[*_\"'`\s]+$")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?\n]+")
_NUMBERED_LINE_RE = re.compile(r"^\d+[.)]\s*(.+\?)\s*$")
_WORD_RE = re.compile(r"[a-z0-9']+")

QuestionParser = Callable[[str], "str | None"]


def _first_word(text: str) -> str:
    match = _WORD_RE.match(text.strip().lower())
    return match.group(0) if match else ""


def _starts_with_interrogative(text: str) -> bool:
    return _first_word(text) in INTERROGATIVES


# ========================================
# Cascade strategies
# ========================================


def parse_question_marker(text: str) -> str | None:
    """``Question: ...?`` anywhere in the output."""
    match = _MARKER_RE.search(text)
    return match.group(1).strip() if match else None


def parse_question_line(text: str) -> str | None:
    """First line ending in ``?`` that is long enough, minus numbering or bullets."""
    for line in text.splitlines():
        stripped = _DECORATION_RE.sub("", line.strip())
        if stripped.endswith("?") and len(stripped) > MIN_QUESTION_CHARS:
            return _BULLET_RE.sub("", _NUMBERING_RE.sub("", stripped)).strip()
    return None


def parse_interrogative_sentence(text: str) -> str | None:
    """First sentence that opens with a question word, with ``?`` appended."""
    for sentence in _SENTENCE_SPLIT_RE.split(text):
        stripped = sentence.strip()
        if _starts_with_interrogative(stripped) and len(stripped) > MIN_QUESTION_CHARS:
            return stripped if stripped.endswith("?") else f"{stripped}?"
    return None


QUESTION_PARSERS: tuple[QuestionParser, ...] = (
    parse_question_marker,
    parse_question_line,
    parse_interrogative_sentence,
)


def clean_question_text(text: str) -> str:
    """Strip prompt artifacts and guarantee a trailing ``?``; empty if nothing is left."""
    cleaned = _DECORATION_RE.sub("", text.strip())
    cleaned = _BRACKET_PREFIX_RE.sub("", cleaned)
    cleaned = _QUESTION_PREFIX_RE.sub("", cleaned)
    cleaned = _NUMBERING_RE.sub("", cleaned)
    cleaned = _DECORATION_RE.sub("", cleaned)
    if not cleaned.rstrip("?").strip():
        return ""
    return cleaned if cleaned.endswith("?") else f"{cleaned}?"


def parse_single_question(
    text: str,
    parsers: Sequence[QuestionParser] = QUESTION_PARSERS,
) -> str | None:
    """Run the cascade over one model response."""
    if not text:
        return None
    for parser in parsers:
        found = parser(text)
        if found:
            cleaned = clean_question_text(found)
            if cleaned:
                return cleaned
    return None


# ========================================
# Batch output
# ========================================


def parse_numbered_questions(text: str) -> list[str]:
    """
    Questions from a numbered list; loose question-like sentences as a last resort.
    """
    questions = []
    for line in text.splitlines():
        match = _NUMBERED_LINE_RE.match(_DECORATION_RE.sub("", line.strip()))
        if match:
            cleaned = clean_question_text(match.group(1))
            if cleaned:
                questions.append(cleaned)
    if questions:
        return questions

    for sentence in _SENTENCE_SPLIT_RE.split(text):
        stripped = sentence.strip()
        if _starts_with_interrogative(_NUMBERING_RE.sub("", stripped)) and len(stripped) > MIN_QUESTION_CHARS:
            cleaned = clean_question_text(stripped)
            if cleaned:
                questions.append(cleaned)
            if len(questions) >= MAX_LOOSE_BATCH_QUESTIONS:
                break
    return questions


def find_best_matching_memory(
    question: str,
    memories: Sequence[MemorySnapshot],
    threshold: float = 0.2,
) -> MemorySnapshot | None:
    """
    Memory whose words overlap most with the question.

    Overlap is the share of question words (longer than 2 chars) that are a
    substring of, or contain, some memory word. Below ``threshold`` the first
    memory is returned.
    """
    if not memories:
        return None

    question_words = [w for w in question.lower().split() if len(w) > 2]
    best, best_score = None, 0.0
    for memory in memories:
        memory_words = [w for w in memory.combined_text.lower().split() if len(w) > 2]
        hits = sum(
            1 for q in question_words if any(q in m or m in q for m in memory_words)
        )
        score = hits / max(len(question_words), 1)
        if score > best_score and score > threshold:
            best, best_score = memory, score
    return best or memories[0]
