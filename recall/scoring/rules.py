"""
Deterministic rule tables for strict scoring.

- Blank answers
- Family relationship equivalence classes
- Proper-name extraction (capitalized words, minus common sentence openers)
"""
from __future__ import annotations

import re

BLANK_ANSWERS = frozenset({"", "nothing"})

# Terms in the same set name the same relationship; everything else differs.
FAMILY_CLASSES: tuple[frozenset[str], ...] = (
    frozenset({"uncle"}),
    frozenset({"aunt"}),
    frozenset({"father", "dad"}),
    frozenset({"mother", "mom"}),
    frozenset({"brother"}),
    frozenset({"sister"}),
    frozenset({"grandfather", "grandpa"}),
    frozenset({"grandmother", "grandma"}),
)

_FAMILY_PATTERNS: tuple[tuple[int, str, re.Pattern[str]], ...] = tuple(
    (index, term, re.compile(rf"\b{term}s?\b", re.IGNORECASE))
    for index, terms in enumerate(FAMILY_CLASSES)
    for term in sorted(terms)
)

# Capitalized words that are almost never names
IGNORED_CAPITALIZED = frozenset(
    {
        "A", "An", "The", "I", "My", "Our", "We", "Me", "Us", "You", "Your",
        "He", "She", "It", "They", "His", "Her", "Their", "Its", "Them",
        "This", "That", "These", "Those", "There", "Here",
        "And", "But", "Or", "So", "Then", "After", "Before", "When", "While",
        "On", "In", "At", "To", "For", "With", "From", "Of", "By", "About",
        "Today", "Yesterday", "Tomorrow", "Last", "Next", "Every",
        "Went", "Got", "Had", "Was", "Were", "Is", "Are", "Did", "Saw", "Met",
        "Yes", "No", "Not", "Just", "Also", "Maybe",
    }
    | {term.capitalize() for terms in FAMILY_CLASSES for term in terms}
)

_CAPITALIZED_RE = re.compile(r"\b[A-Z][a-z]+\b")
_WORD_RE = re.compile(r"[a-z0-9']+")


def is_blank_answer(answer: str | None) -> bool:
    return (answer or "").strip().lower() in BLANK_ANSWERS


# ========================================
# Family relationships
# ========================================


def family_terms(text: str) -> list[tuple[int, str]]:
    """(class index, term) for every relationship term found, in table order."""
    return [(index, term) for index, term, pattern in _FAMILY_PATTERNS if pattern.search(text)]


def family_conflict(context: str, answer: str) -> tuple[str, str] | None:
    """
    Relationship mismatch between context and answer.

    Returns:
        (answer_term, context_term) when both mention a relationship and no
        mentioned relationship is shared, else None
    """
    in_context = family_terms(context)
    in_answer = family_terms(answer)
    if not in_context or not in_answer:
        return None
    if {i for i, _ in in_context} & {i for i, _ in in_answer}:
        return None
    return in_answer[0][1], in_context[0][1]


# ========================================
# Proper names
# ========================================


def extract_names(text: str) -> list[str]:
    """Capitalized tokens that look like proper names, original case, first-seen order."""
    names = [w for w in _CAPITALIZED_RE.findall(text) if w not in IGNORED_CAPITALIZED]
    return list(dict.fromkeys(names))


def name_mismatch(context: str, answer: str) -> tuple[list[str], list[str]] | None:
    """
    Names in the answer that cannot be found in the context.

    A name matches a context name by case-insensitive equality or substring
    containment, or when it appears anywhere in the context as a word.

    Returns:
        (answer_names, context_names) on mismatch, else None
    """
    context_names = extract_names(context)
    answer_names = extract_names(answer)
    if not context_names or not answer_names:
        return None

    context_words = set(_WORD_RE.findall(context.lower()))
    for answer_name in answer_names:
        lowered = answer_name.lower()
        if lowered in context_words:
            return None
        for context_name in context_names:
            other = context_name.lower()
            if lowered == other or lowered in other or other in lowered:
                return None
    return answer_names, context_names
