"""
Near-duplicate detection for generated questions.
"""
from __future__ import annotations

import re
from collections.abc import Iterable

DEFAULT_DUPLICATE_THRESHOLD = 0.7

_PUNCT_RE = re.compile(r"[^\w\s]")
_SPACE_RE = re.compile(r"\s+")


def normalize_question(text: str) -> str:
    """Lowercase, drop punctuation, collapse whitespace."""
    return _SPACE_RE.sub(" ", _PUNCT_RE.sub("", text.lower())).strip()


def overlap_ratio(a: str, b: str) -> float:
    """|shared words| / max(|words a|, |words b|) over normalized word sets."""
    words_a = set(normalize_question(a).split())
    words_b = set(normalize_question(b).split())
    if not words_a or not words_b:
        return 0.0
    return len(words_a & words_b) / max(len(words_a), len(words_b))


def is_duplicate(
    candidate: str,
    *pools: Iterable[str],
    threshold: float = DEFAULT_DUPLICATE_THRESHOLD,
) -> bool:
    """True if ``candidate`` overlaps any text in any pool by more than ``threshold``."""
    for pool in pools:
        for existing in pool:
            if overlap_ratio(candidate, existing) > threshold:
                return True
    return False
