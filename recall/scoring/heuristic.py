"""
Local heuristic scorer, used when the model gives nothing usable.
"""
from __future__ import annotations

import re

from recall.scoring.rules import family_conflict, is_blank_answer
from recall.scoring.summary import ScoreResult, Verdict

_WORD_RE = re.compile(r"[\w']+")


def _words(text: str) -> list[str]:
    return [w for w in _WORD_RE.findall(text.lower()) if len(w) > 1]


def heuristic_score(answer: str, context: str) -> ScoreResult:
    """
    Grade one answer by word overlap with the memory context.

    CORRECT on any exact word match, PARTIAL on any substring match, else
    INCORRECT; a relationship mismatch then downgrades to INCORRECT.
    """
    if is_blank_answer(answer):
        return ScoreResult(Verdict.INCORRECT, "No answer provided", source="heuristic")

    answer_words = _words(answer)
    context_words = _words(context)
    context_set = set(context_words)

    exact = [w for w in answer_words if w in context_set]
    close = [w for w in answer_words if any(w in c or c in w for c in context_words)]

    if exact:
        verdict, reasoning = Verdict.CORRECT, f"Exact matches found: {', '.join(exact)}"
    elif close:
        verdict, reasoning = Verdict.PARTIAL, f"Close matches found: {', '.join(close)}"
    else:
        verdict = Verdict.INCORRECT
        reasoning = f'No relevant matches found in "{answer.strip()}" for the memory'

    conflict = family_conflict(context, answer)
    if conflict and verdict is not Verdict.INCORRECT:
        answer_term, context_term = conflict
        verdict = Verdict.INCORRECT
        reasoning = f'Wrong family relationship: "{answer_term}" is not "{context_term}"'

    return ScoreResult(verdict, reasoning, source="heuristic")
