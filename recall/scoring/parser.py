"""
Tolerant parsing of the model's scoring response.

The model is asked for ``{"results": [{"questionIndex", "score", "reasoning"}]}``
but routinely wraps it in prose, misspells the top-level key, or echoes the
template. Whatever can be salvaged is returned, keyed by pair index.
"""
from __future__ import annotations

import json
import re
from typing import Any

from loguru import logger
from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from recall.scoring.summary import ScoreResult, Verdict

_JSON_BLOCK_RE = re.compile(r"\{[\s\S]*\}")
_KEY_TYPOS_RE = re.compile(r'"(?:reresults|ressults|resuls|result)"\s*:')


class ModelVerdict(BaseModel):
    """One entry of the ``results`` array."""

    question_index: int | None = Field(
        default=None, validation_alias=AliasChoices("questionIndex", "question_index", "index")
    )
    score: Verdict
    reasoning: str = ""

    @field_validator("score", mode="before")
    @classmethod
    def normalize_score(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("reasoning", mode="before")
    @classmethod
    def coerce_reasoning(cls, value: Any) -> Any:
        return "" if value is None else str(value)


def extract_results(response: str) -> list[Any] | None:
    """The raw ``results`` list, or None if the response holds no usable JSON."""
    match = _JSON_BLOCK_RE.search(response or "")
    if not match:
        return None

    text = _KEY_TYPOS_RE.sub('"results":', match.group(0))
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Scoring response is not valid JSON: {}", e)
        return None

    results = data.get("results") if isinstance(data, dict) else None
    return results if isinstance(results, list) else None


def parse_scoring_response(response: str, pair_count: int) -> dict[int, ScoreResult] | None:
    """
    Map pair index -> model verdict.

    Entries are placed by ``questionIndex`` when it is a free, in-range slot
    (1-based numbering is detected and shifted), otherwise by position.
    Invalid entries are skipped.

    Returns:
        Verdicts by index (possibly missing some indices), or None when
        nothing usable was found
    """
    raw = extract_results(response)
    if raw is None:
        return None

    verdicts: list[ModelVerdict | None] = []
    for entry in raw:
        try:
            verdicts.append(ModelVerdict.model_validate(entry))
        except ValidationError:
            verdicts.append(None)

    indices = [v.question_index for v in verdicts if v is not None and v.question_index is not None]
    shift = 1 if indices and 0 not in indices and max(indices) == pair_count else 0

    placed: dict[int, ScoreResult] = {}
    for position, verdict in enumerate(verdicts):
        if verdict is None:
            continue
        index = None
        if verdict.question_index is not None:
            candidate = verdict.question_index - shift
            if 0 <= candidate < pair_count and candidate not in placed:
                index = candidate
        if index is None and position < pair_count and position not in placed:
            index = position
        if index is None:
            continue
        placed[index] = ScoreResult(score=verdict.score, reasoning=verdict.reasoning, source="model")

    if not placed:
        logger.warning("Scoring response contained no usable verdicts")
        return None
    return placed
