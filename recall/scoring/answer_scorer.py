"""
Answer Scorer - strict grading of free-text answers against memory context.

One model call grades every pair. Model verdicts then pass through a
downgrade-only override layer:
1. blank answer          -> INCORRECT
2. relationship mismatch -> CORRECT becomes INCORRECT
3. name mismatch         -> CORRECT becomes INCORRECT

Pairs the model did not grade, and every pair when the model is unreachable
or unparsable, are graded by the local heuristic scorer.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from loguru import logger

from recall.llm import GenerationServiceError, SamplingOptions, TextGenerator
from recall.scoring.heuristic import heuristic_score
from recall.scoring.parser import parse_scoring_response
from recall.scoring.prompts import build_scoring_prompt
from recall.scoring.rules import family_conflict, is_blank_answer, name_mismatch
from recall.scoring.summary import ScoreResult, ScoreSummary, Verdict, summarize


@dataclass
class ScoringPair:
    """A question, the user's answer and the memory text it is checked against."""

    question: str
    user_answer: str
    context: str
    memory_id: Any = None


def build_pairs(questions: Sequence[Any], answers: Sequence[str | None]) -> list[ScoringPair]:
    """
    Pair each question with its answer by position (missing answers are "").

    ``questions`` items need ``text`` and ``context`` attributes and may carry
    ``memory_id``.
    """
    pairs = []
    for i, question in enumerate(questions):
        answer = answers[i] if i < len(answers) else None
        pairs.append(
            ScoringPair(
                question=question.text,
                user_answer=(answer or "").strip(),
                context=question.context or "",
                memory_id=getattr(question, "memory_id", None),
            )
        )
    return pairs


def apply_overrides(result: ScoreResult, pair: ScoringPair) -> ScoreResult:
    """Downgrade a model verdict that contradicts the deterministic rules."""
    if is_blank_answer(pair.user_answer):
        if result.score is Verdict.INCORRECT:
            return result
        return ScoreResult(Verdict.INCORRECT, "Empty or missing answer", source="override")

    if result.score is not Verdict.CORRECT:
        return result

    conflict = family_conflict(pair.context, pair.user_answer)
    if conflict:
        answer_term, context_term = conflict
        return ScoreResult(
            Verdict.INCORRECT,
            f'Wrong family relationship: "{answer_term}" is not the same as "{context_term}"',
            source="override",
        )

    mismatch = name_mismatch(pair.context, pair.user_answer)
    if mismatch:
        answer_names, context_names = mismatch
        return ScoreResult(
            Verdict.INCORRECT,
            f'Name mismatch: "{", ".join(answer_names)}" does not match "{", ".join(context_names)}"',
            source="override",
        )

    return result


class AnswerScorer:
    """
    Scores answers with a text generator, falling back to local heuristics.
    """

    def __init__(self, client: TextGenerator, options: SamplingOptions | None = None) -> None:
        self.client = client
        self.options = options

    def score_pairs(self, pairs: Sequence[ScoringPair]) -> list[ScoreResult]:
        if not pairs:
            return []

        options = self.options or SamplingOptions.for_purpose("scoring")
        try:
            response = self.client.generate(build_scoring_prompt(pairs), options)
        except GenerationServiceError as e:
            logger.warning("Scoring model unavailable, using heuristic scoring: {}", e)
            return [heuristic_score(p.user_answer, p.context) for p in pairs]

        verdicts = parse_scoring_response(response, len(pairs))
        if verdicts is None:
            logger.warning("Unparsable scoring response, using heuristic scoring")
            return [heuristic_score(p.user_answer, p.context) for p in pairs]

        results = []
        for index, pair in enumerate(pairs):
            verdict = verdicts.get(index)
            if verdict is None:
                logger.debug("No model verdict for pair {}, scoring heuristically", index)
                results.append(heuristic_score(pair.user_answer, pair.context))
                continue
            final = apply_overrides(verdict, pair)
            if final is not verdict:
                logger.info(
                    "Overrode model verdict for pair {}: {} -> {} ({})",
                    index,
                    verdict.score.value,
                    final.score.value,
                    final.reasoning,
                )
            results.append(final)
        return results

    def score(
        self,
        questions: Sequence[Any],
        answers: Sequence[str | None],
    ) -> list[ScoreResult]:
        """Grade each question against the answer at the same position."""
        return self.score_pairs(build_pairs(questions, answers))

    def score_and_summarize(
        self,
        questions: Sequence[Any],
        answers: Sequence[str | None],
    ) -> ScoreSummary:
        """
        Grade and aggregate.

        Raises:
            ValueError: If ``questions`` is empty
        """
        if not questions:
            raise ValueError("At least one question is required")

        pairs = build_pairs(questions, answers)
        results = self.score_pairs(pairs)
        summary = summarize(
            [p.question for p in pairs],
            [p.user_answer for p in pairs],
            results,
            memory_ids=[p.memory_id for p in pairs],
        )
        logger.info(
            "Scored {} answers: {} correct, {} partial ({}%)",
            summary.total_questions,
            summary.correct_answers,
            summary.partial_answers,
            summary.percentage,
        )
        return summary
