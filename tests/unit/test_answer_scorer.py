"""
Unit tests for AnswerScorer and score aggregation.

Model verdicts are scripted; overrides and heuristic fallbacks are checked
against them.
"""

import json
import math
from fractions import Fraction

import pytest

from conftest import FakeGenerator
from recall.generation import Question
from recall.llm import ServiceUnavailableError
from recall.scoring import AnswerScorer, ScoreResult, Verdict, compute_percentage, summarize
from recall.scoring.answer_scorer import ScoringPair, apply_overrides, build_pairs


def verdicts(*scores):
    return json.dumps({
        "results": [
            {"questionIndex": i, "score": score, "reasoning": f"model says {score.lower()}"}
            for i, score in enumerate(scores)
        ]
    })


def question(text, context, memory_id=None):
    return Question(text=text, context=context, memory_id=memory_id)


class TestOverrides:
    """Tests for the deterministic downgrade layer."""

    def test_blank_answer_is_incorrect(self):
        pair = ScoringPair("Who came?", "", "Dinner with uncle Tom")

        result = apply_overrides(ScoreResult(Verdict.CORRECT, "ok"), pair)

        assert result.score is Verdict.INCORRECT
        assert result.source == "override"

    def test_wrong_relationship(self):
        pair = ScoringPair("Who came to dinner?", "my dad", "Had dinner with uncle Tom")

        result = apply_overrides(ScoreResult(Verdict.CORRECT, "ok"), pair)

        assert result.score is Verdict.INCORRECT
        assert result.reasoning.startswith("Wrong family relationship")

    def test_same_relationship_kept(self):
        pair = ScoringPair("Who came to dinner?", "uncle", "Had dinner with uncle Tom")
        verdict = ScoreResult(Verdict.CORRECT, "ok")

        assert apply_overrides(verdict, pair) is verdict

    def test_synonym_relationship_kept(self):
        pair = ScoringPair("Who fixed the car?", "father", "My dad fixed the car")
        verdict = ScoreResult(Verdict.CORRECT, "ok")

        assert apply_overrides(verdict, pair) is verdict

    def test_wrong_name(self):
        pair = ScoringPair("What is your dog's name?", "Buddy", "Our dog is called Max")

        result = apply_overrides(ScoreResult(Verdict.CORRECT, "ok"), pair)

        assert result.score is Verdict.INCORRECT
        assert result.reasoning.startswith("Name mismatch")

    def test_partial_is_never_upgraded_or_rechecked(self):
        pair = ScoringPair("Who came to dinner?", "my dad", "Had dinner with uncle Tom")
        verdict = ScoreResult(Verdict.PARTIAL, "close")

        assert apply_overrides(verdict, pair) is verdict


class TestBuildPairs:
    def test_missing_answers_are_blank(self):
        pairs = build_pairs(
            [question("Q1?", "c1", 1), question("Q2?", "c2", 2)],
            ["  answer  "],
        )

        assert [p.user_answer for p in pairs] == ["answer", ""]
        assert [p.memory_id for p in pairs] == [1, 2]


class TestAnswerScorer:
    """Tests for model scoring with fallbacks."""

    def test_model_verdicts_pass_through_overrides(self):
        client = FakeGenerator(responses=[verdicts("CORRECT", "CORRECT", "PARTIAL")])
        questions = [
            question("Who came to dinner?", "Had dinner with uncle Tom", 1),
            question("Who came to dinner?", "Had dinner with uncle Tom", 1),
            question("Where did you go?", "We went to Paris in May", 2),
        ]

        results = AnswerScorer(client).score(questions, ["uncle", "my dad", "France"])

        assert [r.score for r in results] == [Verdict.CORRECT, Verdict.INCORRECT, Verdict.PARTIAL]
        assert [r.source for r in results] == ["model", "override", "model"]

    def test_prompt_contains_every_pair(self):
        client = FakeGenerator(responses=[verdicts("CORRECT")])

        AnswerScorer(client).score([question("Where did you go?", "We went to Paris")], ["Paris"])

        prompt = client.prompts[0]
        assert "Where did you go?" in prompt
        assert "We went to Paris" in prompt
        assert "Paris" in prompt

    def test_unreachable_model_uses_heuristic(self):
        client = FakeGenerator(error=ServiceUnavailableError("down"))

        results = AnswerScorer(client).score(
            [question("Where did you go?", "We went to Paris in May")],
            ["Paris"],
        )

        assert results[0].score is Verdict.CORRECT
        assert results[0].source == "heuristic"

    def test_unparsable_response_uses_heuristic(self):
        client = FakeGenerator(responses=["Everything looks right to me!"])

        results = AnswerScorer(client).score(
            [question("Where did you go?", "We went to Paris in May")],
            ["London"],
        )

        assert results[0].score is Verdict.INCORRECT
        assert results[0].source == "heuristic"

    def test_missing_verdict_scored_heuristically(self):
        response = json.dumps({"results": [{"questionIndex": 0, "score": "CORRECT"}]})
        client = FakeGenerator(responses=[response])

        results = AnswerScorer(client).score(
            [
                question("Where did you go?", "We went to Paris in May"),
                question("When did you go?", "We went to Paris in May"),
            ],
            ["Paris", "May"],
        )

        assert results[0].source == "model"
        assert results[1].source == "heuristic"
        assert results[1].score is Verdict.CORRECT

    @pytest.mark.parametrize("model_score", ["CORRECT", "PARTIAL", "INCORRECT"])
    @pytest.mark.parametrize("answer", ["", "   ", "nothing", None])
    def test_blank_answer_never_earns_credit(self, model_score, answer):
        client = FakeGenerator(responses=[verdicts(model_score)])

        results = AnswerScorer(client).score([question("Who came?", "Uncle Tom came")], [answer])

        assert results[0].score is Verdict.INCORRECT

    def test_no_pairs(self):
        assert AnswerScorer(FakeGenerator()).score_pairs([]) == []


class TestSummary:
    """Tests for aggregation and percentage."""

    def test_score_and_summarize(self):
        client = FakeGenerator(responses=[verdicts("CORRECT", "PARTIAL")])
        questions = [
            question("Where did you go?", "We went to Paris in May", 2),
            question("What did you eat?", "Croissants in Paris", 7),
        ]

        summary = AnswerScorer(client).score_and_summarize(questions, ["Paris", "bread"])

        assert summary.total_questions == 2
        assert summary.correct_answers == 1
        assert summary.partial_answers == 1
        assert summary.final_score == 1.5
        assert summary.percentage == 75
        assert summary.memories_tested == [2, 7]
        assert summary.details[1] == {
            "question": "What did you eat?",
            "user_answer": "bread",
            "correct": False,
            "partial": True,
            "reasoning": "model says partial",
        }

    def test_empty_questions(self):
        with pytest.raises(ValueError):
            AnswerScorer(FakeGenerator()).score_and_summarize([], [])

    def test_summarize_dedupes_memories(self):
        results = [ScoreResult(Verdict.CORRECT, "a"), ScoreResult(Verdict.INCORRECT, "b")]

        summary = summarize(["q1", "q2"], ["a1", "a2"], results, memory_ids=[3, 3])

        assert summary.memories_tested == [3]
        assert summary.percentage == 50

    @pytest.mark.parametrize("final_score,total,expected", [
        (1.5, 2, 75),
        (1, 3, 33),
        (2, 3, 67),
        (0.5, 4, 13),
        (0, 5, 0),
        (5, 5, 100),
        (11.5, 20, 58),
        (14.5, 100, 15),
        (57.5, 100, 58),
    ])
    def test_compute_percentage(self, final_score, total, expected):
        assert compute_percentage(final_score, total) == expected

    def test_compute_percentage_requires_questions(self):
        with pytest.raises(ValueError):
            compute_percentage(0, 0)

    def test_summarize_percentage_at_half_boundary(self):
        results = (
            [ScoreResult(Verdict.CORRECT, "ok")] * 11
            + [ScoreResult(Verdict.PARTIAL, "close")]
            + [ScoreResult(Verdict.INCORRECT, "no")] * 8
        )
        texts = [f"q{i}" for i in range(20)]

        summary = summarize(texts, texts, results)

        assert summary.final_score == 11.5
        assert summary.percentage == 58

    def test_compute_percentage_matches_exact_rounding(self):
        mismatches = []
        for total in range(1, 51):
            for correct in range(total + 1):
                for partial in range(total - correct + 1):
                    final_score = correct + 0.5 * partial
                    exact = Fraction(2 * correct + partial, 2) * 100 / total
                    expected = math.floor(exact + Fraction(1, 2))
                    if compute_percentage(final_score, total) != expected:
                        mismatches.append((correct, partial, total))

        assert mismatches == []
