"""
Coaching feedback over the most recent test results.

The model writes a short supportive report; when it cannot, a template
tiered by average score is used instead.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Any

from loguru import logger

from config import get_settings
from recall.llm import GenerationServiceError, SamplingOptions, TextGenerator
from recall.progress.tracker import ProgressTracker
from recall.scoring.summary import round_half_up

FEEDBACK_STOP_SEQUENCES = ["\n\nHuman:", "\n\nUser:", "\n\nQuestion:"]

NO_TESTS_MESSAGE = (
    "I notice you haven't taken any memory tests yet! Take a few tests first, "
    "and I'll be able to provide personalized insights about your memory "
    "performance and suggest ways to improve."
)

FEEDBACK_PROMPT = """As a compassionate memory coach, review these {count} memory test results and provide a warm, supportive, and actionable feedback report (~250 words).

Data:
Scores: {scores}
Average: {average}%
Trend: {trend}

Structure your response as follows:
1. Gentle performance overview (2 sentences): summarize the memory trend in a positive, non-judgmental way.
   - If "improving": celebrate progress and acknowledge effort.
   - If "stable": encourage consistency and small wins.
   - If "declining": remain gentle, focus on possibilities and supportive actions.
2. Key cognitive strengths (2 sentences): highlight areas where memory or thinking remains strong.
3. Three practical memory support tips: simple exercises, routines, or habits that help maintain or improve memory. Tailor tips based on the trend.
4. Encouraging conclusion: motivate with hope, focus on achievable progress, and emphasize that small, consistent efforts matter.

Tone: Warm, empathetic, patient, and uplifting. Use simple, clear language. Focus on strengths, small victories, and actionable advice.
"""

_HIGH_TIER = """Your average score of {average}% shows excellent memory performance. You're maintaining strong cognitive health, which is wonderful to see.

Your highest score of {best}% demonstrates your memory's peak potential. The consistency in your results suggests good mental habits and lifestyle choices.

To maintain this excellent performance, I recommend:

1. Continue regular testing - Your consistent approach is clearly working well
2. Challenge yourself with variety - Try different types of memory exercises to keep your brain engaged
3. Maintain healthy routines - Whatever you're doing lifestyle-wise is supporting your cognitive health
4. Stay socially active - Engaging conversations and activities support memory function

Keep up the fantastic work! Your dedication to monitoring and maintaining your memory health is paying off beautifully."""

_MIDDLE_TIER = """Your average score of {average}% shows good memory performance with room for growth. You're on a positive track!

I notice some variability in your scores, which is completely normal. Your best performance of {best}% shows what you're capable of achieving consistently.

Here are some targeted strategies to boost your performance:

1. Optimize your testing environment - Take tests when you're alert and in a quiet space
2. Practice memory techniques - Try visualization, chunking, or association methods
3. Focus on lifestyle factors - Regular sleep, exercise, and stress management significantly impact memory
4. Stay patient and consistent - Memory improvement takes time, but your regular testing shows great commitment

Your recent score of {recent}% {momentum}. Keep testing regularly - you're building valuable insights about your cognitive patterns."""

_LOW_TIER = """Thank you for being proactive about your memory health. Your average score of {average}% provides a good baseline for improvement.

Memory performance can vary due to many factors including stress, sleep, and daily routines. The important thing is that you're actively monitoring and working to improve.

I recommend these evidence-based strategies:

1. Establish optimal testing conditions - Choose consistent times when you feel most alert
2. Implement memory-boosting habits - Regular physical exercise, quality sleep (7-9 hours), and stress reduction
3. Try cognitive training - Practice with memory games, puzzles, and learning new skills
4. Consider professional guidance - If you have ongoing concerns, discussing with a healthcare provider can be helpful

Your commitment to tracking your memory is admirable and an important step toward cognitive wellness. Small, consistent improvements in lifestyle and practice can lead to meaningful gains over time."""

_CLEANUP_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^(As a|I am a|You are).*?analysis[:\s]*", re.IGNORECASE), ""),
    (re.compile(r"^\s*(AI\s+)?FEEDBACK:\s*", re.IGNORECASE), ""),
    (re.compile(r"\*\*(.*?)\*\*"), r"\1"),
    (re.compile(r"\*(.*?)\*"), r"\1"),
    (re.compile(r"#+\s*"), ""),
    (re.compile(r"\n\s*\n\s*\n+"), "\n\n"),
)


@dataclass
class FeedbackResult:
    feedback: str
    using_ai: bool
    error: str | None = None
    test_results: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "feedback": self.feedback,
            "using_ai": self.using_ai,
            "error": self.error,
            "test_results": self.test_results,
        }


def _percentages(results: list[dict[str, Any]]) -> list[int]:
    return [r.get("percentage") or 0 for r in results]


def average_percentage(results: list[dict[str, Any]]) -> int:
    scores = _percentages(results)
    if not scores:
        return 0
    return round_half_up(Fraction(sum(scores)).limit_denominator() / len(scores))


def score_trend(results: list[dict[str, Any]]) -> str:
    """improving / declining / stable, comparing the newest result to the oldest."""
    scores = _percentages(results)
    if len(scores) < 2 or scores[-1] == scores[0]:
        return "stable"
    return "improving" if scores[-1] > scores[0] else "declining"


def build_feedback_prompt(results: list[dict[str, Any]]) -> str:
    scores = _percentages(results)
    return FEEDBACK_PROMPT.format(
        count=len(results),
        scores=", ".join(f"{s}%" for s in scores),
        average=average_percentage(results),
        trend=score_trend(results),
    )


def fallback_feedback(results: list[dict[str, Any]]) -> str:
    """Template feedback tiered by average score (>= 85, >= 70, below)."""
    scores = _percentages(results)
    average = average_percentage(results)
    best = max(scores) if scores else 0
    recent = scores[-1] if scores else 0

    if average >= 85:
        body = _HIGH_TIER.format(average=average, best=best)
    elif average >= 70:
        momentum = "shows positive momentum" if recent > average else "is part of natural fluctuation"
        body = _MIDDLE_TIER.format(average=average, best=best, recent=recent, momentum=momentum)
    else:
        body = _LOW_TIER.format(average=average)
    return "Great work on staying consistent with your memory testing! " + body


def clean_feedback(text: str) -> str:
    """Strip preambles and markdown emphasis/headings from model output."""
    for pattern, replacement in _CLEANUP_RULES:
        text = pattern.sub(replacement, text)
    return text.strip()


class FeedbackService:
    """
    Produces coaching feedback for the recent score history.
    """

    def __init__(
        self,
        client: TextGenerator,
        tracker: ProgressTracker,
        window: int | None = None,
    ) -> None:
        self.client = client
        self.tracker = tracker
        self.window = window or get_settings().feedback_window

    def generate(self) -> FeedbackResult:
        results = self.tracker.recent_results(self.window)
        if not results:
            return FeedbackResult(feedback=NO_TESTS_MESSAGE, using_ai=False)

        options = SamplingOptions.for_purpose("feedback", stop=FEEDBACK_STOP_SEQUENCES)
        try:
            response = self.client.generate(build_feedback_prompt(results), options)
        except GenerationServiceError as e:
            logger.warning("Feedback model unavailable, using template feedback: {}", e)
            return FeedbackResult(
                feedback=fallback_feedback(results),
                using_ai=False,
                error=e.code,
                test_results=results,
            )

        cleaned = clean_feedback(response)
        if not cleaned:
            return FeedbackResult(
                feedback=fallback_feedback(results),
                using_ai=False,
                error="EMPTY_RESPONSE",
                test_results=results,
            )
        return FeedbackResult(feedback=cleaned, using_ai=True, test_results=results)
