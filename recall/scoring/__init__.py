"""
Answer scoring: strict model grading, deterministic overrides and a local
heuristic scorer for when the model cannot be used.
"""
from recall.scoring.answer_scorer import AnswerScorer, ScoringPair
from recall.scoring.summary import ScoreSummary, Verdict, ScoreResult, compute_percentage, summarize

__all__ = [
    "AnswerScorer",
    "ScoreResult",
    "ScoreSummary",
    "ScoringPair",
    "Verdict",
    "compute_percentage",
    "summarize",
]
