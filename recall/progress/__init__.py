"""
Progress reporting over stored test scores.
"""
from recall.progress.feedback import FeedbackResult, FeedbackService
from recall.progress.tracker import ProgressSummary, ProgressTracker

__all__ = ["FeedbackResult", "FeedbackService", "ProgressSummary", "ProgressTracker"]
