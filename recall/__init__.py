"""
memory-recall: a memory journal with locally generated recall quizzes.
"""

__version__ = "1.0.0"
