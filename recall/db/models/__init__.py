# SQLAlchemy models
from .base import Base
from .memory import ExtractedFact, Memory
from .scores import TestScore

__all__ = [
    "Base",
    "ExtractedFact",
    "Memory",
    "TestScore",
]
