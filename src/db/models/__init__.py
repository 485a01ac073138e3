# SQLAlchemy models
from .base import Base
from .learning import (
    AIAnalytics,
    Child,
    ChildProgress,
    LearningSession,
    QuestionResponse,
)

__all__ = [
    "Base",
    "AIAnalytics",
    "Child",
    "ChildProgress",
    "LearningSession",
    "QuestionResponse",
]
