"""
Domain records shared by the session engine.

Question batches, generation requests, feedback and analytics reports are
plain dataclasses; validation of untrusted generator output happens in
src.generation.schemas before anything here is constructed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

OPTION_COUNT = 4
RECENT_TOPICS_LIMIT = 10


class Difficulty(str, Enum):
    """Question difficulty level."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class FeedbackKind(str, Enum):
    """Whether a feedback message celebrates or encourages."""

    CORRECT = "correct"
    INCORRECT = "incorrect"


@dataclass(frozen=True)
class Question:
    """A four-option multiple choice question."""

    id: str
    prompt: str
    options: tuple[str, ...]
    correct_index: int
    explanation: str
    difficulty: Difficulty
    topic: str

    def __post_init__(self):
        if len(self.options) != OPTION_COUNT:
            raise ValueError(f"Question {self.id} needs exactly {OPTION_COUNT} options")
        if not 0 <= self.correct_index < OPTION_COUNT:
            raise ValueError(f"Question {self.id} has correct_index {self.correct_index} out of range")

    @property
    def correct_option(self) -> str:
        return self.options[self.correct_index]

    def is_correct(self, answer_index: int) -> bool:
        return answer_index == self.correct_index


@dataclass
class GenerationConfig:
    """Parameters for one question-generation request."""

    module: str
    difficulty: Difficulty = Difficulty.EASY
    child_age: int = 5
    previous_topics: list[str] = field(default_factory=list)  # most recent first
    interests: set[str] = field(default_factory=set)

    def __post_init__(self):
        if self.child_age < 0:
            raise ValueError("child_age must be >= 0")
        self.previous_topics = list(self.previous_topics)[:RECENT_TOPICS_LIMIT]


@dataclass(frozen=True)
class FeedbackResult:
    """A short congratulatory or encouraging message."""

    message: str
    emoji: str
    kind: FeedbackKind


@dataclass(frozen=True)
class AnalyticsReport:
    """End-of-quiz strengths / gaps / recommendations summary."""

    strengths: tuple[str, ...]
    improvement_areas: tuple[str, ...]
    recommended_topics: tuple[str, ...]
    tips: tuple[str, ...]
    source: str = "fallback"  # "generated" or "fallback"
