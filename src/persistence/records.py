"""Plain records exchanged with the record store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ChildProfile:
    id: str
    owner_id: str
    name: str
    age: int = 5
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class SessionTotals:
    """Aggregate numbers for one completed quiz."""

    questions_answered: int
    correct_answers: int
    points_earned: int
    duration_seconds: int


@dataclass(frozen=True)
class QuestionResponseRecord:
    session_id: str
    question_text: str
    selected_answer: str
    correct_answer: str
    is_correct: bool
    topic: str | None = None
    response_time_ms: int = 0
    answered_at: datetime = field(default_factory=utcnow)
