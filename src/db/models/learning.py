"""
Child learning records.

Implements:
- Child: Child profile owned by an authenticated parent
- LearningSession: One quiz run with its aggregate totals
- QuestionResponse: Individual answers within a learning session
- ChildProgress: Persisted ProgressLedger (one row per child)
- AIAnalytics: End-of-quiz analytics reports

List-valued columns use the generic JSON type so the same models work on
SQLite and PostgreSQL.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Child(Base):
    __tablename__ = "children"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    owner_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    age: Mapped[int] = mapped_column(Integer, default=5)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)


class LearningSession(Base):
    __tablename__ = "learning_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    child_id: Mapped[str] = mapped_column(
        ForeignKey("children.id", ondelete="CASCADE"), index=True, nullable=False
    )
    module: Mapped[str] = mapped_column(Text, nullable=False)

    # Totals are written once the quiz completes
    questions_answered: Mapped[int] = mapped_column(Integer, default=0)
    correct_answers: Mapped[int] = mapped_column(Integer, default=0)
    points_earned: Mapped[int] = mapped_column(Integer, default=0)
    session_duration: Mapped[int] = mapped_column(Integer, default=0)  # seconds
    ai_generated: Mapped[bool] = mapped_column(Boolean, default=False)

    session_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)


class QuestionResponse(Base):
    __tablename__ = "question_responses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    session_id: Mapped[str] = mapped_column(
        ForeignKey("learning_sessions.id", ondelete="CASCADE"), index=True, nullable=False
    )
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    selected_answer: Mapped[str] = mapped_column(Text, nullable=False)
    correct_answer: Mapped[str] = mapped_column(Text, nullable=False)
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False)
    topic: Mapped[str | None] = mapped_column(Text)
    response_time: Mapped[int] = mapped_column(Integer, default=0)  # milliseconds

    answered_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)


class ChildProgress(Base):
    __tablename__ = "child_progress"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    child_id: Mapped[str] = mapped_column(
        ForeignKey("children.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    total_points: Mapped[int] = mapped_column(Integer, default=0)
    total_questions: Mapped[int] = mapped_column(Integer, default=0)
    correct_answers: Mapped[int] = mapped_column(Integer, default=0)
    current_streak: Mapped[int] = mapped_column(Integer, default=0)
    modules_completed: Mapped[dict] = mapped_column(JSON, default=dict)
    achievements: Mapped[list] = mapped_column(JSON, default=list)
    games_unlocked: Mapped[list] = mapped_column(JSON, default=list)
    recent_topics: Mapped[list] = mapped_column(JSON, default=list)

    last_activity: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)


class AIAnalytics(Base):
    __tablename__ = "ai_analytics"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    child_id: Mapped[str] = mapped_column(
        ForeignKey("children.id", ondelete="CASCADE"), index=True, nullable=False
    )
    strengths: Mapped[list] = mapped_column(JSON, default=list)
    improvement_areas: Mapped[list] = mapped_column(JSON, default=list)
    recommended_topics: Mapped[list] = mapped_column(JSON, default=list)
    personalized_tips: Mapped[list] = mapped_column(JSON, default=list)
    accuracy_rate: Mapped[float | None] = mapped_column(Float)
    source: Mapped[str] = mapped_column(String(16), default="fallback")

    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
