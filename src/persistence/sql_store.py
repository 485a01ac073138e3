"""
SQLAlchemy-backed record store.

The ORM calls are blocking, so each operation runs its body in a worker
thread with asyncio.to_thread inside its own transactional session scope.
"""

from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger
from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from src.core.models import AnalyticsReport
from src.db.database import create_db_engine, init_db, make_session_factory, session_scope
from src.db.models import AIAnalytics, Child, ChildProgress, LearningSession, QuestionResponse
from src.persistence.records import ChildProfile, QuestionResponseRecord, SessionTotals, utcnow


def _to_profile(row: Child) -> ChildProfile:
    return ChildProfile(
        id=row.id,
        owner_id=row.owner_id,
        name=row.name,
        age=row.age,
        created_at=row.created_at,
    )


class SqlRecordStore:
    """RecordStore over a SQLAlchemy engine (SQLite or PostgreSQL)."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._factory = make_session_factory(engine)

    @classmethod
    def from_url(cls, database_url: str | None = None, create_tables: bool = True) -> SqlRecordStore:
        engine = create_db_engine(database_url)
        if create_tables:
            init_db(engine)
        logger.debug(f"Record store connected: {engine.url.render_as_string(hide_password=True)}")
        return cls(engine)

    def dispose(self) -> None:
        self.engine.dispose()

    async def _run(self, fn, *args):
        def work():
            with session_scope(self._factory) as session:
                return fn(session, *args)

        return await asyncio.to_thread(work)

    # ------------------------------------------------------------------
    # Ownership checks
    # ------------------------------------------------------------------

    @staticmethod
    def _owned_child(session: Session, owner_id: str, child_id: str) -> Child:
        child = session.get(Child, child_id)
        if child is None or child.owner_id != owner_id:
            raise LookupError(f"Child {child_id} not found")
        return child

    @classmethod
    def _owned_session(cls, session: Session, owner_id: str, session_id: str) -> LearningSession:
        learning_session = session.get(LearningSession, session_id)
        if learning_session is None:
            raise LookupError(f"Learning session {session_id} not found")
        cls._owned_child(session, owner_id, learning_session.child_id)
        return learning_session

    # ------------------------------------------------------------------
    # Children
    # ------------------------------------------------------------------

    async def create_child(self, owner_id: str, name: str, age: int) -> ChildProfile:
        def op(session: Session) -> ChildProfile:
            child = Child(owner_id=owner_id, name=name, age=age)
            session.add(child)
            session.flush()
            return _to_profile(child)

        return await self._run(op)

    async def get_child(self, owner_id: str, child_id: str) -> ChildProfile | None:
        def op(session: Session) -> ChildProfile | None:
            child = session.get(Child, child_id)
            if child is None or child.owner_id != owner_id:
                return None
            return _to_profile(child)

        return await self._run(op)

    async def list_children(self, owner_id: str) -> list[ChildProfile]:
        def op(session: Session) -> list[ChildProfile]:
            rows = session.scalars(
                select(Child).where(Child.owner_id == owner_id).order_by(Child.created_at)
            )
            return [_to_profile(row) for row in rows]

        return await self._run(op)

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    async def get_progress(self, owner_id: str, child_id: str) -> dict[str, Any] | None:
        def op(session: Session) -> dict[str, Any] | None:
            self._owned_child(session, owner_id, child_id)
            row = session.scalar(select(ChildProgress).where(ChildProgress.child_id == child_id))
            if row is None:
                return None
            return {
                "total_points": row.total_points,
                "correct_answers": row.correct_answers,
                "total_answers": row.total_questions,
                "current_streak": row.current_streak,
                "module_progress": dict(row.modules_completed or {}),
                "achievements": list(row.achievements or []),
                "unlocked_games": list(row.games_unlocked or []),
                "recent_topics": list(row.recent_topics or []),
            }

        return await self._run(op)

    async def upsert_progress(self, owner_id: str, child_id: str, progress: dict[str, Any]) -> None:
        def op(session: Session) -> None:
            self._owned_child(session, owner_id, child_id)
            row = session.scalar(select(ChildProgress).where(ChildProgress.child_id == child_id))
            if row is None:
                row = ChildProgress(child_id=child_id)
                session.add(row)
            row.total_points = progress["total_points"]
            row.total_questions = progress["total_answers"]
            row.correct_answers = progress["correct_answers"]
            row.current_streak = progress["current_streak"]
            row.modules_completed = dict(progress["module_progress"])
            row.achievements = list(progress["achievements"])
            row.games_unlocked = list(progress["unlocked_games"])
            row.recent_topics = list(progress["recent_topics"])
            row.last_activity = utcnow()

        await self._run(op)

    # ------------------------------------------------------------------
    # Learning sessions & responses
    # ------------------------------------------------------------------

    async def create_learning_session(
        self, owner_id: str, child_id: str, module: str, ai_generated: bool
    ) -> str:
        def op(session: Session) -> str:
            self._owned_child(session, owner_id, child_id)
            row = LearningSession(child_id=child_id, module=module, ai_generated=ai_generated)
            session.add(row)
            session.flush()
            return row.id

        return await self._run(op)

    async def update_learning_session(
        self, owner_id: str, session_id: str, totals: SessionTotals
    ) -> None:
        def op(session: Session) -> None:
            row = self._owned_session(session, owner_id, session_id)
            row.questions_answered = totals.questions_answered
            row.correct_answers = totals.correct_answers
            row.points_earned = totals.points_earned
            row.session_duration = totals.duration_seconds

        await self._run(op)

    async def append_question_response(
        self, owner_id: str, response: QuestionResponseRecord
    ) -> None:
        def op(session: Session) -> None:
            self._owned_session(session, owner_id, response.session_id)
            session.add(
                QuestionResponse(
                    session_id=response.session_id,
                    question_text=response.question_text,
                    selected_answer=response.selected_answer,
                    correct_answer=response.correct_answer,
                    is_correct=response.is_correct,
                    topic=response.topic,
                    response_time=response.response_time_ms,
                    answered_at=response.answered_at,
                )
            )

        await self._run(op)

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    async def save_analytics(
        self, owner_id: str, child_id: str, report: AnalyticsReport, accuracy_rate: float
    ) -> None:
        def op(session: Session) -> None:
            self._owned_child(session, owner_id, child_id)
            session.add(
                AIAnalytics(
                    child_id=child_id,
                    strengths=list(report.strengths),
                    improvement_areas=list(report.improvement_areas),
                    recommended_topics=list(report.recommended_topics),
                    personalized_tips=list(report.tips),
                    accuracy_rate=accuracy_rate,
                    source=report.source,
                )
            )

        await self._run(op)

    async def get_latest_analytics(self, owner_id: str, child_id: str) -> AnalyticsReport | None:
        def op(session: Session) -> AnalyticsReport | None:
            self._owned_child(session, owner_id, child_id)
            row = session.scalar(
                select(AIAnalytics)
                .where(AIAnalytics.child_id == child_id)
                .order_by(AIAnalytics.generated_at.desc())
                .limit(1)
            )
            if row is None:
                return None
            return AnalyticsReport(
                strengths=tuple(row.strengths),
                improvement_areas=tuple(row.improvement_areas),
                recommended_topics=tuple(row.recommended_topics),
                tips=tuple(row.personalized_tips),
                source=row.source,
            )

        return await self._run(op)
