"""
Record store protocol and the in-memory implementation.

Every operation is scoped by an opaque owner id (the authenticated parent);
child-scoped operations fail with LookupError when the child does not belong
to that owner. Callers outside this package go through PersistenceWriter,
which turns any store failure into a logged, ignorable WriteResult.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any, Protocol

from src.core.models import AnalyticsReport
from src.persistence.records import ChildProfile, QuestionResponseRecord, SessionTotals, utcnow


class RecordStore(Protocol):
    async def create_child(self, owner_id: str, name: str, age: int) -> ChildProfile: ...

    async def get_child(self, owner_id: str, child_id: str) -> ChildProfile | None: ...

    async def list_children(self, owner_id: str) -> list[ChildProfile]: ...

    async def get_progress(self, owner_id: str, child_id: str) -> dict[str, Any] | None: ...

    async def upsert_progress(self, owner_id: str, child_id: str, progress: dict[str, Any]) -> None: ...

    async def create_learning_session(
        self, owner_id: str, child_id: str, module: str, ai_generated: bool
    ) -> str: ...

    async def update_learning_session(
        self, owner_id: str, session_id: str, totals: SessionTotals
    ) -> None: ...

    async def append_question_response(
        self, owner_id: str, response: QuestionResponseRecord
    ) -> None: ...

    async def save_analytics(
        self, owner_id: str, child_id: str, report: AnalyticsReport, accuracy_rate: float
    ) -> None: ...

    async def get_latest_analytics(self, owner_id: str, child_id: str) -> AnalyticsReport | None: ...


class InMemoryRecordStore:
    """Dict-backed store for tests and offline play."""

    def __init__(self):
        self.children: dict[str, ChildProfile] = {}
        self.progress: dict[str, dict[str, Any]] = {}
        self.sessions: dict[str, dict[str, Any]] = {}
        self.responses: list[QuestionResponseRecord] = []
        self.analytics: dict[str, list[tuple[AnalyticsReport, float]]] = {}
        self._lock = asyncio.Lock()

    def _owned_child(self, owner_id: str, child_id: str) -> ChildProfile:
        child = self.children.get(child_id)
        if child is None or child.owner_id != owner_id:
            raise LookupError(f"Child {child_id} not found")
        return child

    def _owned_session(self, owner_id: str, session_id: str) -> dict[str, Any]:
        session = self.sessions.get(session_id)
        if session is None:
            raise LookupError(f"Learning session {session_id} not found")
        self._owned_child(owner_id, session["child_id"])
        return session

    async def create_child(self, owner_id: str, name: str, age: int) -> ChildProfile:
        child = ChildProfile(id=str(uuid.uuid4()), owner_id=owner_id, name=name, age=age)
        async with self._lock:
            self.children[child.id] = child
        return child

    async def get_child(self, owner_id: str, child_id: str) -> ChildProfile | None:
        child = self.children.get(child_id)
        return child if child is not None and child.owner_id == owner_id else None

    async def list_children(self, owner_id: str) -> list[ChildProfile]:
        owned = [c for c in self.children.values() if c.owner_id == owner_id]
        return sorted(owned, key=lambda c: c.created_at)

    async def get_progress(self, owner_id: str, child_id: str) -> dict[str, Any] | None:
        self._owned_child(owner_id, child_id)
        progress = self.progress.get(child_id)
        return dict(progress) if progress is not None else None

    async def upsert_progress(self, owner_id: str, child_id: str, progress: dict[str, Any]) -> None:
        self._owned_child(owner_id, child_id)
        async with self._lock:
            self.progress[child_id] = {**progress, "updated_at": utcnow()}

    async def create_learning_session(
        self, owner_id: str, child_id: str, module: str, ai_generated: bool
    ) -> str:
        self._owned_child(owner_id, child_id)
        session_id = str(uuid.uuid4())
        async with self._lock:
            self.sessions[session_id] = {
                "child_id": child_id,
                "module": module,
                "ai_generated": ai_generated,
                "questions_answered": 0,
                "correct_answers": 0,
                "points_earned": 0,
                "session_duration": 0,
                "session_date": utcnow(),
            }
        return session_id

    async def update_learning_session(
        self, owner_id: str, session_id: str, totals: SessionTotals
    ) -> None:
        session = self._owned_session(owner_id, session_id)
        async with self._lock:
            session.update(
                questions_answered=totals.questions_answered,
                correct_answers=totals.correct_answers,
                points_earned=totals.points_earned,
                session_duration=totals.duration_seconds,
            )

    async def append_question_response(
        self, owner_id: str, response: QuestionResponseRecord
    ) -> None:
        self._owned_session(owner_id, response.session_id)
        async with self._lock:
            self.responses.append(response)

    async def save_analytics(
        self, owner_id: str, child_id: str, report: AnalyticsReport, accuracy_rate: float
    ) -> None:
        self._owned_child(owner_id, child_id)
        async with self._lock:
            self.analytics.setdefault(child_id, []).append((report, accuracy_rate))

    async def get_latest_analytics(self, owner_id: str, child_id: str) -> AnalyticsReport | None:
        self._owned_child(owner_id, child_id)
        history = self.analytics.get(child_id)
        return history[-1][0] if history else None
