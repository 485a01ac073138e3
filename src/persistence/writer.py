"""
Best-effort persistence.

Every write is "attempt, log failure, continue": store exceptions are wrapped
in PersistenceError, logged at WARNING and returned inside a WriteResult the
caller may ignore. `spawn` schedules a write as a tracked background task so
state transitions never wait on the store; `drain` awaits whatever is still
pending (tests, shutdown).
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from src.core.errors import PersistenceError
from src.core.identity import IdentityProvider
from src.core.models import AnalyticsReport
from src.persistence.records import QuestionResponseRecord, SessionTotals
from src.persistence.store import RecordStore


@dataclass(frozen=True)
class WriteResult:
    operation: str
    ok: bool
    value: Any = None
    error: PersistenceError | None = None


class PersistenceWriter:
    """Wraps a RecordStore so no failure reaches the session flow."""

    def __init__(self, store: RecordStore | None, identity: IdentityProvider):
        self.store = store
        self.identity = identity
        self._pending: set[asyncio.Task] = set()
        self.failures: list[PersistenceError] = []

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def attempt(
        self, operation: str, call: Callable[[RecordStore, str], Awaitable[Any]]
    ) -> WriteResult:
        """Run `call(store, owner_id)` and report the outcome."""
        if self.store is None:
            return self._failed(operation, None, "no record store configured")

        owner_id = self.identity.current_user_id()
        if owner_id is None:
            return self._failed(operation, None, "no authenticated user")

        try:
            value = await call(self.store, owner_id)
        except asyncio.CancelledError:
            raise
        except Exception as e:  # Intentionally broad - store errors are never fatal
            return self._failed(operation, e)

        return WriteResult(operation=operation, ok=True, value=value)

    def _failed(self, operation: str, cause: BaseException | None, reason: str = "") -> WriteResult:
        error = PersistenceError(operation, cause)
        if cause is None:
            logger.debug(f"Skipping {operation}: {reason}")
        else:
            self.failures.append(error)
            logger.warning(f"Persistence failure: {error}")
        return WriteResult(operation=operation, ok=False, error=error)

    def spawn(self, coro: Awaitable[WriteResult]) -> asyncio.Task:
        """Schedule a write without waiting for it."""
        task = asyncio.ensure_future(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> list[WriteResult]:
        """Await all outstanding writes, including ones they schedule."""
        results: list[WriteResult] = []
        while self._pending:
            done = await asyncio.gather(*list(self._pending), return_exceptions=True)
            results.extend(r for r in done if isinstance(r, WriteResult))
        return results

    # ------------------------------------------------------------------
    # Convenience operations
    # ------------------------------------------------------------------

    async def load_progress(self, child_id: str) -> WriteResult:
        return await self.attempt("get_progress", lambda s, owner: s.get_progress(owner, child_id))

    async def save_progress(self, child_id: str, progress: dict[str, Any]) -> WriteResult:
        return await self.attempt(
            "upsert_progress", lambda s, owner: s.upsert_progress(owner, child_id, progress)
        )

    async def start_learning_session(self, child_id: str, module: str, ai_generated: bool) -> WriteResult:
        return await self.attempt(
            "create_learning_session",
            lambda s, owner: s.create_learning_session(owner, child_id, module, ai_generated),
        )

    async def finish_learning_session(self, session_id: str, totals: SessionTotals) -> WriteResult:
        return await self.attempt(
            "update_learning_session",
            lambda s, owner: s.update_learning_session(owner, session_id, totals),
        )

    async def record_response(self, response: QuestionResponseRecord) -> WriteResult:
        return await self.attempt(
            "append_question_response",
            lambda s, owner: s.append_question_response(owner, response),
        )

    async def save_analytics(
        self, child_id: str, report: AnalyticsReport, accuracy_rate: float
    ) -> WriteResult:
        return await self.attempt(
            "save_analytics",
            lambda s, owner: s.save_analytics(owner, child_id, report, accuracy_rate),
        )

    async def load_latest_analytics(self, child_id: str) -> WriteResult:
        return await self.attempt(
            "get_latest_analytics", lambda s, owner: s.get_latest_analytics(owner, child_id)
        )
