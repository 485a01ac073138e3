"""
Quiz Session State Machine.

    Idle -> ModuleSelected -> QuestionsLoading -> QuizInProgress
         -> AnswerRevealed -> (QuizInProgress | QuizComplete)
         -> AnalyticsLoading -> AnalyticsReady

`go_home()` returns to Idle from any state, discarding quiz-local state but
never the ledger or the held analytics report.

Concurrency rules:
- Each module selection gets a generation token; a generation result that
  arrives after a newer selection (or after go_home) is discarded.
- Persistence writes are spawned through the context's PersistenceWriter
  and never block a transition.
- Feedback is awaited for at most the configured UI timeout; when it does
  not arrive in time the question's explanation is shown instead.
- The ledger is replaced only here, synchronously with the answer reveal.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, replace
from enum import Enum

from loguru import logger

from src.content.modules import display_name
from src.core.errors import InvalidTransition, UnknownModule
from src.core.models import AnalyticsReport, FeedbackResult, GenerationConfig, Question
from src.generation.question_generator import GenerationOutcome
from src.learning.ledger import ProgressLedger, apply_outcome
from src.persistence.records import QuestionResponseRecord, SessionTotals
from src.persistence.writer import WriteResult
from src.session.context import SessionContext
from src.session.policy import AgePolicy, policy_for_age


class SessionState(str, Enum):
    IDLE = "idle"
    MODULE_SELECTED = "module_selected"
    QUESTIONS_LOADING = "questions_loading"
    QUIZ_IN_PROGRESS = "quiz_in_progress"
    ANSWER_REVEALED = "answer_revealed"
    QUIZ_COMPLETE = "quiz_complete"
    ANALYTICS_LOADING = "analytics_loading"
    ANALYTICS_READY = "analytics_ready"


@dataclass(frozen=True)
class AnswerOutcome:
    """Result of revealing one answer."""

    question: Question
    selected_index: int
    is_correct: bool
    points_awarded: int
    ledger: ProgressLedger
    new_achievements: frozenset[str]
    new_unlocks: frozenset[str]


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view for the presentation layer."""

    state: SessionState
    module: str | None
    module_title: str | None
    practice: bool
    question_index: int
    question_count: int
    current_question: Question | None
    selected_index: int | None
    revealed: bool
    feedback: FeedbackResult | None
    feedback_text: str | None
    ledger: ProgressLedger
    analytics: AnalyticsReport | None
    missed_count: int
    content_source: str | None


class QuizSession:
    """Drives one child's quizzes through the session states."""

    def __init__(self, context: SessionContext):
        self.context = context
        self.state = SessionState.IDLE
        self.last_generation: GenerationOutcome | None = None

        self._generation_token = 0
        self._analytics_token = 0
        self._reset_quiz_state()

    def _reset_quiz_state(self) -> None:
        self.module: str | None = None
        self.policy: AgePolicy | None = None
        self.practice = False
        self.questions: list[Question] = []
        self.index = 0
        self.missed: list[Question] = []
        self._clear_question_state()

        self._session_record: asyncio.Future[WriteResult] | None = None
        self._started_at = 0.0
        self._answered = 0
        self._correct = 0
        self._points = 0

    def _clear_question_state(self) -> None:
        self.selected_index: int | None = None
        self.revealed = False
        self.feedback: FeedbackResult | None = None
        self.feedback_text: str | None = None
        self._feedback_timed_out = False
        self._feedback_task: asyncio.Task[FeedbackResult] | None = None
        self._question_started_at = time.monotonic()

    def _require(self, operation: str, *allowed: SessionState) -> None:
        if self.state not in allowed:
            raise InvalidTransition(operation, self.state.value)

    @property
    def ledger(self) -> ProgressLedger:
        return self.context.ledger

    @property
    def analytics(self) -> AnalyticsReport | None:
        return self.context.analytics

    @analytics.setter
    def analytics(self, report: AnalyticsReport | None) -> None:
        self.context.analytics = report

    @property
    def current_question(self) -> Question | None:
        if self.state in (SessionState.QUIZ_IN_PROGRESS, SessionState.ANSWER_REVEALED):
            return self.questions[self.index]
        return None

    # ------------------------------------------------------------------
    # Module selection & loading
    # ------------------------------------------------------------------

    async def select_module(self, module: str, seed: int | None = None) -> bool:
        """
        Select a module and load its questions.

        Allowed from any state; an in-flight selection is superseded.
        Returns False when this call's result was discarded as stale.
        """
        if not self.context.questions.bank.has_module(module):
            raise UnknownModule(module)

        self._generation_token += 1
        token = self._generation_token
        self._analytics_token += 1
        self.analytics = None
        self._reset_quiz_state()

        self.module = module
        self.policy = policy_for_age(self.context.child.age)
        self.state = SessionState.MODULE_SELECTED
        logger.info(
            f"{self.context.child_name} selected {display_name(module)} "
            f"({self.policy.difficulty.value}, {self.policy.question_count} questions)"
        )

        config = GenerationConfig(
            module=module,
            difficulty=self.policy.difficulty,
            child_age=self.context.child.age,
            previous_topics=list(self.ledger.recent_topics),
        )
        self.state = SessionState.QUESTIONS_LOADING
        outcome = await self.context.questions.generate(
            config,
            seed=seed,
            count=max(self.policy.question_count, self.context.settings.questions_per_request),
        )

        if token != self._generation_token:
            logger.debug(f"Discarding stale {module} questions (token {token} < {self._generation_token})")
            return False

        if not outcome.questions:
            self.state = SessionState.IDLE
            raise UnknownModule(module)

        self.last_generation = outcome
        self._begin_round(outcome.questions[: self.policy.question_count], ai_generated=not outcome.used_fallback)
        return True

    def _begin_round(self, questions: list[Question], ai_generated: bool) -> None:
        self.questions = questions
        self.index = 0
        self._clear_question_state()
        self._started_at = time.monotonic()
        self._answered = self._correct = self._points = 0
        self._session_record = self.context.writer.spawn(
            self.context.writer.start_learning_session(self.context.child_id, self.module, ai_generated)
        )
        self.state = SessionState.QUIZ_IN_PROGRESS

    # ------------------------------------------------------------------
    # Answering
    # ------------------------------------------------------------------

    def answer(self, selected_index: int) -> AnswerOutcome | None:
        """
        Reveal the answer for the current question.

        A second selection for an already revealed question is ignored and
        returns None.
        """
        if self.state == SessionState.ANSWER_REVEALED:
            logger.debug("Answer already revealed; ignoring selection")
            return None
        self._require("answer", SessionState.QUIZ_IN_PROGRESS)

        question = self.questions[self.index]
        if not 0 <= selected_index < len(question.options):
            raise ValueError(f"Answer index {selected_index} out of range")

        is_correct = question.is_correct(selected_index)
        previous = self.ledger
        ledger = apply_outcome(
            previous,
            self.module,
            is_correct,
            question.topic,
            rules=self.context.rules,
            points_per_correct=self.context.settings.points_per_correct,
            recent_topics_limit=self.context.settings.recent_topics_limit,
        )
        self.context.ledger = ledger

        self.selected_index = selected_index
        self.revealed = True
        self.state = SessionState.ANSWER_REVEALED

        points = ledger.total_points - previous.total_points
        self._answered += 1
        self._correct += int(is_correct)
        self._points += points
        if not is_correct and not self.practice:
            self.missed.append(question)

        for achievement in sorted(ledger.new_achievements_since(previous)):
            logger.info(f"Achievement earned: {achievement}")
        for unlock in sorted(ledger.new_unlocks_since(previous)):
            logger.info(f"Unlocked: {unlock}")

        response = QuestionResponseRecord(
            session_id="",
            question_text=question.prompt,
            selected_answer=question.options[selected_index],
            correct_answer=question.correct_option,
            is_correct=is_correct,
            topic=question.topic,
            response_time_ms=int((time.monotonic() - self._question_started_at) * 1000),
        )
        self.context.writer.spawn(self._write_response(self._session_record, response))

        self._feedback_task = asyncio.ensure_future(
            self.context.feedback.generate_feedback(
                is_correct, self.context.child_name, ledger.current_streak
            )
        )

        return AnswerOutcome(
            question=question,
            selected_index=selected_index,
            is_correct=is_correct,
            points_awarded=points,
            ledger=ledger,
            new_achievements=ledger.new_achievements_since(previous),
            new_unlocks=ledger.new_unlocks_since(previous),
        )

    async def _write_response(
        self, session_record: asyncio.Future[WriteResult] | None, response: QuestionResponseRecord
    ) -> WriteResult:
        session_id = await self._session_id(session_record)
        if session_id is None:
            return WriteResult(operation="append_question_response", ok=False)
        return await self.context.writer.record_response(
            replace(response, session_id=session_id)
        )

    @staticmethod
    async def _session_id(session_record: asyncio.Future[WriteResult] | None) -> str | None:
        if session_record is None:
            return None
        result = await session_record
        return result.value if result.ok else None

    async def await_feedback(self, timeout: float | None = None) -> FeedbackResult | None:
        """
        Wait up to `timeout` seconds for the current feedback message.

        On timeout the explanation becomes the display text and the late
        result is ignored, including by later calls for the same question;
        the pending call is not cancelled.
        """
        self._require("await feedback", SessionState.ANSWER_REVEALED)
        task = self._feedback_task
        if task is None or self.feedback is not None or self._feedback_timed_out:
            return self.feedback

        timeout = self.context.settings.feedback_timeout_seconds if timeout is None else timeout
        done, _ = await asyncio.wait({task}, timeout=timeout)

        if task is not self._feedback_task:
            return None

        question = self.questions[self.index]
        if task in done:
            self.feedback = task.result()
            self.feedback_text = f"{self.feedback.message} {self.feedback.emoji}".strip()
        else:
            logger.debug(f"Feedback not ready after {timeout}s; showing explanation")
            self._feedback_timed_out = True
            self.feedback_text = question.explanation
        return self.feedback

    def advance(self) -> SessionState:
        """Move to the next question, or to QuizComplete after the last one."""
        self._require("advance", SessionState.ANSWER_REVEALED)
        self._clear_question_state()

        if self.index + 1 < len(self.questions):
            self.index += 1
            self.state = SessionState.QUIZ_IN_PROGRESS
        else:
            self.state = SessionState.QUIZ_COMPLETE
            logger.info(f"Quiz complete: {self._correct}/{self._answered} correct, +{self._points} points")
        return self.state

    # ------------------------------------------------------------------
    # Completion & analytics
    # ------------------------------------------------------------------

    async def complete(self) -> AnalyticsReport:
        """Persist totals and ledger (best effort) and produce the analytics report."""
        self._require("complete", SessionState.QUIZ_COMPLETE)

        totals = SessionTotals(
            questions_answered=self._answered,
            correct_answers=self._correct,
            points_earned=self._points,
            duration_seconds=int(time.monotonic() - self._started_at),
        )
        writer = self.context.writer
        writer.spawn(self._write_totals(self._session_record, totals))
        writer.spawn(writer.save_progress(self.context.child_id, self.ledger.to_record()))

        token = self._analytics_token
        self.state = SessionState.ANALYTICS_LOADING
        ledger = self.ledger
        report = await self.context.summarizer.summarize(ledger)

        if token != self._analytics_token:
            logger.debug("Discarding analytics report for a superseded quiz")
            return report

        self.analytics = report
        if self.state == SessionState.ANALYTICS_LOADING:
            self.state = SessionState.ANALYTICS_READY
        writer.spawn(writer.save_analytics(self.context.child_id, report, round(ledger.accuracy * 100, 2)))
        return report

    async def _write_totals(
        self, session_record: asyncio.Future[WriteResult] | None, totals: SessionTotals
    ) -> WriteResult:
        session_id = await self._session_id(session_record)
        if session_id is None:
            return WriteResult(operation="update_learning_session", ok=False)
        return await self.context.writer.finish_learning_session(session_id, totals)

    def start_practice(self) -> bool:
        """Replay the questions missed in the last round. Returns False if none were missed."""
        self._require("start practice", SessionState.QUIZ_COMPLETE, SessionState.ANALYTICS_READY)
        if not self.missed:
            return False

        missed, self.missed = self.missed, []
        self._generation_token += 1
        self.practice = True
        logger.info(f"Practice round: {len(missed)} missed question(s)")
        self._begin_round(missed, ai_generated=False)
        return True

    def dismiss_analytics(self) -> None:
        """Drop the held report and return home."""
        self._analytics_token += 1
        self.analytics = None
        self.go_home()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def go_home(self) -> None:
        """Return to Idle; the ledger and any held report survive."""
        self._generation_token += 1
        self._reset_quiz_state()
        self.state = SessionState.IDLE

    def snapshot(self) -> SessionSnapshot:
        question = self.current_question
        return SessionSnapshot(
            state=self.state,
            module=self.module,
            module_title=display_name(self.module) if self.module else None,
            practice=self.practice,
            question_index=self.index,
            question_count=len(self.questions),
            current_question=question,
            selected_index=self.selected_index,
            revealed=self.revealed,
            feedback=self.feedback,
            feedback_text=self.feedback_text,
            ledger=self.ledger,
            analytics=self.analytics,
            missed_count=len(self.missed),
            content_source=self.last_generation.source if self.last_generation else None,
        )

    async def close(self) -> list[WriteResult]:
        """Wait for outstanding persistence writes."""
        return await self.context.writer.drain()
