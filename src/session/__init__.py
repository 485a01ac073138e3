"""
Session: age policy, per-child context and the quiz state machine.

Usage:
    context = await SessionContext.load(child_id, store, identity)
    quiz = QuizSession(context)
    await quiz.select_module("letters")
    outcome = quiz.answer(1)
    await quiz.await_feedback()
    quiz.advance()
"""

from src.session.context import SessionContext
from src.session.policy import AgePolicy, difficulty_for_age, policy_for_age, question_count_for_age
from src.session.state_machine import AnswerOutcome, QuizSession, SessionSnapshot, SessionState

__all__ = [
    "SessionContext",
    "AgePolicy",
    "difficulty_for_age",
    "policy_for_age",
    "question_count_for_age",
    "AnswerOutcome",
    "QuizSession",
    "SessionSnapshot",
    "SessionState",
]
