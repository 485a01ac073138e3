"""
Progress Ledger.

Per-child aggregate progress: points, answer counts, streak, per-module
mastery, achievements, unlocks and recent topics. `apply_outcome` is a pure
update returning a new ledger; the session state machine is the only caller
that replaces its ledger with the result.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from src.core.models import RECENT_TOPICS_LIMIT
from src.learning.achievements import DEFAULT_RULES, ThresholdRule, evaluate_rules

POINTS_PER_CORRECT = 10


@dataclass(frozen=True)
class ProgressLedger:
    """Immutable snapshot of one child's progress."""

    total_points: int = 0
    correct_answers: int = 0
    total_answers: int = 0
    current_streak: int = 0
    module_mastery: Mapping[str, int] = field(default_factory=dict)
    achievements: frozenset[str] = frozenset()
    unlocks: frozenset[str] = frozenset()
    recent_topics: tuple[str, ...] = ()

    def __post_init__(self):
        if min(self.total_points, self.correct_answers, self.total_answers, self.current_streak) < 0:
            raise ValueError("Ledger counters must be >= 0")
        if self.correct_answers > self.total_answers:
            raise ValueError("correct_answers cannot exceed total_answers")
        if any(count < 0 for count in self.module_mastery.values()):
            raise ValueError("Module mastery counts must be >= 0")

    @property
    def accuracy(self) -> float:
        """Fraction of correct answers; 0.0 before the first answer."""
        if self.total_answers == 0:
            return 0.0
        return self.correct_answers / self.total_answers

    def new_achievements_since(self, previous: ProgressLedger) -> frozenset[str]:
        return self.achievements - previous.achievements

    def new_unlocks_since(self, previous: ProgressLedger) -> frozenset[str]:
        return self.unlocks - previous.unlocks

    def to_record(self) -> dict[str, Any]:
        """Serialize for the record store."""
        return {
            "total_points": self.total_points,
            "correct_answers": self.correct_answers,
            "total_answers": self.total_answers,
            "current_streak": self.current_streak,
            "module_progress": dict(self.module_mastery),
            "achievements": sorted(self.achievements),
            "unlocked_games": sorted(self.unlocks),
            "recent_topics": list(self.recent_topics),
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any] | None) -> ProgressLedger:
        """Build a ledger from a stored progress record; None yields zeros."""
        if not record:
            return cls()
        return cls(
            total_points=int(record.get("total_points") or 0),
            correct_answers=int(record.get("correct_answers") or 0),
            total_answers=int(record.get("total_answers") or 0),
            current_streak=int(record.get("current_streak") or 0),
            module_mastery={k: int(v) for k, v in (record.get("module_progress") or {}).items()},
            achievements=frozenset(record.get("achievements") or ()),
            unlocks=frozenset(record.get("unlocked_games") or ()),
            recent_topics=tuple(record.get("recent_topics") or ())[:RECENT_TOPICS_LIMIT],
        )


def apply_outcome(
    ledger: ProgressLedger,
    module: str,
    is_correct: bool,
    topic: str,
    rules: Sequence[ThresholdRule] = DEFAULT_RULES,
    points_per_correct: int = POINTS_PER_CORRECT,
    recent_topics_limit: int = RECENT_TOPICS_LIMIT,
) -> ProgressLedger:
    """Apply a single answer outcome and re-evaluate achievement rules."""
    mastery = dict(ledger.module_mastery)
    mastery[module] = mastery.get(module, 0) + (1 if is_correct else 0)

    total_points = ledger.total_points + (points_per_correct if is_correct else 0)
    achievements, unlocks = evaluate_rules(total_points, ledger.achievements, ledger.unlocks, rules)

    return replace(
        ledger,
        total_points=total_points,
        correct_answers=ledger.correct_answers + (1 if is_correct else 0),
        total_answers=ledger.total_answers + 1,
        current_streak=ledger.current_streak + 1 if is_correct else 0,
        module_mastery=mastery,
        achievements=achievements,
        unlocks=unlocks,
        recent_topics=((topic,) + ledger.recent_topics)[: min(recent_topics_limit, RECENT_TOPICS_LIMIT)],
    )
