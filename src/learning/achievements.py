"""
Point-threshold achievement and unlock rules.

Each rule has the shape `total_points >= threshold` and grants an
achievement name and optionally a feature unlock. Rules only ever add
members, and they are evaluated in threshold order, so the result depends
on the point total alone, not on how it was reached.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from config import Settings

MEMORY_GAME_UNLOCK = "memory_game"


@dataclass(frozen=True)
class ThresholdRule:
    threshold: int
    achievement: str
    unlock: str | None = None


DEFAULT_RULES: tuple[ThresholdRule, ...] = (
    ThresholdRule(50, "First Game Unlocked!", MEMORY_GAME_UNLOCK),
    ThresholdRule(100, "Century Club"),
)


def rules_from_settings(settings: Settings) -> tuple[ThresholdRule, ...]:
    return tuple(
        ThresholdRule(threshold, achievement, unlock)
        for threshold, unlock, achievement in settings.get_achievement_thresholds()
    )


def evaluate_rules(
    total_points: int,
    achievements: Iterable[str],
    unlocks: Iterable[str],
    rules: Sequence[ThresholdRule] = DEFAULT_RULES,
) -> tuple[frozenset[str], frozenset[str]]:
    """Return (achievements, unlocks) with every satisfied rule applied."""
    earned_achievements = set(achievements)
    earned_unlocks = set(unlocks)

    for rule in sorted(rules, key=lambda r: r.threshold):
        if total_points < rule.threshold:
            break
        earned_achievements.add(rule.achievement)
        if rule.unlock:
            earned_unlocks.add(rule.unlock)

    return frozenset(earned_achievements), frozenset(earned_unlocks)
