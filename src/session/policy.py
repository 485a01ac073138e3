"""Age-based difficulty and question-count policy."""

from __future__ import annotations

from dataclasses import dataclass

from src.core.models import Difficulty


@dataclass(frozen=True)
class AgePolicy:
    difficulty: Difficulty
    question_count: int


def difficulty_for_age(age: int) -> Difficulty:
    if age <= 5:
        return Difficulty.EASY
    if age <= 8:
        return Difficulty.MEDIUM
    return Difficulty.HARD


def question_count_for_age(age: int) -> int:
    """Non-decreasing step function: 3 at age <= 5 up to 6 at age >= 10."""
    if age <= 5:
        return 3
    if age <= 7:
        return 4
    if age <= 9:
        return 5
    return 6


def policy_for_age(age: int) -> AgePolicy:
    if age < 0:
        raise ValueError("age must be >= 0")
    return AgePolicy(difficulty=difficulty_for_age(age), question_count=question_count_for_age(age))
