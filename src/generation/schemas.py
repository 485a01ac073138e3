"""
Reply schemas for generated content.

The text-generation collaborator returns free-form text that should contain
a JSON payload, sometimes wrapped in markdown code fences. This module turns
that text into typed, validated items or raises one of the generation errors:

- GenerationParseError: no parseable JSON after fence stripping
- GenerationValidationError: JSON parsed but the shape is wrong

Nothing loosely typed leaves this module.
"""

from __future__ import annotations

import json
import re
from typing import Any

from loguru import logger
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from src.core.errors import GenerationParseError, GenerationValidationError
from src.core.models import OPTION_COUNT, Difficulty

MAX_STRENGTHS = 3
MAX_IMPROVEMENT_AREAS = 3
MAX_RECOMMENDED_TOPICS = 4
MAX_TIPS = 4

_FENCE_START = re.compile(r"^```[a-zA-Z]*\s*")
_FENCE_END = re.compile(r"\s*```$")


# =============================================================================
# Text Helpers
# =============================================================================


def strip_code_fences(text: str) -> str:
    """Remove a leading ```json / ``` marker and a trailing ``` marker."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_START.sub("", cleaned, count=1)
        cleaned = _FENCE_END.sub("", cleaned)
    return cleaned.strip()


def parse_json_payload(text: str | None) -> Any:
    """
    Parse the JSON payload of a reply.

    Tries the fence-stripped text first, then the outermost [...] or {...}
    span (models sometimes add a sentence before the JSON).
    """
    if not text or not text.strip():
        raise GenerationParseError("Empty reply")

    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        first_error = e

    for pattern in (r"\[[\s\S]*\]", r"\{[\s\S]*\}"):
        match = re.search(pattern, cleaned)
        if not match:
            continue
        try:
            return json.loads(match.group(0))
        except json.JSONDecodeError:
            continue

    raise GenerationParseError(f"Reply is not valid JSON: {first_error}")


def _clean_string_list(value: Any) -> Any:
    if not isinstance(value, list):
        return value
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


# =============================================================================
# Question Batch
# =============================================================================


class GeneratedQuestionItem(BaseModel):
    """One generated multiple-choice question, before ids are assigned."""

    model_config = ConfigDict(extra="ignore")

    prompt: str = Field(
        validation_alias=AliasChoices("question", "prompt"),
        min_length=1,
    )
    options: list[str] = Field(min_length=OPTION_COUNT, max_length=OPTION_COUNT)
    correct_index: int = Field(
        validation_alias=AliasChoices("correct", "correctIndex", "correct_index"),
        ge=0,
        lt=OPTION_COUNT,
        strict=True,
    )
    explanation: str = Field(min_length=1)
    difficulty: Difficulty | None = None
    topic: str | None = None

    @field_validator("prompt", "explanation", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("options", mode="before")
    @classmethod
    def _normalize_options(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        normalized = []
        for option in value:
            # Numeric answers ("How many stars?") often come back as numbers
            if isinstance(option, (int, float)) and not isinstance(option, bool):
                option = str(option)
            if isinstance(option, str):
                option = option.strip()
                if not option:
                    raise ValueError("options must be non-empty strings")
            normalized.append(option)
        return normalized

    @field_validator("difficulty", mode="before")
    @classmethod
    def _lenient_difficulty(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() in {d.value for d in Difficulty}:
            return value.strip().lower()
        return None

    @field_validator("topic", mode="before")
    @classmethod
    def _blank_topic(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None


def validate_question_batch(payload: Any) -> tuple[list[GeneratedQuestionItem], int]:
    """
    Validate a parsed question payload.

    Items failing validation are dropped. Returns (accepted, dropped_count);
    raises GenerationValidationError when the payload is not an array or
    nothing survives.
    """
    if not isinstance(payload, list):
        raise GenerationValidationError(
            f"Expected a JSON array of questions, got {type(payload).__name__}"
        )

    accepted: list[GeneratedQuestionItem] = []
    dropped = 0
    for index, item in enumerate(payload):
        try:
            accepted.append(GeneratedQuestionItem.model_validate(item))
        except ValidationError as e:
            dropped += 1
            logger.debug(f"Dropping generated question {index}: {e.error_count()} validation error(s)")

    if not accepted:
        raise GenerationValidationError(
            f"No valid questions in reply ({dropped} dropped)", dropped=dropped
        )
    return accepted, dropped


# =============================================================================
# Feedback
# =============================================================================


class FeedbackPayload(BaseModel):
    """A generated encouragement message."""

    model_config = ConfigDict(extra="ignore")

    message: str = Field(min_length=1)
    emoji: str = ""

    @field_validator("message", "emoji", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value


def validate_feedback(payload: Any) -> FeedbackPayload:
    try:
        return FeedbackPayload.model_validate(payload)
    except ValidationError as e:
        raise GenerationValidationError(f"Invalid feedback reply: {e.error_count()} error(s)") from e


# =============================================================================
# Analytics
# =============================================================================


class AnalyticsPayload(BaseModel):
    """A generated learning-analytics report, clipped to display limits."""

    model_config = ConfigDict(extra="ignore")

    strengths: list[str] = Field(min_length=1)
    improvement_areas: list[str] = Field(
        validation_alias=AliasChoices("areasForImprovement", "improvementAreas", "improvement_areas"),
        min_length=1,
    )
    recommended_topics: list[str] = Field(
        validation_alias=AliasChoices(
            "recommendedNextTopics", "recommendedTopics", "recommended_topics"
        ),
        min_length=1,
    )
    tips: list[str] = Field(
        validation_alias=AliasChoices("personalizedTips", "tips"),
        min_length=1,
    )

    @field_validator(
        "strengths", "improvement_areas", "recommended_topics", "tips", mode="before"
    )
    @classmethod
    def _drop_blank_entries(cls, value: Any) -> Any:
        return _clean_string_list(value)

    def clipped(self) -> dict[str, list[str]]:
        return {
            "strengths": self.strengths[:MAX_STRENGTHS],
            "improvement_areas": self.improvement_areas[:MAX_IMPROVEMENT_AREAS],
            "recommended_topics": self.recommended_topics[:MAX_RECOMMENDED_TOPICS],
            "tips": self.tips[:MAX_TIPS],
        }


def validate_analytics(payload: Any) -> AnalyticsPayload:
    try:
        return AnalyticsPayload.model_validate(payload)
    except ValidationError as e:
        raise GenerationValidationError(f"Invalid analytics reply: {e.error_count()} error(s)") from e
