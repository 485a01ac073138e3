"""
Unit tests for reply parsing and validation.
"""

import pytest

from conftest import make_question_item
from src.core.errors import GenerationParseError, GenerationValidationError
from src.core.models import Difficulty
from src.generation.schemas import (
    AnalyticsPayload,
    parse_json_payload,
    strip_code_fences,
    validate_analytics,
    validate_feedback,
    validate_question_batch,
)


class TestParsing:
    """Tests for fence stripping and JSON extraction."""

    def test_strip_json_fence(self):
        assert strip_code_fences('```json\n[{"a": 1}]\n```') == '[{"a": 1}]'

    def test_strip_bare_fence(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_plain_text_untouched(self):
        assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'

    def test_parse_fenced_array(self):
        assert parse_json_payload('```json\n[1, 2]\n```') == [1, 2]

    def test_parse_with_leading_sentence(self):
        text = 'Here are your questions:\n[{"question": "Q"}]'
        assert parse_json_payload(text) == [{"question": "Q"}]

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_reply(self, text):
        with pytest.raises(GenerationParseError):
            parse_json_payload(text)

    def test_not_json(self):
        with pytest.raises(GenerationParseError):
            parse_json_payload("Sorry, I can't help with that.")


class TestQuestionBatch:
    """Tests for per-item question validation."""

    def test_accepts_valid_items(self):
        accepted, dropped = validate_question_batch([make_question_item(i) for i in range(3)])

        assert len(accepted) == 3
        assert dropped == 0
        assert accepted[0].correct_index == 1

    def test_missing_correct_index_dropped(self):
        items = [make_question_item(i) for i in range(5)]
        del items[1]["correct"]
        del items[3]["correct"]

        accepted, dropped = validate_question_batch(items)

        assert len(accepted) == 3
        assert dropped == 2

    @pytest.mark.parametrize(
        "overrides",
        [
            {"options": ["A", "B", "C"]},
            {"options": ["A", "B", "C", "D", "E"]},
            {"options": ["A", "", "C", "D"]},
            {"correct": 4},
            {"correct": -1},
            {"correct": "1"},
            {"question": "  "},
            {"explanation": ""},
        ],
    )
    def test_invalid_items_dropped(self, overrides):
        items = [make_question_item(0), make_question_item(1, **overrides)]

        accepted, dropped = validate_question_batch(items)

        assert len(accepted) == 1
        assert dropped == 1

    def test_alias_keys_accepted(self):
        item = {
            "prompt": "Which is red?",
            "options": ["Apple", "Sky", "Grass", "Snow"],
            "correctIndex": 0,
            "explanation": "Apples are red!",
        }

        accepted, _ = validate_question_batch([item])

        assert accepted[0].prompt == "Which is red?"
        assert accepted[0].correct_index == 0
        assert accepted[0].topic is None

    def test_numeric_options_coerced(self):
        accepted, _ = validate_question_batch([make_question_item(0, options=[1, 2, 3, 4])])

        assert accepted[0].options == ["1", "2", "3", "4"]

    def test_difficulty_lenient(self):
        accepted, _ = validate_question_batch(
            [make_question_item(0, difficulty="HARD"), make_question_item(1, difficulty="tricky")]
        )

        assert accepted[0].difficulty == Difficulty.HARD
        assert accepted[1].difficulty is None

    def test_zero_survivors_raises(self):
        with pytest.raises(GenerationValidationError) as exc_info:
            validate_question_batch([{"question": "Q"}, {"options": []}])

        assert exc_info.value.dropped == 2

    def test_non_array_raises(self):
        with pytest.raises(GenerationValidationError):
            validate_question_batch({"questions": [make_question_item()]})


class TestFeedbackAndAnalytics:
    """Tests for feedback and analytics payloads."""

    def test_feedback_valid(self):
        payload = validate_feedback({"message": " Great job! ", "emoji": "🎉"})

        assert payload.message == "Great job!"
        assert payload.emoji == "🎉"

    def test_feedback_missing_emoji(self):
        assert validate_feedback({"message": "Nice!", "emoji": None}).emoji == ""

    def test_feedback_empty_message(self):
        with pytest.raises(GenerationValidationError):
            validate_feedback({"message": "", "emoji": "🎉"})

    def test_analytics_aliases_and_clipping(self):
        payload = validate_analytics(
            {
                "strengths": ["a", "b", "c", "d"],
                "areasForImprovement": ["x"],
                "recommendedNextTopics": ["t1", "t2", "t3", "t4", "t5"],
                "personalizedTips": ["tip", " ", "tip2"],
            }
        )
        clipped = payload.clipped()

        assert clipped["strengths"] == ["a", "b", "c"]
        assert clipped["recommended_topics"] == ["t1", "t2", "t3", "t4"]
        assert clipped["tips"] == ["tip", "tip2"]

    def test_analytics_empty_section_rejected(self):
        with pytest.raises(GenerationValidationError):
            validate_analytics(
                {
                    "strengths": [],
                    "areasForImprovement": ["x"],
                    "recommendedNextTopics": ["y"],
                    "personalizedTips": ["z"],
                }
            )

    def test_analytics_model_ignores_extra_keys(self):
        payload = AnalyticsPayload.model_validate(
            {
                "strengths": ["a"],
                "improvement_areas": ["b"],
                "recommended_topics": ["c"],
                "tips": ["d"],
                "mood": "happy",
            }
        )

        assert payload.tips == ["d"]
