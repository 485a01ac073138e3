"""
Unit tests for the question Generation Client.
"""

import json

import pytest

from conftest import ScriptedTextGenerator, make_question_item, questions_reply
from src.content.question_bank import QuestionBank
from src.core.errors import (
    GenerationParseError,
    GenerationTransportError,
    GenerationUnavailable,
    GenerationValidationError,
)
from src.core.models import OPTION_COUNT, Difficulty, GenerationConfig
from src.generation.prompts import QUESTION_SYSTEM_PROMPT
from src.generation.question_generator import QuestionGenerator


@pytest.fixture
def config():
    return GenerationConfig(
        module="letters",
        difficulty=Difficulty.MEDIUM,
        child_age=7,
        previous_topics=["phonics"],
    )


def make_generator(settings, *script):
    text_generator = ScriptedTextGenerator(*script) if script else None
    return QuestionGenerator(text_generator, settings=settings), text_generator


class TestGeneratedBatches:
    """Tests for accepted generated replies."""

    @pytest.mark.asyncio
    async def test_valid_reply_is_used(self, settings, config, fixed_seed):
        generator, text_generator = make_generator(settings, questions_reply(5, fenced=True))

        outcome = await generator.generate(config, seed=fixed_seed)

        assert outcome.source == "generated"
        assert outcome.failure is None
        assert len(outcome.questions) == 5
        assert text_generator.requests[0].system_instruction == QUESTION_SYSTEM_PROMPT
        assert text_generator.requests[0].temperature == settings.question_temperature

    @pytest.mark.asyncio
    async def test_ids_unique_and_tagged(self, settings, config, fixed_seed):
        generator, _ = make_generator(settings, questions_reply(5))

        questions = await generator.generate_questions(config, seed=fixed_seed)

        assert len({q.id for q in questions}) == 5
        assert all(q.id.startswith("ai-") for q in questions)
        assert all(q.difficulty == Difficulty.MEDIUM for q in questions)
        assert all(len(q.options) == OPTION_COUNT for q in questions)

    @pytest.mark.asyncio
    async def test_ids_do_not_collide_across_batches(self, settings, config, fixed_seed):
        generator, _ = make_generator(settings, questions_reply(3))

        first = await generator.generate_questions(config, seed=fixed_seed)
        second = await generator.generate_questions(config, seed=fixed_seed)

        assert not {q.id for q in first} & {q.id for q in second}

    @pytest.mark.asyncio
    async def test_source_difficulty_kept(self, settings, config, fixed_seed):
        reply = json.dumps([make_question_item(0, difficulty="hard"), make_question_item(1)])
        generator, _ = make_generator(settings, reply)

        questions = await generator.generate_questions(config, seed=fixed_seed)

        assert questions[0].difficulty == Difficulty.HARD
        assert questions[1].difficulty == Difficulty.MEDIUM

    @pytest.mark.asyncio
    async def test_missing_topic_defaults_to_general(self, settings, config, fixed_seed):
        item = make_question_item(0)
        del item["topic"]
        generator, _ = make_generator(settings, json.dumps([item]))

        questions = await generator.generate_questions(config, seed=fixed_seed)

        assert questions[0].topic == "general"

    @pytest.mark.asyncio
    async def test_two_of_five_missing_correct_index(self, settings, config, fixed_seed):
        items = [make_question_item(i) for i in range(5)]
        del items[0]["correct"]
        del items[4]["correct"]
        generator, _ = make_generator(settings, json.dumps(items))

        outcome = await generator.generate(config, seed=fixed_seed)

        assert outcome.source == "generated"
        assert len(outcome.questions) == 3
        assert outcome.dropped == 2


class TestFallback:
    """Tests for the deterministic fallback path."""

    @pytest.mark.asyncio
    async def test_no_generator_uses_fallback(self, settings, config, fixed_seed):
        generator, _ = make_generator(settings)

        outcome = await generator.generate(config, seed=fixed_seed)

        assert outcome.used_fallback
        assert isinstance(outcome.failure, GenerationUnavailable)
        assert outcome.questions == QuestionBank().fallback_questions("letters", fixed_seed)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "reply, error_type",
        [
            (GenerationTransportError("HTTP 503"), GenerationTransportError),
            ("I'm not sure what you mean", GenerationParseError),
            ('{"question": "not a list"}', GenerationValidationError),
            (json.dumps([{"question": "Q", "options": ["A"]}]), GenerationValidationError),
        ],
    )
    async def test_failures_collapse_to_fallback(self, settings, config, fixed_seed, reply, error_type):
        generator, _ = make_generator(settings, reply)

        outcome = await generator.generate(config, seed=fixed_seed)

        assert outcome.source == "fallback"
        assert isinstance(outcome.failure, error_type)
        assert outcome.questions == QuestionBank().fallback_questions("letters", fixed_seed)

    @pytest.mark.asyncio
    async def test_all_items_invalid_reports_dropped(self, settings, config, fixed_seed):
        items = [make_question_item(i, correct=9) for i in range(4)]
        generator, _ = make_generator(settings, json.dumps(items))

        outcome = await generator.generate(config, seed=fixed_seed)

        assert outcome.used_fallback
        assert outcome.dropped == 4

    @pytest.mark.asyncio
    async def test_seed_source_used_when_no_seed(self, settings, config):
        generator = QuestionGenerator(None, settings=settings, seed_source=lambda: 5)

        questions = await generator.generate_questions(config)

        assert questions == QuestionBank().fallback_questions("letters", 5)
