"""
Generation Client for question sets.

Builds a prompt, calls the configured text generator, validates the reply
into canonical Question records and falls back to the Question Bank on any
generation failure. The caller always gets a usable batch; `GenerationOutcome`
records where it came from and why.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from loguru import logger

from config import Settings, get_settings
from src.content.question_bank import QuestionBank, time_seed
from src.core.errors import GenerationError, GenerationUnavailable, GenerationValidationError
from src.core.models import GenerationConfig, Question
from src.generation.prompts import QUESTION_SYSTEM_PROMPT, build_question_prompt
from src.generation.schemas import parse_json_payload, validate_question_batch
from src.generation.transport import TextGenerationRequest, TextGenerator


@dataclass(frozen=True)
class GenerationOutcome:
    """Tagged result of one question-generation request."""

    questions: list[Question]
    source: Literal["generated", "fallback"]
    failure: GenerationError | None = None
    dropped: int = 0

    @property
    def used_fallback(self) -> bool:
        return self.source == "fallback"


class QuestionGenerator:
    """Generates question batches with a deterministic offline fallback."""

    def __init__(
        self,
        text_generator: TextGenerator | None,
        bank: QuestionBank | None = None,
        settings: Settings | None = None,
        seed_source: Callable[[], int] = time_seed,
    ):
        self.text_generator = text_generator
        self.bank = bank or QuestionBank()
        self.settings = settings or get_settings()
        self.seed_source = seed_source

    async def generate(
        self,
        config: GenerationConfig,
        seed: int | None = None,
        count: int | None = None,
    ) -> GenerationOutcome:
        """
        Produce a batch for `config.module`.

        Never raises a generation error: every failure becomes a fallback
        outcome carrying the error for diagnostics.
        """
        seed = self.seed_source() if seed is None else seed
        count = count or self.settings.questions_per_request

        try:
            questions, dropped = await self._generate_remote(config, seed, count)
        except GenerationError as e:
            logger.warning(
                f"Question generation failed for {config.module} "
                f"({type(e).__name__}: {e}); using fallback set"
            )
            return GenerationOutcome(
                questions=self.bank.fallback_questions(config.module, seed),
                source="fallback",
                failure=e,
                dropped=getattr(e, "dropped", 0),
            )

        logger.info(
            f"Generated {len(questions)} {config.module} questions "
            f"via {self.text_generator.name} ({dropped} dropped)"
        )
        return GenerationOutcome(questions=questions, source="generated", dropped=dropped)

    async def generate_questions(
        self,
        config: GenerationConfig,
        seed: int | None = None,
        count: int | None = None,
    ) -> list[Question]:
        return (await self.generate(config, seed=seed, count=count)).questions

    async def _generate_remote(
        self, config: GenerationConfig, seed: int, count: int
    ) -> tuple[list[Question], int]:
        if self.text_generator is None:
            raise GenerationUnavailable("No text generator configured")

        prompt_config = self.settings.get_prompt_config()["questions"]
        request = TextGenerationRequest(
            system_instruction=QUESTION_SYSTEM_PROMPT,
            user_prompt=build_question_prompt(config, seed, count=count),
            temperature=prompt_config["temperature"],
            max_output_tokens=prompt_config["max_output_tokens"],
        )
        logger.debug(f"Question prompt for {config.module}:\n{request.user_prompt}")

        text = await self.text_generator.complete(request)
        logger.debug(f"Raw question reply ({len(text)} chars)")

        items, dropped = validate_question_batch(parse_json_payload(text))

        batch_id = uuid.uuid4().hex[:8]
        questions = []
        for index, item in enumerate(items):
            try:
                questions.append(
                    Question(
                        id=f"ai-{batch_id}-{index}",
                        prompt=item.prompt,
                        options=tuple(item.options),
                        correct_index=item.correct_index,
                        explanation=item.explanation,
                        difficulty=item.difficulty or config.difficulty,
                        topic=item.topic or "general",
                    )
                )
            except ValueError as e:
                dropped += 1
                logger.debug(f"Dropping generated question {index}: {e}")

        if not questions:
            raise GenerationValidationError("No valid questions after normalization", dropped=dropped)
        return questions, dropped
