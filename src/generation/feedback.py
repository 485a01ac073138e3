"""
Feedback Generator.

Short congratulatory / encouraging messages after each answer, generated
remotely when possible and drawn from local pools otherwise.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable

from loguru import logger

from config import Settings, get_settings
from src.content.question_bank import time_seed
from src.core.errors import GenerationError, GenerationUnavailable
from src.core.models import FeedbackKind, FeedbackResult
from src.generation.prompts import FEEDBACK_SYSTEM_PROMPT, build_feedback_prompt
from src.generation.schemas import parse_json_payload, validate_feedback
from src.generation.transport import TextGenerationRequest, TextGenerator

STREAK_CELEBRATION_MIN = 3
STREAK_EMOJI = "🔥"

CORRECT_MESSAGES = [
    "Absolutely fantastic!", "You're incredible!", "Outstanding work!", "Phenomenal job!",
    "You're a superstar!", "Brilliant thinking!", "Magnificent!", "You nailed it!",
    "Spectacular!", "Impressive!", "Marvelous work!", "You're amazing!",
    "Fabulous!", "You rock!", "Incredible job!", "You're a champion!",
]

INCORRECT_MESSAGES = [
    "Great effort!", "You're learning so well!", "Nice try, keep going!", "You're getting stronger!",
    "Every mistake helps you grow!", "You're on the right track!", "Learning is an adventure!",
    "Great attempt!", "Keep exploring!", "That's how we learn!", "You're getting closer!",
    "Wonderful effort!", "Keep thinking!", "You're so brave to try!", "Learning takes practice!",
]

STREAK_MESSAGES = [
    "Incredible {streak}-question streak! You're unstoppable!",
    "WOW! {streak} perfect answers in a row! You're a superstar!",
    "Amazing streak of {streak}! Your brain is on fire!",
    "{streak} correct answers! You're absolutely brilliant!",
    "{streak} in a row! You're a learning champion!",
    "{streak} perfect answers! You're a quiz master!",
]

CORRECT_EMOJIS = ["🎉", "⭐", "🌟", "👏", "🎊", "🏆", "💫", "🎯", "✨", "🚀", "🌈"]
INCORRECT_EMOJIS = ["💪", "🌱", "🤗", "💡", "🌈", "🎈", "🦋", "🌸", "🌻"]


class FeedbackGenerator:
    """Generates per-answer feedback with a local message-pool fallback."""

    def __init__(
        self,
        text_generator: TextGenerator | None,
        settings: Settings | None = None,
        seed: int | None = None,
        seed_source: Callable[[], int] = time_seed,
    ):
        self.text_generator = text_generator
        self.settings = settings or get_settings()
        self.seed_source = seed_source
        # Advancing index so consecutive fallbacks from one pool differ
        self._counter = itertools.count(seed_source() if seed is None else seed)

    def fallback_feedback(self, is_correct: bool, streak: int = 0) -> FeedbackResult:
        index = next(self._counter)

        if is_correct and streak >= STREAK_CELEBRATION_MIN:
            template = STREAK_MESSAGES[index % len(STREAK_MESSAGES)]
            return FeedbackResult(
                message=template.format(streak=streak),
                emoji=STREAK_EMOJI,
                kind=FeedbackKind.CORRECT,
            )

        messages = CORRECT_MESSAGES if is_correct else INCORRECT_MESSAGES
        emojis = CORRECT_EMOJIS if is_correct else INCORRECT_EMOJIS
        return FeedbackResult(
            message=messages[index % len(messages)],
            emoji=emojis[index % len(emojis)],
            kind=FeedbackKind.CORRECT if is_correct else FeedbackKind.INCORRECT,
        )

    async def generate_feedback(
        self, is_correct: bool, name: str = "friend", streak: int = 0
    ) -> FeedbackResult:
        """Return a feedback message; never raises a generation error."""
        try:
            return await self._generate_remote(is_correct, name, streak)
        except GenerationError as e:
            logger.warning(f"Feedback generation failed ({type(e).__name__}: {e}); using message pool")
            return self.fallback_feedback(is_correct, streak)

    async def _generate_remote(self, is_correct: bool, name: str, streak: int) -> FeedbackResult:
        if self.text_generator is None:
            raise GenerationUnavailable("No text generator configured")

        prompt_config = self.settings.get_prompt_config()["feedback"]
        request = TextGenerationRequest(
            system_instruction=FEEDBACK_SYSTEM_PROMPT,
            user_prompt=build_feedback_prompt(is_correct, name, streak, self.seed_source()),
            temperature=prompt_config["temperature"],
            max_output_tokens=prompt_config["max_output_tokens"],
        )
        payload = validate_feedback(parse_json_payload(await self.text_generator.complete(request)))

        default_emojis = CORRECT_EMOJIS if is_correct else INCORRECT_EMOJIS
        return FeedbackResult(
            message=payload.message,
            emoji=payload.emoji or default_emojis[0],
            kind=FeedbackKind.CORRECT if is_correct else FeedbackKind.INCORRECT,
        )
