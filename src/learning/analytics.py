"""
Analytics Summarizer.

End-of-quiz report of strengths, improvement areas, recommended topics and
tips. Generated remotely when possible; otherwise derived from ledger
aggregates with fixed rules:

- accuracy bands: >=80 excellent, >=60 good, otherwise effort
- modules with mastery >= 3 are strong
- modules with mastery in (0, 2) need practice
- unattempted catalog modules are recommended next

Every list in the report is non-empty and clipped to its display limit.
"""

from __future__ import annotations

from loguru import logger

from config import Settings, get_settings
from src.content.modules import MODULES, display_name
from src.core.errors import GenerationError, GenerationUnavailable
from src.core.models import AnalyticsReport
from src.generation.prompts import ANALYTICS_SYSTEM_PROMPT, build_analytics_prompt
from src.generation.schemas import (
    MAX_IMPROVEMENT_AREAS,
    MAX_RECOMMENDED_TOPICS,
    MAX_STRENGTHS,
    MAX_TIPS,
    parse_json_payload,
    validate_analytics,
)
from src.generation.transport import TextGenerationRequest, TextGenerator
from src.learning.ledger import ProgressLedger

STRONG_MASTERY = 3
WEAK_MASTERY = 2


def strong_modules(ledger: ProgressLedger) -> list[str]:
    return [m for m, count in ledger.module_mastery.items() if count >= STRONG_MASTERY]


def weak_modules(ledger: ProgressLedger) -> list[str]:
    return [m for m, count in ledger.module_mastery.items() if 0 < count < WEAK_MASTERY]


def fallback_report(ledger: ProgressLedger) -> AnalyticsReport:
    """Deterministic report computed purely from ledger aggregates."""
    accuracy = round(ledger.accuracy * 100)
    total = ledger.total_answers
    strong = [display_name(m) for m in strong_modules(ledger)]
    weak = [display_name(m) for m in weak_modules(ledger)]

    strengths = []
    if accuracy >= 80:
        strengths.append("Excellent accuracy - you're doing amazing!")
    elif accuracy >= 60:
        strengths.append("Good problem-solving skills")
    elif total > 0:
        strengths.append("Great effort and persistence")
    if strong:
        strengths.append(f"Strong performance in {', '.join(strong)}")
    if total >= 10:
        strengths.append("Wonderful dedication to learning")
    if not strengths:
        strengths = ["Ready and eager to learn", "Positive attitude toward challenges"]

    areas = []
    if accuracy < 50 and total > 5:
        areas.append("Take time to read questions carefully")
    if weak:
        areas.append(f"Extra practice with {', '.join(weak)}")
    if len(ledger.module_mastery) < 3:
        areas.append("Try exploring different learning topics")
    if not areas:
        areas = ["Continue practicing regularly", "Try new learning modules"]

    recommended = [
        module.title for key, module in MODULES.items() if key not in ledger.module_mastery
    ][:3]
    if weak:
        recommended.append(f"Review {weak[0]} questions")
    if not recommended:
        recommended = [MODULES[key].title for key in ("letters", "numbers", "colors")]

    tips = []
    if accuracy >= 80:
        tips.append("You're doing fantastic! Keep up the great work!")
    elif accuracy >= 60:
        tips.append("Nice progress! Try to slow down and think about each answer.")
    elif total > 0:
        tips.append("Every mistake is a step toward learning something new!")
    tips.append("Take breaks when you need them - learning should be fun!")
    tips.append("Remember, asking questions is a sign of curiosity and intelligence")
    if strong:
        tips.append(f"You're really good at {strong[0]} - use that confidence in other areas!")
    else:
        tips.append("Every expert was once a beginner - keep practicing!")

    return AnalyticsReport(
        strengths=tuple(strengths[:MAX_STRENGTHS]),
        improvement_areas=tuple(areas[:MAX_IMPROVEMENT_AREAS]),
        recommended_topics=tuple(recommended[:MAX_RECOMMENDED_TOPICS]),
        tips=tuple(tips[:MAX_TIPS]),
        source="fallback",
    )


class AnalyticsSummarizer:
    """Summarizes a ledger into an AnalyticsReport."""

    def __init__(self, text_generator: TextGenerator | None, settings: Settings | None = None):
        self.text_generator = text_generator
        self.settings = settings or get_settings()

    async def summarize(self, ledger: ProgressLedger) -> AnalyticsReport:
        """Return a report for `ledger`; never raises a generation error."""
        try:
            return await self._summarize_remote(ledger)
        except GenerationError as e:
            logger.warning(f"Analytics generation failed ({type(e).__name__}: {e}); using fallback report")
            return fallback_report(ledger)

    async def _summarize_remote(self, ledger: ProgressLedger) -> AnalyticsReport:
        if self.text_generator is None:
            raise GenerationUnavailable("No text generator configured")

        prompt_config = self.settings.get_prompt_config()["analytics"]
        request = TextGenerationRequest(
            system_instruction=ANALYTICS_SYSTEM_PROMPT,
            user_prompt=build_analytics_prompt(
                correct_answers=ledger.correct_answers,
                total_answers=ledger.total_answers,
                strong_modules=[display_name(m) for m in strong_modules(ledger)],
                weak_modules=[display_name(m) for m in weak_modules(ledger)],
                recent_topics=list(ledger.recent_topics),
            ),
            temperature=prompt_config["temperature"],
            max_output_tokens=prompt_config["max_output_tokens"],
        )
        payload = validate_analytics(parse_json_payload(await self.text_generator.complete(request)))
        clipped = payload.clipped()

        logger.info("Generated learning analytics report")
        return AnalyticsReport(
            strengths=tuple(clipped["strengths"]),
            improvement_areas=tuple(clipped["improvement_areas"]),
            recommended_topics=tuple(clipped["recommended_topics"]),
            tips=tuple(clipped["tips"]),
            source="generated",
        )
