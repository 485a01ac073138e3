"""
LLM Prompts for Child-Facing Quiz Content.

Contains prompts for the three generated artifacts:
- Question sets (JSON array of 4-option questions)
- Feedback messages (single {message, emoji} object)
- Learning analytics (fixed-shape report object)

Variety comes from a style hint picked with an explicit seed, so the same
seed always produces the same prompt.
"""
from __future__ import annotations

import random

from src.content.modules import display_name
from src.core.models import GenerationConfig

# =============================================================================
# System Prompts
# =============================================================================

QUESTION_SYSTEM_PROMPT = """You are an expert kindergarten teacher and child development specialist.
Create engaging, age-appropriate learning questions that are fun and educational.
Always respond with valid JSON only."""

FEEDBACK_SYSTEM_PROMPT = """You are a caring, enthusiastic kindergarten teacher who always encourages children positively.
Vary your responses to keep them fresh and engaging. Never repeat the same phrases or patterns.
Always respond with a single valid JSON object."""

ANALYTICS_SYSTEM_PROMPT = """You are a warm, encouraging kindergarten teacher who specializes in early childhood learning assessment.
Your goal is to motivate children and help them feel proud of their progress while gently guiding them toward improvement.
Always use positive, supportive language that builds confidence. Respond with valid JSON only."""

# =============================================================================
# Style Hints
# =============================================================================

QUESTION_STYLES = [
    "multiple choice with interesting scenarios",
    "visual-based questions with descriptions",
    "story-based questions with characters",
    "puzzle-like questions that make kids think",
    "real-world application questions",
]

FEEDBACK_STYLES = [
    "enthusiastic and celebratory",
    "warm and nurturing",
    "playful and fun",
    "proud and supportive",
    "motivational and inspiring",
]


def _pick(options: list[str], seed: int) -> str:
    return random.Random(seed).choice(options)


# =============================================================================
# Question Prompt
# =============================================================================


def build_question_prompt(config: GenerationConfig, seed: int, count: int = 5) -> str:
    """Build the user prompt for a question set."""
    style = _pick(QUESTION_STYLES, seed)
    avoided = ", ".join(config.previous_topics) if config.previous_topics else "none yet"
    interests = ", ".join(sorted(config.interests)) if config.interests else "General learning"

    return f"""Generate {count} unique and engaging {config.difficulty.value} level questions for a child (age {config.child_age}) about {display_name(config.module)}.

Create {style}. Be creative and vary the format!

Requirements:
- Age-appropriate language and concepts
- Multiple choice with exactly 4 options each
- Include a fun, encouraging explanation that reveals the correct answer
- Avoid these previously covered topics: {avoided}
- Child interests: {interests}
- Variation id: {seed}

Respond ONLY with a JSON array, no text before or after it:
[
  {{
    "question": "question text",
    "options": ["option1", "option2", "option3", "option4"],
    "correct": 0,
    "explanation": "encouraging explanation that shows the correct answer",
    "topic": "specific topic covered",
    "difficulty": "{config.difficulty.value}"
  }}
]"""


# =============================================================================
# Feedback Prompt
# =============================================================================


def streak_context(streak: int) -> str:
    if streak >= 5:
        return "amazing streak - they are on fire!"
    if streak >= 3:
        return "good streak going"
    if streak > 0:
        return "building momentum"
    return ""


def build_feedback_prompt(is_correct: bool, name: str, streak: int, seed: int) -> str:
    """Build the user prompt for one encouragement message."""
    style = _pick(FEEDBACK_STYLES, seed)
    outcome = "answered correctly" if is_correct else "made a mistake"
    goal = (
        "Celebrate their success with enthusiasm"
        if is_correct
        else "Encourage them to keep trying with positivity"
    )

    return f"""Create a {style} encouragement message for a young child named {name}.

Context:
- They just {outcome}
- Current streak: {streak} correct answers {streak_context(streak)}
- Variation id: {seed}

Requirements:
- Warm, supportive, and age-appropriate
- One emoji that matches the tone
- {goal}
- One short sentence

Format: {{"message": "your message", "emoji": "one emoji"}}"""


# =============================================================================
# Analytics Prompt
# =============================================================================


def build_analytics_prompt(
    correct_answers: int,
    total_answers: int,
    strong_modules: list[str],
    weak_modules: list[str],
    recent_topics: list[str],
) -> str:
    """Build the user prompt for an end-of-quiz analytics report."""
    accuracy = round(correct_answers / total_answers * 100) if total_answers else 0
    strong = ", ".join(strong_modules) if strong_modules else "None yet"
    weak = ", ".join(weak_modules) if weak_modules else "None identified"
    recent = ", ".join(recent_topics[:5]) if recent_topics else "None yet"

    return f"""Analyze a young child's learning progress and provide encouraging, personalized feedback:

PERFORMANCE DATA:
- Accuracy: {accuracy}% ({correct_answers}/{total_answers} correct)
- Strong modules: {strong}
- Challenging modules: {weak}
- Recent topics covered: {recent}
- Total questions attempted: {total_answers}

REQUIREMENTS:
- Child-friendly language focused on growth mindset
- Specific, actionable next steps
- If performance is low, emphasize effort and improvement opportunities

Provide analysis in JSON format:
{{
  "strengths": ["1-3 specific strengths"],
  "areasForImprovement": ["1-3 gentle suggestions for growth"],
  "recommendedNextTopics": ["1-4 topics to try next"],
  "personalizedTips": ["1-4 encouraging tips"]
}}"""
