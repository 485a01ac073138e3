"""Generated content: questions, feedback and the transports behind them.

Pipeline:
1. Prompt builders render the request for the configured text generator
2. Transports (Gemini / OpenAI-compatible) return raw reply text
3. Reply schemas (pydantic) turn the text into typed items or a typed failure
4. Generators fall back to local content on any generation failure

Usage:
    from src.generation import QuestionGenerator, build_text_generator

    generator = QuestionGenerator(build_text_generator())
    outcome = await generator.generate(GenerationConfig(module="letters"))
    for question in outcome.questions:
        print(question.prompt)
"""
from src.generation.feedback import FeedbackGenerator
from src.generation.question_generator import GenerationOutcome, QuestionGenerator
from src.generation.transport import (
    ChatCompletionsTextGenerator,
    GeminiTextGenerator,
    TextGenerationRequest,
    TextGenerator,
    build_text_generator,
    check_connection,
)

__all__ = [
    "FeedbackGenerator",
    "GenerationOutcome",
    "QuestionGenerator",
    "ChatCompletionsTextGenerator",
    "GeminiTextGenerator",
    "TextGenerationRequest",
    "TextGenerator",
    "build_text_generator",
    "check_connection",
]
