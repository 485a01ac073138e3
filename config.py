"""
Configuration settings for the kinderquiz session engine.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Generation Provider
    # ========================================
    ai_provider: Literal["auto", "gemini", "openai", "none"] = Field(
        default="auto",
        description="Which text-generation backend to use ('auto' picks the first configured)",
    )
    gemini_api_key: str | None = Field(
        default=None,
        description="Google Generative AI (Gemini) API key",
    )
    ai_model: str = Field(
        default="gemini-2.0-flash",
        description="Gemini model used for questions, feedback and analytics",
    )
    openai_api_key: str | None = Field(
        default=None,
        description="API key for an OpenAI-compatible chat completions endpoint",
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of the OpenAI-compatible endpoint",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="Chat model name for the OpenAI-compatible endpoint",
    )
    azure_openai_api_key: str | None = Field(
        default=None,
        description="Azure OpenAI API key",
    )
    azure_openai_endpoint: str | None = Field(
        default=None,
        description="Azure OpenAI resource endpoint (https://<name>.openai.azure.com)",
    )
    azure_openai_api_version: str = Field(
        default="2024-02-15-preview",
        description="Azure OpenAI REST API version",
    )
    azure_openai_deployment: str = Field(
        default="gpt-35-turbo",
        description="Azure OpenAI deployment name",
    )
    ai_request_timeout_seconds: float = Field(
        default=20.0,
        description="Transport timeout for a single generation call",
    )

    # ========================================
    # Prompt Tuning
    # ========================================
    question_temperature: float = Field(default=0.8, description="Creativity for question sets")
    question_max_tokens: int = Field(default=2000, description="Output budget for question sets")
    feedback_temperature: float = Field(default=0.9, description="Creativity for feedback messages")
    feedback_max_tokens: int = Field(default=150, description="Output budget for feedback messages")
    analytics_temperature: float = Field(default=0.7, description="Creativity for analytics reports")
    analytics_max_tokens: int = Field(default=800, description="Output budget for analytics reports")
    questions_per_request: int = Field(
        default=5,
        description="How many questions to ask the generator for per module selection",
    )

    # ========================================
    # Session Policy
    # ========================================
    feedback_timeout_seconds: float = Field(
        default=3.0,
        description="How long the quiz waits for feedback before showing the explanation",
    )
    recent_topics_limit: int = Field(
        default=10,
        description="Length of the most-recent-first topic history",
    )
    default_child_name: str = Field(
        default="friend",
        description="Name used in feedback prompts when no child profile is loaded",
    )

    # ========================================
    # Scoring & Achievements
    # ========================================
    points_per_correct: int = Field(
        default=10,
        description="Flat points awarded per correct answer",
    )
    memory_game_threshold: int = Field(
        default=50,
        description="Points needed to unlock the memory game",
    )
    century_threshold: int = Field(
        default=100,
        description="Points needed for the Century Club milestone",
    )

    # ========================================
    # Persistence
    # ========================================
    database_url: str = Field(
        default="sqlite:///kinderquiz.db",
        description="SQLAlchemy connection string for the record store",
    )
    local_user_id: str = Field(
        default="local-parent",
        description="Owner id used by the CLI when no identity provider is wired in",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # Helper Methods
    # ========================================
    def has_gemini_configured(self) -> bool:
        return bool(self.gemini_api_key)

    def has_openai_configured(self) -> bool:
        return bool(self.openai_api_key) or bool(
            self.azure_openai_api_key and self.azure_openai_endpoint
        )

    def has_ai_configured(self) -> bool:
        """Check if any generation provider is configured."""
        if self.ai_provider == "none":
            return False
        if self.ai_provider == "gemini":
            return self.has_gemini_configured()
        if self.ai_provider == "openai":
            return self.has_openai_configured()
        return self.has_gemini_configured() or self.has_openai_configured()

    def get_prompt_config(self) -> dict[str, dict[str, float | int]]:
        """Get per-call sampling parameters as a dictionary."""
        return {
            "questions": {
                "temperature": self.question_temperature,
                "max_output_tokens": self.question_max_tokens,
            },
            "feedback": {
                "temperature": self.feedback_temperature,
                "max_output_tokens": self.feedback_max_tokens,
            },
            "analytics": {
                "temperature": self.analytics_temperature,
                "max_output_tokens": self.analytics_max_tokens,
            },
        }

    def get_achievement_thresholds(self) -> list[tuple[int, str | None, str]]:
        """Return (threshold, unlock, achievement) rule tuples in threshold order."""
        return sorted(
            [
                (self.memory_game_threshold, "memory_game", "First Game Unlocked!"),
                (self.century_threshold, None, "Century Club"),
            ],
            key=lambda rule: rule[0],
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
