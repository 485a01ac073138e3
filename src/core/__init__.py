"""
Core Module - Shared domain models and interfaces.

Components:
- models: Question, GenerationConfig, FeedbackResult, AnalyticsReport
- errors: Generation/persistence error taxonomy
- identity: Opaque authenticated-identity providers
- log_config: Loguru sink configuration

Design Principle:
Generation, learning, persistence and session modules import shared
types from src/core/ rather than redefining them.
"""

from src.core.errors import (
    EngineError,
    GenerationError,
    GenerationParseError,
    GenerationTransportError,
    GenerationUnavailable,
    GenerationValidationError,
    InvalidTransition,
    PersistenceError,
    UnknownModule,
)
from src.core.identity import IdentityProvider, StaticIdentity
from src.core.models import (
    AnalyticsReport,
    Difficulty,
    FeedbackKind,
    FeedbackResult,
    GenerationConfig,
    Question,
)

__all__ = [
    # Models
    "AnalyticsReport",
    "Difficulty",
    "FeedbackKind",
    "FeedbackResult",
    "GenerationConfig",
    "Question",
    # Errors
    "EngineError",
    "GenerationError",
    "GenerationParseError",
    "GenerationTransportError",
    "GenerationUnavailable",
    "GenerationValidationError",
    "InvalidTransition",
    "PersistenceError",
    "UnknownModule",
    # Identity
    "IdentityProvider",
    "StaticIdentity",
]
