"""
Learning: progress tracking and end-of-quiz analytics.

This package contains the scoring logic:
- achievements: Monotonic point-threshold rules for achievements and unlocks
- ledger: Immutable ProgressLedger and the pure apply_outcome update
- analytics: AnalyticsSummarizer with a rule-based fallback report
"""

from src.learning.achievements import (
    DEFAULT_RULES,
    MEMORY_GAME_UNLOCK,
    ThresholdRule,
    evaluate_rules,
    rules_from_settings,
)
from src.learning.analytics import AnalyticsSummarizer, fallback_report
from src.learning.ledger import POINTS_PER_CORRECT, ProgressLedger, apply_outcome

__all__ = [
    # Rules
    "DEFAULT_RULES",
    "MEMORY_GAME_UNLOCK",
    "ThresholdRule",
    "evaluate_rules",
    "rules_from_settings",
    # Ledger
    "POINTS_PER_CORRECT",
    "ProgressLedger",
    "apply_outcome",
    # Analytics
    "AnalyticsSummarizer",
    "fallback_report",
]
