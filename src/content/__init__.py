"""
Content: Module catalog and the offline question bank.

Core modules:
- modules: Known learning modules and their display names
- question_bank: Curated fallback question sets with seeded selection
"""

from .modules import MODULES, LearningModule, display_name, get_module, module_keys
from .question_bank import QuestionBank, fallback_questions

__all__ = [
    "MODULES",
    "LearningModule",
    "display_name",
    "get_module",
    "module_keys",
    "QuestionBank",
    "fallback_questions",
]
