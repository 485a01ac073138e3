"""
Learning module catalog.

A module is a named topic area (letters, numbers, colors, ...) that groups
related questions. Keys are what the session engine and ledger store;
titles are what prompts and reports show.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LearningModule:
    key: str
    title: str
    description: str


MODULES: dict[str, LearningModule] = {
    module.key: module
    for module in (
        LearningModule("letters", "Letters & Phonics", "Learn letters, sounds, and start reading!"),
        LearningModule("numbers", "Numbers & Counting", "Count, add, and explore numbers!"),
        LearningModule("colors", "Colors & Shapes", "Discover colors and geometric shapes!"),
        LearningModule("shapes", "Shapes", "Find circles, squares, triangles and more!"),
        LearningModule("animals", "Animals & Nature", "Meet animals and learn about nature!"),
        LearningModule("math", "Simple Math", "Fun with numbers and basic math!"),
    )
}


def module_keys() -> list[str]:
    """All module keys in catalog order."""
    return list(MODULES)


def get_module(key: str) -> LearningModule | None:
    return MODULES.get(key)


def display_name(key: str) -> str:
    """Human-readable title for a module key (unknown keys pass through)."""
    module = MODULES.get(key)
    return module.title if module else key
