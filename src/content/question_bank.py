"""
Offline Question Bank.

Curated fallback question sets, several per module. Selection is fully
determined by (module, seed):

    set_index = seed % len(sets)
    order     = random.Random(seed).shuffle(set)

Production callers derive the seed from the wall clock so sessions look
varied; tests inject a fixed seed and get identical batches every time.
"""

from __future__ import annotations

import random
import time

from loguru import logger

from src.core.models import Difficulty, Question

# Each entry: (prompt, options, correct_index, explanation, topic)
_RawQuestion = tuple[str, tuple[str, str, str, str], int, str, str]

_BANK: dict[str, list[list[_RawQuestion]]] = {
    "letters": [
        # Alphabet sequence
        [
            ("What letter comes after B in the alphabet?", ("A", "C", "D", "E"), 1,
             "Fantastic! C comes right after B in the alphabet! 🎉", "alphabet sequence"),
            ("Which letter comes before F?", ("D", "E", "G", "H"), 1,
             "Perfect! E comes right before F! You're amazing! ⭐", "alphabet sequence"),
            ("What letter is between M and O?", ("L", "N", "P", "Q"), 1,
             "Brilliant! N is right between M and O! 🌟", "alphabet sequence"),
        ],
        # Phonics
        [
            ('Which letter makes the "ssss" sound like a snake?', ("R", "S", "T", "Z"), 1,
             'Excellent! The letter S makes the "ssss" sound! 🐍', "phonics"),
            ('What sound does the letter "B" make?', ("buh", "puh", "duh", "guh"), 0,
             'Great job! B makes the "buh" sound! 🎊', "phonics"),
            ('Which letter sounds like "zzz" when a bee flies?', ("S", "C", "Z", "X"), 2,
             'Amazing! Z makes the "zzz" sound like a buzzing bee! 🐝', "phonics"),
        ],
        # Beginning sounds
        [
            ('What is the first letter of "rainbow"?', ("R", "A", "I", "N"), 0,
             "Wonderful! Rainbow starts with the letter R! 🌈", "beginning sounds"),
            ('Which word starts with the letter "D"?', ("Cat", "Dog", "Fish", "Bird"), 1,
             "Perfect! Dog starts with the letter D! 🐕", "beginning sounds"),
            ('What letter does "butterfly" begin with?', ("B", "F", "L", "T"), 0,
             "Superb! Butterfly begins with B! 🦋", "beginning sounds"),
        ],
    ],
    "numbers": [
        # Counting
        [
            ("How many stars are here? ⭐⭐⭐", ("2", "3", "4", "5"), 1,
             "Excellent counting! There are 3 stars! ⭐", "counting"),
            ("Count the hearts: ❤️❤️❤️❤️❤️", ("4", "5", "6", "7"), 1,
             "Amazing! You counted 5 hearts perfectly! ❤️", "counting"),
            ("How many circles? ⚪⚪", ("1", "2", "3", "4"), 1,
             "Great job! There are 2 circles! ⚪", "counting"),
        ],
        # Number sequence
        [
            ("What number comes after 7?", ("6", "8", "9", "10"), 1,
             "Fantastic! 8 comes right after 7! 🎯", "number sequence"),
            ("Which number is missing? 1, 2, ?, 4", ("2", "3", "4", "5"), 1,
             "Perfect! The missing number is 3! 🔥", "number sequence"),
            ("What comes before 10?", ("8", "9", "11", "12"), 1,
             "Great! 9 comes right before 10! 🌟", "number sequence"),
        ],
        # Simple sums
        [
            ("What is 1 + 1?", ("1", "2", "3", "4"), 1,
             "Awesome! 1 + 1 = 2! You're a math star! ✨", "addition"),
            ("If you have 3 cookies and eat 1, how many are left?", ("1", "2", "3", "4"), 1,
             "Excellent thinking! 3 - 1 = 2 cookies left! 🍪", "subtraction"),
            ("What is 2 + 3?", ("4", "5", "6", "7"), 1,
             "Outstanding! 2 + 3 = 5! Keep it up! 🎉", "addition"),
        ],
    ],
    "colors": [
        # Color mixing
        [
            ("What color do you get when you mix red and yellow?", ("Purple", "Orange", "Green", "Pink"), 1,
             "Perfect! Red and yellow make orange! 🧡", "color mixing"),
            ("Blue + Yellow = ?", ("Purple", "Orange", "Green", "Pink"), 2,
             "Amazing! Blue and yellow make green! 💚", "color mixing"),
            ("What happens when you mix red and blue?", ("Orange", "Purple", "Green", "Yellow"), 1,
             "Fantastic! Red and blue make purple! 💜", "color mixing"),
        ],
        # Colors in nature
        [
            ("What color is grass?", ("Blue", "Green", "Red", "Yellow"), 1,
             "Excellent! Grass is green! 🌱", "colors in nature"),
            ("What color is the sky on a sunny day?", ("Blue", "Green", "Red", "Purple"), 0,
             "Great observation! The sky is blue! ☀️", "colors in nature"),
            ("What color are most tree trunks?", ("Green", "Blue", "Brown", "Purple"), 2,
             "Perfect! Tree trunks are brown! 🌳", "colors in nature"),
        ],
        # Color facts
        [
            ("How many colors are in a rainbow?", ("5", "6", "7", "8"), 2,
             "Wonderful! A rainbow has 7 beautiful colors! 🌈", "rainbow colors"),
            ("What color do you get with NO colors mixed?", ("Black", "White", "Gray", "Brown"), 1,
             "Smart thinking! No paint on white paper stays white! ⚪", "color theory"),
            ('Which color is considered "warm"?', ("Blue", "Red", "Green", "Purple"), 1,
             "Great! Red is a warm color like fire! 🔥", "color temperature"),
        ],
    ],
    "shapes": [
        # Counting sides
        [
            ("How many sides does a triangle have?", ("2", "3", "4", "5"), 1,
             "Excellent! A triangle has 3 sides! 🔺", "sides"),
            ("How many sides does a square have?", ("3", "4", "5", "6"), 1,
             "Super! A square has 4 equal sides! 🟦", "sides"),
            ("Which shape has no corners?", ("Square", "Triangle", "Circle", "Rectangle"), 2,
             "Yes! A circle is round with no corners! ⚪", "corners"),
        ],
        # Shapes around us
        [
            ("What shape is a pizza?", ("Circle", "Square", "Triangle", "Star"), 0,
             "Yummy! A pizza is a circle! 🍕", "everyday shapes"),
            ("What shape is a door?", ("Circle", "Rectangle", "Triangle", "Heart"), 1,
             "Right! Most doors are rectangles! 🚪", "everyday shapes"),
            ("What shape is a slice of watermelon?", ("Square", "Circle", "Triangle", "Oval"), 2,
             "Sweet! A watermelon slice looks like a triangle! 🍉", "everyday shapes"),
        ],
    ],
    "animals": [
        # Animal sounds
        [
            ("What sound does a cow make?", ("Woof", "Meow", "Moo", "Roar"), 2,
             'Perfect! Cows say "Moo"! 🐄', "animal sounds"),
            ("Which animal says 'quack'?", ("Duck", "Dog", "Cat", "Pig"), 0,
             "Quack quack! Ducks say quack! 🦆", "animal sounds"),
            ("What sound does a lion make?", ("Tweet", "Roar", "Oink", "Baa"), 1,
             "ROAR! Lions are loud! 🦁", "animal sounds"),
        ],
        # Animal homes
        [
            ("Where does a fish live?", ("In a tree", "In water", "In a cave", "In the sand"), 1,
             "Splash! Fish live in water! 🐟", "animal homes"),
            ("Where does a bird build its nest?", ("In a tree", "In the ocean", "Under a rock", "In a pond"), 0,
             "Tweet! Birds build nests in trees! 🐦", "animal homes"),
            ("Which animal lives in a hive?", ("Ant", "Bee", "Spider", "Frog"), 1,
             "Buzz! Bees live in a hive! 🐝", "animal homes"),
        ],
    ],
    "math": [
        # Adding
        [
            ("What is 2 + 1?", ("2", "3", "4", "5"), 1,
             "Amazing! 2 + 1 = 3! ✨", "addition"),
            ("What is 4 + 2?", ("5", "6", "7", "8"), 1,
             "Great adding! 4 + 2 = 6! 🎯", "addition"),
            ("You have 2 apples and get 2 more. How many now?", ("3", "4", "5", "6"), 1,
             "Yum! 2 + 2 = 4 apples! 🍎", "addition"),
        ],
        # Taking away
        [
            ("What is 5 - 2?", ("2", "3", "4", "1"), 1,
             "Super! 5 - 2 = 3! 🌟", "subtraction"),
            ("4 birds sit on a branch and 1 flies away. How many are left?", ("2", "3", "4", "5"), 1,
             "Well done! 4 - 1 = 3 birds! 🐦", "subtraction"),
            ("What is 3 - 3?", ("0", "1", "3", "6"), 0,
             "Exactly! 3 - 3 = 0! 🎉", "subtraction"),
        ],
    ],
}


def time_seed() -> int:
    """Seed derived from the wall clock (production default)."""
    return time.time_ns() // 1_000_000


class QuestionBank:
    """Deterministic fallback question source."""

    def __init__(self, bank: dict[str, list[list[_RawQuestion]]] | None = None):
        self._bank = bank if bank is not None else _BANK

    @property
    def modules(self) -> list[str]:
        return list(self._bank)

    def set_count(self, module: str) -> int:
        return len(self._bank.get(module, []))

    def has_module(self, module: str) -> bool:
        return self.set_count(module) > 0

    def fallback_questions(self, module: str, seed: int) -> list[Question]:
        """
        Pick one curated set for `module` and shuffle it with `seed`.

        Returns an empty list only for unknown module keys; callers treat
        that as a configuration error.
        """
        sets = self._bank.get(module, [])
        if not sets:
            logger.warning(f"No fallback questions for unknown module '{module}'")
            return []

        set_index = seed % len(sets)
        questions = [
            Question(
                id=f"fallback-{module}-{set_index + 1}-{position + 1}",
                prompt=prompt,
                options=tuple(options),
                correct_index=correct,
                explanation=explanation,
                difficulty=Difficulty.EASY,
                topic=topic,
            )
            for position, (prompt, options, correct, explanation, topic) in enumerate(sets[set_index])
        ]
        random.Random(seed).shuffle(questions)

        logger.debug(f"Using fallback set {set_index + 1}/{len(sets)} for {module} (seed={seed})")
        return questions


_default_bank = QuestionBank()


def fallback_questions(module: str, seed: int | None = None) -> list[Question]:
    """Module-level shortcut over the built-in bank."""
    return _default_bank.fallback_questions(module, time_seed() if seed is None else seed)
