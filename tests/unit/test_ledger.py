"""
Unit tests for the Progress Ledger and achievement rules.
"""

import itertools

import pytest

from src.learning.achievements import (
    DEFAULT_RULES,
    MEMORY_GAME_UNLOCK,
    ThresholdRule,
    evaluate_rules,
    rules_from_settings,
)
from src.learning.ledger import ProgressLedger, apply_outcome


def run(outcomes, ledger=None, module="letters", rules=DEFAULT_RULES):
    ledger = ledger or ProgressLedger()
    history = []
    for is_correct in outcomes:
        ledger = apply_outcome(ledger, module, is_correct, "phonics", rules=rules)
        history.append(ledger)
    return ledger, history


class TestApplyOutcome:
    """Tests for single-outcome updates."""

    def test_example_session(self):
        ledger, _ = run([True, True, False, True, True, True])

        assert ledger.total_points == 50
        assert ledger.correct_answers == 5
        assert ledger.total_answers == 6
        assert ledger.current_streak == 3
        assert ledger.unlocks == {MEMORY_GAME_UNLOCK}
        assert ledger.achievements == {"First Game Unlocked!"}

    @pytest.mark.parametrize("outcomes", list(itertools.product([True, False], repeat=5)))
    def test_counters_and_streak(self, outcomes):
        ledger, _ = run(outcomes)

        correct = sum(outcomes)
        trailing = len(list(itertools.takewhile(bool, reversed(outcomes))))
        assert ledger.total_points == 10 * correct
        assert ledger.correct_answers == correct
        assert ledger.total_answers == len(outcomes)
        assert ledger.current_streak == trailing

    def test_incorrect_resets_streak(self):
        ledger, _ = run([True, True, True, False])

        assert ledger.current_streak == 0

    def test_input_ledger_unchanged(self):
        start = ProgressLedger()
        apply_outcome(start, "letters", True, "phonics")

        assert start.total_answers == 0
        assert start.module_mastery == {}

    def test_module_mastery_counts_correct_only(self):
        ledger = ProgressLedger()
        ledger = apply_outcome(ledger, "letters", True, "a")
        ledger = apply_outcome(ledger, "letters", False, "b")
        ledger = apply_outcome(ledger, "numbers", False, "c")

        assert ledger.module_mastery == {"letters": 1, "numbers": 0}

    def test_recent_topics_most_recent_first_and_bounded(self):
        ledger = ProgressLedger()
        for i in range(12):
            ledger = apply_outcome(ledger, "letters", True, f"topic-{i}")

        assert len(ledger.recent_topics) == 10
        assert ledger.recent_topics[0] == "topic-11"
        assert ledger.recent_topics[-1] == "topic-2"


class TestAchievementRules:
    """Tests for monotonic threshold rules."""

    def test_crossing_fifty_from_forty(self):
        before = ProgressLedger(total_points=40, correct_answers=4, total_answers=4)
        after = apply_outcome(before, "letters", True, "t")

        assert after.new_unlocks_since(before) == {MEMORY_GAME_UNLOCK}
        assert after.new_achievements_since(before) == {"First Game Unlocked!"}

    def test_crossing_fifty_via_larger_increment(self):
        before = ProgressLedger(total_points=45, correct_answers=4, total_answers=4)
        after = apply_outcome(before, "letters", True, "t", points_per_correct=25)

        assert after.new_unlocks_since(before) == {MEMORY_GAME_UNLOCK}
        assert after.new_achievements_since(before) == {"First Game Unlocked!"}

    def test_century_club(self):
        ledger, _ = run([True] * 10)

        assert ledger.achievements == {"First Game Unlocked!", "Century Club"}
        assert ledger.unlocks == {MEMORY_GAME_UNLOCK}

    def test_members_never_removed(self):
        _, history = run([True] * 5 + [False] * 5 + [True, False] * 3)

        for earlier, later in zip(history, history[1:]):
            assert earlier.achievements <= later.achievements
            assert earlier.unlocks <= later.unlocks
            for module, count in earlier.module_mastery.items():
                assert later.module_mastery[module] >= count

    def test_evaluate_rules_is_idempotent(self):
        once = evaluate_rules(120, set(), set())
        twice = evaluate_rules(120, *once)

        assert once == twice

    def test_rule_order_independent_of_declaration(self):
        rules = [ThresholdRule(100, "Hundred"), ThresholdRule(20, "Twenty", "puzzle")]

        achievements, unlocks = evaluate_rules(30, set(), set(), rules)

        assert achievements == {"Twenty"}
        assert unlocks == {"puzzle"}

    def test_existing_members_kept_below_threshold(self):
        achievements, unlocks = evaluate_rules(0, {"Legacy"}, {"old_game"})

        assert achievements == {"Legacy"}
        assert unlocks == {"old_game"}

    def test_rules_from_settings(self, settings):
        rules = rules_from_settings(settings)

        assert [r.threshold for r in rules] == [50, 100]
        assert rules[0].unlock == MEMORY_GAME_UNLOCK


class TestLedgerRecord:
    """Tests for store serialization."""

    def test_round_trip(self):
        ledger, _ = run([True] * 6)

        assert ProgressLedger.from_record(ledger.to_record()) == ledger

    def test_missing_record_is_zeroed(self):
        assert ProgressLedger.from_record(None) == ProgressLedger()

    def test_accuracy_with_no_answers(self):
        assert ProgressLedger().accuracy == 0.0

    def test_rejects_inconsistent_counts(self):
        with pytest.raises(ValueError):
            ProgressLedger(correct_answers=3, total_answers=2)
