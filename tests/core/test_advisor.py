"""Tests for history pattern advice."""

import pytest

from core.hand import Winner
from core.strategy import PatternRule, suggest_next


class TestSuggestNext:
    """Tests for suggest_next rule ordering."""

    @pytest.mark.parametrize("history", ["", "P", "PB"])
    def test_waits_for_three_hands(self, history):
        suggestion = suggest_next(history)
        assert suggestion.rule == PatternRule.WAITING
        assert suggestion.next_move is None
        assert suggestion.confidence == 0

    def test_ties_do_not_count_towards_patterns(self):
        suggestion = suggest_next("PTT")
        assert suggestion.rule == PatternRule.NO_PATTERN
        assert suggestion.confidence == 20

    def test_dragon_follows_streak(self):
        suggestion = suggest_next("PBBBB")
        assert suggestion.rule == PatternRule.DRAGON
        assert suggestion.next_move == Winner.BANKER
        assert suggestion.confidence == 85

    def test_dragon_ignores_ties_inside_streak(self):
        assert suggest_next("PPTPP").rule == PatternRule.DRAGON

    def test_ping_pong_switches(self):
        suggestion = suggest_next("BPBP")
        assert suggestion.rule == PatternRule.PING_PONG
        assert suggestion.next_move == Winner.BANKER
        assert suggestion.confidence == 75

    def test_double_switches(self):
        suggestion = suggest_next("BBPP")
        assert suggestion.rule == PatternRule.DOUBLE
        assert suggestion.next_move == Winner.BANKER
        assert suggestion.confidence == 60

    def test_trend_rule(self):
        suggestion = suggest_next("BBBPBB")
        assert suggestion.rule == PatternRule.TREND
        assert suggestion.next_move == Winner.BANKER
        assert suggestion.confidence == 50

    def test_no_pattern(self):
        suggestion = suggest_next("PBBPPB")
        assert suggestion.rule == PatternRule.NO_PATTERN
        assert suggestion.next_move is None
