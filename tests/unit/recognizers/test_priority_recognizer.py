"""
Unit tests for the priority recognizer.

Tests the pattern table, first-come-first-served suppression of
overlapping matches, confidence adjustment and display text.
"""

import re

import pytest

from smart_task_parser.models import AnnotationType, PriorityLevel
from smart_task_parser.recognizers import PRIORITY_PATTERNS, PriorityPattern, PriorityRecognizer
from smart_task_parser.recognizers.priority_recognizer import adjust_confidence, format_display_text


@pytest.fixture
def recognizer():
    return PriorityRecognizer()


class TestPriorityRecognizerIdentity:
    """Test recognizer identity and ranking."""

    def test_identity(self, recognizer):
        assert recognizer.id == "priority-recognizer"
        assert recognizer.name == "Priority Recognizer"
        assert recognizer.priority == 8


class TestPriorityTest:
    """Test the cheap pre-check."""

    def test_empty_text(self, recognizer):
        assert recognizer.test("") is False

    def test_no_priority(self, recognizer):
        assert recognizer.test("buy milk") is False

    def test_word_boundaries(self, recognizer):
        """'high' inside 'highway' is not a priority."""
        assert recognizer.test("take the highway home") is False

    @pytest.mark.parametrize("text", ["p1 fix bug", "this is URGENT", "do it later", "nice to have"])
    def test_detects_priority(self, recognizer, text):
        assert recognizer.test(text) is True


class TestPriorityParse:
    """Test priority extraction."""

    def test_shorthand_p1(self, recognizer):
        tags = recognizer.parse("p1 meeting tomorrow")

        assert len(tags) == 1
        tag = tags[0]
        assert tag.type == AnnotationType.PRIORITY
        assert tag.value == PriorityLevel.HIGH
        assert tag.display_text == "P1"
        assert (tag.start_index, tag.end_index) == (0, 2)
        assert tag.original_text == "p1"
        assert tag.confidence == pytest.approx(0.98)
        assert tag.source == "priority-recognizer"

    @pytest.mark.parametrize(
        "text,level",
        [("P2 review", PriorityLevel.MEDIUM), ("review p3", PriorityLevel.LOW)],
    )
    def test_shorthand_levels_case_insensitive(self, recognizer, text, level):
        tags = recognizer.parse(text)

        assert len(tags) == 1
        assert tags[0].value == level
        assert tags[0].display_text == tags[0].original_text.upper()

    def test_overlapping_matches_suppressed(self, recognizer):
        """'high' inside an accepted 'high priority' match is discarded."""
        tags = recognizer.parse("urgent high priority task")

        assert [t.original_text for t in tags] == ["high priority", "urgent"]
        assert all(t.value == PriorityLevel.HIGH for t in tags)
        for i, a in enumerate(tags):
            for b in tags[i + 1:]:
                assert not a.overlaps(b)

    def test_earlier_pattern_wins_overlap(self, recognizer):
        """'low priority' (earlier phrase pattern) beats the bare 'low' pattern."""
        tags = recognizer.parse("low priority cleanup")

        assert len(tags) == 1
        assert tags[0].original_text == "low priority"
        assert tags[0].value == PriorityLevel.LOW
        assert tags[0].display_text == "Low Priority"

    def test_phrase_bonus(self, recognizer):
        tags = recognizer.parse("nice to have: dark mode")

        assert len(tags) == 1
        assert tags[0].confidence == pytest.approx(0.9)

    def test_sorted_by_confidence_then_position(self, recognizer):
        tags = recognizer.parse("maybe later, someday")

        confidences = [t.confidence for t in tags]
        assert confidences == sorted(confidences, reverse=True)
        # maybe/someday share 0.8 and keep text order, later is 0.75
        assert [t.original_text for t in tags] == ["maybe", "someday", "later"]

    def test_no_match_returns_empty(self, recognizer):
        assert recognizer.parse("water the plants") == []

    def test_empty_text(self, recognizer):
        assert recognizer.parse("") == []

    def test_custom_patterns(self):
        recognizer = PriorityRecognizer(
            patterns=[PriorityPattern.compile(r"\bblocker\b", PriorityLevel.HIGH, 0.9)]
        )

        tags = recognizer.parse("release blocker")

        assert len(tags) == 1
        assert tags[0].value == PriorityLevel.HIGH

    def test_invalid_custom_pattern(self):
        with pytest.raises(re.error):
            PriorityPattern.compile(r"(unclosed", PriorityLevel.LOW, 0.5)


class TestAdjustConfidence:
    """Test context-based confidence adjustment."""

    def test_short_match_in_long_text(self):
        text = "P2 " + "prepare the quarterly numbers for the finance team review"
        assert len(text) > 50

        # 0.95 * 0.8, then shorthand +0.1
        assert adjust_confidence(0.95, text, 0, 2) == pytest.approx(0.86)

    def test_flanked_match_reduced(self):
        # "hi" inside "this": both neighbours alphanumeric
        assert adjust_confidence(0.8, "this", 1, 3) == pytest.approx(0.8 * 0.7 * 0.7)

    def test_standalone_word_unchanged(self):
        assert adjust_confidence(0.75, "high stakes", 0, 4) == pytest.approx(0.75)

    def test_phrase_bonus_capped(self):
        assert adjust_confidence(0.93, "top priority", 0, 12) == pytest.approx(0.95)

    def test_clamped_to_minimum(self):
        assert adjust_confidence(0.1, "abcd", 1, 3) == pytest.approx(0.1)


class TestDisplayText:
    """Test display text formatting."""

    def test_shorthand_uppercased(self):
        assert format_display_text(PriorityLevel.HIGH, "p1") == "P1"

    @pytest.mark.parametrize(
        "level,expected",
        [
            (PriorityLevel.HIGH, "High Priority"),
            (PriorityLevel.MEDIUM, "Medium Priority"),
            (PriorityLevel.LOW, "Low Priority"),
        ],
    )
    def test_level_text(self, level, expected):
        assert format_display_text(level, "whatever") == expected


class TestPatternTable:
    """Test the default pattern table."""

    def test_table_order_starts_with_shorthand(self):
        assert [p.level for p in PRIORITY_PATTERNS[:3]] == [
            PriorityLevel.HIGH,
            PriorityLevel.MEDIUM,
            PriorityLevel.LOW,
        ]

    def test_patterns_case_insensitive(self):
        assert all(p.pattern.flags & re.IGNORECASE for p in PRIORITY_PATTERNS)
