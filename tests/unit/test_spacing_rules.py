"""Unit tests for blank-line spacing between typed lines."""

import pytest

from screenplay_classifier.line_types import Line, LineType
from screenplay_classifier.output.spacing_rules import (
    SPACING_RULES,
    apply_spacing_rules,
    get_spacing_rule,
    is_blank_line,
)

BLANK = Line("", LineType.BLANK)


def line(line_type, text="x"):
    return Line(text, line_type)


def types_of(lines):
    return [l.type for l in lines]


class TestSpacingRules:
    """Test rule lookup and application."""

    def test_rule_lookup(self):
        assert get_spacing_rule(LineType.CHARACTER, LineType.DIALOGUE) is False
        assert get_spacing_rule(LineType.ACTION, LineType.CHARACTER) is True
        assert get_spacing_rule(LineType.CHARACTER, LineType.PARENTHETICAL) is None
        assert get_spacing_rule(LineType.BLANK, LineType.ACTION) is None

    def test_blank_removed_between_character_and_dialogue(self):
        result = apply_spacing_rules([line(LineType.CHARACTER), BLANK, BLANK, line(LineType.DIALOGUE)])
        assert types_of(result) == [LineType.CHARACTER, LineType.DIALOGUE]

    def test_blank_inserted_between_dialogue_and_character(self):
        result = apply_spacing_rules([line(LineType.DIALOGUE), line(LineType.CHARACTER)])
        assert types_of(result) == [LineType.DIALOGUE, LineType.BLANK, LineType.CHARACTER]

    def test_multiple_blanks_collapse_to_one(self):
        result = apply_spacing_rules([line(LineType.ACTION), BLANK, BLANK, BLANK, line(LineType.ACTION)])
        assert types_of(result) == [LineType.ACTION, LineType.BLANK, LineType.ACTION]

    def test_unlisted_pair_keeps_author_blanks(self):
        result = apply_spacing_rules([line(LineType.CHARACTER), BLANK, BLANK, line(LineType.PARENTHETICAL)])
        assert types_of(result) == [LineType.CHARACTER, LineType.BLANK, LineType.BLANK, LineType.PARENTHETICAL]

    def test_leading_and_trailing_blanks_are_kept(self):
        result = apply_spacing_rules([BLANK, line(LineType.ACTION), BLANK])
        assert types_of(result) == [LineType.BLANK, LineType.ACTION, LineType.BLANK]

    def test_empty_action_counts_as_blank(self):
        assert is_blank_line(Line("  ", LineType.ACTION))
        result = apply_spacing_rules([line(LineType.CHARACTER), Line("", LineType.ACTION), line(LineType.DIALOGUE)])
        assert types_of(result) == [LineType.CHARACTER, LineType.DIALOGUE]

    def test_empty_input(self):
        assert apply_spacing_rules([]) == []


class TestSpacingInvariants:
    """Properties that hold for any input sequence."""

    SEQUENCES = [
        [LineType.CHARACTER, LineType.BLANK, LineType.DIALOGUE, LineType.CHARACTER, LineType.DIALOGUE],
        [LineType.BASMALA, LineType.SCENE_HEADER_TOP_LINE, LineType.SCENE_HEADER_3, LineType.ACTION,
         LineType.BLANK, LineType.BLANK, LineType.ACTION, LineType.TRANSITION],
        [LineType.BLANK, LineType.CHARACTER, LineType.PARENTHETICAL, LineType.BLANK, LineType.DIALOGUE,
         LineType.BLANK, LineType.BLANK],
    ]

    @pytest.mark.parametrize("sequence", SEQUENCES)
    def test_rules_hold_after_application(self, sequence):
        result = apply_spacing_rules([line(t) if t != LineType.BLANK else BLANK for t in sequence])
        for previous, following in zip(result, result[1:]):
            if get_spacing_rule(previous.type, following.type) is True:
                pytest.fail(f"missing blank between {previous.type} and {following.type}")
        non_blank = [(i, l) for i, l in enumerate(result) if l.type != LineType.BLANK]
        for (i, previous), (j, following) in zip(non_blank, non_blank[1:]):
            rule = SPACING_RULES.get((previous.type, following.type))
            if rule is False:
                assert j == i + 1
            if rule is True:
                assert j == i + 2

    @pytest.mark.parametrize("sequence", SEQUENCES)
    def test_idempotent(self, sequence):
        once = apply_spacing_rules([line(t) if t != LineType.BLANK else BLANK for t in sequence])
        twice = apply_spacing_rules(once)
        assert types_of(twice) == types_of(once)
