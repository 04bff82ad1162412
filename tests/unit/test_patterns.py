"""Unit tests for the screenplay pattern library."""

import pytest

from screenplay_classifier.text_processing.patterns import (
    is_basmala,
    is_scene_header_start,
    is_scene_header_1,
    is_transition,
    is_parenthetical_shape,
    is_time_location_only,
    is_time_location_piece,
    starts_with_known_place,
    has_location_prefix,
    has_place_action_verb,
    is_action_verb_start,
    matches_action_start_pattern,
    is_character_line,
    is_likely_action,
)


class TestStructuralPatterns:
    """Test the fixed-shape patterns used by the fast path."""

    def test_basmala(self):
        assert is_basmala("بسم الله الرحمن الرحيم")
        assert is_basmala("  بسم الله الرحمن الرحيم  ")
        assert not is_basmala("بسم الله")

    @pytest.mark.parametrize("line", [
        "مشهد 1 - داخلي - ليل",
        "مشهد ١٢",
        "م. 3 خارجي - نهار",
        "scene 4",
    ])
    def test_scene_header_start(self, line):
        assert is_scene_header_start(line)

    def test_scene_header_start_requires_number(self):
        assert not is_scene_header_start("مشهد رائع")

    def test_bare_scene_number(self):
        assert is_scene_header_1("مشهد 7")
        assert not is_scene_header_1("مشهد 7 - داخلي")

    @pytest.mark.parametrize("line", ["قطع", "قطع إلى", "مزج", "CUT TO:"])
    def test_transition(self, line):
        assert is_transition(line)

    def test_transition_must_stand_alone(self):
        assert not is_transition("قطع أحمد الخبز")

    def test_parenthetical_shape(self):
        assert is_parenthetical_shape("(بصوت منخفض)")
        assert not is_parenthetical_shape("بصوت منخفض")


class TestSceneHeaderPieces:
    """Test time/location and place patterns."""

    @pytest.mark.parametrize("line", ["داخلي - ليل", "خارجي - نهار", "ليل - داخلي", "داخلي/نهار"])
    def test_time_location_only(self, line):
        assert is_time_location_only(line)

    def test_time_location_with_place_is_not_only(self):
        assert not is_time_location_only("داخلي - ليل - منزل")

    def test_time_location_piece(self):
        assert is_time_location_piece("داخلي")
        assert is_time_location_piece("نهار")
        assert not is_time_location_piece("منزل")

    def test_known_place(self):
        assert starts_with_known_place("منزل أحمد")
        assert starts_with_known_place("مكتب")
        assert not starts_with_known_place("أحمد")

    def test_location_prefix(self):
        assert has_location_prefix("أمام المدرسة")
        assert not has_location_prefix("أمامه")

    def test_place_action_verb(self):
        assert has_place_action_verb("الشارع يدخل أحمد")
        assert not has_place_action_verb("منزل أحمد")


class TestActionPatterns:
    """Test action verb detection."""

    def test_lexicon_verb_start(self):
        assert is_action_verb_start("يدخل أحمد الغرفة")
        assert is_action_verb_start("تجلس سارة")

    def test_verb_behind_particle(self):
        assert is_action_verb_start("ويجلس على الكرسي")

    def test_name_is_not_a_verb(self):
        assert not is_action_verb_start("أحمد")

    def test_camera_pattern(self):
        assert matches_action_start_pattern("نرى الشارع مزدحماً")

    def test_single_word_needs_lexicon_verb(self):
        assert not matches_action_start_pattern("ياسين")
        assert matches_action_start_pattern("يجلس")

    def test_likely_action(self):
        assert is_likely_action("يدخل أحمد الغرفة ببطء")
        assert not is_likely_action("أحمد:")
        assert not is_likely_action("")


class TestCharacterLine:
    """Test the character cue shape."""

    @pytest.mark.parametrize("line", ["أحمد:", "أحمد", "صوت سارة:", "الأم :"])
    def test_character_shapes(self, line):
        assert is_character_line(line)

    @pytest.mark.parametrize("line", [
        "يدخل أحمد:",
        "مشهد 1",
        "قطع",
        "(بصوت منخفض)",
        "هذا سطر طويل جدا فيه الكثير من الكلمات هنا:",
    ])
    def test_not_character_shapes(self, line):
        assert not is_character_line(line)
