"""Unit tests for LLM review response parsing and prompt building."""

import pytest

from screenplay_classifier.line_types import LineType
from screenplay_classifier.review.parsing import ReviewResponseParser
from screenplay_classifier.review.prompt_factory import ReviewPromptFactory, ReviewItem


class TestReviewResponseParser:
    """Test tolerant parsing of review replies."""

    @pytest.fixture
    def parser(self):
        return ReviewResponseParser()

    def test_plain_array(self, parser):
        reply = '[{"index": 1, "suggestedType": "character", "confidence": 90, "reason": "name"}]'
        suggestions = parser.parse(reply, [1])
        assert len(suggestions) == 1
        assert suggestions[0].index == 1
        assert suggestions[0].suggested_type == LineType.CHARACTER
        assert suggestions[0].confidence == 90
        assert suggestions[0].reason == "name"

    def test_code_fence_and_prose(self, parser):
        reply = 'Here you go:\n```json\n[{"index": 2, "suggestedType": "dialogue", "confidence": 70}]\n```\nDone.'
        suggestions = parser.parse(reply, [2])
        assert [s.suggested_type for s in suggestions] == [LineType.DIALOGUE]

    def test_trailing_comma(self, parser):
        reply = '[{"index": 0, "suggestedType": "action", "confidence": 60,},]'
        assert parser.parse(reply, [0])[0].suggested_type == LineType.ACTION

    def test_wrapped_object(self, parser):
        reply = '{"suggestions": [{"index": 3, "suggested_type": "scene-header-3", "confidence": 0.8}]}'
        suggestions = parser.parse(reply, [3])
        assert suggestions[0].suggested_type == LineType.SCENE_HEADER_3
        assert suggestions[0].confidence == 80

    def test_unknown_index_is_dropped(self, parser):
        reply = '[{"index": 9, "suggestedType": "action", "confidence": 60}]'
        assert parser.parse(reply, [0, 1]) == []

    def test_unknown_type_is_dropped(self, parser):
        reply = '[{"index": 0, "suggestedType": "monologue", "confidence": 60}]'
        assert parser.parse(reply, [0]) == []

    def test_not_json(self, parser):
        assert parser.parse("I cannot help with that.", [0]) == []
        assert parser.parse("", [0]) == []

    @pytest.mark.parametrize("label, expected", [
        ("Character", LineType.CHARACTER),
        ("scene_header_3", LineType.SCENE_HEADER_3),
        ("speaker", LineType.CHARACTER),
        ("حوار", LineType.DIALOGUE),
        ("paranthetical", LineType.PARENTHETICAL),
    ])
    def test_label_mapping(self, parser, label, expected):
        assert parser.map_label(label) == expected

    def test_label_mapping_rejects_noise(self, parser):
        assert parser.map_label("xyz") is None
        assert parser.map_label(None) is None

    @pytest.mark.parametrize("value, expected", [(85, 85), (0.5, 50), ("70", 70), (150, 100), (-5, 0), ("high", 0)])
    def test_confidence_normalization(self, value, expected):
        assert ReviewResponseParser.normalize_confidence(value) == expected


class TestReviewPromptFactory:
    """Test review prompt construction."""

    def test_empty_batch(self):
        assert ReviewPromptFactory().create_review_prompt([]) == ""

    def test_prompt_lists_lines_and_types(self):
        item = ReviewItem(
            index=4,
            text="ياسين",
            current_type=LineType.ACTION,
            doubt_score=80,
            context_before=["[character] أحمد:"],
            context_after=[],
            alternative_type=LineType.CHARACTER,
        )
        prompt = ReviewPromptFactory().create_review_prompt([item])

        assert 'LINE 4: "ياسين"' in prompt
        assert "current type: action (runner-up: character), doubt 80" in prompt
        assert "[character] أحمد:" in prompt
        assert "(end of document)" in prompt
        for line_type in LineType:
            assert f"- {line_type.value}:" in prompt

    def test_correction_prompt_includes_broken_reply(self):
        prompt = ReviewPromptFactory().create_json_correction_prompt("[{broken")
        assert "[{broken" in prompt

    def test_quick_analysis(self):
        notes = ReviewPromptFactory.quick_analysis("أحمد:")
        assert "1 words" in notes
        assert "ends with colon" in notes
