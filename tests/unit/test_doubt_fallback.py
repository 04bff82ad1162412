"""Unit tests for doubt scoring and the pair-specific fallback."""

from unittest.mock import patch

from screenplay_classifier.line_types import LineType, Confidence, ClassificationScore, Candidate
from screenplay_classifier.classification.doubt import calculate_doubt, rank_candidates
from screenplay_classifier.classification.fallback import apply_smart_fallback


def scores_of(**values):
    mapping = {
        "character": LineType.CHARACTER,
        "dialogue": LineType.DIALOGUE,
        "action": LineType.ACTION,
        "parenthetical": LineType.PARENTHETICAL,
        "place": LineType.SCENE_HEADER_3,
    }
    return {
        mapping[name]: ClassificationScore(value, Confidence.from_score(value))
        for name, value in values.items()
    }


class TestRankCandidates:
    """Test candidate ordering."""

    def test_descending_with_fixed_tie_order(self):
        ranked = rank_candidates(scores_of(action=50, character=50, dialogue=70))
        assert [c.type for c in ranked] == [LineType.DIALOGUE, LineType.CHARACTER, LineType.ACTION]


class TestCalculateDoubt:
    """Test the doubt score."""

    def test_clear_winner_has_no_doubt(self):
        doubt = calculate_doubt(scores_of(character=100, dialogue=20, action=10, parenthetical=0, place=0))
        assert doubt.doubt_score == 0
        assert not doubt.needs_review
        assert [c.type for c in doubt.top_candidates] == [LineType.CHARACTER, LineType.DIALOGUE]

    def test_close_weak_scores_are_doubtful(self):
        doubt = calculate_doubt(scores_of(character=32, action=30, dialogue=0))
        # gap < 15, top < 40, tie, low confidence
        assert doubt.doubt_score == 100
        assert doubt.needs_review

    def test_threshold_is_inclusive(self):
        # gap 10 -> 50, top 60 -> 0, medium confidence -> 10
        doubt = calculate_doubt(scores_of(action=60, character=50), threshold=60)
        assert doubt.doubt_score == 60
        assert doubt.needs_review

    def test_default_threshold_comes_from_settings(self):
        with patch("screenplay_classifier.classification.doubt.settings.NEEDS_REVIEW_THRESHOLD", 100):
            doubt = calculate_doubt(scores_of(action=60, character=50))
        assert not doubt.needs_review

    def test_empty_scores(self):
        doubt = calculate_doubt({})
        assert doubt.doubt_score == 0
        assert doubt.top_candidates == []


class TestSmartFallback:
    """Test the pair-specific tie-break rules."""

    @staticmethod
    def pair(first, second, first_score=50, second_score=45):
        return [
            Candidate(first, first_score, Confidence.MEDIUM),
            Candidate(second, second_score, Confidence.MEDIUM),
        ]

    def test_wide_gap_leaves_argmax(self):
        candidates = self.pair(LineType.ACTION, LineType.CHARACTER, 90, 20)
        assert apply_smart_fallback(candidates, None, "أين كنت؟", "ياسين") is None

    def test_action_character_with_dialogue_following(self):
        candidates = self.pair(LineType.ACTION, LineType.CHARACTER)
        decision = apply_smart_fallback(candidates, LineType.ACTION, "أين كنت طوال الليل؟", "ياسين")
        assert decision.type == LineType.CHARACTER

    def test_action_character_without_dialogue_following(self):
        candidates = self.pair(LineType.CHARACTER, LineType.ACTION)
        decision = apply_smart_fallback(candidates, LineType.ACTION, "مشهد 2", "ياسين")
        assert decision.type == LineType.ACTION

    def test_action_dialogue_in_block(self):
        candidates = self.pair(LineType.ACTION, LineType.DIALOGUE)
        assert apply_smart_fallback(candidates, LineType.CHARACTER, None, "نعم").type == LineType.DIALOGUE
        assert apply_smart_fallback(candidates, LineType.DIALOGUE, None, "نعم").type == LineType.DIALOGUE
        assert apply_smart_fallback(candidates, LineType.ACTION, None, "نعم").type == LineType.ACTION

    def test_action_parenthetical(self):
        candidates = self.pair(LineType.ACTION, LineType.PARENTHETICAL)
        assert apply_smart_fallback(candidates, LineType.DIALOGUE, None, "ببطء").type == LineType.PARENTHETICAL
        assert apply_smart_fallback(candidates, LineType.SCENE_HEADER_3, None, "ببطء").type == LineType.ACTION

    def test_character_dialogue(self):
        candidates = self.pair(LineType.CHARACTER, LineType.DIALOGUE)
        assert apply_smart_fallback(candidates, LineType.CHARACTER, None, "نعم").type == LineType.DIALOGUE
        assert apply_smart_fallback(candidates, LineType.ACTION, None, "سارة:").type == LineType.CHARACTER
        assert apply_smart_fallback(candidates, LineType.ACTION, None, "نعم") is None

    def test_uncovered_pair(self):
        candidates = self.pair(LineType.SCENE_HEADER_3, LineType.DIALOGUE)
        assert apply_smart_fallback(candidates, None, None, "مكتب") is None
