"""Unit tests for the screenplay classifier pipeline."""

import pytest

from screenplay_classifier import classify, ClassifyOptions, ScreenplayClassifier
from screenplay_classifier.line_types import LineType, Confidence
from screenplay_classifier.classification.document_memory import DocumentMemory


def non_blank_types(lines):
    return [line.type for line in lines if line.type != LineType.BLANK]


class TestSegmentDocument:
    """Test the cursor walk over input lines."""

    def test_scene_header_is_split(self, classifier):
        segments = classifier.segment_document(["مشهد 1 - داخلي - ليل - منزل", "يدخل أحمد"])
        assert [(s.text, s.forced_type) for s in segments] == [
            ("مشهد 1 داخلي - ليل", LineType.SCENE_HEADER_TOP_LINE),
            ("منزل", LineType.SCENE_HEADER_3),
            ("يدخل أحمد", None),
        ]
        assert classifier.memory.is_known_place("منزل")

    def test_multi_line_header_advances_cursor(self, classifier):
        lines = ["مشهد 3", "داخلي - نهار", "مكتب المدير", "يجلس المدير خلف مكتبه."]
        segments = classifier.segment_document(lines)
        assert len(segments) == 3
        assert segments[1].source_index == 2
        assert segments[2].source_index == 3

    def test_inline_cue_becomes_two_segments(self, classifier):
        segments = classifier.segment_document(["سارة: كنت عند أمي."])
        assert [(s.text, s.forced_type) for s in segments] == [
            ("سارة:", LineType.CHARACTER),
            ("كنت عند أمي.", LineType.DIALOGUE),
        ]
        assert classifier.memory.is_known_character("سارة") == Confidence.MEDIUM

    def test_standalone_time_location(self, classifier):
        segments = classifier.segment_document(["خارجي - نهار"])
        assert segments[0].forced_type == LineType.SCENE_HEADER_2

    def test_blank_lines(self, classifier):
        segments = classifier.segment_document(["", "  "])
        assert all(s.forced_type == LineType.BLANK for s in segments)


class TestScenarios:
    """End-to-end behaviour on short inputs."""

    @pytest.mark.parametrize("use_sequence_decoder", [False, True])
    def test_scene_header_then_action(self, use_sequence_decoder):
        lines = classify("مشهد 1 - داخلي - ليل - منزل\nيدخل أحمد", use_sequence_decoder=use_sequence_decoder)
        assert non_blank_types(lines) == [
            LineType.SCENE_HEADER_TOP_LINE,
            LineType.SCENE_HEADER_3,
            LineType.ACTION,
        ]
        assert lines[0].text == "مشهد 1 داخلي - ليل"
        assert lines[1].text == "منزل"

    @pytest.mark.parametrize("use_sequence_decoder", [False, True])
    def test_character_then_dialogue(self, use_sequence_decoder):
        lines = classify("أحمد:\nمرحبا بك", use_sequence_decoder=use_sequence_decoder)
        assert [(line.text, line.type) for line in lines] == [
            ("أحمد:", LineType.CHARACTER),
            ("مرحبا بك", LineType.DIALOGUE),
        ]

    @pytest.mark.parametrize("use_sequence_decoder", [False, True])
    def test_parenthetical_alone(self, use_sequence_decoder):
        lines = classify("(بصوت منخفض)", use_sequence_decoder=use_sequence_decoder)
        assert [line.type for line in lines] == [LineType.PARENTHETICAL]

    def test_known_place_after_time_location(self, classifier):
        results = classifier.classify_document("داخلي - نهار\nمكتب")
        assert [r.type for r in results] == [LineType.SCENE_HEADER_2, LineType.SCENE_HEADER_3]
        assert results[1].scores[LineType.SCENE_HEADER_3].score > results[1].scores[LineType.ACTION].score

    def test_remembered_name_is_character(self):
        memory = DocumentMemory()
        memory.add_character("ياسين", Confidence.HIGH)
        results = ScreenplayClassifier(memory=memory).classify_document("ياسين")
        assert results[0].type == LineType.CHARACTER

    def test_basmala_and_transition(self):
        lines = classify("بسم الله الرحمن الرحيم\n\nقطع")
        assert non_blank_types(lines) == [LineType.BASMALA, LineType.TRANSITION]


class TestClassifierBehaviour:
    """Test options, memory and determinism."""

    def test_deterministic_for_same_memory(self, sample_screenplay):
        first = classify(sample_screenplay)
        second = classify(sample_screenplay)
        assert [line.to_dict() for line in first] == [line.to_dict() for line in second]

    def test_memory_is_learned_during_classification(self, classifier):
        classifier.classify_document("أحمد:\nمرحبا بك")
        assert classifier.memory.is_known_character("أحمد") == Confidence.HIGH

    def test_reset_memory(self, classifier):
        classifier.classify_document("أحمد:\nمرحبا بك")
        classifier.reset_memory()
        assert classifier.memory.get_all_characters() == []

    def test_doubt_score_only_when_requested(self):
        plain = classify("أحمد:\nمرحبا بك")
        with_doubt = classify("أحمد:\nمرحبا بك", include_doubt_score=True)
        assert "doubtScore" not in plain[0].to_dict()
        assert "doubtScore" in with_doubt[0].to_dict()

    def test_no_blank_between_character_and_dialogue(self):
        lines = classify("أحمد:\n\n\nمرحبا بك")
        assert [line.type for line in lines] == [LineType.CHARACTER, LineType.DIALOGUE]

    def test_every_result_keeps_its_source_line(self, classifier, sample_screenplay):
        results = classifier.classify_document(sample_screenplay)
        indices = [r.source_index for r in results]
        assert indices == sorted(indices)
        assert indices[-1] == len(sample_screenplay.split("\n")) - 1

    def test_doubt_and_scores_are_bounded(self, classifier, sample_screenplay):
        for result in classifier.classify_document(sample_screenplay):
            assert 0 <= result.doubt_score <= 100
            for score in result.scores.values():
                assert 0 <= score.score <= 100

    def test_empty_document(self):
        assert [line.type for line in classify("")] == [LineType.BLANK]

    def test_review_is_skipped_unless_enabled(self, classifier):
        options = ClassifyOptions(enable_review=False)
        lines = classifier.classify("أحمد:\nمرحبا بك", options)
        assert classifier.review_orchestrator is None
        assert len(lines) == 2

    def test_confidence_follows_score_for_every_candidate(self, classifier):
        text = "مشهد 1 - داخلي - ليل - منزل\nأحمد:\nينظر إليها بغضب شديد"
        for result in classifier.classify_document(text):
            for score in result.scores.values():
                assert score.confidence == Confidence.from_score(score.score)


class TestPunctuationOnlyLines:
    """Lines with no letters or digits are blank separators."""

    @pytest.mark.parametrize("use_sequence_decoder", [False, True])
    def test_bullet_dash_and_ellipsis(self, classifier, use_sequence_decoder):
        results = classifier.classify_document("...\n-\n•\n…", use_sequence_decoder=use_sequence_decoder)
        assert [r.type for r in results] == [LineType.BLANK] * 4
        assert [r.text for r in results] == [""] * 4

    def test_noise_between_cue_and_dialogue(self):
        lines = classify("أحمد:\n...\nمرحبا بك")
        assert [(line.text, line.type) for line in lines] == [
            ("أحمد:", LineType.CHARACTER),
            ("مرحبا بك", LineType.DIALOGUE),
        ]
