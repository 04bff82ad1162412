"""
End-to-end tests: raw screenplay text in, typed JSON lines out.

These run the full pipeline (pre-pass, document walk, decoding, spacing)
and the command line entry point. The LLM review layer stays disabled.
"""

import asyncio
import json
import logging
import sys
from unittest.mock import patch

import pytest

import app
from screenplay_classifier import classify, ScreenplayClassifier, ClassifyOptions
from screenplay_classifier.line_types import LineType


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


class TestFullPipeline:
    """Test the pipeline on a complete short screenplay."""

    EXPECTED_TYPES = [
        LineType.BASMALA,
        LineType.SCENE_HEADER_TOP_LINE,
        LineType.SCENE_HEADER_3,
        LineType.ACTION,
        LineType.CHARACTER,
        LineType.PARENTHETICAL,
        LineType.DIALOGUE,
        LineType.CHARACTER,
        LineType.DIALOGUE,
        LineType.TRANSITION,
        LineType.SCENE_HEADER_TOP_LINE,
        LineType.SCENE_HEADER_3,
        LineType.ACTION,
    ]

    def test_greedy_output(self, sample_screenplay):
        lines = classify(sample_screenplay)
        assert [line.type for line in lines if line.type != LineType.BLANK] == self.EXPECTED_TYPES
        assert lines[0].text == "بسم الله الرحمن الرحيم"
        assert any(line.text == "سارة:" for line in lines)

    def test_sequence_decoder_agrees_on_structure(self, sample_screenplay):
        lines = classify(sample_screenplay, use_sequence_decoder=True)
        types = [line.type for line in lines]
        assert types.count(LineType.SCENE_HEADER_TOP_LINE) == 2
        assert types.count(LineType.SCENE_HEADER_3) == 2
        assert LineType.CHARACTER in types
        assert LineType.DIALOGUE in types
        for previous, following in zip(lines, lines[1:]):
            if previous.type == LineType.CHARACTER:
                assert following.type != LineType.BLANK

    def test_json_shape(self, sample_screenplay):
        lines = ScreenplayClassifier().classify(sample_screenplay, ClassifyOptions(include_doubt_score=True))
        payload = json.loads(json.dumps([line.to_dict() for line in lines], ensure_ascii=False))
        assert all(set(item) <= {"text", "type", "doubtScore"} for item in payload)
        scored = [item for item in payload if item["type"] != "blank"]
        assert all(0 <= item["doubtScore"] <= 100 for item in scored)

    def test_async_entry_point_without_review(self, sample_screenplay):
        classifier = ScreenplayClassifier()
        lines = asyncio.run(classifier.classify_async(sample_screenplay, ClassifyOptions(enable_review=False)))
        assert [line.type for line in lines if line.type != LineType.BLANK] == self.EXPECTED_TYPES


class TestCommandLine:
    """Test the command line entry point."""

    def run_main(self, argv, stdin_text=None):
        stdin = patch.object(sys, "stdin")
        with patch.object(sys, "argv", ["app.py"] + argv), stdin as mock_stdin:
            if stdin_text is not None:
                mock_stdin.read.return_value = stdin_text
            app.main()

    def test_file_input(self, tmp_path, monkeypatch, capsys, restore_logging):
        monkeypatch.chdir(tmp_path)
        script = tmp_path / "episode.txt"
        script.write_text("أحمد:\nمرحبا بك", encoding="utf-8")

        self.run_main([str(script)])
        payload = json.loads(capsys.readouterr().out)
        assert payload == [
            {"text": "أحمد:", "type": "character"},
            {"text": "مرحبا بك", "type": "dialogue"},
        ]
        assert (tmp_path / "logs" / "screenplay_classifier.log").exists()

    def test_stdin_with_doubt_and_output_file(self, tmp_path, monkeypatch, restore_logging):
        monkeypatch.chdir(tmp_path)
        self.run_main(["--viterbi", "--with-doubt", "--output", "result.json"], stdin_text="أحمد:\nمرحبا بك")

        payload = json.loads((tmp_path / "output" / "result.json").read_text(encoding="utf-8"))
        assert [item["type"] for item in payload] == ["character", "dialogue"]
        assert all("doubtScore" in item for item in payload)

    def test_stats_report(self, tmp_path, monkeypatch, capsys, restore_logging):
        monkeypatch.chdir(tmp_path)
        self.run_main(["--stats"], stdin_text="أحمد:\nمرحبا بك")
        payload = json.loads(capsys.readouterr().out)
        assert payload["total_lines"] == 2
        assert "top_ambiguities" in payload

    def test_compare_report(self, tmp_path, monkeypatch, capsys, restore_logging):
        monkeypatch.chdir(tmp_path)
        self.run_main(["--compare"], stdin_text="أحمد:\nمرحبا بك")
        payload = json.loads(capsys.readouterr().out)
        assert payload["total_lines"] == 2
        assert payload["agreements"] == 2

    def test_missing_file(self, tmp_path, monkeypatch, restore_logging):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(SystemExit) as exc_info:
            self.run_main([str(tmp_path / "missing.txt")])
        assert exc_info.value.code == 1
