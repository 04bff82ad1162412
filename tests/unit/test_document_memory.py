"""Unit tests for per-document character and place memory."""

from screenplay_classifier.line_types import Confidence
from screenplay_classifier.classification.document_memory import DocumentMemory


class TestCharacterRegistry:
    """Test weighted character recall."""

    def test_unknown_name(self, memory):
        assert memory.is_known_character("ياسين") is None

    def test_single_medium_sighting_is_medium(self, memory):
        memory.add_character("ياسين", Confidence.MEDIUM)
        assert memory.is_known_character("ياسين") == Confidence.MEDIUM

    def test_single_high_sighting_is_medium(self, memory):
        memory.add_character("ياسين:", Confidence.HIGH)
        assert memory.is_known_character("ياسين") == Confidence.MEDIUM

    def test_repeated_sightings_reach_high(self, memory):
        memory.add_character("ياسين:", Confidence.HIGH)
        memory.add_character("ياسين", Confidence.MEDIUM)
        assert memory.is_known_character("ياسين:") == Confidence.HIGH

    def test_too_short_names_are_ignored(self, memory):
        memory.add_character("أ:", Confidence.HIGH)
        assert memory.get_all_characters() == []

    def test_clear_forgets_everything(self, memory):
        memory.add_character("سارة", Confidence.HIGH)
        memory.add_place("منزل أحمد")
        memory.clear()
        assert memory.is_known_character("سارة") is None
        assert not memory.is_known_place("منزل أحمد")


class TestPrePass:
    """Test seeding from colon-terminated cues."""

    def test_seeds_colon_cues(self, memory):
        seeded = memory.seed_from_lines(["ياسين:", "يجلس على الكرسي.", "سارة :", ""])
        assert seeded == 2
        assert set(memory.get_all_characters()) == {"ياسين", "سارة"}

    def test_skips_long_lines_and_headers(self, memory):
        seeded = memory.seed_from_lines([
            "قال لي أحد الأصدقاء في الصباح الباكر:",
            "مشهد 3:",
            "CUT TO:",
        ])
        assert seeded == 0
        assert memory.get_all_characters() == []


class TestSnapshot:
    """Test that snapshots are independent copies."""

    def test_snapshot_does_not_share_state(self, memory):
        memory.add_character("سارة", Confidence.HIGH)
        copy = memory.snapshot()
        copy.add_character("أحمد", Confidence.HIGH)
        copy.add_place("مكتب")

        assert memory.is_known_character("أحمد") is None
        assert not memory.is_known_place("مكتب")
        assert copy.is_known_character("سارة") == Confidence.MEDIUM

    def test_places(self):
        memory = DocumentMemory()
        memory.add_place(" مكتب المدير ")
        assert memory.is_known_place("مكتب المدير")
