import logging
from typing import Dict, List, Optional, Set, Iterable

from ..line_types import Confidence
from ..text_processing.normalizer import normalize_line, word_count, ends_with_colon, strip_trailing_colon
from ..text_processing.patterns import is_scene_header_start, is_transition

# Weight added per sighting
HIGH_CONFIDENCE_WEIGHT = 2
MEDIUM_CONFIDENCE_WEIGHT = 1

# Accumulated weight needed for each recall tier
KNOWN_HIGH_THRESHOLD = 3
KNOWN_MEDIUM_THRESHOLD = 1

MIN_NAME_LENGTH = 2
PREPASS_MAX_WORDS = 5


class DocumentMemory:
    """Per-document registry of character names and places learned while classifying.

    Names that begin with letters shared by common verb prefixes (ياسين, يوسف,
    تامر) look like action lines to the pattern library. Once a name has been
    seen as a colon-terminated cue, later bare occurrences are recalled here
    and scored as characters instead.

    One instance belongs to one document. Weights only grow; ``clear`` is the
    single way to forget, and must be called before a new document.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.characters: Dict[str, int] = {}
        self.places: Set[str] = set()

    @staticmethod
    def normalize_name(name: str) -> str:
        return strip_trailing_colon(name or "").strip()

    def add_character(self, name: str, confidence: Confidence) -> None:
        normalized = self.normalize_name(name)
        if len(normalized) < MIN_NAME_LENGTH:
            return
        increment = HIGH_CONFIDENCE_WEIGHT if confidence == Confidence.HIGH else MEDIUM_CONFIDENCE_WEIGHT
        self.characters[normalized] = self.characters.get(normalized, 0) + increment

    def is_known_character(self, name: str) -> Optional[Confidence]:
        weight = self.characters.get(self.normalize_name(name), 0)
        if weight >= KNOWN_HIGH_THRESHOLD:
            return Confidence.HIGH
        if weight >= KNOWN_MEDIUM_THRESHOLD:
            return Confidence.MEDIUM
        return None

    def add_place(self, place: str) -> None:
        normalized = (place or "").strip()
        if len(normalized) < MIN_NAME_LENGTH:
            return
        self.places.add(normalized)

    def is_known_place(self, text: str) -> bool:
        return (text or "").strip() in self.places

    def get_all_characters(self) -> List[str]:
        return list(self.characters.keys())

    def seed_from_lines(self, lines: Iterable[str]) -> int:
        """Pre-pass: register short colon-terminated cues before any scoring.

        Returns the number of cues registered.
        """
        seeded = 0
        for line in lines:
            trimmed = normalize_line(line)
            if not ends_with_colon(trimmed) or word_count(trimmed) > PREPASS_MAX_WORDS:
                continue
            if is_scene_header_start(trimmed) or is_transition(trimmed):
                continue
            self.add_character(trimmed, Confidence.HIGH)
            seeded += 1
        if seeded:
            self.logger.debug(f"Pre-pass seeded {seeded} character cues ({len(self.characters)} unique)")
        return seeded

    def snapshot(self) -> "DocumentMemory":
        copy = DocumentMemory()
        copy.characters = dict(self.characters)
        copy.places = set(self.places)
        return copy

    def clear(self) -> None:
        self.characters.clear()
        self.places.clear()
