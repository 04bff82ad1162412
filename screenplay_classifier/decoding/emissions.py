from typing import Optional

from ..line_types import LineType, Confidence, TypeScores, empty_type_scores, one_hot_scores, clamp_score
from ..classification.document_memory import DocumentMemory
from ..classification.quick_classifier import quick_type
from ..text_processing.normalizer import (
    normalize_line,
    word_count,
    is_blank,
    ends_with_colon,
    has_sentence_punctuation,
    strip_trailing_colon,
)
from ..text_processing.patterns import (
    DIALOGUE_PRONOUN_RE,
    QUESTION_MARK_RE,
    DESCRIPTIVE_WORDS,
    PARENTHETICAL_EMISSION_WORDS,
    INOUT_ANYWHERE_RE,
    TIME_WORD_RE,
    is_action_verb_start,
    matches_action_start_pattern,
    starts_with_known_place,
    has_location_prefix,
    has_place_action_verb,
)

# Floor values for types that only the fast path can produce
QUICK_ONLY_FLOOR = {
    LineType.BASMALA: 0,
    LineType.TRANSITION: 5,
    LineType.SCENE_HEADER_1: 5,
    LineType.SCENE_HEADER_TOP_LINE: 5,
    LineType.BLANK: 0,
}


class EmissionCalculator:
    """Per-line evidence for every line type, used as the sequence decoder's local term.

    The emission signals are a lighter variant of the greedy scorers: they
    ignore neighbouring types, which the transition table supplies instead.
    Lines matching a fast-path pattern, and blank lines, get a one-hot vector.
    """

    def __init__(self, memory: Optional[DocumentMemory] = None):
        self.memory = memory

    def calculate(self, raw_line: str) -> TypeScores:
        if is_blank(raw_line):
            return one_hot_scores(LineType.BLANK)

        trimmed = raw_line.strip()
        normalized = normalize_line(raw_line)
        fixed = quick_type(normalized)
        if fixed is not None:
            return one_hot_scores(fixed)

        words = word_count(normalized)
        emissions = empty_type_scores()
        emissions.update(QUICK_ONLY_FLOOR)
        emissions[LineType.CHARACTER] = self._character(trimmed, normalized, words)
        emissions[LineType.DIALOGUE] = self._dialogue(trimmed, normalized, words)
        emissions[LineType.ACTION] = self._action(trimmed, normalized, words)
        emissions[LineType.PARENTHETICAL] = self._parenthetical(trimmed, normalized, words)
        emissions[LineType.SCENE_HEADER_2] = self._scene_header_2(normalized, words)
        emissions[LineType.SCENE_HEADER_3] = self._scene_header_3(trimmed, normalized, words)
        return emissions

    def _known(self, trimmed: str):
        if self.memory is None:
            return None
        return self.memory.is_known_character(strip_trailing_colon(trimmed))

    def _character(self, trimmed: str, normalized: str, words: int) -> float:
        score = 30
        if ends_with_colon(trimmed):
            score += 50
        if words <= 3:
            score += 20
        elif words <= 5:
            score += 10
        elif words > 7:
            score -= 30
        known = self._known(trimmed)
        if known is not None:
            score += 40 if known == Confidence.HIGH else 25
        if is_action_verb_start(normalized):
            score -= 35
        if not has_sentence_punctuation(normalized):
            score += 10
        return clamp_score(score)

    def _dialogue(self, trimmed: str, normalized: str, words: int) -> float:
        score = 25
        if 2 <= words <= 50:
            score += 20
        if has_sentence_punctuation(normalized):
            score += 15
        if DIALOGUE_PRONOUN_RE.search(normalized):
            score += 15
        if QUESTION_MARK_RE.search(normalized):
            score += 10
        if is_action_verb_start(normalized):
            score -= 20
        if not ends_with_colon(trimmed):
            score += 5
        return clamp_score(score)

    def _action(self, trimmed: str, normalized: str, words: int) -> float:
        score = 35
        if is_action_verb_start(normalized):
            score += 40
        if matches_action_start_pattern(normalized):
            score += 30
        if words > 5:
            score += 15
        if any(word in normalized for word in DESCRIPTIVE_WORDS):
            score += 10
        if ends_with_colon(trimmed):
            score -= 30
        if self._known(trimmed) is not None:
            score -= 25
        return clamp_score(score)

    @staticmethod
    def _parenthetical(trimmed: str, normalized: str, words: int) -> float:
        score = 10
        if trimmed.startswith("("):
            score += 40
        if any(word in normalized for word in PARENTHETICAL_EMISSION_WORDS):
            score += 30
        if words <= 4:
            score += 10
        return clamp_score(score)

    @staticmethod
    def _scene_header_2(normalized: str, words: int) -> float:
        score = 5
        if INOUT_ANYWHERE_RE.search(normalized):
            score += 40
        if TIME_WORD_RE.search(normalized):
            score += 35
        if "-" in normalized:
            score += 10
        if words <= 5:
            score += 10
        return clamp_score(score)

    def _scene_header_3(self, trimmed: str, normalized: str, words: int) -> float:
        score = 5
        if has_place_action_verb(normalized):
            score -= 40
        if has_location_prefix(normalized):
            score += 25
        if starts_with_known_place(normalized) or (self.memory is not None and self.memory.is_known_place(normalized)):
            score += 50
        if words <= 4:
            score += 15
        if not has_sentence_punctuation(normalized):
            score += 10
        if not ends_with_colon(trimmed):
            score += 5
        return clamp_score(score)
