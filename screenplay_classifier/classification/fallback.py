from dataclasses import dataclass
from typing import Optional, Sequence

from config import settings
from ..line_types import LineType, Candidate
from ..text_processing.normalizer import normalize_line, word_count, ends_with_colon
from ..text_processing.patterns import is_scene_header_start, is_transition


@dataclass
class FallbackDecision:
    type: LineType
    reason: str


def _next_reads_as_dialogue(next_line: Optional[str]) -> bool:
    if not next_line or is_scene_header_start(next_line) or is_transition(next_line):
        return False
    return 1 < word_count(normalize_line(next_line)) <= 30


def apply_smart_fallback(
    top_candidates: Sequence[Candidate],
    previous_type: Optional[LineType],
    next_line: Optional[str],
    line: str,
) -> Optional[FallbackDecision]:
    """Pair-specific tie-break between the two best candidates.

    Returns None when the gap is too wide or no rule covers the pair, in which
    case the argmax stands.
    """
    if len(top_candidates) < 2:
        return None
    first, second = top_candidates[0], top_candidates[1]
    if first.score - second.score > settings.FALLBACK_MAX_SCORE_GAP:
        return None

    pair = {first.type, second.type}

    if pair == {LineType.ACTION, LineType.CHARACTER}:
        if _next_reads_as_dialogue(next_line):
            return FallbackDecision(LineType.CHARACTER, "next line reads like dialogue")
        return FallbackDecision(LineType.ACTION, "no dialogue follows")

    if pair == {LineType.ACTION, LineType.DIALOGUE}:
        if previous_type in (LineType.CHARACTER, LineType.PARENTHETICAL):
            return FallbackDecision(LineType.DIALOGUE, "follows a character or parenthetical")
        if previous_type == LineType.DIALOGUE:
            return FallbackDecision(LineType.DIALOGUE, "dialogue continuation")
        return FallbackDecision(LineType.ACTION, "no dialogue context")

    if pair == {LineType.ACTION, LineType.PARENTHETICAL}:
        if previous_type in (LineType.CHARACTER, LineType.DIALOGUE):
            return FallbackDecision(LineType.PARENTHETICAL, "follows a character or dialogue")
        return FallbackDecision(LineType.ACTION, "outside a dialogue block")

    if pair == {LineType.CHARACTER, LineType.DIALOGUE}:
        if previous_type == LineType.CHARACTER:
            return FallbackDecision(LineType.DIALOGUE, "follows a character")
        if ends_with_colon(line):
            return FallbackDecision(LineType.CHARACTER, "ends with colon")

    return None
