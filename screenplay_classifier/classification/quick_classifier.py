from typing import Callable, Optional, Tuple

from ..line_types import LineType, ClassificationResult, ClassificationScore, Confidence
from ..text_processing.patterns import (
    is_basmala,
    is_scene_header_start,
    is_scene_header_1,
    is_transition,
    is_parenthetical_shape,
)

# Checked in order; the first match wins
QUICK_PATTERNS: Tuple[Tuple[LineType, Callable[[str], bool], str], ...] = (
    (LineType.BASMALA, is_basmala, "matches basmala"),
    (LineType.SCENE_HEADER_TOP_LINE, is_scene_header_start, "matches scene header prefix"),
    (LineType.SCENE_HEADER_1, is_scene_header_1, "matches bare scene number"),
    (LineType.TRANSITION, is_transition, "matches transition phrase"),
    (LineType.PARENTHETICAL, is_parenthetical_shape, "wrapped in parentheses"),
)


def quick_type(line: str) -> Optional[LineType]:
    trimmed = line.strip()
    for line_type, predicate, _ in QUICK_PATTERNS:
        if predicate(trimmed):
            return line_type
    return None


def quick_classify(line: str) -> Optional[ClassificationResult]:
    """Deterministic fast path for lines that match a fixed pattern.

    Returns a terminal 100-confidence result, or None when scoring is needed.
    """
    trimmed = line.strip()
    for line_type, predicate, reason in QUICK_PATTERNS:
        if predicate(trimmed):
            return ClassificationResult(
                text=trimmed,
                type=line_type,
                confidence=Confidence.HIGH,
                scores={line_type: ClassificationScore(100, Confidence.HIGH, [reason])},
                doubt_score=0,
                needs_review=False,
            )
    return None
