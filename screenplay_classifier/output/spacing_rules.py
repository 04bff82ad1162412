"""Blank-line spacing between typed screenplay lines.

``SPACING_RULES`` maps a (previous, next) pair of non-blank types to True
(exactly one blank line between them), False (no blank line) or, for pairs
not listed, no opinion, in which case the author's blank lines are kept.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from ..line_types import LineType, Line

T = LineType

SPACING_RULES: Dict[Tuple[LineType, LineType], bool] = {
    (T.BASMALA, T.SCENE_HEADER_1): True,
    (T.BASMALA, T.SCENE_HEADER_TOP_LINE): True,
    (T.SCENE_HEADER_3, T.ACTION): True,
    (T.ACTION, T.ACTION): True,
    (T.ACTION, T.CHARACTER): True,
    (T.ACTION, T.TRANSITION): True,
    (T.CHARACTER, T.DIALOGUE): False,
    (T.DIALOGUE, T.CHARACTER): True,
    (T.DIALOGUE, T.ACTION): True,
    (T.DIALOGUE, T.TRANSITION): True,
    (T.TRANSITION, T.SCENE_HEADER_1): True,
    (T.TRANSITION, T.SCENE_HEADER_TOP_LINE): True,
}


def get_spacing_rule(previous: LineType, following: LineType) -> Optional[bool]:
    if previous == LineType.BLANK or following == LineType.BLANK:
        return None
    return SPACING_RULES.get((previous, following))


def is_blank_line(line: Line) -> bool:
    return line.type == LineType.BLANK or (line.type == LineType.ACTION and not line.text.strip())


def apply_spacing_rules(lines: Sequence[Line]) -> List[Line]:
    """Single pass that buffers blank lines and settles them at the next non-blank line.

    Leading and trailing blanks are kept as they are. Applying the rules
    twice gives the same result as applying them once.
    """
    result: List[Line] = []
    pending: List[Line] = []
    previous_type: Optional[LineType] = None

    for line in lines:
        if is_blank_line(line):
            pending.append(line)
            continue

        if previous_type is None:
            result.extend(pending)
        else:
            rule = get_spacing_rule(previous_type, line.type)
            if rule is True:
                result.append(pending[0] if pending else Line(text="", type=LineType.BLANK))
            elif rule is None:
                result.extend(pending)

        pending = []
        result.append(line)
        previous_type = line.type

    result.extend(pending)
    return result
