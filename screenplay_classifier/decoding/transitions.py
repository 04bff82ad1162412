"""Type-to-type affinity table for the sequence decoder.

Positive values favour the pair, negative values discourage it, and any pair
not listed scores 0. Blank lines are transparent to the decoder, so no entry
mentions ``LineType.BLANK``.
"""

from typing import Dict

from ..line_types import LineType

T = LineType

_AFFINITIES = {
    (T.CHARACTER, T.DIALOGUE): 80,
    (T.CHARACTER, T.PARENTHETICAL): 60,
    (T.CHARACTER, T.CHARACTER): -60,
    (T.CHARACTER, T.ACTION): -30,
    (T.PARENTHETICAL, T.DIALOGUE): 80,
    (T.DIALOGUE, T.CHARACTER): 40,
    (T.DIALOGUE, T.DIALOGUE): 10,
    (T.DIALOGUE, T.ACTION): 20,
    (T.DIALOGUE, T.PARENTHETICAL): 30,
    (T.ACTION, T.ACTION): 30,
    (T.ACTION, T.CHARACTER): 30,
    (T.SCENE_HEADER_TOP_LINE, T.SCENE_HEADER_3): 80,
    (T.SCENE_HEADER_TOP_LINE, T.ACTION): 30,
    (T.SCENE_HEADER_1, T.SCENE_HEADER_2): 80,
    (T.SCENE_HEADER_2, T.SCENE_HEADER_3): 80,
    (T.SCENE_HEADER_2, T.SCENE_HEADER_2): -40,
    (T.SCENE_HEADER_3, T.ACTION): 60,
    (T.SCENE_HEADER_3, T.CHARACTER): 10,
    (T.SCENE_HEADER_3, T.SCENE_HEADER_3): -20,
    (T.TRANSITION, T.SCENE_HEADER_TOP_LINE): 60,
    (T.TRANSITION, T.SCENE_HEADER_1): 60,
    (T.BASMALA, T.SCENE_HEADER_TOP_LINE): 60,
    (T.BASMALA, T.SCENE_HEADER_1): 60,
}

TRANSITION_SCORES: Dict[LineType, Dict[LineType, float]] = {
    previous: {following: _AFFINITIES.get((previous, following), 0) for following in LineType}
    for previous in LineType
}

# A document rarely opens with dialogue or a parenthetical
START_SCORES: Dict[LineType, float] = {line_type: 0 for line_type in LineType}
START_SCORES[T.DIALOGUE] = -30
START_SCORES[T.PARENTHETICAL] = -20


def transition_score(previous: LineType, following: LineType) -> float:
    return TRANSITION_SCORES[previous][following]


def start_score(state: LineType) -> float:
    return START_SCORES[state]
