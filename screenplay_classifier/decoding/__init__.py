from .emissions import EmissionCalculator
from .transitions import TRANSITION_SCORES, START_SCORES, transition_score, start_score
from .viterbi import ViterbiDecoder, ViterbiResult, DecodedLine

__all__ = [
    "EmissionCalculator",
    "TRANSITION_SCORES",
    "START_SCORES",
    "transition_score",
    "start_score",
    "ViterbiDecoder",
    "ViterbiResult",
    "DecodedLine",
]
