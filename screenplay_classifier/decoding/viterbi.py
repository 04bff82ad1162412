import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from config import settings
from ..line_types import LineType, Confidence, TypeScores
from ..text_processing.patterns import has_place_action_verb
from .transitions import transition_score, start_score

# Confident place lines without a motion verb skip review
PLACE_REVIEW_SKIP_SCORE = 70

# States a non-blank line may take
DECODABLE_STATES = tuple(line_type for line_type in LineType if line_type != LineType.BLANK)


@dataclass
class DecodedLine:
    text: str
    type: LineType
    emission_scores: TypeScores
    greedy_choice: LineType
    confidence: Confidence
    doubt_score: float = 0
    needs_review: bool = False
    override_reason: Optional[str] = None

    @property
    def overridden(self) -> bool:
        return self.greedy_choice != self.type


@dataclass
class ViterbiResult:
    path: List[LineType]
    total_score: float
    states: List[DecodedLine] = field(default_factory=list)


def emission_argmax(emissions: TypeScores) -> LineType:
    """Highest emission; ties go to the earlier type in declaration order."""
    best_type = LineType.ACTION
    best_score = float("-inf")
    for line_type in LineType:
        score = emissions.get(line_type, 0)
        if score > best_score:
            best_type, best_score = line_type, score
    return best_type


def emission_gap_doubt(emissions: TypeScores) -> float:
    ranked = sorted((emissions.get(line_type, 0) for line_type in LineType), reverse=True)
    gap = ranked[0] - ranked[1] if len(ranked) > 1 else 100
    if gap < 15:
        return 80
    if gap < 25:
        return 50
    if gap < 40:
        return 30
    return 10


def is_blank_emission(emissions: TypeScores) -> bool:
    return emissions.get(LineType.BLANK, 0) >= 100


class ViterbiDecoder:
    """Globally optimal line-type sequence under emission and transition scores.

    Each position contributes ``emission_weight * emission[state]`` plus
    ``transition_weight * transition(previous_state, state)`` (or the start
    score for the first non-blank position). Blank positions are pinned to
    ``LineType.BLANK`` and are transparent: the transition applies between
    consecutive non-blank lines, so a blank separator never breaks a
    Character -> Dialogue pairing.

    Ties are broken in favour of the type declared first in ``LineType``, so
    decoding is deterministic.
    """

    def __init__(
        self,
        emission_weight: float = settings.VITERBI_EMISSION_WEIGHT,
        transition_weight: float = settings.VITERBI_TRANSITION_WEIGHT,
        review_doubt_threshold: float = settings.VITERBI_REVIEW_DOUBT,
    ):
        self.logger = logging.getLogger(__name__)
        self.emission_weight = emission_weight
        self.transition_weight = transition_weight
        self.review_doubt_threshold = review_doubt_threshold

    def _step_score(self, emission: float, transition: float) -> float:
        return self.emission_weight * emission + self.transition_weight * transition

    def decode(
        self,
        emissions: Sequence[TypeScores],
        texts: Optional[Sequence[str]] = None,
        fixed: Optional[Sequence[Optional[LineType]]] = None,
    ) -> ViterbiResult:
        """Decode the best path.

        ``fixed`` optionally pins positions to a type (structural constructs
        already resolved before decoding); pinned positions still take part in
        the transitions of their neighbours.
        """
        texts = list(texts) if texts is not None else [""] * len(emissions)
        fixed = list(fixed) if fixed is not None else [None] * len(emissions)
        if len(texts) != len(emissions) or len(fixed) != len(emissions):
            raise ValueError(
                f"Got {len(texts)} texts and {len(fixed)} pins for {len(emissions)} emission vectors"
            )

        path: List[LineType] = [LineType.BLANK] * len(emissions)
        positions = [
            i for i, vector in enumerate(emissions)
            if not is_blank_emission(vector) and fixed[i] != LineType.BLANK
        ]

        total = 0.0
        if positions:
            allowed = [(fixed[i],) if fixed[i] is not None else DECODABLE_STATES for i in positions]
            best_path, total = self._decode_positions([emissions[i] for i in positions], allowed)
            for position, state in zip(positions, best_path):
                path[position] = state

        states = self._describe(path, emissions, texts)
        overrides = sum(1 for state in states if state.overridden)
        self.logger.debug(
            f"Decoded {len(positions)} non-blank lines (score={total:.1f}, overrides={overrides})"
        )
        return ViterbiResult(path=path, total_score=total, states=states)

    def _decode_positions(
        self,
        emissions: Sequence[TypeScores],
        allowed: Sequence[Sequence[LineType]],
    ) -> Tuple[List[LineType], float]:
        best: List[Dict[LineType, float]] = []
        backpointers: List[Dict[LineType, Optional[LineType]]] = []

        first = emissions[0]
        best.append({
            state: self._step_score(first.get(state, 0), start_score(state))
            for state in allowed[0]
        })
        backpointers.append({state: None for state in allowed[0]})

        for vector, states in zip(emissions[1:], allowed[1:]):
            previous_scores = best[-1]
            column: Dict[LineType, float] = {}
            pointers: Dict[LineType, Optional[LineType]] = {}
            for state in states:
                best_previous = None
                best_score = float("-inf")
                for previous, previous_score in previous_scores.items():
                    candidate = previous_score + self.transition_weight * transition_score(previous, state)
                    if candidate > best_score:
                        best_previous, best_score = previous, candidate
                column[state] = best_score + self.emission_weight * vector.get(state, 0)
                pointers[state] = best_previous
            best.append(column)
            backpointers.append(pointers)

        final_state = None
        final_score = float("-inf")
        for state, score in best[-1].items():
            if score > final_score:
                final_state, final_score = state, score

        path = [final_state]
        for pointers in reversed(backpointers[1:]):
            path.append(pointers[path[-1]])
        path.reverse()
        return path, final_score

    def path_score(self, path: Sequence[LineType], emissions: Sequence[TypeScores]) -> float:
        """Score of an arbitrary path under the decoder's objective."""
        total = 0.0
        previous: Optional[LineType] = None
        for state, vector in zip(path, emissions):
            if is_blank_emission(vector):
                continue
            transition = start_score(state) if previous is None else transition_score(previous, state)
            total += self._step_score(vector.get(state, 0), transition)
            previous = state
        return total

    def _describe(
        self,
        path: Sequence[LineType],
        emissions: Sequence[TypeScores],
        texts: Sequence[str],
    ) -> List[DecodedLine]:
        states: List[DecodedLine] = []
        previous: Optional[LineType] = None
        for state, vector, text in zip(path, emissions, texts):
            greedy = emission_argmax(vector)
            if state == LineType.BLANK:
                states.append(DecodedLine(text, state, vector, greedy, Confidence.HIGH))
                continue

            doubt = emission_gap_doubt(vector)
            reason = None
            if greedy != state:
                after = previous.value if previous is not None else "document start"
                reason = f"sequence prefers {state.value} over {greedy.value} after {after}"

            needs_review = doubt >= self.review_doubt_threshold or reason is not None
            if (
                state == LineType.SCENE_HEADER_3
                and vector.get(state, 0) >= PLACE_REVIEW_SKIP_SCORE
                and not has_place_action_verb(text)
            ):
                needs_review = False

            states.append(DecodedLine(
                text=text,
                type=state,
                emission_scores=vector,
                greedy_choice=greedy,
                confidence=Confidence.from_score(vector.get(state, 0)),
                doubt_score=doubt,
                needs_review=needs_review,
                override_reason=reason,
            ))
            previous = state
        return states
