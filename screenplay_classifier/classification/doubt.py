from dataclasses import dataclass, field
from typing import Dict, List, Optional

from config import settings
from ..line_types import (
    LineType,
    Confidence,
    ClassificationScore,
    Candidate,
    CANDIDATE_TYPES,
    clamp_score,
)

# Doubt added per signal
GAP_UNDER_15 = 50
GAP_UNDER_25 = 30
GAP_UNDER_35 = 15
TOP_UNDER_40 = 30
TOP_UNDER_55 = 15
TIED_CANDIDATES = 20
TOP_CONFIDENCE_LOW = 20
TOP_CONFIDENCE_MEDIUM = 10


@dataclass
class DoubtAssessment:
    doubt_score: float
    needs_review: bool
    top_candidates: List[Candidate] = field(default_factory=list)


def rank_candidates(scores: Dict[LineType, ClassificationScore]) -> List[Candidate]:
    """Candidates by descending score; equal scores keep the candidate order."""
    order = {line_type: i for i, line_type in enumerate(CANDIDATE_TYPES)}
    ranked = sorted(
        scores.items(),
        key=lambda item: (-item[1].score, order.get(item[0], len(order))),
    )
    return [
        Candidate(type=line_type, score=score.score, confidence=score.confidence, reasons=list(score.reasons))
        for line_type, score in ranked
    ]


def calculate_doubt(
    scores: Dict[LineType, ClassificationScore],
    threshold: Optional[float] = None,
) -> DoubtAssessment:
    """Measure how ambiguous a set of per-type scores is.

    Doubt grows with a narrow gap between the two best candidates, a low best
    score, several candidates tied near the top and a weak confidence tier.
    ``threshold`` defaults to ``settings.NEEDS_REVIEW_THRESHOLD``.
    """
    if threshold is None:
        threshold = settings.NEEDS_REVIEW_THRESHOLD

    ranked = rank_candidates(scores)
    if not ranked:
        return DoubtAssessment(doubt_score=0, needs_review=False)

    highest = ranked[0]
    gap = highest.score - ranked[1].score if len(ranked) > 1 else highest.score

    doubt = 0
    if gap < 15:
        doubt += GAP_UNDER_15
    elif gap < 25:
        doubt += GAP_UNDER_25
    elif gap < 35:
        doubt += GAP_UNDER_35

    if highest.score < 40:
        doubt += TOP_UNDER_40
    elif highest.score < 55:
        doubt += TOP_UNDER_55

    ties = sum(1 for candidate in ranked if abs(candidate.score - highest.score) < settings.SCORE_TIE_THRESHOLD)
    if ties > 1:
        doubt += TIED_CANDIDATES

    if highest.confidence == Confidence.LOW:
        doubt += TOP_CONFIDENCE_LOW
    elif highest.confidence == Confidence.MEDIUM:
        doubt += TOP_CONFIDENCE_MEDIUM

    doubt = clamp_score(doubt)
    return DoubtAssessment(
        doubt_score=doubt,
        needs_review=doubt >= threshold,
        top_candidates=ranked[:2],
    )
