"""Diagnostics over classification results: reviewable lines, doubt statistics
and a line-by-line comparison of the greedy and sequence decoders."""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .line_types import LineType, ClassificationResult
from .classification.document_memory import DocumentMemory
from .classifier import ScreenplayClassifier

TOP_AMBIGUOUS_PAIRS = 5


@dataclass
class ReviewableLine:
    index: int
    text: str
    type: LineType
    doubt_score: float
    candidates: List[LineType] = field(default_factory=list)


@dataclass
class DoubtStatistics:
    total_lines: int
    needs_review_count: int
    needs_review_percentage: int
    top_ambiguities: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class DecoderComparison:
    index: int
    text: str
    greedy_type: LineType
    viterbi_type: LineType
    agreement: bool
    viterbi_reason: Optional[str] = None


def get_reviewable_lines(results: Sequence[ClassificationResult]) -> List[ReviewableLine]:
    """Lines flagged for review, most doubtful first."""
    flagged = [
        ReviewableLine(
            index=index,
            text=result.text,
            type=result.type,
            doubt_score=result.doubt_score,
            candidates=[candidate.type for candidate in result.top_candidates],
        )
        for index, result in enumerate(results)
        if result.needs_review
    ]
    return sorted(flagged, key=lambda line: (-line.doubt_score, line.index))


def get_doubt_statistics(results: Sequence[ClassificationResult]) -> DoubtStatistics:
    non_empty = [result for result in results if result.text.strip()]
    flagged = [result for result in non_empty if result.needs_review]

    pairs: Counter = Counter()
    for result in flagged:
        if len(result.top_candidates) >= 2:
            names = sorted(candidate.type.value for candidate in result.top_candidates[:2])
            pairs[f"{names[0]} vs {names[1]}"] += 1

    top = sorted(pairs.items(), key=lambda item: (-item[1], item[0]))[:TOP_AMBIGUOUS_PAIRS]
    percentage = round(len(flagged) / len(non_empty) * 100) if non_empty else 0
    return DoubtStatistics(
        total_lines=len(non_empty),
        needs_review_count=len(flagged),
        needs_review_percentage=percentage,
        top_ambiguities=[{"pair": pair, "count": count} for pair, count in top],
    )


def compare_greedy_vs_viterbi(text: str, memory: Optional[DocumentMemory] = None) -> List[DecoderComparison]:
    """Decode ``text`` both ways from the same starting memory and align the results.

    Neither run touches ``memory``; each works on its own snapshot.
    """
    base = memory if memory is not None else DocumentMemory()
    greedy = ScreenplayClassifier(memory=base.snapshot()).classify_document(text)
    viterbi = ScreenplayClassifier(memory=base.snapshot()).classify_document(text, use_sequence_decoder=True)

    return [
        DecoderComparison(
            index=index,
            text=greedy_result.text,
            greedy_type=greedy_result.type,
            viterbi_type=viterbi_result.type,
            agreement=greedy_result.type == viterbi_result.type,
            viterbi_reason=viterbi_result.viterbi_override.reason if viterbi_result.viterbi_override else None,
        )
        for index, (greedy_result, viterbi_result) in enumerate(zip(greedy, viterbi))
    ]
