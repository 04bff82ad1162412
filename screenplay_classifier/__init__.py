from .line_types import LineType, Confidence, Line, ClassificationResult, ClassificationScore
from .classification.document_memory import DocumentMemory
from .classifier import ScreenplayClassifier, ClassifyOptions, classify
from .analysis import get_reviewable_lines, get_doubt_statistics, compare_greedy_vs_viterbi

__all__ = [
    "LineType",
    "Confidence",
    "Line",
    "ClassificationResult",
    "ClassificationScore",
    "DocumentMemory",
    "ScreenplayClassifier",
    "ClassifyOptions",
    "classify",
    "get_reviewable_lines",
    "get_doubt_statistics",
    "compare_greedy_vs_viterbi",
]
