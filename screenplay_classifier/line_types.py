from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Any


class LineType(str, Enum):
    """The closed set of structural roles a screenplay line can take."""
    SCENE_HEADER_TOP_LINE = "scene-header-top-line"
    SCENE_HEADER_1 = "scene-header-1"
    SCENE_HEADER_2 = "scene-header-2"
    SCENE_HEADER_3 = "scene-header-3"
    CHARACTER = "character"
    DIALOGUE = "dialogue"
    PARENTHETICAL = "parenthetical"
    ACTION = "action"
    TRANSITION = "transition"
    BLANK = "blank"
    BASMALA = "basmala"

    @classmethod
    def from_value(cls, value: str) -> Optional["LineType"]:
        for member in cls:
            if member.value == value:
                return member
        return None


SCENE_HEADER_TYPES = frozenset({
    LineType.SCENE_HEADER_TOP_LINE,
    LineType.SCENE_HEADER_1,
    LineType.SCENE_HEADER_2,
    LineType.SCENE_HEADER_3,
})

# Types that end a dialogue block when scanning backwards
BLOCK_BREAKER_TYPES = SCENE_HEADER_TYPES | {LineType.TRANSITION, LineType.BASMALA}

# Types produced by the scoring engine, in tie-break order
CANDIDATE_TYPES: Tuple[LineType, ...] = (
    LineType.CHARACTER,
    LineType.DIALOGUE,
    LineType.ACTION,
    LineType.PARENTHETICAL,
    LineType.SCENE_HEADER_3,
)


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_score(cls, score: float) -> "Confidence":
        if score >= 70:
            return cls.HIGH
        if score >= 40:
            return cls.MEDIUM
        return cls.LOW


def clamp_score(value: float) -> float:
    return max(0, min(100, value))


# Per-type numeric vector over every LineType member
TypeScores = Dict[LineType, float]


def empty_type_scores(default: float = 0) -> TypeScores:
    return {line_type: default for line_type in LineType}


def one_hot_scores(line_type: LineType, value: float = 100) -> TypeScores:
    scores = empty_type_scores()
    scores[line_type] = value
    return scores


@dataclass
class ClassificationScore:
    score: float
    confidence: Confidence
    reasons: List[str] = field(default_factory=list)

    @classmethod
    def from_total(cls, total: float, reasons: List[str]) -> "ClassificationScore":
        """Confidence comes from the raw total, the stored score is clamped."""
        return cls(score=clamp_score(total), confidence=Confidence.from_score(total), reasons=reasons)

    def adjust(self, delta: float, reason: str) -> None:
        self.score = clamp_score(self.score + delta)
        self.confidence = Confidence.from_score(self.score)
        self.reasons.append(reason)


@dataclass
class Candidate:
    type: LineType
    score: float
    confidence: Confidence
    reasons: List[str] = field(default_factory=list)


@dataclass
class FallbackInfo:
    original_type: LineType
    fallback_type: LineType
    reason: str


@dataclass
class ViterbiOverride:
    greedy_choice: LineType
    viterbi_choice: LineType
    reason: str


@dataclass
class ReviewInfo:
    original_type: LineType
    confidence: int
    reason: str


@dataclass
class ClassificationResult:
    text: str
    type: LineType
    confidence: Confidence = Confidence.HIGH
    scores: Dict[LineType, ClassificationScore] = field(default_factory=dict)
    doubt_score: float = 0
    needs_review: bool = False
    top_candidates: List[Candidate] = field(default_factory=list)
    fallback_applied: Optional[FallbackInfo] = None
    viterbi_override: Optional[ViterbiOverride] = None
    review_info: Optional[ReviewInfo] = None
    source_index: Optional[int] = None

    def to_line(self, include_doubt_score: bool = False) -> "Line":
        return Line(
            text=self.text,
            type=self.type,
            doubt_score=self.doubt_score if include_doubt_score else None,
        )


@dataclass
class Line:
    text: str
    type: LineType
    doubt_score: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"text": self.text, "type": self.type.value}
        if self.doubt_score is not None:
            data["doubtScore"] = self.doubt_score
        return data
