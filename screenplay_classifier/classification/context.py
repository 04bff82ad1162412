from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from config import settings
from ..line_types import LineType, BLOCK_BREAKER_TYPES
from ..text_processing.normalizer import (
    normalize_line,
    normalize_for_analysis,
    word_count,
    is_blank,
    has_sentence_punctuation,
)

AssignedTypes = Sequence[Optional[LineType]]


@dataclass
class ContextLine:
    text: str
    type: Optional[LineType]


@dataclass
class LineStats:
    current_line_length: int = 0
    current_word_count: int = 0
    has_punctuation: bool = False
    next_line_length: Optional[int] = None
    next_word_count: Optional[int] = None
    next_has_punctuation: Optional[bool] = None


@dataclass
class LineContext:
    """Window of neighbouring non-blank lines around the line being scored."""
    previous_lines: List[ContextLine] = field(default_factory=list)
    next_lines: List[str] = field(default_factory=list)
    stats: LineStats = field(default_factory=LineStats)

    @property
    def previous(self) -> Optional[ContextLine]:
        return self.previous_lines[-1] if self.previous_lines else None

    @property
    def previous_type(self) -> Optional[LineType]:
        previous = self.previous
        return previous.type if previous else None

    @property
    def next_line(self) -> Optional[str]:
        return self.next_lines[0] if self.next_lines else None


@dataclass
class DialogueBlockInfo:
    in_block: bool = False
    distance: int = -1


def build_context(
    lines: Sequence[str],
    index: int,
    assigned_types: Optional[AssignedTypes] = None,
    window: int = settings.CONTEXT_WINDOW_SIZE,
) -> LineContext:
    previous_lines: List[ContextLine] = []
    for i in range(index - 1, -1, -1):
        if len(previous_lines) >= window:
            break
        line_type = assigned_types[i] if assigned_types is not None and i < len(assigned_types) else None
        if line_type == LineType.BLANK or is_blank(lines[i]):
            continue
        previous_lines.insert(0, ContextLine(text=lines[i], type=line_type))

    next_lines = [line for line in lines[index + 1:] if not is_blank(line)][:window]

    normalized = normalize_for_analysis(lines[index])
    stats = LineStats(
        current_line_length=len(normalized),
        current_word_count=word_count(normalized),
        has_punctuation=has_sentence_punctuation(normalized),
    )
    if next_lines:
        next_line = next_lines[0]
        stats.next_line_length = len(next_line)
        stats.next_word_count = word_count(normalize_line(next_line))
        stats.next_has_punctuation = has_sentence_punctuation(next_line)

    return LineContext(previous_lines=previous_lines, next_lines=next_lines, stats=stats)


def previous_non_blank_type(assigned_types: AssignedTypes, index: int) -> Optional[LineType]:
    for i in range(index - 1, -1, -1):
        line_type = assigned_types[i]
        if line_type is not None and line_type != LineType.BLANK:
            return line_type
    return None


def get_dialogue_block_info(assigned_types: AssignedTypes, index: int) -> DialogueBlockInfo:
    """Scan backwards for the character cue that opened the current dialogue block."""
    for i in range(index - 1, -1, -1):
        line_type = assigned_types[i]
        if line_type is None or line_type == LineType.BLANK:
            continue
        if line_type in BLOCK_BREAKER_TYPES or line_type == LineType.ACTION:
            return DialogueBlockInfo()
        if line_type == LineType.CHARACTER:
            return DialogueBlockInfo(in_block=True, distance=index - i)
        # Dialogue and parenthetical lines keep the block open
    return DialogueBlockInfo()
