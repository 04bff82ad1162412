"""Per-type scoring functions for the greedy classifier.

Each scorer is a pure function of the raw line, its normalized form, the
surrounding context and (optionally) the document memory. It returns a
``ClassificationScore`` clamped to [0, 100]; the confidence tier is taken
from the unclamped total.

The weights below are hand-tuned. They are kept as named constants so that
any rebalancing is an explicit, reviewable change.
"""

from typing import Dict, List, Optional

from ..line_types import (
    LineType,
    Confidence,
    ClassificationScore,
    SCENE_HEADER_TYPES,
)
from ..text_processing.normalizer import (
    normalize_line,
    word_count,
    has_colon,
    ends_with_colon,
    ends_with_sentence_punctuation,
    has_sentence_punctuation,
    starts_with_dash,
    strip_leading_dash,
)
from ..text_processing.patterns import (
    ARABIC_ONLY_RE,
    MULTI_COLON_RE,
    LEADING_ELLIPSIS_RE,
    LEADING_QUOTE_RE,
    PARENTHETICAL_LEAD_WORDS,
    PARENTHETICAL_WORDS,
    DESCRIPTIVE_WORDS,
    is_action_verb_start,
    looks_like_action_start,
    matches_action_start_pattern,
    is_scene_header_start,
    is_transition,
    is_character_line,
    is_likely_action,
    is_parenthetical_shape,
    starts_with_known_place,
    has_location_prefix,
    has_place_action_verb,
)
from .context import LineContext, DialogueBlockInfo
from .document_memory import DocumentMemory

# Character
CHAR_KNOWN_HIGH = 60
CHAR_KNOWN_MEDIUM = 40
CHAR_ACTION_LIKE_KNOWN = -15
CHAR_ACTION_LIKE = -45
CHAR_ENDS_WITH_COLON = 50
CHAR_CONTAINS_COLON = 25
CHAR_MAX_3_WORDS = 20
CHAR_MAX_5_WORDS = 10
CHAR_NO_PUNCTUATION = 15
CHAR_SENTENCE_END = -35
CHAR_NEXT_LOOKS_LIKE_DIALOGUE = 25
CHAR_ACTION_START = -20
CHAR_ARABIC_ONLY = 10
CHAR_PREVIOUS_NOT_CHARACTER = 5
CHAR_VOICE_WITHOUT_COLON = -10

# Dialogue
DIAL_AFTER_CHARACTER = 40
DIAL_AFTER_CHARACTER_EXTRA = 60
DIAL_DASH_IN_BLOCK = 35
DIAL_DASH_NEAR_CUE = 15
DIAL_DASH_OUTSIDE_BLOCK = -15
DIAL_LEADING_ELLIPSIS = 25
DIAL_LEADING_QUOTE = 20
DIAL_NO_CONTEXT = -60
DIAL_NO_CONTEXT_ACTION_LIKE = -20
DIAL_AFTER_PARENTHETICAL = 50
DIAL_CONTINUATION = 35
DIAL_PUNCTUATION = 15
DIAL_GOOD_LENGTH = 15
DIAL_ACCEPTABLE_LENGTH = 8
DIAL_ACTION_START = -25
DIAL_SCENE_HEADER_START = -20
DIAL_NEXT_NOT_CHARACTER = 10
DIAL_NO_COLON = 10
DIAL_MULTIPLE_COLONS = -10
DIAL_SINGLE_WORD = -5

# Action
ACT_KNOWN_HIGH = -50
ACT_KNOWN_MEDIUM = -30
ACT_VERB_START = 50
ACT_VERB_SINGLE_WORD = 20
ACT_PATTERN = 40
ACT_AFTER_SCENE_HEADER = 30
ACT_NEXT_IS_ACTION = 10
ACT_DASH_IN_BLOCK = -20
ACT_DASH_OUTSIDE_BLOCK = 25
ACT_DASH_THEN_VERB = 30
ACT_LONG_LINE = 10
ACT_AFTER_ACTION = 10
ACT_CHARACTER_SHAPE = -20
ACT_NO_TRAILING_COLON = 5
ACT_DESCRIPTIVE = 5

# Parenthetical
PAREN_NOT_SHAPED = -70
PAREN_SHAPED = 60
PAREN_AFTER_CHARACTER = 40
PAREN_AFTER_DIALOGUE = 30
PAREN_SHORT = 15
PAREN_MEDIUM = 8
PAREN_NO_VERB = 10
PAREN_DASH_MANNER_IN_BLOCK = 40
PAREN_MANNER_WORD = 10
PAREN_NO_PUNCTUATION = 5
PAREN_DASH_MANNER_MAX_LENGTH = 30

# Scene header place line
PLACE_KNOWN = 50
PLACE_LOCATION_PREFIX = 25
PLACE_VERB_ANYWHERE = -40
PLACE_SHORT = 15
PLACE_NO_PUNCTUATION = 10
PLACE_NO_COLON = 5
PLACE_AFTER_HEADER = 20

# Adjustments applied once all scorers have run
ADJ_VERB_START_ACTION = 30
ADJ_ACTION_AFTER_CHARACTER_DIALOGUE = -55
ADJ_ACTION_AFTER_CHARACTER_ACTION = 25
ADJ_LONG_SENTENCE_ACTION = 20
LONG_SENTENCE_LENGTH = 50


def _memory_lookup(raw_line: str, memory: Optional[DocumentMemory]) -> Optional[Confidence]:
    if memory is None:
        return None
    return memory.is_known_character(raw_line.strip())


def score_as_character(
    raw_line: str,
    normalized: str,
    ctx: LineContext,
    memory: Optional[DocumentMemory] = None,
) -> ClassificationScore:
    score = 0
    reasons: List[str] = []
    trimmed = raw_line.strip()
    words = ctx.stats.current_word_count

    known = _memory_lookup(raw_line, memory)
    if known == Confidence.HIGH:
        score += CHAR_KNOWN_HIGH
        reasons.append("known character (high)")
    elif known == Confidence.MEDIUM:
        score += CHAR_KNOWN_MEDIUM
        reasons.append("known character (medium)")

    action_like = looks_like_action_start(normalized)
    if action_like:
        if known:
            score += CHAR_ACTION_LIKE_KNOWN
            reasons.append("action-like start, softened for a known name")
        else:
            score += CHAR_ACTION_LIKE
            reasons.append("looks like an action line")

    colon_terminated = ends_with_colon(trimmed)
    if colon_terminated:
        score += CHAR_ENDS_WITH_COLON
        reasons.append("ends with colon")
    elif has_colon(trimmed):
        score += CHAR_CONTAINS_COLON
        reasons.append("contains colon")

    if words <= 3:
        score += CHAR_MAX_3_WORDS
        reasons.append(f"{words} words (<=3)")
    elif words <= 5:
        score += CHAR_MAX_5_WORDS
        reasons.append(f"{words} words (<=5)")

    if not ctx.stats.has_punctuation:
        score += CHAR_NO_PUNCTUATION
        reasons.append("no sentence punctuation")

    if ends_with_sentence_punctuation(trimmed) and not colon_terminated:
        score += CHAR_SENTENCE_END
        reasons.append("ends like a sentence")

    next_line = ctx.next_line
    if next_line and not is_scene_header_start(next_line) and not is_transition(next_line):
        next_words = ctx.stats.next_word_count or 0
        if 1 < next_words <= 30:
            score += CHAR_NEXT_LOOKS_LIKE_DIALOGUE
            reasons.append("next line reads like dialogue")

    if action_like:
        score += CHAR_ACTION_START
        reasons.append("starts like an action")

    if ARABIC_ONLY_RE.match(trimmed):
        score += CHAR_ARABIC_ONLY
        reasons.append("Arabic letters only")

    previous = ctx.previous
    if previous is not None and previous.type != LineType.CHARACTER:
        score += CHAR_PREVIOUS_NOT_CHARACTER
        reasons.append("previous line is not a character")

    if normalized.startswith("صوت") and not colon_terminated:
        score += CHAR_VOICE_WITHOUT_COLON
        reasons.append("voice prefix without colon")

    return ClassificationScore.from_total(score, reasons)


def score_as_dialogue(
    raw_line: str,
    normalized: str,
    ctx: LineContext,
    memory: Optional[DocumentMemory] = None,
    block: Optional[DialogueBlockInfo] = None,
) -> ClassificationScore:
    score = 0
    reasons: List[str] = []
    words = ctx.stats.current_word_count
    block = block or DialogueBlockInfo()
    previous_type = ctx.previous_type
    after_character = previous_type == LineType.CHARACTER
    after_parenthetical = previous_type == LineType.PARENTHETICAL
    after_dialogue = previous_type == LineType.DIALOGUE
    action_like = looks_like_action_start(normalized)

    if after_character:
        score += DIAL_AFTER_CHARACTER
        reasons.append("previous line is a character")

    if starts_with_dash(raw_line):
        if block.in_block:
            score += DIAL_DASH_IN_BLOCK
            reasons.append("leading dash inside a dialogue block")
            if block.distance <= 3:
                score += DIAL_DASH_NEAR_CUE
                reasons.append("close to the character cue")
        else:
            score += DIAL_DASH_OUTSIDE_BLOCK
            reasons.append("leading dash outside a dialogue block")

    if block.in_block:
        if LEADING_ELLIPSIS_RE.match(raw_line):
            score += DIAL_LEADING_ELLIPSIS
            reasons.append("continues with an ellipsis")
        if LEADING_QUOTE_RE.match(raw_line):
            score += DIAL_LEADING_QUOTE
            reasons.append("opens with a quote")

    if not (after_character or after_parenthetical or after_dialogue):
        score += DIAL_NO_CONTEXT
        reasons.append("no dialogue context")
        if action_like:
            score += DIAL_NO_CONTEXT_ACTION_LIKE
            reasons.append("action-like without dialogue context")

    if after_character:
        score += DIAL_AFTER_CHARACTER_EXTRA
        reasons.append("directly under a character cue")
    if after_parenthetical:
        score += DIAL_AFTER_PARENTHETICAL
        reasons.append("previous line is a parenthetical")
    if after_dialogue:
        score += DIAL_CONTINUATION
        reasons.append("dialogue continuation")

    if ctx.stats.has_punctuation:
        score += DIAL_PUNCTUATION
        reasons.append("has sentence punctuation")

    if 2 <= words <= 50:
        score += DIAL_GOOD_LENGTH
        reasons.append(f"{words} words")
    elif 1 <= words <= 60:
        score += DIAL_ACCEPTABLE_LENGTH
        reasons.append(f"{words} words (acceptable)")

    if action_like:
        score += DIAL_ACTION_START
        reasons.append("starts like an action")

    if is_scene_header_start(normalized):
        score += DIAL_SCENE_HEADER_START
        reasons.append("starts like a scene header")

    next_line = ctx.next_line
    if next_line and not is_character_line(next_line):
        score += DIAL_NEXT_NOT_CHARACTER
        reasons.append("next line is not a character")

    if not has_colon(normalized):
        score += DIAL_NO_COLON
        reasons.append("no colon")
    elif MULTI_COLON_RE.match(normalized):
        score += DIAL_MULTIPLE_COLONS
        reasons.append("several colons")

    if words == 1 and not after_character and not after_parenthetical:
        score += DIAL_SINGLE_WORD
        reasons.append("single word without a cue")

    return ClassificationScore.from_total(score, reasons)


def score_as_action(
    raw_line: str,
    normalized: str,
    ctx: LineContext,
    memory: Optional[DocumentMemory] = None,
    block: Optional[DialogueBlockInfo] = None,
) -> ClassificationScore:
    score = 0
    reasons: List[str] = []
    words = ctx.stats.current_word_count
    block = block or DialogueBlockInfo()

    known = _memory_lookup(raw_line, memory)
    if known == Confidence.HIGH:
        score += ACT_KNOWN_HIGH
        reasons.append("known character name (high)")
    elif known == Confidence.MEDIUM:
        score += ACT_KNOWN_MEDIUM
        reasons.append("known character name (medium)")

    if is_action_verb_start(normalized):
        if words == 1:
            score += ACT_VERB_SINGLE_WORD
            reasons.append("single action verb")
        else:
            score += ACT_VERB_START
            reasons.append("starts with an action verb")

    if matches_action_start_pattern(normalized):
        score += ACT_PATTERN
        reasons.append("matches an action pattern")

    previous_type = ctx.previous_type
    if previous_type in SCENE_HEADER_TYPES:
        score += ACT_AFTER_SCENE_HEADER
        reasons.append("follows a scene header")

    next_line = ctx.next_line
    if next_line and is_likely_action(next_line):
        score += ACT_NEXT_IS_ACTION
        reasons.append("next line looks like action")

    if starts_with_dash(raw_line):
        if block.in_block:
            score += ACT_DASH_IN_BLOCK
            reasons.append("leading dash inside a dialogue block")
        else:
            score += ACT_DASH_OUTSIDE_BLOCK
            reasons.append("leading dash outside a dialogue block")
            if is_action_verb_start(strip_leading_dash(raw_line)):
                score += ACT_DASH_THEN_VERB
                reasons.append("dash followed by an action verb")

    if words > 5:
        score += ACT_LONG_LINE
        reasons.append(f"{words} words")

    if previous_type == LineType.ACTION:
        score += ACT_AFTER_ACTION
        reasons.append("previous line is action")

    if is_character_line(normalized):
        score += ACT_CHARACTER_SHAPE
        reasons.append("shaped like a character cue")

    if not ends_with_colon(normalized):
        score += ACT_NO_TRAILING_COLON
        reasons.append("no trailing colon")

    if any(word in normalized for word in DESCRIPTIVE_WORDS):
        score += ACT_DESCRIPTIVE
        reasons.append("descriptive wording")

    return ClassificationScore.from_total(score, reasons)


def score_as_parenthetical(
    raw_line: str,
    normalized: str,
    ctx: LineContext,
    block: Optional[DialogueBlockInfo] = None,
) -> ClassificationScore:
    score = 0
    reasons: List[str] = []
    words = ctx.stats.current_word_count
    block = block or DialogueBlockInfo()

    if is_parenthetical_shape(raw_line.strip()):
        score += PAREN_SHAPED
        reasons.append("wrapped in parentheses")
    else:
        score += PAREN_NOT_SHAPED
        reasons.append("not wrapped in parentheses")

    previous_type = ctx.previous_type
    if previous_type == LineType.CHARACTER:
        score += PAREN_AFTER_CHARACTER
        reasons.append("previous line is a character")
    if previous_type == LineType.DIALOGUE:
        score += PAREN_AFTER_DIALOGUE
        reasons.append("previous line is dialogue")

    if 1 <= words <= 5:
        score += PAREN_SHORT
        reasons.append(f"{words} words")
    elif words <= 10:
        score += PAREN_MEDIUM
        reasons.append(f"{words} words (medium)")

    if not is_action_verb_start(normalized):
        score += PAREN_NO_VERB
        reasons.append("no action verb start")

    if starts_with_dash(raw_line) and block.in_block:
        without_dash = strip_leading_dash(raw_line).strip()
        if (
            any(without_dash.startswith(word) for word in PARENTHETICAL_LEAD_WORDS)
            and len(without_dash) < PAREN_DASH_MANNER_MAX_LENGTH
        ):
            score += PAREN_DASH_MANNER_IN_BLOCK
            reasons.append("dashed manner direction inside a dialogue block")

    if any(word in normalized for word in PARENTHETICAL_WORDS):
        score += PAREN_MANNER_WORD
        reasons.append("contains a manner word")

    if not ctx.stats.has_punctuation:
        score += PAREN_NO_PUNCTUATION
        reasons.append("no sentence punctuation")

    return ClassificationScore.from_total(score, reasons)


def score_as_scene_header(
    raw_line: str,
    normalized: str,
    ctx: LineContext,
    memory: Optional[DocumentMemory] = None,
) -> ClassificationScore:
    """Score a line as a scene place line (scene-header-3)."""
    score = 0
    reasons: List[str] = []
    words = word_count(normalized)

    if starts_with_known_place(normalized) or (memory is not None and memory.is_known_place(normalized)):
        score += PLACE_KNOWN
        reasons.append("known place")

    if has_location_prefix(normalized):
        score += PLACE_LOCATION_PREFIX
        reasons.append("location preposition")

    if has_place_action_verb(normalized):
        score += PLACE_VERB_ANYWHERE
        reasons.append("contains a motion verb")

    if words <= 4:
        score += PLACE_SHORT
        reasons.append(f"{words} words")

    if not has_sentence_punctuation(normalized):
        score += PLACE_NO_PUNCTUATION
        reasons.append("no sentence punctuation")

    if not has_colon(normalized):
        score += PLACE_NO_COLON
        reasons.append("no colon")

    if ctx.previous_type in (
        LineType.SCENE_HEADER_TOP_LINE,
        LineType.SCENE_HEADER_1,
        LineType.SCENE_HEADER_2,
    ):
        score += PLACE_AFTER_HEADER
        reasons.append("follows a scene header")

    return ClassificationScore.from_total(score, reasons)


def score_all(
    raw_line: str,
    ctx: LineContext,
    memory: Optional[DocumentMemory] = None,
    block: Optional[DialogueBlockInfo] = None,
    previous_type: Optional[LineType] = None,
) -> Dict[LineType, ClassificationScore]:
    """Run every scorer and apply the cross-scorer adjustments."""
    normalized = normalize_line(raw_line)
    scores = {
        LineType.CHARACTER: score_as_character(raw_line, normalized, ctx, memory),
        LineType.DIALOGUE: score_as_dialogue(raw_line, normalized, ctx, memory, block),
        LineType.ACTION: score_as_action(raw_line, normalized, ctx, memory, block),
        LineType.PARENTHETICAL: score_as_parenthetical(raw_line, normalized, ctx, block),
        LineType.SCENE_HEADER_3: score_as_scene_header(raw_line, normalized, ctx, memory),
    }

    action = scores[LineType.ACTION]
    if is_action_verb_start(normalized):
        action.adjust(ADJ_VERB_START_ACTION, "strong action verb start")

    if previous_type == LineType.CHARACTER and looks_like_action_start(normalized):
        scores[LineType.DIALOGUE].adjust(ADJ_ACTION_AFTER_CHARACTER_DIALOGUE, "action line right after a character")
        action.adjust(ADJ_ACTION_AFTER_CHARACTER_ACTION, "action line right after a character")

    if len(raw_line) > LONG_SENTENCE_LENGTH and has_sentence_punctuation(normalized):
        action.adjust(ADJ_LONG_SENTENCE_ACTION, "long punctuated sentence")

    return scores
