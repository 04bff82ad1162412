"""Multi-line scene header extraction and inline character cue parsing.

A scene header may be written on one line (``مشهد 1 - داخلي - ليل - منزل``)
or spread over several (number, then time/location, then place). The
extractor parses the top line and then consumes following lines for as long
as they complete the header, reporting how many input lines it used so the
document walk can jump past them.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..text_processing.normalizer import (
    normalize_line,
    normalize_separators,
    is_blank,
    has_colon,
    has_sentence_punctuation,
    ends_with_sentence_punctuation,
    word_count,
)
from ..text_processing.patterns import (
    SCENE_PREFIX_RE,
    SCENE_PREFIX_WORD_RE,
    TIME_LOCATION_RE,
    INOUT_ONLY_RE,
    TIME_ONLY_RE,
    PHOTOMONTAGE_PART_RE,
    PLACE_ACTION_SPLIT_RE,
    INLINE_CHARACTER_DIALOGUE_RE,
    BULLET_CHARACTER_RE,
    is_scene_header_start,
    is_transition,
    is_parenthetical_shape,
    is_time_location_only,
    starts_with_known_place,
    has_place_action_verb,
    is_action_verb_start,
    is_character_line,
    is_likely_action,
)

_EDGE_SEPARATORS_RE = re.compile(r"^[\s\-:,]+|[\s\-:,]+$")
_PARENS_EDGE_RE = re.compile(r"^[()]+|[()]+$")
PLACE_MAX_WORDS = 6


@dataclass
class SceneHeaderLine:
    scene_num: str
    time_location: Optional[str] = None
    place_inline: Optional[str] = None


@dataclass
class SceneHeaderParts:
    scene_num: str
    time_location: str
    place: str
    consumed_lines: int
    remaining_action: Optional[str] = None

    @property
    def top_line_text(self) -> str:
        return " ".join(part.strip() for part in (self.scene_num, self.time_location) if part and part.strip())


def cleanup_remainder(text: str) -> str:
    return _EDGE_SEPARATORS_RE.sub("", normalize_separators(text)).strip()


def _format_photomontage(text: str) -> str:
    return f"({_PARENS_EDGE_RE.sub('', text.strip()).strip()})"


def parse_scene_header_line(raw_line: str) -> Optional[SceneHeaderLine]:
    """Split a single scene header line into number, time/location and inline place."""
    cleaned = normalize_line(raw_line)
    match = SCENE_PREFIX_RE.match(cleaned)
    if not match:
        return None

    prefix_match = SCENE_PREFIX_WORD_RE.match(cleaned)
    prefix = prefix_match.group(1).strip() if prefix_match else "مشهد"
    scene_num = " ".join(f"{prefix} {match.group(1).strip()}".split())
    rest = (match.group(2) or "").strip()

    photomontage = PHOTOMONTAGE_PART_RE.match(rest)
    if photomontage:
        scene_num = f"{scene_num} {_format_photomontage(photomontage.group(0))}"
        rest = rest[photomontage.end():].strip()

    if not rest:
        return SceneHeaderLine(scene_num=scene_num)

    time_location = TIME_LOCATION_RE.search(rest)
    if time_location:
        remainder = cleanup_remainder(rest.replace(time_location.group(0), " ", 1))
        return SceneHeaderLine(
            scene_num=scene_num,
            time_location=time_location.group(0).strip() or None,
            place_inline=remainder or None,
        )

    if INOUT_ONLY_RE.match(rest) or TIME_ONLY_RE.match(rest):
        return SceneHeaderLine(scene_num=scene_num, time_location=rest.strip())

    return SceneHeaderLine(scene_num=scene_num, place_inline=cleanup_remainder(rest) or None)


def extract_scene_header(lines: Sequence[str], start: int) -> Optional[SceneHeaderParts]:
    """Parse the scene header beginning at ``lines[start]``.

    Returns None when the line is not a scene header. ``consumed_lines`` is
    always at least 1 and counts the top line itself.
    """
    if start >= len(lines):
        return None
    parsed = parse_scene_header_line(lines[start] or "")
    if parsed is None:
        return None

    scene_num = parsed.scene_num
    time_location = parsed.time_location or ""
    place_parts: List[str] = [parsed.place_inline] if parsed.place_inline else []
    remaining_action: Optional[str] = None
    consumed = 1

    for raw_next in lines[start + 1:]:
        if is_blank(raw_next):
            break
        current = normalize_line(raw_next)

        photomontage = PHOTOMONTAGE_PART_RE.match(current)
        if photomontage:
            scene_num = f"{scene_num} {_format_photomontage(photomontage.group(0))}"
            current = cleanup_remainder(current[photomontage.end():])
            if not current:
                consumed += 1
                continue

        parenthesized = current.startswith("(") and current.endswith(")")
        candidate = current[1:-1].strip() if parenthesized else current

        partial_inout = bool(time_location) and bool(INOUT_ONLY_RE.match(time_location))
        partial_time = bool(time_location) and bool(TIME_ONLY_RE.match(time_location))
        if not time_location or partial_inout or partial_time:
            if is_time_location_only(candidate):
                time_location = candidate
                consumed += 1
                continue
            if not time_location and (INOUT_ONLY_RE.match(candidate) or TIME_ONLY_RE.match(candidate)):
                time_location = candidate
                consumed += 1
                continue
            if partial_inout and TIME_ONLY_RE.match(candidate):
                time_location = f"{time_location.strip()} - {candidate}"
                consumed += 1
                continue
            if partial_time and INOUT_ONLY_RE.match(candidate):
                time_location = f"{candidate} - {time_location.strip()}"
                consumed += 1
                continue

        if is_scene_header_start(current) or is_transition(current):
            break
        if is_parenthetical_shape(current) and not parenthesized:
            break
        if parse_inline_character_dialogue(current):
            break
        if ends_with_sentence_punctuation(current):
            break

        if starts_with_known_place(current):
            split = PLACE_ACTION_SPLIT_RE.match(current)
            if split:
                place_part, action_part = split.group(1).strip(), split.group(2).strip()
                if has_place_action_verb(action_part) or starts_with_known_place(place_part):
                    place_parts.append(place_part)
                    remaining_action = action_part
                    consumed += 1
                    break
            if (
                word_count(current) <= PLACE_MAX_WORDS
                and not has_colon(current)
                and not is_action_verb_start(current)
                and not has_sentence_punctuation(current)
            ):
                place_parts.append(current)
                consumed += 1
                continue
            break

        if is_character_line(current):
            if has_colon(current):
                break
            # A bare name-like line inside the header block reads as the place
            place_parts.append(current)
            consumed += 1
            continue

        if is_likely_action(current) or is_action_verb_start(current):
            break

        place_parts.append(current)
        consumed += 1

    place = " - ".join(part for part in (cleanup_remainder(p) for p in place_parts) if part)
    return SceneHeaderParts(
        scene_num=normalize_line(scene_num),
        time_location=normalize_line(time_location),
        place=place,
        consumed_lines=consumed,
        remaining_action=remaining_action,
    )


def parse_inline_character_dialogue(line: str) -> Optional[Tuple[str, str]]:
    """``أحمد: مرحبا`` -> (``أحمد``, ``مرحبا``); None unless the name part is a plausible cue."""
    match = INLINE_CHARACTER_DIALOGUE_RE.match(line.strip())
    if not match:
        return None
    name = match.group(1).strip()
    dialogue = match.group(2).strip()
    if not name or not dialogue:
        return None
    if not is_character_line(f"{name}:"):
        return None
    return name, dialogue


def parse_bullet_character(line: str) -> Optional[Tuple[str, str]]:
    """``• أحمد: مرحبا`` -> (``أحمد``, ``مرحبا``); dialogue may be empty."""
    match = BULLET_CHARACTER_RE.match(line)
    if not match:
        return None
    name = match.group(1).strip()
    if not name:
        return None
    return name, match.group(2).strip()
