"""Canonicalization helpers shared by every classifier component.

All functions are total: any string in, a string (possibly empty) out.
``normalize_line`` is idempotent, so callers may normalize defensively.
"""

import re

EASTERN_DIGITS = "٠١٢٣٤٥٦٧٨٩"
WESTERN_DIGITS = "0123456789"
_DIGIT_TABLE = str.maketrans(EASTERN_DIGITS, WESTERN_DIGITS)

_TASHKEEL_RE = re.compile(r"[\u064B-\u065F\u0670]")
_DASH_RE = re.compile(r"[-–—]")
_COMMA_RE = re.compile(r"[،,]")
_WHITESPACE_RE = re.compile(r"\s+")
_FORMAT_CHARS_RE = re.compile(r"[\u200F\u200E\uFEFF\u061C]")
_LEADING_BULLETS_RE = re.compile(r"^[\s\u200E\u200F\u061C\uFEFF]*[•·∙⋅●○◦■□▪▫◆◇]+\s*")
_SENTENCE_PUNCT_RE = re.compile(r"[\.!؟\?]")
_SENTENCE_END_RE = re.compile(r"[\.!؟\?]$")
_ELLIPSIS_RE = re.compile(r"(\.\.\.|…)")
_LEADING_DASH_RE = re.compile(r"^\s*[-–—−‒―]")
_LEADING_DASH_STRIP_RE = re.compile(r"^\s*[-–—−‒―]\s*")


def eastern_to_western_digits(text: str) -> str:
    return text.translate(_DIGIT_TABLE)


def strip_tashkeel(text: str) -> str:
    """Remove Arabic diacritical marks."""
    return _TASHKEEL_RE.sub("", text)


def normalize_separators(text: str) -> str:
    text = _DASH_RE.sub("-", text)
    text = _COMMA_RE.sub(",", text)
    return _WHITESPACE_RE.sub(" ", text)


def normalize_line(text: str) -> str:
    """Canonical form used for pattern matching and scoring."""
    if not text:
        return ""
    text = _FORMAT_CHARS_RE.sub("", eastern_to_western_digits(text))
    return normalize_separators(strip_tashkeel(text)).strip()


def normalize_for_analysis(text: str) -> str:
    """Like ``normalize_line`` but also drops leading bullet glyphs.

    Dashes are kept: a leading dash distinguishes dialogue continuations
    from stage directions.
    """
    return _LEADING_BULLETS_RE.sub("", normalize_line(text)).strip()


def has_sentence_punctuation(text: str) -> bool:
    return bool(_SENTENCE_PUNCT_RE.search(text))


def ends_with_sentence_punctuation(text: str) -> bool:
    stripped = text.strip()
    return bool(_SENTENCE_END_RE.search(stripped)) or bool(_ELLIPSIS_RE.search(stripped))


def word_count(text: str) -> int:
    return len(text.split())


def has_content(text: str) -> bool:
    """True when a letter or digit is left after bullets and a leading dash are removed."""
    cleaned = strip_leading_dash(normalize_for_analysis(text or ""))
    return any(ch.isalnum() for ch in cleaned)


def is_blank(text: str) -> bool:
    """Empty, whitespace-only or punctuation-only lines (``...``, ``-``, ``•``)."""
    return not has_content(text)


def has_colon(text: str) -> bool:
    return ":" in text or "：" in text


def ends_with_colon(text: str) -> bool:
    stripped = text.strip()
    return stripped.endswith(":") or stripped.endswith("：")


def strip_trailing_colon(text: str) -> str:
    return re.sub(r"[:：\s]+$", "", text).strip()


def starts_with_dash(text: str) -> bool:
    return bool(_LEADING_DASH_RE.match(text))


def strip_leading_dash(text: str) -> str:
    return _LEADING_DASH_STRIP_RE.sub("", text)
