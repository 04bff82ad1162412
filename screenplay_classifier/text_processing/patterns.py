"""Compiled pattern library for Arabic screenplay lines.

Every expression here is compiled at import time, so a malformed pattern
fails on import instead of on the first document.
"""

import re
from typing import FrozenSet

from .normalizer import (
    normalize_line,
    word_count,
    is_blank,
    has_colon,
    ends_with_colon,
)

ARABIC_LETTERS = r"\u0600-\u06FF"

ACTION_VERB_LIST = (
    "يدخل|يخرج|ينظر|يرفع|تبتسم|ترقد|تقف|يبسم|يضع|يقول|تنظر|تربت|تقوم|يشق|تشق|تضرب|يسحب|يلتفت|"
    "يقف|يجلس|تجلس|يجري|تجري|يمشي|تمشي|يركض|تركض|يصرخ|اصرخ|يبكي|تبكي|يضحك|تضحك|يغني|تغني|يرقص|"
    "ترقص|يأكل|تأكل|يشرب|تشرب|ينام|تنام|يستيقظ|تستيقظ|يكتب|تكتب|يقرأ|تقرأ|يسمع|تسمع|يشم|تشم|يلمس|"
    "تلمس|يأخذ|تأخذ|يعطي|تعطي|يفتح|تفتح|يغلق|تغلق|يبدأ|تبدأ|ينتهي|تنتهي|يذهب|تذهب|يعود|تعود|يأتي|"
    "تأتي|يموت|تموت|يحيا|تحيا|يقاتل|تقاتل|ينصر|تنتصر|يخسر|تخسر|يرسم|ترسم|يصمم|تخطط|يقرر|تقرر|يفكر|"
    "تفكر|يتذكر|تذكر|يحاول|تحاول|يستطيع|تستطيع|يريد|تريد|يحتاج|تحتاج|يبحث|تبحث|يجد|تجد|يفقد|تفقد|"
    "يحمي|تحمي|يراقب|تراقب|يخفي|تخفي|يكشف|تكشف|يكتشف|تكتشف|يعرف|تعرف|يتعلم|تعلن|يعلم|يوجه|وجه|"
    "يسافر|تسافر|يرحل|ترحل|يبقى|تبقى|ينتقل|تنتقل|يتغير|تتغير|ينمو|تنمو|يتطور|تتطور|يواجه|تواجه|يحل|"
    "تحل|يفشل|تفشل|ينجح|تنجح|يحقق|تحقن|ينهي|تنهي|يوقف|توقف|يستمر|تستمر|ينقطع|تنقطع|يرتبط|ترتبط|"
    "ينفصل|تنفصل|يتزوج|تتزوج|يطلق|يولد|تولد|يكبر|تكبر|يشيخ|تشيخ|يمرض|تمرض|يشفي|تشفي|يصاب|تصيب|"
    "يتعافى|تعافي|يقتل|تقتل|يُقتل|تُقتل|يختفي|تختفي|يظهر|تظهر|يختبئ|تخبوء|يطلب|تطلب|يأمر|تأمر|يمنع|"
    "تمنع|يسمح|تسمح|يوافق|توافق|يرفض|ترفض|يعتذر|يشكر|تشكر|يحيي|تحيي|يودع|تودع|يجيب|تجيب|يسأل|تسأل|"
    "يصيح|تصيح|يهمس|تهمس|يصمت|تصمت|يتكلم|تتكلم|ينادي|تنادي|يحكي|تحكي|يروي|تروي|يقص|تقص|يتنهد|تتنهد|"
    "يئن|تئن"
)

# Camera-eye first person plural and a few high-frequency additions
EXTRA_ACTION_VERBS = (
    "نرى|نسمع|نلاحظ|نقترب|نبتعد|ننتقل|ترفع|ينهض|تنهض|تقتحم|يقتحم|يتبادل|يبتسم|يبدؤون|تفتح|يفتح|"
    "تدخل|يُظهر|يظهر|تظهر"
)

ACTION_VERB_SET: FrozenSet[str] = frozenset(
    verb.strip()
    for verb in (ACTION_VERB_LIST + "|" + EXTRA_ACTION_VERBS).split("|")
    if verb.strip()
)

LEADING_PARTICLES = ("و", "ف", "ل")

BASMALA_RE = re.compile(r"^[{}]*\s*بسم\s+الله\s+الرحمن\s+الرحيم\s*[{}]*$", re.IGNORECASE)

SCENE_PREFIX_RE = re.compile(
    r"^\s*(?:مشهد|م\.|scene)\s*([0-9٠-٩]+)\s*(?:[-–—:،]\s*)?(.*)$", re.IGNORECASE
)
SCENE_PREFIX_WORD_RE = re.compile(r"^\s*(مشهد|م\.|scene)\s*", re.IGNORECASE)
SCENE_HEADER_1_RE = re.compile(r"^\s*(?:مشهد|م\.|scene)\s*[0-9٠-٩]+\s*$", re.IGNORECASE)

INOUT_PART = r"(?:داخلي|خارجي|د\.|خ\.)"
TIME_PART = r"(?:ليل|نهار|ل\.|ن\.|صباح|مساء|فجر|ظهر|عصر|مغرب|عشاء|الغروب|الفجر)"
HEADER_PART_ANY = rf"(?:{INOUT_PART}|{TIME_PART})"
TIME_LOCATION_SOURCE = (
    rf"(?:{HEADER_PART_ANY}\s*[-/&]\s*)+{HEADER_PART_ANY}"
    rf"|{HEADER_PART_ANY}\s*[-/&]\s*{HEADER_PART_ANY}"
)
TIME_LOCATION_RE = re.compile(TIME_LOCATION_SOURCE, re.IGNORECASE)
TIME_LOCATION_ONLY_RE = re.compile(rf"^\s*(?:{TIME_LOCATION_SOURCE})\s*$", re.IGNORECASE)
INOUT_ONLY_RE = re.compile(rf"^\s*{INOUT_PART}\s*$", re.IGNORECASE)
TIME_ONLY_RE = re.compile(rf"^\s*{TIME_PART}\s*$", re.IGNORECASE)
INOUT_ANYWHERE_RE = re.compile(INOUT_PART, re.IGNORECASE)
TIME_WORD_RE = re.compile(r"ليل|نهار|صباح|مساء|فجر")

PHOTOMONTAGE_PART_RE = re.compile(
    r"^\s*[\(\)]*\s*(?:فوتو\s*مونتاج|Photomontage)\s*[\(\)]*", re.IGNORECASE
)

KNOWN_PLACES = (
    "مسجد", "بيت", "منزل", "شارع", "حديقة", "مدرسة", "جامعة", "مكتب", "محل", "مستشفى",
    "مطعم", "فندق", "سيارة", "غرفة", "قاعة", "ممر", "سطح", "ساحة", "مقبرة", "مخبز",
    "مكتبة", "نهر", "بحر", "جبل", "غابة", "سوق", "مصنع", "بنك", "محكمة", "سجن", "موقف",
    "محطة", "مطار", "ميناء", "كوبرى", "نفق", "مبنى", "قصر", "قصر عدلي", "نادي", "ملعب",
    "ملهى", "بار", "كازينو", "متحف", "مسرح", "سينما", "معرض", "مزرعة", "مختبر", "مستودع",
    "مقهى", "شركة", "كهف", "الكهف", "غرفة الكهف", "كهف المرايا", "كوافير", "صالون", "حلاق",
)
KNOWN_PLACES_RE = re.compile(r"^(?:" + "|".join(KNOWN_PLACES) + ")", re.IGNORECASE)

LOCATION_PREFIX_RE = re.compile(r"^(?:داخل|في|أمام|خلف|بجوار|على|تحت|فوق)\s+")

# Motion verbs that mark the tail of a "place - action" compound line
PLACE_ACTION_VERB_RE = re.compile(
    r"(?:يدخل|يخرج|يقف|يجلس|ينظر|يتحرك|يقترب|يبتعد|يركض|يمشي|يتحدث|يصرخ|"
    r"تدخل|تخرج|تقف|تجلس|تنظر|تتحرك|تقترب|تبتعد|تركض|تمشي|تتحدث|تصرخ)"
)
PLACE_ACTION_SPLIT_RE = re.compile(r"^([^-–—]+)\s*[-–—]\s*(.+)$")

CHARACTER_RE = re.compile(
    rf"^\s*(?:صوت\s+)?[{ARABIC_LETTERS}][{ARABIC_LETTERS}\s]{{0,30}}:?\s*$"
)
ARABIC_CHARACTER_RE = re.compile(
    r"^[\s\u0600-\u06FF\u0750-\u077F\u08A0-\u08FF\uFB50-\uFDFF\uFE70-\uFEFF]+[:\s]*$"
)
ARABIC_ONLY_RE = re.compile(
    r"^[\s\u0600-\u06FF\u0750-\u077F\u08A0-\u08FF\uFB50-\uFDFF\uFE70-\uFEFF:：]+$"
)

TRANSITION_RE = re.compile(
    r"^\s*(?:قطع|قطع\s+إلى|إلى|مزج|ذوبان|خارج\s+المشهد|CUT TO:|FADE IN:|FADE OUT:)\s*$",
    re.IGNORECASE,
)
PARENTHETICAL_SHAPE_RE = re.compile(r"^\s*\(.*?\)\s*$")

BULLET_CHARACTER_RE = re.compile(
    r"^[\s\u200E\u200F\u061C\uFEFF]*[•·∙⋅●○◦■□▪▫◆◇–—−‒―‣⁃*+]\s*([^:：]+?)\s*[:：]\s*(.*?)\s*$"
)
INLINE_CHARACTER_DIALOGUE_RE = re.compile(r"^([^:：]{1,60}?)\s*[:：]\s*(.+)$")
MULTI_COLON_RE = re.compile(r"^[^:：]+[:：].+[:：]")

ACTION_START_PATTERNS = tuple(re.compile(pattern) for pattern in (
    r"^\s*(?:[-–—]\s*)?(?:(?:ثم\s+)|(?:و(?:هو|هي)\s+)|(?:و\s+))*ل?"
    r"(?:نرى|ننظر|نسمع|نلاحظ|يبدو|يظهر|يبدأ|ينتهي|يستمر|يتوقف|يتحرك|يحدث|يكون|يوجد|توجد|تظهر)(?:\s+\S|$)",
    r"^\s*(?:و|ف)?(?:لنرى|نرى|نسمع|نلاحظ|نقترب|نبتعد|ننتقل)(?:\s+\S|$)",
    r"^\s*(?:و|ف)?[يت][\u0600-\u06FF]{2,}\s+\S",
    r"^\s*(?:ثم\s+)?(?:(?:و(?:هو|هي)\s+)|(?:و\s+))*[يت][\u0600-\u06FF]{2,}\s+\S",
    r"^\s*(?:ثم\s+|و(?:هو|هي)\s+)(?:ل)?[يت][\u0600-\u06FF]+\s+\S",
    r"^\s*[-–—]\s*(?:(?:ثم\s+)|(?:و(?:هو|هي)\s+)|(?:و\s+))*[يت][\u0600-\u06FF]+\s+\S",
    r"^\s*(?:لنرى|لينظر|ليتجها|ليتجه|ليجلسا|ليجلس|لينهض|ليبتعد)(?:\s+\S|$)",
))

# Manner words typical of a parenthetical direction
PARENTHETICAL_LEAD_WORDS = (
    "همساً", "بصوت", "مبتسماً", "باحتقار", "بحزن", "بغضب",
    "بفرح", "بنظرة", "ساخراً", "متعجباً", "بحدة", "بهدوء",
)
PARENTHETICAL_WORDS = (
    "همساً", "بصوت", "صوت", "مبتسماً", "باحتقار", "بحزن",
    "بغضب", "بفرح", "بطريقة", "بنظرة", "بتحديق", "بسرعة",
    "ببطء", "فجأة", "فوراً", "وهو", "وهي", "مبتسما", "مبتسم",
)
PARENTHETICAL_EMISSION_WORDS = ("همساً", "بصوت", "مبتسماً", "بحزن", "بغضب", "ساخراً")
DESCRIPTIVE_WORDS = ("بطيء", "سريع", "فجأة", "ببطء", "بسرعة", "هدوء", "صمت")
DIALOGUE_PRONOUN_RE = re.compile(r"أنا|إنت|أنت|إحنا|نحن|هو|هي")
QUESTION_MARK_RE = re.compile(r"\?|؟")
LEADING_ELLIPSIS_RE = re.compile(r"^\s*(?:\.\.\.|…)")
LEADING_QUOTE_RE = re.compile(r"^\s*[\"«“]")
_NON_ARABIC_RE = re.compile(r"[^\u0600-\u06FF]")
_DIRECTION_MARKS_RE = re.compile(r"[\u200E\u200F\u061C]")


def is_basmala(line: str) -> bool:
    return bool(BASMALA_RE.match(line.strip()))


def is_scene_header_start(line: str) -> bool:
    return bool(SCENE_PREFIX_RE.match(line))


def is_scene_header_1(line: str) -> bool:
    return bool(SCENE_HEADER_1_RE.match(line))


def is_transition(line: str) -> bool:
    return bool(TRANSITION_RE.match(line))


def is_parenthetical_shape(line: str) -> bool:
    return bool(PARENTHETICAL_SHAPE_RE.match(line))


def is_time_location_only(line: str) -> bool:
    return bool(TIME_LOCATION_ONLY_RE.match(line))


def is_time_location_piece(line: str) -> bool:
    return bool(INOUT_ONLY_RE.match(line) or TIME_ONLY_RE.match(line))


def starts_with_known_place(line: str) -> bool:
    return bool(KNOWN_PLACES_RE.match(line))


def has_location_prefix(line: str) -> bool:
    return bool(LOCATION_PREFIX_RE.match(line))


def has_place_action_verb(line: str) -> bool:
    return bool(PLACE_ACTION_VERB_RE.search(line))


def is_action_verb_start(line: str) -> bool:
    """True when the first token is a lexicon verb, optionally behind one particle."""
    tokens = line.strip().split()
    if not tokens:
        return False
    token = _NON_ARABIC_RE.sub("", _DIRECTION_MARKS_RE.sub("", tokens[0])).strip()
    if not token:
        return False
    if token in ACTION_VERB_SET:
        return True
    for particle in LEADING_PARTICLES:
        if token.startswith(particle) and len(token) > 1 and token[1:] in ACTION_VERB_SET:
            return True
    return False


def matches_action_start_pattern(line: str) -> bool:
    normalized = normalize_line(line)
    if word_count(normalized) == 1:
        # A lone word only counts when it is a known verb, so bare names survive
        return normalized in ACTION_VERB_SET
    return any(pattern.search(normalized) for pattern in ACTION_START_PATTERNS)


def looks_like_action_start(line: str) -> bool:
    return is_action_verb_start(line) or matches_action_start_pattern(line)


def is_character_line(line: str) -> bool:
    """Shape test for a character cue such as ``أحمد:`` or a bare Arabic name."""
    if is_scene_header_start(line) or is_transition(line) or is_parenthetical_shape(line):
        return False
    if word_count(line) > 7:
        return False

    normalized = normalize_line(line)
    if is_action_verb_start(normalized) or matches_action_start_pattern(normalized):
        return False

    if ends_with_colon(line):
        return True
    if ARABIC_CHARACTER_RE.match(line):
        return True
    if not has_colon(line):
        return False

    return bool(CHARACTER_RE.match(line) or ARABIC_CHARACTER_RE.match(line))


def is_likely_action(line: str) -> bool:
    if (
        is_blank(line)
        or is_basmala(line)
        or is_scene_header_start(line)
        or is_transition(line)
        or is_character_line(line)
        or is_parenthetical_shape(line)
    ):
        return False
    return looks_like_action_start(normalize_line(line))
