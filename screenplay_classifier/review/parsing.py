import json
import re
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from fuzzywuzzy import fuzz, process

from ..line_types import LineType

# Minimum fuzz.ratio for a loose label to be mapped onto a line type
LABEL_MATCH_THRESHOLD = 88

LABEL_ALIASES: Dict[str, LineType] = {
    "scene-header": LineType.SCENE_HEADER_TOP_LINE,
    "top-line": LineType.SCENE_HEADER_TOP_LINE,
    "place": LineType.SCENE_HEADER_3,
    "location": LineType.SCENE_HEADER_3,
    "name": LineType.CHARACTER,
    "speaker": LineType.CHARACTER,
    "description": LineType.ACTION,
    "parenthesis": LineType.PARENTHETICAL,
    "شخصية": LineType.CHARACTER,
    "حوار": LineType.DIALOGUE,
    "وصف": LineType.ACTION,
    "حركة": LineType.ACTION,
    "ملاحظة": LineType.PARENTHETICAL,
    "انتقال": LineType.TRANSITION,
    "بسملة": LineType.BASMALA,
    "مكان": LineType.SCENE_HEADER_3,
}

_LABEL_SEPARATORS_RE = re.compile(r"[\s_]+")
_CODE_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",\s*([\]}])")


@dataclass
class ReviewSuggestion:
    index: int
    suggested_type: LineType
    confidence: int
    reason: str = ""


class ReviewResponseParser:
    """
    Turns a free-form LLM reply into validated review suggestions.

    Models wrap the JSON array in code fences, add prose around it or leave
    trailing commas; all of these are tolerated. Entries that point at an
    index outside the reviewed batch, or whose type cannot be mapped onto a
    known line type, are dropped rather than guessed.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._labels = [line_type.value for line_type in LineType]

    def parse(self, response_text: str, valid_indices: Iterable[int]) -> List[ReviewSuggestion]:
        data = self.extract_json_array(response_text or "")
        if data is None:
            self.logger.warning("Review response did not contain a JSON array")
            return []

        allowed = set(valid_indices)
        suggestions: List[ReviewSuggestion] = []
        for item in data:
            suggestion = self._to_suggestion(item)
            if suggestion is None:
                continue
            if suggestion.index not in allowed:
                self.logger.debug(f"Dropping suggestion for unknown index {suggestion.index}")
                continue
            suggestions.append(suggestion)
        return suggestions

    def extract_json_array(self, text: str) -> Optional[List[Any]]:
        for candidate in self.extract_json_candidates(text):
            for attempt in (candidate, self.clean_json_string(candidate)):
                try:
                    data = json.loads(attempt)
                except json.JSONDecodeError:
                    continue
                if isinstance(data, list):
                    return data
                if isinstance(data, dict) and isinstance(data.get("suggestions"), list):
                    return data["suggestions"]
        return None

    def extract_json_candidates(self, text: str) -> List[str]:
        candidates = [text.strip()]
        candidates.extend(match.strip() for match in _CODE_FENCE_RE.findall(text))

        start_index = text.find('[')
        end_index = text.rfind(']')
        if start_index != -1 and end_index > start_index:
            candidates.append(text[start_index:end_index + 1])
        return [candidate for candidate in candidates if candidate]

    def clean_json_string(self, json_string: str) -> str:
        return _TRAILING_COMMA_RE.sub(r"\1", json_string.strip())

    def map_label(self, label: Any) -> Optional[LineType]:
        if not isinstance(label, str) or not label.strip():
            return None
        normalized = _LABEL_SEPARATORS_RE.sub("-", label.strip().lower())

        exact = LineType.from_value(normalized)
        if exact is not None:
            return exact
        if normalized in LABEL_ALIASES:
            return LABEL_ALIASES[normalized]

        match = process.extractOne(normalized, self._labels, scorer=fuzz.ratio)
        if match and match[1] >= LABEL_MATCH_THRESHOLD:
            self.logger.debug(f"Mapped review label '{label}' to '{match[0]}' (score {match[1]})")
            return LineType.from_value(match[0])
        return None

    @staticmethod
    def normalize_confidence(value: Any) -> int:
        try:
            confidence = float(value)
        except (TypeError, ValueError):
            return 0
        if 0 < confidence <= 1:
            confidence *= 100
        return int(max(0, min(100, round(confidence))))

    def _to_suggestion(self, item: Any) -> Optional[ReviewSuggestion]:
        if not isinstance(item, dict):
            return None
        try:
            index = int(item.get("index"))
        except (TypeError, ValueError):
            return None

        suggested_type = self.map_label(item.get("suggestedType", item.get("suggested_type")))
        if suggested_type is None:
            self.logger.debug(f"Dropping suggestion with unknown type: {item.get('suggestedType')!r}")
            return None

        return ReviewSuggestion(
            index=index,
            suggested_type=suggested_type,
            confidence=self.normalize_confidence(item.get("confidence", 0)),
            reason=str(item.get("reason", "")).strip(),
        )
