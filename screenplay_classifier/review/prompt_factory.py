from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..line_types import LineType
from ..text_processing.normalizer import ends_with_colon, word_count, has_sentence_punctuation
from ..text_processing.patterns import is_action_verb_start, is_parenthetical_shape, starts_with_known_place

TYPE_CATALOGUE = {
    LineType.BASMALA: "The opening invocation (بسم الله الرحمن الرحيم).",
    LineType.SCENE_HEADER_TOP_LINE: "Scene number with interior/exterior and time of day, e.g. 'مشهد 1 داخلي - ليل'.",
    LineType.SCENE_HEADER_1: "A bare scene number, e.g. 'مشهد 3'.",
    LineType.SCENE_HEADER_2: "Interior/exterior and time of day on their own line, e.g. 'داخلي - نهار'.",
    LineType.SCENE_HEADER_3: "The scene's place, e.g. 'منزل أحمد - الصالة'.",
    LineType.ACTION: "Scene description or stage action, often starting with a verb.",
    LineType.CHARACTER: "The name of the character about to speak, usually ending with ':'.",
    LineType.DIALOGUE: "Words spoken by the character named above.",
    LineType.PARENTHETICAL: "A short manner direction in parentheses under a character or inside dialogue.",
    LineType.TRANSITION: "An editing transition such as 'قطع' or 'CUT TO:'.",
    LineType.BLANK: "An empty separator line.",
}


@dataclass
class ReviewItem:
    index: int
    text: str
    current_type: LineType
    doubt_score: float = 0
    context_before: List[str] = field(default_factory=list)
    context_after: List[str] = field(default_factory=list)
    alternative_type: Optional[LineType] = None


class ReviewPromptFactory:
    """
    Builds the prompts sent to the LLM reviewer.

    One prompt covers a whole batch: the closed type catalogue, then every
    doubtful line with its current type, a short heuristic read-out and its
    surrounding lines, then the exact JSON reply format.
    """

    def create_review_prompt(self, items: Sequence[ReviewItem]) -> str:
        if not items:
            return ""

        catalogue = "\n".join(f"- {line_type.value}: {description}" for line_type, description in TYPE_CATALOGUE.items())
        blocks = "\n\n".join(self._format_item(item) for item in items)
        indices = ", ".join(str(item.index) for item in items)

        return f"""TASK: You are reviewing an automatic classification of Arabic screenplay lines.
For each line in the REVIEW BLOCK, decide which type it really is.

LINE TYPES (use these exact names):
{catalogue}

---REVIEW BLOCK---
{blocks}

Respond with a single JSON array containing one object per reviewed line (indices: {indices}):
[{{"index": <line index>, "suggestedType": "<type name>", "confidence": <0-100>, "reason": "<short reason>"}}]
Keep suggestedType equal to the current type when it is already correct. Respond with ONLY the JSON array."""

    def create_json_correction_prompt(self, malformed_text: str) -> str:
        return f"""Your previous response was not a valid JSON array. Fix it and respond with ONLY valid JSON.

BROKEN RESPONSE:
{malformed_text}

REQUIRED FORMAT:
[{{"index": 0, "suggestedType": "action", "confidence": 80, "reason": "..."}}]"""

    def _format_item(self, item: ReviewItem) -> str:
        before = "\n".join(f"    {line}" for line in item.context_before) or "    (start of document)"
        after = "\n".join(f"    {line}" for line in item.context_after) or "    (end of document)"
        alternative = f" (runner-up: {item.alternative_type.value})" if item.alternative_type else ""
        return (
            f"LINE {item.index}: \"{item.text}\"\n"
            f"  current type: {item.current_type.value}{alternative}, doubt {int(item.doubt_score)}\n"
            f"  analysis: {self.quick_analysis(item.text)}\n"
            f"  before:\n{before}\n"
            f"  after:\n{after}"
        )

    @staticmethod
    def quick_analysis(text: str) -> str:
        notes = [f"{word_count(text)} words"]
        if ends_with_colon(text):
            notes.append("ends with colon")
        if is_parenthetical_shape(text):
            notes.append("in parentheses")
        if is_action_verb_start(text):
            notes.append("starts with an action verb")
        if starts_with_known_place(text):
            notes.append("starts with a place word")
        if has_sentence_punctuation(text):
            notes.append("has sentence punctuation")
        return ", ".join(notes)
