import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from config import settings
from .line_types import (
    LineType,
    Confidence,
    ClassificationResult,
    ClassificationScore,
    Candidate,
    FallbackInfo,
    ViterbiOverride,
    Line,
    one_hot_scores,
)
from .text_processing.normalizer import normalize_line, is_blank, ends_with_colon, strip_trailing_colon
from .text_processing.patterns import is_time_location_only
from .classification.document_memory import DocumentMemory
from .classification.context import (
    build_context,
    get_dialogue_block_info,
    previous_non_blank_type,
)
from .classification.quick_classifier import quick_classify, quick_type
from .classification.scorers import score_all
from .classification.doubt import calculate_doubt
from .classification.fallback import apply_smart_fallback
from .classification.scene_header import (
    extract_scene_header,
    parse_inline_character_dialogue,
    parse_bullet_character,
)
from .decoding.emissions import EmissionCalculator
from .decoding.viterbi import ViterbiDecoder
from .output.spacing_rules import apply_spacing_rules

_LINE_BREAK_RE = re.compile(r"\r?\n")


@dataclass
class Segment:
    """One output line produced by the document walk.

    ``forced_type`` is set when a structural construct (scene header, inline
    cue, blank) already fixed the type; free segments are left to scoring.
    """
    text: str
    source_index: int
    forced_type: Optional[LineType] = None
    reason: str = ""

    @property
    def is_forced(self) -> bool:
        return self.forced_type is not None


@dataclass
class ClassifyOptions:
    use_sequence_decoder: bool = False
    include_doubt_score: bool = False
    enable_review: bool = settings.REVIEW_ENABLED
    review_doubt_threshold: float = settings.REVIEW_DOUBT_THRESHOLD
    engine: str = settings.DEFAULT_LLM_ENGINE
    model: Optional[str] = None


class ScreenplayClassifier:
    """Line-by-line structural classifier for Arabic screenplay text.

    The classifier turns raw, unstructured lines into typed screenplay lines
    (scene headers, action, character cues, dialogue, parentheticals,
    transitions, basmala, blanks) and reassembles them with the spacing a
    formatted script expects.

    Architecture:
        Classification runs as a pipeline over a per-document cursor walk:

        1. Pre-pass: colon-terminated cues seed the document memory
        2. Document walk: multi-line scene headers, inline ``Name: dialogue``
           and bullet cues are split into forced segments; the cursor jumps
           past every line a construct consumed
        3. Decoding, one of:
           - greedy: fast path, multi-factor scoring, doubt, pair fallback
           - sequence: Viterbi over emission and transition scores
        4. Review (optional): doubtful lines go to an LLM reviewer
        5. Spacing rules: blank separators are normalised between types

    Document Memory:
        Each classifier owns one ``DocumentMemory``. Names learned on one
        document help later lines of the same document; call
        ``reset_memory()`` before classifying an unrelated document, or use
        the module-level ``classify`` which starts from a fresh memory.

    Determinism:
        Given the same text and the same memory state, classification always
        produces the same output. Nothing here is random, and ties are broken
        by a fixed type order.

    Examples:
        >>> classifier = ScreenplayClassifier()
        >>> lines = classifier.classify("أحمد:\\nمرحبا بك")
        >>> [line.type.value for line in lines]
        ['character', 'dialogue']

        Sequence decoding with doubt scores:
        >>> options = ClassifyOptions(use_sequence_decoder=True, include_doubt_score=True)
        >>> lines = classifier.classify(text, options)
    """

    def __init__(
        self,
        memory: Optional[DocumentMemory] = None,
        use_prepass: bool = settings.CHARACTER_PREPASS_ENABLED,
        review_orchestrator=None,
    ) -> None:
        self.memory = memory if memory is not None else DocumentMemory()
        self.use_prepass = use_prepass
        self.review_orchestrator = review_orchestrator
        self.decoder = ViterbiDecoder()
        self.logger = logging.getLogger(__name__)

    def reset_memory(self) -> None:
        self.memory.clear()

    @staticmethod
    def split_lines(text: str) -> List[str]:
        return _LINE_BREAK_RE.split(text or "")

    # ----- document walk -----

    def segment_document(self, lines: Sequence[str]) -> List[Segment]:
        """Walk the input lines with a cursor, expanding multi-line constructs.

        Scene headers may consume several input lines; the cursor advances by
        ``consumed_lines``. Inline and bullet cues split one input line into a
        Character segment and a Dialogue segment.
        """
        segments: List[Segment] = []
        cursor = 0
        while cursor < len(lines):
            raw = lines[cursor]
            normalized = normalize_line(raw)

            if is_blank(raw):
                segments.append(Segment("", cursor, LineType.BLANK, "blank line"))
                cursor += 1
                continue

            header = extract_scene_header(lines, cursor)
            if header is not None:
                segments.append(Segment(header.top_line_text, cursor, LineType.SCENE_HEADER_TOP_LINE, "scene header"))
                last = cursor + header.consumed_lines - 1
                if header.place:
                    self.memory.add_place(header.place)
                    segments.append(Segment(header.place, last, LineType.SCENE_HEADER_3, "scene header place"))
                if header.remaining_action:
                    segments.append(Segment(header.remaining_action, last, LineType.ACTION, "action after place"))
                cursor += max(1, header.consumed_lines)
                continue

            cue = parse_inline_character_dialogue(normalized) or parse_bullet_character(raw)
            if cue is not None:
                name, dialogue = cue
                name = strip_trailing_colon(normalize_line(name))
                self.memory.add_character(name, Confidence.HIGH)
                segments.append(Segment(f"{name}:", cursor, LineType.CHARACTER, "inline character cue"))
                if dialogue:
                    segments.append(Segment(normalize_line(dialogue), cursor, LineType.DIALOGUE, "inline dialogue"))
                cursor += 1
                continue

            if is_time_location_only(normalized):
                segments.append(Segment(normalized, cursor, LineType.SCENE_HEADER_2, "time and location"))
                cursor += 1
                continue

            segments.append(Segment(raw, cursor))
            cursor += 1
        return segments

    # ----- greedy decoding -----

    def classify_line(
        self,
        lines: Sequence[str],
        index: int,
        assigned: Sequence[Optional[LineType]],
    ) -> ClassificationResult:
        """Classify ``lines[index]`` given the types already assigned before it."""
        raw = lines[index]
        normalized = normalize_line(raw)
        if is_blank(raw):
            return ClassificationResult(
                text="",
                type=LineType.BLANK,
                scores={LineType.BLANK: ClassificationScore(100, Confidence.HIGH, ["blank line"])},
            )

        quick = quick_classify(normalized)
        if quick is not None:
            return quick

        ctx = build_context(lines, index, assigned)
        block = get_dialogue_block_info(assigned, index)
        previous_type = previous_non_blank_type(assigned, index)
        scores = score_all(raw, ctx, self.memory, block, previous_type)
        doubt = calculate_doubt(scores)

        chosen = self._argmax(scores)
        fallback_info = None
        if doubt.needs_review:
            decision = apply_smart_fallback(doubt.top_candidates, previous_type, ctx.next_line, normalized)
            if decision is not None and decision.type != chosen:
                fallback_info = FallbackInfo(original_type=chosen, fallback_type=decision.type, reason=decision.reason)
                chosen = decision.type

        if chosen == LineType.CHARACTER:
            confidence = Confidence.HIGH if ends_with_colon(normalized) else Confidence.MEDIUM
            self.memory.add_character(normalized, confidence)

        return ClassificationResult(
            text=normalized,
            type=chosen,
            confidence=scores[chosen].confidence,
            scores=scores,
            doubt_score=doubt.doubt_score,
            needs_review=doubt.needs_review,
            top_candidates=doubt.top_candidates,
            fallback_applied=fallback_info,
        )

    @staticmethod
    def _argmax(scores) -> LineType:
        best_type = LineType.ACTION
        best_score = 0
        for line_type, score in scores.items():
            if score.score > best_score:
                best_type, best_score = line_type, score.score
        return best_type

    def _classify_greedy(self, segments: Sequence[Segment]) -> List[ClassificationResult]:
        texts = [segment.text for segment in segments]
        assigned: List[Optional[LineType]] = [None] * len(segments)
        results: List[ClassificationResult] = []

        for i, segment in enumerate(segments):
            if segment.is_forced:
                result = self._forced_result(segment)
            else:
                result = self.classify_line(texts, i, assigned)
            result.source_index = segment.source_index
            assigned[i] = result.type
            results.append(result)
        return results

    @staticmethod
    def _forced_result(segment: Segment) -> ClassificationResult:
        return ClassificationResult(
            text=segment.text,
            type=segment.forced_type,
            confidence=Confidence.HIGH,
            scores={segment.forced_type: ClassificationScore(100, Confidence.HIGH, [segment.reason])},
            source_index=segment.source_index,
        )

    # ----- sequence decoding -----

    def _classify_viterbi(
        self,
        segments: Sequence[Segment],
        update_memory: bool = settings.VITERBI_UPDATE_MEMORY,
    ) -> List[ClassificationResult]:
        calculator = EmissionCalculator(self.memory)
        emissions = [
            one_hot_scores(segment.forced_type) if segment.is_forced else calculator.calculate(segment.text)
            for segment in segments
        ]
        texts = [segment.text if segment.is_forced else normalize_line(segment.text) for segment in segments]
        fixed = [
            segment.forced_type if segment.is_forced else quick_type(normalize_line(segment.text))
            for segment in segments
        ]
        decoded = self.decoder.decode(emissions, texts, fixed)

        results: List[ClassificationResult] = []
        for segment, state in zip(segments, decoded.states):
            ranked = sorted(
                (line_type for line_type in LineType),
                key=lambda line_type: -state.emission_scores.get(line_type, 0),
            )[:2]
            override = None
            if state.overridden:
                override = ViterbiOverride(
                    greedy_choice=state.greedy_choice,
                    viterbi_choice=state.type,
                    reason=state.override_reason or "",
                )
            if update_memory and state.type == LineType.CHARACTER:
                confidence = Confidence.HIGH if ends_with_colon(state.text) else Confidence.MEDIUM
                self.memory.add_character(state.text, confidence)

            results.append(ClassificationResult(
                text=state.text,
                type=state.type,
                confidence=state.confidence,
                scores={
                    line_type: ClassificationScore.from_total(state.emission_scores.get(line_type, 0), [])
                    for line_type in ranked
                },
                doubt_score=state.doubt_score,
                needs_review=state.needs_review,
                top_candidates=[
                    Candidate(
                        type=line_type,
                        score=state.emission_scores.get(line_type, 0),
                        confidence=Confidence.from_score(state.emission_scores.get(line_type, 0)),
                    )
                    for line_type in ranked
                ],
                viterbi_override=override,
                source_index=segment.source_index,
            ))
        return results

    # ----- entry points -----

    def classify_document(
        self,
        text: str,
        use_sequence_decoder: bool = False,
        update_memory: bool = True,
    ) -> List[ClassificationResult]:
        """Classify a whole document without review or spacing.

        Returns one result per output line; a scene header or inline cue can
        yield more results than there are input lines.
        """
        lines = self.split_lines(text)
        if self.use_prepass and update_memory:
            self.memory.seed_from_lines(lines)

        segments = self.segment_document(lines)
        if use_sequence_decoder:
            results = self._classify_viterbi(segments, update_memory=update_memory and settings.VITERBI_UPDATE_MEMORY)
        else:
            results = self._classify_greedy(segments)

        flagged = sum(1 for result in results if result.needs_review)
        fallbacks = sum(1 for result in results if result.fallback_applied)
        overrides = sum(1 for result in results if result.viterbi_override)
        self.logger.info(
            f"Classified {len(lines)} input lines into {len(results)} lines "
            f"({'viterbi' if use_sequence_decoder else 'greedy'}): "
            f"{flagged} need review, {fallbacks} fallbacks, {overrides} overrides"
        )
        return results

    def classify(self, text: str, options: Optional[ClassifyOptions] = None) -> List[Line]:
        options = options or ClassifyOptions()
        results = self.classify_document(text, use_sequence_decoder=options.use_sequence_decoder)
        if options.enable_review:
            self._orchestrator(options).review(results)
        return self._finalize(results, options)

    async def classify_async(self, text: str, options: Optional[ClassifyOptions] = None) -> List[Line]:
        """Same as ``classify`` but reviews batches concurrently on the event loop."""
        options = options or ClassifyOptions()
        results = self.classify_document(text, use_sequence_decoder=options.use_sequence_decoder)
        if options.enable_review:
            await self._orchestrator(options).review_async(results)
        return self._finalize(results, options)

    def _orchestrator(self, options: ClassifyOptions):
        if self.review_orchestrator is not None:
            self.review_orchestrator.doubt_threshold = options.review_doubt_threshold
            return self.review_orchestrator
        from .review.orchestrator import ReviewOrchestrator
        self.review_orchestrator = ReviewOrchestrator(
            engine=options.engine,
            model=options.model,
            doubt_threshold=options.review_doubt_threshold,
        )
        return self.review_orchestrator

    @staticmethod
    def _finalize(results: Sequence[ClassificationResult], options: ClassifyOptions) -> List[Line]:
        lines = [result.to_line(include_doubt_score=options.include_doubt_score) for result in results]
        return apply_spacing_rules(lines)


def classify(
    text: str,
    use_sequence_decoder: bool = False,
    include_doubt_score: bool = False,
    enable_review: bool = False,
    review_doubt_threshold: float = settings.REVIEW_DOUBT_THRESHOLD,
    memory: Optional[DocumentMemory] = None,
    **kwargs,
) -> List[Line]:
    """Classify ``text`` with a fresh document memory unless one is passed in."""
    options = ClassifyOptions(
        use_sequence_decoder=use_sequence_decoder,
        include_doubt_score=include_doubt_score,
        enable_review=enable_review,
        review_doubt_threshold=review_doubt_threshold,
        **kwargs,
    )
    return ScreenplayClassifier(memory=memory).classify(text, options)
