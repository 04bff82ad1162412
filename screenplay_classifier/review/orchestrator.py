import asyncio
import json
import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional, Sequence

import aiohttp
import google.api_core.exceptions
import google.generativeai as genai
import requests
from tenacity import retry, wait_exponential, stop_after_attempt, retry_if_exception_type
from tqdm import tqdm

from config import settings
from ..line_types import LineType, ClassificationResult, ReviewInfo
from .cache_manager import ReviewCacheManager
from .parsing import ReviewResponseParser, ReviewSuggestion
from .prompt_factory import ReviewPromptFactory, ReviewItem

SUPPORTED_ENGINES = ('local', 'gcp')


class RetryableReviewError(Exception):
    """Raised for HTTP statuses that are worth retrying (rate limits, 5xx)."""

    def __init__(self, status_code: int, message: str = ""):
        super().__init__(message or f"Transient LLM service status {status_code}")
        self.status_code = status_code


GCP_TRANSIENT_ERRORS = (
    google.api_core.exceptions.ServiceUnavailable,
    google.api_core.exceptions.ResourceExhausted,
)
SYNC_RETRYABLE_ERRORS = (
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
    RetryableReviewError,
) + GCP_TRANSIENT_ERRORS
ASYNC_RETRYABLE_ERRORS = (
    aiohttp.ClientConnectionError,
    asyncio.TimeoutError,
    RetryableReviewError,
) + GCP_TRANSIENT_ERRORS


@dataclass
class ReviewStats:
    total_lines: int = 0
    reviewed_lines: int = 0
    changed_lines: int = 0
    total_time_ms: float = 0
    average_time_per_line: float = 0
    api_calls: int = 0
    failed_batches: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ReviewOrchestrator:
    """Second-opinion review of doubtful lines by an LLM.

    Lines whose doubt score reaches the review threshold (or that the decoder
    already flagged) are grouped into batches. Each batch becomes one prompt
    listing the lines, their current types and the surrounding lines; the
    reply is a JSON array of ``{index, suggestedType, confidence, reason}``.
    Suggestions are merged back by line index, so the order in which batches
    finish never matters.

    Supported engines:
        - local: an Ollama server reached over HTTP with ``requests`` (or
          ``aiohttp`` on the async path)
        - gcp: Gemini through ``google-generativeai``

    Error Handling:
        Connection errors, timeouts and 429/5xx statuses are retried with
        exponential backoff. A batch that still fails, or whose reply holds no
        usable JSON, is logged and contributes no changes; its lines keep
        their pre-review types. No line is ever dropped.

    Examples:
        >>> orchestrator = ReviewOrchestrator(engine='local')
        >>> stats = orchestrator.review(results)
        >>> print(f"{stats.changed_lines} of {stats.reviewed_lines} lines changed")
    """

    def __init__(
        self,
        engine: str = settings.DEFAULT_LLM_ENGINE,
        model: Optional[str] = None,
        doubt_threshold: float = settings.REVIEW_DOUBT_THRESHOLD,
        batch_size: int = settings.REVIEW_BATCH_SIZE,
        context_lines: int = settings.REVIEW_CONTEXT_LINES,
        max_concurrent_batches: int = settings.REVIEW_MAX_CONCURRENT_BATCHES,
        cache_manager: Optional[ReviewCacheManager] = None,
        show_progress: bool = False,
    ) -> None:
        if engine not in SUPPORTED_ENGINES:
            raise ValueError(f"Unsupported LLM engine: {engine}")
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        self.engine = engine
        self.model_name = model or (settings.GCP_LLM_MODEL if engine == 'gcp' else settings.DEFAULT_LOCAL_MODEL)
        self.doubt_threshold = doubt_threshold
        self.batch_size = batch_size
        self.context_lines = context_lines
        self.max_concurrent_batches = max(1, max_concurrent_batches)
        self.show_progress = show_progress
        self.ollama_url = settings.OLLAMA_URL
        self.log_dir = os.path.join(os.getcwd(), settings.LOG_DIR)
        self.prompt_factory = ReviewPromptFactory()
        self.parser = ReviewResponseParser()
        self.cache_manager = cache_manager or ReviewCacheManager()
        self.logger = logging.getLogger(__name__)

        self.debug_logger: Optional[logging.Logger] = None
        self._debug_counter = 0
        if settings.LLM_DEBUG_LOGGING:
            self._setup_debug_logger()

        if self.engine == 'gcp':
            if not settings.GOOGLE_API_KEY:
                raise ValueError("GOOGLE_API_KEY is required for the gcp engine.")
            genai.configure(api_key=settings.GOOGLE_API_KEY)
            self.model = genai.GenerativeModel(self.model_name)

    # ----- candidate selection and batching -----

    def select_review_candidates(self, results: Sequence[ClassificationResult]) -> List[int]:
        return [
            index for index, result in enumerate(results)
            if result.type != LineType.BLANK
            and (result.needs_review or result.doubt_score >= self.doubt_threshold)
        ]

    def build_batches(self, results: Sequence[ClassificationResult], indices: Sequence[int]) -> List[List[ReviewItem]]:
        items = [self._build_item(results, index) for index in indices]
        return [items[start:start + self.batch_size] for start in range(0, len(items), self.batch_size)]

    def _build_item(self, results: Sequence[ClassificationResult], index: int) -> ReviewItem:
        result = results[index]
        alternative = None
        if len(result.top_candidates) > 1:
            alternative = next((c.type for c in result.top_candidates if c.type != result.type), None)
        return ReviewItem(
            index=index,
            text=result.text,
            current_type=result.type,
            doubt_score=result.doubt_score,
            context_before=self._context(results, range(index - 1, -1, -1))[::-1],
            context_after=self._context(results, range(index + 1, len(results))),
            alternative_type=alternative,
        )

    def _context(self, results: Sequence[ClassificationResult], positions) -> List[str]:
        lines: List[str] = []
        for position in positions:
            if len(lines) >= self.context_lines:
                break
            neighbour = results[position]
            if neighbour.type == LineType.BLANK:
                continue
            lines.append(f"[{neighbour.type.value}] {neighbour.text}")
        return lines

    # ----- synchronous review -----

    def review(self, results: List[ClassificationResult]) -> ReviewStats:
        """Review doubtful lines in place using a bounded thread pool."""
        start_time = time.time()
        stats = ReviewStats(total_lines=len(results))
        indices = self.select_review_candidates(results)
        if not indices:
            return stats

        batches = self.build_batches(results, indices)
        self.cache_manager.clear_expired_entries()
        self.logger.info(f"Reviewing {len(indices)} lines in {len(batches)} batches ({self.engine})")
        suggestions: List[ReviewSuggestion] = []

        with ThreadPoolExecutor(max_workers=self.max_concurrent_batches) as executor:
            futures = {executor.submit(self._review_batch, batch): batch for batch in batches}
            with tqdm(total=len(batches), desc="Reviewing batches", disable=not self.show_progress) as progress:
                for future in as_completed(futures):
                    batch = futures[future]
                    try:
                        suggestions.extend(future.result())
                        stats.reviewed_lines += len(batch)
                    except Exception as e:
                        stats.failed_batches += 1
                        self.logger.error(f"Review batch starting at line {batch[0].index} failed: {e}")
                    progress.update(1)

        stats.api_calls = len(batches)
        stats.changed_lines = self.merge_suggestions(results, suggestions)
        return self._finish(stats, start_time)

    def _review_batch(self, batch: Sequence[ReviewItem]) -> List[ReviewSuggestion]:
        prompt = self.prompt_factory.create_review_prompt(batch)
        valid_indices = [item.index for item in batch]
        response_text = self._get_llm_response(prompt)
        self._log_llm_interaction("review", prompt, response_text)

        validation = self._validate_response_quality(response_text)
        if validation['is_valid']:
            return self.parser.parse(response_text, valid_indices)

        self.logger.warning(f"Review response rejected ({validation['reason']}), asking for a corrected reply")
        correction = self._get_llm_response(self.prompt_factory.create_json_correction_prompt(response_text))
        self._log_llm_interaction("correction", prompt, correction)
        return self.parser.parse(correction, valid_indices)

    @retry(
        wait=wait_exponential(multiplier=1, min=settings.REVIEW_RETRY_MIN_WAIT, max=settings.REVIEW_RETRY_MAX_WAIT),
        stop=stop_after_attempt(settings.REVIEW_MAX_RETRIES),
        retry=retry_if_exception_type(SYNC_RETRYABLE_ERRORS),
        reraise=True,
    )
    def _get_llm_response(self, prompt: str) -> str:
        cached_response = self.cache_manager.get_cached_response(prompt, self.engine, self.model_name)
        if cached_response is not None:
            self.logger.debug("Using cached review response")
            return cached_response

        if self.engine == 'local':
            response = self._get_local_response(prompt)
        else:
            response = self._get_gcp_response(prompt)

        self.cache_manager.cache_response(prompt, response, self.engine, self.model_name)
        return response

    def _local_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model_name,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": settings.LLM_TEMPERATURE,
                "top_p": settings.LLM_TOP_P,
                "num_predict": settings.LLM_MAX_OUTPUT_TOKENS,
            },
        }

    def _get_local_response(self, prompt: str) -> str:
        response = requests.post(self.ollama_url, json=self._local_payload(prompt), timeout=settings.REVIEW_TIMEOUT_SECONDS)
        if response.status_code in settings.HTTP_RETRY_STATUS_CODES:
            self.logger.warning(f"Local LLM returned {response.status_code}, will retry")
            raise RetryableReviewError(response.status_code)
        response.raise_for_status()

        result = response.json()
        if 'response' not in result:
            raise ValueError("No 'response' field in Ollama response")
        return result['response'].strip()

    def _get_gcp_response(self, prompt: str) -> str:
        response = self.model.generate_content(
            prompt,
            generation_config={
                "temperature": settings.LLM_TEMPERATURE,
                "top_p": settings.LLM_TOP_P,
                "max_output_tokens": settings.LLM_MAX_OUTPUT_TOKENS,
            },
        )
        return response.text.strip()

    # ----- asynchronous review -----

    async def review_async(self, results: List[ClassificationResult]) -> ReviewStats:
        """Async variant of ``review``: one aiohttp session, at most N batches in flight."""
        start_time = time.time()
        stats = ReviewStats(total_lines=len(results))
        indices = self.select_review_candidates(results)
        if not indices:
            return stats

        batches = self.build_batches(results, indices)
        self.cache_manager.clear_expired_entries()
        semaphore = asyncio.Semaphore(self.max_concurrent_batches)
        timeout = aiohttp.ClientTimeout(total=settings.REVIEW_TIMEOUT_SECONDS)

        async with aiohttp.ClientSession(timeout=timeout) as session:
            async def run(batch: List[ReviewItem]) -> List[ReviewSuggestion]:
                async with semaphore:
                    return await self._review_batch_async(session, batch)

            outcomes = await asyncio.gather(*(run(batch) for batch in batches), return_exceptions=True)

        suggestions: List[ReviewSuggestion] = []
        for batch, outcome in zip(batches, outcomes):
            if isinstance(outcome, Exception):
                stats.failed_batches += 1
                self.logger.error(f"Async review batch starting at line {batch[0].index} failed: {outcome}")
                continue
            suggestions.extend(outcome)
            stats.reviewed_lines += len(batch)

        stats.api_calls = len(batches)
        stats.changed_lines = self.merge_suggestions(results, suggestions)
        return self._finish(stats, start_time)

    async def _review_batch_async(self, session: aiohttp.ClientSession, batch: Sequence[ReviewItem]) -> List[ReviewSuggestion]:
        prompt = self.prompt_factory.create_review_prompt(batch)
        response_text = await self._get_llm_response_async(session, prompt)
        self._log_llm_interaction("review_async", prompt, response_text)
        return self.parser.parse(response_text, [item.index for item in batch])

    @retry(
        wait=wait_exponential(multiplier=1, min=settings.REVIEW_RETRY_MIN_WAIT, max=settings.REVIEW_RETRY_MAX_WAIT),
        stop=stop_after_attempt(settings.REVIEW_MAX_RETRIES),
        retry=retry_if_exception_type(ASYNC_RETRYABLE_ERRORS),
        reraise=True,
    )
    async def _get_llm_response_async(self, session: aiohttp.ClientSession, prompt: str) -> str:
        cached_response = self.cache_manager.get_cached_response(prompt, self.engine, self.model_name)
        if cached_response is not None:
            return cached_response

        if self.engine == 'local':
            async with session.post(self.ollama_url, json=self._local_payload(prompt)) as response:
                if response.status in settings.HTTP_RETRY_STATUS_CODES:
                    raise RetryableReviewError(response.status)
                response.raise_for_status()
                result = await response.json()
            if 'response' not in result:
                raise ValueError("No 'response' field in Ollama response")
            text = result['response'].strip()
        else:
            # google-generativeai is synchronous
            loop = asyncio.get_running_loop()
            text = await loop.run_in_executor(None, lambda: self._get_gcp_response(prompt))

        self.cache_manager.cache_response(prompt, text, self.engine, self.model_name)
        return text

    # ----- merging -----

    def merge_suggestions(self, results: List[ClassificationResult], suggestions: Sequence[ReviewSuggestion]) -> int:
        """Apply suggestions by line index; returns the number of lines whose type changed.

        When several suggestions target one line the most confident wins, so
        the outcome does not depend on the order batches completed in.
        """
        best: Dict[int, ReviewSuggestion] = {}
        for suggestion in suggestions:
            current = best.get(suggestion.index)
            if current is None or suggestion.confidence > current.confidence:
                best[suggestion.index] = suggestion

        changed = 0
        for index in sorted(best):
            suggestion = best[index]
            if not 0 <= index < len(results):
                continue
            result = results[index]
            if suggestion.suggested_type == result.type or suggestion.confidence < settings.REVIEW_MIN_CONFIDENCE:
                continue
            if suggestion.suggested_type == LineType.BLANK and result.text.strip():
                # A line with text is never turned into a separator
                self.logger.debug(f"Line {index}: ignoring blank suggestion for a non-empty line")
                continue
            self.logger.debug(
                f"Line {index}: {result.type.value} -> {suggestion.suggested_type.value} ({suggestion.reason})"
            )
            result.review_info = ReviewInfo(
                original_type=result.type,
                confidence=suggestion.confidence,
                reason=suggestion.reason,
            )
            result.type = suggestion.suggested_type
            changed += 1
        return changed

    def _finish(self, stats: ReviewStats, start_time: float) -> ReviewStats:
        stats.total_time_ms = (time.time() - start_time) * 1000
        stats.average_time_per_line = stats.total_time_ms / stats.reviewed_lines if stats.reviewed_lines else 0
        self.logger.info(
            f"Review finished: {stats.changed_lines} changed, {stats.reviewed_lines} reviewed, "
            f"{stats.failed_batches} failed batches in {stats.total_time_ms:.0f}ms"
        )
        return stats

    # ----- validation and debug logging -----

    def _validate_response_quality(self, response_text: str) -> Dict[str, Any]:
        if not response_text or not response_text.strip():
            return {"is_valid": False, "reason": "Empty response"}
        if '[' not in response_text:
            return {"is_valid": False, "reason": "No JSON array in response"}
        return {"is_valid": True, "reason": "Valid response"}

    def get_cache_stats(self) -> Dict[str, Any]:
        return self.cache_manager.get_cache_stats()

    def _setup_debug_logger(self) -> None:
        self.debug_logger = logging.getLogger('llm_debug')
        self.debug_logger.setLevel(logging.DEBUG)
        if self.debug_logger.handlers:
            return

        os.makedirs(self.log_dir, exist_ok=True)
        file_handler = logging.FileHandler(os.path.join(self.log_dir, settings.LLM_DEBUG_LOG_FILE))
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))
        self.debug_logger.addHandler(file_handler)

    def _log_llm_interaction(self, step_name: str, prompt: str, response: str) -> None:
        if not self.debug_logger:
            return
        self._debug_counter += 1
        limit = settings.LLM_DEBUG_TRUNCATE_LENGTH

        def truncate(value: str) -> str:
            return value[:limit] + "..." if limit and len(value) > limit else value

        log_entry = {
            "counter": self._debug_counter,
            "step": step_name,
            "engine": self.engine,
            "prompt": truncate(prompt),
            "response": truncate(response),
        }
        self.debug_logger.debug(f"LLM_REVIEW: {json.dumps(log_entry, ensure_ascii=False, indent=2)}")
