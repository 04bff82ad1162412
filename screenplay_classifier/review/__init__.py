from .orchestrator import ReviewOrchestrator, ReviewStats, RetryableReviewError
from .parsing import ReviewResponseParser, ReviewSuggestion
from .prompt_factory import ReviewPromptFactory, ReviewItem
from .cache_manager import ReviewCacheManager

__all__ = [
    "ReviewOrchestrator",
    "ReviewStats",
    "RetryableReviewError",
    "ReviewResponseParser",
    "ReviewSuggestion",
    "ReviewPromptFactory",
    "ReviewItem",
    "ReviewCacheManager",
]
