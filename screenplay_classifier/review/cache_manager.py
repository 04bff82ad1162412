import hashlib
import time
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Optional

from config import settings

CacheKey = str


@dataclass
class CacheEntry:
    response: str
    timestamp: float
    hits: int = 0

    def is_expired(self, ttl_seconds: float) -> bool:
        return time.time() - self.timestamp > ttl_seconds


class LRUCache:
    """Least recently used cache with a per-entry time-to-live."""

    def __init__(self, max_size: int = settings.LLM_CACHE_MAX_SIZE, ttl_seconds: float = settings.LLM_CACHE_TTL_SECONDS):
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._cache: "OrderedDict[CacheKey, CacheEntry]" = OrderedDict()
        self.logger = logging.getLogger(__name__)

    def __len__(self) -> int:
        return len(self._cache)

    def get(self, key: CacheKey) -> Optional[str]:
        entry = self._cache.get(key)
        if entry is None:
            return None

        if entry.is_expired(self.ttl_seconds):
            del self._cache[key]
            self.logger.debug(f"Cache entry expired: {key[:8]}...")
            return None

        self._cache.move_to_end(key)
        entry.hits += 1
        return entry.response

    def put(self, key: CacheKey, value: str) -> None:
        if key in self._cache:
            del self._cache[key]
        self._cache[key] = CacheEntry(response=value, timestamp=time.time())

        while len(self._cache) > self.max_size:
            oldest_key, _ = self._cache.popitem(last=False)
            self.logger.debug(f"Evicted cache entry: {oldest_key[:8]}...")

    def clear_expired(self) -> int:
        expired = [key for key, entry in self._cache.items() if entry.is_expired(self.ttl_seconds)]
        for key in expired:
            del self._cache[key]
        if expired:
            self.logger.info(f"Cleared {len(expired)} expired cache entries")
        return len(expired)

    def clear(self) -> None:
        self._cache.clear()

    def stats(self) -> Dict[str, Any]:
        return {
            'size': len(self._cache),
            'max_size': self.max_size,
            'total_hits': sum(entry.hits for entry in self._cache.values()),
        }


class ReviewCacheManager:
    """
    Caches raw LLM review responses keyed by a hash of the prompt and engine.

    The same batch of doubtful lines (same text, same current types, same
    context) produces the same prompt, so re-classifying an unchanged document
    does not pay for a second round of LLM calls.
    """

    def __init__(self, enabled: bool = settings.LLM_CACHE_ENABLED):
        self.enabled = enabled
        self.cache = LRUCache()
        self.logger = logging.getLogger(__name__)
        self._cache_hits = 0
        self._cache_misses = 0

    @staticmethod
    def make_key(prompt: str, engine: str, model: Optional[str] = None) -> CacheKey:
        normalized_prompt = ' '.join(prompt.split())
        combined = "|".join([f"prompt:{normalized_prompt}", f"engine:{engine}", f"model:{model or 'default'}"])
        return hashlib.sha256(combined.encode('utf-8')).hexdigest()[:settings.LLM_CACHE_HASH_LENGTH]

    def get_cached_response(self, prompt: str, engine: str, model: Optional[str] = None) -> Optional[str]:
        if not self.enabled:
            return None

        key = self.make_key(prompt, engine, model)
        response = self.cache.get(key)
        if response is None:
            self._cache_misses += 1
            return None

        self._cache_hits += 1
        self.logger.debug(f"Cache hit for key: {key}")
        return response

    def cache_response(self, prompt: str, response: str, engine: str, model: Optional[str] = None) -> None:
        if not self.enabled:
            return
        self.cache.put(self.make_key(prompt, engine, model), response)

    def clear_expired_entries(self) -> int:
        return self.cache.clear_expired()

    def invalidate_cache(self) -> None:
        self.cache.clear()
        self.logger.info("Review cache invalidated")

    def get_cache_stats(self) -> Dict[str, Any]:
        lookups = self._cache_hits + self._cache_misses
        cache_stats = self.cache.stats()
        return {
            'enabled': self.enabled,
            'cache_hits': self._cache_hits,
            'cache_misses': self._cache_misses,
            'hit_rate': self._cache_hits / lookups if lookups else 0,
            'cache_size': cache_stats['size'],
            'max_size': cache_stats['max_size'],
            'total_entry_hits': cache_stats['total_hits'],
            'ttl_seconds': self.cache.ttl_seconds,
        }
