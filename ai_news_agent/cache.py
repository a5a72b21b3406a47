"""Bounded, expiring cache of recent search results.

The search client stores every non-empty batch here and reads it back when a
later live search produces nothing.
"""

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, List, Optional

from .config import CacheSettings
from .models import Article

logger = logging.getLogger(__name__)


@dataclass
class _CacheEntry:
    articles: List[Article]
    stored_at: float


class SearchResultCache:
    """In-memory cache keyed by query with a TTL and a maximum entry count.

    When full, inserting a new key evicts the oldest entry.
    """

    def __init__(
        self,
        ttl_seconds: float = 3600.0,
        max_entries: int = 100,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the cache.

        Args:
            ttl_seconds: Seconds an entry stays fresh.
            max_entries: Maximum number of keys kept.
            enabled: When False, nothing is stored.
            clock: Monotonic time source (injectable for tests).
        """
        if max_entries < 1:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.enabled = enabled
        self._clock = clock
        self._entries: "OrderedDict[str, _CacheEntry]" = OrderedDict()

    @classmethod
    def from_settings(cls, settings: CacheSettings) -> "SearchResultCache":
        return cls(ttl_seconds=settings.ttl_seconds, max_entries=settings.max_entries, enabled=settings.enabled)

    def __len__(self) -> int:
        self._purge_expired()
        return len(self._entries)

    def _is_fresh(self, entry: _CacheEntry) -> bool:
        return self._clock() - entry.stored_at < self.ttl_seconds

    def _purge_expired(self) -> None:
        for key in [k for k, entry in self._entries.items() if not self._is_fresh(entry)]:
            del self._entries[key]

    def set(self, key: str, articles: List[Article]) -> None:
        """Store articles under key, replacing any previous entry."""
        if not self.enabled or not articles:
            return
        self._entries.pop(key, None)
        self._entries[key] = _CacheEntry(articles=list(articles), stored_at=self._clock())
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted cache entry: {evicted}")

    def get(self, key: str) -> Optional[List[Article]]:
        """Return fresh articles for key, or None if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not self._is_fresh(entry):
            del self._entries[key]
            return None
        return list(entry.articles)

    def recent_articles(self, limit: Optional[int] = None) -> List[Article]:
        """Return articles from all fresh entries, newest entry first, unique by URL."""
        self._purge_expired()
        seen_urls = set()
        articles: List[Article] = []
        for entry in reversed(self._entries.values()):
            for article in entry.articles:
                if article.url in seen_urls:
                    continue
                seen_urls.add(article.url)
                articles.append(article)
        return articles[:limit] if limit is not None else articles

    def clear(self) -> None:
        self._entries.clear()
