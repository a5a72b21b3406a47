"""Tests for the search result cache."""

import pytest

from ai_news_agent.cache import SearchResultCache
from ai_news_agent.config import CacheSettings
from conftest import make_article


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


def test_set_and_get(clock):
    cache = SearchResultCache(ttl_seconds=10, clock=clock)
    articles = [make_article(1), make_article(2)]
    cache.set("duckduckgo:d", articles)

    assert cache.get("duckduckgo:d") == articles
    assert cache.get("missing") is None
    assert len(cache) == 1


def test_expired_entry_is_evicted(clock):
    cache = SearchResultCache(ttl_seconds=10, clock=clock)
    cache.set("key", [make_article(1)])

    clock.now = 10.0
    assert cache.get("key") is None
    assert len(cache) == 0


def test_oldest_entry_evicted_when_full(clock):
    cache = SearchResultCache(ttl_seconds=100, max_entries=2, clock=clock)
    cache.set("a", [make_article(1)])
    cache.set("b", [make_article(2)])
    cache.set("c", [make_article(3)])

    assert cache.get("a") is None
    assert cache.get("b") is not None
    assert cache.get("c") is not None


def test_empty_results_and_disabled_cache_store_nothing(clock):
    cache = SearchResultCache(clock=clock)
    cache.set("empty", [])
    assert len(cache) == 0

    disabled = SearchResultCache.from_settings(CacheSettings(enabled=False))
    disabled.set("key", [make_article(1)])
    assert disabled.get("key") is None


def test_recent_articles_newest_first_and_unique(clock):
    cache = SearchResultCache(ttl_seconds=100, clock=clock)
    cache.set("old", [make_article(1), make_article(2)])
    clock.now = 5.0
    cache.set("new", [make_article(3), make_article(1)])

    urls = [a.url for a in cache.recent_articles()]
    assert urls == [
        "https://example.com/news/3",
        "https://example.com/news/1",
        "https://example.com/news/2",
    ]
    assert len(cache.recent_articles(limit=1)) == 1


def test_recent_articles_skips_expired(clock):
    cache = SearchResultCache(ttl_seconds=10, clock=clock)
    cache.set("old", [make_article(1)])
    clock.now = 8.0
    cache.set("new", [make_article(2)])
    clock.now = 12.0

    assert [a.url for a in cache.recent_articles()] == ["https://example.com/news/2"]


def test_clear(clock):
    cache = SearchResultCache(clock=clock)
    cache.set("key", [make_article(1)])
    cache.clear()
    assert len(cache) == 0


def test_invalid_max_entries():
    with pytest.raises(ValueError):
        SearchResultCache(max_entries=0)
