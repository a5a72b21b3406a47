"""Search providers and the search client for AI news discovery.

This module provides a modular, extensible architecture for searching news
providers. New providers can be added by:

1. Creating a class that inherits from RawSearchProvider
2. Registering it with the @register_provider decorator

Example:
    @register_provider("my_provider")
    class MyProvider(RawSearchProvider):
        name = "my_provider"
        env_key = "MY_PROVIDER_API_KEY"  # Optional
        host = "api.example.com"

        async def search(self, keyword: str, timeframe: str) -> List[RawHit]:
            # Implementation here
            pass

Every provider returns the same ``RawHit`` shape, so the normalizer never
needs to know which provider produced a hit.

Note:
    Providers are queried one keyword at a time, spaced by the configured
    rate-limit delay per destination host. Be mindful of provider quotas:
    NewsAPI's free tier allows 100 requests/day, so ten keywords with one
    timeframe widening can use 20 requests per run.
"""

import asyncio
import logging
import re
import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Type

import httpx
from tavily import AsyncTavilyClient
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential, wait_fixed

from .cache import SearchResultCache
from .config import TIMEFRAME_DAYS, TIMEFRAME_LABELS, AgentConfig, default_config
from .exceptions import NoResultsError, SearchError
from .filters import ArticleFilter, exclude_seen, strip_markup
from .models import Article, RawHit
from .observability import record_fallback, record_search

logger = logging.getLogger(__name__)

# Registry for provider classes
_PROVIDER_REGISTRY: Dict[str, Type["RawSearchProvider"]] = {}

# NewsAPI appends "[+1234 chars]" to truncated content
_TRUNCATION_MARKER_RE = re.compile(r"\s*\[\+\d+ chars\]\s*$")

# Transport failures worth retrying
RETRYABLE_ERRORS = (httpx.TransportError, asyncio.TimeoutError)


def register_provider(name: str) -> Callable[[Type["RawSearchProvider"]], Type["RawSearchProvider"]]:
    """Decorator to register a search provider class.

    Args:
        name: The unique identifier for this provider.

    Returns:
        Decorator function that registers the class.
    """
    def decorator(cls: Type["RawSearchProvider"]) -> Type["RawSearchProvider"]:
        _PROVIDER_REGISTRY[name] = cls
        return cls
    return decorator


def get_available_providers() -> List[str]:
    """Get list of all registered provider names."""
    return list(_PROVIDER_REGISTRY.keys())


def get_provider(
    name: str,
    config: Optional[AgentConfig] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> Optional["RawSearchProvider"]:
    """Get a provider instance by name.

    Args:
        name: The provider name to retrieve.
        config: Agent configuration (defaults apply when omitted).
        http_client: Shared HTTP client for providers that use one.

    Returns:
        Provider instance or None if not found.
    """
    provider_cls = _PROVIDER_REGISTRY.get(name)
    if provider_cls:
        return provider_cls(config=config, http_client=http_client)
    return None


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Could not parse date '{value}'")
        return None


class RateLimiter:
    """Keeps a minimum delay between request starts to the same destination."""

    def __init__(
        self,
        delay: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.delay = delay
        self._clock = clock
        self._sleep = sleep
        self._last_request: Dict[str, float] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    async def wait(self, destination: str) -> float:
        """Wait until a request to destination may start.

        Returns:
            Seconds spent waiting.
        """
        # Locked per destination so hosts are spaced independently
        async with self._locks.setdefault(destination, asyncio.Lock()):
            waited = 0.0
            last = self._last_request.get(destination)
            if last is not None:
                remaining = self.delay - (self._clock() - last)
                if remaining > 0:
                    logger.debug(f"Rate limiting {destination}: waiting {remaining:.2f}s")
                    await self._sleep(remaining)
                    waited = remaining
            self._last_request[destination] = self._clock()
            return waited


class RawSearchProvider(ABC):
    """Base class for all search providers.

    Subclasses must implement ``search`` and set ``name`` and ``host``.
    Providers that need a credential set ``env_key`` and override ``api_key``.
    Errors are raised, not swallowed: the search client decides how a failed
    keyword is handled.
    """

    name: str = ""
    env_key: Optional[str] = None
    description: str = ""
    host: str = ""

    def __init__(self, config: Optional[AgentConfig] = None, http_client: Optional[httpx.AsyncClient] = None):
        self.config = config or default_config()
        self._http_client = http_client

    def api_key(self) -> Optional[str]:
        return None

    def is_available(self) -> bool:
        """Check if this provider can be used (has its required API key)."""
        if self.env_key is None:
            return True
        return bool(self.api_key())

    def get_missing_key_message(self) -> str:
        if self.env_key:
            return f"Warning: {self.env_key} not set, skipping {self.name}"
        return ""

    def _validate_inputs(self, keyword: str, timeframe: str) -> None:
        """Validate search parameters.

        Raises:
            ValueError: If keyword is empty or timeframe is unknown.
        """
        if not keyword or not keyword.strip():
            raise ValueError("Keyword cannot be empty")
        if timeframe not in TIMEFRAME_DAYS:
            raise ValueError(f"Unknown timeframe '{timeframe}', expected one of {sorted(TIMEFRAME_DAYS)}")

    async def _get_json(
        self,
        url: str,
        params: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
    ) -> Optional[Any]:
        """GET a URL and decode its JSON body.

        Returns:
            Decoded JSON, or None when the body is empty.

        Raises:
            httpx.HTTPError: On transport failures and non-2xx responses.
            ValueError: If the body is not valid JSON.
        """
        request_headers = {
            "User-Agent": self.config.search.user_agent,
            "Accept": "application/json",
        }
        request_headers.update(headers or {})
        timeout = self.config.search.request_timeout

        if self._http_client is not None:
            response = await self._http_client.get(url, params=params, headers=request_headers, timeout=timeout)
        else:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
                response = await client.get(url, params=params, headers=request_headers)

        response.raise_for_status()
        if not response.text.strip():
            return None
        return response.json()

    @abstractmethod
    async def search(self, keyword: str, timeframe: str) -> List[RawHit]:
        """Search the provider for one keyword.

        Args:
            keyword: Search keyword (must not be empty).
            timeframe: Recency window code ("d", "w" or "m").

        Returns:
            List of RawHit objects with markup already stripped.
        """


@register_provider("duckduckgo")
class GenericProvider(RawSearchProvider):
    """DuckDuckGo instant-answer API.

    The payload is loosely structured: a direct abstract, flat related topics,
    nested related-topic groups and a results list. All of them are walked and
    flattened. The API has no date filter, so the timeframe only affects which
    batch the hits belong to.
    """

    name = "duckduckgo"
    env_key = None  # No API key required
    description = "DuckDuckGo instant answers (no API key required)"
    host = "api.duckduckgo.com"
    base_url = "https://api.duckduckgo.com/"

    async def search(self, keyword: str, timeframe: str) -> List[RawHit]:
        self._validate_inputs(keyword, timeframe)
        params = {"q": keyword, "format": "json", "no_html": "1", "skip_disambig": "1"}
        data = await self._get_json(self.base_url, params)
        if not data:
            logger.warning(f"Empty response from {self.name} for '{keyword}'")
            return []
        if not isinstance(data, dict):
            raise ValueError(f"Expected JSON object, got {type(data).__name__}")
        return self.parse_payload(data, keyword)

    def parse_payload(self, data: Dict[str, Any], keyword: str) -> List[RawHit]:
        """Flatten an instant-answer payload into raw hits."""
        hits: List[RawHit] = []

        abstract_url = data.get("AbstractURL")
        abstract_text = strip_markup(data.get("AbstractText"))
        if abstract_url and len(abstract_text) > 50:
            hits.append(
                RawHit(
                    url=abstract_url,
                    text=abstract_text,
                    heading=strip_markup(data.get("Heading")) or None,
                    provider=self.name,
                    query=keyword,
                    source_name=data.get("AbstractSource") or None,
                    direct=True,
                )
            )

        for topic in data.get("RelatedTopics") or []:
            if not isinstance(topic, dict):
                continue
            # Grouped topics carry their items under "Topics"
            group = topic.get("Topics")
            hits.extend(self._item_hits(group if isinstance(group, list) else [topic], keyword))

        hits.extend(self._item_hits(data.get("Results") or [], keyword))
        logger.debug(f"Extracted {len(hits)} hits from {self.name} payload for '{keyword}'")
        return hits

    def _item_hits(self, items: List[Any], keyword: str) -> List[RawHit]:
        hits = []
        for item in items:
            if not isinstance(item, dict):
                continue
            url = item.get("FirstURL")
            text = strip_markup(item.get("Text"))
            if not url or not text:
                continue
            hits.append(RawHit(url=url, text=text, provider=self.name, query=keyword))
        return hits


@register_provider("newsapi")
class StructuredProvider(RawSearchProvider):
    """NewsAPI /v2/everything search with explicit article fields."""

    name = "newsapi"
    env_key = "NEWS_API_KEY"
    description = "NewsAPI article search"
    host = "newsapi.org"
    base_url = "https://newsapi.org/v2/everything"

    def api_key(self) -> Optional[str]:
        return self.config.search.news_api_key

    async def search(self, keyword: str, timeframe: str) -> List[RawHit]:
        self._validate_inputs(keyword, timeframe)
        api_key = self.api_key()
        if not api_key:
            logger.warning(self.get_missing_key_message())
            return []

        since = datetime.now(timezone.utc) - timedelta(days=TIMEFRAME_DAYS[timeframe])
        params = {
            "q": keyword,
            "from": since.strftime("%Y-%m-%d"),
            "sortBy": "relevancy",
            "language": "en",
            "pageSize": self.config.search.max_results,
        }
        data = await self._get_json(self.base_url, params, headers={"X-Api-Key": api_key})
        if not data:
            return []
        if data.get("status") == "error":
            raise ValueError(f"NewsAPI error: {data.get('message', 'unknown error')}")

        hits = []
        for item in data.get("articles") or []:
            url = item.get("url")
            description = strip_markup(item.get("description"))
            content = _TRUNCATION_MARKER_RE.sub("", strip_markup(item.get("content")))
            if content.startswith(description):
                text = content
            else:
                text = " ".join(part for part in (description, content) if part)
            if not url or not text:
                continue
            hits.append(
                RawHit(
                    url=url,
                    text=text,
                    heading=strip_markup(item.get("title")) or None,
                    published_at=_parse_datetime(item.get("publishedAt")),
                    provider=self.name,
                    query=keyword,
                    source_name=(item.get("source") or {}).get("name"),
                )
            )
        return hits


@register_provider("tavily")
class TavilyNewsProvider(RawSearchProvider):
    """Tavily news search (topic="news") limited to the timeframe in days."""

    name = "tavily"
    env_key = "TAVILY_API_KEY"
    description = "Tavily news search"
    host = "api.tavily.com"

    def api_key(self) -> Optional[str]:
        return self.config.search.tavily_api_key

    async def search(self, keyword: str, timeframe: str) -> List[RawHit]:
        self._validate_inputs(keyword, timeframe)
        api_key = self.api_key()
        if not api_key:
            logger.warning(self.get_missing_key_message())
            return []

        client = AsyncTavilyClient(api_key=api_key)
        response = await client.search(
            query=keyword,
            topic="news",
            days=TIMEFRAME_DAYS[timeframe],
            max_results=self.config.search.max_results,
        )

        hits = []
        for result in response.get("results", []):
            url = result.get("url")
            text = strip_markup(result.get("content"))
            if not url or not text:
                continue
            hits.append(
                RawHit(
                    url=url,
                    text=text,
                    heading=strip_markup(result.get("title")) or None,
                    published_at=_parse_published_date(result.get("published_date")),
                    provider=self.name,
                    query=keyword,
                )
            )
        return hits


def _parse_published_date(value: Optional[str]) -> Optional[datetime]:
    """Parse Tavily's RFC 2822 style dates, falling back to ISO 8601."""
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return _parse_datetime(value)


class SearchClient:
    """Runs keyword batches against one provider and turns them into articles.

    A failed keyword never aborts the batch. If the initial timeframe yields no
    usable articles the batch is repeated once with the wider fallback
    timeframe, and if that also fails, fresh cached results are used.
    """

    def __init__(
        self,
        config: Optional[AgentConfig] = None,
        provider: Optional[RawSearchProvider] = None,
        cache: Optional[SearchResultCache] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        rate_limiter: Optional[RateLimiter] = None,
        article_filter: Optional[ArticleFilter] = None,
    ):
        """Initialize the search client.

        Args:
            config: Agent configuration (defaults apply when omitted).
            provider: Provider instance; defaults to ``config.search.provider``.
            cache: Result cache; defaults to one built from ``config.cache``.
            http_client: Shared HTTP client. One is created (and owned) if omitted.
            rate_limiter: Rate limiter; defaults to ``config.search.rate_limit_delay``.
            article_filter: Normalizer; defaults to one built from config.

        Raises:
            ValueError: If the configured provider is not registered.
        """
        self.config = config or default_config()
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            timeout=self.config.search.request_timeout,
            follow_redirects=True,
        )
        self.provider = provider or get_provider(self.config.search.provider, self.config, self._http_client)
        if self.provider is None:
            raise ValueError(
                f"Unknown search provider '{self.config.search.provider}', "
                f"available: {', '.join(get_available_providers())}"
            )
        self.cache = cache if cache is not None else SearchResultCache.from_settings(self.config.cache)
        self.rate_limiter = rate_limiter or RateLimiter(self.config.search.rate_limit_delay)
        self.article_filter = article_filter or ArticleFilter(self.config)

    def _wait_strategy(self):
        retry = self.config.retry
        if retry.exponential_backoff:
            return wait_exponential(
                multiplier=retry.retry_delay,
                min=retry.retry_delay,
                max=retry.retry_delay * 2 ** retry.max_retries,
            )
        return wait_fixed(retry.retry_delay)

    async def fetch(self, keyword: str, timeframe: str) -> List[RawHit]:
        """Search one keyword with rate limiting, timeout and retries.

        Raises:
            ValueError: If keyword or timeframe is invalid.
            SearchError: If the provider call fails.
        """
        self.provider._validate_inputs(keyword, timeframe)
        destination = self.provider.host or self.provider.name
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.config.retry.max_retries),
                wait=self._wait_strategy(),
                retry=retry_if_exception_type(RETRYABLE_ERRORS),
                reraise=True,
            ):
                with attempt:
                    await self.rate_limiter.wait(destination)
                    return await asyncio.wait_for(
                        self.provider.search(keyword, timeframe),
                        timeout=self.config.search.request_timeout,
                    )
        except asyncio.TimeoutError as e:
            raise SearchError(keyword, "request timed out", provider=self.provider.name) from e
        except httpx.HTTPError as e:
            raise SearchError(keyword, f"network error: {e}", provider=self.provider.name) from e
        except ValueError as e:
            raise SearchError(keyword, f"invalid response: {e}", provider=self.provider.name) from e
        except Exception as e:
            # Third-party client errors (e.g. Tavily) must not abort the batch
            raise SearchError(keyword, f"{type(e).__name__}: {e}", provider=self.provider.name) from e
        return []

    async def search(self, keyword: str, timeframe: str) -> List[RawHit]:
        """Search one keyword, treating any failure as zero results."""
        try:
            hits = await self.fetch(keyword, timeframe)
        except SearchError as e:
            logger.error(str(e))
            record_search(self.provider.name, "error")
            return []

        record_search(self.provider.name, "ok" if hits else "empty")
        logger.info(f"  - {keyword}: {len(hits)} results")
        return hits

    async def search_batch(self, timeframe: str, keywords: Optional[List[str]] = None) -> List[RawHit]:
        """Search every keyword for one timeframe and combine the hits."""
        keywords = keywords or self.config.search.keywords
        label = TIMEFRAME_LABELS.get(timeframe, timeframe)
        logger.info(f"Searching {self.provider.name} for {len(keywords)} keywords ({label})")

        all_hits: List[RawHit] = []
        for keyword in keywords:
            all_hits.extend(await self.search(keyword, timeframe))

        logger.info(f"Total raw hits ({label}): {len(all_hits)}")
        return all_hits

    async def discover(self, exclude: Optional[Set[str]] = None) -> List[Article]:
        """Find new quality articles, widening the timeframe once if needed.

        Args:
            exclude: URLs to leave out (articles already seen).

        Returns:
            Ranked, deduplicated articles.

        Raises:
            NoResultsError: If neither timeframe nor the cache yields articles.
        """
        search = self.config.search
        timeframes = [search.timeframe]
        if search.fallback_timeframe and search.fallback_timeframe != search.timeframe:
            timeframes.append(search.fallback_timeframe)

        for attempt, timeframe in enumerate(timeframes):
            if attempt:
                logger.warning(
                    f"No articles found for the {TIMEFRAME_LABELS[timeframes[attempt - 1]]}, "
                    f"expanding search to the {TIMEFRAME_LABELS[timeframe]}"
                )
                record_fallback("timeframe_widening")

            hits = await self.search_batch(timeframe)
            articles = exclude_seen(self.article_filter.normalize(hits), exclude)
            if articles:
                self.cache.set(f"{self.provider.name}:{timeframe}", articles)
                return articles

        cached = exclude_seen(self.cache.recent_articles(), exclude)[: search.max_results]
        if cached:
            logger.warning(f"Live search found nothing new, using {len(cached)} cached articles")
            record_fallback("search_cache")
            return cached

        tried = ", ".join(TIMEFRAME_LABELS[t] for t in timeframes)
        raise NoResultsError(f"No articles found for {len(search.keywords)} keywords ({tried})")

    async def aclose(self) -> None:
        """Close the HTTP client if this search client created it."""
        if self._owns_http_client:
            await self._http_client.aclose()
