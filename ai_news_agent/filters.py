"""Normalization, scoring and quality filtering of raw search hits.

Raw hits from any provider are turned into ``Article`` records here. An item
survives only if it reads like AI news, scores high enough, comes from an
allowed source and has a substantial summary. Survivors are deduplicated by
URL and ranked with preferred sources first.
"""

import html
import logging
import re
from typing import Iterable, List, Optional, Set
from urllib.parse import urlparse

from .config import (
    AI_TERMS,
    HIGH_VALUE_TERMS,
    HIGH_VALUE_WEIGHT,
    MEDIUM_VALUE_TERMS,
    MEDIUM_VALUE_WEIGHT,
    NEWS_ACTION_TERMS,
    NEWS_ACTION_WEIGHT,
    NEWS_INDICATORS,
    QUERY_WORD_WEIGHT,
    AgentConfig,
    default_config,
)
from .models import Article, RawHit, utc_now
from .utils import truncate

logger = logging.getLogger(__name__)

UNKNOWN_SOURCE = "unknown-source.com"
DEFAULT_TITLE = "AI News Article"
MAX_TITLE_LENGTH = 100

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")
_SENTENCE_END_RE = re.compile(r"[.!?]")


def strip_markup(text: Optional[str]) -> str:
    """Remove HTML tags and entities and collapse whitespace."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", html.unescape(_TAG_RE.sub("", text))).strip()


def extract_domain(url: str) -> str:
    """Return the bare host of a URL (no scheme, no leading www.)."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return UNKNOWN_SOURCE
    if not hostname:
        return UNKNOWN_SOURCE
    return hostname[4:] if hostname.startswith("www.") else hostname


def extract_title(text: str, heading: Optional[str] = None) -> str:
    """Pick a title for an article.

    Uses the provider heading when it is non-trivial, otherwise the first
    sentence of the text. Titles longer than 100 characters are cut to 97
    characters plus an ellipsis.

    Args:
        text: Summary text of the article.
        heading: Optional provider-supplied heading.

    Returns:
        Title text, never empty.
    """
    if heading and len(heading.strip()) >= 3:
        return truncate(heading.strip(), MAX_TITLE_LENGTH)

    first_sentence = _SENTENCE_END_RE.split(text, maxsplit=1)[0].strip()
    if not first_sentence:
        return DEFAULT_TITLE
    return truncate(first_sentence, MAX_TITLE_LENGTH)


def is_news_worthy(text: str) -> bool:
    """Check that text mentions both a news action and an AI term."""
    lower_text = text.lower()
    has_news_indicator = any(indicator in lower_text for indicator in NEWS_INDICATORS)
    has_ai_term = any(term in lower_text for term in AI_TERMS)
    return has_news_indicator and has_ai_term


def calculate_relevance_score(text: str, query: str) -> float:
    """Score how well text matches a query and reads like AI news.

    Adds 0.15 per occurrence of each query word longer than two characters,
    0.3 per high-value AI phrase, 0.2 per medium-value term and 0.1 per
    news-action term, then clamps to [0, 1].

    Args:
        text: Article text to score.
        query: The search keyword that produced the article.

    Returns:
        Relevance score between 0.0 and 1.0.
    """
    lower_text = text.lower()
    score = 0.0

    for word in query.lower().split():
        if len(word) > 2:
            score += lower_text.count(word) * QUERY_WORD_WEIGHT

    score += sum(HIGH_VALUE_WEIGHT for term in HIGH_VALUE_TERMS if term in lower_text)
    score += sum(MEDIUM_VALUE_WEIGHT for term in MEDIUM_VALUE_TERMS if term in lower_text)
    score += sum(NEWS_ACTION_WEIGHT for term in NEWS_ACTION_TERMS if term in lower_text)

    # Round off float accumulation noise (0.3 + 0.1 must equal 0.4).
    return round(max(0.0, min(score, 1.0)), 4)


def dedupe_by_url(articles: Iterable[Article]) -> List[Article]:
    """Drop articles whose URL was already seen earlier in the sequence."""
    seen_urls: Set[str] = set()
    unique = []
    for article in articles:
        if article.url in seen_urls:
            continue
        seen_urls.add(article.url)
        unique.append(article)
    return unique


def exclude_seen(articles: Iterable[Article], seen: Optional[Set[str]]) -> List[Article]:
    """Drop articles whose URL is in the seen set, keeping order."""
    if not seen:
        return list(articles)
    return [article for article in articles if article.url not in seen]


def _matches_any(source: str, patterns: Iterable[str]) -> bool:
    lower_source = source.lower()
    return any(pattern.lower() in lower_source for pattern in patterns)


class ArticleFilter:
    """Turns raw hits into a ranked, deduplicated list of quality articles."""

    def __init__(self, config: Optional[AgentConfig] = None):
        self.config = config or default_config()

    def is_excluded_source(self, source: str) -> bool:
        return _matches_any(source, self.config.sources.excluded)

    def is_preferred_source(self, source: str) -> bool:
        return _matches_any(source, self.config.sources.preferred)

    def to_article(self, hit: RawHit) -> Article:
        """Convert a raw hit into an Article with a computed relevance score."""
        summary = strip_markup(hit.text)
        heading = strip_markup(hit.heading) if hit.heading else None
        scored_text = f"{heading} {summary}" if heading else summary
        return Article(
            title=extract_title(summary, heading),
            url=hit.url,
            summary=summary,
            source=extract_domain(hit.url),
            published_date=hit.published_at or utc_now(),
            relevance_score=calculate_relevance_score(scored_text, hit.query),
            search_query=hit.query,
        )

    def passes_quality(self, article: Article) -> bool:
        """Apply the source denylist, relevance and summary length thresholds."""
        search = self.config.search
        if self.is_excluded_source(article.source):
            logger.debug(f"Excluding article from {article.source} (excluded source)")
            return False
        if article.relevance_score < search.min_relevance_score:
            logger.debug(f"Excluding article with low relevance score: {article.relevance_score}")
            return False
        if len(article.summary) < search.min_summary_length:
            logger.debug(f"Excluding article with short summary: {len(article.summary)} chars")
            return False
        return True

    def filter_and_rank(self, articles: List[Article]) -> List[Article]:
        """Deduplicate, quality-filter and rank articles.

        Ranking is stable: preferred sources first, then by descending
        relevance score. The result is cut to ``search.max_results``.
        """
        unique = dedupe_by_url(articles)
        quality = [article for article in unique if self.passes_quality(article)]
        ranked = sorted(
            quality,
            key=lambda article: (not self.is_preferred_source(article.source), -article.relevance_score),
        )
        limited = ranked[: self.config.search.max_results]
        logger.info(f"Filtered {len(articles)} candidates to {len(limited)} quality articles")
        return limited

    def normalize(self, hits: Iterable[RawHit]) -> List[Article]:
        """Convert raw hits into the final candidate article list."""
        candidates = []
        for hit in hits:
            text = strip_markup(f"{hit.heading or ''} {hit.text}")
            if not is_news_worthy(text):
                logger.debug(f"Skipping non-news hit: {hit.url}")
                continue
            candidates.append(self.to_article(hit))
        return self.filter_and_rank(candidates)
