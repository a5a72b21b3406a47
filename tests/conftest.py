"""Shared fixtures for the AI News Agent tests."""

from typing import List, Optional

import pytest

from ai_news_agent.models import Article, RawHit
from ai_news_agent.observability import get_metrics_registry

# 154 characters, news-worthy, scores 0.6 for "artificial intelligence"
ML_BREAKTHROUGH_TEXT = (
    "Researchers announced a breakthrough in machine learning that lets small models "
    "reason about images, text and audio together using far less compute power."
)

# 40 characters, below the minimum summary length
SHORT_TEXT = "OpenAI announced a new machine learning."


@pytest.fixture(autouse=True)
def reset_metrics():
    """Start every test with an empty metrics registry."""
    get_metrics_registry().reset()
    yield
    get_metrics_registry().reset()


def make_hit(url: str, text: str = ML_BREAKTHROUGH_TEXT, query: str = "artificial intelligence", **kwargs) -> RawHit:
    """Build a raw hit with sensible defaults."""
    return RawHit(url=url, text=text, provider=kwargs.pop("provider", "stub"), query=query, **kwargs)


def make_article(
    index: int,
    summary: Optional[str] = None,
    title: Optional[str] = None,
    source: str = "example.com",
    score: float = 0.6,
) -> Article:
    """Build an article with a unique URL."""
    return Article(
        title=title or f"AI article {index}",
        url=f"https://{source}/news/{index}",
        summary=summary or ML_BREAKTHROUGH_TEXT,
        source=source,
        relevance_score=score,
        search_query="artificial intelligence",
    )


@pytest.fixture
def articles() -> List[Article]:
    """Three distinct articles; the second mentions the most positive keywords."""
    return [
        make_article(0, summary="A new study on machine learning progress was released by the lab today for review."),
        make_article(
            1,
            summary="A breakthrough innovation and a real advancement: the success shows progress in deep learning.",
        ),
        make_article(2, summary="Regulators discussed an AI policy update at the summit without any firm decision yet."),
    ]

