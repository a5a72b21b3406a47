"""Pydantic models for the AI News Agent.

Models that travel over the HTTP API serialize with camelCase aliases
(``model_dump(by_alias=True)``) and accept either spelling on input.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Get current datetime in UTC with timezone info."""
    return datetime.now(timezone.utc)


class PostStyle(str, Enum):
    """Template family used to write a post."""

    NEWS_SHARE = "news_share"
    QUESTION = "question"
    INSIGHT = "insight"
    LIST = "list"


class ApiModel(BaseModel):
    """Base model serialized with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RawHit(BaseModel):
    """A single search provider result before normalization."""

    url: str
    text: str
    heading: Optional[str] = None
    published_at: Optional[datetime] = None
    provider: str
    query: str
    source_name: Optional[str] = None
    direct: bool = False


class KeyPoint(ApiModel):
    """A notable sentence pulled from an article summary."""

    text: str
    importance: int = 0


class Article(ApiModel):
    """A discovered news article."""

    title: str
    url: str
    summary: str
    source: str
    published_date: datetime = Field(default_factory=utc_now)
    relevance_score: float = Field(default=0.0, ge=0.0, le=1.0)
    key_points: List[KeyPoint] = Field(default_factory=list)
    search_query: str = ""


class RankedArticle(ApiModel):
    """One entry of an analysis, pointing back into the analyzed article list."""

    rank: int = Field(default=1, ge=1)
    title: str
    summary: str = ""
    why_notable: str = Field(default="", alias="whyPositive")
    key_points: List[str] = Field(default_factory=list)
    original_index: int = Field(default=0, ge=0)
    url: Optional[str] = None
    source: Optional[str] = None

    @field_validator("key_points", mode="before")
    @classmethod
    def _key_point_text(cls, value):
        """Accept key points as plain strings, ``{"text": ...}`` objects or KeyPoint models.

        Articles from a run result carry scored key points; regeneration only
        needs their text.
        """
        if not isinstance(value, list):
            return value
        texts = []
        for item in value:
            if isinstance(item, KeyPoint):
                item = item.text
            elif isinstance(item, dict):
                item = item.get("text", "")
            if isinstance(item, str) and not item.strip():
                continue
            texts.append(item)
        return texts


class Analysis(ApiModel):
    """Ranked subset of articles plus a short trend narrative.

    ``strategy`` records how the ranking was produced: ``backend`` (generative
    model), ``local`` (keyword heuristic) or ``supplied`` (provided by a client
    for regeneration).
    """

    top_articles: List[RankedArticle] = Field(default_factory=list)
    overall_trend: str = ""
    strategy: str = "local"


class Post(ApiModel):
    """A generated, ready-to-copy social post."""

    content: str
    hashtags: List[str]
    source_url: str
    style: PostStyle
    character_count: int
    article_title: str = ""
    article_source: str = ""
    generator: str = "template"


class RunSummary(ApiModel):
    """Counts describing one pipeline run."""

    articles_found: int = 0
    posts_generated: int = 0
    sources: List[str] = Field(default_factory=list)
    styles: List[str] = Field(default_factory=list)


class RunResult(ApiModel):
    """Outcome of a full pipeline run."""

    success: bool
    partial: bool = False
    articles: List[Article] = Field(default_factory=list)
    posts: List[Post] = Field(default_factory=list)
    analysis: Optional[Analysis] = None
    summary: RunSummary = Field(default_factory=RunSummary)
    runtime_ms: int = 0
    error: Optional[str] = None
    message: str = ""
    timestamp: datetime = Field(default_factory=utc_now)


class RegenerationResult(ApiModel):
    """Outcome of regenerating post text for an existing analysis."""

    success: bool
    linkedin_post: Optional[str] = None
    posts: List[Post] = Field(default_factory=list)
    error: Optional[str] = None


class RegenerateRequest(ApiModel):
    """Body of a post regeneration request."""

    articles: List[RankedArticle] = Field(default_factory=list)
    overall_trend: str = ""
