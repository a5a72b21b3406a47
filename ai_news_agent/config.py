"""Configuration settings for the AI News Agent.

Settings are grouped into small pydantic models and combined into a single
``AgentConfig`` value that is passed explicitly to the agent. Use
``default_config()`` for the documented defaults or ``config_from_env()`` to
apply environment overrides on top of them.
"""

import os
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import PostStyle

# Keywords to search for
DEFAULT_KEYWORDS: List[str] = [
    "artificial intelligence",
    "machine learning",
    "OpenAI",
    "ChatGPT",
    "neural networks",
    "deep learning",
    "AI startups",
    "generative AI",
    "AI ethics",
    "AI regulation",
]

# Recency window codes understood by the search client
TIMEFRAME_DAYS: Dict[str, int] = {"d": 1, "w": 7, "m": 30}

TIMEFRAME_LABELS: Dict[str, str] = {
    "d": "past day",
    "w": "past week",
    "m": "past month",
}

# Terms that make a hit look like news rather than reference material
NEWS_INDICATORS: List[str] = [
    "announced",
    "launched",
    "released",
    "unveiled",
    "introduced",
    "breakthrough",
    "development",
    "research",
    "study",
    "report",
    "funding",
    "investment",
    "acquisition",
    "partnership",
    "regulation",
    "policy",
    "law",
    "ruling",
    "decision",
    "update",
    "version",
    "feature",
    "improvement",
    "innovation",
    "company",
    "startup",
    "corporation",
    "organization",
    "technology",
    "platform",
    "system",
    "tool",
    "application",
]

# A hit must mention at least one of these to be considered AI news
AI_TERMS: List[str] = [
    "artificial intelligence",
    "machine learning",
    "neural network",
    "deep learning",
    "ai model",
    "algorithm",
    "automation",
    "chatgpt",
    "openai",
    "generative",
    "llm",
    "transformer",
]

# Relevance scoring tiers
HIGH_VALUE_TERMS: List[str] = [
    "artificial intelligence",
    "machine learning",
    "neural network",
    "deep learning",
    "generative ai",
    "large language model",
]

MEDIUM_VALUE_TERMS: List[str] = ["ai", "ml", "algorithm", "automation", "chatgpt", "openai"]

NEWS_ACTION_TERMS: List[str] = ["announced", "launched", "breakthrough", "funding", "research"]

QUERY_WORD_WEIGHT: float = 0.15
HIGH_VALUE_WEIGHT: float = 0.3
MEDIUM_VALUE_WEIGHT: float = 0.2
NEWS_ACTION_WEIGHT: float = 0.1

# Keywords counted by the local (no backend) analyzer
POSITIVE_KEYWORDS: List[str] = [
    "breakthrough",
    "innovation",
    "advancement",
    "progress",
    "success",
    "achievement",
    "improvement",
]

# Hashtags that every post carries, in order
GENERIC_HASHTAGS: List[str] = ["#ArtificialIntelligence", "#AI"]

# Content keyword -> hashtag, checked in this order
HASHTAG_MAP: Dict[str, str] = {
    "machine learning": "#MachineLearning",
    "deep learning": "#DeepLearning",
    "neural network": "#NeuralNetworks",
    "chatgpt": "#ChatGPT",
    "openai": "#OpenAI",
    "generative": "#GenerativeAI",
    "startup": "#AIStartup",
    "funding": "#TechFunding",
    "research": "#AIResearch",
    "ethics": "#AIEthics",
    "regulation": "#AIRegulation",
    "automation": "#Automation",
    "innovation": "#Innovation",
    "technology": "#Technology",
    "future": "#FutureOfWork",
}

DEFAULT_PREFERRED_SOURCES: List[str] = [
    "techcrunch.com",
    "wired.com",
    "technologyreview.com",
    "venturebeat.com",
    "theverge.com",
    "arstechnica.com",
]

DEFAULT_EXCLUDED_SOURCES: List[str] = ["spam-site.com", "clickbait-news.com"]

# Default model per generative backend provider
DEFAULT_LLM_MODELS: Dict[str, str] = {
    "gemini": "gemini-2.0-flash",
    "openai": "gpt-4o-mini",
}

# Credential environment variable per generative backend provider
LLM_API_KEY_ENV: Dict[str, str] = {
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
}

DEFAULT_SEEN_PATH: str = "seen-articles.json"

# Post templates
HOOKS: List[str] = [
    "🚀 Exciting developments in AI:",
    "💡 This caught my attention in today's AI news:",
    "🔥 Hot off the press in artificial intelligence:",
    "⚡ Breaking: Major AI advancement just announced:",
    "🎯 Here's what's making waves in the AI world:",
    "🌟 Fascinating AI breakthrough to share:",
    "📈 The AI industry just took another big step forward:",
]

# "{topic}" is replaced with the article's main topic
QUESTIONS: List[str] = [
    "How do you think {topic} will impact the industry?",
    "What's your take on this latest development in AI?",
    "Do you see this as a breakthrough or just incremental progress?",
    "How might this change the way we work with AI?",
    "What opportunities does this create for businesses?",
]

INSIGHTS: List[str] = [
    "This could significantly impact how businesses approach AI integration.",
    "The implications for the future of work are worth considering.",
    "This advancement opens up new possibilities for AI applications.",
    "The competitive landscape in AI continues to evolve rapidly.",
    "This highlights the accelerating pace of AI innovation.",
]

DEFAULT_INSIGHT: str = "This development represents another step forward in AI capabilities."

# Sentences mentioning one of these can become key points
KEY_POINT_INDICATORS: List[str] = [
    "announced",
    "launched",
    "released",
    "developed",
    "created",
    "breakthrough",
    "innovation",
    "improvement",
    "advancement",
    "funding",
    "investment",
    "partnership",
    "acquisition",
    "research",
    "study",
    "findings",
    "results",
    "discovered",
    "will",
    "can",
    "enables",
    "allows",
    "provides",
    "offers",
]

# Key point importance tiers (3, 2 and 1 point per term)
KEY_POINT_HIGH_TERMS: List[str] = ["breakthrough", "revolutionary", "first", "new", "major"]
KEY_POINT_MEDIUM_TERMS: List[str] = ["announced", "launched", "developed", "funding", "partnership"]
KEY_POINT_AI_TERMS: List[str] = ["artificial intelligence", "machine learning", "neural network", "ai"]


class SearchSettings(BaseModel):
    """Search and filtering parameters."""

    model_config = ConfigDict(frozen=True)

    keywords: List[str] = Field(default_factory=lambda: list(DEFAULT_KEYWORDS), min_length=1)
    provider: str = "duckduckgo"
    max_results: int = Field(default=10, ge=1)
    timeframe: str = Field(default="d", pattern="^[dwm]$")
    fallback_timeframe: Optional[str] = Field(default="w", pattern="^[dwm]$")
    min_relevance_score: float = Field(default=0.4, ge=0.0, le=1.0)
    min_summary_length: int = Field(default=100, ge=0)
    request_timeout: float = Field(default=15.0, gt=0)
    rate_limit_delay: float = Field(default=1.0, ge=0)
    user_agent: str = "ai-news-agent/0.1"
    news_api_key: Optional[str] = None
    tavily_api_key: Optional[str] = None


class PostSettings(BaseModel):
    """Post generation settings."""

    model_config = ConfigDict(frozen=True)

    max_characters: int = Field(default=3000, ge=100)
    optimal_characters: int = Field(default=1600, ge=1)
    max_hashtags: int = Field(default=5, ge=len(GENERIC_HASHTAGS))
    styles: List[PostStyle] = Field(default_factory=lambda: list(PostStyle), min_length=1)
    default_style: PostStyle = PostStyle.NEWS_SHARE
    posts_per_run: int = Field(default=3, ge=1)


class SourceSettings(BaseModel):
    """Source quality preferences (case-insensitive substring matches)."""

    model_config = ConfigDict(frozen=True)

    preferred: List[str] = Field(default_factory=lambda: list(DEFAULT_PREFERRED_SOURCES))
    excluded: List[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDED_SOURCES))


class CacheSettings(BaseModel):
    """Search result cache settings."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    ttl_seconds: float = Field(default=3600.0, gt=0)
    max_entries: int = Field(default=100, ge=1)


class RetrySettings(BaseModel):
    """Retry policy for outbound search requests.

    ``max_retries`` is the total number of attempts per request.
    """

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=2.0, ge=0)
    exponential_backoff: bool = True


class LLMSettings(BaseModel):
    """Generative-text backend settings.

    The backend is only used when ``api_key`` is set.
    """

    model_config = ConfigDict(frozen=True)

    provider: str = "gemini"
    model: str = DEFAULT_LLM_MODELS["gemini"]
    api_key: Optional[str] = None
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    top_p: float = Field(default=0.95, gt=0.0, le=1.0)
    top_k: int = Field(default=40, ge=1)
    max_output_tokens: int = Field(default=2048, ge=1)
    timeout: float = Field(default=30.0, gt=0)


class AgentConfig(BaseModel):
    """Complete configuration for one agent instance."""

    model_config = ConfigDict(frozen=True)

    search: SearchSettings = Field(default_factory=SearchSettings)
    posts: PostSettings = Field(default_factory=PostSettings)
    sources: SourceSettings = Field(default_factory=SourceSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    seen_backend: str = "json"
    seen_path: str = DEFAULT_SEEN_PATH


def default_config() -> AgentConfig:
    """Return a fresh configuration holding the documented defaults."""
    return AgentConfig()


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> AgentConfig:
    """Build a configuration from environment variables.

    Unset variables keep their defaults, so an empty environment yields the
    same value as ``default_config()``.

    Recognized variables:
        AI_NEWS_KEYWORDS: Comma-separated search keywords.
        AI_NEWS_PROVIDER: Search provider name (duckduckgo, newsapi, tavily).
        AI_NEWS_TIMEFRAME: Initial recency window code (d, w, m).
        AI_NEWS_MIN_RELEVANCE: Minimum relevance score (0-1).
        AI_NEWS_MAX_RESULTS: Maximum number of articles kept per run.
        AI_NEWS_SEEN_BACKEND: Seen-article store backend (json, memory).
        AI_NEWS_SEEN_PATH: Seen-article JSON file path.
        AI_NEWS_LLM_PROVIDER: Generative backend (gemini, openai).
        AI_NEWS_LLM_MODEL: Model name for the generative backend.
        NEWS_API_KEY, TAVILY_API_KEY: Search provider credentials.
        GEMINI_API_KEY, OPENAI_API_KEY: Generative backend credentials.

    Args:
        environ: Mapping to read from. Defaults to ``os.environ``.

    Returns:
        AgentConfig with overrides applied.

    Raises:
        ValueError: If a variable holds an invalid value.
    """
    env = os.environ if environ is None else environ

    search: Dict[str, object] = {}
    if env.get("AI_NEWS_KEYWORDS"):
        search["keywords"] = _split_list(env["AI_NEWS_KEYWORDS"])
    if env.get("AI_NEWS_PROVIDER"):
        search["provider"] = env["AI_NEWS_PROVIDER"].strip().lower()
    if env.get("AI_NEWS_TIMEFRAME"):
        search["timeframe"] = env["AI_NEWS_TIMEFRAME"].strip().lower()
    if env.get("AI_NEWS_MIN_RELEVANCE"):
        search["min_relevance_score"] = env["AI_NEWS_MIN_RELEVANCE"]
    if env.get("AI_NEWS_MAX_RESULTS"):
        search["max_results"] = env["AI_NEWS_MAX_RESULTS"]
    if env.get("NEWS_API_KEY"):
        search["news_api_key"] = env["NEWS_API_KEY"]
    if env.get("TAVILY_API_KEY"):
        search["tavily_api_key"] = env["TAVILY_API_KEY"]

    provider = env.get("AI_NEWS_LLM_PROVIDER", "gemini").strip().lower()
    if provider not in DEFAULT_LLM_MODELS:
        raise ValueError(f"Unknown LLM provider: {provider}")
    llm: Dict[str, object] = {
        "provider": provider,
        "model": env.get("AI_NEWS_LLM_MODEL") or DEFAULT_LLM_MODELS[provider],
        "api_key": env.get(LLM_API_KEY_ENV[provider]) or None,
    }

    top_level: Dict[str, object] = {}
    if env.get("AI_NEWS_SEEN_BACKEND"):
        top_level["seen_backend"] = env["AI_NEWS_SEEN_BACKEND"].strip().lower()
    if env.get("AI_NEWS_SEEN_PATH"):
        top_level["seen_path"] = env["AI_NEWS_SEEN_PATH"]

    return AgentConfig(
        search=SearchSettings(**search),
        llm=LLMSettings(**llm),
        **top_level,
    )
