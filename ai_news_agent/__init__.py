"""AI News Agent package.

Discovers recent AI news, filters out what was already covered, ranks it and
writes ready-to-share social posts.

Requires Python 3.9 or higher.
"""

from .agent import AgentState, NewsAgent
from .cache import SearchResultCache
from .chains import Analyzer, generate_post_body, get_llm, local_analysis
from .config import (
    DEFAULT_KEYWORDS,
    AgentConfig,
    CacheSettings,
    LLMSettings,
    PostSettings,
    RetrySettings,
    SearchSettings,
    SourceSettings,
    config_from_env,
    default_config,
)
from .exceptions import (
    AgentError,
    AnalysisBackendError,
    NoResultsError,
    PersistenceError,
    SearchError,
    SynthesisError,
)
from .fetchers import (
    GenericProvider,
    RateLimiter,
    RawSearchProvider,
    SearchClient,
    StructuredProvider,
    TavilyNewsProvider,
    get_available_providers,
    get_provider,
    register_provider,
)
from .filters import ArticleFilter, calculate_relevance_score, extract_domain, extract_title, is_news_worthy
from .models import (
    Analysis,
    Article,
    KeyPoint,
    Post,
    PostStyle,
    RankedArticle,
    RawHit,
    RegenerationResult,
    RunResult,
    RunSummary,
)
from .persistence import JsonSeenStore, MemorySeenStore, SeenStore, create_seen_store
from .posts import FirstChoiceSelector, PostSynthesizer, RandomSelector, finalize_post, generate_hashtags
from .utils import generate_filename, get_date_string, slugify

__all__ = [
    # Agent
    "AgentState",
    "NewsAgent",
    # Configuration
    "DEFAULT_KEYWORDS",
    "AgentConfig",
    "CacheSettings",
    "LLMSettings",
    "PostSettings",
    "RetrySettings",
    "SearchSettings",
    "SourceSettings",
    "config_from_env",
    "default_config",
    # Errors
    "AgentError",
    "AnalysisBackendError",
    "NoResultsError",
    "PersistenceError",
    "SearchError",
    "SynthesisError",
    # Search
    "GenericProvider",
    "RateLimiter",
    "RawSearchProvider",
    "SearchClient",
    "SearchResultCache",
    "StructuredProvider",
    "TavilyNewsProvider",
    "get_available_providers",
    "get_provider",
    "register_provider",
    # Filtering
    "ArticleFilter",
    "calculate_relevance_score",
    "extract_domain",
    "extract_title",
    "is_news_worthy",
    # Analysis and posts
    "Analyzer",
    "FirstChoiceSelector",
    "PostSynthesizer",
    "RandomSelector",
    "finalize_post",
    "generate_hashtags",
    "generate_post_body",
    "get_llm",
    "local_analysis",
    # Models
    "Analysis",
    "Article",
    "KeyPoint",
    "Post",
    "PostStyle",
    "RankedArticle",
    "RawHit",
    "RegenerationResult",
    "RunResult",
    "RunSummary",
    # Persistence
    "JsonSeenStore",
    "MemorySeenStore",
    "SeenStore",
    "create_seen_store",
    # Utilities
    "generate_filename",
    "get_date_string",
    "slugify",
]
