"""News agent: the search, filter, analyze, synthesize and persist pipeline.

``NewsAgent.generate`` never raises. Every outcome is a ``RunResult``:

- success: posts were written and the discovered URLs were marked as seen
- partial: articles were found but analysis or post synthesis failed; the
  seen set is left untouched so the articles can be retried
- failure: no articles, or an unexpected error
"""

import logging
import time
from enum import Enum
from typing import List, Optional

from .chains import Analyzer
from .config import AgentConfig, default_config
from .exceptions import NoResultsError, PersistenceError
from .fetchers import SearchClient
from .filters import dedupe_by_url, exclude_seen, extract_domain
from .models import Analysis, Article, Post, RankedArticle, RegenerationResult, RunResult, RunSummary
from .observability import record_run
from .persistence import SeenStore, create_seen_store
from .posts import PostSynthesizer, TemplateSelector

logger = logging.getLogger(__name__)

NO_ARTICLES_ERROR = "No articles found"
NO_REGENERATION_ARTICLES_ERROR = "No articles provided for regeneration"


class AgentState(str, Enum):
    """Pipeline stage of the current (or last) run."""

    IDLE = "idle"
    SEARCHING = "searching"
    FILTERING = "filtering"
    ANALYZING = "analyzing"
    SYNTHESIZING = "synthesizing"
    PERSISTING = "persisting"
    DONE = "done"
    ERROR = "error"
    PARTIAL = "partial"


def _distinct(values: List[str]) -> List[str]:
    return list(dict.fromkeys(values))


def build_summary(articles: List[Article], posts: List[Post]) -> RunSummary:
    """Summarize a run's articles and posts."""
    return RunSummary(
        articles_found=len(articles),
        posts_generated=len(posts),
        sources=_distinct([article.source for article in articles]),
        styles=_distinct([post.style.value for post in posts]),
    )


class NewsAgent:
    """Discovers AI news and turns it into social posts.

    Attributes:
        config: Immutable agent configuration.
        state: Current pipeline stage.
    """

    def __init__(
        self,
        config: Optional[AgentConfig] = None,
        seen_store: Optional[SeenStore] = None,
        search_client: Optional[SearchClient] = None,
        analyzer: Optional[Analyzer] = None,
        synthesizer: Optional[PostSynthesizer] = None,
        selector: Optional[TemplateSelector] = None,
    ):
        """Initialize the agent.

        Components that are not supplied are built from ``config``.

        Args:
            config: Agent configuration (defaults apply when omitted).
            seen_store: Store of already processed article URLs.
            search_client: Search client for article discovery.
            analyzer: Article analyzer.
            synthesizer: Post synthesizer.
            selector: Template selector for a synthesizer built here.
        """
        self.config = config or default_config()
        # Stores define __len__, so an empty store is falsy; compare against None
        if seen_store is None:
            seen_store = create_seen_store(self.config.seen_backend, self.config.seen_path)
        self.seen_store = seen_store
        self.search_client = search_client if search_client is not None else SearchClient(self.config)
        self.analyzer = analyzer if analyzer is not None else Analyzer(self.config.llm)
        if synthesizer is None:
            synthesizer = PostSynthesizer(self.config.posts, selector=selector, llm_settings=self.config.llm)
        self.synthesizer = synthesizer
        self.state = AgentState.IDLE

    def _set_state(self, state: AgentState) -> None:
        logger.debug(f"Agent state: {self.state.value} -> {state.value}")
        self.state = state

    def _finish(self, result: RunResult, status: str, started: float) -> RunResult:
        elapsed = time.perf_counter() - started
        result.runtime_ms = int(elapsed * 1000)
        record_run(status, elapsed)
        return result

    def _partial(
        self,
        started: float,
        error: str,
        articles: List[Article],
        posts: List[Post],
        analysis: Optional[Analysis] = None,
    ) -> RunResult:
        self._set_state(AgentState.PARTIAL)
        logger.warning(f"Run finished with partial results: {error}")
        result = RunResult(
            success=False,
            partial=True,
            articles=articles,
            posts=posts,
            analysis=analysis,
            summary=build_summary(articles, posts),
            error=error,
            message=f"Found {len(articles)} articles but post generation did not complete",
        )
        return self._finish(result, "partial", started)

    async def generate(self) -> RunResult:
        """Run the full pipeline once.

        Returns:
            RunResult describing the outcome. Never raises.
        """
        started = time.perf_counter()
        articles: List[Article] = []
        try:
            self._set_state(AgentState.SEARCHING)
            logger.info("Starting AI news discovery")
            seen = self.seen_store.load()

            try:
                found = await self.search_client.discover(exclude=seen)
            except NoResultsError as e:
                logger.warning(str(e))
                found = []

            self._set_state(AgentState.FILTERING)
            articles = exclude_seen(dedupe_by_url(found), seen)
            if not articles:
                self._set_state(AgentState.ERROR)
                result = RunResult(
                    success=False,
                    error=NO_ARTICLES_ERROR,
                    message="No new AI news articles were found. Try again later.",
                )
                return self._finish(result, "no_results", started)
            logger.info(f"Found {len(articles)} new articles")

            self._set_state(AgentState.ANALYZING)
            try:
                analysis = await self.analyzer.analyze(articles)
            except Exception as e:
                logger.exception(f"Analysis failed: {e}")
                return self._partial(started, f"Analysis failed: {e}", articles, [])

            self._set_state(AgentState.SYNTHESIZING)
            try:
                posts = await self.synthesizer.synthesize_batch(analysis, articles)
            except Exception as e:
                logger.exception(f"Post synthesis failed: {e}")
                return self._partial(started, f"Post synthesis failed: {e}", articles, [], analysis)
            if not posts:
                return self._partial(started, "No posts could be generated", articles, [], analysis)

            self._set_state(AgentState.PERSISTING)
            self.seen_store.add_many(article.url for article in articles)
            try:
                self.seen_store.save()
            except PersistenceError as e:
                logger.warning(f"Could not save seen articles, they may repeat next run: {e}")

            self._set_state(AgentState.DONE)
            result = RunResult(
                success=True,
                articles=articles,
                posts=posts,
                analysis=analysis,
                summary=build_summary(articles, posts),
                message=f"Generated {len(posts)} posts from {len(articles)} articles",
            )
            logger.info(result.message)
            return self._finish(result, "success", started)

        except Exception as e:
            logger.exception(f"News agent run failed: {e}")
            self._set_state(AgentState.ERROR)
            result = RunResult(
                success=False,
                articles=articles,
                summary=build_summary(articles, []),
                error=str(e) or type(e).__name__,
                message="The news agent run failed",
            )
            return self._finish(result, "error", started)

    async def regenerate_post(
        self,
        articles: List[RankedArticle],
        overall_trend: str = "",
    ) -> RegenerationResult:
        """Write fresh posts for an already analyzed set of articles.

        Nothing is searched and the seen set is not touched.

        Args:
            articles: Ranked articles as previously returned in an analysis.
                Each needs a ``url``.
            overall_trend: Trend text from that analysis.

        Returns:
            RegenerationResult. Never raises.
        """
        if not articles:
            return RegenerationResult(success=False, error=NO_REGENERATION_ARTICLES_ERROR)

        try:
            source_articles = []
            top_articles = []
            for index, ranked in enumerate(articles):
                if not ranked.url:
                    raise ValueError(f"Article '{ranked.title}' has no url")
                source_articles.append(
                    Article(
                        title=ranked.title,
                        url=ranked.url,
                        summary=ranked.summary,
                        source=ranked.source or extract_domain(ranked.url),
                    )
                )
                top_articles.append(ranked.model_copy(update={"rank": index + 1, "original_index": index}))

            analysis = Analysis(top_articles=top_articles, overall_trend=overall_trend, strategy="supplied")
            posts = await self.synthesizer.synthesize_batch(analysis, source_articles)
        except Exception as e:
            logger.exception(f"Post regeneration failed: {e}")
            return RegenerationResult(success=False, error=str(e) or type(e).__name__)

        if not posts:
            return RegenerationResult(success=False, error="No posts could be generated")

        logger.info(f"Regenerated {len(posts)} posts")
        return RegenerationResult(success=True, linkedin_post=posts[0].content, posts=posts)

    async def aclose(self) -> None:
        """Release network resources."""
        await self.search_client.aclose()
