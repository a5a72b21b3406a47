"""LangChain chains for ranking articles and writing post bodies.

The generative backend is optional. Without credentials, or when a backend
call fails, ``Analyzer`` falls back to a local keyword heuristic that never
touches the network.
"""

import json
import logging
import re
from typing import Any, List, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import ChatPromptTemplate
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

from .config import POSITIVE_KEYWORDS, LLMSettings
from .exceptions import AnalysisBackendError, SynthesisError
from .models import Analysis, Article, PostStyle, RankedArticle
from .observability import record_fallback

logger = logging.getLogger(__name__)

MAX_TOP_ARTICLES = 3

LOCAL_WHY_NOTABLE = "This article highlights a notable development in AI."
LOCAL_KEY_POINTS = ["Innovation in AI", "Positive impact", "Future potential"]
LOCAL_OVERALL_TREND = "AI continues to advance with new breakthroughs and practical applications."

_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)

# Lines the post body must not contain; hashtags and the source line are added later
_TRAILER_LINE_RE = re.compile(r"^\s*(#\w+(\s+#\w+)*|source:.*|https?://\S+)\s*$", re.IGNORECASE)

STYLE_INSTRUCTIONS = {
    PostStyle.NEWS_SHARE: "Open with an attention-grabbing hook, share the news, and end by asking for thoughts.",
    PostStyle.QUESTION: "Open with a thought-provoking question about the topic and invite readers to comment.",
    PostStyle.INSIGHT: "Frame the article as a key insight and add one sentence of analysis on its impact.",
    PostStyle.LIST: "Give a one-line summary followed by up to three numbered key takeaways.",
}


def has_backend_credentials(settings: Optional[LLMSettings]) -> bool:
    """Check whether a generative backend can be used."""
    return settings is not None and bool(settings.api_key)


def get_llm(settings: LLMSettings, temperature: Optional[float] = None) -> BaseChatModel:
    """Get a configured chat model for the settings' provider.

    Args:
        settings: Generative backend settings (provider, model, credentials).
        temperature: Override for the configured temperature.

    Returns:
        Configured LangChain chat model.

    Raises:
        ValueError: If the provider is unknown.
    """
    temperature = settings.temperature if temperature is None else temperature
    if settings.provider == "gemini":
        return ChatGoogleGenerativeAI(
            model=settings.model,
            google_api_key=settings.api_key,
            temperature=temperature,
            top_p=settings.top_p,
            top_k=settings.top_k,
            max_output_tokens=settings.max_output_tokens,
            timeout=settings.timeout,
        )
    if settings.provider == "openai":
        return ChatOpenAI(
            model=settings.model,
            api_key=settings.api_key,
            temperature=temperature,
            top_p=settings.top_p,
            max_tokens=settings.max_output_tokens,
            timeout=settings.timeout,
        )
    raise ValueError(f"Unknown LLM provider: {settings.provider}")


def _content_text(content: Any) -> str:
    """Flatten a chat message's content (string or list of parts) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    return ""


def extract_json(text: str) -> str:
    """Strip an optional markdown code fence around a JSON payload."""
    stripped = text.strip()
    match = _CODE_FENCE_RE.match(stripped)
    return match.group(1) if match else stripped


def _format_articles(articles: List[Article]) -> str:
    lines = []
    for index, article in enumerate(articles):
        lines.append(f"{index}. {article.title}\n   Source: {article.source}\n   Summary: {article.summary}")
    return "\n\n".join(lines)


def parse_analysis_response(content: str, articles: List[Article]) -> Analysis:
    """Parse a backend analysis response into an Analysis.

    Entries whose ``originalIndex`` is missing, out of range or repeated are
    dropped and the remaining ranks are renumbered from 1.

    Args:
        content: Raw response text, optionally wrapped in a code fence.
        articles: The articles that were sent to the backend.

    Returns:
        Analysis with ``strategy="backend"``.

    Raises:
        AnalysisBackendError: If the response is empty, not JSON, has the
            wrong shape or contains no valid entries.
    """
    if not content or not content.strip():
        raise AnalysisBackendError("Backend returned no content")

    try:
        data = json.loads(extract_json(content))
    except json.JSONDecodeError as e:
        raise AnalysisBackendError(f"Error parsing analysis: {e}\nRaw response: {content[:500]}") from e

    if not isinstance(data, dict) or not isinstance(data.get("topArticles"), list):
        raise AnalysisBackendError(f"Expected object with topArticles list, got {type(data).__name__}")

    top_articles: List[RankedArticle] = []
    used_indices = set()
    for entry in data["topArticles"]:
        if not isinstance(entry, dict):
            continue
        index = entry.get("originalIndex")
        if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(articles):
            logger.warning(f"Dropping analysis entry with invalid originalIndex: {index!r}")
            continue
        if index in used_indices:
            continue
        used_indices.add(index)

        article = articles[index]
        key_points = entry.get("keyPoints") or []
        top_articles.append(
            RankedArticle(
                rank=len(top_articles) + 1,
                title=str(entry.get("title") or article.title),
                summary=str(entry.get("summary") or article.summary),
                why_notable=str(entry.get("whyPositive") or ""),
                key_points=[str(point) for point in key_points if point] if isinstance(key_points, list) else [],
                original_index=index,
                url=article.url,
                source=article.source,
            )
        )
        if len(top_articles) == MAX_TOP_ARTICLES:
            break

    if not top_articles:
        raise AnalysisBackendError("Analysis contained no valid articles")

    return Analysis(
        top_articles=top_articles,
        overall_trend=str(data.get("overallTrend") or ""),
        strategy="backend",
    )


def local_analysis(articles: List[Article]) -> Analysis:
    """Rank articles by how many positive keywords they mention.

    Args:
        articles: Articles to rank.

    Returns:
        Analysis of the top ``min(3, len(articles))`` articles with
        ``strategy="local"``.
    """
    if not articles:
        return Analysis(strategy="local")

    def positive_score(article: Article) -> int:
        text = f"{article.title} {article.summary}".lower()
        return sum(1 for keyword in POSITIVE_KEYWORDS if keyword in text)

    ranked_indices = sorted(range(len(articles)), key=lambda i: -positive_score(articles[i]))

    top_articles = []
    for rank, index in enumerate(ranked_indices[:MAX_TOP_ARTICLES], start=1):
        article = articles[index]
        top_articles.append(
            RankedArticle(
                rank=rank,
                title=article.title,
                summary=article.summary,
                why_notable=LOCAL_WHY_NOTABLE,
                key_points=list(LOCAL_KEY_POINTS),
                original_index=index,
                url=article.url,
                source=article.source,
            )
        )
    return Analysis(top_articles=top_articles, overall_trend=LOCAL_OVERALL_TREND, strategy="local")


class Analyzer:
    """Picks the most notable articles and describes the overall trend."""

    def __init__(self, settings: Optional[LLMSettings] = None, llm: Optional[BaseChatModel] = None):
        """Initialize the analyzer.

        Args:
            settings: Backend settings. The backend is built only when they carry
                an API key.
            llm: Explicit chat model, used instead of building one from settings.
        """
        self.settings = settings
        self.llm = llm
        if self.llm is None and has_backend_credentials(settings):
            self.llm = get_llm(settings, temperature=0.3)

    @property
    def uses_backend(self) -> bool:
        return self.llm is not None

    async def analyze(self, articles: List[Article]) -> Analysis:
        """Rank articles with the backend, falling back to the local heuristic.

        Never raises for backend failures.
        """
        if not articles:
            return Analysis(strategy="local")

        if not self.uses_backend:
            logger.warning("No generative backend configured, using local analysis")
            record_fallback("local_analysis")
            return local_analysis(articles)

        try:
            return await self._backend_analysis(articles)
        except AnalysisBackendError as e:
            logger.warning(f"Backend analysis failed, using local analysis: {e}")
            record_fallback("local_analysis")
            return local_analysis(articles)

    async def _backend_analysis(self, articles: List[Article]) -> Analysis:
        prompt = ChatPromptTemplate.from_messages(
            [
                (
                    "system",
                    """You are an AI news analyst. From the numbered articles, pick the top {top_n} most notable, positive AI developments.

Respond with valid JSON only, in this shape:
{{"topArticles": [{{"rank": 1, "title": "...", "summary": "...", "whyPositive": "...", "keyPoints": ["..."], "originalIndex": 0}}], "overallTrend": "..."}}

originalIndex must be the number shown before the article.""",
                ),
                (
                    "human",
                    """Articles:

{articles}

Return valid JSON only.""",
                ),
            ]
        )

        chain = prompt | self.llm
        try:
            response = await chain.ainvoke(
                {
                    "articles": _format_articles(articles),
                    "top_n": min(MAX_TOP_ARTICLES, len(articles)),
                }
            )
        except Exception as e:
            raise AnalysisBackendError(f"Backend call failed: {e}") from e

        return parse_analysis_response(_content_text(getattr(response, "content", "")), articles)


def clean_post_body(text: str) -> str:
    """Drop hashtag, source and bare-link lines from a generated body."""
    lines = [line for line in text.strip().splitlines() if not _TRAILER_LINE_RE.match(line)]
    return "\n".join(lines).strip()


async def generate_post_body(
    llm: BaseChatModel,
    ranked: RankedArticle,
    article: Article,
    style: PostStyle,
) -> str:
    """Ask the backend for the free-form body of a post.

    Args:
        llm: Chat model to use.
        ranked: The analysis entry for the article.
        article: The source article.
        style: Post style to write in.

    Returns:
        Post body without hashtags or links.

    Raises:
        SynthesisError: If the call fails or returns no text.
    """
    prompt = ChatPromptTemplate.from_messages(
        [
            (
                "system",
                """You write short, engaging professional social media posts about AI news.
{style_instructions}
Keep it under {max_words} words. Do not include hashtags, links or a source line.""",
            ),
            (
                "human",
                """Title: {title}
Source: {source}
Summary: {summary}
Why it matters: {why_notable}
Key points: {key_points}

Write the post body only.""",
            ),
        ]
    )

    chain = prompt | llm
    try:
        response = await chain.ainvoke(
            {
                "style_instructions": STYLE_INSTRUCTIONS[style],
                "max_words": 200,
                "title": ranked.title or article.title,
                "source": article.source,
                "summary": ranked.summary or article.summary,
                "why_notable": ranked.why_notable or "n/a",
                "key_points": "; ".join(ranked.key_points) or "n/a",
            }
        )
    except Exception as e:
        raise SynthesisError(f"Backend post generation failed: {e}") from e

    body = clean_post_body(_content_text(getattr(response, "content", "")))
    if not body:
        raise SynthesisError("Backend returned an empty post body")
    return body
