"""Social post synthesis from ranked articles.

Each post is a body written in one of four styles, followed by a hashtag line
and a source line. Bodies come from the generative backend when one is
configured, otherwise from the templates below. Either way the finished post
never exceeds the configured character budget.
"""

import logging
import random
import re
from typing import List, Optional, Protocol, Sequence, Tuple

from langchain_core.language_models import BaseChatModel

from .chains import generate_post_body, get_llm, has_backend_credentials
from .config import (
    DEFAULT_INSIGHT,
    GENERIC_HASHTAGS,
    HASHTAG_MAP,
    HOOKS,
    INSIGHTS,
    KEY_POINT_AI_TERMS,
    KEY_POINT_HIGH_TERMS,
    KEY_POINT_INDICATORS,
    KEY_POINT_MEDIUM_TERMS,
    QUESTIONS,
    LLMSettings,
    PostSettings,
)
from .exceptions import SynthesisError
from .models import Analysis, Article, KeyPoint, Post, PostStyle, RankedArticle
from .observability import record_fallback, record_post
from .utils import truncate

logger = logging.getLogger(__name__)

# Characters kept free below the hard limit (covers the blank line before the hashtags)
DEFAULT_BUFFER = 10

# Smallest body worth posting once hashtags and source are accounted for
MIN_BODY_LENGTH = 20

MAX_KEY_POINTS = 3
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")

# Main topic by title keyword, first match wins
_TOPIC_RULES: List[Tuple[Tuple[str, ...], str]] = [
    (("chatgpt", "openai"), "ChatGPT/OpenAI"),
    (("machine learning",), "machine learning"),
    (("deep learning",), "deep learning"),
    (("neural network",), "neural networks"),
    (("generative",), "generative AI"),
    (("startup",), "AI startups"),
    (("regulation", "policy"), "AI regulation"),
    (("ethics",), "AI ethics"),
]
DEFAULT_TOPIC = "artificial intelligence"


class TemplateSelector(Protocol):
    """Chooses one template string out of several."""

    def choice(self, options: Sequence[str]) -> str:
        ...


class RandomSelector:
    """Pseudo-random template selection, reproducible when seeded."""

    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)

    def choice(self, options: Sequence[str]) -> str:
        return self._random.choice(list(options))


class FirstChoiceSelector:
    """Always picks the first template."""

    def choice(self, options: Sequence[str]) -> str:
        return options[0]


def is_key_point(sentence: str) -> bool:
    """Check whether a sentence is a noteworthy statement of suitable length."""
    lower_sentence = sentence.lower()
    return any(indicator in lower_sentence for indicator in KEY_POINT_INDICATORS) and 30 < len(sentence) < 200


def calculate_importance(sentence: str) -> int:
    lower_sentence = sentence.lower()
    score = 3 * sum(1 for term in KEY_POINT_HIGH_TERMS if term in lower_sentence)
    score += 2 * sum(1 for term in KEY_POINT_MEDIUM_TERMS if term in lower_sentence)
    score += sum(1 for term in KEY_POINT_AI_TERMS if term in lower_sentence)
    return score


def extract_key_points(summary: str) -> List[KeyPoint]:
    """Pull up to three key points out of an article summary.

    Only the first five sentences longer than 20 characters are considered.
    Points are ordered by importance; ties keep their sentence order.

    Args:
        summary: Article summary text.

    Returns:
        List of at most three KeyPoint objects.
    """
    sentences = [s.strip() for s in _SENTENCE_SPLIT_RE.split(summary) if len(s.strip()) > 20]
    key_points = [
        KeyPoint(text=sentence, importance=calculate_importance(sentence))
        for sentence in sentences[:5]
        if is_key_point(sentence)
    ]
    key_points.sort(key=lambda point: -point.importance)
    return key_points[:MAX_KEY_POINTS]


def generate_hashtags(title: str, summary: str, max_hashtags: int = 5) -> List[str]:
    """Build the hashtag list for an article.

    The generic AI tags always come first, followed by topic tags whose
    keyword appears in the title or summary, in map order.

    Args:
        title: Article title.
        summary: Article summary.
        max_hashtags: Maximum number of tags.

    Returns:
        Ordered, unique hashtags.
    """
    text = f"{title} {summary}".lower()
    hashtags = list(GENERIC_HASHTAGS)
    for keyword, hashtag in HASHTAG_MAP.items():
        if keyword in text and hashtag not in hashtags:
            hashtags.append(hashtag)
    return hashtags[:max_hashtags]


def extract_main_topic(title: str) -> str:
    """Map a title onto a short topic phrase for question prompts."""
    lower_title = title.lower()
    for keywords, topic in _TOPIC_RULES:
        if any(keyword in lower_title for keyword in keywords):
            return topic
    return DEFAULT_TOPIC


def condense(article: Article, key_points: List[KeyPoint], max_length: int) -> str:
    """Shorten an article to its most important key point (or its summary)."""
    text = key_points[0].text if key_points else article.summary
    return truncate(text, max_length)


def news_share_body(article: Article, key_points: List[KeyPoint], selector: TemplateSelector) -> str:
    hook = selector.choice(HOOKS)
    summary = condense(article, key_points, 200)
    return f"{hook}\n\n{summary}\n\nWhat are your thoughts on this development?"


def question_body(article: Article, key_points: List[KeyPoint], selector: TemplateSelector) -> str:
    question = selector.choice(QUESTIONS).format(topic=extract_main_topic(article.title))
    summary = condense(article, key_points, 150)
    return f"🤔 {question}\n\n{summary}\n\nI'd love to hear your perspectives in the comments!"


def insight_body(article: Article, key_points: List[KeyPoint], selector: TemplateSelector) -> str:
    insight = selector.choice(INSIGHTS) if key_points else DEFAULT_INSIGHT
    summary = condense(article, key_points, 150)
    return (
        f"💡 Key insight from today's AI news:\n\n{summary}\n\n{insight}\n\n"
        "This could be a game-changer for how we approach AI development."
    )


def list_body(article: Article, key_points: List[KeyPoint], selector: TemplateSelector) -> str:
    summary = condense(article, key_points, 100)
    parts = ["📋 Key takeaways from the latest AI news:", summary]
    if key_points:
        items = "\n".join(f"{i}. {point.text}" for i, point in enumerate(key_points[:MAX_KEY_POINTS], start=1))
        parts.append(f"Main points:\n{items}")
    parts.append("Which point resonates most with you?")
    return "\n\n".join(parts)


STYLE_BUILDERS = {
    PostStyle.NEWS_SHARE: news_share_body,
    PostStyle.QUESTION: question_body,
    PostStyle.INSIGHT: insight_body,
    PostStyle.LIST: list_body,
}


def finalize_post(
    body: str,
    hashtags: List[str],
    source_url: str,
    max_characters: int,
    buffer: int = DEFAULT_BUFFER,
) -> Tuple[str, List[str]]:
    """Assemble body, hashtags and source line within the character budget.

    The body is cut to fit ``max_characters - len(hashtags) - len(source line)
    - buffer``, ending with "..." when cut. If the hashtags and source line
    leave too little room for a body, topic hashtags are dropped from the
    end. The generic AI hashtags are always kept.

    Args:
        body: Post body text.
        hashtags: Hashtags in display order.
        source_url: URL for the source line.
        max_characters: Hard limit for the whole post.
        buffer: Characters kept free below the limit.

    Returns:
        Tuple of (final content, hashtags actually used).

    Raises:
        SynthesisError: If the generic hashtags and source line leave no room
            for a body.
    """
    source_line = f"\n\nSource: {source_url}"
    tags = list(hashtags)

    def room_for_body(current_tags: List[str]) -> int:
        return max_characters - len(" ".join(current_tags)) - len(source_line) - buffer

    droppable = [tag for tag in tags if tag not in GENERIC_HASHTAGS]
    while droppable and room_for_body(tags) < MIN_BODY_LENGTH:
        dropped = droppable.pop()
        tags.remove(dropped)
        logger.warning(f"Dropping hashtag {dropped} to fit the {max_characters} character limit")

    max_content = room_for_body(tags)
    if max_content < MIN_BODY_LENGTH:
        raise SynthesisError(f"Source URL and hashtags leave no room for a body in a {max_characters} character post")

    body = body.strip()
    if len(body) > max_content:
        body = truncate(body, max_content)

    if not tags:
        return f"{body}{source_line}", tags
    return f"{body}\n\n{' '.join(tags)}{source_line}", tags


class PostSynthesizer:
    """Turns an analysis into ready-to-copy social posts."""

    def __init__(
        self,
        settings: Optional[PostSettings] = None,
        selector: Optional[TemplateSelector] = None,
        llm: Optional[BaseChatModel] = None,
        llm_settings: Optional[LLMSettings] = None,
    ):
        """Initialize the synthesizer.

        Args:
            settings: Post settings (budget, hashtags, styles).
            selector: Template selection strategy; random when omitted.
            llm: Chat model for post bodies. Built from ``llm_settings`` when
                omitted and credentials are available; templates otherwise.
            llm_settings: Generative backend settings.
        """
        self.settings = settings or PostSettings()
        self.selector = selector or RandomSelector()
        self.llm = llm
        if self.llm is None and has_backend_credentials(llm_settings):
            self.llm = get_llm(llm_settings)

    def _resolve(self, analysis: Analysis, articles: List[Article], rank_index: int) -> Tuple[RankedArticle, Article]:
        if not analysis.top_articles:
            raise SynthesisError("Analysis has no ranked articles")
        if not 0 <= rank_index < len(analysis.top_articles):
            raise SynthesisError(f"No ranked article at position {rank_index}")
        ranked = analysis.top_articles[rank_index]
        if not 0 <= ranked.original_index < len(articles):
            raise SynthesisError(f"Ranked article points at missing article {ranked.original_index}")
        return ranked, articles[ranked.original_index]

    async def _body(self, ranked: RankedArticle, article: Article, style: PostStyle) -> Tuple[str, str]:
        if self.llm is not None:
            try:
                return await generate_post_body(self.llm, ranked, article, style), "backend"
            except SynthesisError as e:
                logger.warning(f"Backend post body failed for '{article.title}', using template: {e}")
                record_fallback("template_post")
        return STYLE_BUILDERS[style](article, article.key_points, self.selector), "template"

    async def synthesize(
        self,
        analysis: Analysis,
        articles: List[Article],
        style: Optional[PostStyle] = None,
        rank_index: int = 0,
    ) -> Post:
        """Write one post for a ranked article.

        Args:
            analysis: Analysis whose ranked entries point into ``articles``.
            articles: The analyzed articles.
            style: Post style; the configured default when omitted.
            rank_index: Which ranked entry to write about.

        Returns:
            The finished Post.

        Raises:
            SynthesisError: If the analysis does not resolve to an article or
                the post cannot fit the character budget.
        """
        style = style or self.settings.default_style
        ranked, article = self._resolve(analysis, articles, rank_index)

        article.key_points = extract_key_points(article.summary)
        body, generator = await self._body(ranked, article, style)

        hashtags = generate_hashtags(article.title, article.summary, self.settings.max_hashtags)
        content, hashtags = finalize_post(body, hashtags, article.url, self.settings.max_characters)

        if len(content) > self.settings.optimal_characters:
            logger.debug(f"Post for '{article.title}' is {len(content)} chars, above the optimal length")

        record_post(style.value, generator)
        return Post(
            content=content,
            hashtags=hashtags,
            source_url=article.url,
            style=style,
            character_count=len(content),
            article_title=article.title,
            article_source=article.source,
            generator=generator,
        )

    async def synthesize_batch(self, analysis: Analysis, articles: List[Article]) -> List[Post]:
        """Write one post per ranked article, rotating through the styles.

        Articles that fail are logged and skipped.
        """
        styles = self.settings.styles
        posts = []
        for rank_index in range(min(len(analysis.top_articles), self.settings.posts_per_run)):
            style = styles[rank_index % len(styles)]
            try:
                posts.append(await self.synthesize(analysis, articles, style, rank_index))
            except SynthesisError as e:
                logger.error(f"Skipping post {rank_index + 1}: {e}")
        logger.info(f"Generated {len(posts)} posts")
        return posts
