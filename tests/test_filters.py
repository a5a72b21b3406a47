"""Tests for article normalization, scoring and filtering."""

from datetime import datetime, timezone

import pytest

from ai_news_agent.config import AgentConfig, SearchSettings, SourceSettings
from ai_news_agent.filters import (
    DEFAULT_TITLE,
    UNKNOWN_SOURCE,
    ArticleFilter,
    calculate_relevance_score,
    dedupe_by_url,
    exclude_seen,
    extract_domain,
    extract_title,
    is_news_worthy,
    strip_markup,
)
from conftest import ML_BREAKTHROUGH_TEXT, SHORT_TEXT, make_article, make_hit


class TestTextHelpers:
    """Tests for the pure text helpers."""

    def test_strip_markup(self):
        assert strip_markup("<b>OpenAI</b> &amp; friends\n   launched") == "OpenAI & friends launched"
        assert strip_markup(None) == ""
        assert strip_markup("") == ""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://www.techcrunch.com/2024/01/01/ai", "techcrunch.com"),
            ("http://news.example.org/path?q=1", "news.example.org"),
            ("not a url", UNKNOWN_SOURCE),
            ("", UNKNOWN_SOURCE),
            ("http://[::1", UNKNOWN_SOURCE),
        ],
    )
    def test_extract_domain(self, url, expected):
        assert extract_domain(url) == expected

    def test_extract_title_prefers_heading(self):
        assert extract_title("Body text. More.", "  OpenAI ships GPT  ") == "OpenAI ships GPT"

    def test_extract_title_ignores_trivial_heading(self):
        assert extract_title("First sentence here. Second one.", "AI") == "First sentence here"

    def test_extract_title_truncates_long_sentence(self):
        title = extract_title("word " * 40 + ". Next.")
        assert len(title) == 100
        assert title.endswith("...")

    def test_extract_title_default(self):
        assert extract_title("") == DEFAULT_TITLE
        assert extract_title("...") == DEFAULT_TITLE

    def test_is_news_worthy(self):
        assert is_news_worthy("OpenAI announced a new model")
        assert not is_news_worthy("A history of cooking recipes")
        assert not is_news_worthy("The company launched a bakery")
        assert not is_news_worthy("Machine learning explained for beginners")


class TestRelevanceScore:
    """Tests for relevance scoring."""

    def test_exact_weights(self):
        # "openai" query word (0.15) + "ai" and "openai" (0.2 each) + "announced" (0.1)
        assert calculate_relevance_score("OpenAI announced a new model", "OpenAI") == pytest.approx(0.65)

    def test_breakthrough_text(self):
        assert calculate_relevance_score(ML_BREAKTHROUGH_TEXT, "artificial intelligence") == pytest.approx(0.6)

    def test_short_query_words_ignored(self):
        assert calculate_relevance_score("hello world", "xy") == 0.0

    def test_clamped_to_one(self):
        text = "machine learning deep learning neural network artificial intelligence"
        assert calculate_relevance_score(text, "machine learning") == 1.0

    def test_threshold_boundary_is_exact(self):
        # 0.3 + 0.1 must not land just below 0.4
        assert calculate_relevance_score("deep learning research", "zz") == 0.4


class TestDedupe:
    """Tests for URL deduplication and seen exclusion."""

    def test_first_occurrence_wins(self):
        first = make_article(1, title="First")
        duplicate = make_article(1, title="Duplicate")
        other = make_article(2)
        result = dedupe_by_url([first, duplicate, other])
        assert [a.title for a in result] == ["First", "AI article 2"]

    def test_exclude_seen(self):
        articles = [make_article(i) for i in range(3)]
        result = exclude_seen(articles, {articles[1].url})
        assert [a.url for a in result] == [articles[0].url, articles[2].url]

    def test_exclude_seen_with_empty_set(self):
        articles = [make_article(0)]
        assert exclude_seen(articles, set()) == articles
        assert exclude_seen(articles, None) == articles


class TestArticleFilter:
    """Tests for ArticleFilter."""

    def test_two_hit_scenario(self):
        """One short and one substantial hit leave exactly one article."""
        hits = [
            make_hit("https://example.com/short", SHORT_TEXT),
            make_hit("https://example.com/long", ML_BREAKTHROUGH_TEXT),
        ]
        articles = ArticleFilter().normalize(hits)
        assert len(articles) == 1
        assert articles[0].url == "https://example.com/long"
        assert articles[0].relevance_score > 0.3
        assert len(articles[0].summary) >= 100

    def test_to_article_fields(self):
        published = datetime(2024, 5, 1, tzinfo=timezone.utc)
        hit = make_hit(
            "https://www.wired.com/story/ai",
            "<p>" + ML_BREAKTHROUGH_TEXT + "</p>",
            heading="Small models, big <i>breakthrough</i>",
            published_at=published,
        )
        article = ArticleFilter().to_article(hit)
        assert article.title == "Small models, big breakthrough"
        assert article.source == "wired.com"
        assert article.summary == ML_BREAKTHROUGH_TEXT
        assert article.published_date == published
        assert article.search_query == "artificial intelligence"
        assert 0.0 <= article.relevance_score <= 1.0

    def test_missing_date_defaults_to_now(self):
        article = ArticleFilter().to_article(make_hit("https://example.com/a"))
        assert article.published_date.tzinfo is not None

    def test_non_news_hits_are_dropped(self):
        hit = make_hit(
            "https://example.com/wiki",
            "Machine learning is a branch of computer science where computers learn from data. " * 3,
        )
        assert ArticleFilter().normalize([hit]) == []

    def test_excluded_source_is_dropped(self):
        hit = make_hit("https://www.spam-site.com/ai", ML_BREAKTHROUGH_TEXT)
        assert ArticleFilter().normalize([hit]) == []

    def test_low_relevance_is_dropped(self):
        config = AgentConfig(search=SearchSettings(min_relevance_score=0.9))
        hit = make_hit("https://example.com/a", ML_BREAKTHROUGH_TEXT)
        assert ArticleFilter(config).normalize([hit]) == []

    def test_preferred_sources_rank_first(self):
        low_preferred = make_article(1, source="techcrunch.com", score=0.5)
        high_other = make_article(2, source="example.com", score=0.9)
        mid_other = make_article(3, source="example.org", score=0.7)
        ranked = ArticleFilter().filter_and_rank([high_other, mid_other, low_preferred])
        assert [a.source for a in ranked] == ["techcrunch.com", "example.com", "example.org"]

    def test_ranking_is_stable_for_ties(self):
        first = make_article(1, score=0.6)
        second = make_article(2, score=0.6)
        ranked = ArticleFilter().filter_and_rank([first, second])
        assert [a.url for a in ranked] == [first.url, second.url]

    def test_result_is_capped_and_unique(self):
        config = AgentConfig(search=SearchSettings(max_results=2))
        articles = [make_article(i) for i in range(4)] + [make_article(0)]
        ranked = ArticleFilter(config).filter_and_rank(articles)
        assert len(ranked) == 2
        assert len({a.url for a in ranked}) == 2

    def test_source_matching_is_case_insensitive(self):
        config = AgentConfig(sources=SourceSettings(preferred=["TechCrunch.com"], excluded=["SPAM"]))
        article_filter = ArticleFilter(config)
        assert article_filter.is_preferred_source("techcrunch.com")
        assert article_filter.is_excluded_source("spam-site.com")
