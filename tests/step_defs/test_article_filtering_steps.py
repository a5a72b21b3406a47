"""Step definitions for article filtering BDD tests."""

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from ai_news_agent.filters import ArticleFilter
from conftest import SHORT_TEXT, make_hit

scenarios("../features/article_filtering.feature")

OFF_TOPIC_TEXT = (
    "A history of cooking recipes that covers bread, soup, pies and pastries "
    "across many countries and several centuries of tradition."
)


@pytest.fixture
def context():
    """Shared test context."""
    return {"hits": []}


# Given steps
@given(parsers.parse('a news hit from "{domain}"'))
def news_hit(context, domain):
    context["hits"].append(make_hit(f"https://{domain}/ai-news"))


@given(parsers.parse('a short hit from "{domain}"'))
def short_hit(context, domain):
    context["hits"].append(make_hit(f"https://{domain}/short", text=SHORT_TEXT))


@given(parsers.parse('an off-topic hit from "{domain}"'))
def off_topic_hit(context, domain):
    context["hits"].append(make_hit(f"https://{domain}/cooking", text=OFF_TOPIC_TEXT))


@given(parsers.parse('a duplicate of the hit from "{domain}"'))
def duplicate_hit(context, domain):
    context["hits"].append(make_hit(f"https://{domain}/ai-news"))


# When steps
@when("the hits are normalized")
def normalize_hits(context):
    context["articles"] = ArticleFilter().normalize(context["hits"])


# Then steps
@then(parsers.re(r"the filtered list has (?P<count>\d+) entr(?:y|ies)"), converters={"count": int})
def check_count(context, count):
    assert len(context["articles"]) == count


@then(parsers.parse('the articles are ordered "{sources}"'))
def check_order(context, sources):
    expected = [source.strip() for source in sources.split(",")]
    assert [article.source for article in context["articles"]] == expected
