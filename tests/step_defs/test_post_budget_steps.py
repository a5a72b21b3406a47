"""Step definitions for post character budget BDD tests."""

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from ai_news_agent.exceptions import SynthesisError
from ai_news_agent.posts import finalize_post

scenarios("../features/post_budget.feature")

HASHTAGS = ["#ArtificialIntelligence", "#AI", "#MachineLearning", "#OpenAI", "#AIResearch"]


@pytest.fixture
def context():
    """Shared test context."""
    return {}


@given(parsers.parse("a post body of {length:d} characters"))
def post_body(context, length):
    context["body"] = "b" * length


@when(parsers.parse('the post is finalized for "{url}" with a {limit:d} character limit'))
def finalize(context, url, limit):
    context["url"] = url
    try:
        context["content"], context["hashtags"] = finalize_post(context["body"], HASHTAGS, url, limit)
    except SynthesisError as e:
        context["error"] = e


@then(parsers.parse("the post is at most {limit:d} characters"))
def check_limit(context, limit):
    assert len(context["content"]) <= limit


@then(parsers.parse('the body ends with "{suffix}"'))
def check_body_suffix(context, suffix):
    assert context["content"].split("\n\n")[0].endswith(suffix)


@then("the post ends with the source line")
def check_source_line(context):
    assert context["content"].endswith(f"\n\nSource: {context['url']}")


@then(parsers.parse("{count:d} hashtags are used"))
def check_hashtags(context, count):
    assert len(context["hashtags"]) == count


@then("the post cannot be finalized")
def check_error(context):
    assert isinstance(context.get("error"), SynthesisError)
    assert "content" not in context
