"""Tests for the API routes."""

from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from ai_news_agent.agent import NewsAgent
from ai_news_agent.api.app import create_app
from ai_news_agent.api.dependencies import get_agent, reset_dependencies, set_agent
from ai_news_agent.chains import Analyzer
from ai_news_agent.models import (
    Article,
    KeyPoint,
    Post,
    PostStyle,
    RankedArticle,
    RegenerationResult,
    RunResult,
    RunSummary,
)
from ai_news_agent.persistence import MemorySeenStore
from ai_news_agent.posts import FirstChoiceSelector, PostSynthesizer


def make_post(url: str = "https://example.com/news/0") -> Post:
    content = f"Body\n\n#ArtificialIntelligence #AI\n\nSource: {url}"
    return Post(
        content=content,
        hashtags=["#ArtificialIntelligence", "#AI"],
        source_url=url,
        style=PostStyle.NEWS_SHARE,
        character_count=len(content),
    )


class FakeAgent:
    """Stands in for NewsAgent and records what the routes pass it."""

    def __init__(self, result: Optional[RunResult] = None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.regenerate_calls: List[tuple] = []
        self.closed = False

    async def generate(self) -> RunResult:
        if self.error:
            raise self.error
        return self.result

    async def aclose(self) -> None:
        self.closed = True

    async def regenerate_post(self, articles: List[RankedArticle], overall_trend: str = "") -> RegenerationResult:
        self.regenerate_calls.append((articles, overall_trend))
        if not all(article.url for article in articles):
            return RegenerationResult(success=False, error="Article has no url")
        post = make_post(articles[0].url)
        return RegenerationResult(success=True, linkedin_post=post.content, posts=[post])


class TestAPIRoutes:
    """Tests for the API routes."""

    @pytest.fixture
    def agent(self):
        agent = FakeAgent(
            RunResult(
                success=True,
                posts=[make_post()],
                summary=RunSummary(articles_found=1, posts_generated=1, sources=["example.com"], styles=["news_share"]),
                message="Generated 1 posts from 1 articles",
            )
        )
        set_agent(agent)
        yield agent
        reset_dependencies()

    @pytest.fixture
    def client(self, agent):
        """Create a test client."""
        return TestClient(create_app(), raise_server_exceptions=False)

    def test_root_endpoint(self, client):
        """Test the root endpoint."""
        response = client.get("/")
        assert response.status_code == 200

        data = response.json()
        assert data["name"] == "AI News Agent API"
        assert data["docs"] == "/docs"
        assert data["endpoints"]["generate"] == "POST /api/generate"

    def test_health_check(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "OK"
        assert "timestamp" in data

    def test_generate_success(self, client):
        response = client.post("/api/generate")
        assert response.status_code == 200

        data = response.json()
        assert data["success"] is True
        assert data["summary"]["articlesFound"] == 1
        assert data["posts"][0]["sourceUrl"] == "https://example.com/news/0"
        assert data["posts"][0]["characterCount"] == len(data["posts"][0]["content"])
        assert data["runtimeMs"] == 0

    def test_generate_failure_is_500(self, client, agent):
        agent.result = RunResult(success=False, error="No articles found", message="No new AI news articles")

        response = client.post("/api/generate")
        assert response.status_code == 500
        assert response.json()["error"] == "No articles found"

    def test_unhandled_error_is_500(self, client, agent):
        agent.error = RuntimeError("unexpected")

        response = client.post("/api/generate")
        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Internal server error"}

    def test_regenerate_without_articles_is_400(self, client, agent):
        response = client.post("/api/regenerate-post", json={"articles": []})
        assert response.status_code == 400
        assert response.json()["error"] == "No articles provided for regeneration"
        assert agent.regenerate_calls == []

    def test_regenerate_success(self, client, agent):
        payload = {
            "articles": [
                {
                    "rank": 1,
                    "title": "New model",
                    "summary": "A lab announced a new model.",
                    "whyPositive": "Faster research",
                    "keyPoints": ["Faster"],
                    "originalIndex": 4,
                    "url": "https://example.com/news/4",
                }
            ],
            "overallTrend": "Models keep improving",
        }
        response = client.post("/api/regenerate-post", json=payload)
        assert response.status_code == 200

        data = response.json()
        assert data["success"] is True
        assert data["linkedinPost"].endswith("Source: https://example.com/news/4")

        articles, trend = agent.regenerate_calls[0]
        assert trend == "Models keep improving"
        assert articles[0].why_notable == "Faster research"
        assert articles[0].original_index == 4

    def test_regenerate_failure_is_500(self, client):
        response = client.post("/api/regenerate-post", json={"articles": [{"title": "No link"}]})
        assert response.status_code == 500
        assert response.json()["success"] is False

    def test_metrics_endpoint(self, client):
        client.get("/api/health")
        response = client.get("/metrics")
        assert response.status_code == 200

        counters = response.json()["counters"]
        assert "ai_news_agent_http_requests_total" in counters


class StaticSearchClient:
    def __init__(self, articles: List[Article]):
        self.articles = articles

    async def discover(self, exclude=None) -> List[Article]:
        return [article.model_copy() for article in self.articles]

    async def aclose(self) -> None:
        pass


class TestGenerateThenRegenerate:
    """Articles returned by generate can be sent straight back for regeneration."""

    @pytest.fixture
    def client(self, articles):
        agent = NewsAgent(
            seen_store=MemorySeenStore(),
            search_client=StaticSearchClient(articles),
            analyzer=Analyzer(),
            synthesizer=PostSynthesizer(selector=FirstChoiceSelector()),
        )
        set_agent(agent)
        yield TestClient(create_app(), raise_server_exceptions=False)
        reset_dependencies()

    def test_generated_articles_regenerate(self, client):
        generated = client.post("/api/generate").json()
        assert generated["success"] is True
        assert any(article["keyPoints"] for article in generated["articles"])

        payload = {"articles": generated["articles"], "overallTrend": generated["analysis"]["overallTrend"]}
        response = client.post("/api/regenerate-post", json=payload)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["posts"]

    def test_run_result_dump_regenerates(self, client):
        article = Article(
            title="Lab ships a faster model",
            url="https://example.com/news/9",
            summary="A lab announced a faster model for machine learning research.",
            source="example.com",
            key_points=[KeyPoint(text="A lab announced a faster model.", importance=3)],
        )
        dumped = RunResult(success=True, articles=[article]).model_dump(mode="json", by_alias=True)

        response = client.post("/api/regenerate-post", json={"articles": dumped["articles"]})

        assert response.status_code == 200
        assert response.json()["linkedinPost"].endswith("Source: https://example.com/news/9")


class TestDependencies:
    """Tests for agent dependency wiring."""

    def test_set_and_reset(self):
        from ai_news_agent.api import dependencies

        agent = FakeAgent()
        set_agent(agent)
        assert get_agent() is agent
        reset_dependencies()
        assert dependencies._agent is None

    def test_create_app_with_agent_and_shutdown(self):
        from ai_news_agent.api import dependencies

        agent = FakeAgent(RunResult(success=True))
        with TestClient(create_app(agent=agent)) as client:
            assert client.post("/api/generate").status_code == 200

        assert agent.closed is True
        assert dependencies._agent is None

    def test_cors_origins_from_env(self, monkeypatch):
        from ai_news_agent.api.app import cors_origins_from_env

        monkeypatch.setenv("AI_NEWS_CORS_ORIGINS", "https://a.example.com, https://b.example.com")
        assert cors_origins_from_env() == ["https://a.example.com", "https://b.example.com"]
        monkeypatch.delenv("AI_NEWS_CORS_ORIGINS")
        assert cors_origins_from_env() == ["*"]
