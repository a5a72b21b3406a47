"""FastAPI application for the AI News Agent.

The app serves the post generation endpoints under ``/api``, a service
description at ``/`` and the in-process metrics at ``/metrics``. The news
agent is created lazily on the first request and closed when the app shuts
down.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..agent import NewsAgent
from ..observability import MetricsMiddleware, get_metrics_registry
from .dependencies import set_agent, shutdown_agent
from .routes import router

logger = logging.getLogger(__name__)

API_TITLE = "AI News Agent API"
API_VERSION = "0.1.0"

ENDPOINTS = {
    "generate": "POST /api/generate",
    "regenerate": "POST /api/regenerate-post",
    "health": "GET /api/health",
    "metrics": "GET /metrics",
}


def cors_origins_from_env() -> List[str]:
    """Read allowed origins from ``AI_NEWS_CORS_ORIGINS`` (comma separated, default ``*``)."""
    raw = os.environ.get("AI_NEWS_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or ["*"]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await shutdown_agent()


def create_app(agent: Optional[NewsAgent] = None, cors_origins: Optional[List[str]] = None) -> FastAPI:
    """Build the API application.

    Args:
        agent: Agent to serve. Built from environment configuration on first
            use when omitted.
        cors_origins: Allowed CORS origins. Defaults to ``AI_NEWS_CORS_ORIGINS``.

    Returns:
        Configured FastAPI application.
    """
    if agent is not None:
        set_agent(agent)

    app = FastAPI(
        title=API_TITLE,
        description="Discovers recent AI news and turns it into ready-to-share social posts",
        version=API_VERSION,
        lifespan=lifespan,
        openapi_tags=[{"name": "news", "description": "AI news discovery and post generation"}],
    )

    # Browser clients call the API from another origin; no credentials are involved
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or cors_origins_from_env(),
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_middleware(MetricsMiddleware)
    app.include_router(router)

    @app.get("/", tags=["root"])
    async def service_info() -> dict:
        return {"name": API_TITLE, "version": API_VERSION, "docs": "/docs", "endpoints": ENDPOINTS}

    @app.get("/metrics", tags=["observability"])
    async def metrics() -> dict:
        return get_metrics_registry().get_all_metrics()

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})

    return app
