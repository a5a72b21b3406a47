"""API routes for the AI News Agent.

- ``POST /api/generate``: run the full pipeline
- ``POST /api/regenerate-post``: rewrite posts for an existing analysis
- ``GET /api/health``: liveness check
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ..agent import NO_REGENERATION_ARTICLES_ERROR, NewsAgent
from ..models import RegenerateRequest, RegenerationResult, utc_now
from .dependencies import get_agent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["news"])


@router.post(
    "/generate",
    summary="Discover AI news and generate posts",
    description="Runs search, filtering, analysis and post synthesis. Returns 500 with the run result on failure.",
)
async def generate(agent: NewsAgent = Depends(get_agent)) -> JSONResponse:
    """Run the news agent once."""
    logger.info("Received generate request")
    result = await agent.generate()
    return JSONResponse(
        status_code=status.HTTP_200_OK if result.success else status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=result.model_dump(mode="json", by_alias=True),
    )


@router.post(
    "/regenerate-post",
    summary="Regenerate posts for analyzed articles",
    description="Writes new posts for previously ranked articles without searching or marking them seen.",
)
async def regenerate_post(
    request: RegenerateRequest,
    agent: NewsAgent = Depends(get_agent),
) -> JSONResponse:
    """Regenerate post text for client-supplied ranked articles."""
    if not request.articles:
        result = RegenerationResult(success=False, error=NO_REGENERATION_ARTICLES_ERROR)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=result.model_dump(mode="json", by_alias=True),
        )

    logger.info(f"Received regenerate request for {len(request.articles)} articles")
    result = await agent.regenerate_post(request.articles, request.overall_trend)
    return JSONResponse(
        status_code=status.HTTP_200_OK if result.success else status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=result.model_dump(mode="json", by_alias=True),
    )


@router.get("/health", summary="Health check")
async def health() -> dict:
    """Report that the service is up."""
    return {"status": "OK", "timestamp": utc_now().isoformat()}
