"""Dependency injection for the API layer.

This module provides the news agent used by the routes.
"""

import logging
from typing import Optional

from ..agent import NewsAgent
from ..config import config_from_env

logger = logging.getLogger(__name__)

# Global instance (can be replaced for testing)
_agent: Optional[NewsAgent] = None


def get_agent() -> NewsAgent:
    """Get the news agent instance.

    This is a FastAPI dependency. The agent is built from environment
    configuration on first use.
    """
    global _agent
    if _agent is None:
        _agent = NewsAgent(config_from_env())
        logger.info(f"Created news agent using provider {_agent.config.search.provider}")
    return _agent


def set_agent(agent: NewsAgent) -> None:
    """Set the agent instance (for testing)."""
    global _agent
    _agent = agent


def reset_dependencies() -> None:
    """Reset all dependencies to None (for testing)."""
    global _agent
    _agent = None


async def shutdown_agent() -> None:
    """Close the current agent's network resources and forget it."""
    global _agent
    if _agent is not None:
        await _agent.aclose()
    _agent = None
