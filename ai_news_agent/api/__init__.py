"""HTTP API layer for the AI News Agent."""

from .app import create_app
from .dependencies import get_agent, reset_dependencies, set_agent, shutdown_agent
from .routes import router

__all__ = [
    "create_app",
    "router",
    "get_agent",
    "set_agent",
    "reset_dependencies",
    "shutdown_agent",
]
