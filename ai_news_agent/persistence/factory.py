"""Seen store factory.

Picks a backend from the arguments or the ``AI_NEWS_SEEN_BACKEND``
environment variable.
"""

import logging
import os
from typing import Optional

from ..config import DEFAULT_SEEN_PATH
from .base import SeenStore
from .json_store import JsonSeenStore
from .memory_store import MemorySeenStore

logger = logging.getLogger(__name__)


def get_seen_backend_type() -> str:
    """Detect the seen store backend from the environment ('json' by default)."""
    return os.environ.get("AI_NEWS_SEEN_BACKEND", "json").strip().lower() or "json"


def create_seen_store(backend_type: Optional[str] = None, path: Optional[str] = None) -> SeenStore:
    """Create a seen store.

    Args:
        backend_type: 'json' or 'memory'. Auto-detected if None.
        path: File path for the JSON backend. Defaults to ``AI_NEWS_SEEN_PATH``
            or ``seen-articles.json``.

    Returns:
        SeenStore instance.

    Raises:
        ValueError: If backend_type is unknown.

    Example:
        store = create_seen_store()  # JSON file in the working directory
        store = create_seen_store("memory")
    """
    if backend_type is None:
        backend_type = get_seen_backend_type()

    if backend_type == "json":
        path = path or os.environ.get("AI_NEWS_SEEN_PATH") or DEFAULT_SEEN_PATH
        logger.info(f"Using JSON seen store at {path}")
        return JsonSeenStore(path)

    elif backend_type == "memory":
        logger.info("Using in-memory seen store")
        return MemorySeenStore()

    else:
        raise ValueError(f"Unknown seen store backend type: {backend_type}")
