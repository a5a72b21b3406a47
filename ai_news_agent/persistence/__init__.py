"""Seen-article persistence for the AI News Agent.

Usage:
    from ai_news_agent.persistence import create_seen_store

    store = create_seen_store("json", path="seen-articles.json")
    seen = store.load()
    store.add_many(["https://example.com/a"])
    store.save()
"""

from .base import SeenStore
from .factory import create_seen_store, get_seen_backend_type
from .json_store import JsonSeenStore
from .memory_store import MemorySeenStore

__all__ = [
    "SeenStore",
    "create_seen_store",
    "get_seen_backend_type",
    "JsonSeenStore",
    "MemorySeenStore",
]
