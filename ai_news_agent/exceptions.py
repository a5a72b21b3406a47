"""Exceptions raised inside the news pipeline.

Only ``NoResultsError`` ends a run. The others are caught at the stage that
raised them and replaced with a fallback or a partial result.
"""

from typing import Optional


class AgentError(Exception):
    """Base class for pipeline errors."""


class SearchError(AgentError):
    """A single keyword search failed (network, timeout or bad payload)."""

    def __init__(self, keyword: str, message: str, *, provider: Optional[str] = None):
        self.keyword = keyword
        self.provider = provider
        prefix = f"[{provider}] " if provider else ""
        super().__init__(f"{prefix}Search failed for '{keyword}': {message}")


class NoResultsError(AgentError):
    """No usable articles after every keyword and the widened timeframe."""


class AnalysisBackendError(AgentError):
    """The generative backend call or its response could not be used."""


class SynthesisError(AgentError):
    """A post could not be built for an article."""


class PersistenceError(AgentError):
    """The seen-article store could not be written."""
