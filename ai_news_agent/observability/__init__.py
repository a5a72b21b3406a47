"""Observability layer for the AI News Agent."""

from .metrics import (
    MetricsMiddleware,
    MetricsRegistry,
    get_metrics_registry,
    record_fallback,
    record_post,
    record_run,
    record_search,
)

__all__ = [
    "MetricsMiddleware",
    "MetricsRegistry",
    "get_metrics_registry",
    "record_fallback",
    "record_post",
    "record_run",
    "record_search",
]
