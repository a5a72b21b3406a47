"""In-process metrics for the AI News Agent.

Counters, histograms and gauges are kept in a small registry that the API
exposes at ``/metrics``. The ``record_*`` helpers are what the pipeline calls;
fallback counters make it visible whether a run used the generative backend or
one of the local fallbacks.
"""

import logging
import time
from typing import Callable, Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

FALLBACK_KINDS = ("timeframe_widening", "search_cache", "local_analysis", "template_post")


class MetricsRegistry:
    """Registry of labelled counters, histograms and gauges."""

    def __init__(self):
        self._counters: Dict[str, Dict[str, int]] = {}
        self._histograms: Dict[str, Dict[str, List[float]]] = {}
        self._gauges: Dict[str, Dict[str, float]] = {}

    @staticmethod
    def _label_key(labels: Optional[Dict[str, str]]) -> str:
        if not labels:
            return ""
        return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))

    def counter(self, name: str, labels: Optional[Dict[str, str]] = None, value: int = 1) -> None:
        """Increment a counter."""
        series = self._counters.setdefault(name, {})
        key = self._label_key(labels)
        series[key] = series.get(key, 0) + value

    def histogram(self, name: str, value: float, labels: Optional[Dict[str, str]] = None) -> None:
        """Record a histogram observation."""
        self._histograms.setdefault(name, {}).setdefault(self._label_key(labels), []).append(value)

    def gauge(self, name: str, value: float, labels: Optional[Dict[str, str]] = None) -> None:
        """Set a gauge."""
        self._gauges.setdefault(name, {})[self._label_key(labels)] = value

    def get_counter(self, name: str, labels: Optional[Dict[str, str]] = None) -> int:
        return self._counters.get(name, {}).get(self._label_key(labels), 0)

    def get_gauge(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        return self._gauges.get(name, {}).get(self._label_key(labels), 0.0)

    def get_histogram_stats(self, name: str, labels: Optional[Dict[str, str]] = None) -> Dict[str, float]:
        """Get count, sum and average of a histogram series."""
        return self._stats(self._histograms.get(name, {}).get(self._label_key(labels), []))

    @staticmethod
    def _stats(values: List[float]) -> Dict[str, float]:
        if not values:
            return {"count": 0, "sum": 0.0, "avg": 0.0}
        total = sum(values)
        return {"count": len(values), "sum": total, "avg": total / len(values)}

    def get_all_metrics(self) -> Dict[str, Dict]:
        """Export every series."""
        return {
            "counters": {name: dict(series) for name, series in self._counters.items()},
            "histograms": {
                name: {key: self._stats(values) for key, values in series.items()}
                for name, series in self._histograms.items()
            },
            "gauges": {name: dict(series) for name, series in self._gauges.items()},
        }

    def reset(self) -> None:
        """Drop all recorded values."""
        self._counters.clear()
        self._histograms.clear()
        self._gauges.clear()


# Global metrics registry
_registry = MetricsRegistry()


def get_metrics_registry() -> MetricsRegistry:
    """Get the global metrics registry."""
    return _registry


def record_search(provider: str, outcome: str) -> None:
    """Record one keyword search (outcome: ok, empty, error)."""
    _registry.counter("ai_news_agent_searches_total", {"provider": provider, "outcome": outcome})


def record_fallback(kind: str) -> None:
    """Record that a fallback path was taken."""
    if kind not in FALLBACK_KINDS:
        logger.debug(f"Recording unlisted fallback kind: {kind}")
    _registry.counter("ai_news_agent_fallbacks_total", {"kind": kind})


def record_post(style: str, generator: str) -> None:
    """Record a generated post."""
    _registry.counter("ai_news_agent_posts_total", {"style": style, "generator": generator})


def record_run(status: str, duration_seconds: float) -> None:
    """Record a finished pipeline run (status: success, partial, no_results, error)."""
    _registry.counter("ai_news_agent_runs_total", {"status": status})
    _registry.histogram("ai_news_agent_run_duration_seconds", duration_seconds)
    _registry.gauge("ai_news_agent_last_run_timestamp", time.time())
    logger.debug(f"Recorded run: {status} in {duration_seconds:.2f}s")


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware for recording HTTP request metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        response = await call_next(request)

        labels = {
            "method": request.method,
            "path": request.url.path,
            "status": str(response.status_code),
        }
        _registry.counter("ai_news_agent_http_requests_total", labels)
        _registry.histogram("ai_news_agent_http_request_duration_seconds", time.time() - start_time, labels)

        return response
