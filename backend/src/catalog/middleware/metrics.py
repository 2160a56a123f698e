"""Prometheus metrics middleware and curation-specific metrics."""
import time
from typing import Callable

from prometheus_client import Counter, Gauge, Histogram, generate_latest
from prometheus_client import CONTENT_TYPE_LATEST
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


# =============================================================================
# Prometheus Metrics Definitions
# =============================================================================

# Request metrics
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_requests_active",
    "Number of active HTTP requests",
)

# Visibility mutations
VISIBILITY_CHANGES = Counter(
    "visibility_changes_total",
    "Visibility change requests by flag and outcome",
    ["flag", "outcome"],  # applied, noop, limit_reached, conflict, error
)

# Curation read-side queries
CURATION_QUERY_LATENCY = Histogram(
    "curation_query_duration_seconds",
    "Curation aggregator query latency in seconds",
    ["operation"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)


# =============================================================================
# Metrics Middleware
# =============================================================================

class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for all HTTP requests."""

    # Longest prefix first; product ids collapse into /{id}
    ENDPOINT_PATTERNS = (
        "/api/v1/products/featured/homepage",
        "/api/v1/products/featured/bestsellers",
        "/api/v1/products/featured/editorspick",
        "/api/v1/products/featured/monthly",
        "/api/v1/products/featured/yearly",
        "/api/v1/products/timeline",
        "/api/v1/products/stats/summary",
    )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Skip metrics endpoint to avoid recursion
        if request.url.path == "/metrics":
            return await call_next(request)

        ACTIVE_REQUESTS.inc()
        start_time = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            ACTIVE_REQUESTS.dec()
            latency = time.perf_counter() - start_time
            endpoint = self._normalize_endpoint(request.url.path)

            REQUEST_COUNT.labels(
                method=request.method,
                endpoint=endpoint,
                status=status_code,
            ).inc()

            REQUEST_LATENCY.labels(
                method=request.method,
                endpoint=endpoint,
            ).observe(latency)

        return response

    def _normalize_endpoint(self, path: str) -> str:
        """Normalize endpoint path to reduce metric cardinality."""
        for pattern in self.ENDPOINT_PATTERNS:
            if path.startswith(pattern):
                return pattern

        if path.startswith("/api/v1/products/"):
            tail = path.rsplit("/", 1)[-1]
            if tail in ("related", "visibility"):
                return f"/api/v1/products/{{id}}/{tail}"
            return "/api/v1/products/{id}"

        if path in ("/health", "/metrics", "/api/v1/products"):
            return path

        return "/other"


# =============================================================================
# Metrics Endpoint
# =============================================================================

async def metrics_endpoint(request: Request) -> Response:
    """Prometheus metrics scrape endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


# =============================================================================
# Helper Functions for Manual Metric Recording
# =============================================================================

def record_visibility_change(flag: str, outcome: str) -> None:
    """Count a visibility change request."""
    VISIBILITY_CHANGES.labels(flag=flag, outcome=outcome).inc()


def record_curation_query(operation: str, duration: float) -> None:
    """Record curation aggregator query latency."""
    CURATION_QUERY_LATENCY.labels(operation=operation).observe(duration)
