"""Prometheus metrics for the health API."""

from __future__ import annotations

import time

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import RequestResponseEndpoint

# Paths reported under their own label; anything else is folded into "other"
KNOWN_PATHS = frozenset({"/healthz", "/readyz", "/metrics"})

REQUEST_COUNT = Counter(
    "k8status_http_requests_total",
    "HTTP requests served",
    ["method", "path", "code"],
)

REQUEST_LATENCY = Histogram(
    "k8status_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "path"],
)

CHECK_RUNS = Counter(
    "k8status_check_runs_total",
    "Health runs by resulting cluster status",
    ["status"],
)


def path_label(path: str) -> str:
    return path if path in KNOWN_PATHS else "other"


async def instrument(request: Request, call_next: RequestResponseEndpoint) -> Response:
    """Count and time every request."""
    path = path_label(request.url.path)
    start = time.perf_counter()
    response = await call_next(request)
    REQUEST_LATENCY.labels(request.method, path).observe(time.perf_counter() - start)
    REQUEST_COUNT.labels(request.method, path, str(response.status_code)).inc()
    return response


def metrics_response() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
