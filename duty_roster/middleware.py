# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
HTTP middleware: X-Request-ID tracing and per-route Prometheus metrics.
"""

import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from duty_roster.metrics.prometheus import HTTP_ERRORS, REQUEST_COUNT, REQUEST_LATENCY

REQUEST_ID_HEADER = "X-Request-ID"

# Literal path segments of the duty API; anything else is a day or an id.
ROUTE_SEGMENTS: frozenset[str] = frozenset({
    "api", "v1", "duty", "preview", "confirm", "assign", "weekly",
    "today", "daily", "reminder", "history", "stats", "health",
    "ready", "metrics",
})

UNTRACKED_PATHS: frozenset[str] = frozenset({
    "/health", "/health/ready", "/metrics", "/openapi.json", "/docs", "/redoc",
})


def normalize_path(path: str) -> str:
    """``/api/v1/duty/daily/Tue`` -> ``/api/v1/duty/daily/{param}``."""
    segments = [s for s in path.split("/") if s]
    if not segments:
        return "/"
    return "/" + "/".join(s if s in ROUTE_SEGMENTS else "{param}" for s in segments)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Reuse the caller's X-Request-ID or mint one; echo it on the response."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        if request.url.path not in UNTRACKED_PATHS:
            self._record(
                request.method,
                normalize_path(request.url.path),
                response.status_code,
                time.perf_counter() - started,
            )
        return response

    @staticmethod
    def _record(method: str, endpoint: str, status_code: int, seconds: float) -> None:
        status = str(status_code)
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()
        REQUEST_LATENCY.labels(method=method, endpoint=endpoint).observe(seconds)
        if status_code >= 400:
            HTTP_ERRORS.labels(method=method, endpoint=endpoint, status=status).inc()
