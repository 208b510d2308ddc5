"""HTTP middleware feeding the Prometheus metrics in supra.metrics."""

import time
from typing import Awaitable, Callable

from fastapi import Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

from supra.metrics import APPLICATION_ERRORS, REQUEST_COUNT, REQUEST_DURATION

CallNext = Callable[[Request], Awaitable[Response]]


def endpoint_label(request: Request) -> str:
    """Route template when routing matched (``/session/{session_id}``), else the raw path."""
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Count requests and time them per method and route."""

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        started = time.perf_counter()
        response = await call_next(request)

        endpoint = endpoint_label(request)
        REQUEST_COUNT.labels(
            method=request.method, endpoint=endpoint, status=response.status_code
        ).inc()
        REQUEST_DURATION.labels(method=request.method, endpoint=endpoint).observe(
            time.perf_counter() - started
        )
        return response


class ErrorTrackingMiddleware(BaseHTTPMiddleware):
    """Count 5xx responses, including upstream 502s, and unhandled exceptions."""

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        try:
            response = await call_next(request)
        except Exception:
            APPLICATION_ERRORS.labels(
                type="unhandled_exception", endpoint=endpoint_label(request)
            ).inc()
            raise

        if response.status_code >= 500:
            error_type = "upstream" if response.status_code == 502 else "http_5xx"
            APPLICATION_ERRORS.labels(type=error_type, endpoint=endpoint_label(request)).inc()
        return response


def metrics_endpoint() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
