"""HTTP monitoring middleware."""

from supra.monitoring.middleware import (
    ErrorTrackingMiddleware,
    MetricsMiddleware,
    metrics_endpoint,
)

__all__ = [
    "ErrorTrackingMiddleware",
    "MetricsMiddleware",
    "metrics_endpoint",
]
