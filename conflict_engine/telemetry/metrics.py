"""Prometheus metrics definitions."""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

http_request_duration = Histogram(
    "http_request_duration_seconds",
    "Duration of HTTP requests in seconds",
    labelnames=["method", "endpoint", "status_code"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

http_requests_total = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    labelnames=["method", "endpoint", "status_code"],
)

analyses_total = Counter(
    "engine_analyses_total",
    "Analysis operations run",
    labelnames=["operation"],
)

findings_total = Counter(
    "engine_findings_total",
    "Patterns, opportunities, anomalies, and issues emitted",
    labelnames=["kind"],
)

notifications_dispatched = Counter(
    "engine_notifications_dispatched_total",
    "Notification-creation requests sent to the notification store",
    labelnames=["event"],
)

best_effort_failures = Counter(
    "engine_best_effort_write_failures_total",
    "Audit and snapshot writes that failed and were skipped",
    labelnames=["write"],
)


def get_metrics() -> tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST
