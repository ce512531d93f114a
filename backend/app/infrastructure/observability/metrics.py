from __future__ import annotations

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.responses import Response

REQUESTS_TOTAL = Counter(
    "total_requests",
    "Total HTTP requests",
    labelnames=("method", "path", "status"),
)
REQUEST_LATENCY_SECONDS = Histogram(
    "request_latency_seconds",
    "HTTP request latency in seconds",
    labelnames=("method", "path"),
)
DB_QUERY_DURATION_SECONDS = Histogram(
    "db_query_duration_seconds",
    "Database query duration in seconds",
    labelnames=("operation",),
)
DOWNTIME_SUBMISSIONS_TOTAL = Counter(
    "downtime_submissions_total",
    "Downtime report submissions by terminal outcome",
    labelnames=("outcome",),
)
DOWNTIME_ALERT_FAILURES_TOTAL = Counter(
    "downtime_alert_failures_total",
    "Downtime alerts that could not be delivered",
)


def record_request(method: str, path: str, status_code: int, duration_seconds: float) -> None:
    REQUESTS_TOTAL.labels(method=method, path=path, status=str(status_code)).inc()
    REQUEST_LATENCY_SECONDS.labels(method=method, path=path).observe(duration_seconds)


def observe_db_query(duration_seconds: float, operation: str = "sql") -> None:
    DB_QUERY_DURATION_SECONDS.labels(operation=operation).observe(duration_seconds)


def record_submission_outcome(outcome: str) -> None:
    DOWNTIME_SUBMISSIONS_TOTAL.labels(outcome=outcome).inc()


def record_alert_failure() -> None:
    DOWNTIME_ALERT_FAILURES_TOTAL.inc()


def metrics_response() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
