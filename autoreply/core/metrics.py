from __future__ import annotations

from prometheus_client import Counter, Histogram

_HTTP_REQUESTS_TOTAL = Counter(
    "autoreply_http_requests_total",
    "Total HTTP requests handled by the service.",
    labelnames=("method", "path", "status_code"),
)
_HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "autoreply_http_request_duration_seconds",
    "HTTP request duration in seconds.",
    labelnames=("method", "path"),
)
_INBOUND_MESSAGES_TOTAL = Counter(
    "autoreply_inbound_messages_total",
    "Inbound messages by outcome.",
    labelnames=("action", "reason"),
)
_GENERATION_DURATION_SECONDS = Histogram(
    "autoreply_generation_duration_seconds",
    "Text generation latency in seconds.",
    labelnames=("outcome",),
)


def observe_http_request(
    *,
    method: str,
    path: str,
    status_code: int,
    duration_ms: int,
) -> None:
    safe_path = path or "unknown"
    safe_method = method or "UNKNOWN"

    _HTTP_REQUESTS_TOTAL.labels(
        method=safe_method,
        path=safe_path,
        status_code=str(status_code),
    ).inc()
    _HTTP_REQUEST_DURATION_SECONDS.labels(method=safe_method, path=safe_path).observe(
        max(0.0, duration_ms / 1000.0)
    )


def observe_inbound(*, action: str, reason: str | None) -> None:
    _INBOUND_MESSAGES_TOTAL.labels(action=action, reason=reason or "none").inc()


def observe_generation(*, outcome: str, duration_ms: int) -> None:
    _GENERATION_DURATION_SECONDS.labels(outcome=outcome).observe(max(0.0, duration_ms / 1000.0))
