"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Join workflow metrics
join_attempts = Counter(
    'join_attempts_total',
    'Total event join attempts',
    ['outcome']  # joined, pending_approval, or an error code
)

join_latency = Histogram(
    'join_workflow_latency_seconds',
    'Join workflow latency, including roster write retries',
    ['operation'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

join_request_decisions = Counter(
    'join_request_decisions_total',
    'Organizer decisions on join requests',
    ['decision']  # approved, rejected
)

waitlist_promotions = Counter(
    'waitlist_promotions_total',
    'Users promoted from a waitlist after a participant left'
)

# Database metrics
roster_write_retries = Counter(
    'roster_write_retries_total',
    'Roster writes retried because of a version conflict'
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

# Notification metrics
notifications_sent = Counter(
    'notifications_sent_total',
    'Real-time notifications handed to connected clients',
    ['event_name']
)

notification_failures = Counter(
    'notification_failures_total',
    'Notification emissions that raised and were swallowed',
    ['event_name']
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_join_outcome(outcome: str):
    """Record join attempt. Outcome: joined, pending_approval or an error code."""
    join_attempts.labels(outcome=outcome).inc()


def record_request_decision(decision: str):
    join_request_decisions.labels(decision=decision).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
