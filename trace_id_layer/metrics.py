"""
Prometheus metric definitions.

All metrics prefixed with trace_ to avoid naming collisions.
"""

from prometheus_client import Counter, Histogram

# --- Request metrics ---
TRACED_REQUESTS = Counter(
    "trace_requests_total",
    "HTTP requests seen by the trace middleware",
    ["provenance"],
)

MALFORMED_TRACE_IDS = Counter(
    "trace_malformed_ids_total",
    "Inbound trace id headers rejected as malformed",
)

RESPONSE_LATENCY = Histogram(
    "trace_response_latency_seconds",
    "Time from span start until the response headers were sent",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

STREAM_DURATION = Histogram(
    "trace_stream_duration_seconds",
    "Time from span start until a streamed body finished",
    buckets=[0.05, 0.1, 0.5, 1.0, 5.0, 15.0, 60.0],
)

# --- Error metrics ---
REQUEST_FAILURES = Counter(
    "trace_request_failures_total",
    "Requests classified as server-side failures",
    ["kind"],
)

MISSING_TRACE_CONTEXT = Counter(
    "trace_missing_context_total",
    "Requests that reached the span layer or a handler without a trace id",
    ["stage"],
)
