"""Prometheus metrics for the data-resolution pipeline."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

# Custom registry so tests and the /metrics route see only our collectors
REGISTRY = CollectorRegistry()

DEFAULT_LATENCY_BUCKETS = (
    0.001,
    0.005,
    0.01,
    0.025,
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
)

# GraphQL request metrics
graphql_requests_total = Counter(
    "graphql_requests_total",
    "Total number of GraphQL requests",
    ["operation_name", "status"],
    registry=REGISTRY,
)

graphql_request_duration_seconds = Histogram(
    "graphql_request_duration_seconds",
    "GraphQL request duration in seconds",
    ["operation_name"],
    buckets=DEFAULT_LATENCY_BUCKETS,
    registry=REGISTRY,
)

graphql_errors_total = Counter(
    "graphql_errors_total",
    "Total number of GraphQL errors by code",
    ["error_code"],
    registry=REGISTRY,
)

graphql_shape_rejections_total = Counter(
    "graphql_shape_rejections_total",
    "Operations rejected by the query shape guard",
    ["reason"],
    registry=REGISTRY,
)

graphql_disconnected_total = Counter(
    "graphql_disconnected_total",
    "Results discarded because the client disconnected",
    registry=REGISTRY,
)

# DataLoader metrics
dataloader_batches_total = Counter(
    "graphql_dataloader_batches_total",
    "Total number of DataLoader batch fetches",
    ["loader", "status"],
    registry=REGISTRY,
)

dataloader_batch_size = Histogram(
    "graphql_dataloader_batch_size",
    "Number of distinct keys per DataLoader batch",
    ["loader"],
    buckets=(1, 2, 5, 10, 25, 50, 100, 250, 500),
    registry=REGISTRY,
)

dataloader_batch_duration_seconds = Histogram(
    "graphql_dataloader_batch_duration_seconds",
    "DataLoader batch fetch duration in seconds",
    ["loader"],
    buckets=DEFAULT_LATENCY_BUCKETS,
    registry=REGISTRY,
)

# Cache metrics
cache_hits_total = Counter(
    "cache_hits_total",
    "Total number of cache hits",
    ["cache_name"],
    registry=REGISTRY,
)

cache_misses_total = Counter(
    "cache_misses_total",
    "Total number of cache misses",
    ["cache_name"],
    registry=REGISTRY,
)

cache_errors_total = Counter(
    "cache_errors_total",
    "Cache backend failures absorbed as misses",
    ["cache_name", "operation"],
    registry=REGISTRY,
)

cache_operation_duration_seconds = Histogram(
    "cache_operation_duration_seconds",
    "Cache operation duration in seconds",
    ["operation", "cache_name"],
    buckets=DEFAULT_LATENCY_BUCKETS,
    registry=REGISTRY,
)

cache_degraded = Gauge(
    "cache_degraded",
    "1 when the response cache runs without a backend",
    registry=REGISTRY,
)

# Persisted query metrics
persisted_query_lookups_total = Counter(
    "persisted_query_lookups_total",
    "Persisted query lookups by tier and outcome",
    ["tier", "result"],
    registry=REGISTRY,
)

persisted_query_registrations_total = Counter(
    "persisted_query_registrations_total",
    "Persisted query registrations",
    ["result"],
    registry=REGISTRY,
)

persisted_query_local_entries = Gauge(
    "persisted_query_local_entries",
    "Bodies held in the in-process persisted query tier",
    registry=REGISTRY,
)

# Authentication metrics
auth_token_verifications_total = Counter(
    "auth_token_verifications_total",
    "Bearer token verification outcomes",
    ["result"],
    registry=REGISTRY,
)

# Database metrics
database_connections_active = Gauge(
    "database_connections_active",
    "Number of active database connections",
    registry=REGISTRY,
)

# Retry metrics
retry_attempts_total = Counter(
    "retry_attempts_total",
    "Retry attempts by operation",
    ["operation", "attempt_number"],
    registry=REGISTRY,
)

retry_exhausted_total = Counter(
    "retry_exhausted_total",
    "Operations that failed after all retry attempts",
    ["operation"],
    registry=REGISTRY,
)

retry_success_after_failure_total = Counter(
    "retry_success_after_failure_total",
    "Operations that succeeded after at least one retry",
    ["operation", "attempts_needed"],
    registry=REGISTRY,
)
