"""Helpers that record pipeline events on the Prometheus collectors."""

from __future__ import annotations

from opentelemetry import trace

from . import prometheus


def _trace_exemplar() -> dict[str, str] | None:
    """Exemplar linking a sample to the current trace, if any."""
    span = trace.get_current_span()
    if span and span.get_span_context().is_valid:
        return {"trace_id": format(span.get_span_context().trace_id, "032x")}
    return None


def track_cache_lookup(cache_name: str, hit: bool) -> None:
    """Track a cache hit or miss."""
    counter = prometheus.cache_hits_total if hit else prometheus.cache_misses_total
    exemplar = _trace_exemplar()
    if exemplar:
        counter.labels(cache_name=cache_name).inc(exemplar=exemplar)
    else:
        counter.labels(cache_name=cache_name).inc()


def track_cache_error(cache_name: str, operation: str) -> None:
    """Track a backend failure that was absorbed as a miss."""
    prometheus.cache_errors_total.labels(cache_name=cache_name, operation=operation).inc()


def track_cache_duration(cache_name: str, operation: str, duration: float) -> None:
    prometheus.cache_operation_duration_seconds.labels(
        operation=operation,
        cache_name=cache_name,
    ).observe(duration)


def track_dataloader_batch(loader: str, size: int, duration: float, *, failed: bool) -> None:
    """Track one DataLoader batch fetch.

    Args:
        loader: Loader kind name
        size: Distinct keys in the batch
        duration: Fetch duration in seconds
        failed: Whether the fetch raised

    Example:
        track_dataloader_batch("product", 5, 0.012, failed=False)
    """
    prometheus.dataloader_batch_size.labels(loader=loader).observe(size)
    prometheus.dataloader_batch_duration_seconds.labels(loader=loader).observe(duration)
    prometheus.dataloader_batches_total.labels(
        loader=loader,
        status="error" if failed else "ok",
    ).inc()


def track_persisted_query_lookup(tier: str, result: str) -> None:
    prometheus.persisted_query_lookups_total.labels(tier=tier, result=result).inc()


def track_shape_rejection(reason: str) -> None:
    prometheus.graphql_shape_rejections_total.labels(reason=reason).inc()


def track_graphql_request(operation_name: str | None, status: str, duration: float) -> None:
    """Track one GraphQL request.

    Args:
        operation_name: Client supplied operation name, ``anonymous`` if unset
        status: ``ok``, ``error`` (errors in the result) or ``rejected``
        duration: Handling time in seconds
    """
    name = operation_name or "anonymous"
    prometheus.graphql_requests_total.labels(operation_name=name, status=status).inc()
    prometheus.graphql_request_duration_seconds.labels(operation_name=name).observe(duration)


def track_disconnected_request() -> None:
    prometheus.graphql_disconnected_total.inc()


def track_token_verification(result: str) -> None:
    prometheus.auth_token_verifications_total.labels(result=result).inc()


def track_retry_attempt(operation: str, attempt_number: int) -> None:
    """Track a retry attempt.

    Args:
        operation: Name of the operation being retried
        attempt_number: Current attempt number (1-indexed)
    """
    prometheus.retry_attempts_total.labels(
        operation=operation,
        attempt_number=str(attempt_number),
    ).inc()


def track_retry_exhausted(operation: str) -> None:
    """Track when all retry attempts are exhausted."""
    prometheus.retry_exhausted_total.labels(operation=operation).inc()


def track_retry_success(operation: str, attempts_needed: int) -> None:
    """Track successful operation after retries."""
    prometheus.retry_success_after_failure_total.labels(
        operation=operation,
        attempts_needed=str(attempts_needed),
    ).inc()
