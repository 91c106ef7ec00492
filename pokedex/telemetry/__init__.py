"""
Telemetry for the query layer.

Provides Prometheus metrics for:
- Upstream requests (count, errors, latency)
- Cache Store lookups (hit/miss/stale)
- Query operations and items dropped by partial hydration failures

Optional Sentry error tracking lives in pokedex.telemetry.sentry.
"""

from pokedex.telemetry.metrics import (
    # Upstream
    pokedex_upstream_requests_total,
    pokedex_upstream_errors_total,
    pokedex_upstream_latency_ms,
    # Cache / queries
    pokedex_cache_lookups_total,
    pokedex_queries_total,
    pokedex_hydration_dropped_total,
    # Helpers
    record_upstream_request,
    record_upstream_error,
    record_cache_lookup,
    record_query,
    record_hydration_dropped,
    get_metrics_text,
)

__all__ = [
    "pokedex_upstream_requests_total",
    "pokedex_upstream_errors_total",
    "pokedex_upstream_latency_ms",
    "pokedex_cache_lookups_total",
    "pokedex_queries_total",
    "pokedex_hydration_dropped_total",
    "record_upstream_request",
    "record_upstream_error",
    "record_cache_lookup",
    "record_query",
    "record_hydration_dropped",
    "get_metrics_text",
]
