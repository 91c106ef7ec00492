"""
Prometheus metrics for the upstream creature API and the query cache.

Design principles:
- Low cardinality (controlled labels)
- Best-effort (never block main flow)

ALLOWED LABELS (bounded sets):
- endpoint:     "pokemon_list", "pokemon_detail", "type_list", "type_detail"
- status_code:  "200", "404", "500", "0" (transport failure)
- error_code:   "timeout", "transport", "http_4xx", "http_5xx", "malformed"
- result:       "hit", "miss", "stale"
- operation:    "page", "search", "filter", "search_filter"

FORBIDDEN AS LABELS: creature names, ids, type names, URLs, raw queries.
Use logs for those.
"""

import logging

from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
    REGISTRY,
)

logger = logging.getLogger(__name__)

# =============================================================================
# UPSTREAM METRICS
# =============================================================================

pokedex_upstream_requests_total = Counter(
    "pokedex_upstream_requests_total",
    "Total requests issued to the upstream creature API",
    ["endpoint", "status_code"],
)

pokedex_upstream_errors_total = Counter(
    "pokedex_upstream_errors_total",
    "Total failed upstream requests",
    ["endpoint", "error_code"],
)

pokedex_upstream_latency_ms = Histogram(
    "pokedex_upstream_latency_ms",
    "Upstream request latency in milliseconds",
    ["endpoint"],
    buckets=[10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000],
)

# =============================================================================
# CACHE / QUERY METRICS
# =============================================================================

pokedex_cache_lookups_total = Counter(
    "pokedex_cache_lookups_total",
    "Cache Store lookups by result",
    ["result"],
)

pokedex_queries_total = Counter(
    "pokedex_queries_total",
    "Query operations served, by operation and source",
    ["operation", "source"],  # source: cache/upstream
)

pokedex_hydration_dropped_total = Counter(
    "pokedex_hydration_dropped_total",
    "Items dropped from a result because their detail fetch failed",
    ["operation"],
)


# =============================================================================
# HELPER FUNCTIONS (for instrumentation)
# =============================================================================


def record_upstream_request(endpoint: str, status_code: int, latency_ms: float) -> None:
    """Record an upstream request (status_code=0 for transport failures)."""
    try:
        pokedex_upstream_requests_total.labels(
            endpoint=endpoint,
            status_code=str(status_code),
        ).inc()
        pokedex_upstream_latency_ms.labels(endpoint=endpoint).observe(latency_ms)
    except Exception as e:
        logger.warning(f"Failed to record upstream request metric: {e}")


def record_upstream_error(endpoint: str, error_code: str) -> None:
    """Record an upstream error."""
    try:
        pokedex_upstream_errors_total.labels(
            endpoint=endpoint,
            error_code=error_code,
        ).inc()
    except Exception as e:
        logger.warning(f"Failed to record upstream error metric: {e}")


def record_cache_lookup(result: str) -> None:
    try:
        pokedex_cache_lookups_total.labels(result=result).inc()
    except Exception as e:
        logger.warning(f"Failed to record cache lookup metric: {e}")


def record_query(operation: str, source: str) -> None:
    try:
        pokedex_queries_total.labels(operation=operation, source=source).inc()
    except Exception as e:
        logger.warning(f"Failed to record query metric: {e}")


def record_hydration_dropped(operation: str, count: int = 1) -> None:
    """Record items silently dropped by the partial-failure policy."""
    if count <= 0:
        return
    try:
        pokedex_hydration_dropped_total.labels(operation=operation).inc(count)
    except Exception as e:
        logger.warning(f"Failed to record dropped hydration metric: {e}")


def get_metrics_text() -> tuple[str, str]:
    """
    Generate Prometheus metrics text output.

    Returns:
        Tuple of (content, content_type)
    """
    return generate_latest(REGISTRY).decode("utf-8"), CONTENT_TYPE_LATEST
