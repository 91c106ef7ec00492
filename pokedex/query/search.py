"""
Free-text search over the creature catalog.

The upstream API has no text search, so a query scans a bounded working set
taken from the head of the catalog (offset 0) and keeps the names that
contain the query. Creatures past the working set are invisible to search.

has_more is an approximation: it is True whenever the truncated match list
is exactly `limit` long, even if no further match exists. Computing the true
total would need a full catalog scan per query.
"""

import logging
from typing import Optional, Sequence

from pokedex.config import Settings, get_settings
from pokedex.etl.base import DataProvider, MemberRef, QueryResult
from pokedex.etl.hydration import CancellationToken, hydrate_refs
from pokedex.telemetry import record_query
from pokedex.utils.cache import CacheStore, make_key

logger = logging.getLogger(__name__)


def normalize_query(query: str) -> str:
    """Strip and lower-case a free-text query. Raises ValueError if blank."""
    normalized = (query or "").strip().lower()
    if not normalized:
        raise ValueError("Search query is required")
    return normalized


def name_matches(name: str, query: str) -> bool:
    """Case-insensitive substring match; `query` must already be normalized."""
    return query in name.lower()


def filter_refs(refs: Sequence[MemberRef], query: str) -> list[MemberRef]:
    return [ref for ref in refs if name_matches(ref.name, query)]


class SearchEngine:
    """Resolve a free-text query by scanning the head of the catalog."""

    def __init__(
        self,
        provider: DataProvider,
        cache: CacheStore,
        settings: Optional[Settings] = None,
    ):
        self.provider = provider
        self.cache = cache
        self.settings = settings or get_settings()

    def working_set_size(self, limit: int) -> int:
        return min(
            self.settings.SEARCH_WORKING_SET_MAX,
            limit * self.settings.SEARCH_WORKING_SET_FACTOR,
        )

    async def search(
        self,
        query: str,
        limit: int = 20,
        cancel: Optional[CancellationToken] = None,
    ) -> QueryResult:
        """
        Search creatures whose name contains `query` (case-insensitive).

        Args:
            query: Free text, compared lower-cased.
            limit: Max results (>= 1).
            cancel: Optional cancellation token for the detail fan-out.

        Returns:
            QueryResult in upstream listing order; count is the number of
            hydrated results, has_more the approximate "might be more" flag.
        """
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        needle = normalize_query(query)

        key = make_key("search", needle, limit)
        hit, cached = self.cache.get(key)
        if hit:
            record_query("search", "cache")
            return cached

        if cancel is not None:
            cancel.raise_if_cancelled()
        working_set = await self.provider.list_refs(self.working_set_size(limit), 0)
        matches = filter_refs(working_set.refs, needle)[:limit]

        results = await hydrate_refs(
            self.provider.fetch_summary,
            matches,
            concurrency=self.settings.FANOUT_CONCURRENCY,
            operation="search",
            cancel=cancel,
        )

        result = QueryResult(
            results=tuple(results),
            count=len(results),
            has_more=len(matches) == limit,
        )
        logger.info(
            f"[SEARCH] query='{needle}' limit={limit} scanned={len(working_set.refs)} "
            f"matched={len(matches)} returned={result.count}"
        )
        self.cache.put(key, result)
        record_query("search", "upstream")
        return result
