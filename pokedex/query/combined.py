"""
Combined query: free text AND type.

The upstream only answers exact type membership and flat listing, so one
dimension has to be materialized in memory and filtered by the other. With a
type, its members (up to COMBINED_POOL_LIMIT) are hydrated through the type
filter and the name filter runs over that pool. Without a type this is a
plain search.
"""

import logging
from typing import Optional

from pokedex.config import Settings, get_settings
from pokedex.etl.base import QueryResult
from pokedex.etl.hydration import CancellationToken
from pokedex.query.search import SearchEngine, name_matches, normalize_query
from pokedex.query.type_filter import TypeFilterEngine, normalize_category
from pokedex.telemetry import record_query
from pokedex.utils.cache import CacheStore, make_key

logger = logging.getLogger(__name__)


class Combinator:
    """Compose SearchEngine and TypeFilterEngine."""

    def __init__(
        self,
        search_engine: SearchEngine,
        type_filter: TypeFilterEngine,
        cache: CacheStore,
        settings: Optional[Settings] = None,
    ):
        self.search_engine = search_engine
        self.type_filter = type_filter
        self.cache = cache
        self.settings = settings or get_settings()

    async def search_and_filter(
        self,
        query: str,
        category: Optional[str] = None,
        limit: int = 20,
        cancel: Optional[CancellationToken] = None,
    ) -> QueryResult:
        """
        Creatures of `category` whose name contains `query`.

        count is the length of the truncated result and has_more is
        count == limit, the same approximation as search.
        """
        if category is None or not category.strip():
            return await self.search_engine.search(query, limit, cancel=cancel)

        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        needle = normalize_query(query)
        type_name = normalize_category(category)

        key = make_key("search_type", needle, type_name, limit)
        hit, cached = self.cache.get(key)
        if hit:
            record_query("search_filter", "cache")
            return cached

        pool = await self.type_filter.filter_by_category(
            type_name, self.settings.COMBINED_POOL_LIMIT, cancel=cancel
        )
        matches = [item for item in pool.results if name_matches(item.name, needle)][:limit]

        result = QueryResult(
            results=tuple(matches),
            count=len(matches),
            has_more=len(matches) == limit,
        )
        logger.info(
            f"[COMBINED] query='{needle}' type='{type_name}' pool={len(pool.results)} "
            f"returned={result.count}"
        )
        self.cache.put(key, result)
        record_query("search_filter", "upstream")
        return result
