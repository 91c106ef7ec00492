"""Category (type) filter: hydrate the first page of a type's members."""

import logging
from typing import Optional

from pokedex.config import Settings, get_settings
from pokedex.etl.base import DataProvider, QueryResult
from pokedex.etl.hydration import CancellationToken, hydrate_refs
from pokedex.telemetry import record_query
from pokedex.utils.cache import CacheStore, make_key

logger = logging.getLogger(__name__)


def normalize_category(category: str) -> str:
    normalized = (category or "").strip().lower()
    if not normalized:
        raise ValueError("Type is required")
    return normalized


class TypeFilterEngine:
    """Resolve a type filter from the type's member list (count is exact)."""

    def __init__(
        self,
        provider: DataProvider,
        cache: CacheStore,
        settings: Optional[Settings] = None,
    ):
        self.provider = provider
        self.cache = cache
        self.settings = settings or get_settings()

    async def filter_by_category(
        self,
        category: str,
        limit: int = 20,
        cancel: Optional[CancellationToken] = None,
    ) -> QueryResult:
        """
        Return the first `limit` members of a type, hydrated.

        Members keep upstream order. count is the type's total member count,
        has_more is count > limit. An unknown type raises NotFound.
        """
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        name = normalize_category(category)

        key = make_key("type", name, limit)
        hit, cached = self.cache.get(key)
        if hit:
            record_query("filter", "cache")
            return cached

        if cancel is not None:
            cancel.raise_if_cancelled()
        info = await self.provider.fetch_category(name)
        members = info.member_refs[:limit]

        results = await hydrate_refs(
            self.provider.fetch_summary,
            members,
            concurrency=self.settings.FANOUT_CONCURRENCY,
            operation="filter",
            cancel=cancel,
        )

        count = info.member_count
        result = QueryResult(results=tuple(results), count=count, has_more=count > limit)
        logger.info(
            f"[TYPE_FILTER] type='{name}' limit={limit} members={count} returned={len(results)}"
        )
        self.cache.put(key, result)
        record_query("filter", "upstream")
        return result
