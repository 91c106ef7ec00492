"""
QueryService: the one object consumers talk to.

Built once at process start (see pokedex.main lifespan) and handed to
consumers explicitly; tests build their own isolated instances around a
fake provider or a mocked HTTP transport.
"""

import logging
from typing import Optional

import httpx

from pokedex.config import Settings, get_settings
from pokedex.etl.base import ItemDetail, PageResult, QueryResult
from pokedex.etl.hydration import CancellationToken
from pokedex.etl.pokeapi import PokeAPIProvider
from pokedex.query.combined import Combinator
from pokedex.query.search import SearchEngine
from pokedex.query.type_filter import TypeFilterEngine
from pokedex.utils.cache import CacheStore

logger = logging.getLogger(__name__)


class QueryService:
    """Facade over the provider, the shared cache and the three query engines."""

    def __init__(self, provider: PokeAPIProvider, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.provider = provider
        self.cache = provider.cache
        self.search_engine = SearchEngine(provider, self.cache, self.settings)
        self.type_filter = TypeFilterEngine(provider, self.cache, self.settings)
        self.combinator = Combinator(
            self.search_engine, self.type_filter, self.cache, self.settings
        )

    @classmethod
    def create(
        cls,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> "QueryService":
        """Build a service with its own cache and provider."""
        settings = settings or get_settings()
        cache = CacheStore(
            ttl=settings.CACHE_TTL_SECONDS,
            max_entries=settings.CACHE_MAX_ENTRIES,
        )
        provider = PokeAPIProvider(cache=cache, settings=settings, client=client)
        logger.info(
            f"QueryService created (base_url={provider.BASE_URL}, "
            f"ttl={cache.ttl}s, max_entries={cache.max_entries}, "
            f"fanout={settings.FANOUT_CONCURRENCY})"
        )
        return cls(provider, settings)

    async def fetch_page(
        self, limit: int = 20, offset: int = 0, cancel: Optional[CancellationToken] = None
    ) -> PageResult:
        return await self.provider.fetch_page(limit, offset, cancel=cancel)

    async def fetch_detail(self, name_or_id: "str | int") -> ItemDetail:
        return await self.provider.fetch_detail(name_or_id)

    async def list_categories(self) -> list[str]:
        return await self.provider.fetch_categories()

    async def search(
        self, query: str, limit: int = 20, cancel: Optional[CancellationToken] = None
    ) -> QueryResult:
        return await self.search_engine.search(query, limit, cancel=cancel)

    async def filter_by_category(
        self, category: str, limit: int = 20, cancel: Optional[CancellationToken] = None
    ) -> QueryResult:
        return await self.type_filter.filter_by_category(category, limit, cancel=cancel)

    async def search_and_filter(
        self,
        query: str,
        category: Optional[str] = None,
        limit: int = 20,
        cancel: Optional[CancellationToken] = None,
    ) -> QueryResult:
        return await self.combinator.search_and_filter(query, category, limit, cancel=cancel)

    def cache_stats(self) -> dict:
        return self.cache.stats()

    async def close(self) -> None:
        await self.provider.close()
