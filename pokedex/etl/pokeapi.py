"""
PokeAPI data provider.

Endpoints (public, read-only, no auth):
    GET /pokemon?limit={n}&offset={m}  -> {count, next, previous, results: [{name, url}]}
    GET /pokemon/{name_or_id}          -> full creature record
    GET /type?limit={n}                -> {results: [{name, url}]}
    GET /type/{name}                   -> {name, pokemon: [{slot, pokemon: {name, url}}]}

Every GET goes through the shared CacheStore keyed by its fully resolved URL;
a cache hit never touches the network. There are no retries here: a failed
request raises UpstreamError and retry policy is the caller's business.
"""

import logging
import re
import time
from typing import Any, Optional

import httpx

from pokedex.config import Settings, get_settings
from pokedex.etl.base import (
    Ability,
    CategoryInfo,
    DataProvider,
    ItemDetail,
    ListPage,
    MemberRef,
    NotFound,
    PageResult,
    Stat,
    UpstreamError,
    extract_id_from_url,
)
from pokedex.etl.hydration import CancellationToken, hydrate_refs
from pokedex.telemetry import record_query, record_upstream_error, record_upstream_request
from pokedex.utils.cache import CacheStore, make_key

logger = logging.getLogger(__name__)

# Enough to list every type in one call (upstream default page size is 20)
TYPE_LIST_LIMIT = 100

OFFICIAL_ARTWORK = "official-artwork"

_RESOURCE_KEY_RE = re.compile(r"^[a-z0-9][a-z0-9-]*$")


# =============================================================================
# NORMALIZATION
# =============================================================================


def select_sprite(sprites: Optional[dict], placeholder: str) -> str:
    """
    Pick the best sprite URL: official artwork, then default sprite, then placeholder.

    Never returns an empty string.
    """
    sprites = sprites or {}
    artwork = ((sprites.get("other") or {}).get(OFFICIAL_ARTWORK) or {}).get("front_default")
    return artwork or sprites.get("front_default") or placeholder


def parse_detail(payload: Any, placeholder: str) -> ItemDetail:
    """Map a raw /pokemon/{name} record to ItemDetail. Raises UpstreamError if malformed."""
    try:
        return ItemDetail(
            id=int(payload["id"]),
            name=str(payload["name"]),
            sprite_url=select_sprite(payload.get("sprites"), placeholder),
            categories=tuple(t["type"]["name"] for t in payload.get("types") or []),
            height=int(payload.get("height") or 0),
            weight=int(payload.get("weight") or 0),
            # Some alternate forms report null base_experience
            base_experience=int(payload.get("base_experience") or 0),
            abilities=tuple(
                Ability(name=a["ability"]["name"], is_hidden=bool(a.get("is_hidden", False)))
                for a in payload.get("abilities") or []
            ),
            stats=tuple(
                Stat(name=s["stat"]["name"], base_stat=int(s["base_stat"]))
                for s in payload.get("stats") or []
            ),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise UpstreamError(f"malformed detail payload: {e!r}") from e


def parse_list(payload: Any) -> ListPage:
    """Map a raw /pokemon list page to ListPage. Raises UpstreamError if malformed."""
    try:
        return ListPage(
            refs=tuple(MemberRef(name=r["name"], url=r["url"]) for r in payload["results"]),
            total=int(payload.get("count") or 0),
            next_url=payload.get("next"),
            previous_url=payload.get("previous"),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise UpstreamError(f"malformed list payload: {e!r}") from e


def parse_category(payload: Any) -> CategoryInfo:
    """Map a raw /type/{name} record to CategoryInfo, keeping upstream member order."""
    try:
        return CategoryInfo(
            name=str(payload["name"]),
            member_refs=tuple(
                MemberRef(name=m["pokemon"]["name"], url=m["pokemon"]["url"])
                for m in payload.get("pokemon") or []
            ),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise UpstreamError(f"malformed type payload: {e!r}") from e


def _normalize_name_or_id(name_or_id: "str | int") -> str:
    """Lower-case and validate a path segment; upstream names are [a-z0-9-]."""
    key = str(name_or_id).strip().lower()
    if not key:
        raise ValueError("name_or_id must not be empty")
    if not _RESOURCE_KEY_RE.match(key):
        raise ValueError(f"Invalid name or id: {key!r}")
    return key


# =============================================================================
# PROVIDER
# =============================================================================


class PokeAPIProvider(DataProvider):
    """PokeAPI provider with URL-keyed caching and bounded detail fan-out."""

    def __init__(
        self,
        cache: Optional[CacheStore] = None,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self.BASE_URL = self.settings.POKEAPI_BASE_URL.rstrip("/")
        self.cache = cache if cache is not None else CacheStore(
            ttl=self.settings.CACHE_TTL_SECONDS,
            max_entries=self.settings.CACHE_MAX_ENTRIES,
        )
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=self.settings.HTTP_TIMEOUT_SECONDS,
            headers={"Accept": "application/json"},
        )
        self.fanout_concurrency = self.settings.FANOUT_CONCURRENCY
        self.placeholder_sprite = self.settings.PLACEHOLDER_SPRITE

    # -------------------------------------------------------------------------
    # URL builders (the cache key of every raw fetch is the URL itself)
    # -------------------------------------------------------------------------

    def list_url(self, limit: int, offset: int) -> str:
        return f"{self.BASE_URL}/pokemon?limit={limit}&offset={offset}"

    def detail_url(self, name_or_id: "str | int") -> str:
        return f"{self.BASE_URL}/pokemon/{_normalize_name_or_id(name_or_id)}"

    def type_list_url(self) -> str:
        return f"{self.BASE_URL}/type?limit={TYPE_LIST_LIMIT}"

    def type_url(self, name: str) -> str:
        return f"{self.BASE_URL}/type/{_normalize_name_or_id(name)}"

    async def _get_json(self, url: str, endpoint: str) -> Any:
        """
        GET a URL through the cache.

        Args:
            url: Fully resolved URL (also the cache key).
            endpoint: Low-cardinality label for telemetry.

        Raises:
            NotFound: upstream answered 404.
            UpstreamError: any other non-2xx, transport failure or invalid JSON.
        """
        hit, data = self.cache.get(url)
        if hit:
            return data

        start_time = time.time()
        try:
            response = await self.client.get(url)
        except httpx.TimeoutException as e:
            record_upstream_request(endpoint, 0, (time.time() - start_time) * 1000)
            record_upstream_error(endpoint, "timeout")
            raise UpstreamError(f"timeout: {e}", url=url) from e
        except httpx.HTTPError as e:
            record_upstream_request(endpoint, 0, (time.time() - start_time) * 1000)
            record_upstream_error(endpoint, "transport")
            raise UpstreamError(f"transport error: {e}", url=url) from e

        latency_ms = (time.time() - start_time) * 1000
        status = response.status_code
        record_upstream_request(endpoint, status, latency_ms)

        if status == 404:
            record_upstream_error(endpoint, "http_4xx")
            raise NotFound(response.reason_phrase or "Not Found", status_code=404, url=url)
        if not response.is_success:
            record_upstream_error(endpoint, "http_4xx" if status < 500 else "http_5xx")
            raise UpstreamError(response.reason_phrase or "HTTP error", status_code=status, url=url)

        try:
            data = response.json()
        except ValueError as e:
            record_upstream_error(endpoint, "malformed")
            raise UpstreamError(f"invalid JSON: {e}", status_code=status, url=url) from e

        logger.debug(f"[POKEAPI] GET {url} -> {status} ({latency_ms:.0f}ms)")
        self.cache.put(url, data)
        return data

    # -------------------------------------------------------------------------
    # Raw fetches
    # -------------------------------------------------------------------------

    async def list_refs(self, limit: int, offset: int = 0) -> ListPage:
        payload = await self._get_json(self.list_url(limit, offset), "pokemon_list")
        return parse_list(payload)

    async def fetch_detail(self, name_or_id: "str | int") -> ItemDetail:
        payload = await self._get_json(self.detail_url(name_or_id), "pokemon_detail")
        return parse_detail(payload, self.placeholder_sprite)

    async def fetch_category(self, name: str) -> CategoryInfo:
        payload = await self._get_json(self.type_url(name), "type_detail")
        return parse_category(payload)

    async def fetch_categories(self) -> list[str]:
        payload = await self._get_json(self.type_list_url(), "type_list")
        try:
            return [r["name"] for r in payload["results"]]
        except (KeyError, TypeError) as e:
            raise UpstreamError(f"malformed type list payload: {e!r}") from e

    # -------------------------------------------------------------------------
    # Hydrated page
    # -------------------------------------------------------------------------

    async def fetch_page(
        self,
        limit: int = 20,
        offset: int = 0,
        cancel: Optional[CancellationToken] = None,
    ) -> PageResult:
        """
        Fetch one browse page: a list call, then one detail call per reference.

        A reference whose detail call fails is dropped; the list call failing
        raises UpstreamError.

        Args:
            limit: Page size (>= 1).
            offset: Index of the first creature (>= 0).
            cancel: Optional cancellation token for the detail fan-out.
        """
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        if offset < 0:
            raise ValueError(f"offset must be >= 0, got {offset}")

        key = make_key("page", limit, offset)
        hit, cached = self.cache.get(key)
        if hit:
            record_query("page", "cache")
            return cached

        if cancel is not None:
            cancel.raise_if_cancelled()
        page = await self.list_refs(limit, offset)
        items = await hydrate_refs(
            self.fetch_summary,
            page.refs,
            concurrency=self.fanout_concurrency,
            operation="page",
            cancel=cancel,
        )

        has_next = page.next_url is not None
        has_previous = page.previous_url is not None
        result = PageResult(
            items=tuple(items),
            total=page.total,
            has_next=has_next,
            has_previous=has_previous,
            next_offset=offset + limit if has_next else None,
            previous_offset=max(0, offset - limit) if has_previous else None,
        )
        self.cache.put(key, result)
        record_query("page", "upstream")
        return result

    async def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            await self.client.aclose()


__all__ = [
    "PokeAPIProvider",
    "UpstreamError",
    "NotFound",
    "extract_id_from_url",
    "select_sprite",
    "parse_detail",
    "parse_list",
    "parse_category",
]
