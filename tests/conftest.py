"""Shared fixtures: an in-memory fake of the PokeAPI served through httpx.MockTransport."""

import asyncio
from typing import Optional

import httpx
import pytest

from pokedex.config import Settings
from pokedex.etl.pokeapi import PokeAPIProvider
from pokedex.query.service import QueryService
from pokedex.utils.cache import CacheStore

BASE_URL = "https://pokeapi.test/api/v2"


class FakeClock:
    """Manually advanced clock for CacheStore TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakePokeAPI:
    """
    Minimal PokeAPI: a flat catalog, a few types, and switches for failures.

    Every creature gets id = position + 1 in the catalog.
    """

    def __init__(self, names: list[str], types: Optional[dict[str, list[str]]] = None):
        self.names = list(names)
        self.types = types or {}
        self.failing: set[str] = set()
        self.list_status: Optional[int] = None
        self.requests: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def id_of(self, name: str) -> int:
        return self.names.index(name) + 1

    def types_of(self, name: str) -> list[str]:
        return [t for t, members in self.types.items() if name in members]

    def detail_payload(self, name: str) -> dict:
        pid = self.id_of(name)
        return {
            "id": pid,
            "name": name,
            "height": 7,
            "weight": 69,
            "base_experience": 64,
            "sprites": {
                "front_default": f"https://img.test/{pid}.png",
                "other": {"official-artwork": {"front_default": f"https://img.test/art/{pid}.png"}},
            },
            "types": [
                {"slot": i + 1, "type": {"name": t, "url": f"{BASE_URL}/type/{t}/"}}
                for i, t in enumerate(self.types_of(name))
            ],
            "abilities": [
                {"ability": {"name": "overgrow"}, "is_hidden": False, "slot": 1},
                {"ability": {"name": "chlorophyll"}, "is_hidden": True, "slot": 3},
            ],
            "stats": [
                {"base_stat": 45, "stat": {"name": "hp"}},
                {"base_stat": 49, "stat": {"name": "attack"}},
            ],
        }

    def ref(self, name: str) -> dict:
        return {"name": name, "url": f"{BASE_URL}/pokemon/{self.id_of(name)}/"}

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(str(request.url))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            return self._route(request)
        finally:
            self.in_flight -= 1

    def _route(self, request: httpx.Request) -> httpx.Response:
        parts = request.url.path.rstrip("/").split("/")
        resource = parts[3] if len(parts) > 3 else ""
        key = parts[4] if len(parts) > 4 else None

        if resource == "pokemon" and key is None:
            if self.list_status is not None:
                return httpx.Response(self.list_status)
            limit = int(request.url.params.get("limit", 20))
            offset = int(request.url.params.get("offset", 0))
            window = self.names[offset:offset + limit]
            has_next = offset + limit < len(self.names)
            return httpx.Response(200, json={
                "count": len(self.names),
                "next": f"{BASE_URL}/pokemon?offset={offset + limit}&limit={limit}" if has_next else None,
                "previous": f"{BASE_URL}/pokemon?offset={max(0, offset - limit)}&limit={limit}" if offset > 0 else None,
                "results": [self.ref(n) for n in window],
            })

        if resource == "pokemon":
            name = self.names[int(key) - 1] if key.isdigit() and 0 < int(key) <= len(self.names) else key
            if name in self.failing:
                return httpx.Response(500)
            if name not in self.names:
                return httpx.Response(404, text="Not Found")
            return httpx.Response(200, json=self.detail_payload(name))

        if resource == "type" and key is None:
            return httpx.Response(200, json={
                "count": len(self.types),
                "results": [{"name": t, "url": f"{BASE_URL}/type/{t}/"} for t in self.types],
            })

        if resource == "type":
            if key not in self.types:
                return httpx.Response(404, text="Not Found")
            return httpx.Response(200, json={
                "name": key,
                "pokemon": [{"slot": 1, "pokemon": self.ref(n)} for n in self.types[key]],
            })

        return httpx.Response(404)


@pytest.fixture
def settings():
    return Settings(
        POKEAPI_BASE_URL=BASE_URL,
        FANOUT_CONCURRENCY=4,
        CACHE_TTL_SECONDS=300.0,
        CACHE_MAX_ENTRIES=1024,
    )


@pytest.fixture
def clock():
    return FakeClock()


def build_service(upstream: FakePokeAPI, settings: Settings, clock: Optional[FakeClock] = None) -> QueryService:
    """QueryService wired to the fake upstream through a mocked transport."""
    cache = CacheStore(
        ttl=settings.CACHE_TTL_SECONDS,
        max_entries=settings.CACHE_MAX_ENTRIES,
        clock=clock or FakeClock(),
    )
    client = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))
    provider = PokeAPIProvider(cache=cache, settings=settings, client=client)
    return QueryService(provider, settings)


@pytest.fixture
def make_upstream():
    """Factory: make_upstream(names, types=None) -> FakePokeAPI."""
    return FakePokeAPI


@pytest.fixture
def make_service(settings):
    """Factory: make_service(upstream, clock=None) -> QueryService."""

    def _make(upstream: FakePokeAPI, clock: Optional[FakeClock] = None) -> QueryService:
        return build_service(upstream, settings, clock)

    return _make
