"""Tests for bounded fan-out hydration and cooperative cancellation."""

import asyncio

import pytest

from pokedex.etl.base import ItemSummary, MemberRef, UpstreamError
from pokedex.etl.hydration import CancellationToken, QueryCancelled, hydrate_refs


def _refs(n: int) -> list[MemberRef]:
    return [MemberRef(name=f"mon{i}", url=f"https://x/pokemon/{i + 1}/") for i in range(n)]


def _summary(name: str) -> ItemSummary:
    return ItemSummary(id=int(name[3:]) + 1, name=name, sprite_url="s.png")


class TestHydrateRefs:

    @pytest.mark.asyncio
    async def test_preserves_order_and_drops_failures(self):
        async def fetch(name: str) -> ItemSummary:
            if name == "mon2":
                raise UpstreamError("boom", status_code=500)
            return _summary(name)

        result = await hydrate_refs(fetch, _refs(5), concurrency=2, operation="test")

        assert [s.name for s in result] == ["mon0", "mon1", "mon3", "mon4"]

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self):
        async def fetch(name: str) -> ItemSummary:
            raise RuntimeError("bug")

        with pytest.raises(RuntimeError):
            await hydrate_refs(fetch, _refs(2), concurrency=2, operation="test")

    @pytest.mark.asyncio
    async def test_concurrency_never_exceeds_cap(self):
        in_flight = 0
        peak = 0

        async def fetch(name: str) -> ItemSummary:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.001)
            in_flight -= 1
            return _summary(name)

        result = await hydrate_refs(fetch, _refs(12), concurrency=3, operation="test")

        assert len(result) == 12
        assert peak == 3

    @pytest.mark.asyncio
    async def test_empty_refs(self):
        async def fetch(name: str) -> ItemSummary:
            raise AssertionError("should not be called")

        assert await hydrate_refs(fetch, [], concurrency=4, operation="test") == []


class TestCancellation:

    def test_token_state(self):
        token = CancellationToken()
        assert token.cancelled is False
        token.raise_if_cancelled()
        token.cancel("navigated away")
        assert token.cancelled is True
        assert token.reason == "navigated away"
        with pytest.raises(QueryCancelled):
            token.raise_if_cancelled()

    @pytest.mark.asyncio
    async def test_cancelled_before_start_issues_nothing(self):
        calls = []

        async def fetch(name: str) -> ItemSummary:
            calls.append(name)
            return _summary(name)

        token = CancellationToken()
        token.cancel()
        with pytest.raises(QueryCancelled):
            await hydrate_refs(fetch, _refs(5), concurrency=2, operation="test", cancel=token)
        assert calls == []

    @pytest.mark.asyncio
    async def test_cancel_mid_flight_stops_further_requests(self):
        token = CancellationToken()
        calls = []

        async def fetch(name: str) -> ItemSummary:
            calls.append(name)
            token.cancel("client went away")
            return _summary(name)

        with pytest.raises(QueryCancelled):
            await hydrate_refs(fetch, _refs(10), concurrency=1, operation="test", cancel=token)
        assert calls == ["mon0"]
