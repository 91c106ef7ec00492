"""Tests for the bounded TTL Cache Store."""

import pytest

from pokedex.utils.cache import CacheStore, make_key


class TestCacheStoreTTL:
    """get/put contract and lazy staleness."""

    def test_get_after_put_returns_value(self, clock):
        cache = CacheStore(ttl=300, clock=clock)
        cache.put("k", {"a": 1})
        assert cache.get("k") == (True, {"a": 1})

    def test_missing_key_is_miss(self, clock):
        cache = CacheStore(ttl=300, clock=clock)
        assert cache.get("nope") == (False, None)

    def test_entry_valid_just_before_ttl(self, clock):
        cache = CacheStore(ttl=300, clock=clock)
        cache.put("k", "v")
        clock.advance(299.9)
        assert cache.get("k") == (True, "v")

    def test_stale_entry_is_miss_but_still_present(self, clock):
        """After TTL the entry is ignored, not deleted."""
        cache = CacheStore(ttl=300, clock=clock)
        cache.put("k", "v")
        clock.advance(300)
        assert cache.get("k") == (False, None)
        assert "k" in cache
        assert len(cache) == 1

    def test_put_overwrites_stale_entry(self, clock):
        cache = CacheStore(ttl=300, clock=clock)
        cache.put("k", "old")
        clock.advance(301)
        cache.put("k", "new")
        assert cache.get("k") == (True, "new")
        assert len(cache) == 1

    def test_none_value_is_a_hit(self, clock):
        cache = CacheStore(ttl=300, clock=clock)
        cache.put("k", None)
        assert cache.get("k") == (True, None)


class TestCacheStoreLRU:
    """Capacity bound with least-recently-used eviction."""

    def test_evicts_oldest_beyond_capacity(self, clock):
        cache = CacheStore(ttl=300, max_entries=2, clock=clock)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.put("c", 3)
        assert "a" not in cache
        assert cache.get("b") == (True, 2)
        assert cache.get("c") == (True, 3)

    def test_get_refreshes_recency(self, clock):
        cache = CacheStore(ttl=300, max_entries=2, clock=clock)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.get("a")
        cache.put("c", 3)
        assert "a" in cache
        assert "b" not in cache

    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValueError):
            CacheStore(ttl=300, max_entries=0)

    def test_stats_counts_hits_and_misses(self, clock):
        cache = CacheStore(ttl=300, max_entries=10, clock=clock)
        cache.put("a", 1)
        cache.get("a")
        cache.get("b")
        stats = cache.stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["size"] == 1
        assert stats["hit_rate"] == 50.0

    def test_clear(self, clock):
        cache = CacheStore(ttl=300, clock=clock)
        cache.put("a", 1)
        cache.clear()
        assert len(cache) == 0


class TestMakeKey:

    def test_text_parts_are_case_normalized(self):
        assert make_key("search", "Pikachu", 20) == make_key("search", "pikachu", 20)
        assert make_key("search", "  PIKAchu ", 20) == ("search", "pikachu", 20)

    def test_limit_is_part_of_key(self):
        assert make_key("search", "pika", 20) != make_key("search", "pika", 10)

    def test_none_part(self):
        assert make_key("search_type", "char", None, 5) == ("search_type", "char", None, 5)

    def test_colon_in_text_does_not_merge_parts(self):
        assert make_key("search_type", "char:fire", "x", 20) != make_key("search_type", "char", "fire:x", 20)
