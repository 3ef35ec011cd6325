"""Tests for the in-memory result cache."""

import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest

from src.infrastructure.performance.cache_manager import (
    CacheConfig,
    CacheTTL,
    ResultCache,
    model_response_cache_key,
    rubric_cache_key,
    tenant_settings_cache_key,
)


class TestResultCache:
    """Test cases for ResultCache."""

    def test_entry_expires_after_ttl(self, cache, clock):
        cache.set("key", "value", ttl=10)

        clock.advance(9)
        assert cache.get("key") == "value"

        clock.advance(2)
        assert cache.get("key") is None
        assert cache.size() == 0

    def test_default_ttl(self, clock):
        cache = ResultCache(CacheConfig(default_ttl=5), clock=clock)
        cache.set("key", 1)

        clock.advance(6)

        assert cache.get("key") is None

    def test_invalid_ttl(self, cache):
        with pytest.raises(ValueError):
            cache.set("key", "value", ttl=0)

    def test_delete_and_clear(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)

        assert cache.delete("a")
        assert not cache.delete("a")
        assert cache.get("a") is None

        cache.clear()
        assert cache.size() == 0

    def test_cleanup_removes_only_expired(self, cache, clock):
        cache.set("short", 1, ttl=1)
        cache.set("long", 2, ttl=100)

        clock.advance(5)

        assert cache.cleanup() == 1
        assert cache.size() == 1
        assert cache.get("long") == 2

    def test_max_size_evicts_oldest(self, clock):
        cache = ResultCache(CacheConfig(max_size=2), clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("c", 3)

        assert cache.get("a") is None
        assert cache.get("b") == 2
        assert cache.get("c") == 3
        assert cache.metrics.evictions == 1

    def test_overwrite_refreshes_entry(self, cache, clock):
        cache.set("key", "old", ttl=10)
        clock.advance(8)
        cache.set("key", "new", ttl=10)
        clock.advance(8)

        assert cache.get("key") == "new"

    def test_metrics(self, cache):
        cache.set("key", "value")
        cache.get("key")
        cache.get("missing")

        stats = cache.get_stats()

        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["sets"] == 1
        assert stats["hit_rate"] == 0.5
        assert stats["size"] == 1

    @pytest.mark.asyncio
    async def test_cleanup_task(self, cache, clock):
        cache.set("key", "value", ttl=1)
        clock.advance(2)

        task = cache.start_cleanup_task(interval_seconds=0.01)
        assert cache.start_cleanup_task(interval_seconds=0.01) is task

        await asyncio.sleep(0.05)
        await cache.stop_cleanup_task()

        assert cache.size() == 0
        assert task.done()

    def test_concurrent_access_keeps_counts_consistent(self, clock):
        cache = ResultCache(CacheConfig(max_size=50), clock=clock)

        def worker(thread_id):
            for i in range(200):
                key = f"key-{(thread_id * 7 + i) % 80}"
                cache.set(key, (thread_id, i), ttl=60)
                cache.get(key)
                cache.get(f"missing-{i}")
                if i % 50 == 0:
                    cache.cleanup()

        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(worker, range(8)))

        stats = cache.get_stats()
        assert stats["sets"] == 8 * 200
        assert stats["hits"] + stats["misses"] == 8 * 200 * 2
        assert stats["misses"] >= 8 * 200
        assert cache.size() <= 50


class TestCacheKeys:
    """Test cases for cache key helpers."""

    def test_default_ttls(self):
        assert CacheTTL.RUBRIC == 3600
        assert CacheTTL.TENANT_SETTINGS == 1800
        assert CacheTTL.MODEL_RESPONSE == 86400

    def test_keys(self):
        assert rubric_cache_key("cambridge", "B2", "writing") == "rubric:cambridge:B2:writing"
        assert tenant_settings_cache_key("t1") == "settings:t1"

    def test_model_response_key_depends_on_exact_prompt(self):
        key = model_response_cache_key("gpt-4o", "prompt")

        assert key == model_response_cache_key("gpt-4o", "prompt")
        assert key != model_response_cache_key("gpt-4o", "prompt ")
        assert key != model_response_cache_key("gpt-4o-mini", "prompt")
        assert key.startswith("model_response:gpt-4o:")
