"""In-memory result cache with per-entry TTL."""

import asyncio
import hashlib
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class CacheTTL:
    """Default TTLs in seconds, by use."""

    RUBRIC = 60 * 60
    TENANT_SETTINGS = 30 * 60
    MODEL_RESPONSE = 24 * 60 * 60


@dataclass
class CacheConfig:
    """Cache configuration settings."""

    max_size: Optional[int] = 10000  # None for unbounded
    default_ttl: int = 300
    cleanup_interval_seconds: int = 300
    rubric_ttl: int = CacheTTL.RUBRIC
    tenant_settings_ttl: int = CacheTTL.TENANT_SETTINGS
    model_response_ttl: int = CacheTTL.MODEL_RESPONSE
    enable_model_response_cache: bool = True


@dataclass
class CacheEntry:
    """Cached value with its insertion time and TTL in seconds."""

    value: Any
    created_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl


class CacheMetrics:
    """Cache performance metrics."""

    def __init__(self):
        self.hits = 0
        self.misses = 0
        self.sets = 0
        self.deletes = 0
        self.evictions = 0
        self.last_reset = time.time()

    def record_hit(self) -> None:
        self.hits += 1

    def record_miss(self) -> None:
        self.misses += 1

    def record_set(self) -> None:
        self.sets += 1

    def record_delete(self) -> None:
        self.deletes += 1

    def record_eviction(self, count: int = 1) -> None:
        self.evictions += count

    def get_hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def reset(self) -> None:
        """Reset metrics."""
        self.__init__()

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "sets": self.sets,
            "deletes": self.deletes,
            "evictions": self.evictions,
            "hit_rate": self.get_hit_rate(),
            "uptime_seconds": time.time() - self.last_reset,
        }


class ResultCache:
    """Thread-safe key/value cache with lazy TTL expiry and periodic sweep."""

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or CacheConfig()
        self.metrics = CacheMetrics()
        self._clock = clock
        self._data: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.RLock()
        self._cleanup_task: Optional[asyncio.Task] = None

    def get(self, key: str) -> Optional[Any]:
        """Get a value; an expired entry is evicted and reported as a miss."""
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                self.metrics.record_miss()
                return None

            if entry.is_expired(self._clock()):
                del self._data[key]
                self.metrics.record_eviction()
                self.metrics.record_miss()
                return None

            self.metrics.record_hit()
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Set a value with a TTL in seconds."""
        effective_ttl = self.config.default_ttl if ttl is None else ttl
        if effective_ttl <= 0:
            raise ValueError("Cache TTL must be positive")

        with self._lock:
            self._data.pop(key, None)
            self._data[key] = CacheEntry(value=value, created_at=self._clock(), ttl=effective_ttl)
            self.metrics.record_set()
            self._evict_if_needed()

    def delete(self, key: str) -> bool:
        """Remove a key directly."""
        with self._lock:
            if key in self._data:
                del self._data[key]
                self.metrics.record_delete()
                return True
            return False

    def clear(self) -> None:
        """Clear all entries."""
        with self._lock:
            self._data.clear()

    def cleanup(self) -> int:
        """Remove every expired entry and return how many were removed."""
        with self._lock:
            now = self._clock()
            expired_keys = [key for key, entry in self._data.items() if entry.is_expired(now)]
            for key in expired_keys:
                del self._data[key]

            if expired_keys:
                self.metrics.record_eviction(len(expired_keys))
                logger.debug(f"Cache cleanup removed {len(expired_keys)} expired entries")

            return len(expired_keys)

    def size(self) -> int:
        """Get current number of entries, expired ones included until swept."""
        with self._lock:
            return len(self._data)

    def _evict_if_needed(self) -> int:
        """Evict oldest entries while over capacity. Caller holds the lock."""
        if self.config.max_size is None:
            return 0

        evicted = 0
        while len(self._data) > self.config.max_size:
            self._data.popitem(last=False)
            evicted += 1

        if evicted:
            self.metrics.record_eviction(evicted)
        return evicted

    def start_cleanup_task(self, interval_seconds: Optional[float] = None) -> asyncio.Task:
        """Start a background sweep calling cleanup() periodically."""
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return self._cleanup_task

        interval = interval_seconds or self.config.cleanup_interval_seconds

        async def sweep():
            while True:
                await asyncio.sleep(interval)
                self.cleanup()

        self._cleanup_task = asyncio.create_task(sweep())
        logger.info(f"Started cache cleanup task every {interval}s")
        return self._cleanup_task

    async def stop_cleanup_task(self) -> None:
        """Stop the background sweep."""
        if self._cleanup_task is None:
            return

        self._cleanup_task.cancel()
        try:
            await self._cleanup_task
        except asyncio.CancelledError:
            pass
        self._cleanup_task = None

    def get_stats(self) -> Dict[str, Any]:
        return {
            "size": self.size(),
            "max_size": self.config.max_size,
            **self.metrics.to_dict(),
        }


def rubric_cache_key(provider: str, level: str, task: str) -> str:
    return f"rubric:{provider}:{level}:{task}"


def corrector_cache_key(provider: str, level: str, task: str) -> str:
    return f"corrector:{provider}:{level}:{task}"


def tenant_settings_cache_key(tenant_id: str) -> str:
    return f"settings:{tenant_id}"


def model_response_cache_key(model_name: str, prompt: str) -> str:
    """Key derived from the model and a hash of the exact prompt content."""
    digest = hashlib.sha256(f"{model_name}\x00{prompt}".encode("utf-8")).hexdigest()
    return f"model_response:{model_name}:{digest}"
